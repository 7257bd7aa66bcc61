"""Assertions over the category forest shared by the test modules."""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.models import Category, CategoryClosure


async def closure_rows(db: AsyncSession) -> set[tuple[str, str, int]]:
    result = await db.execute(
        select(CategoryClosure.ancestor_id, CategoryClosure.descendant_id, CategoryClosure.depth)
    )
    return {(row[0], row[1], row[2]) for row in result.all()}


async def ancestors_of(db: AsyncSession, category_id: str) -> dict[str, int]:
    result = await db.execute(
        select(CategoryClosure.ancestor_id, CategoryClosure.depth)
        .where(CategoryClosure.descendant_id == category_id)
    )
    return {row[0]: row[1] for row in result.all()}


async def assert_forest_consistent(db: AsyncSession) -> None:
    """Parent pointers form a forest and every node's closure rows are exactly its path to the root"""
    result = await db.execute(
        select(Category.id, Category.parent_id).execution_options(populate_existing=True)
    )
    parents = {row[0]: row[1] for row in result.all()}

    for category_id in parents:
        expected = {}
        current, depth = category_id, 0
        while current is not None:
            assert current not in expected, f"cycle through {current}"
            expected[current] = depth
            current = parents[current]
            depth += 1
        assert await ancestors_of(db, category_id) == expected
