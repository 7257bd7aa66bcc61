from __future__ import annotations
from typing import List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, insert, delete, func

from storefront.models import Category, CategoryClosure


class CategoryRepository:
    """Persistence for category rows and their closure (ancestor index) rows.

    Every write commits once, after both the category row and its closure rows
    are in place, and rolls back on failure so the two never diverge.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list(self) -> List[Category]:
        """List all categories as a flat list"""
        result = await self.db.execute(select(Category).order_by(Category.name))
        return list(result.scalars().all())

    async def list_by_ids(self, category_ids: List[str]) -> List[Category]:
        if not category_ids:
            return []
        result = await self.db.execute(
            select(Category)
            .where(Category.id.in_(category_ids))
            .order_by(Category.name)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def list_children(self, parent_id: str) -> List[Category]:
        """Direct children only"""
        result = await self.db.execute(
            select(Category).where(Category.parent_id == parent_id).order_by(Category.name)
        )
        return list(result.scalars().all())

    async def has_children(self, category_id: str) -> bool:
        result = await self.db.execute(
            select(Category.id).where(Category.parent_id == category_id).limit(1)
        )
        return result.first() is not None

    async def parent_ids_with_children(self, category_ids: List[str]) -> set[str]:
        """The subset of category_ids that have at least one child"""
        if not category_ids:
            return set()
        result = await self.db.execute(
            select(Category.parent_id).where(Category.parent_id.in_(category_ids)).distinct()
        )
        return set(result.scalars().all())

    async def count(self) -> int:
        result = await self.db.execute(select(func.count(Category.id)))
        return result.scalar_one()

    async def get(self, category_id: str, for_update: bool = False) -> Category | None:
        """Get category by ID, always re-read from the database.

        ``for_update`` takes a row lock on backends that support it.
        """
        query = (
            select(Category)
            .where(Category.id == category_id)
            .execution_options(populate_existing=True)
        )
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_by_slug(self, slug: str) -> Category | None:
        result = await self.db.execute(select(Category).where(Category.slug == slug))
        return result.scalar_one_or_none()

    async def ancestor_edges(self, category_id: str) -> list[tuple[str, int]]:
        """(ancestor_id, depth) pairs for a node, nearest first, including the depth-0 self row"""
        result = await self.db.execute(
            select(CategoryClosure.ancestor_id, CategoryClosure.depth)
            .where(CategoryClosure.descendant_id == category_id)
            .order_by(CategoryClosure.depth)
        )
        return [(row[0], row[1]) for row in result.all()]

    async def descendant_edges(self, category_id: str) -> list[tuple[str, int]]:
        """(descendant_id, depth) pairs for the subtree rooted at a node, including itself"""
        result = await self.db.execute(
            select(CategoryClosure.descendant_id, CategoryClosure.depth)
            .where(CategoryClosure.ancestor_id == category_id)
            .order_by(CategoryClosure.depth)
        )
        return [(row[0], row[1]) for row in result.all()]

    async def is_in_subtree(self, root_id: str, candidate_id: str) -> bool:
        """True when candidate is root itself or any of its descendants"""
        result = await self.db.execute(
            select(CategoryClosure.depth).where(
                CategoryClosure.ancestor_id == root_id,
                CategoryClosure.descendant_id == candidate_id,
            )
        )
        return result.first() is not None

    async def create(self, category: Category) -> Category:
        """Insert a category with its self row plus a copy of the parent's ancestor chain"""
        try:
            self.db.add(category)
            await self.db.flush()

            rows = [{"ancestor_id": category.id, "descendant_id": category.id, "depth": 0}]
            if category.parent_id is not None:
                for ancestor_id, depth in await self.ancestor_edges(category.parent_id):
                    rows.append({
                        "ancestor_id": ancestor_id,
                        "descendant_id": category.id,
                        "depth": depth + 1,
                    })
            await self.db.execute(insert(CategoryClosure), rows)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        await self.db.refresh(category)
        return category

    async def save(self, category: Category) -> Category:
        """Persist name/slug/image changes made in place. Closure rows are untouched."""
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        await self.db.refresh(category)
        return category

    async def delete(self, category_id: str) -> bool:
        """Remove a category row and the closure rows that describe its ancestry"""
        try:
            await self.db.execute(
                delete(CategoryClosure).where(CategoryClosure.descendant_id == category_id)
            )
            result = await self.db.execute(delete(Category).where(Category.id == category_id))
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return result.rowcount > 0

    async def move_subtree(self, category: Category, new_parent_id: str | None) -> int:
        """Point category at a new parent and rebuild the ancestry of its whole subtree.

        Rows linking subtree members to each other are kept; rows linking them to
        the old ancestors above ``category`` are replaced by rows to the new
        parent's chain. Returns the number of subtree nodes (category included).
        """
        try:
            subtree = await self.descendant_edges(category.id)
            subtree_ids = [descendant_id for descendant_id, _ in subtree]
            old_ancestor_ids = [
                ancestor_id for ancestor_id, depth in await self.ancestor_edges(category.id)
                if depth > 0
            ]
            new_chain = await self.ancestor_edges(new_parent_id) if new_parent_id is not None else []

            category.parent_id = new_parent_id
            await self.db.flush()

            if old_ancestor_ids:
                await self.db.execute(
                    delete(CategoryClosure).where(
                        CategoryClosure.descendant_id.in_(subtree_ids),
                        CategoryClosure.ancestor_id.in_(old_ancestor_ids),
                    )
                )

            rows = [
                {
                    "ancestor_id": ancestor_id,
                    "descendant_id": descendant_id,
                    "depth": ancestor_depth + 1 + subtree_depth,
                }
                for ancestor_id, ancestor_depth in new_chain
                for descendant_id, subtree_depth in subtree
            ]
            if rows:
                await self.db.execute(insert(CategoryClosure), rows)

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return len(subtree_ids)
