from __future__ import annotations
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.config import settings
from storefront.models.category import Category
from storefront.repositories.category_repository import CategoryRepository

logger = logging.getLogger(__name__)


@dataclass
class CategoryNode:
    """A category with its children materialized for one read.

    Built fresh from flat rows every time; nodes never point back at their parent.
    """

    category: Category
    children: List["CategoryNode"] = field(default_factory=list)
    # Known child existence for nodes whose children were not loaded
    has_children: Optional[bool] = None

    @property
    def id(self) -> str:
        return self.category.id


def group_by_parent(categories: List[Category]) -> Dict[Optional[str], List[Category]]:
    by_parent: Dict[Optional[str], List[Category]] = defaultdict(list)
    for category in categories:
        by_parent[category.parent_id].append(category)
    return by_parent


def build_node(category: Category, by_parent: Dict[Optional[str], List[Category]]) -> CategoryNode:
    return CategoryNode(
        category=category,
        children=[build_node(child, by_parent) for child in by_parent.get(category.id, [])],
    )


class CategoryTreeService:
    """Read side of the category forest: flat lists, nested trees, and root resolution."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.category_repository = CategoryRepository(db)

    async def list_flat(self) -> List[Category]:
        return await self.category_repository.list()

    async def list_root_trees(self) -> List[CategoryNode]:
        """Every root with its descendants attached, folded from a single fetch of all rows"""
        categories = await self.category_repository.list()
        by_parent = group_by_parent(categories)
        return [build_node(root, by_parent) for root in by_parent.get(None, [])]

    async def find_root_ancestor(self, category: Category) -> Category:
        """Follow parent pointers up to the root, re-reading each node from the database.

        The walk stops after CATEGORY_MAX_TREE_DEPTH hops; hitting the bound means
        the parent pointers loop, so it is logged and the last node reached is returned.
        """
        max_depth = settings.CATEGORY_MAX_TREE_DEPTH
        current = await self.category_repository.get(category.id)
        if current is None:
            logger.warning("Category %s no longer exists; treating it as the root", category.id)
            return category
        for _ in range(max_depth):
            if current.parent_id is None:
                return current
            parent = await self.category_repository.get(current.parent_id)
            if parent is None:
                logger.warning(
                    "Category %s points at missing parent %s; treating it as the root",
                    current.id, current.parent_id,
                )
                return current
            current = parent

        if current.parent_id is not None:
            logger.warning(
                "Root ancestor walk for category %s exceeded %d levels; stopped at %s. "
                "Parent pointers probably contain a cycle.",
                category.id, max_depth, current.id,
            )
        return current

    async def find_descendants_tree(self, root: Category) -> CategoryNode:
        """The subtree under root, using the ancestor index to select its members"""
        descendant_ids = [
            descendant_id
            for descendant_id, _ in await self.category_repository.descendant_edges(root.id)
        ]
        members = await self.category_repository.list_by_ids(descendant_ids)
        by_parent = group_by_parent(members)
        fresh_root = next((member for member in members if member.id == root.id), root)
        return build_node(fresh_root, by_parent)

    async def with_children(self, category: Category) -> CategoryNode:
        """The category plus its direct children, one level deep.

        Grandchildren are not loaded; each child only records whether it has any.
        """
        children = await self.category_repository.list_children(category.id)
        parents = await self.category_repository.parent_ids_with_children(
            [child.id for child in children]
        )
        return CategoryNode(
            category=category,
            children=[
                CategoryNode(category=child, has_children=child.id in parents)
                for child in children
            ],
        )
