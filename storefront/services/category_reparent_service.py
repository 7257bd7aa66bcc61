from __future__ import annotations
import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.exceptions import InvalidOperationError, NotFoundError
from storefront.repositories.category_repository import CategoryRepository
from storefront.services.category_tree_service import CategoryNode, CategoryTreeService

logger = logging.getLogger(__name__)


class CategoryReparentService:
    # Structural changes (moves and deletes) are serialized within the process so
    # a cycle or child check can never interleave with another rewrite. Across
    # processes the row locks taken in set_parent do the same job on PostgreSQL.
    tree_lock = asyncio.Lock()

    def __init__(self, db: AsyncSession):
        self.db = db
        self.category_repository = CategoryRepository(db)
        self.tree_service = CategoryTreeService(db)

    async def set_parent(self, category_id: str, parent_id: str | None) -> CategoryNode:
        """Move a category (and its subtree) under parent_id, or to the root level when None.

        Returns the full tree of the category's root after the move, since the
        move can change which root a whole subtree hangs from.

        Raises:
            NotFoundError: the category or the new parent does not exist.
            InvalidOperationError: parent_id is the category itself or one of its descendants.
        """
        logger.debug("Reparenting category %s under %s", category_id, parent_id)

        async with self.tree_lock:
            # Every check runs before the first write. Row locks taken here are
            # released when the request's transaction ends.
            category = await self.category_repository.get(category_id, for_update=True)
            if category is None:
                raise NotFoundError(f"Category {category_id} not found")

            if parent_id == category.id:
                raise InvalidOperationError("A category cannot be its own parent")

            if parent_id is not None:
                parent = await self.category_repository.get(parent_id, for_update=True)
                if parent is None:
                    raise NotFoundError(f"Parent category {parent_id} not found")
                if await self.category_repository.is_in_subtree(category.id, parent.id):
                    raise InvalidOperationError(
                        "A category cannot be moved under one of its own descendants"
                    )

            old_parent_id = category.parent_id
            moved = await self.category_repository.move_subtree(category, parent_id)

            logger.info(
                "Moved category %s from parent %s to %s (%d node(s) reindexed)",
                category_id, old_parent_id, parent_id, moved,
            )

            # Derived under the lock so the returned tree is the one this move produced
            root = await self.tree_service.find_root_ancestor(category)
            return await self.tree_service.find_descendants_tree(root)
