from __future__ import annotations
import logging
from typing import List

from slugify import slugify
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.exceptions import ConflictError, InvalidOperationError, NotFoundError
from storefront.models.category import Category
from storefront.repositories.category_repository import CategoryRepository
from storefront.schemas.category import CategoryCreate, CategoryUpdate
from storefront.services.category_reparent_service import CategoryReparentService
from storefront.services.category_tree_service import CategoryNode, CategoryTreeService

logger = logging.getLogger(__name__)


class CategoryService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.category_repository = CategoryRepository(db)
        self.tree_service = CategoryTreeService(db)
        self.reparent_service = CategoryReparentService(db)

    async def _ensure_slug_available(self, slug: str, exclude_id: str | None = None) -> None:
        existing = await self.category_repository.get_by_slug(slug)
        if existing and existing.id != exclude_id:
            raise ConflictError(f"Slug '{slug}' is already in use")

    async def list_flat(self) -> List[Category]:
        return await self.tree_service.list_flat()

    async def list_tree(self) -> List[CategoryNode]:
        return await self.tree_service.list_root_trees()

    async def get_by_id(self, category_id: str) -> CategoryNode:
        category = await self.category_repository.get(category_id)
        if not category:
            raise NotFoundError(f"Category {category_id} not found")
        return await self.tree_service.with_children(category)

    async def get_by_slug(self, slug: str) -> CategoryNode:
        category = await self.category_repository.get_by_slug(slug)
        if not category:
            raise NotFoundError(f"Category with slug '{slug}' not found")
        return await self.tree_service.with_children(category)

    async def create(self, data: CategoryCreate) -> Category:
        slug = data.slug or slugify(data.name)
        if not slug:
            raise InvalidOperationError(f"Cannot derive a slug from name '{data.name}'")
        await self._ensure_slug_available(slug)

        if data.parent_id is not None:
            parent = await self.category_repository.get(data.parent_id)
            if not parent:
                raise NotFoundError(f"Parent category {data.parent_id} not found")

        category = Category(
            name=data.name,
            slug=slug,
            image=data.image,
            parent_id=data.parent_id,
        )
        created = await self.category_repository.create(category)
        logger.info("Created category %s (%s) under %s", created.id, created.slug, created.parent_id)
        return created

    async def update(self, category_id: str, data: CategoryUpdate) -> Category:
        """Update name, slug and image. The parent is changed only through set_parent."""
        category = await self.category_repository.get(category_id)
        if not category:
            raise NotFoundError(f"Category {category_id} not found")

        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("slug") is not None:
            await self._ensure_slug_available(update_data["slug"], exclude_id=category.id)

        for key in ("name", "slug"):
            # name and slug are required columns; an explicit null leaves them alone
            if update_data.get(key) is not None:
                setattr(category, key, update_data[key])
        if "image" in update_data:
            category.image = update_data["image"]

        return await self.category_repository.save(category)

    async def delete(self, category_id: str) -> None:
        """Delete a leaf category. Categories with children must be emptied first.

        Holds the tree lock so no move can attach a child between the check and the delete.
        """
        async with self.reparent_service.tree_lock:
            category = await self.category_repository.get(category_id, for_update=True)
            if not category:
                raise NotFoundError(f"Category {category_id} not found")
            if await self.category_repository.has_children(category_id):
                raise InvalidOperationError(
                    "Category has subcategories; move or delete them before deleting it"
                )
            deleted = await self.category_repository.delete(category_id)
            if not deleted:
                raise NotFoundError(f"Category {category_id} not found")
        logger.info("Deleted category %s", category_id)

    async def set_parent(self, category_id: str, parent_id: str | None) -> CategoryNode:
        return await self.reparent_service.set_parent(category_id, parent_id)
