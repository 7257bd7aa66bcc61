from fastapi import APIRouter, Response, status

from storefront.core.deps import DBSessionDep
from storefront.schemas.category import (
    CategoryCreate, CategoryOut, CategorySetParent, CategoryTreeOut, CategoryUpdate
)
from storefront.services.category_presenter import present_node, present_tree
from storefront.services.category_service import CategoryService

router = APIRouter()


@router.get("/", response_model=list[CategoryOut])
async def list_categories(db: DBSessionDep):
    """List all categories as a flat list"""
    return await CategoryService(db).list_flat()


@router.get("/tree", response_model=list[CategoryTreeOut])
async def get_category_tree(db: DBSessionDep):
    """All root categories with their subcategories nested, each node flagged with has_children"""
    trees = await CategoryService(db).list_tree()
    return present_tree(trees)


@router.get("/slug/{slug}", response_model=CategoryTreeOut)
async def get_category_by_slug(slug: str, db: DBSessionDep):
    """Get category by slug, with its direct children"""
    node = await CategoryService(db).get_by_slug(slug)
    return present_node(node)


@router.get("/{category_id}", response_model=CategoryTreeOut)
async def get_category(category_id: str, db: DBSessionDep):
    """Get category by ID, with its direct children"""
    node = await CategoryService(db).get_by_id(category_id)
    return present_node(node)


@router.post("/", response_model=CategoryOut, status_code=status.HTTP_201_CREATED)
async def create_category(data: CategoryCreate, db: DBSessionDep):
    """Create a new category. 409 if the slug is taken, 404 if the parent does not exist."""
    return await CategoryService(db).create(data)


@router.put("/{category_id}", response_model=CategoryOut)
async def update_category(category_id: str, data: CategoryUpdate, db: DBSessionDep):
    """Update name, slug or image. The parent is changed through PATCH /{category_id}/parent."""
    return await CategoryService(db).update(category_id, data)


@router.patch("/{category_id}/parent", response_model=CategoryTreeOut)
async def set_category_parent(category_id: str, data: CategorySetParent, db: DBSessionDep):
    """
    Move a category under another one, or to the root level with parent_id null / omitted.
    Returns the whole tree of the category's root after the move.
    """
    tree = await CategoryService(db).set_parent(category_id, data.parent_id)
    return present_node(tree)


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(category_id: str, db: DBSessionDep):
    """Delete a category that has no subcategories"""
    await CategoryService(db).delete(category_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
