"""Turns materialized category trees into response models with has_children set."""
from typing import List

from storefront.schemas.category import CategoryOut, CategoryTreeOut
from storefront.services.category_tree_service import CategoryNode


def present_node(node: CategoryNode) -> CategoryTreeOut:
    children = [present_node(child) for child in node.children]
    base = CategoryOut.model_validate(node.category)
    has_children = node.has_children if node.has_children is not None else len(children) > 0
    return CategoryTreeOut(
        **base.model_dump(),
        has_children=has_children,
        children=children,
    )


def present_tree(nodes: List[CategoryNode]) -> List[CategoryTreeOut]:
    return [present_node(node) for node in nodes]
