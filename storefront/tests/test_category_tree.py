"""
Tests for tree reads: flat listing, nested trees, root resolution and the presenter
"""
import logging

import pytest
from sqlalchemy import update

from storefront.core.config import settings
from storefront.models import Category
from storefront.schemas.category import CategoryCreate
from storefront.services.category_presenter import present_node, present_tree
from storefront.services.category_tree_service import CategoryNode, CategoryTreeService


def _shape(node):
    return (node.category.slug, [_shape(child) for child in node.children])


@pytest.mark.asyncio
class TestCategoryTreeService:

    async def test_list_flat_returns_every_node(self, test_db, abc_chain):
        flat = await CategoryTreeService(test_db).list_flat()
        assert sorted(c.slug for c in flat) == ["a", "b", "c"]

    async def test_list_root_trees_nests_children(self, test_db, category_service, abc_chain):
        a, _, _ = abc_chain
        await category_service.create(CategoryCreate(name="D", slug="d"))
        await category_service.create(CategoryCreate(name="A2", slug="a2", parent_id=a.id))

        trees = await CategoryTreeService(test_db).list_root_trees()

        assert sorted(_shape(tree) for tree in trees) == [
            ("a", [("a2", []), ("b", [("c", [])])]),
            ("d", []),
        ]

    async def test_find_root_ancestor(self, test_db, abc_chain):
        a, b, c = abc_chain
        service = CategoryTreeService(test_db)

        assert (await service.find_root_ancestor(c)).id == a.id
        assert (await service.find_root_ancestor(b)).id == a.id
        assert (await service.find_root_ancestor(a)).id == a.id

    async def test_find_root_ancestor_rereads_the_starting_node(self, test_db, abc_chain):
        a, b, c = abc_chain
        # Detached copy of C that still believes it is a root
        stale = Category(id=c.id, name="C", slug="c", parent_id=None)

        reached = await CategoryTreeService(test_db).find_root_ancestor(stale)

        assert reached.id == a.id

    async def test_find_root_ancestor_stops_on_cycle(self, test_db, category_service, monkeypatch, caplog):
        x = await category_service.create(CategoryCreate(name="X", slug="x"))
        y = await category_service.create(CategoryCreate(name="Y", slug="y", parent_id=x.id))
        # Corrupt the parent pointers behind the service's back
        await test_db.execute(update(Category).where(Category.id == x.id).values(parent_id=y.id))
        await test_db.commit()
        monkeypatch.setattr(settings, "CATEGORY_MAX_TREE_DEPTH", 5)

        with caplog.at_level(logging.WARNING, logger="storefront"):
            fresh_x = await CategoryTreeService(test_db).category_repository.get(x.id)
            reached = await CategoryTreeService(test_db).find_root_ancestor(fresh_x)

        assert reached.id in {x.id, y.id}
        assert "exceeded 5 levels" in caplog.text

    async def test_find_root_ancestor_dangling_parent(self, test_db, category_service, caplog):
        x = await category_service.create(CategoryCreate(name="X", slug="x"))
        await test_db.execute(update(Category).where(Category.id == x.id).values(parent_id="gone"))
        await test_db.commit()

        with caplog.at_level(logging.WARNING, logger="storefront"):
            service = CategoryTreeService(test_db)
            reached = await service.find_root_ancestor(await service.category_repository.get(x.id))

        assert reached.id == x.id
        assert "missing parent" in caplog.text

    async def test_find_descendants_tree_is_scoped(self, test_db, category_service, abc_chain):
        a, b, _ = abc_chain
        await category_service.create(CategoryCreate(name="Other", slug="other", parent_id=a.id))

        tree = await CategoryTreeService(test_db).find_descendants_tree(b)

        assert _shape(tree) == ("b", [("c", [])])

    async def test_with_children_is_one_level(self, test_db, abc_chain):
        a, _, _ = abc_chain
        node = await CategoryTreeService(test_db).with_children(a)

        assert _shape(node) == ("a", [("b", [])])
        assert node.children[0].has_children is True


class TestCategoryPresenter:

    def _category(self, id, slug, parent_id=None):
        return Category(id=id, name=slug.upper(), slug=slug, parent_id=parent_id)

    def test_has_children_is_set_recursively(self):
        root = CategoryNode(
            category=self._category("1", "root"),
            children=[
                CategoryNode(
                    category=self._category("2", "mid", "1"),
                    children=[CategoryNode(category=self._category("3", "leaf", "2"))],
                ),
                CategoryNode(category=self._category("4", "sibling", "1")),
            ],
        )

        out = present_node(root)

        assert out.has_children is True
        assert [child.slug for child in out.children] == ["mid", "sibling"]
        assert out.children[0].has_children is True
        assert out.children[0].children[0].has_children is False
        assert out.children[0].children[0].children == []
        assert out.children[1].has_children is False

    def test_known_has_children_wins_over_unloaded_children(self):
        node = CategoryNode(
            category=self._category("1", "root"),
            children=[CategoryNode(category=self._category("2", "mid", "1"), has_children=True)],
        )

        out = present_node(node)

        assert out.children[0].has_children is True
        assert out.children[0].children == []

    def test_present_tree_keeps_fields(self):
        category = Category(id="1", name="Shoes", slug="shoes", image="https://img/1.png")
        [out] = present_tree([CategoryNode(category=category)])

        assert out.id == "1"
        assert out.name == "Shoes"
        assert out.image == "https://img/1.png"
        assert out.parent_id is None
        assert out.has_children is False

    def test_present_does_not_mutate_input(self):
        node = CategoryNode(category=self._category("1", "root"))
        present_node(node)
        assert not hasattr(node.category, "has_children")
        assert node.children == []
