"""Tests for the Tree facade: root cache, planting and structural reads."""

from __future__ import annotations

import pytest

from nestree.core.connection import create_connection
from nestree.core.errors import InvalidOperationError, NodeNotFoundError
from nestree.core.sqlite_conn import SqliteConnection
from nestree.tree import Tree

from _support.trees import assert_valid_tree


@pytest.fixture
def empty(conn: SqliteConnection) -> Tree:
    return Tree(conn)


class TestPlant:
    def test_empty_tree_is_not_populated(self, empty: Tree) -> None:
        assert empty.is_populated() is False
        with pytest.raises(NodeNotFoundError):
            _ = empty.root

    def test_plant_creates_root(self, empty: Tree) -> None:
        root = empty.plant("animals")

        assert (root.left_key, root.right_key, root.level) == (1, 2, 0)
        assert root.is_root
        assert empty.is_populated() is True
        assert empty.get_all_nodes() == [root]

    def test_plant_is_idempotent(self, empty: Tree) -> None:
        first = empty.plant("animals")
        second = empty.plant("plants")

        assert second == first
        assert empty.repo.count() == 1

    def test_plant_sees_root_written_by_another_tree(self, conn: SqliteConnection) -> None:
        Tree(conn).plant("animals")
        other = Tree(conn)
        assert other.is_populated() is True
        assert other.plant("plants").value == "animals"

    def test_plant_rechecks_root_inside_transaction(
        self, conn: SqliteConnection, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        late = Tree(conn)
        # Root planted by someone else after this tree's emptiness check
        monkeypatch.setattr(late, "is_populated", lambda: False)
        Tree(conn).plant("animals")

        assert late.plant("plants").value == "animals"
        assert late.repo.count() == 1
        assert late.root.value == "animals"

    def test_grow_from_planted_root(self, empty: Tree) -> None:
        root = empty.plant("animals")
        mammals = empty.insert_child(root, "mammals")
        empty.insert_child(mammals, "dogs")
        empty.insert_child(empty.root, "fish")

        assert [n.value for n in empty.get_all_nodes()] == ["animals", "mammals", "dogs", "fish"]
        assert_valid_tree(empty.get_all_nodes())


class TestRootCache:
    def test_root_is_cached(self, animals: Tree) -> None:
        assert animals.root is animals.root

    def test_mutation_invalidates_root(self, animals: Tree) -> None:
        before = animals.root
        animals.insert_child(animals.get_node_by_value("fish"), "rays")

        assert before.right_key == 20
        assert animals.root.right_key == 22

    def test_failed_mutation_invalidates_root(self, animals: Tree) -> None:
        _ = animals.root
        with pytest.raises(InvalidOperationError):
            animals.delete_node(animals.root)
        assert animals._root is None

    def test_invalidate_root(self, animals: Tree) -> None:
        _ = animals.root
        animals.invalidate_root()
        assert animals._root is None
        assert animals.root.value == "animals"

    def test_renaming_root_refreshes_cache(self, animals: Tree) -> None:
        animals.rename_node(animals.root, "creatures")
        assert animals.root.value == "creatures"


class TestReads:
    def test_get_all_nodes_is_preorder(self, animals: Tree) -> None:
        values = [n.value for n in animals.get_all_nodes()]
        assert values == [
            "animals",
            "mammals",
            "dogs",
            "cats",
            "horses",
            "fish",
            "sharks",
            "insects",
            "flies",
            "bees",
        ]

    def test_get_node_by_value_missing(self, animals: Tree) -> None:
        with pytest.raises(NodeNotFoundError) as exc_info:
            animals.get_node_by_value("unicorns")
        assert exc_info.value.context.value == "unicorns"

    def test_duplicate_values_resolve_to_first_in_preorder(self, animals: Tree) -> None:
        animals.insert_child(animals.get_node_by_value("insects"), "dogs")
        assert animals.get_node_by_value("dogs").left_key == 3

    def test_get_node_by_id(self, animals: Tree) -> None:
        fish = animals.get_node_by_value("fish")
        assert animals.get_node(fish.id) == fish
        with pytest.raises(NodeNotFoundError):
            animals.get_node(9999)

    def test_get_parent(self, animals: Tree) -> None:
        assert animals.get_parent(animals.get_node_by_value("bees")).value == "insects"
        assert animals.get_parent(animals.get_node_by_value("fish")).value == "animals"

    def test_root_has_no_parent(self, animals: Tree) -> None:
        with pytest.raises(NodeNotFoundError):
            animals.get_parent(animals.root)

    def test_get_children(self, animals: Tree) -> None:
        assert [c.value for c in animals.get_children(animals.root)] == [
            "mammals",
            "fish",
            "insects",
        ]
        assert animals.get_children(animals.get_node_by_value("dogs")) == []

    def test_get_subtree(self, animals: Tree) -> None:
        fish = animals.get_node_by_value("fish")
        assert [n.value for n in animals.get_subtree(fish)] == ["fish", "sharks"]

    def test_refresh(self, animals: Tree) -> None:
        bees = animals.get_node_by_value("bees")
        animals.insert_child(animals.get_node_by_value("dogs"), "puppy")
        assert animals.refresh(bees).left_key == bees.left_key + 2


class TestCheck:
    def test_check_clean_tree(self, animals: Tree) -> None:
        assert animals.check().valid is True


class TestCreateConnection:
    def test_tree_on_file_database(self, tmp_path) -> None:
        conn, info = create_connection(str(tmp_path / "tree.db"), init_schema=True)
        try:
            tree = Tree(conn, dialect=info.dialect)
            tree.plant("animals")
            tree.insert_child(tree.root, "mammals")
        finally:
            conn.close()

        conn, info = create_connection(str(tmp_path / "tree.db"))
        try:
            values = [n.value for n in Tree(conn, dialect=info.dialect).get_all_nodes()]
        finally:
            conn.close()
        assert values == ["animals", "mammals"]
