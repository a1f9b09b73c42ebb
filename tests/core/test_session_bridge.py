"""Tests for the SQLAlchemy Connection bridge.

The bridge is what PostgreSQL deployments run on; here it is exercised
against an in-memory SQLite engine so the full tree algorithms can be
checked without a server.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from nestree.core.dialect import SQLiteDialect
from nestree.core.errors import StoreError
from nestree.core.orm import SAConnectionBridge, TreeSession, create_tree_engine
from nestree.core.orm.session import _rewrite_placeholders
from nestree.core.protocols import Connection
from nestree.core.schema import create_schema
from nestree.tree import Tree

from _support.trees import assert_valid_tree


@pytest.fixture
def bridge() -> Iterator[SAConnectionBridge]:
    engine = create_tree_engine("sqlite://")
    b = SAConnectionBridge(TreeSession(bind=engine))
    create_schema(b, SQLiteDialect())
    yield b
    b.close()
    engine.dispose()


class TestRewritePlaceholders:
    def test_qmark(self) -> None:
        assert _rewrite_placeholders("a = ? AND b > ?") == "a = :p0 AND b > :p1"

    def test_format(self) -> None:
        sql = "UPDATE tree SET left_key = %s - left_key WHERE left_key < %s"
        assert _rewrite_placeholders(sql) == (
            "UPDATE tree SET left_key = :p0 - left_key WHERE left_key < :p1"
        )


class TestBridge:
    def test_satisfies_protocol(self, bridge: SAConnectionBridge) -> None:
        assert isinstance(bridge, Connection)

    def test_fetch_and_description(self, bridge: SAConnectionBridge) -> None:
        bridge.execute(
            "INSERT INTO tree (left_key, right_key, level, value) VALUES (?, ?, ?, ?)",
            (1, 2, 0, "animals"),
        )
        assert bridge.lastrowid == 1
        bridge.commit()

        cursor = bridge.execute("SELECT id, value FROM tree WHERE left_key = ?", (1,))
        assert [d[0] for d in cursor.description] == ["id", "value"]
        assert cursor.fetchall() == [(1, "animals")]

    def test_non_row_statement(self, bridge: SAConnectionBridge) -> None:
        bridge.execute("DELETE FROM tree")
        assert bridge.fetchone() is None
        assert bridge.fetchall() == []
        assert bridge.description is None


class TestTreeOverBridge:
    def test_walkthrough(self, bridge: SAConnectionBridge) -> None:
        tree = Tree(bridge, SQLiteDialect())
        root = tree.plant("animals")
        mammals = tree.insert_child(root, "mammals")
        for value in ("dogs", "cats", "horses"):
            tree.insert_child(mammals, value)
        fish = tree.insert_child(tree.root, "fish")
        tree.insert_child(fish, "sharks")

        tree.move_node(tree.get_node_by_value("sharks"), tree.get_node_by_value("mammals"))
        assert tree.delete_node(tree.get_node_by_value("cats")) == 1

        nodes = tree.get_all_nodes()
        assert [n.value for n in nodes] == [
            "animals",
            "mammals",
            "dogs",
            "horses",
            "sharks",
            "fish",
        ]
        assert_valid_tree(nodes)
        assert tree.check().valid

    def test_driver_error_rolls_back(self, bridge: SAConnectionBridge) -> None:
        tree = Tree(bridge, SQLiteDialect())
        tree.plant("animals")
        broken = Tree(bridge, SQLiteDialect(), table="missing")

        with pytest.raises(StoreError):
            broken.plant("plants")
        assert [n.value for n in tree.get_all_nodes()] == ["animals"]


class TestReadScope:
    def test_reads_leave_no_transaction_open(self, bridge: SAConnectionBridge) -> None:
        tree = Tree(bridge, SQLiteDialect())
        root = tree.plant("animals")
        mammals = tree.insert_child(root, "mammals")

        tree.get_all_nodes()
        assert not bridge.in_transaction
        tree.get_parent(tree.get_node_by_value("mammals"))
        tree.get_children(tree.root)
        tree.check()
        assert not bridge.in_transaction
        assert tree.refresh(mammals) == mammals

    def test_pending_writes_survive_a_read(self, bridge: SAConnectionBridge) -> None:
        bridge.execute(
            "INSERT INTO tree (left_key, right_key, level, value) VALUES (?, ?, ?, ?)",
            (1, 2, 0, "animals"),
        )
        tree = Tree(bridge, SQLiteDialect())
        assert [n.value for n in tree.get_all_nodes()] == ["animals"]
        assert bridge.in_transaction
        bridge.commit()
        assert not bridge.in_transaction

    def test_second_connection_writes_after_read(self, tmp_path) -> None:
        url = f"sqlite:///{tmp_path / 'tree.db'}"
        engine_a, engine_b = create_tree_engine(url), create_tree_engine(url)
        a = SAConnectionBridge(TreeSession(bind=engine_a))
        b = SAConnectionBridge(TreeSession(bind=engine_b))
        try:
            create_schema(a, SQLiteDialect())
            tree_a, tree_b = Tree(a, SQLiteDialect()), Tree(b, SQLiteDialect())
            tree_a.plant("animals")
            assert len(tree_a.get_all_nodes()) == 1

            tree_b.insert_child(tree_b.root, "mammals")

            nodes = tree_a.get_all_nodes()
            assert [n.value for n in nodes] == ["animals", "mammals"]
            assert_valid_tree(nodes)
        finally:
            a.close()
            b.close()
            engine_a.dispose()
            engine_b.dispose()
