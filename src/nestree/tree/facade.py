"""
The :class:`Tree` facade: one object for reading and mutating a tree.

Manifesto:
    Callers should not need to know that a tree is a table of intervals.
    ``Tree`` owns the repository and the mutator for one table on one
    explicit connection, and keeps the only long-lived in-process state:
    a cached reference to the root node.

Architecture:
    ::

        Tree(conn, dialect, table)
        ├── root                 cached, lazily loaded, invalidate_root()
        ├── is_populated()       cached root or SELECT … WHERE left_key = 1
        ├── plant(value)         idempotent root creation, re-checked in-transaction
        ├── reads (reading())    get_all_nodes / get_node_by_value / get_node
        │                        get_parent / get_children / get_subtree
        ├── mutations            insert_child / delete_node / move_node
        │                        rename_node   (→ TreeMutator)
        └── check()              consistency report (→ checker)

Examples:
    >>> conn, info = create_connection("memory", init_schema=True)
    >>> tree = Tree(conn, dialect=info.dialect)
    >>> animals = tree.plant("animals")
    >>> mammals = tree.insert_child(animals, "mammals")
    >>> tree.get_parent(mammals).value
    'animals'

Tags:
    facade, nested-set, tree, nestree
"""

from __future__ import annotations

from nestree.core.dialect import Dialect
from nestree.core.errors import NodeNotFoundError
from nestree.core.logging import get_logger
from nestree.core.protocols import Connection
from nestree.core.storage import reading, transaction
from nestree.tree.checker import ConsistencyReport, check_tree
from nestree.tree.mutator import TreeMutator
from nestree.tree.node import Node
from nestree.tree.repository import NodeRepository

logger = get_logger(__name__)


class Tree:
    """A nested-set tree stored in ``table`` on ``conn``.

    The connection is passed in explicitly and never closed by the tree;
    its owner decides its lifetime.
    """

    def __init__(
        self,
        conn: Connection,
        dialect: Dialect | None = None,
        table: str = "tree",
    ) -> None:
        self.conn = conn
        self.repo = NodeRepository(conn, dialect, table)
        self.mutator = TreeMutator(conn, repo=self.repo)
        self._root: Node | None = None

    # -- Root cache ----------------------------------------------------------

    @property
    def root(self) -> Node:
        """The root node; loaded on first access.

        Raises:
            NodeNotFoundError: The tree has not been planted.
        """
        if self._root is None:
            with reading(self.conn):
                self._root = self.repo.fetch_root()
        return self._root

    def invalidate_root(self) -> None:
        """Drop the cached root so the next access re-reads it."""
        self._root = None

    def is_populated(self) -> bool:
        """True if the tree has a root; caches it when found."""
        if self._root is not None:
            return True
        try:
            with reading(self.conn):
                self._root = self.repo.fetch_root()
        except NodeNotFoundError:
            return False
        return True

    def plant(self, value: str) -> Node:
        """Create the root node, or return the existing one.

        The emptiness check is repeated inside the insert transaction, so
        two concurrent calls never plant two roots.
        """
        if self.is_populated():
            logger.debug("plant_skipped", root_id=self.root.id)
            return self.root
        with transaction(self.conn, operation="plant"):
            try:
                self._root = self.repo.fetch_root()
            except NodeNotFoundError:
                new_id = self.repo.insert(1, 2, 0, value)
            else:
                logger.debug("plant_skipped", root_id=self._root.id)
                return self._root
        self._root = Node(id=new_id, left_key=1, right_key=2, level=0, value=value)
        logger.info("tree_planted", root_id=new_id, value=value)
        return self._root

    # -- Reads ---------------------------------------------------------------

    def get_all_nodes(self) -> list[Node]:
        """Every node in pre-order (ascending ``left_key``), freshly read."""
        with reading(self.conn):
            return self.repo.fetch_all()

    def get_node_by_value(self, value: str) -> Node:
        with reading(self.conn):
            return self.repo.fetch_by_value(value)

    def get_node(self, node_id: int) -> Node:
        with reading(self.conn):
            return self.repo.fetch_by_id(node_id)

    def refresh(self, node: Node) -> Node:
        """Re-read ``node`` so its keys reflect the current tree."""
        return self.get_node(node.id)

    def get_parent(self, node: Node) -> Node:
        """The tightest node enclosing ``node``.

        Raises :class:`NodeNotFoundError` for the root as well as for a
        detached interval; callers that care compare with :attr:`root`.
        """
        with reading(self.conn):
            return self.repo.fetch_containing_ancestor(node.left_key, node.right_key)

    def get_subtree(self, node: Node) -> list[Node]:
        """``node`` and all of its descendants, pre-order."""
        with reading(self.conn):
            return self.repo.fetch_within(node.left_key, node.right_key)

    def get_children(self, node: Node) -> list[Node]:
        """Direct children of ``node``, left to right."""
        children: list[Node] = []
        skip_until = node.left_key
        for member in self.get_subtree(node):
            if member.id == node.id or member.left_key < skip_until:
                continue
            children.append(member)
            skip_until = member.right_key
        return children

    # -- Mutations -----------------------------------------------------------

    def insert_child(self, parent: Node, value: str) -> Node:
        try:
            return self.mutator.insert_child(parent, value)
        finally:
            self.invalidate_root()

    def delete_node(self, node: Node) -> int:
        try:
            return self.mutator.delete_node(node)
        finally:
            self.invalidate_root()

    def move_node(self, node: Node, new_parent: Node) -> Node:
        try:
            return self.mutator.move_node(node, new_parent)
        finally:
            self.invalidate_root()

    def rename_node(self, node: Node, value: str) -> Node:
        renamed = self.mutator.rename_node(node, value)
        if self._root is not None and self._root.id == renamed.id:
            self._root = renamed
        return renamed

    # -- Diagnostics ---------------------------------------------------------

    def check(self) -> ConsistencyReport:
        with reading(self.conn):
            return check_tree(self.repo)


__all__ = ["Tree"]
