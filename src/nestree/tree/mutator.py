"""
Structural mutations of a nested-set tree.

:class:`TreeMutator` implements the four write operations. Each one runs
all of its statements inside a single :func:`~nestree.core.storage.transaction`,
so callers (and concurrent readers, subject to the store's isolation) see
either the tree before the call or the tree after it, never a partially
shifted one.

Every operation starts by re-reading its node arguments by id inside the
transaction. A ``Node`` held by the caller is a snapshot whose keys go
stale after any other mutation; only its ``id`` is trusted.

Architecture:
    ::

        insert_child(parent, v)        delete_node(n)
        ───────────────────────        ──────────────
        at = parent.right              W = n.width
        left,right += 2  (left > at)   delete within [L, R]
        right += 2  (spans at)         right -= W  (ancestors)
        insert [at, at+1]              left,right -= W  (left > R)

        move_node(n, p)
        ───────────────
        W = n.width
        park:   key = -key              (within [L, R])
        close:  right -= W              (ancestors of n)
                left,right -= W         (left > R)
        open:   B = p.right (re-read)
                right += W              (right >= B)
                left += W               (left > B)
        place:  key = (B - L) - key     (parked rows)
                level += p.level + 1 - n.level

Tags:
    nested-set, mutation, transaction, nestree
"""

from __future__ import annotations

from nestree.core.dialect import Dialect
from nestree.core.errors import ErrorContext, InvalidOperationError, NodeNotFoundError
from nestree.core.logging import LogContext, get_logger
from nestree.core.protocols import Connection
from nestree.core.storage import reading, transaction
from nestree.tree.node import Node
from nestree.tree.predicates import Predicate
from nestree.tree.repository import NodeRepository

logger = get_logger(__name__)


class TreeMutator:
    """Insert, delete, move and rename nodes of one tree table."""

    def __init__(
        self,
        conn: Connection,
        dialect: Dialect | None = None,
        table: str = "tree",
        *,
        repo: NodeRepository | None = None,
    ) -> None:
        self.conn = conn
        self.repo = repo or NodeRepository(conn, dialect, table)

    # -- InsertChild -------------------------------------------------------

    def insert_child(self, parent: Node, value: str) -> Node:
        """Append a new node as the rightmost child of ``parent``."""
        with LogContext(parent_id=parent.id), transaction(self.conn, operation="insert_child"):
            parent = self.repo.fetch_by_id(parent.id)
            at = parent.right_key

            self.repo.shift_keys(Predicate.after(at), 2, 2)
            self.repo.shift_keys(Predicate.contains_position(at), 0, 2)

            level = parent.level + 1
            new_id = self.repo.insert(at, at + 1, level, value)

        node = Node(id=new_id, left_key=at, right_key=at + 1, level=level, value=value)
        logger.info(
            "node_inserted",
            node_id=node.id,
            value=value,
            parent_id=parent.id,
            left_key=node.left_key,
            right_key=node.right_key,
        )
        return node

    # -- DeleteNode --------------------------------------------------------

    def delete_node(self, node: Node) -> int:
        """Delete ``node`` and its whole subtree; returns rows removed.

        Raises:
            InvalidOperationError: ``node`` is the root.
            NodeNotFoundError: ``node`` no longer exists.
        """
        with LogContext(node_id=node.id), transaction(self.conn, operation="delete_node"):
            node = self.repo.fetch_by_id(node.id)
            if node.is_root:
                raise InvalidOperationError(
                    "The root node cannot be deleted",
                    context=ErrorContext(operation="delete_node", node_id=node.id, value=node.value),
                )
            width = node.width

            removed = self.repo.delete_where(Predicate.within(node.left_key, node.right_key))
            self.repo.shift_keys(
                Predicate.ancestors_of(node.left_key, node.right_key), 0, -width
            )
            self.repo.shift_keys(Predicate.after(node.right_key), -width, -width)

        logger.info("node_deleted", node_id=node.id, value=node.value, rows=removed)
        return removed

    # -- MoveNode ----------------------------------------------------------

    def move_node(self, node: Node, new_parent: Node) -> Node:
        """Re-attach ``node``'s subtree as the rightmost child of ``new_parent``.

        Moving a node onto itself or onto its current parent is a no-op.
        Returns the moved node as stored after the call.

        Raises:
            InvalidOperationError: ``node`` is the root, or ``new_parent``
                lies inside ``node``'s subtree.
            NodeNotFoundError: either node no longer exists.
        """
        with reading(self.conn):
            node = self.repo.fetch_by_id(node.id)
            if new_parent.id == node.id:
                logger.debug("move_skipped", node_id=node.id, reason="same_node")
                return node
            new_parent = self.repo.fetch_by_id(new_parent.id)
            current_parent = self._validate_move(node, new_parent)
        if current_parent.id == new_parent.id:
            logger.debug("move_skipped", node_id=node.id, reason="already_child")
            return node

        with LogContext(node_id=node.id, new_parent_id=new_parent.id), transaction(
            self.conn, operation="move_node"
        ):
            # Re-validate against the state this transaction sees
            node = self.repo.fetch_by_id(node.id)
            new_parent = self.repo.fetch_by_id(new_parent.id)
            self._validate_move(node, new_parent)

            left, right, width = node.left_key, node.right_key, node.width

            self.repo.negate_keys(Predicate.within(left, right))

            self.repo.shift_keys(Predicate.ancestors_of(left, right), 0, -width)
            self.repo.shift_keys(Predicate.after(right), -width, -width)

            new_parent = self.repo.fetch_by_id(new_parent.id)
            boundary = new_parent.right_key
            self.repo.shift_keys(Predicate.right_at_or_after(boundary), 0, width)
            self.repo.shift_keys(Predicate.after(boundary), width, 0)

            self.repo.negate_keys(
                Predicate.detached(),
                offset=boundary - left,
                level_delta=new_parent.level + 1 - node.level,
            )
            moved = self.repo.fetch_by_id(node.id)

        logger.info(
            "node_moved",
            node_id=node.id,
            value=node.value,
            new_parent_id=new_parent.id,
            from_keys=[left, right],
            to_keys=[moved.left_key, moved.right_key],
        )
        return moved

    def _validate_move(self, node: Node, new_parent: Node) -> Node:
        """Check the move preconditions; return ``node``'s current parent."""
        context = ErrorContext(
            operation="move_node",
            node_id=node.id,
            value=node.value,
            metadata={"new_parent_id": new_parent.id},
        )
        try:
            current_parent = self.repo.fetch_containing_ancestor(node.left_key, node.right_key)
        except NodeNotFoundError as exc:
            raise InvalidOperationError(
                "The root node cannot be moved", context=context, cause=exc
            ) from exc
        if node.contains(new_parent):
            raise InvalidOperationError(
                "Cannot move a node under its own descendant", context=context
            )
        return current_parent

    # -- RenameNode --------------------------------------------------------

    def rename_node(self, node: Node, value: str) -> Node:
        """Change ``node``'s value; keys and level are untouched."""
        with LogContext(node_id=node.id), transaction(self.conn, operation="rename_node"):
            self.repo.update_value(node.id, value)
            renamed = self.repo.fetch_by_id(node.id)

        logger.info("node_renamed", node_id=node.id, old_value=node.value, value=value)
        return renamed


__all__ = ["TreeMutator"]
