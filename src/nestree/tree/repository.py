"""Primitive reads and writes against the nested-set table.

:class:`NodeRepository` knows the table layout and nothing about the
algorithms: range shifts are expressed as ``(predicate, deltas)`` and the
mutator decides which to issue and in what order.

Architecture::

    ┌──────────────────────────────────────────────────────────────┐
    │                      NodeRepository                           │
    │                                                               │
    │  reads                          writes                        │
    │  ─────                          ──────                        │
    │  fetch_all()                    insert(l, r, level, value)    │
    │  fetch_by_value(v)              update_value(id, v)           │
    │  fetch_by_id(id)                shift_keys(pred, dl, dr)      │
    │  fetch_root()                   negate_keys(pred, off, dlev)  │
    │  fetch_containing_ancestor()    delete_where(pred)            │
    │  fetch_within(l, r)                                           │
    │  fetch_inverted()                                             │
    │  fetch_even_width()                                           │
    └──────────────────────────────────────────────────────────────┘

The repository holds no transaction state. Writes are only atomic when
the caller wraps them in :func:`nestree.core.storage.transaction`.
"""

from __future__ import annotations

from nestree.core.dialect import Dialect
from nestree.core.errors import ErrorContext, NodeNotFoundError
from nestree.core.protocols import Connection
from nestree.core.repository import BaseRepository
from nestree.core.schema import validate_table_name
from nestree.tree.node import Node
from nestree.tree.predicates import Predicate

_COLUMNS = "id, left_key, right_key, level, value"


class NodeRepository(BaseRepository):
    """Data access for one nested-set table.

    Parameters:
        conn: Connection the statements run on.
        dialect: SQL dialect; defaults to SQLite.
        table: Table name, validated as a plain identifier.
    """

    def __init__(
        self,
        conn: Connection,
        dialect: Dialect | None = None,
        table: str = "tree",
    ) -> None:
        super().__init__(conn, dialect)
        self.table = validate_table_name(table)

    def _select(self, where: str = "", order: str = "left_key") -> str:
        sql = f"SELECT {_COLUMNS} FROM {self.table}"
        if where:
            sql += f" WHERE {where}"
        return sql + f" ORDER BY {order}"

    def _one(self, sql: str, params: tuple, context: ErrorContext, message: str) -> Node:
        row = self.query_one(sql, params)
        if row is None:
            raise NodeNotFoundError(message, context=context)
        return Node.from_row(row)

    # -- Reads -------------------------------------------------------------

    def fetch_all(self) -> list[Node]:
        """Every node, ordered by ``left_key`` (pre-order)."""
        return [Node.from_row(r) for r in self.query(self._select())]

    def fetch_by_value(self, value: str) -> Node:
        """The first node (smallest ``left_key``) whose value matches."""
        sql = self._select(f"value = {self.dialect.placeholder(0)}") + " LIMIT 1"
        return self._one(
            sql,
            (value,),
            ErrorContext(operation="fetch_by_value", value=value, table=self.table),
            f"Node does not exist: {value!r}",
        )

    def fetch_by_id(self, node_id: int) -> Node:
        sql = self._select(f"id = {self.dialect.placeholder(0)}")
        return self._one(
            sql,
            (node_id,),
            ErrorContext(operation="fetch_by_id", node_id=node_id, table=self.table),
            f"Node does not exist: id={node_id}",
        )

    def fetch_root(self) -> Node:
        """The node with ``left_key = 1``."""
        sql = self._select(f"left_key = {self.dialect.placeholder(0)}") + " LIMIT 1"
        return self._one(
            sql,
            (1,),
            ErrorContext(operation="fetch_root", table=self.table),
            "Tree has no root",
        )

    def fetch_containing_ancestor(self, left: int, right: int) -> Node:
        """The tightest node strictly enclosing ``[left, right]``.

        Raises :class:`NodeNotFoundError` when nothing encloses the bounds,
        which is the case for the root and for detached intervals alike.
        """
        where, params = Predicate.ancestors_of(left, right).render(self.dialect)
        sql = self._select(where, order="left_key DESC") + " LIMIT 1"
        return self._one(
            sql,
            params,
            ErrorContext(
                operation="fetch_containing_ancestor",
                table=self.table,
                metadata={"left_key": left, "right_key": right},
            ),
            f"No node encloses [{left},{right}]",
        )

    def fetch_within(self, left: int, right: int) -> list[Node]:
        """Nodes inside ``[left, right]`` (a subtree), pre-order."""
        where, params = Predicate.within(left, right).render(self.dialect)
        return [Node.from_row(r) for r in self.query(self._select(where), params)]

    def count(self) -> int:
        return int(self.scalar(f"SELECT COUNT(*) FROM {self.table}"))

    def fetch_inverted(self) -> list[Node]:
        """Rows whose left key is not below their right key."""
        return [Node.from_row(r) for r in self.query(self._select("left_key >= right_key"))]

    def fetch_even_width(self) -> list[Node]:
        """Rows whose ``right_key - left_key`` is even."""
        return [
            Node.from_row(r)
            for r in self.query(self._select("(right_key - left_key) % 2 = 0"))
        ]

    # -- Writes ------------------------------------------------------------

    def insert(self, left: int, right: int, level: int, value: str) -> int:  # type: ignore[override]
        """Insert one row and return its id."""
        new_id = super().insert(
            self.table,
            {"left_key": left, "right_key": right, "level": level, "value": value},
        )
        return int(new_id)

    def update_value(self, node_id: int, value: str) -> None:
        p = self.dialect.placeholder
        cursor = self.execute(
            f"UPDATE {self.table} SET value = {p(0)} WHERE id = {p(1)}",
            (value, node_id),
        )
        if cursor.rowcount == 0:
            raise NodeNotFoundError(
                f"Node does not exist: id={node_id}",
                context=ErrorContext(operation="update_value", node_id=node_id, table=self.table),
            )

    def shift_keys(self, predicate: Predicate, left_delta: int, right_delta: int) -> int:
        """Add deltas to the keys of every matching row; returns rows hit.

        A zero delta leaves that column out of the statement.
        """
        p = self.dialect.placeholder
        assignments: list[str] = []
        params: list[int] = []
        if left_delta:
            assignments.append(f"left_key = left_key + {p(len(params))}")
            params.append(left_delta)
        if right_delta:
            assignments.append(f"right_key = right_key + {p(len(params))}")
            params.append(right_delta)
        if not assignments:
            return 0
        where, where_params = predicate.render(self.dialect, start=len(params))
        cursor = self.execute(
            f"UPDATE {self.table} SET {', '.join(assignments)} WHERE {where}",
            tuple(params) + where_params,
        )
        return cursor.rowcount

    def negate_keys(self, predicate: Predicate, offset: int = 0, level_delta: int = 0) -> int:
        """Set ``key = offset - key`` on both keys of matching rows.

        With ``offset=0`` this parks a subtree at negative positions where
        no range predicate over the live tree can reach it; applied again
        with ``offset=D`` it brings the subtree back translated by ``D``.
        ``level_delta`` is added to each row's level in the same statement.
        """
        p = self.dialect.placeholder
        where, where_params = predicate.render(self.dialect, start=3)
        cursor = self.execute(
            f"UPDATE {self.table} SET "
            f"left_key = {p(0)} - left_key, "
            f"right_key = {p(1)} - right_key, "
            f"level = level + {p(2)} "
            f"WHERE {where}",
            (offset, offset, level_delta) + where_params,
        )
        return cursor.rowcount

    def delete_where(self, predicate: Predicate) -> int:
        where, params = predicate.render(self.dialect)
        cursor = self.execute(f"DELETE FROM {self.table} WHERE {where}", params)
        return cursor.rowcount


__all__ = ["NodeRepository"]
