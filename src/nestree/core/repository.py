"""Base repository with dialect-aware database access.

Provides :class:`BaseRepository`: pairs a
:class:`~nestree.core.protocols.Connection` with a
:class:`~nestree.core.dialect.Dialect` so that domain repositories write
portable SQL without referencing a specific driver.

Architecture::

    ┌────────────────────────────────────────────────────────────────────┐
    │                       BaseRepository                               │
    │                                                                    │
    │   conn: Connection        ← protocol from nestree.core.protocols   │
    │   dialect: Dialect        ← from nestree.core.dialect              │
    │                                                                    │
    │   execute(sql, params)     → cursor                                │
    │   query(sql, params)       → list[dict]                            │
    │   query_one(sql, params)   → dict | None                           │
    │   insert(table, data, ...) → new row id                            │
    └────────────────────────────────────────────────────────────────────┘

Driver exceptions raised by any helper surface as
:class:`~nestree.core.errors.StoreError`. Repositories never commit or
roll back; transaction boundaries belong to the caller.
"""

from __future__ import annotations

from typing import Any

from nestree.core.dialect import Dialect, SQLiteDialect
from nestree.core.protocols import Connection
from nestree.core.storage import DRIVER_ERRORS, as_store_error


class BaseRepository:
    """Dialect-aware base class for data-access repositories.

    Parameters:
        conn: Any object satisfying the :class:`Connection` protocol.
        dialect: SQL dialect to use. Defaults to :class:`SQLiteDialect`.
    """

    def __init__(self, conn: Connection, dialect: Dialect | None = None) -> None:
        self.conn = conn
        self.dialect: Dialect = dialect or SQLiteDialect()

    # -- Convenience shortcuts ---------------------------------------------

    def ph(self, count: int) -> str:
        """Shortcut for ``self.dialect.placeholders(count)``."""
        return self.dialect.placeholders(count)

    # -- Query helpers -----------------------------------------------------

    def execute(self, sql: str, params: tuple = ()) -> Any:
        """Execute a statement and return the raw cursor/result."""
        try:
            return self.conn.execute(sql, params)
        except DRIVER_ERRORS as exc:
            raise as_store_error(exc) from exc

    def query(self, sql: str, params: tuple = ()) -> list[dict[str, Any]]:
        """Execute a SELECT and return rows as dicts.

        Works with ``sqlite3.Row`` rows directly and with plain tuples via
        the cursor's DB-API ``description``.
        """
        cursor = self.execute(sql, params)
        try:
            rows = cursor.fetchall()
        except DRIVER_ERRORS as exc:
            raise as_store_error(exc) from exc
        if not rows:
            return []

        # sqlite3.Row and mapping rows
        if hasattr(rows[0], "keys"):
            return [dict(row) for row in rows]

        columns = [desc[0] for desc in cursor.description]
        return [dict(zip(columns, row, strict=False)) for row in rows]

    def query_one(self, sql: str, params: tuple = ()) -> dict[str, Any] | None:
        """Execute a SELECT and return the first row as a dict (or None)."""
        results = self.query(sql, params)
        return results[0] if results else None

    def scalar(self, sql: str, params: tuple = ()) -> Any:
        """Execute a SELECT and return the first column of the first row."""
        cursor = self.execute(sql, params)
        try:
            row = cursor.fetchone()
        except DRIVER_ERRORS as exc:
            raise as_store_error(exc) from exc
        return None if row is None else row[0]

    # -- Insert helpers ----------------------------------------------------

    def insert(self, table: str, data: dict[str, Any], *, returning: str = "id") -> Any:
        """Insert a single row from a dict and return its ``returning`` column.

        Uses ``INSERT … RETURNING`` where the dialect supports it and the
        cursor's ``lastrowid`` otherwise.
        """
        columns = list(data.keys())
        ph = self.ph(len(columns))
        suffix = self.dialect.returning(returning)
        sql = f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({ph}){suffix}"
        cursor = self.execute(sql, tuple(data.values()))
        if not suffix:
            return cursor.lastrowid
        try:
            row = cursor.fetchone()
        except DRIVER_ERRORS as exc:
            raise as_store_error(exc) from exc
        return row[0]


__all__ = [
    "BaseRepository",
]
