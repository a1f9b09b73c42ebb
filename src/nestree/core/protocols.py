"""
Protocol definitions for nestree storage access.

The tree never imports a database driver directly. Everything below the
facade talks to a :class:`Connection`, a structural protocol satisfied by
:class:`~nestree.core.sqlite_conn.SqliteConnection`,
:class:`~nestree.core.orm.session.SAConnectionBridge`, and a bare
``sqlite3.Connection`` alike.

Architecture:
    ::

        Connection Protocol:
        ┌────────────────────────────────────────────────────────┐
        │ execute(sql, params)   → cursor-like result            │
        │ commit()               → commit transaction            │
        │ rollback()             → roll back transaction         │
        └────────────────────────────────────────────────────────┘

        Implementations:
        ┌────────────────────────────────────────────────────────┐
        │ SQLite      → SqliteConnection (sqlite3, native sync)  │
        │ PostgreSQL  → SAConnectionBridge (SQLAlchemy Session)  │
        └────────────────────────────────────────────────────────┘

Guardrails:
    ❌ DON'T: Add async methods to Connection
    ✅ DO: Keep tree code synchronous; the store's round-trip is the only wait

Tags:
    protocol, connection, database, nestree
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Connection(Protocol):
    """
    Minimal synchronous connection interface.

    ``execute`` returns an object exposing ``fetchone()``, ``fetchall()``
    and, after an INSERT, ``lastrowid`` where the driver supports it.
    Transactions are bounded by ``commit``/``rollback``; the first
    statement after either implicitly starts a new one.

    Examples:
        >>> cur = conn.execute("SELECT id FROM tree WHERE left_key = ?", (1,))
        >>> cur.fetchone()
        (1,)
    """

    def execute(self, sql: str, params: tuple = ()) -> Any:
        """Execute SQL statement with optional parameters."""
        ...

    def commit(self) -> None:
        """Commit current transaction."""
        ...

    def rollback(self) -> None:
        """Roll back current transaction."""
        ...


__all__ = ["Connection"]
