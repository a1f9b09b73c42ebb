"""SQL dialect abstraction for backend-agnostic tree code.

The nested-set repository builds every statement from a template plus
:class:`Dialect` fragments (placeholders, auto-increment DDL, the
``RETURNING`` clause), so the same range-shift SQL runs on SQLite and
PostgreSQL.

Architecture::

    NodeRepository:
    ┌────────────────────────────────────────────────────────────────┐
    │  sql = f"UPDATE tree SET left_key = left_key + {d.placeholder(0)}"│
    │  sql += f" WHERE left_key > {d.placeholder(1)}"                 │
    │  conn.execute(sql, (2, at))                                     │
    └────────────────────────────────────────────────────────────────┘
                              │
                              ▼
              ┌──────────┐         ┌──────────────┐
              │ SQLite   │         │ PostgreSQL   │
              │ ?, ?     │         │ %s, %s       │
              │ lastrowid│         │ RETURNING id │
              └──────────┘         └──────────────┘

Examples:
    >>> from nestree.core.dialect import get_dialect
    >>> d = get_dialect("sqlite")
    >>> d.placeholders(3)
    '?, ?, ?'
    >>> get_dialect("postgresql").returning("id")
    ' RETURNING id'

Tags:
    dialect, sql, portability, nestree
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from nestree.core.errors import ConfigError


@runtime_checkable
class Dialect(Protocol):
    """SQL dialect contract.

    Every method returns a SQL fragment valid for the target database.
    """

    @property
    def name(self) -> str:
        """Human-readable dialect name (e.g. ``'sqlite'``)."""
        ...

    def placeholder(self, index: int) -> str:
        """Single positional placeholder (0-based index)."""
        ...

    def placeholders(self, count: int) -> str:
        """Comma-separated placeholder list."""
        ...

    def returning(self, column: str) -> str:
        """``RETURNING`` suffix for INSERT, or ``''`` if the driver's
        ``lastrowid`` should be used instead."""
        ...

    def auto_increment(self) -> str:
        """DDL fragment for an auto-incrementing integer primary key."""
        ...

    def table_exists_query(self) -> str:
        """Query returning a row iff the table named by the single
        placeholder exists."""
        ...


class SQLiteDialect:
    """SQLite dialect: ``?`` placeholders, ``lastrowid`` for new ids."""

    @property
    def name(self) -> str:
        return "sqlite"

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "?"

    def placeholders(self, count: int) -> str:
        return ", ".join("?" for _ in range(count))

    def returning(self, column: str) -> str:  # noqa: ARG002
        return ""

    def auto_increment(self) -> str:
        return "INTEGER PRIMARY KEY AUTOINCREMENT"

    def table_exists_query(self) -> str:
        return "SELECT name FROM sqlite_master WHERE type='table' AND name = ?"


class PostgreSQLDialect:
    """PostgreSQL dialect: ``%s`` placeholders, ``INSERT … RETURNING``.

    ``%s`` matches psycopg2 directly; the SQLAlchemy bridge rewrites it to
    named binds.
    """

    @property
    def name(self) -> str:
        return "postgresql"

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "%s"

    def placeholders(self, count: int) -> str:
        return ", ".join("%s" for _ in range(count))

    def returning(self, column: str) -> str:
        return f" RETURNING {column}"

    def auto_increment(self) -> str:
        return "SERIAL PRIMARY KEY"

    def table_exists_query(self) -> str:
        return (
            "SELECT table_name FROM information_schema.tables "
            "WHERE table_schema = current_schema() AND table_name = %s"
        )


# Dialects are stateless
_DIALECTS: dict[str, Dialect] = {
    "sqlite": SQLiteDialect(),
    "postgresql": PostgreSQLDialect(),
    "postgres": PostgreSQLDialect(),  # alias
}


def get_dialect(db_type: str) -> Dialect:
    """Get a dialect by database type name.

    Raises:
        ConfigError: If ``db_type`` is not recognised.
    """
    key = db_type.lower()
    if key not in _DIALECTS:
        raise ConfigError(
            f"Unknown dialect '{db_type}'. "
            f"Supported: {sorted(set(_DIALECTS) - {'postgres'})}"
        )
    return _DIALECTS[key]


__all__ = [
    "Dialect",
    "SQLiteDialect",
    "PostgreSQLDialect",
    "get_dialect",
]
