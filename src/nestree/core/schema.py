"""DDL for the nested-set table.

One table per tree::

    id         auto-increment primary key
    left_key   INTEGER NOT NULL
    right_key  INTEGER NOT NULL
    level      INTEGER NOT NULL DEFAULT 0
    value      TEXT NOT NULL

The keys are indexed together but carry no uniqueness constraint: a
multi-row ``UPDATE … SET left_key = left_key + 2`` may pass through
transient duplicates on backends that check constraints per row.
"""

from __future__ import annotations

import re

from nestree.core.dialect import Dialect
from nestree.core.errors import ConfigError
from nestree.core.protocols import Connection
from nestree.core.storage import reading, transaction

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,62}$")


def validate_table_name(table: str) -> str:
    """Return ``table`` unchanged if it is a plain SQL identifier.

    Table names are interpolated into statements, so anything else is
    rejected with :class:`ConfigError`.
    """
    if not isinstance(table, str) or not _IDENTIFIER.match(table):
        raise ConfigError(f"Invalid table name: {table!r}").with_context(table=str(table))
    return table


def table_ddl(dialect: Dialect, table: str = "tree") -> list[str]:
    """CREATE statements for the tree table and its key index."""
    table = validate_table_name(table)
    return [
        f"""
        CREATE TABLE IF NOT EXISTS {table} (
            id {dialect.auto_increment()},
            left_key INTEGER NOT NULL,
            right_key INTEGER NOT NULL,
            level INTEGER NOT NULL DEFAULT 0,
            value TEXT NOT NULL
        )
        """,
        f"CREATE INDEX IF NOT EXISTS idx_{table}_keys ON {table} (left_key, right_key)",
        f"CREATE INDEX IF NOT EXISTS idx_{table}_value ON {table} (value)",
    ]


def create_schema(conn: Connection, dialect: Dialect, table: str = "tree") -> None:
    """Create the tree table if it does not exist (idempotent)."""
    with transaction(conn, operation="create_schema"):
        for stmt in table_ddl(dialect, table):
            conn.execute(stmt)


def drop_schema(conn: Connection, table: str = "tree") -> None:
    """Drop the tree table and every node in it."""
    table = validate_table_name(table)
    with transaction(conn, operation="drop_schema"):
        conn.execute(f"DROP TABLE IF EXISTS {table}")


def table_exists(conn: Connection, dialect: Dialect, table: str = "tree") -> bool:
    with reading(conn):
        cursor = conn.execute(dialect.table_exists_query(), (validate_table_name(table),))
        return cursor.fetchone() is not None


__all__ = ["validate_table_name", "table_ddl", "create_schema", "drop_schema", "table_exists"]
