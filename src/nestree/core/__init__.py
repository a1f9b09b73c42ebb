"""nestree.core -- storage plumbing shared by the tree layer.

Architecture::

    errors.py          TreeError hierarchy (NotFound / InvalidOperation / Store / Config)
    logging.py         structlog configuration + get_logger
    settings.py        TreeSettings (pydantic-settings, NESTREE_ env prefix)
    protocols.py       Connection protocol
    dialect.py         SQLite / PostgreSQL SQL fragments
    sqlite_conn.py     SqliteConnection adapter
    orm/               SQLAlchemy session bridge (PostgreSQL)
    connection.py      create_connection(url) factory
    storage.py         transaction() boundary, reading() scope, driver error translation
    repository.py      BaseRepository with dialect-aware helpers
    schema.py          DDL for the nested-set table
"""

from nestree.core.connection import ConnectionInfo, create_connection
from nestree.core.dialect import Dialect, PostgreSQLDialect, SQLiteDialect, get_dialect
from nestree.core.errors import (
    ConfigError,
    ErrorCategory,
    ErrorContext,
    InvalidOperationError,
    NodeNotFoundError,
    StoreError,
    TreeError,
)
from nestree.core.protocols import Connection
from nestree.core.repository import BaseRepository
from nestree.core.schema import create_schema, drop_schema
from nestree.core.sqlite_conn import SqliteConnection
from nestree.core.storage import reading, transaction

__all__ = [
    "BaseRepository",
    "ConfigError",
    "Connection",
    "ConnectionInfo",
    "Dialect",
    "ErrorCategory",
    "ErrorContext",
    "InvalidOperationError",
    "NodeNotFoundError",
    "PostgreSQLDialect",
    "SQLiteDialect",
    "SqliteConnection",
    "StoreError",
    "TreeError",
    "create_connection",
    "create_schema",
    "drop_schema",
    "get_dialect",
    "reading",
    "transaction",
]
