"""Connection factory: create database connections from URL strings.

Supported URL schemes
---------------------
==================  ==========================================  ============
Scheme              Example                                     Backend
==================  ==========================================  ============
``memory``          ``memory`` or ``:memory:`` or ``None``       SQLite RAM
``sqlite``          ``sqlite:///path/to/tree.db``                SQLite file
``(file path)``     ``./data/tree.db``                           SQLite file
``postgresql``      ``postgresql://user:pw@host:port/db``        PostgreSQL
``postgres``        ``postgres://user:pw@host:port/db``          PostgreSQL
==================  ==========================================  ============

Usage
-----
::

    from nestree.core.connection import create_connection

    conn, info = create_connection("sqlite:///tree.db", init_schema=True)
    tree = Tree(conn, dialect=info.dialect)

``create_connection()`` returns ``(conn, ConnectionInfo)``; the connection
satisfies the ``Connection`` protocol and the info carries the backend
name and matching :class:`~nestree.core.dialect.Dialect`.

An unsupported scheme raises :class:`~nestree.core.errors.ConfigError`;
there is no fallback backend.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from nestree.core.dialect import Dialect, get_dialect
from nestree.core.errors import ConfigError
from nestree.core.logging import get_logger

logger = get_logger(__name__)


# ── ConnectionInfo ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class ConnectionInfo:
    """Metadata about a database connection."""

    backend: str
    """Backend identifier: ``"sqlite"`` or ``"postgresql"``."""

    persistent: bool
    """Whether data survives process exit."""

    url: str
    """The original URL or path used to create the connection."""

    resolved_path: str | None = None
    """For file-based SQLite, the resolved absolute path."""

    def __repr__(self) -> str:
        parts = [f"backend={self.backend!r}", f"persistent={self.persistent}"]
        if self.resolved_path:
            parts.append(f"path={self.resolved_path!r}")
        else:
            parts.append(f"url={self.url!r}")
        return f"ConnectionInfo({', '.join(parts)})"

    @property
    def is_sqlite(self) -> bool:
        return self.backend == "sqlite"

    @property
    def is_postgres(self) -> bool:
        return self.backend == "postgresql"

    @property
    def dialect(self) -> Dialect:
        return get_dialect(self.backend)


# ── Backend factories ────────────────────────────────────────────────────


def _create_sqlite_memory() -> tuple[Any, ConnectionInfo]:
    from nestree.core.sqlite_conn import SqliteConnection

    conn = SqliteConnection(":memory:")
    info = ConnectionInfo(backend="sqlite", persistent=False, url=":memory:")
    return conn, info


def _create_sqlite_file(path_str: str) -> tuple[Any, ConnectionInfo]:
    from nestree.core.sqlite_conn import SqliteConnection

    path = Path(path_str)
    path.parent.mkdir(parents=True, exist_ok=True)
    resolved = str(path.resolve())

    conn = SqliteConnection(resolved)
    info = ConnectionInfo(
        backend="sqlite",
        persistent=True,
        url=path_str,
        resolved_path=resolved,
    )
    return conn, info


def _create_postgresql(url: str, isolation_level: str | None) -> tuple[Any, ConnectionInfo]:
    """Create a PostgreSQL connection via the SQLAlchemy bridge."""
    from nestree.core.orm.session import (
        SAConnectionBridge,
        TreeSession,
        create_tree_engine,
    )

    engine = create_tree_engine(url, isolation_level=isolation_level)
    conn = SAConnectionBridge(TreeSession(bind=engine))
    info = ConnectionInfo(backend="postgresql", persistent=True, url=url)
    return conn, info


# ── URL parsing ──────────────────────────────────────────────────────────


def _parse_url(db: str | None) -> tuple[str, str]:
    """Parse a database URL into ``(scheme, target)``.

    ``scheme`` is one of ``"memory"``, ``"sqlite"``, ``"postgresql"``,
    ``"file"``, or the raw scheme of an unsupported URL.
    """
    if db is None or db in ("", "memory", ":memory:"):
        return "memory", ":memory:"

    for prefix in ("sqlite:///", "sqlite://"):
        if db.startswith(prefix):
            path = db[len(prefix):]
            if not path or path == ":memory:":
                return "memory", ":memory:"
            return "sqlite", path

    if db.startswith(("postgresql://", "postgres://")):
        # SQLAlchemy only accepts the long form
        return "postgresql", "postgresql://" + db.split("://", 1)[1]

    if db.startswith(("postgresql+", "postgres+")):
        # Driver-qualified URL (postgresql+psycopg://...) is passed through
        return "postgresql", db

    if "://" in db:
        return db.split("://", 1)[0], db

    return "file", db


# ── Main factory ─────────────────────────────────────────────────────────


def create_connection(
    db: str | None = None,
    *,
    init_schema: bool = False,
    table: str = "tree",
    data_dir: str | None = None,
    isolation_level: str | None = None,
) -> tuple[Any, ConnectionInfo]:
    """Create a database connection from a URL, path, or keyword.

    Parameters
    ----------
    db:
        ``None``/``"memory"`` (in-memory SQLite), a file path, a
        ``sqlite:///`` URL, or a ``postgresql://`` URL.
    init_schema:
        If ``True``, create the nested-set table (idempotent).
    table:
        Table name used when ``init_schema`` is set.
    data_dir:
        Directory that relative SQLite paths are resolved against.
    isolation_level:
        PostgreSQL only; e.g. ``"SERIALIZABLE"``.

    Raises
    ------
    ConfigError
        For URL schemes other than SQLite and PostgreSQL.
    """
    scheme, target = _parse_url(db)

    if scheme == "memory":
        conn, info = _create_sqlite_memory()
    elif scheme in ("sqlite", "file"):
        if data_dir and not Path(target).is_absolute():
            target = str(Path(data_dir) / target)
        conn, info = _create_sqlite_file(target)
    elif scheme == "postgresql":
        conn, info = _create_postgresql(target, isolation_level)
    else:
        raise ConfigError(f"Unsupported database URL scheme: {scheme!r}").with_context(
            url=db
        )

    logger.debug("connection_created", backend=info.backend, persistent=info.persistent)

    if init_schema:
        from nestree.core.schema import create_schema

        create_schema(conn, info.dialect, table)

    return conn, info


__all__ = ["ConnectionInfo", "create_connection"]
