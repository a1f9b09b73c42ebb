"""SQLAlchemy engine factory, session, and Connection bridge.

Manifesto:
    The tree code is written against ``nestree.core.protocols.Connection``
    and plain SQL. For PostgreSQL (and any other SQLAlchemy URL) the
    connection is a SQLAlchemy ``Session`` wrapped by ``SAConnectionBridge``
    so the same repository statements, including their positional
    placeholders, run unchanged.

This module provides:

* ``create_tree_engine``  -- Create a SA engine from a URL.
* ``TreeSession``         -- Session with ``expire_on_commit=False``.
* ``SAConnectionBridge``  -- Wraps a SA ``Session`` to satisfy the
  ``Connection`` protocol.

Tags:
    nestree, orm, sqlalchemy, session, engine, bridge, connection
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Any

from sqlalchemy import create_engine as _sa_create_engine
from sqlalchemy import event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

# Positional placeholders used by the dialects: qmark (?) and format (%s)
_POSITIONAL = re.compile(r"\?|%s")


def create_tree_engine(
    url: str,
    *,
    echo: bool = False,
    isolation_level: str | None = None,
    **kwargs: Any,
) -> Engine:
    """Create a SQLAlchemy engine for a tree store.

    Parameters
    ----------
    url:
        Database URL (``postgresql://…``, ``sqlite:///…``, etc.)
    echo:
        If ``True``, log all SQL.
    isolation_level:
        Forwarded to the engine, e.g. ``"SERIALIZABLE"`` so that two
        structural mutations never interleave their range shifts.
    **kwargs:
        Extra arguments forwarded to ``sqlalchemy.create_engine``
        (pool sizing and the like).

    SQLite engines open every transaction with ``BEGIN IMMEDIATE``, the
    same write lock :class:`~nestree.core.sqlite_conn.SqliteConnection`
    takes, instead of pysqlite's deferred implicit BEGIN.
    """
    if not url.startswith("sqlite"):
        if isolation_level is not None:
            kwargs["isolation_level"] = isolation_level
        kwargs.setdefault("pool_pre_ping", True)
        return _sa_create_engine(url, echo=echo, **kwargs)

    kwargs.setdefault("connect_args", {"check_same_thread": False})
    engine = _sa_create_engine(url, echo=echo, **kwargs)

    @event.listens_for(engine, "connect")
    def _disable_implicit_begin(dbapi_connection: Any, _rec: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


class TreeSession(Session):
    """Session with ``expire_on_commit=False``."""

    def __init__(self, bind: Engine | None = None, **kwargs: Any) -> None:
        kwargs.setdefault("expire_on_commit", False)
        super().__init__(bind=bind, **kwargs)


def _rewrite_placeholders(sql: str) -> str:
    """Turn ``?``/``%s`` positional placeholders into ``:p0, :p1, …``."""
    counter = iter(range(len(sql)))
    return _POSITIONAL.sub(lambda _m: f":p{next(counter)}", sql)


class SAConnectionBridge:
    """Adapter that makes a SQLAlchemy ``Session`` look like ``Connection``.

    ``execute`` returns the bridge itself, which then exposes
    ``fetchone``/``fetchall``/``description``/``lastrowid`` for the last
    statement, mirroring a DB-API cursor.

    The session autobegins a transaction on the first statement, reads
    included. ``begin()`` marks the transaction as owned by a
    :func:`~nestree.core.storage.transaction` block; outside of one,
    ``release_read()`` ends what a read opened so no snapshot or lock
    outlives the call.
    """

    def __init__(self, session: Session) -> None:
        self._session = session
        self._last_result: Any = None
        self._explicit = False
        self._pending_writes = False

    # --- execute ---

    def execute(self, sql: str, parameters: Sequence[Any] | None = None) -> SAConnectionBridge:
        if parameters:
            mapping = {f"p{i}": v for i, v in enumerate(parameters)}
            stmt = text(_rewrite_placeholders(sql))
            self._last_result = self._session.execute(stmt, mapping)
        else:
            self._last_result = self._session.execute(text(sql))
        if not self._explicit and not self._last_result.returns_rows:
            self._pending_writes = True
        return self

    # --- fetch ---

    def fetchone(self) -> tuple[Any, ...] | None:
        if self._last_result is None or not self._last_result.returns_rows:
            return None
        row = self._last_result.fetchone()
        return tuple(row) if row is not None else None

    def fetchall(self) -> list[tuple[Any, ...]]:
        if self._last_result is None or not self._last_result.returns_rows:
            return []
        return [tuple(r) for r in self._last_result.fetchall()]

    # --- transaction ---

    def begin(self) -> None:
        """Start an explicit transaction, dropping a stale read snapshot first."""
        self.release_read()
        self._explicit = True

    def release_read(self) -> None:
        """End a transaction that only reads have opened."""
        if self._explicit or self._pending_writes:
            return
        if self._session.in_transaction():
            self._session.rollback()

    def commit(self) -> None:
        try:
            self._session.commit()
        finally:
            self._explicit = False
            self._pending_writes = False

    def rollback(self) -> None:
        try:
            self._session.rollback()
        finally:
            self._explicit = False
            self._pending_writes = False

    @property
    def in_transaction(self) -> bool:
        return self._session.in_transaction()

    def close(self) -> None:
        self._session.close()

    # --- properties ---

    @property
    def description(self) -> list[tuple[Any, ...]] | None:
        """DB-API 2.0 compatible description from the last result."""
        if self._last_result is None or not self._last_result.returns_rows:
            return None
        keys = list(self._last_result.keys())
        return [(k, None, None, None, None, None, None) for k in keys]

    @property
    def rowcount(self) -> int:
        if self._last_result is None:
            return -1
        return self._last_result.rowcount

    @property
    def lastrowid(self) -> Any:
        if self._last_result is None:
            return None
        return getattr(self._last_result, "lastrowid", None)
