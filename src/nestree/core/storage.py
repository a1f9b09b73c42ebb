"""
Transaction boundary and driver-error translation.

Every structural mutation of the tree runs inside exactly one
:func:`transaction` block. The block is the only synchronization
primitive nestree uses: visibility of the intermediate range shifts is
governed entirely by the store's isolation level.

Architecture:
    ::

        with transaction(conn, operation="insert_child"):
            repo.shift_keys(...)     ─┐
            repo.shift_keys(...)      │ one transaction
            repo.insert(...)         ─┘
        # commit on normal exit
        # rollback + re-raise on any exception
        #   (driver errors re-raised as StoreError)

Examples:
    >>> with transaction(conn) as tx:
    ...     tx.execute("UPDATE tree SET value = ? WHERE id = ?", ("tigers", 3))

Tags:
    storage, transaction, rollback, nestree
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

from nestree.core.errors import ErrorContext, StoreError
from nestree.core.logging import get_logger
from nestree.core.protocols import Connection

logger = get_logger(__name__)

# Exceptions that mean "the database said no"
DRIVER_ERRORS: tuple[type[Exception], ...] = (sqlite3.Error, SQLAlchemyError)


def as_store_error(exc: Exception, operation: str | None = None) -> StoreError:
    """Wrap a driver exception in :class:`StoreError`, keeping it as cause."""
    return StoreError(
        f"{type(exc).__name__}: {exc}",
        context=ErrorContext(operation=operation),
        cause=exc,
    )


@contextmanager
def transaction(conn: Connection, operation: str | None = None) -> Iterator[Connection]:
    """Run a block as one transaction on ``conn``.

    Commits when the block exits normally. On any exception the
    transaction is rolled back and the exception propagates; driver
    exceptions are re-raised as :class:`StoreError`, nestree's own errors
    unchanged.

    Connections exposing ``begin()`` (``SqliteConnection``) have it called
    first, so reads at the top of the block already run under the write
    lock.
    """
    begin = getattr(conn, "begin", None)
    try:
        if begin is not None:
            begin()
        yield conn
        conn.commit()
    except BaseException as exc:
        try:
            conn.rollback()
        except DRIVER_ERRORS as rollback_exc:
            logger.error("rollback_failed", operation=operation, error=str(rollback_exc))
        logger.debug("transaction_rolled_back", operation=operation, error=str(exc))
        if isinstance(exc, DRIVER_ERRORS):
            raise as_store_error(exc, operation) from exc
        raise
    else:
        logger.debug("transaction_committed", operation=operation)


@contextmanager
def reading(conn: Connection) -> Iterator[Connection]:
    """Run read-only statements outside of any :func:`transaction`.

    Connections that open a transaction on the first statement, reads
    included, expose ``release_read()``; it is called on exit so the next
    read sees fresh data and no lock is held in between. Other connections
    pass through untouched.
    """
    release = getattr(conn, "release_read", None)
    try:
        yield conn
    finally:
        if release is not None:
            try:
                release()
            except DRIVER_ERRORS as exc:
                raise as_store_error(exc, "release_read") from exc


__all__ = ["DRIVER_ERRORS", "as_store_error", "reading", "transaction"]
