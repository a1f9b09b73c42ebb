"""
Shared pytest fixtures for nestree tests.

This module provides:
- An in-memory SQLite connection with the tree table created
- The ``animals`` fixture tree used throughout the mutator tests
- Environment and structlog isolation between tests

Usage:
    def test_something(animals: Tree) -> None:
        sheep = animals.insert_child(animals.get_node_by_value("mammals"), "sheep")
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest
import structlog

from nestree.core.dialect import SQLiteDialect
from nestree.core.schema import create_schema
from nestree.core.settings import get_settings
from nestree.core.sqlite_conn import SqliteConnection
from nestree.tree import NodeRepository, Tree

from _support.trees import ANIMALS, seed

# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def _reset_global_state(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Drop cached settings and structlog config between tests."""
    for var in ("NESTREE_DATABASE_URL", "NESTREE_TABLE_NAME", "NESTREE_LOG_LEVEL", "NESTREE_LOG_JSON"):
        monkeypatch.delenv(var, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
    structlog.reset_defaults()


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def conn() -> Iterator[SqliteConnection]:
    """In-memory SQLite connection with an empty ``tree`` table."""
    c = SqliteConnection(":memory:")
    create_schema(c, SQLiteDialect(), "tree")
    yield c
    c.close()


@pytest.fixture
def repo(conn: SqliteConnection) -> NodeRepository:
    return NodeRepository(conn, SQLiteDialect(), "tree")


@pytest.fixture
def animals(conn: SqliteConnection, repo: NodeRepository) -> Tree:
    """A ``Tree`` over the ten-node animals fixture."""
    seed(repo, ANIMALS)
    return Tree(conn, SQLiteDialect(), "tree")
