"""SQLAlchemy bridge for non-SQLite backends.

Modules
-------
session     Engine factory, TreeSession, SAConnectionBridge
"""

from __future__ import annotations

from nestree.core.orm.session import (
    SAConnectionBridge,
    TreeSession,
    create_tree_engine,
)

__all__ = ["SAConnectionBridge", "TreeSession", "create_tree_engine"]
