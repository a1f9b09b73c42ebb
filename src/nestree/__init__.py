"""
nestree - Nested-set trees persisted in a relational store.

The package is split into two layers:
- nestree.core: connections, dialects, errors, logging, settings
- nestree.tree: the nested-set model (Node, NodeRepository, TreeMutator, Tree)
"""

__version__ = "0.1.0"

from nestree.core.errors import (  # noqa: F401
    ConfigError,
    InvalidOperationError,
    NodeNotFoundError,
    StoreError,
    TreeError,
)
from nestree.tree import Node, Tree  # noqa: F401

__all__ = [
    "__version__",
    "Node",
    "Tree",
    "TreeError",
    "NodeNotFoundError",
    "InvalidOperationError",
    "StoreError",
    "ConfigError",
]
