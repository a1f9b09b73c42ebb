"""
Structured error types for nestree.

Every failure the tree can report is a :class:`TreeError`. Callers branch on
the concrete type instead of comparing messages or sentinel values:

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                        TreeError                             │
        │          (category, retryable, context, cause)               │
        ├─────────────────────────────────────────────────────────────┤
        │                                                              │
        │  NodeNotFoundError     InvalidOperationError    StoreError   │
        │  (LOOKUP)              (VALIDATION)             (DATABASE)   │
        │                                                              │
        │  ConfigError                                                 │
        │  (CONFIG)                                                    │
        └─────────────────────────────────────────────────────────────┘

    NodeNotFoundError      lookup by value or id found nothing; parent
                           lookup on the root or a detached interval
    InvalidOperationError  structural request that would break the tree
                           (move under own descendant, move/delete root)
    StoreError             anything raised by the database driver; the
                           enclosing transaction has been rolled back
    ConfigError            bad table name, unknown dialect or URL scheme

Examples:
    >>> try:
    ...     tree.get_node_by_value("unicorns")
    ... except NodeNotFoundError as e:
    ...     e.context.value
    'unicorns'

    Chaining a driver failure:

    >>> try:
    ...     conn.execute("UPDATE tree SET ...")
    ... except sqlite3.Error as e:
    ...     raise StoreError("update failed", cause=e)

Guardrails:
    ❌ DON'T: Return None or a sentinel for "not found"
    ✅ DO: Raise NodeNotFoundError

    ❌ DON'T: Swallow the driver exception
    ✅ DO: Pass it as cause= so __cause__ is preserved

Tags:
    error-handling, exception-hierarchy, nestree
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and reporting."""

    LOOKUP = "LOOKUP"
    VALIDATION = "VALIDATION"
    DATABASE = "DATABASE"
    CONFIG = "CONFIG"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to a :class:`TreeError`.

    Only the fields that are set end up in :meth:`to_dict`, so the same
    context type serves lookups (``value``), mutations (``operation``,
    ``node_id``) and store failures (``table``).
    """

    operation: str | None = None
    node_id: int | None = None
    value: str | None = None
    table: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for key in ("operation", "node_id", "value", "table"):
            val = getattr(self, key)
            if val is not None:
                result[key] = val
        result.update(self.metadata)
        return result


class TreeError(Exception):
    """
    Base class for all nestree errors.

    Parameters:
        message: Human readable description.
        category: Overrides the class default category.
        retryable: Overrides the class default; only store errors may be
            worth retrying and nestree never retries on its own.
        context: Structured metadata for logs and CLI output.
        cause: Underlying exception; also set as ``__cause__``.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> TreeError:
        """
        Add context to this error (fluent API).

        Usage:
            raise NodeNotFoundError("no such node").with_context(value="cats")
        """
        for key, value in kwargs.items():
            if key != "metadata" and hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


class NodeNotFoundError(TreeError):
    """No node matches the lookup (value, id, or enclosing interval)."""

    default_category = ErrorCategory.LOOKUP


class InvalidOperationError(TreeError):
    """The requested mutation would violate the nested-set structure."""

    default_category = ErrorCategory.VALIDATION


class StoreError(TreeError):
    """
    Failure raised by the database driver.

    Raised for connectivity problems, constraint violations and driver
    timeouts alike. When raised from inside a mutation, the transaction has
    already been rolled back and the tree is unchanged.
    """

    default_category = ErrorCategory.DATABASE
    default_retryable = True


class ConfigError(TreeError):
    """Configuration error. Never retryable."""

    default_category = ErrorCategory.CONFIG


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "TreeError",
    "NodeNotFoundError",
    "InvalidOperationError",
    "StoreError",
    "ConfigError",
]
