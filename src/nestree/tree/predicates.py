"""Interval predicates for range updates and deletes.

A :class:`Predicate` is a conjunction of ``column op value`` conditions
over the key columns. Columns and operators come from fixed whitelists
and values are always bound as parameters, so a predicate can be rendered
into any ``WHERE`` clause without opening an injection path.

Examples:
    >>> p = Predicate.within(3, 8)
    >>> p.render(SQLiteDialect())
    ('left_key >= ? AND right_key <= ?', (3, 8))
"""

from __future__ import annotations

from dataclasses import dataclass

from nestree.core.dialect import Dialect

COLUMNS = frozenset({"left_key", "right_key"})
OPERATORS = frozenset({"<", "<=", ">", ">=", "="})


@dataclass(frozen=True)
class Condition:
    column: str
    op: str
    value: int

    def __post_init__(self) -> None:
        if self.column not in COLUMNS:
            raise ValueError(f"unsupported column: {self.column!r}")
        if self.op not in OPERATORS:
            raise ValueError(f"unsupported operator: {self.op!r}")
        if not isinstance(self.value, int) or isinstance(self.value, bool):
            raise ValueError(f"key bound must be an int, got {self.value!r}")


@dataclass(frozen=True)
class Predicate:
    """Conjunction of key conditions."""

    conditions: tuple[Condition, ...]

    def __post_init__(self) -> None:
        if not self.conditions:
            raise ValueError("predicate needs at least one condition")

    @classmethod
    def where(cls, *conditions: tuple[str, str, int]) -> Predicate:
        return cls(tuple(Condition(c, op, v) for c, op, v in conditions))

    def render(self, dialect: Dialect, start: int = 0) -> tuple[str, tuple[int, ...]]:
        """Return ``(sql, params)`` for a WHERE clause.

        ``start`` is the index of the first placeholder, for dialects with
        numbered binds.
        """
        parts = [
            f"{c.column} {c.op} {dialect.placeholder(start + i)}"
            for i, c in enumerate(self.conditions)
        ]
        return " AND ".join(parts), tuple(c.value for c in self.conditions)

    # -- Named shapes used by the mutator ----------------------------------

    @classmethod
    def after(cls, key: int) -> Predicate:
        """Nodes that start after ``key`` (both keys move together)."""
        return cls.where(("left_key", ">", key))

    @classmethod
    def contains_position(cls, key: int) -> Predicate:
        """Nodes whose interval spans ``key``: the node closing at ``key``
        and every enclosing node."""
        return cls.where(("right_key", ">=", key), ("left_key", "<", key))

    @classmethod
    def ancestors_of(cls, left: int, right: int) -> Predicate:
        """Nodes strictly containing ``[left, right]``."""
        return cls.where(("left_key", "<", left), ("right_key", ">", right))

    @classmethod
    def within(cls, left: int, right: int) -> Predicate:
        """Nodes inside ``[left, right]``, bounds included."""
        return cls.where(("left_key", ">=", left), ("right_key", "<=", right))

    @classmethod
    def right_at_or_after(cls, key: int) -> Predicate:
        return cls.where(("right_key", ">=", key))

    @classmethod
    def detached(cls) -> Predicate:
        """Rows parked outside the tree with negated keys."""
        return cls.where(("left_key", "<", 0))


__all__ = ["COLUMNS", "OPERATORS", "Condition", "Predicate"]
