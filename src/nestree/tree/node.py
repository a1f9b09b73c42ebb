"""The persisted nested-set node."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True)
class Node:
    """One row of the tree table.

    ``left_key``/``right_key`` bound the node's interval; every descendant's
    interval lies strictly inside it. Instances are snapshots: after a
    structural mutation the keys of other nodes may be stale, so re-read
    them through the :class:`~nestree.tree.facade.Tree` when needed.
    """

    id: int
    left_key: int
    right_key: int
    level: int
    value: str

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Node:
        return cls(
            id=int(row["id"]),
            left_key=int(row["left_key"]),
            right_key=int(row["right_key"]),
            level=int(row["level"]),
            value=str(row["value"]),
        )

    @property
    def width(self) -> int:
        """Number of key positions taken by the node and its subtree."""
        return self.right_key - self.left_key + 1

    @property
    def descendant_count(self) -> int:
        return (self.right_key - self.left_key - 1) // 2

    @property
    def is_leaf(self) -> bool:
        return self.right_key - self.left_key == 1

    @property
    def is_root(self) -> bool:
        return self.left_key == 1

    def contains(self, other: Node) -> bool:
        """True if ``other``'s interval lies strictly inside this one."""
        return self.left_key < other.left_key and self.right_key > other.right_key

    def is_ancestor_of(self, other: Node) -> bool:
        return self.contains(other)

    def is_descendant_of(self, other: Node) -> bool:
        return other.contains(self)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def __str__(self) -> str:
        return f"{self.value}[{self.left_key},{self.right_key}]"


__all__ = ["Node"]
