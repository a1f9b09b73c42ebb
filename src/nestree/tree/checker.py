"""Consistency checks and snapshot logging for a tree table.

:func:`check_tree` flags two kinds of corrupt rows:

- ``left_key >= right_key`` (inverted interval)
- ``right_key - left_key`` even (a node cannot own an odd number of keys)

Partially overlapping intervals are not detected; that would need a
pairwise scan or an interval tree. A clean report is therefore necessary
but not sufficient for a valid tree.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from nestree.core.logging import get_logger
from nestree.tree.node import Node
from nestree.tree.repository import NodeRepository

logger = get_logger(__name__)


@dataclass(frozen=True)
class ConsistencyReport:
    inverted: list[Node] = field(default_factory=list)
    even_width: list[Node] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.inverted and not self.even_width

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "inverted": [n.to_dict() for n in self.inverted],
            "even_width": [n.to_dict() for n in self.even_width],
        }


def check_tree(repo: NodeRepository) -> ConsistencyReport:
    report = ConsistencyReport(
        inverted=repo.fetch_inverted(),
        even_width=repo.fetch_even_width(),
    )
    if report.valid:
        logger.debug("tree_consistent", table=repo.table)
    else:
        logger.warning(
            "tree_inconsistent",
            table=repo.table,
            inverted=[n.id for n in report.inverted],
            even_width=[n.id for n in report.even_width],
        )
    return report


def log_tree_snapshot(nodes: list[Node], log: Any = None) -> None:
    """Emit one ``tree_node`` event per node, in the order given."""
    log = log or logger
    for node in nodes:
        log.info(
            "tree_node",
            node_id=node.id,
            left_key=node.left_key,
            right_key=node.right_key,
            level=node.level,
            value=node.value,
        )


__all__ = ["ConsistencyReport", "check_tree", "log_tree_snapshot"]
