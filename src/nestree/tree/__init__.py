"""nestree.tree -- the nested-set model.

node.py        Node (one row: id, left_key, right_key, level, value)
predicates.py  Injection-safe interval predicates
repository.py  NodeRepository (primitive reads/writes)
mutator.py     TreeMutator (insert / delete / move / rename)
facade.py      Tree (root cache + the whole API)
checker.py     Consistency report + snapshot logging
"""

from nestree.tree.checker import ConsistencyReport, check_tree, log_tree_snapshot
from nestree.tree.facade import Tree
from nestree.tree.mutator import TreeMutator
from nestree.tree.node import Node
from nestree.tree.predicates import Predicate
from nestree.tree.repository import NodeRepository

__all__ = [
    "ConsistencyReport",
    "Node",
    "NodeRepository",
    "Predicate",
    "Tree",
    "TreeMutator",
    "check_tree",
    "log_tree_snapshot",
]
