"""
CLI utility helpers: tree opening, error reporting and output formatting.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree as RichTree

from nestree.core.connection import create_connection
from nestree.core.errors import TreeError
from nestree.core.schema import create_schema
from nestree.tree import Node, Tree

console = Console()
err_console = Console(stderr=True)


# ── Connection helper ────────────────────────────────────────────────────


@dataclass
class CLIState:
    """Options shared by every sub-command (set by the app callback)."""

    database: str
    table: str
    _tree: Tree | None = None

    def open_tree(self, *, init_schema: bool = False) -> Tree:
        if self._tree is None:
            conn, info = create_connection(self.database)
            try:
                if init_schema:
                    create_schema(conn, info.dialect, self.table)
                self._tree = Tree(conn, dialect=info.dialect, table=self.table)
            except TreeError:
                conn.close()
                raise
        return self._tree

    def close(self) -> None:
        if self._tree is not None:
            close = getattr(self._tree.conn, "close", None)
            if close is not None:
                close()
            self._tree = None


def get_state(ctx: typer.Context) -> CLIState:
    state = ctx.find_object(CLIState)
    assert state is not None, "app callback did not run"
    return state


def fail(exc: TreeError) -> NoReturn:
    """Print a nestree error to stderr and exit 1."""
    err_console.print(f"[bold red]Error[/bold red] ({type(exc).__name__}): {escape(exc.message)}")
    raise typer.Exit(code=1)


# ── Output helpers ───────────────────────────────────────────────────────


def print_json(payload: Any) -> None:
    console.print_json(json.dumps(payload, default=str))


def print_node(node: Node, *, as_json: bool = False, title: str = "") -> None:
    if as_json:
        print_json(node.to_dict())
        return
    prefix = f"[bold]{title}[/bold] " if title else ""
    console.print(
        f"{prefix}{escape(node.value)} [dim](id={node.id}, keys=[{node.left_key},{node.right_key}], "
        f"level={node.level})[/dim]"
    )


def nodes_table(nodes: list[Node], title: str = "Tree") -> Table:
    table = Table(title=title)
    for column in ("id", "left_key", "right_key", "level", "value"):
        table.add_column(column, justify="right" if column != "value" else "left")
    for n in nodes:
        table.add_row(str(n.id), str(n.left_key), str(n.right_key), str(n.level), escape(n.value))
    return table


def _keys(node: Node) -> str:
    return f"[dim][{node.left_key},{node.right_key}][/dim]"


def nodes_tree(nodes: list[Node]) -> RichTree | None:
    """Nest pre-ordered nodes into a rich tree by interval containment."""
    if not nodes:
        return None
    root = nodes[0]
    rendered = RichTree(f"[bold]{escape(root.value)}[/bold] {_keys(root)}")
    stack: list[tuple[Node, RichTree]] = [(root, rendered)]
    for node in nodes[1:]:
        while stack and not stack[-1][0].contains(node):
            stack.pop()
        if not stack:
            break
        branch = stack[-1][1].add(f"{escape(node.value)} {_keys(node)}")
        stack.append((node, branch))
    return rendered
