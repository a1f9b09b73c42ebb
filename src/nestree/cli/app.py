"""
Root Typer application for the nestree CLI.

Every command opens the tree named by ``--database``/``--table`` (falling
back to ``NESTREE_DATABASE_URL``/``NESTREE_TABLE_NAME``), performs one
operation and closes the connection. Nodes are addressed by value; when
several nodes share a value the first in pre-order wins.
"""

from __future__ import annotations

import typer
from typer import Typer

from nestree.cli.utils import (
    CLIState,
    console,
    fail,
    get_state,
    nodes_table,
    nodes_tree,
    print_json,
    print_node,
)
from nestree.core.errors import TreeError
from nestree.core.logging import configure_logging
from nestree.core.settings import get_settings
from nestree.tree import log_tree_snapshot

app = Typer(
    name="nestree",
    help="nestree: nested-set trees in SQLite or PostgreSQL.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from nestree import __version__

        typer.echo(f"nestree {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    database: str | None = typer.Option(
        None, "--database", "-d", help="Database URL or SQLite path."
    ),
    table: str | None = typer.Option(None, "--table", help="Tree table name."),
    log_level: str | None = typer.Option(None, "--log-level", help="DEBUG, INFO, WARNING…"),
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """nestree CLI: plant, grow, prune and reshape a nested-set tree."""
    settings = get_settings()
    configure_logging(level=log_level or settings.log_level, json_format=settings.log_json)
    state = CLIState(
        database=database or settings.database_url,
        table=table or settings.table_name,
    )
    ctx.obj = state
    ctx.call_on_close(state.close)


# ── Schema ───────────────────────────────────────────────────────────────


@app.command()
def init(ctx: typer.Context) -> None:
    """Create the tree table (idempotent)."""
    state = get_state(ctx)
    try:
        state.open_tree(init_schema=True)
    except TreeError as exc:
        fail(exc)
    console.print(f"Table [bold]{state.table}[/bold] ready.")


@app.command()
def plant(
    ctx: typer.Context,
    value: str = typer.Argument(..., help="Value of the root node."),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Create the root node (no-op if the tree already has one)."""
    try:
        root = get_state(ctx).open_tree().plant(value)
    except TreeError as exc:
        fail(exc)
    print_node(root, as_json=json_out, title="Root:")


# ── Reads ────────────────────────────────────────────────────────────────


@app.command()
def show(
    ctx: typer.Context,
    fmt: str = typer.Option("tree", "--format", "-f", help="tree, table or json"),
    json_out: bool = typer.Option(False, "--json", help="Shorthand for --format json"),
    log: bool = typer.Option(False, "--log", help="Also log every node as a structured event"),
) -> None:
    """Print every node of the tree."""
    try:
        nodes = get_state(ctx).open_tree().get_all_nodes()
    except TreeError as exc:
        fail(exc)

    if log:
        log_tree_snapshot(nodes)

    if json_out or fmt == "json":
        print_json([n.to_dict() for n in nodes])
    elif fmt == "table":
        console.print(nodes_table(nodes))
    else:
        rendered = nodes_tree(nodes)
        if rendered is None:
            console.print("[dim]Tree is empty.[/dim]")
        else:
            console.print(rendered)


@app.command()
def parent(
    ctx: typer.Context,
    value: str = typer.Argument(..., help="Value of the child node."),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Print the parent of a node."""
    try:
        tree = get_state(ctx).open_tree()
        found = tree.get_parent(tree.get_node_by_value(value))
    except TreeError as exc:
        fail(exc)
    print_node(found, as_json=json_out, title="Parent:")


@app.command()
def check(
    ctx: typer.Context,
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Scan the table for corrupt intervals; exit 1 if any are found."""
    try:
        report = get_state(ctx).open_tree().check()
    except TreeError as exc:
        fail(exc)

    if json_out:
        print_json(report.to_dict())
    elif report.valid:
        console.print("[green]Tree is consistent.[/green]")
    else:
        if report.inverted:
            console.print(nodes_table(report.inverted, title="left_key >= right_key"))
        if report.even_width:
            console.print(nodes_table(report.even_width, title="even interval width"))
    if not report.valid:
        raise typer.Exit(code=1)


# ── Mutations ────────────────────────────────────────────────────────────


@app.command()
def insert(
    ctx: typer.Context,
    parent_value: str = typer.Argument(..., metavar="PARENT", help="Value of the parent node."),
    value: str = typer.Argument(..., help="Value of the new node."),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Append a new child under PARENT."""
    try:
        tree = get_state(ctx).open_tree()
        node = tree.insert_child(tree.get_node_by_value(parent_value), value)
    except TreeError as exc:
        fail(exc)
    print_node(node, as_json=json_out, title="Inserted:")


@app.command()
def delete(
    ctx: typer.Context,
    value: str = typer.Argument(..., help="Value of the node to delete."),
) -> None:
    """Delete a node together with its subtree."""
    try:
        tree = get_state(ctx).open_tree()
        removed = tree.delete_node(tree.get_node_by_value(value))
    except TreeError as exc:
        fail(exc)
    console.print(f"Deleted {removed} node(s).")


@app.command()
def move(
    ctx: typer.Context,
    value: str = typer.Argument(..., help="Value of the node to move."),
    new_parent: str = typer.Argument(..., metavar="NEW_PARENT", help="Value of the new parent."),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Move a node and its subtree under NEW_PARENT."""
    try:
        tree = get_state(ctx).open_tree()
        moved = tree.move_node(tree.get_node_by_value(value), tree.get_node_by_value(new_parent))
    except TreeError as exc:
        fail(exc)
    print_node(moved, as_json=json_out, title="Moved:")


@app.command()
def rename(
    ctx: typer.Context,
    value: str = typer.Argument(..., help="Current value."),
    new_value: str = typer.Argument(..., metavar="NEW_VALUE", help="New value."),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Change the value of a node."""
    try:
        tree = get_state(ctx).open_tree()
        renamed = tree.rename_node(tree.get_node_by_value(value), new_value)
    except TreeError as exc:
        fail(exc)
    print_node(renamed, as_json=json_out, title="Renamed:")
