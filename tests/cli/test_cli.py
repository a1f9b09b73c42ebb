"""Tests for nestree.cli: command smoke tests via CliRunner.

Every test runs against a SQLite file under ``tmp_path``; each
invocation opens and closes its own connection, so state only survives
through the database file.
"""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path

import pytest
from typer.testing import CliRunner

from nestree import __version__
from nestree.cli.app import app

runner = CliRunner()


@pytest.fixture
def db(tmp_path: Path) -> str:
    return str(tmp_path / "tree.db")


def invoke(db: str, *args: str):
    return runner.invoke(app, ["--database", db, *args])


@pytest.fixture
def planted(db: str) -> str:
    """A small animals tree: animals{mammals{dogs, cats}, fish{sharks}}."""
    assert invoke(db, "init").exit_code == 0
    assert invoke(db, "plant", "animals").exit_code == 0
    for parent, child in [
        ("animals", "mammals"),
        ("mammals", "dogs"),
        ("mammals", "cats"),
        ("animals", "fish"),
        ("fish", "sharks"),
    ]:
        result = invoke(db, "insert", parent, child)
        assert result.exit_code == 0, result.output
    return db


def show_json(db: str) -> list[dict]:
    result = invoke(db, "show", "--format", "json")
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


# ─── Global options ──────────────────────────────────────────────────────


class TestGlobal:
    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"nestree {__version__}" in result.output

    def test_database_from_env(self, db: str, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("NESTREE_DATABASE_URL", db)
        assert runner.invoke(app, ["init"]).exit_code == 0
        assert runner.invoke(app, ["plant", "animals"]).exit_code == 0
        assert Path(db).exists()

    def test_custom_table(self, db: str) -> None:
        assert invoke(db, "--table", "forest", "init").exit_code == 0
        result = runner.invoke(app, ["--database", db, "--table", "forest", "plant", "oak"])
        assert result.exit_code == 0
        conn = sqlite3.connect(db)
        assert conn.execute("SELECT value FROM forest").fetchall() == [("oak",)]
        conn.close()

    def test_invalid_table_name(self, db: str) -> None:
        result = runner.invoke(app, ["--database", db, "--table", "no-dash", "init"])
        assert result.exit_code == 1
        assert "ConfigError" in result.output


# ─── Commands ────────────────────────────────────────────────────────────


class TestInitAndPlant:
    def test_init_is_idempotent(self, db: str) -> None:
        assert invoke(db, "init").exit_code == 0
        result = invoke(db, "init")
        assert result.exit_code == 0
        assert "ready" in result.output

    def test_plant_without_init_fails(self, db: str) -> None:
        result = invoke(db, "plant", "animals")
        assert result.exit_code == 1
        assert "StoreError" in result.output

    def test_plant_json(self, db: str) -> None:
        invoke(db, "init")
        result = invoke(db, "plant", "animals", "--json")
        assert result.exit_code == 0
        assert json.loads(result.stdout)["right_key"] == 2


class TestShow:
    def test_json(self, planted: str) -> None:
        nodes = show_json(planted)
        assert [n["value"] for n in nodes] == ["animals", "mammals", "dogs", "cats", "fish", "sharks"]
        assert nodes[0]["left_key"] == 1
        assert nodes[0]["right_key"] == 12

    def test_tree_format(self, planted: str) -> None:
        result = invoke(planted, "show")
        assert result.exit_code == 0
        assert "animals [1,12]" in result.output
        assert "sharks" in result.output

    def test_table_format(self, planted: str) -> None:
        result = invoke(planted, "show", "--format", "table")
        assert result.exit_code == 0
        assert "left_key" in result.output

    def test_empty(self, db: str) -> None:
        invoke(db, "init")
        result = invoke(db, "show")
        assert result.exit_code == 0
        assert "empty" in result.output

    def test_json_flag(self, planted: str) -> None:
        result = invoke(planted, "show", "--json")
        assert result.exit_code == 0
        assert len(json.loads(result.stdout)) == 6


class TestMutations:
    def test_insert_missing_parent(self, planted: str) -> None:
        result = invoke(planted, "insert", "unicorns", "foals")
        assert result.exit_code == 1
        assert "NodeNotFoundError" in result.output

    def test_move(self, planted: str) -> None:
        result = invoke(planted, "move", "sharks", "mammals", "--json")
        assert result.exit_code == 0, result.output
        moved = json.loads(result.stdout)
        assert (moved["left_key"], moved["right_key"]) == (7, 8)

        parent = invoke(planted, "parent", "sharks", "--json")
        assert json.loads(parent.stdout)["value"] == "mammals"

    def test_move_under_descendant(self, planted: str) -> None:
        result = invoke(planted, "move", "mammals", "dogs")
        assert result.exit_code == 1
        assert "InvalidOperationError" in result.output

    def test_delete(self, planted: str) -> None:
        result = invoke(planted, "delete", "mammals")
        assert result.exit_code == 0
        assert "Deleted 3 node(s)" in result.output
        assert [n["value"] for n in show_json(planted)] == ["animals", "fish", "sharks"]

    def test_delete_root(self, planted: str) -> None:
        result = invoke(planted, "delete", "animals")
        assert result.exit_code == 1
        assert "cannot be deleted" in result.output

    def test_rename(self, planted: str) -> None:
        result = invoke(planted, "rename", "cats", "tigers")
        assert result.exit_code == 0
        assert "tigers" in result.output
        assert "cats" not in [n["value"] for n in show_json(planted)]

    def test_parent_of_root(self, planted: str) -> None:
        result = invoke(planted, "parent", "animals")
        assert result.exit_code == 1
        assert "NodeNotFoundError" in result.output


class TestCheck:
    def test_consistent(self, planted: str) -> None:
        result = invoke(planted, "check")
        assert result.exit_code == 0
        assert "consistent" in result.output

    def test_corrupt(self, planted: str) -> None:
        conn = sqlite3.connect(planted)
        conn.execute("UPDATE tree SET right_key = left_key WHERE value = 'dogs'")
        conn.commit()
        conn.close()

        result = invoke(planted, "--log-level", "ERROR", "check", "--json")
        assert result.exit_code == 1
        report = json.loads(result.stdout)
        assert report["valid"] is False
        assert [n["value"] for n in report["inverted"]] == ["dogs"]
