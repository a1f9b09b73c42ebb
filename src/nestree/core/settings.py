"""Environment-driven settings for nestree.

Settings are read from ``NESTREE_*`` environment variables and an optional
``.env`` file in the working directory.

Fields
──────
database_url : Where the tree lives (``sqlite:///path``, ``memory``,
               ``postgresql://…``)
table_name   : Table holding the nested-set rows
log_level    : structlog filter level
log_json     : Force JSON (true) or console (false) logs; unset = auto

Examples:
    >>> from nestree.core.settings import get_settings
    >>> get_settings().table_name
    'tree'
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class TreeSettings(BaseSettings):
    """Settings for the tree store and the CLI."""

    model_config = SettingsConfigDict(
        env_prefix="NESTREE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Storage ──────────────────────────────────────────────────
    database_url: str = Field(
        default="sqlite:///nestree.db",
        description="Database URL, file path, or 'memory'",
    )
    table_name: str = Field(default="tree", description="Nested-set table name")

    # ── Observability ────────────────────────────────────────────
    log_level: str = "WARNING"
    log_json: bool | None = None

    @field_validator("log_level")
    @classmethod
    def _normalise_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {value!r}")
        return level


@lru_cache(maxsize=1)
def get_settings() -> TreeSettings:
    """Return the process-wide settings (read once)."""
    return TreeSettings()


__all__ = ["TreeSettings", "get_settings"]
