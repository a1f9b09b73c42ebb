"""nestree command-line interface."""

from nestree.cli.app import app

__all__ = ["app"]
