"""CLI module for the countdown timer."""

from countdown.cli.main import app, run

__all__ = ["app", "run"]
