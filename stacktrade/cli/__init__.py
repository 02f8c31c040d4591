"""stacktrade CLI — Typer application."""

from stacktrade.cli.app import app, main

__all__ = ["app", "main"]
