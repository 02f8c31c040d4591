"""``stacktrade listings`` and ``stacktrade stats`` — read-only ledger views."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from stacktrade.cli.session import LEDGER_OPTION_HELP, open_ledger
from stacktrade.config import config
from stacktrade.monitor.renderer import LedgerRenderer

console = Console()


def listings_cmd(
    ledger_path: Path = typer.Option(
        config.ledger_path, "--ledger", "-l", help=LEDGER_OPTION_HELP
    ),
) -> None:
    """Show every listing in the ledger."""
    with open_ledger(ledger_path, save=False) as ledger:
        listings = ledger.list_listings()
    LedgerRenderer(console=console).print_listings(listings)


def stats_cmd(
    ledger_path: Path = typer.Option(
        config.ledger_path, "--ledger", "-l", help=LEDGER_OPTION_HELP
    ),
) -> None:
    """Show ledger counters and totals."""
    with open_ledger(ledger_path, save=False) as ledger:
        stats = ledger.get_stats()
    LedgerRenderer(console=console).print_stats(stats)
