"""``stacktrade journal`` — show the trade journal and verify its hash chain."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from stacktrade.cli.session import LEDGER_OPTION_HELP
from stacktrade.config import config
from stacktrade.core.trade_journal import JournalIntegrityError, TradeJournal
from stacktrade.monitor.renderer import LedgerRenderer

console = Console()


def journal_cmd(
    item_id: int = typer.Option(
        None, "--item", "-i", help="Only show entries for this item id."
    ),
    ledger_path: Path = typer.Option(
        config.ledger_path, "--ledger", "-l", help=LEDGER_OPTION_HELP
    ),
) -> None:
    """Show journal entries; exits with code 1 if the chain is broken."""
    if not ledger_path.exists():
        console.print(
            f"[bold red]Ledger not found:[/bold red] {escape(str(ledger_path))}"
        )
        raise typer.Exit(code=1)

    journal = TradeJournal(ledger_path)
    try:
        chain_valid = journal.verify_chain()
    except JournalIntegrityError as exc:
        console.print(
            f"[bold red]Chain verification failed:[/bold red] {escape(str(exc))}"
        )
        chain_valid = False

    entries = journal.entries() if item_id is None else journal.entries_for_item(item_id)
    LedgerRenderer(console=console).print_journal(entries, chain_valid)
    if not chain_valid:
        raise typer.Exit(code=1)
