"""Shared plumbing for CLI commands: open a stored ledger, report rejections."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from stacktrade.config import config
from stacktrade.core.clock import ManualBlockClock
from stacktrade.core.ledger_store import LedgerStore
from stacktrade.core.marketplace_ledger import MarketplaceLedger
from stacktrade.core.trade_journal import TradeJournal
from stacktrade.models.results import LedgerResult

logger = logging.getLogger(__name__)

LEDGER_OPTION_HELP = "Path to the ledger SQLite database."


@contextmanager
def open_ledger(
    ledger_path: Path,
    block_height: int | None = None,
    *,
    save: bool = True,
) -> Iterator[MarketplaceLedger]:
    """Load the ledger at *ledger_path*, yield it, and save it back.

    The whole body runs inside one ``LedgerStore.session()``, so a
    concurrent session waits until this one commits.  The journal writes
    through the same connection and commits with the saved state.  The
    clock starts at *block_height* when given, otherwise at the last
    block the ledger observed (never below the configured genesis height).
    Nothing is saved if the body raises, and a session opened with
    ``save=False`` journals nothing.
    """
    store = LedgerStore(ledger_path, timeout=config.lock_timeout)
    with store.session() as conn:
        journaling = save and config.journal_enabled
        journal = TradeJournal(ledger_path, connection=conn) if journaling else None
        snapshot = store.read_snapshot(conn)

        last_height = snapshot.counters.last_block_height if snapshot else 0
        if block_height is None:
            block_height = max(config.genesis_block_height, last_height)
        clock = ManualBlockClock(start=block_height)
        logger.debug("Opening ledger %s at block %d.", ledger_path, block_height)

        if snapshot is None:
            ledger = MarketplaceLedger(clock, fee_percent=config.fee_percent, journal=journal)
        else:
            ledger = MarketplaceLedger.from_snapshot(snapshot, clock, journal=journal)

        yield ledger

        if save:
            store.save(ledger, conn)


def exit_on_rejection(console: Console, result: LedgerResult) -> None:
    """Print a rejected result and exit with code 1; no-op on success."""
    if result.ok:
        return
    if result.error is None:
        raise ValueError("Failed LedgerResult carries no error kind.")
    console.print(f"[bold red]Rejected:[/bold red] {result.error.value}")
    if result.message:
        console.print(f"[dim]{escape(result.message)}[/dim]", highlight=False)
    raise typer.Exit(code=1)
