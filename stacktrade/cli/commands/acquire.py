"""``stacktrade acquire ITEM_ID`` — purchase a listing."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from stacktrade.cli.session import LEDGER_OPTION_HELP, exit_on_rejection, open_ledger
from stacktrade.config import config
from stacktrade.core.clock import ClockRegressionError
from stacktrade.core.ledger_store import LedgerBusyError

console = Console()


def acquire_cmd(
    item_id: int = typer.Argument(..., help="Item id to purchase."),
    buyer: str = typer.Option(..., "--buyer", "-u", help="Buyer principal."),
    block_height: int = typer.Option(
        None, "--block", "-b", help="Block height for this write."
    ),
    ledger_path: Path = typer.Option(
        config.ledger_path, "--ledger", "-l", help=LEDGER_OPTION_HELP
    ),
) -> None:
    """Purchase a listing and show the fee split."""
    try:
        with open_ledger(ledger_path, block_height) as ledger:
            result = ledger.acquire_content(item_id, buyer)
    except ClockRegressionError as exc:
        console.print(f"[bold red]Clock error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1)
    except LedgerBusyError as exc:
        console.print(f"[bold red]Ledger busy:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1)
    exit_on_rejection(console, result)

    settlement = result.value
    console.print(
        Panel(
            "\n".join([
                f"[bold green]Purchase settled for item {settlement.item_id}[/bold green]",
                "",
                f"[bold]Buyer:[/bold]         {escape(settlement.buyer)}",
                f"[bold]Seller:[/bold]        {escape(settlement.seller)}",
                f"[bold]Price:[/bold]         {settlement.price}",
                f"[bold]Platform fee:[/bold]  {settlement.fee_amount}",
                f"[bold]Seller share:[/bold]  {settlement.seller_share}",
                f"[bold]Block:[/bold]         {settlement.block_height}",
            ]),
            title="[bold]stacktrade[/bold]",
            border_style="green",
        )
    )
