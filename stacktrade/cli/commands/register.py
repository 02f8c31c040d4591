"""``stacktrade register`` — list content for sale."""

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


def register_cmd(
    price: int = typer.Argument(..., help="Asking price (must be positive)."),
    summary: str = typer.Argument(..., help="Short description of the content."),
    content_type: str = typer.Argument(..., help="Content type, e.g. 'image'."),
    access_token: str = typer.Argument(..., help="Secret disclosed to buyers."),
    seller: str = typer.Option(..., "--seller", "-s", help="Seller principal."),
    block_height: int = typer.Option(
        None, "--block", "-b", help="Block height for this write."
    ),
    ledger_path: Path = typer.Option(
        config.ledger_path, "--ledger", "-l", help=LEDGER_OPTION_HELP
    ),
) -> None:
    """List content for sale and print its item id."""
    try:
        with open_ledger(ledger_path, block_height) as ledger:
            result = ledger.register_content(
                price, summary, content_type, access_token, seller
            )
            fee_percent = ledger.counters.fee_percent
    except ClockRegressionError as exc:
        console.print(f"[bold red]Clock error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1)
    except LedgerBusyError as exc:
        console.print(f"[bold red]Ledger busy:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1)
    exit_on_rejection(console, result)

    console.print(
        Panel(
            "\n".join([
                "[bold green]Content listed![/bold green]",
                "",
                f"[bold]Item ID:[/bold]  {result.value}",
                f"[bold]Seller:[/bold]   {escape(seller)}",
                f"[bold]Price:[/bold]    {price} [dim]({fee_percent}% platform fee)[/dim]",
            ]),
            title="[bold]stacktrade[/bold]",
            border_style="green",
        )
    )
    # Print the item id plainly for scripting
    console.print(str(result.value))
