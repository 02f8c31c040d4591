"""``stacktrade retrieve ITEM_ID`` — print the access token for a purchase."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from stacktrade.cli.session import LEDGER_OPTION_HELP, exit_on_rejection, open_ledger
from stacktrade.config import config

console = Console()


def retrieve_cmd(
    item_id: int = typer.Argument(..., help="Purchased item id."),
    buyer: str = typer.Option(..., "--buyer", "-u", help="Buyer principal."),
    ledger_path: Path = typer.Option(
        config.ledger_path, "--ledger", "-l", help=LEDGER_OPTION_HELP
    ),
) -> None:
    """Print the access token if the buyer's latest purchase is ITEM_ID."""
    with open_ledger(ledger_path, save=False) as ledger:
        result = ledger.retrieve_access_token(item_id, buyer)
    exit_on_rejection(console, result)

    console.print(result.value, markup=False, highlight=False)
