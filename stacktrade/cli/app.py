"""Main Typer application — imports and registers all CLI commands.

Entry point: ``stacktrade`` (configured via pyproject.toml project.scripts).
"""

from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from stacktrade.cli.commands.acquire import acquire_cmd
from stacktrade.cli.commands.journal_cmd import journal_cmd
from stacktrade.cli.commands.listings_cmd import listings_cmd, stats_cmd
from stacktrade.cli.commands.register import register_cmd
from stacktrade.cli.commands.retrieve import retrieve_cmd
from stacktrade.config import config

app = typer.Typer(
    name="stacktrade",
    help="stacktrade: digital-content marketplace ledger.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="register", help="List content for sale.")(register_cmd)
app.command(name="acquire", help="Purchase a listing.")(acquire_cmd)
app.command(name="retrieve", help="Retrieve the access token for a purchase.")(retrieve_cmd)
app.command(name="listings", help="Show all listings.")(listings_cmd)
app.command(name="stats", help="Show ledger counters and totals.")(stats_cmd)
app.command(name="journal", help="Show and verify the trade journal.")(journal_cmd)


@app.callback()
def configure(
    log_level: str = typer.Option(
        None, "--log-level", help="Override STACKTRADE_LOG_LEVEL."
    ),
) -> None:
    """Configure logging before any command runs."""
    logging.basicConfig(
        level=(log_level or config.log_level).upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[
            RichHandler(
                console=Console(stderr=True),
                show_path=config.debug,
                rich_tracebacks=True,
            )
        ],
    )


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
