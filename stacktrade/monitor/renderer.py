"""Rich terminal renderer for ledger listings, stats, and the journal."""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from stacktrade.models.journal import JournalEntry, JournalEventKind
from stacktrade.models.ledger import Listing

_EVENT_STYLES: dict[JournalEventKind, str] = {
    JournalEventKind.CONTENT_REGISTERED: "[cyan]registered[/cyan]",
    JournalEventKind.CONTENT_ACQUIRED: "[green]acquired[/green]",
}


class LedgerRenderer:
    """Renders ledger views as Rich terminal output.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def render_listings(self, listings: list[tuple[int, Listing]]) -> Table:
        table = Table(title="Listings", header_style="bold cyan")
        table.add_column("ID", style="dim", justify="right", width=6)
        table.add_column("Summary")
        table.add_column("Type")
        table.add_column("Owner", style="cyan")
        table.add_column("Price", justify="right")
        table.add_column("Tradeable", justify="center")
        table.add_column("Block", justify="right", style="dim")

        for item_id, listing in listings:
            tradeable = "[green]Yes[/green]" if listing.tradeable else "[red]No[/red]"
            table.add_row(
                str(item_id),
                escape(listing.summary),
                escape(listing.content_type),
                escape(listing.owner),
                str(listing.price),
                tradeable,
                str(listing.created_at),
            )
        return table

    def render_stats(self, stats: dict[str, Any]) -> Panel:
        lines = [
            f"[bold]Listings:[/bold]        {stats['listings']} "
            f"([green]{stats['tradeable']} tradeable[/green])",
            f"[bold]Buyers:[/bold]          {stats['buyers']}",
            f"[bold]Purchases:[/bold]       {stats['total_volume']}",
            f"[bold]Fees collected:[/bold]  {stats['fees_collected']} "
            f"[dim]({stats['fee_percent']}% fee)[/dim]",
            f"[bold]Next item id:[/bold]    {stats['next_item_id']}",
            f"[bold]Last block:[/bold]      {stats['last_block_height']}",
        ]
        return Panel(
            "\n".join(lines),
            title="[bold]stacktrade ledger[/bold]",
            border_style="blue",
            padding=(1, 2),
        )

    def render_journal(self, entries: list[JournalEntry], chain_valid: bool) -> Panel:
        table = Table(header_style="bold cyan", expand=True)
        table.add_column("#", style="dim", justify="right", width=5)
        table.add_column("Event", justify="center")
        table.add_column("Item", justify="right")
        table.add_column("Principal", style="cyan")
        table.add_column("Block", justify="right")
        table.add_column("Hash", style="dim")

        for i, entry in enumerate(entries):
            table.add_row(
                str(i),
                _EVENT_STYLES.get(entry.event_kind, entry.event_kind.value),
                str(entry.item_id),
                escape(entry.principal),
                str(entry.block_height),
                entry.entry_hash[:16] + "...",
            )

        chain_status = "[green]valid[/green]" if chain_valid else "[bold red]BROKEN[/bold red]"
        return Panel(
            table,
            title="[bold]Trade Journal[/bold]",
            subtitle=f"{len(entries)} entries | chain {chain_status}",
            border_style="green" if chain_valid else "red",
        )

    def print_listings(self, listings: list[tuple[int, Listing]]) -> None:
        if not listings:
            self.console.print("[dim]No listings.[/dim]")
            return
        self.console.print(self.render_listings(listings))

    def print_stats(self, stats: dict[str, Any]) -> None:
        self.console.print(self.render_stats(stats))

    def print_journal(self, entries: list[JournalEntry], chain_valid: bool) -> None:
        self.console.print(self.render_journal(entries, chain_valid))
