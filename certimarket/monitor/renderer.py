"""Rich terminal renderer for market items, histories and receipts.

Color scheme
------------
- green    : certified items, sales
- yellow   : items listed for sale
- cyan     : transfers
- dim      : registrations, absent values
"""

from __future__ import annotations

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from certimarket.models.items import Item, ItemVerification, MarketCounts
from certimarket.models.ledger import Transaction, TransactionKind
from certimarket.models.policy import PurchaseReceipt

_KIND_STYLES: dict[TransactionKind, str] = {
    TransactionKind.REGISTRATION: "dim",
    TransactionKind.SALE: "bold green",
    TransactionKind.TRANSFER: "cyan",
}


def _yes_no(flag: bool) -> str:
    return "[green]Yes[/green]" if flag else "[dim]No[/dim]"


class MarketRenderer:
    """Renders ledger views as Rich terminal output.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    # ------------------------------------------------------------------
    # Renderables
    # ------------------------------------------------------------------

    def render_items(self, items: list[Item], *, title: str = "Items") -> Table:
        """Build a table with one row per item."""
        table = Table(title=title, header_style="bold cyan", expand=True)
        table.add_column("ID", style="dim", justify="right", width=5)
        table.add_column("Name", min_width=16)
        table.add_column("Serial", style="magenta")
        table.add_column("Owner")
        table.add_column("Value", justify="right")
        table.add_column("Certified", justify="center")
        table.add_column("For sale", justify="right")

        for item in items:
            listing = f"[yellow]{item.sale_price}[/yellow]" if item.for_sale else "[dim]-[/dim]"
            table.add_row(
                str(item.item_id),
                item.name,
                item.serial_number,
                item.owner or "[dim]-[/dim]",
                str(item.estimated_value),
                _yes_no(item.certified),
                listing,
            )
        return table

    def render_item(self, item: Item) -> Panel:
        """Build a detail panel for one item."""
        lines = [
            f"[bold]Serial:[/bold]       {item.serial_number}",
            f"[bold]Owner:[/bold]        {item.owner}",
            f"[bold]Description:[/bold]  {item.description or '[dim]-[/dim]'}",
            f"[bold]Value:[/bold]        {item.estimated_value}",
            f"[bold]Image:[/bold]        {item.image_ref or '[dim]-[/dim]'}",
            f"[bold]Certified:[/bold]    {_yes_no(item.certified)}"
            + (f" [dim]by {item.certified_by}[/dim]" if item.certified else ""),
            f"[bold]For sale:[/bold]     {_yes_no(item.for_sale)}"
            + (f" [yellow]at {item.sale_price}[/yellow]" if item.for_sale else ""),
            f"[bold]Registered:[/bold]   {item.registered_at.strftime('%Y-%m-%d %H:%M:%S UTC')}",
        ]
        return Panel(
            "\n".join(lines),
            title=f"[bold]Item {item.item_id}: {item.name}[/bold]",
            border_style="blue",
            padding=(1, 2),
        )

    def render_history(self, item_id: int, entries: list[Transaction]) -> Table:
        """Build a table of an item's ownership history."""
        table = Table(
            title=f"History of item {item_id}",
            header_style="bold cyan",
            expand=True,
        )
        table.add_column("#", style="dim", justify="right", width=4)
        table.add_column("Kind", justify="center")
        table.add_column("From")
        table.add_column("To")
        table.add_column("Price", justify="right")
        table.add_column("When", style="dim")
        table.add_column("Hash", style="dim")

        for entry in entries:
            style = _KIND_STYLES.get(entry.kind, "")
            table.add_row(
                str(entry.sequence),
                f"[{style}]{entry.kind.value}[/{style}]",
                entry.previous_owner or "[dim]-[/dim]",
                entry.new_owner,
                str(entry.price),
                entry.timestamp_utc.strftime("%Y-%m-%d %H:%M:%S"),
                entry.entry_hash[:12] + "...",
            )
        return table

    def render_counts(self, counts: MarketCounts) -> Panel:
        """Build a summary panel of platform-wide counts."""
        summary = "  |  ".join([
            f"[bold]Total:[/bold] {counts.total}",
            f"[bold]Active:[/bold] {counts.active}",
            f"[yellow][bold]For sale:[/bold] {counts.for_sale}[/yellow]",
            f"[green][bold]Certified:[/bold] {counts.certified}[/green]",
        ])
        return Panel(
            Text.from_markup(summary),
            title="[bold]Market[/bold]",
            border_style="blue",
            padding=(0, 2),
        )

    def render_receipt(self, receipt: PurchaseReceipt) -> Panel:
        """Build a panel describing how a sale was settled."""
        lines = [
            f"[bold]Item:[/bold]         {receipt.item_id}",
            f"[bold]Seller:[/bold]       {receipt.seller}",
            f"[bold]Buyer:[/bold]        {receipt.buyer}",
            f"[bold]Price:[/bold]        {receipt.price}",
            f"[bold]Seller gets:[/bold]  [green]{receipt.seller_amount}[/green]",
            f"[bold]Platform fee:[/bold] {receipt.fee_amount}",
            f"[bold]Refund:[/bold]       {receipt.refund}",
        ]
        return Panel(
            "\n".join(lines),
            title="[bold green]Item sold[/bold green]",
            border_style="green",
            padding=(1, 2),
        )

    def render_verification(self, serial: str, result: ItemVerification) -> Panel:
        """Build a panel answering "is this serial registered, and to whom?"."""
        if not result.exists:
            return Panel(
                f"[bold red]No item is registered under serial {serial}.[/bold red]",
                border_style="red",
            )
        body = Group(
            Text.from_markup(f"[bold]Item:[/bold]      {result.item_id}"),
            Text.from_markup(f"[bold]Owner:[/bold]     {result.owner}"),
            Text.from_markup(f"[bold]Certified:[/bold] {_yes_no(result.certified)}"),
        )
        return Panel(
            body,
            title=f"[bold]Serial {serial}[/bold]",
            border_style="green" if result.certified else "yellow",
            padding=(1, 2),
        )

    # ------------------------------------------------------------------
    # Standalone print
    # ------------------------------------------------------------------

    def print_chain_verification(self, item_id: int, valid: bool) -> None:
        """Print a chain verification result."""
        if valid:
            self.console.print(f"[green]History chain for item {item_id} is valid.[/green]")
        else:
            self.console.print(
                f"[bold red]History chain for item {item_id} is BROKEN![/bold red]"
            )
