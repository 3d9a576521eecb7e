"""Item lifecycle commands — register, certify, list, buy, transfer."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from certimarket.cli.commands._session import STATE_OPTION_HELP, market_session
from certimarket.cli.commands.participants import CALLER_HELP
from certimarket.monitor.renderer import MarketRenderer

console = Console()


def register_item_cmd(
    name: str = typer.Argument(..., help="Item name."),
    serial: str = typer.Option(..., "--serial", "-n", help="Globally unique serial number."),
    value: int = typer.Option(0, "--value", "-v", min=0, help="Estimated value."),
    description: str = typer.Option("", "--description", "-D", help="Free-text description."),
    image_ref: str = typer.Option("", "--image", "-i", help="Image reference, e.g. ipfs://..."),
    caller: str = typer.Option(..., "--as", "-a", help=CALLER_HELP),
    state: Optional[Path] = typer.Option(None, "--state", "-s", help=STATE_OPTION_HELP),
) -> None:
    """Register a new item owned by the acting identity."""
    with market_session(state) as engine:
        item_id = engine.register_item(
            name, value, description, serial, image_ref, caller=caller
        )
    console.print(f"[green]Registered[/green] {name} ([magenta]{serial}[/magenta]) as item:")
    # Print the item id plainly for scripting
    console.print(f"[bold]{item_id}[/bold]")


def certify_cmd(
    item_id: int = typer.Argument(..., help="Item to certify."),
    caller: str = typer.Option(..., "--as", "-a", help=CALLER_HELP),
    state: Optional[Path] = typer.Option(None, "--state", "-s", help=STATE_OPTION_HELP),
) -> None:
    """Certify an item (certifiers only)."""
    with market_session(state) as engine:
        engine.certify_item(item_id, caller=caller)
    console.print(f"[green]Item {item_id} certified by[/green] [bold]{caller}[/bold]")


def list_cmd(
    item_id: int = typer.Argument(..., help="Item to list."),
    price: int = typer.Argument(..., min=0, help="Sale price."),
    caller: str = typer.Option(..., "--as", "-a", help=CALLER_HELP),
    state: Optional[Path] = typer.Option(None, "--state", "-s", help=STATE_OPTION_HELP),
) -> None:
    """List an owned item for sale."""
    with market_session(state) as engine:
        engine.list_item_for_sale(item_id, price, caller=caller)
    console.print(f"[yellow]Item {item_id} listed for sale at {price}[/yellow]")


def buy_cmd(
    item_id: int = typer.Argument(..., help="Item to buy."),
    payment: int = typer.Argument(..., min=0, help="Amount tendered; only the price is charged."),
    caller: str = typer.Option(..., "--as", "-a", help=CALLER_HELP),
    state: Optional[Path] = typer.Option(None, "--state", "-s", help=STATE_OPTION_HELP),
) -> None:
    """Buy a listed item."""
    with market_session(state) as engine:
        receipt = engine.purchase_item(item_id, payment, caller=caller)
    console.print(MarketRenderer(console=console).render_receipt(receipt))


def transfer_cmd(
    item_id: int = typer.Argument(..., help="Item to give away."),
    recipient: str = typer.Argument(..., help="Identity receiving the item."),
    caller: str = typer.Option(..., "--as", "-a", help=CALLER_HELP),
    state: Optional[Path] = typer.Option(None, "--state", "-s", help=STATE_OPTION_HELP),
) -> None:
    """Transfer an owned item to another participant."""
    with market_session(state) as engine:
        engine.transfer_item(item_id, recipient, caller=caller)
    console.print(
        f"[cyan]Item {item_id} transferred from[/cyan] [bold]{caller}[/bold] "
        f"[cyan]to[/cyan] [bold]{recipient}[/bold]"
    )
