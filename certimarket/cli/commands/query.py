"""Read-only provenance queries.

None of these commands write the state file back.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from certimarket.cli.commands._session import STATE_OPTION_HELP, market_session
from certimarket.core.transaction_log import LedgerIntegrityError
from certimarket.monitor.renderer import MarketRenderer

console = Console()


def verify_cmd(
    serial: str = typer.Argument(..., help="Serial number to look up."),
    state: Optional[Path] = typer.Option(None, "--state", "-s", help=STATE_OPTION_HELP),
) -> None:
    """Check whether a serial number is registered, to whom, and if certified."""
    with market_session(state, save=False) as engine:
        result = engine.verify_by_serial(serial)
    console.print(MarketRenderer(console=console).render_verification(serial, result))
    if not result.exists:
        raise typer.Exit(code=1)


def show_cmd(
    item_id: int = typer.Argument(..., help="Item to show."),
    state: Optional[Path] = typer.Option(None, "--state", "-s", help=STATE_OPTION_HELP),
) -> None:
    """Show the full record of one item."""
    with market_session(state, save=False) as engine:
        item = engine.get_item(item_id)
    console.print(MarketRenderer(console=console).render_item(item))


def catalog_cmd(
    for_sale: bool = typer.Option(False, "--for-sale", help="Only show listed items."),
    certified: bool = typer.Option(False, "--certified", help="Only show certified items."),
    state: Optional[Path] = typer.Option(None, "--state", "-s", help=STATE_OPTION_HELP),
) -> None:
    """List every registered item."""
    with market_session(state, save=False) as engine:
        items = engine.all_items()
    if for_sale:
        items = [item for item in items if item.for_sale]
    if certified:
        items = [item for item in items if item.certified]
    if not items:
        console.print("[dim]No items.[/dim]")
        return
    console.print(MarketRenderer(console=console).render_items(items, title="Catalog"))


def history_cmd(
    item_id: int = typer.Argument(..., help="Item whose history to show."),
    verify_chain: bool = typer.Option(
        False,
        "--verify-chain",
        "-V",
        help="Verify the history hash chain before displaying.",
    ),
    state: Optional[Path] = typer.Option(None, "--state", "-s", help=STATE_OPTION_HELP),
) -> None:
    """Show the ownership history of an item."""
    renderer = MarketRenderer(console=console)
    with market_session(state, save=False) as engine:
        entries = engine.history_of(item_id)
        if verify_chain:
            try:
                valid = engine.verify_history(item_id)
            except LedgerIntegrityError as exc:
                console.print(f"[bold red]Chain verification failed:[/bold red] {exc}")
                valid = False
            renderer.print_chain_verification(item_id, valid)
    console.print(renderer.render_history(item_id, entries))


def items_cmd(
    owner: str = typer.Argument(..., help="Identity whose items to list."),
    state: Optional[Path] = typer.Option(None, "--state", "-s", help=STATE_OPTION_HELP),
) -> None:
    """List the item ids an identity currently owns."""
    with market_session(state, save=False) as engine:
        item_ids = engine.items_of(owner)
        items = [engine.get_item(item_id) for item_id in sorted(item_ids)]
    if not items:
        console.print(f"[dim]{owner} owns no items.[/dim]")
        return
    console.print(MarketRenderer(console=console).render_items(items, title=f"Items of {owner}"))


def stats_cmd(
    state: Optional[Path] = typer.Option(None, "--state", "-s", help=STATE_OPTION_HELP),
) -> None:
    """Show platform-wide counts."""
    with market_session(state, save=False) as engine:
        counts = engine.counts()
    console.print(MarketRenderer(console=console).render_counts(counts))
