"""``certimarket demo`` — walk through a complete item lifecycle in memory.

Registers participants and an item, certifies and lists it, sells it
with an overpayment, transfers it onward, then prints the provenance
trail.  Nothing is written to disk.
"""

from __future__ import annotations

import time

import typer
from rich.console import Console
from rich.panel import Panel

from certimarket.core.access_registry import AccessRegistry
from certimarket.core.engine import MarketplaceEngine
from certimarket.core.errors import MarketError
from certimarket.core.event_bus import EventBus
from certimarket.core.payments import InMemoryPaymentRail
from certimarket.core.transaction_log import LedgerIntegrityError
from certimarket.models.events import MarketEvent
from certimarket.monitor.renderer import MarketRenderer

console = Console()


def demo_cmd(
    delay: float = typer.Option(
        0.5,
        "--delay",
        "-d",
        help="Delay in seconds between steps for visual effect.",
    ),
) -> None:
    """Run a complete marketplace scenario with sample identities."""
    rail = InMemoryPaymentRail({"bob": 5_000})
    bus = EventBus()
    seen: list[MarketEvent] = []
    bus.subscribe(seen.append)

    engine = MarketplaceEngine(
        AccessRegistry("admin", "platform"),
        platform_wallet="platform",
        payments=rail,
        events=bus,
    )
    renderer = MarketRenderer(console=console)

    console.print()
    console.print(
        Panel(
            "[bold]certimarket demo[/bold]\n\n"
            "alice registers a watch, a certifier vouches for it,\n"
            "bob buys it and later gives it to carol.",
            border_style="cyan",
            padding=(1, 2),
        )
    )

    def step(message: str) -> None:
        console.print(f"\n[cyan]>>>[/cyan] {message}")
        time.sleep(delay)

    try:
        step("Registering participants alice, bob and carol")
        for name in ("alice", "bob", "carol"):
            engine.register_participant(caller=name)

        step("Administrator adds certifier [bold]cert[/bold]")
        engine.add_certifier("cert", caller="admin")

        step("alice registers a watch")
        item_id = engine.register_item(
            "Vintage Watch",
            1_000,
            "Swiss mechanical, 1968",
            "SN-001",
            "ipfs://QmWatch",
            caller="alice",
        )
        console.print(renderer.render_item(engine.get_item(item_id)))

        step("cert certifies the watch")
        engine.certify_item(item_id, caller="cert")

        step("alice lists it for 1000")
        engine.list_item_for_sale(item_id, 1_000, caller="alice")

        step("bob pays 1200 for it")
        receipt = engine.purchase_item(item_id, 1_200, caller="bob")
        console.print(renderer.render_receipt(receipt))

        step("bob gives it to carol")
        engine.transfer_item(item_id, "carol", caller="bob")
    except MarketError as exc:
        console.print(f"[bold red]Demo step failed:[/bold red] {exc}")
        raise typer.Exit(code=1) from exc

    console.print()
    console.print(renderer.render_history(item_id, engine.history_of(item_id)))
    console.print(renderer.render_verification("SN-001", engine.verify_by_serial("SN-001")))
    console.print(renderer.render_counts(engine.counts()))

    console.print()
    console.print("[bold cyan]Verifying history chain...[/bold cyan]")
    try:
        renderer.print_chain_verification(item_id, engine.verify_history(item_id))
    except LedgerIntegrityError as exc:
        console.print(f"[bold red]Chain verification failed:[/bold red] {exc}")

    console.print()
    console.print(
        Panel(
            "\n".join([
                "[bold green]Demo Complete![/bold green]",
                "",
                f"[bold]Events published:[/bold] {len(seen)}",
                f"[bold]alice:[/bold]    {engine.balance_of('alice')}",
                f"[bold]bob:[/bold]      {engine.balance_of('bob')}",
                f"[bold]platform:[/bold] {engine.balance_of('platform')}",
            ]),
            title="[bold]Demo Summary[/bold]",
            border_style="green",
            padding=(1, 2),
        )
    )
