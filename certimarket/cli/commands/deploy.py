"""``certimarket deploy`` — initialize a new market and record the deployment.

Creates the market state file with the administrator, platform wallet,
fee rate and policy fixed, then writes a deployment record next to it.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel

from certimarket.cli.commands._session import STATE_OPTION_HELP, resolve_store
from certimarket.config import settings
from certimarket.core.access_registry import AccessRegistry
from certimarket.core.engine import MarketplaceEngine
from certimarket.core.state_store import write_deployment_record
from certimarket.models.policy import BASIS_POINTS_DENOMINATOR, MarketPolicy

console = Console()


def deploy_cmd(
    administrator: str = typer.Option(
        settings.administrator,
        "--admin",
        help="Administrator identity (immutable once deployed).",
    ),
    platform_wallet: str = typer.Option(
        settings.platform_wallet,
        "--platform-wallet",
        "-w",
        help="Wallet receiving platform fees.",
    ),
    fee_basis_points: int = typer.Option(
        settings.fee_basis_points,
        "--fee-bps",
        min=0,
        max=BASIS_POINTS_DENOMINATOR,
        help="Platform fee in basis points (250 = 2.5%).",
    ),
    require_registration: bool = typer.Option(
        settings.require_registration,
        "--require-registration/--open-registration",
        help="Require participant registration before registering, buying or receiving items.",
    ),
    charge_platform_fee: bool = typer.Option(
        settings.charge_platform_fee,
        "--charge-fee/--no-fee",
        help="Route the platform fee to the platform wallet on every sale.",
    ),
    state: Optional[Path] = typer.Option(None, "--state", "-s", help=STATE_OPTION_HELP),
    deployments_dir: Optional[Path] = typer.Option(
        None,
        "--deployments",
        "-d",
        help="Directory for deployment records.",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        help="Overwrite an existing market state file.",
    ),
) -> None:
    """Deploy a new market.

    Refuses to overwrite existing state unless --force is given.
    """
    store = resolve_store(state)
    if store.exists() and not force:
        console.print(f"[bold red]Market state already exists:[/bold red] {store.path}")
        console.print("[dim]Pass --force to replace it.[/dim]")
        raise typer.Exit(code=1)

    policy = MarketPolicy(
        fee_basis_points=fee_basis_points,
        require_registration=require_registration,
        charge_platform_fee=charge_platform_fee,
    )
    engine = MarketplaceEngine(
        AccessRegistry(administrator, platform_wallet),
        platform_wallet=platform_wallet,
        policy=policy,
        escrow_account=settings.escrow_account,
    )
    store.save(engine)
    record_path, _ = write_deployment_record(
        engine, deployments_dir or settings.deployments_dir
    )

    console.print()
    console.print(
        Panel(
            "\n".join([
                "[bold green]Market deployed![/bold green]",
                "",
                f"[bold]Administrator:[/bold]    {administrator}",
                f"[bold]Platform wallet:[/bold]  {platform_wallet}",
                f"[bold]Platform fee:[/bold]     {fee_basis_points} bps"
                + ("" if charge_platform_fee else " [dim](disabled)[/dim]"),
                f"[bold]Registration:[/bold]     "
                + ("required" if require_registration else "open"),
                f"[bold]State file:[/bold]       {store.path}",
                f"[bold]Deployment record:[/bold] {record_path}",
                "",
                "[dim]Administrator and platform wallet are certifiers.[/dim]",
            ]),
            title="[bold]certimarket[/bold]",
            border_style="green",
            padding=(1, 2),
        )
    )
