"""Participant, certifier and balance commands."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from certimarket.cli.commands._session import STATE_OPTION_HELP, market_session
from certimarket.core.errors import PaymentError
from certimarket.core.payments import InMemoryPaymentRail

console = Console()

CALLER_HELP = "Identity performing the command."


def register_participant_cmd(
    caller: str = typer.Option(..., "--as", "-a", help=CALLER_HELP),
    state: Optional[Path] = typer.Option(None, "--state", "-s", help=STATE_OPTION_HELP),
) -> None:
    """Register the acting identity as a participant."""
    with market_session(state) as engine:
        engine.register_participant(caller=caller)
    console.print(f"[green]Registered participant[/green] [bold]{caller}[/bold]")


def add_certifier_cmd(
    certifier: str = typer.Argument(..., help="Identity to grant certifier rights."),
    caller: str = typer.Option(..., "--as", "-a", help=CALLER_HELP),
    state: Optional[Path] = typer.Option(None, "--state", "-s", help=STATE_OPTION_HELP),
) -> None:
    """Grant certifier rights (administrator only)."""
    with market_session(state) as engine:
        added = engine.add_certifier(certifier, caller=caller)
    if added:
        console.print(f"[green]Added certifier[/green] [bold]{certifier}[/bold]")
    else:
        console.print(f"[dim]{certifier} is already a certifier.[/dim]")


def deposit_cmd(
    account: str = typer.Argument(..., help="Account to credit."),
    amount: int = typer.Argument(..., help="Amount in the smallest currency unit."),
    state: Optional[Path] = typer.Option(None, "--state", "-s", help=STATE_OPTION_HELP),
) -> None:
    """Credit funds on the built-in payment rail."""
    with market_session(state) as engine:
        rail = engine.payments
        if not isinstance(rail, InMemoryPaymentRail):
            raise PaymentError("Deposits are only supported on the in-memory rail")
        balance = rail.deposit(account, amount)
    console.print(f"[bold]{account}[/bold] balance: [green]{balance}[/green]")


def balance_cmd(
    account: str = typer.Argument(..., help="Account to inspect."),
    state: Optional[Path] = typer.Option(None, "--state", "-s", help=STATE_OPTION_HELP),
) -> None:
    """Show an account balance on the payment rail."""
    with market_session(state, save=False) as engine:
        balance = engine.balance_of(account)
    console.print(f"[bold]{account}[/bold] balance: {balance}")
