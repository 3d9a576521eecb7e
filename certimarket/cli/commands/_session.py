"""Load-run-save helper shared by commands that touch saved market state."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from certimarket.config import settings
from certimarket.core.engine import MarketplaceEngine
from certimarket.core.errors import MarketError
from certimarket.core.state_store import StateStore
from certimarket.core.transaction_log import LedgerIntegrityError

console = Console()

STATE_OPTION_HELP = "Path to the market state file (defaults to CERTIMARKET_STATE_PATH)."


def resolve_store(state: Optional[Path]) -> StateStore:
    return StateStore(state or settings.state_path)


@contextmanager
def market_session(state: Optional[Path], *, save: bool = True) -> Iterator[MarketplaceEngine]:
    """Yield the saved engine; persist it again if the body succeeds.

    A ``MarketError`` raised by the body is printed and turned into exit
    code 1 without saving, so the file keeps the pre-command state.
    """
    store = resolve_store(state)
    if not store.exists():
        console.print(f"[bold red]Market state not found:[/bold red] {store.path}")
        console.print("[dim]Initialize a market first with: certimarket deploy[/dim]")
        raise typer.Exit(code=1)

    try:
        engine = store.load()
    except LedgerIntegrityError as exc:
        console.print(f"[bold red]Ledger integrity check failed:[/bold red] {exc}")
        raise typer.Exit(code=1) from exc

    try:
        yield engine
    except MarketError as exc:
        console.print(f"[bold red]{type(exc).__name__}:[/bold red] {exc}")
        raise typer.Exit(code=1) from exc

    if save:
        store.save(engine)
