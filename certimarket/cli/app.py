"""Main Typer application — imports and registers all CLI commands.

Entry point: ``certimarket`` (configured via pyproject.toml scripts).
"""

from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from certimarket.cli.commands.demo import demo_cmd
from certimarket.cli.commands.deploy import deploy_cmd
from certimarket.cli.commands.items import (
    buy_cmd,
    certify_cmd,
    list_cmd,
    register_item_cmd,
    transfer_cmd,
)
from certimarket.cli.commands.participants import (
    add_certifier_cmd,
    balance_cmd,
    deposit_cmd,
    register_participant_cmd,
)
from certimarket.cli.commands.query import (
    catalog_cmd,
    history_cmd,
    items_cmd,
    show_cmd,
    stats_cmd,
    verify_cmd,
)
from certimarket.config import settings

app = typer.Typer(
    name="certimarket",
    help="certimarket: provenance ledger for certified secondhand goods.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def configure_logging(
    verbose: bool = typer.Option(
        False, "--verbose", "-V", help="Log at DEBUG level to stderr."
    ),
) -> None:
    """Route library logging through Rich on stderr."""
    level = logging.DEBUG if verbose or settings.debug else settings.log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


# Register subcommands
app.command(name="deploy", help="Initialize a new market.")(deploy_cmd)
app.command(name="register-participant", help="Register as a participant.")(
    register_participant_cmd
)
app.command(name="add-certifier", help="Grant certifier rights (administrator only).")(
    add_certifier_cmd
)
app.command(name="deposit", help="Credit funds on the built-in payment rail.")(deposit_cmd)
app.command(name="balance", help="Show an account balance.")(balance_cmd)
app.command(name="register-item", help="Register a new item.")(register_item_cmd)
app.command(name="certify", help="Certify an item.")(certify_cmd)
app.command(name="list", help="List an item for sale.")(list_cmd)
app.command(name="buy", help="Buy a listed item.")(buy_cmd)
app.command(name="transfer", help="Give an item to another participant.")(transfer_cmd)
app.command(name="verify", help="Verify an item by serial number.")(verify_cmd)
app.command(name="show", help="Show one item.")(show_cmd)
app.command(name="catalog", help="List all registered items.")(catalog_cmd)
app.command(name="history", help="Show an item's ownership history.")(history_cmd)
app.command(name="items", help="List the items an identity owns.")(items_cmd)
app.command(name="stats", help="Show platform-wide counts.")(stats_cmd)
app.command(name="demo", help="Run a complete in-memory marketplace scenario.")(demo_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
