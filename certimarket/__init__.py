"""certimarket: provenance and ownership ledger for certified secondhand goods.

v0.1.0:
  - Sequential item ids with globally unique, write-once serial numbers
  - Certification by administrator-appointed certifiers
  - Listing, purchase with floored platform-fee split and refund, gifting
  - Atomic commands: registry, ownership index and history change together
  - Append-only, hash-chained per-item history
  - Participant gating and platform fee as policy toggles
  - JSON state snapshots, deployment records, Typer/Rich CLI
"""

__version__ = "0.1.0"
__description__ = "Provenance and ownership ledger for certified secondhand goods"

from certimarket.core.engine import MarketplaceEngine
from certimarket.cli.app import app as cli

__all__ = ["MarketplaceEngine", "cli", "__version__"]
