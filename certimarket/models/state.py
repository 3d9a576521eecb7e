"""Serialized form of a complete market ledger."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

from certimarket.models.items import Item
from certimarket.models.ledger import Transaction
from certimarket.models.policy import MarketPolicy


class LedgerSnapshot(BaseModel):
    """Everything needed to rebuild a MarketplaceEngine.

    ``holdings`` keeps each owner's id order so a reload reproduces the
    exact ownership index; ``histories`` keeps sealed entries so their
    hash chains can be re-verified on load.
    """

    model_config = ConfigDict(frozen=True)

    schema_version: str = "2026-10"
    saved_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    administrator: str
    platform_wallet: str
    escrow_account: str
    policy: MarketPolicy = MarketPolicy()
    certifiers: list[str] = []
    participants: list[str] = []
    last_item_id: int = 0
    items: list[Item] = []
    holdings: dict[str, list[int]] = {}
    histories: dict[int, list[Transaction]] = {}
    balances: dict[str, int] = {}
