"""Item records and read-side views over them."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


class Item(BaseModel):
    """Canonical record of one tracked physical good.

    Records are frozen; the ItemRegistry replaces a record wholesale
    (``model_copy(update=...)``) whenever ownership, certification or
    listing state changes.  ``serial_number`` and ``item_id`` never change.
    """

    model_config = ConfigDict(frozen=True)

    item_id: int
    name: str
    description: str = ""
    estimated_value: int = 0  # smallest currency unit
    serial_number: str
    image_ref: str = ""
    owner: str | None = None
    certified: bool = False
    certified_by: str | None = None  # meaningful only when certified
    for_sale: bool = False
    sale_price: int = 0
    registered_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @property
    def is_active(self) -> bool:
        """An item is active while it has an owner."""
        return self.owner is not None


class ItemVerification(BaseModel):
    """Result of looking an item up by its serial number."""

    model_config = ConfigDict(frozen=True)

    exists: bool
    item_id: int = 0
    owner: str | None = None
    certified: bool = False


class MarketCounts(BaseModel):
    """Platform-wide item counts."""

    model_config = ConfigDict(frozen=True)

    total: int = 0
    active: int = 0
    for_sale: int = 0
    certified: int = 0
