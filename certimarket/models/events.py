"""Market notifications emitted once per successful mutating call.

Each notification is a frozen Pydantic model.  External indexers and
front-ends consume them from the EventBus; nothing inside the ledger
reads them back.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class EventKind(str, Enum):
    """The contracted notification types."""

    PARTICIPANT_REGISTERED = "participant_registered"
    CERTIFIER_ADDED = "certifier_added"
    ITEM_REGISTERED = "item_registered"
    ITEM_CERTIFIED = "item_certified"
    ITEM_LISTED_FOR_SALE = "item_listed_for_sale"
    ITEM_SOLD = "item_sold"
    ITEM_TRANSFERRED = "item_transferred"


class MarketEvent(BaseModel):
    """Base fields shared by all notifications."""

    model_config = ConfigDict(frozen=True)

    event_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp_utc: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    payload_hash: str = ""  # SHA-256 of canonical payload bytes, set by the bus
    event_kind: EventKind


class ParticipantRegistered(MarketEvent):
    event_kind: EventKind = EventKind.PARTICIPANT_REGISTERED
    participant: str


class CertifierAdded(MarketEvent):
    event_kind: EventKind = EventKind.CERTIFIER_ADDED
    certifier: str
    added_by: str


class ItemRegistered(MarketEvent):
    event_kind: EventKind = EventKind.ITEM_REGISTERED
    item_id: int
    owner: str
    serial_number: str


class ItemCertified(MarketEvent):
    event_kind: EventKind = EventKind.ITEM_CERTIFIED
    item_id: int
    certifier: str


class ItemListedForSale(MarketEvent):
    event_kind: EventKind = EventKind.ITEM_LISTED_FOR_SALE
    item_id: int
    owner: str
    price: int


class ItemSold(MarketEvent):
    event_kind: EventKind = EventKind.ITEM_SOLD
    item_id: int
    seller: str
    buyer: str
    price: int
    fee_amount: int
    seller_amount: int


class ItemTransferred(MarketEvent):
    event_kind: EventKind = EventKind.ITEM_TRANSFERRED
    item_id: int
    previous_owner: str
    new_owner: str


# Registry for deserialization by event_kind
EVENT_TYPE_MAP: dict[EventKind, type[MarketEvent]] = {
    EventKind.PARTICIPANT_REGISTERED: ParticipantRegistered,
    EventKind.CERTIFIER_ADDED: CertifierAdded,
    EventKind.ITEM_REGISTERED: ItemRegistered,
    EventKind.ITEM_CERTIFIED: ItemCertified,
    EventKind.ITEM_LISTED_FOR_SALE: ItemListedForSale,
    EventKind.ITEM_SOLD: ItemSold,
    EventKind.ITEM_TRANSFERRED: ItemTransferred,
}
