"""certimarket data models — all Pydantic v2, all frozen (immutable)."""

from certimarket.models.events import (
    EVENT_TYPE_MAP,
    CertifierAdded,
    EventKind,
    ItemCertified,
    ItemListedForSale,
    ItemRegistered,
    ItemSold,
    ItemTransferred,
    MarketEvent,
    ParticipantRegistered,
)
from certimarket.models.items import Item, ItemVerification, MarketCounts
from certimarket.models.ledger import Transaction, TransactionKind
from certimarket.models.policy import MarketPolicy, PurchaseReceipt
from certimarket.models.state import LedgerSnapshot

__all__ = [
    # items
    "Item",
    "ItemVerification",
    "MarketCounts",
    # ledger
    "Transaction",
    "TransactionKind",
    # policy
    "MarketPolicy",
    "PurchaseReceipt",
    # events
    "EventKind",
    "MarketEvent",
    "ParticipantRegistered",
    "CertifierAdded",
    "ItemRegistered",
    "ItemCertified",
    "ItemListedForSale",
    "ItemSold",
    "ItemTransferred",
    "EVENT_TYPE_MAP",
    # state
    "LedgerSnapshot",
]
