"""Ownership history entries (append-only, hash-chained per item).

Each item carries its own chain:
- The first entry is always a REGISTRATION with no previous owner and price 0
- Every later entry records one SALE or TRANSFER
- ``previous_entry_hash`` links to the preceding entry of the same item
- ``entry_hash`` seals the entry; it is computed once, when appended
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class TransactionKind(str, Enum):
    """Kinds of ownership change recorded in an item's history."""

    REGISTRATION = "registration"
    SALE = "sale"
    TRANSFER = "transfer"


class Transaction(BaseModel):
    """A single immutable ownership change for one item."""

    model_config = ConfigDict(frozen=True)

    item_id: int
    sequence: int = 0  # position within the item's history
    previous_owner: str | None = None
    new_owner: str
    kind: TransactionKind
    price: int = 0
    timestamp_utc: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    previous_entry_hash: str = ""
    entry_hash: str = ""  # computed after construction, seals this entry
