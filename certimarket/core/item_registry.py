"""Item registry — canonical item records indexed by id and by serial.

Design:
- Identifiers are sequential from 1 and never reused.
- A serial number maps to at most one identifier; the mapping is written
  once, by the registration that created the item, and never overwritten.
- Records are frozen; every change replaces the record for its id.
- Items without an owner are indistinguishable from nonexistent ones.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from certimarket.core.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    StateError,
)
from certimarket.core.journal import Journaled
from certimarket.models.items import Item

logger = logging.getLogger(__name__)


class ItemRegistry(Journaled):
    """Owns every ``Item`` record and the serial → id index."""

    def __init__(self) -> None:
        super().__init__()
        self._items: dict[int, Item] = {}
        self._serials: dict[str, int] = {}
        self._last_item_id = 0

    @classmethod
    def from_records(cls, items: Iterable[Item], last_item_id: int = 0) -> ItemRegistry:
        """Rebuild a registry from saved records."""
        registry = cls()
        for item in items:
            if item.serial_number in registry._serials:
                raise ConflictError(
                    f"Serial {item.serial_number!r} appears on more than one item"
                )
            registry._items[item.item_id] = item
            registry._serials[item.serial_number] = item.item_id
        registry._last_item_id = max([last_item_id, *registry._items])
        return registry

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(
        self,
        name: str,
        value: int,
        description: str,
        serial: str,
        image_ref: str,
        owner: str,
    ) -> int:
        """Create a new item owned by *owner* and return its id.

        Raises ``ConflictError`` if *serial* already maps to an item.
        Nothing is written unless every check passes.
        """
        if not name:
            raise StateError("Item name must not be empty")
        if not serial:
            raise StateError("Serial number must not be empty")
        if value < 0:
            raise StateError(f"Estimated value must not be negative, got {value}")
        if serial in self._serials:
            raise ConflictError(
                f"Serial {serial!r} is already registered as item {self._serials[serial]}"
            )

        previous_last_id = self._last_item_id
        item_id = previous_last_id + 1
        self._items[item_id] = Item(
            item_id=item_id,
            name=name,
            description=description,
            estimated_value=value,
            serial_number=serial,
            image_ref=image_ref,
            owner=owner,
        )
        self._serials[serial] = item_id
        self._last_item_id = item_id

        def undo() -> None:
            del self._items[item_id]
            del self._serials[serial]
            self._last_item_id = previous_last_id

        self._record(undo)
        logger.debug("Registered item %d (serial %s) for %s.", item_id, serial, owner)
        return item_id

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, item_id: int) -> Item:
        """Return the item, or raise ``NotFoundError`` if it has no owner."""
        item = self._items.get(item_id)
        if item is None or not item.is_active:
            raise NotFoundError(f"Item {item_id} does not exist")
        return item

    def exists(self, item_id: int) -> bool:
        item = self._items.get(item_id)
        return item is not None and item.is_active

    def find_by_serial(self, serial: str) -> Item | None:
        """Return the active item registered under *serial*, or ``None``."""
        item_id = self._serials.get(serial)
        if item_id is None or not self.exists(item_id):
            return None
        return self._items[item_id]

    @property
    def last_item_id(self) -> int:
        """The most recently assigned identifier (0 before any registration)."""
        return self._last_item_id

    def __iter__(self) -> Iterator[Item]:
        """Yield active items in id order, scanning ``1..last_item_id``."""
        for item_id in range(1, self._last_item_id + 1):
            item = self._items.get(item_id)
            if item is not None and item.is_active:
                yield item

    # ------------------------------------------------------------------
    # State changes
    # ------------------------------------------------------------------

    def certify(self, item_id: int, certifier: str) -> Item:
        """Mark the item certified by *certifier*, replacing any earlier certifier."""
        item = self.get(item_id)
        return self._replace(
            item, certified=True, certified_by=certifier
        )

    def set_for_sale(self, item_id: int, price: int, owner: str) -> Item:
        """List the item at *price*; only its current owner may do so."""
        item = self.get(item_id)
        if item.owner != owner:
            raise AuthorizationError(
                f"Not owner: {owner!r} does not own item {item_id}"
            )
        return self._replace(item, for_sale=True, sale_price=price)

    def reassign_owner(self, item_id: int, new_owner: str) -> Item:
        """Hand the item to *new_owner* and take it off the market.

        Writes no history; the caller appends the matching transaction
        inside the same atomic operation.
        """
        item = self.get(item_id)
        return self._replace(item, owner=new_owner, for_sale=False)

    def _replace(self, item: Item, **changes: object) -> Item:
        updated = item.model_copy(update=changes)
        self._items[item.item_id] = updated
        self._record(lambda: self._items.__setitem__(item.item_id, item))
        return updated
