"""Ownership index — which item ids each identity currently holds.

Each owner has a list of item ids plus an id → position map, so both
``add`` and ``remove`` run in O(1): removal moves the owner's last id
into the vacated slot and shrinks the list by one.  Order within an
owner's list carries no meaning.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from certimarket.core.errors import ConflictError, NotFoundError
from certimarket.core.journal import Journaled


class OwnershipIndex(Journaled):
    """Identity → item ids currently owned."""

    def __init__(self) -> None:
        super().__init__()
        self._holdings: dict[str, list[int]] = {}
        self._positions: dict[str, dict[int, int]] = {}

    @classmethod
    def from_holdings(cls, holdings: Mapping[str, Sequence[int]]) -> OwnershipIndex:
        """Rebuild an index from saved per-owner id lists."""
        index = cls()
        for owner, item_ids in holdings.items():
            for item_id in item_ids:
                index.add(owner, item_id)
        index.commit()
        return index

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add(self, owner: str, item_id: int) -> None:
        """Append *item_id* to *owner*'s holdings."""
        positions = self._positions.setdefault(owner, {})
        if item_id in positions:
            raise ConflictError(f"Item {item_id} is already held by {owner!r}")
        holdings = self._holdings.setdefault(owner, [])
        positions[item_id] = len(holdings)
        holdings.append(item_id)

        def undo() -> None:
            holdings.pop()
            del positions[item_id]

        self._record(undo)

    def remove(self, owner: str, item_id: int) -> None:
        """Drop *item_id* from *owner*'s holdings (swap-with-last)."""
        positions = self._positions.get(owner)
        if positions is None or item_id not in positions:
            raise NotFoundError(f"Item {item_id} is not held by {owner!r}")
        holdings = self._holdings[owner]
        index = positions.pop(item_id)
        last = holdings.pop()
        if last != item_id:
            holdings[index] = last
            positions[last] = index

        def undo() -> None:
            if last != item_id:
                holdings[index] = item_id
                positions[item_id] = index
                positions[last] = len(holdings)
                holdings.append(last)
            else:
                positions[item_id] = len(holdings)
                holdings.append(item_id)

        self._record(undo)

    def move(self, item_id: int, previous_owner: str, new_owner: str) -> None:
        """Move *item_id* from one owner's holdings to another's."""
        self.remove(previous_owner, item_id)
        self.add(new_owner, item_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_for(self, owner: str) -> list[int]:
        """Snapshot of the ids *owner* currently holds."""
        return list(self._holdings.get(owner, ()))

    def holds(self, owner: str, item_id: int) -> bool:
        return item_id in self._positions.get(owner, {})

    def owners(self) -> list[str]:
        """Identities holding at least one item, sorted."""
        return sorted(owner for owner, ids in self._holdings.items() if ids)

    def holdings(self) -> dict[str, list[int]]:
        """Copy of every non-empty holding list, keyed by owner."""
        return {owner: list(self._holdings[owner]) for owner in self.owners()}
