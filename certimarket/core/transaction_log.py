"""Append-only, hash-chained per-item ownership history.

Design:
- Append-only: ``append()`` is the only write; committed entries are never
  updated or removed.
- Hash-chained: each entry includes the SHA-256 of the previous entry of
  the same item.
- The first entry of every item is a REGISTRATION with no previous owner
  and price 0.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from certimarket.core.errors import NotFoundError, StateError
from certimarket.core.hasher import compute_entry_hash
from certimarket.core.journal import Journaled
from certimarket.models.ledger import Transaction, TransactionKind


class LedgerIntegrityError(RuntimeError):
    """Raised when an item's hash chain is broken."""


class TransactionLog(Journaled):
    """Per-item ordered history of ownership changes."""

    def __init__(self) -> None:
        super().__init__()
        self._histories: dict[int, list[Transaction]] = {}

    @classmethod
    def from_histories(
        cls, histories: Mapping[int, Sequence[Transaction]]
    ) -> TransactionLog:
        """Rebuild a log from saved histories, verifying every chain."""
        log = cls()
        for item_id, entries in histories.items():
            log._histories[item_id] = list(entries)
            log.verify_chain(item_id)
        return log

    # ------------------------------------------------------------------
    # Core: append-only write
    # ------------------------------------------------------------------

    def append(
        self,
        item_id: int,
        previous_owner: str | None,
        new_owner: str,
        kind: TransactionKind,
        price: int = 0,
    ) -> Transaction:
        """Seal and append one entry to the end of the item's history.

        Returns the entry with ``previous_entry_hash`` and ``entry_hash`` set.
        """
        history = self._histories.get(item_id)
        created = history is None
        if created:
            if kind != TransactionKind.REGISTRATION or previous_owner is not None or price:
                raise StateError(
                    f"History of item {item_id} must open with a registration "
                    "without previous owner or price"
                )
            history = []
            self._histories[item_id] = history
        elif kind == TransactionKind.REGISTRATION:
            raise StateError(f"Item {item_id} is already registered")

        entry = Transaction(
            item_id=item_id,
            sequence=len(history),
            previous_owner=previous_owner,
            new_owner=new_owner,
            kind=kind,
            price=price,
            previous_entry_hash=history[-1].entry_hash if history else "",
        )
        sealed = entry.model_copy(
            update={"entry_hash": compute_entry_hash(entry.model_dump(mode="json"))}
        )
        history.append(sealed)

        def undo() -> None:
            history.pop()
            if created:
                del self._histories[item_id]

        self._record(undo)
        return sealed

    # ------------------------------------------------------------------
    # Query methods (read-only)
    # ------------------------------------------------------------------

    def history_of(self, item_id: int) -> list[Transaction]:
        """Return the item's entries in order of occurrence."""
        history = self._histories.get(item_id)
        if history is None:
            raise NotFoundError(f"Item {item_id} has no history")
        return list(history)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._histories

    def histories(self) -> dict[int, list[Transaction]]:
        """Copy of every history, keyed by item id."""
        return {item_id: list(entries) for item_id, entries in self._histories.items()}

    # ------------------------------------------------------------------
    # Chain verification
    # ------------------------------------------------------------------

    def verify_chain(self, item_id: int) -> bool:
        """Verify the hash chain of one item's history.

        Walks all entries in order, recomputes each entry_hash, and
        verifies that previous_entry_hash links match.

        Returns True if the chain is valid, raises LedgerIntegrityError otherwise.
        """
        prev_hash = ""
        for position, entry in enumerate(self.history_of(item_id)):
            if entry.item_id != item_id or entry.sequence != position:
                raise LedgerIntegrityError(
                    f"Misplaced entry in history of item {item_id}: "
                    f"expected sequence {position}, got item {entry.item_id} "
                    f"sequence {entry.sequence}"
                )
            if entry.previous_entry_hash != prev_hash:
                raise LedgerIntegrityError(
                    f"Chain broken at item {item_id} entry {position}: "
                    f"expected previous_hash={prev_hash!r}, "
                    f"got {entry.previous_entry_hash!r}"
                )
            expected_hash = compute_entry_hash(entry.model_dump(mode="json"))
            if entry.entry_hash != expected_hash:
                raise LedgerIntegrityError(
                    f"Tampered entry {position} of item {item_id}: "
                    f"expected hash={expected_hash!r}, got {entry.entry_hash!r}"
                )
            prev_hash = entry.entry_hash
        return True
