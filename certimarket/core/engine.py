"""Marketplace engine — the single writer of the ownership ledger.

The MarketplaceEngine wires together the AccessRegistry, ItemRegistry,
OwnershipIndex, TransactionLog, PaymentRail and EventBus.  Every command
runs under one re-entrant lock inside an atomic section:

1. Preconditions are checked against the AccessRegistry and the item.
2. Registry, index and history are mutated together.
3. For a purchase, value moves only after step 2 (state before value).
   Each completed fund movement is journaled alongside the state.
4. Any failure rolls every component back to its pre-call state and
   sends back every fund movement made since, nested calls included;
   notifications are dropped.
5. On success the components commit and notifications are published.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from certimarket.config import MarketSettings
from certimarket.core.access_registry import AccessRegistry
from certimarket.core.errors import AuthorizationError, StateError
from certimarket.core.event_bus import EventBus
from certimarket.core.item_registry import ItemRegistry
from certimarket.core.ownership_index import OwnershipIndex
from certimarket.core.payments import (
    InMemoryPaymentRail,
    Movement,
    PaymentRail,
    reverse_movements,
    split_sale_price,
)
from certimarket.core.transaction_log import LedgerIntegrityError, TransactionLog
from certimarket.models.events import (
    CertifierAdded,
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

logger = logging.getLogger(__name__)

DEFAULT_ESCROW_ACCOUNT = "market:escrow"


class MarketplaceEngine:
    """Registration, certification, listing, purchase and transfer of items.

    Parameters
    ----------
    access:
        Role registry consulted on every call.  Its platform wallet, if
        set, must match *platform_wallet*.
    platform_wallet:
        Account receiving platform fees.
    policy:
        Participant gating and fee toggles.  Defaults to ``MarketPolicy()``.
    payments:
        Rail used to move value.  Defaults to an empty ``InMemoryPaymentRail``.
    events:
        Bus receiving notifications after each committed mutation.
    """

    def __init__(
        self,
        access: AccessRegistry,
        *,
        platform_wallet: str,
        policy: MarketPolicy | None = None,
        payments: PaymentRail | None = None,
        events: EventBus | None = None,
        items: ItemRegistry | None = None,
        ownership: OwnershipIndex | None = None,
        history: TransactionLog | None = None,
        escrow_account: str = DEFAULT_ESCROW_ACCOUNT,
    ) -> None:
        if not platform_wallet:
            raise ValueError("platform_wallet must not be empty")
        if access.platform_wallet not in (None, platform_wallet):
            raise ValueError(
                f"AccessRegistry platform wallet {access.platform_wallet!r} "
                f"does not match {platform_wallet!r}"
            )
        self._access = access
        self._platform_wallet = platform_wallet
        self._policy = policy or MarketPolicy()
        self._payments: PaymentRail = payments if payments is not None else InMemoryPaymentRail()
        self._events = events or EventBus()
        self._items = items or ItemRegistry()
        self._ownership = ownership or OwnershipIndex()
        self._history = history or TransactionLog()
        self._escrow_account = escrow_account

        self._lock = threading.RLock()
        self._depth = 0
        self._pending_events: list[MarketEvent] = []
        self._movements: list[Movement] = []
        self._journaled = (self._access, self._items, self._ownership, self._history)

    @classmethod
    def from_settings(
        cls,
        settings: MarketSettings,
        *,
        payments: PaymentRail | None = None,
        events: EventBus | None = None,
    ) -> MarketplaceEngine:
        """Build a fresh engine from ``MarketSettings``."""
        access = AccessRegistry(settings.administrator, settings.platform_wallet)
        return cls(
            access,
            platform_wallet=settings.platform_wallet,
            policy=settings.policy(),
            payments=payments,
            events=events,
            escrow_account=settings.escrow_account,
        )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def administrator(self) -> str:
        return self._access.administrator

    @property
    def platform_wallet(self) -> str:
        return self._platform_wallet

    @property
    def escrow_account(self) -> str:
        return self._escrow_account

    @property
    def policy(self) -> MarketPolicy:
        return self._policy

    @property
    def access(self) -> AccessRegistry:
        return self._access

    @property
    def payments(self) -> PaymentRail:
        return self._payments

    @property
    def events(self) -> EventBus:
        return self._events

    # ------------------------------------------------------------------
    # Atomic section
    # ------------------------------------------------------------------

    @contextmanager
    def _atomic(self, operation: str) -> Iterator[None]:
        """Run a command under the ledger lock as one all-or-nothing unit.

        Sections nest: a call re-entering the engine (for instance from a
        payment rail callback) gets its own rollback point, and nothing is
        committed or published until the outermost section succeeds.  Fund
        movements journaled by a nested section stay pending until then, so
        an outer failure sends them back as well.
        """
        with self._lock:
            marks = [component.mark() for component in self._journaled]
            event_mark = len(self._pending_events)
            movement_mark = len(self._movements)
            self._depth += 1
            try:
                yield
            except BaseException as exc:
                for component, mark in zip(self._journaled, marks):
                    component.rollback(mark)
                del self._pending_events[event_mark:]
                movements = self._movements[movement_mark:]
                del self._movements[movement_mark:]
                logger.warning("Rejected %s: %s", operation, exc)
                reverse_movements(self._payments, movements, cause=exc)
                raise
            finally:
                self._depth -= 1

            if self._depth == 0:
                for component in self._journaled:
                    component.commit()
                self._movements.clear()
                events, self._pending_events = self._pending_events, []
                for event in events:
                    self._events.publish(event)

    def _emit(self, event: MarketEvent) -> None:
        self._pending_events.append(event)

    def _move(self, sender: str, recipient: str, amount: int) -> None:
        """Transfer *amount* on the rail and journal it; zero amounts are skipped."""
        if amount <= 0:
            return
        self._payments.transfer(sender, recipient, amount)
        self._movements.append((sender, recipient, amount))

    # ------------------------------------------------------------------
    # Authorization helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _require_identity(caller: str) -> None:
        if not caller:
            raise AuthorizationError("An acting identity is required")

    def _require_participant(self, caller: str) -> None:
        if self._policy.require_registration and not self._access.is_registered(caller):
            raise AuthorizationError(f"{caller!r} is not a registered participant")

    def _require_owner(self, item: Item, caller: str) -> None:
        if item.owner != caller:
            raise AuthorizationError(
                f"Not owner: {caller!r} does not own item {item.item_id}"
            )

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def register_participant(self, *, caller: str) -> None:
        """Register *caller* as a marketplace participant."""
        with self._atomic("register_participant"):
            self._require_identity(caller)
            self._access.register_participant(caller)
            self._emit(ParticipantRegistered(participant=caller))
        logger.info("Participant %s registered.", caller)

    def add_certifier(self, certifier: str, *, caller: str) -> bool:
        """Grant certifier rights; administrator only, idempotent."""
        with self._atomic("add_certifier"):
            self._require_identity(certifier)
            added = self._access.add_certifier(certifier, caller)
            if added:
                self._emit(CertifierAdded(certifier=certifier, added_by=caller))
        if added:
            logger.info("Certifier %s added by %s.", certifier, caller)
        return added

    def register_item(
        self,
        name: str,
        value: int,
        description: str,
        serial: str,
        image_ref: str,
        *,
        caller: str,
    ) -> int:
        """Register a new item owned by *caller* and return its id.

        Opens the item's history with a REGISTRATION entry at price 0.
        """
        with self._atomic("register_item"):
            self._require_identity(caller)
            self._require_participant(caller)
            item_id = self._items.register(name, value, description, serial, image_ref, caller)
            self._ownership.add(caller, item_id)
            self._history.append(item_id, None, caller, TransactionKind.REGISTRATION, 0)
            self._emit(ItemRegistered(item_id=item_id, owner=caller, serial_number=serial))
        logger.info("Item %d (%s) registered by %s.", item_id, serial, caller)
        return item_id

    def certify_item(self, item_id: int, *, caller: str) -> Item:
        """Certify an item.  Writes no history entry."""
        with self._atomic("certify_item"):
            if not self._access.is_certifier(caller):
                raise AuthorizationError(f"Not certifier: {caller!r}")
            item = self._items.certify(item_id, caller)
            self._emit(ItemCertified(item_id=item_id, certifier=caller))
        logger.info("Item %d certified by %s.", item_id, caller)
        return item

    def list_item_for_sale(self, item_id: int, price: int, *, caller: str) -> Item:
        """List an item at *price*; price 0 is a valid listing."""
        with self._atomic("list_item_for_sale"):
            if price < 0:
                raise StateError(f"Sale price must not be negative, got {price}")
            item = self._items.set_for_sale(item_id, price, caller)
            self._emit(ItemListedForSale(item_id=item_id, owner=caller, price=price))
        logger.info("Item %d listed by %s at %d.", item_id, caller, price)
        return item

    def purchase_item(self, item_id: int, payment: int, *, caller: str) -> PurchaseReceipt:
        """Buy a listed item, splitting the price between seller and platform.

        State is reassigned before any value moves, so a re-entrant
        purchase of the same item sees it already sold.  Only the price is
        collected from the buyer; ``refund`` reports the excess left with
        them.  Any failure, including a rejected fund movement, leaves
        ledger and balances as they were.
        """
        with self._atomic("purchase_item"):
            self._require_identity(caller)
            item = self._items.get(item_id)
            self._require_participant(caller)
            if payment < 0:
                raise StateError(f"Payment must not be negative, got {payment}")
            if not item.for_sale:
                raise StateError(f"Item {item_id} is not for sale")
            if item.owner == caller:
                raise StateError(f"{caller!r} cannot purchase their own item {item_id}")
            if payment < item.sale_price:
                raise StateError(
                    f"Insufficient payment for item {item_id}: "
                    f"offered {payment}, price is {item.sale_price}"
                )

            seller, price = item.owner, item.sale_price
            fee_amount, seller_amount = split_sale_price(
                price, self._policy.effective_fee_basis_points
            )
            refund = payment - price

            self._change_owner(item_id, seller, caller, TransactionKind.SALE, price)

            # Only the price is collected; the excess never leaves the buyer
            self._move(caller, self._escrow_account, price)
            self._move(self._escrow_account, seller, seller_amount)
            self._move(self._escrow_account, self._platform_wallet, fee_amount)

            receipt = PurchaseReceipt(
                item_id=item_id,
                seller=seller,
                buyer=caller,
                price=price,
                fee_amount=fee_amount,
                seller_amount=seller_amount,
                refund=refund,
            )
            self._emit(
                ItemSold(
                    item_id=item_id,
                    seller=seller,
                    buyer=caller,
                    price=price,
                    fee_amount=fee_amount,
                    seller_amount=seller_amount,
                )
            )
        logger.info(
            "Item %d sold by %s to %s for %d (fee %d, refund %d).",
            item_id, seller, caller, price, fee_amount, refund,
        )
        return receipt

    def transfer_item(self, item_id: int, recipient: str, *, caller: str) -> None:
        """Give an item to *recipient*; no value moves."""
        with self._atomic("transfer_item"):
            item = self._items.get(item_id)
            self._require_owner(item, caller)
            if not recipient or recipient == caller:
                raise StateError(f"{recipient!r} cannot receive item {item_id}")
            if self._policy.require_registration and not self._access.is_registered(recipient):
                raise StateError(f"Recipient {recipient!r} is not a registered participant")
            self._change_owner(item_id, caller, recipient, TransactionKind.TRANSFER, 0)
            self._emit(
                ItemTransferred(item_id=item_id, previous_owner=caller, new_owner=recipient)
            )
        logger.info("Item %d transferred from %s to %s.", item_id, caller, recipient)

    def _change_owner(
        self,
        item_id: int,
        previous_owner: str,
        new_owner: str,
        kind: TransactionKind,
        price: int,
    ) -> None:
        self._items.reassign_owner(item_id, new_owner)
        self._ownership.move(item_id, previous_owner, new_owner)
        self._history.append(item_id, previous_owner, new_owner, kind, price)

    # ------------------------------------------------------------------
    # Queries (read-only)
    # ------------------------------------------------------------------

    def verify_by_serial(self, serial: str) -> ItemVerification:
        """Look an item up by serial number; unknown serials report ``exists=False``."""
        with self._lock:
            item = self._items.find_by_serial(serial)
        if item is None:
            return ItemVerification(exists=False)
        return ItemVerification(
            exists=True, item_id=item.item_id, owner=item.owner, certified=item.certified
        )

    def get_item(self, item_id: int) -> Item:
        with self._lock:
            return self._items.get(item_id)

    def all_items(self) -> list[Item]:
        """Every active item in id order."""
        with self._lock:
            return list(self._items)

    def is_item_certified(self, item_id: int) -> bool:
        with self._lock:
            return self._items.get(item_id).certified

    def history_of(self, item_id: int) -> list[Transaction]:
        with self._lock:
            return self._history.history_of(item_id)

    def verify_history(self, item_id: int) -> bool:
        """Verify the hash chain of an item's history."""
        with self._lock:
            return self._history.verify_chain(item_id)

    def items_of(self, owner: str) -> list[int]:
        with self._lock:
            return self._ownership.list_for(owner)

    def counts(self) -> MarketCounts:
        """Scan ``1..last_item_id`` and count items by current state."""
        with self._lock:
            total = self._items.last_item_id
            active = for_sale = certified = 0
            for item in self._items:
                active += 1
                for_sale += item.for_sale
                certified += item.certified
        return MarketCounts(total=total, active=active, for_sale=for_sale, certified=certified)

    def is_certifier(self, identity: str) -> bool:
        with self._lock:
            return self._access.is_certifier(identity)

    def is_registered(self, identity: str) -> bool:
        with self._lock:
            return self._access.is_registered(identity)

    def balance_of(self, account: str) -> int:
        with self._lock:
            return self._payments.balance_of(account)

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def to_snapshot(self) -> LedgerSnapshot:
        """Capture the committed ledger state."""
        with self._lock:
            balances = (
                self._payments.balances()
                if isinstance(self._payments, InMemoryPaymentRail)
                else {}
            )
            return LedgerSnapshot(
                administrator=self.administrator,
                platform_wallet=self._platform_wallet,
                escrow_account=self._escrow_account,
                policy=self._policy,
                certifiers=self._access.added_certifiers(),
                participants=self._access.participants(),
                last_item_id=self._items.last_item_id,
                items=list(self._items),
                holdings=self._ownership.holdings(),
                histories=self._history.histories(),
                balances=balances,
            )

    @classmethod
    def from_snapshot(
        cls,
        snapshot: LedgerSnapshot,
        *,
        payments: PaymentRail | None = None,
        events: EventBus | None = None,
    ) -> MarketplaceEngine:
        """Rebuild an engine from a snapshot, re-verifying every history chain.

        Also checks that every item record, its owner's holdings and the
        last entry of its history agree; raises ``LedgerIntegrityError``
        otherwise.
        """
        access = AccessRegistry(
            snapshot.administrator,
            snapshot.platform_wallet,
            certifiers=snapshot.certifiers,
            participants=snapshot.participants,
        )
        engine = cls(
            access,
            platform_wallet=snapshot.platform_wallet,
            policy=snapshot.policy,
            payments=payments if payments is not None else InMemoryPaymentRail(snapshot.balances),
            events=events,
            items=ItemRegistry.from_records(snapshot.items, snapshot.last_item_id),
            ownership=OwnershipIndex.from_holdings(snapshot.holdings),
            history=TransactionLog.from_histories(snapshot.histories),
            escrow_account=snapshot.escrow_account,
        )
        engine._verify_cross_references()
        return engine

    def _verify_cross_references(self) -> None:
        active_ids: set[int] = set()
        for item in self._items:
            active_ids.add(item.item_id)
            if item.item_id not in self._history:
                raise LedgerIntegrityError(f"Item {item.item_id} has no history")
            last_owner = self._history.history_of(item.item_id)[-1].new_owner
            if item.owner != last_owner:
                raise LedgerIntegrityError(
                    f"Item {item.item_id} is owned by {item.owner!r} "
                    f"but its history ends with {last_owner!r}"
                )
            if not self._ownership.holds(item.owner, item.item_id):
                raise LedgerIntegrityError(
                    f"Item {item.item_id} is missing from the holdings of {item.owner!r}"
                )

        # Each active id held once, by its owner
        held = sum(len(ids) for ids in self._ownership.holdings().values())
        if held != len(active_ids):
            raise LedgerIntegrityError(
                f"Holdings list {held} item ids for {len(active_ids)} active items"
            )
        orphaned = set(self._history.histories()) - active_ids
        if orphaned:
            raise LedgerIntegrityError(f"Histories without an item: {sorted(orphaned)}")
