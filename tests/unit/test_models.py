"""Tests for certimarket data models — immutability and serialization."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from certimarket.models import (
    EVENT_TYPE_MAP,
    EventKind,
    Item,
    LedgerSnapshot,
    MarketPolicy,
    PurchaseReceipt,
    Transaction,
    TransactionKind,
)


class TestItem:
    def test_frozen(self):
        item = Item(item_id=1, name="Watch", serial_number="SN-1", owner="alice")
        with pytest.raises(ValidationError):
            item.owner = "bob"

    def test_inactive_without_owner(self):
        assert not Item(item_id=1, name="Watch", serial_number="SN-1").is_active


class TestTransaction:
    def test_kind_serializes_as_string(self):
        entry = Transaction(item_id=1, new_owner="alice", kind=TransactionKind.REGISTRATION)
        assert entry.model_dump(mode="json")["kind"] == "registration"


class TestPolicy:
    def test_defaults(self):
        policy = MarketPolicy()
        assert policy.fee_basis_points == 250
        assert policy.effective_fee_basis_points == 250

    def test_fee_disabled(self):
        assert MarketPolicy(charge_platform_fee=False).effective_fee_basis_points == 0

    def test_bounds(self):
        with pytest.raises(ValidationError):
            MarketPolicy(fee_basis_points=-1)

    def test_receipt_tuple(self):
        receipt = PurchaseReceipt(
            item_id=1, seller="a", buyer="b", price=1_000,
            fee_amount=25, seller_amount=975, refund=200,
        )
        assert receipt.as_tuple() == (25, 975, 200)


class TestEvents:
    def test_every_kind_mapped(self):
        assert set(EVENT_TYPE_MAP) == set(EventKind)
        for kind, model in EVENT_TYPE_MAP.items():
            assert model.model_fields["event_kind"].default == kind


class TestLedgerSnapshot:
    def test_json_roundtrip_keeps_int_history_keys(self):
        entry = Transaction(item_id=3, new_owner="alice", kind=TransactionKind.REGISTRATION)
        snapshot = LedgerSnapshot(
            administrator="admin",
            platform_wallet="platform",
            escrow_account="market:escrow",
            histories={3: [entry]},
        )
        restored = LedgerSnapshot.model_validate_json(snapshot.model_dump_json())
        assert list(restored.histories) == [3]
        assert restored.histories[3][0] == entry
