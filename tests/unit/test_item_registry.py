"""Unit tests for the ItemRegistry — ids, serial uniqueness, state changes."""

from __future__ import annotations

import pytest

from certimarket.core.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    StateError,
)
from certimarket.core.item_registry import ItemRegistry


@pytest.fixture
def registry() -> ItemRegistry:
    return ItemRegistry()


def _register(registry: ItemRegistry, serial: str = "SN-001", owner: str = "alice") -> int:
    return registry.register("Watch", 1_000, "Swiss", serial, "ipfs://x", owner)


class TestRegister:
    def test_ids_are_sequential_from_one(self, registry: ItemRegistry):
        assert registry.last_item_id == 0
        assert _register(registry, "SN-001") == 1
        assert _register(registry, "SN-002") == 2
        assert registry.last_item_id == 2

    def test_record_fields(self, registry: ItemRegistry):
        item = registry.get(_register(registry))
        assert item.name == "Watch"
        assert item.estimated_value == 1_000
        assert item.serial_number == "SN-001"
        assert item.image_ref == "ipfs://x"
        assert item.owner == "alice"
        assert item.certified is False
        assert item.certified_by is None
        assert item.for_sale is False
        assert item.sale_price == 0

    def test_duplicate_serial_conflicts(self, registry: ItemRegistry):
        _register(registry, "SN-001")
        with pytest.raises(ConflictError):
            _register(registry, "SN-001", owner="bob")
        assert registry.last_item_id == 1
        assert registry.get(1).owner == "alice"

    @pytest.mark.parametrize(
        "name,value,serial",
        [("", 10, "SN-1"), ("Watch", 10, ""), ("Watch", -1, "SN-1")],
    )
    def test_invalid_input_rejected(self, registry: ItemRegistry, name, value, serial):
        with pytest.raises(StateError):
            registry.register(name, value, "", serial, "", "alice")
        assert registry.last_item_id == 0

    def test_zero_value_allowed(self, registry: ItemRegistry):
        item_id = registry.register("Mug", 0, "", "SN-0", "", "alice")
        assert registry.get(item_id).estimated_value == 0


class TestLookup:
    def test_unknown_id_not_found(self, registry: ItemRegistry):
        with pytest.raises(NotFoundError):
            registry.get(1)
        assert not registry.exists(0)

    def test_find_by_serial(self, registry: ItemRegistry):
        _register(registry, "SN-001")
        assert registry.find_by_serial("SN-001").item_id == 1
        assert registry.find_by_serial("SN-404") is None

    def test_iteration_in_id_order(self, registry: ItemRegistry):
        for serial in ("A", "B", "C"):
            _register(registry, serial)
        assert [item.item_id for item in registry] == [1, 2, 3]


class TestStateChanges:
    def test_certify_overwrites_certifier(self, registry: ItemRegistry):
        item_id = _register(registry)
        registry.certify(item_id, "cert1")
        item = registry.certify(item_id, "cert2")
        assert item.certified is True
        assert item.certified_by == "cert2"

    def test_set_for_sale_requires_owner(self, registry: ItemRegistry):
        item_id = _register(registry)
        with pytest.raises(AuthorizationError, match="Not owner"):
            registry.set_for_sale(item_id, 500, "bob")
        item = registry.set_for_sale(item_id, 500, "alice")
        assert item.for_sale is True
        assert item.sale_price == 500

    def test_reassign_clears_listing(self, registry: ItemRegistry):
        item_id = _register(registry)
        registry.set_for_sale(item_id, 500, "alice")
        item = registry.reassign_owner(item_id, "bob")
        assert item.owner == "bob"
        assert item.for_sale is False
        assert item.serial_number == "SN-001"

    def test_rollback_restores_previous_record(self, registry: ItemRegistry):
        item_id = _register(registry)
        registry.commit()
        mark = registry.mark()
        registry.set_for_sale(item_id, 500, "alice")
        registry.reassign_owner(item_id, "bob")
        _register(registry, "SN-002")
        registry.rollback(mark)
        item = registry.get(item_id)
        assert item.owner == "alice"
        assert item.for_sale is False
        assert registry.last_item_id == 1
        assert registry.find_by_serial("SN-002") is None
