"""Unit tests for StateStore persistence and deployment records."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from certimarket.core.engine import MarketplaceEngine
from certimarket.core.state_store import StateStore, write_deployment_record
from certimarket.core.transaction_log import LedgerIntegrityError


class TestStateStore:
    def test_missing_state(self, state_store: StateStore):
        assert not state_store.exists()
        with pytest.raises(FileNotFoundError):
            state_store.load()

    def test_save_and_load(self, state_store: StateStore, engine, listed_item):
        engine.purchase_item(listed_item, 1_100, caller="bob")
        state_store.save(engine)
        assert state_store.exists()

        loaded = state_store.load()
        assert loaded.get_item(listed_item).owner == "bob"
        assert loaded.history_of(listed_item) == engine.history_of(listed_item)
        assert loaded.balance_of("bob") == 9_000
        assert loaded.balance_of("platform") == 25
        assert loaded.is_certifier("cert")

    def test_save_creates_parent_dirs(self, tmp_path: Path, engine):
        store = StateStore(tmp_path / "nested" / "dir" / "state.json")
        store.save(engine)
        assert store.path.exists()
        assert not store.path.with_suffix(".json.tmp").exists()

    def test_tampered_file_rejected(self, state_store: StateStore, engine, listed_item):
        engine.purchase_item(listed_item, 1_000, caller="bob")
        state_store.save(engine)

        data = json.loads(state_store.path.read_text(encoding="utf-8"))
        data["histories"][str(listed_item)][1]["new_owner"] = "mallory"
        state_store.path.write_text(json.dumps(data), encoding="utf-8")

        with pytest.raises(LedgerIntegrityError):
            state_store.load()


class TestDeploymentRecord:
    def test_writes_record_and_latest(self, tmp_path: Path, engine):
        record_path, latest_path = write_deployment_record(engine, tmp_path / "deployments")
        assert record_path.exists()
        assert latest_path.name == "deployment-latest.json"
        record = json.loads(latest_path.read_text(encoding="utf-8"))
        assert record["deployment"]["administrator"] == "admin"
        assert record["deployment"]["platform_wallet"] == "platform"
        assert record["deployment"]["policy"]["fee_basis_points"] == 250
        assert record["verification"]["administrator_is_certifier"] is True
        assert record["verification"]["platform_wallet_is_certifier"] is True
        assert record["verification"]["total_items"] == 0


class TestCrossReferences:
    """Loading rejects state whose items, holdings and histories disagree."""

    def test_owner_differs_from_history(self, engine, listed_item):
        snapshot = engine.to_snapshot()
        forged = snapshot.items[0].model_copy(update={"owner": "bob"})
        with pytest.raises(LedgerIntegrityError, match="history ends with 'alice'"):
            MarketplaceEngine.from_snapshot(snapshot.model_copy(update={"items": [forged]}))

    def test_item_missing_from_holdings(self, engine, listed_item):
        snapshot = engine.to_snapshot().model_copy(update={"holdings": {}})
        with pytest.raises(LedgerIntegrityError, match="missing from the holdings"):
            MarketplaceEngine.from_snapshot(snapshot)

    def test_item_held_twice(self, engine, listed_item):
        snapshot = engine.to_snapshot().model_copy(
            update={"holdings": {"alice": [listed_item], "bob": [listed_item]}}
        )
        with pytest.raises(LedgerIntegrityError, match="Holdings list 2"):
            MarketplaceEngine.from_snapshot(snapshot)

    def test_history_without_item(self, engine, listed_item):
        snapshot = engine.to_snapshot().model_copy(update={"items": [], "holdings": {}})
        with pytest.raises(LedgerIntegrityError, match="Histories without an item"):
            MarketplaceEngine.from_snapshot(snapshot)

    def test_edited_state_file_rejected(self, state_store: StateStore, engine, listed_item):
        state_store.save(engine)
        data = json.loads(state_store.path.read_text(encoding="utf-8"))
        data["items"][0]["owner"] = "bob"
        state_store.path.write_text(json.dumps(data), encoding="utf-8")

        with pytest.raises(LedgerIntegrityError):
            state_store.load()

    def test_consistent_state_loads(self, state_store: StateStore, engine, listed_item):
        engine.purchase_item(listed_item, 1_000, caller="bob")
        engine.transfer_item(listed_item, "carol", caller="bob")
        state_store.save(engine)
        assert state_store.load().items_of("carol") == [listed_item]
