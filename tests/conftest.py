"""Shared test fixtures for certimarket."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from certimarket.core.access_registry import AccessRegistry
from certimarket.core.engine import MarketplaceEngine
from certimarket.core.event_bus import EventBus
from certimarket.core.payments import InMemoryPaymentRail
from certimarket.core.state_store import StateStore
from certimarket.models.events import MarketEvent
from certimarket.models.policy import MarketPolicy

ADMIN = "admin"
PLATFORM = "platform"


@pytest.fixture
def rail() -> InMemoryPaymentRail:
    """Provide a payment rail where bob and carol can afford purchases."""
    return InMemoryPaymentRail({"bob": 10_000, "carol": 10_000})


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def published(bus: EventBus) -> list[MarketEvent]:
    """Every notification the bus publishes, in order."""
    seen: list[MarketEvent] = []
    bus.subscribe(seen.append)
    return seen


@pytest.fixture
def make_engine(
    rail: InMemoryPaymentRail, bus: EventBus
) -> Callable[..., MarketplaceEngine]:
    """Factory fixture: build an engine wired to the shared rail and bus."""

    def _factory(policy: MarketPolicy | None = None) -> MarketplaceEngine:
        return MarketplaceEngine(
            AccessRegistry(ADMIN, PLATFORM),
            platform_wallet=PLATFORM,
            policy=policy,
            payments=rail,
            events=bus,
        )

    return _factory


@pytest.fixture
def engine(make_engine: Callable[..., MarketplaceEngine]) -> MarketplaceEngine:
    """An engine with alice, bob and carol registered and cert appointed."""
    eng = make_engine()
    for name in ("alice", "bob", "carol"):
        eng.register_participant(caller=name)
    eng.add_certifier("cert", caller=ADMIN)
    return eng


@pytest.fixture
def listed_item(engine: MarketplaceEngine) -> int:
    """Item 1 owned by alice, listed at 1000."""
    item_id = engine.register_item(
        "Vintage Watch", 1_000, "Swiss", "SN-001", "ipfs://QmWatch", caller="alice"
    )
    engine.list_item_for_sale(item_id, 1_000, caller="alice")
    return item_id


@pytest.fixture
def state_store(tmp_path: Path) -> StateStore:
    return StateStore(tmp_path / "state.json")
