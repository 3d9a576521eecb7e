"""Local JSON persistence for the market ledger and deployment records.

Directory layout::

    .certimarket/
        state.json                       — latest LedgerSnapshot
        deployments/
            deployment-{timestamp}.json  — one record per deploy
            deployment-latest.json       — copy of the newest record
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from certimarket.core.engine import MarketplaceEngine
from certimarket.core.event_bus import EventBus
from certimarket.core.payments import PaymentRail
from certimarket.models.state import LedgerSnapshot

logger = logging.getLogger(__name__)


class StateStore:
    """Saves and restores a ``MarketplaceEngine`` as a JSON snapshot.

    Parameters
    ----------
    state_path:
        Path of the snapshot file.  Parent directories are created on save.
    """

    def __init__(self, state_path: Path) -> None:
        self._state_path = Path(state_path)

    @property
    def path(self) -> Path:
        return self._state_path

    def exists(self) -> bool:
        return self._state_path.exists()

    def save(self, engine: MarketplaceEngine) -> LedgerSnapshot:
        """Write the engine's committed state to the snapshot file."""
        snapshot = engine.to_snapshot()
        self._state_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._state_path.with_suffix(self._state_path.suffix + ".tmp")
        tmp_path.write_text(snapshot.model_dump_json(indent=2), encoding="utf-8")
        tmp_path.replace(self._state_path)
        logger.debug(
            "Persisted market state (%d items) to %s.",
            snapshot.last_item_id,
            self._state_path,
        )
        return snapshot

    def load(
        self,
        *,
        payments: PaymentRail | None = None,
        events: EventBus | None = None,
    ) -> MarketplaceEngine:
        """Rebuild the engine from the snapshot file.

        Raises ``FileNotFoundError`` if nothing has been saved yet and
        ``LedgerIntegrityError`` if a saved history chain does not verify or
        items, holdings and histories disagree about an owner.
        """
        if not self._state_path.exists():
            raise FileNotFoundError(f"No market state at {self._state_path}")
        snapshot = LedgerSnapshot.model_validate_json(
            self._state_path.read_text(encoding="utf-8")
        )
        engine = MarketplaceEngine.from_snapshot(snapshot, payments=payments, events=events)
        logger.info(
            "Loaded market state (%d items, %d participants) from %s.",
            snapshot.last_item_id,
            len(snapshot.participants),
            self._state_path,
        )
        return engine


def write_deployment_record(
    engine: MarketplaceEngine, deployments_dir: Path
) -> tuple[Path, Path]:
    """Record how a market was initialized.

    Writes a timestamped record plus ``deployment-latest.json`` and
    returns both paths.
    """
    now = datetime.now(timezone.utc)
    counts = engine.counts()
    record: dict[str, Any] = {
        "timestamp": now.isoformat(),
        "deployment": {
            "administrator": engine.administrator,
            "platform_wallet": engine.platform_wallet,
            "escrow_account": engine.escrow_account,
            "policy": engine.policy.model_dump(mode="json"),
        },
        "verification": {
            "total_items": counts.total,
            "administrator_is_certifier": engine.is_certifier(engine.administrator),
            "platform_wallet_is_certifier": engine.is_certifier(engine.platform_wallet),
        },
    }

    deployments_dir = Path(deployments_dir)
    deployments_dir.mkdir(parents=True, exist_ok=True)
    payload = json.dumps(record, indent=2, sort_keys=True)
    record_path = deployments_dir / f"deployment-{now.strftime('%Y%m%d-%H%M%S-%f')}.json"
    latest_path = deployments_dir / "deployment-latest.json"
    record_path.write_text(payload, encoding="utf-8")
    latest_path.write_text(payload, encoding="utf-8")
    logger.info("Wrote deployment record %s.", record_path)
    return record_path, latest_path
