"""Event bus — hashes and dispatches market notifications.

Handlers subscribe to one ``EventKind`` or, with ``kind=None``, to every
notification.  The engine publishes only after a mutation has committed,
so a failing handler cannot undo ledger state; its error is logged and
the remaining handlers still run.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable

from certimarket.core.hasher import canonical_json_bytes, sha256_hex
from certimarket.models.events import EVENT_TYPE_MAP, EventKind, MarketEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[MarketEvent], None]


class EventValidationError(ValueError):
    """Raised when a serialized notification fails validation."""


class EventBus:
    """Routes market notifications to registered handlers."""

    def __init__(self) -> None:
        self._handlers: dict[EventKind | None, list[EventHandler]] = {
            kind: [] for kind in EventKind
        }
        self._handlers[None] = []

    def subscribe(self, handler: EventHandler, kind: EventKind | None = None) -> None:
        """Register *handler* for one kind, or for all kinds when *kind* is None."""
        self._handlers[kind].append(handler)

    # ------------------------------------------------------------------
    # Publish (hash + route)
    # ------------------------------------------------------------------

    def prepare(self, event: MarketEvent) -> MarketEvent:
        """Return the event with payload_hash set."""
        payload_fields = event.model_dump(
            mode="json",
            exclude={"payload_hash", "event_id", "timestamp_utc"},
        )
        computed_hash = sha256_hex(canonical_json_bytes(payload_fields))
        return event.model_copy(update={"payload_hash": computed_hash})

    def publish(self, event: MarketEvent) -> MarketEvent:
        """Hash and dispatch an event.  Returns the prepared event."""
        prepared = self.prepare(event)
        handlers = [*self._handlers[prepared.event_kind], *self._handlers[None]]
        for handler in handlers:
            try:
                handler(prepared)
            except Exception:
                logger.exception(
                    "Handler %r failed on %s event %s.",
                    handler,
                    prepared.event_kind.value,
                    prepared.event_id,
                )
        return prepared

    # ------------------------------------------------------------------
    # Receive (deserialize + validate)
    # ------------------------------------------------------------------

    @staticmethod
    def serialize(event: MarketEvent) -> bytes:
        """Serialize an event to canonical JSON bytes."""
        return canonical_json_bytes(event.model_dump(mode="json"))

    @staticmethod
    def receive(raw_json: bytes | str) -> MarketEvent:
        """Deserialize and validate a raw JSON notification."""
        if isinstance(raw_json, bytes):
            raw_json = raw_json.decode("utf-8")

        try:
            data = json.loads(raw_json)
        except json.JSONDecodeError as exc:
            raise EventValidationError(f"Invalid JSON: {exc}") from exc

        if not isinstance(data, dict):
            raise EventValidationError(
                f"Event must be a JSON object, got {type(data).__name__}"
            )

        kind_str = data.get("event_kind")
        if not kind_str:
            raise EventValidationError("Missing event_kind field")

        try:
            kind = EventKind(kind_str)
        except ValueError as exc:
            raise EventValidationError(f"Unknown event_kind: {kind_str!r}") from exc

        try:
            return EVENT_TYPE_MAP[kind].model_validate(data)
        except Exception as exc:
            raise EventValidationError(f"Event validation failed: {exc}") from exc
