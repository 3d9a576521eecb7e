"""Undo journal shared by the in-memory ledger components.

Every mutation a component performs records its exact inverse.  The
engine takes a ``mark()`` of each component before an operation, calls
``rollback(mark)`` if the operation is rejected part-way through, and
``commit()`` once the outermost operation has completed.  Rollback
replays inverses newest-first, so the component returns to precisely
the state it had at the mark.
"""

from __future__ import annotations

from collections.abc import Callable


class Journaled:
    """Mixin giving a component mark/rollback/commit checkpoints."""

    def __init__(self) -> None:
        self._undo: list[Callable[[], None]] = []

    def mark(self) -> int:
        """Return a checkpoint for a later ``rollback``."""
        return len(self._undo)

    def rollback(self, mark: int) -> None:
        """Undo every mutation recorded after *mark*."""
        while len(self._undo) > mark:
            self._undo.pop()()

    def commit(self) -> None:
        """Forget recorded inverses; the current state becomes final."""
        self._undo.clear()

    def _record(self, undo: Callable[[], None]) -> None:
        self._undo.append(undo)
