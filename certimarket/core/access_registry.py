"""Access registry — administrator, certifiers and registered participants.

The administrator is fixed at construction.  The administrator and the
platform wallet are implicit certifiers; further certifiers can only be
added by the administrator.  Participant registration is self-service
and happens at most once per identity.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from certimarket.core.errors import AuthorizationError, ConflictError
from certimarket.core.journal import Journaled

logger = logging.getLogger(__name__)


class AccessRegistry(Journaled):
    """Role sets consulted by the engine on every call.

    Parameters
    ----------
    administrator:
        The single administrator identity.  Immutable.
    platform_wallet:
        Wallet receiving platform fees; implicitly a certifier.
    certifiers:
        Explicitly added certifiers (used when restoring saved state).
    participants:
        Already registered participants (used when restoring saved state).
    """

    def __init__(
        self,
        administrator: str,
        platform_wallet: str | None = None,
        *,
        certifiers: Iterable[str] = (),
        participants: Iterable[str] = (),
    ) -> None:
        super().__init__()
        if not administrator:
            raise ValueError("administrator identity must not be empty")
        self._administrator = administrator
        self._platform_wallet = platform_wallet
        self._implicit_certifiers = frozenset(
            identity for identity in (administrator, platform_wallet) if identity
        )
        self._certifiers: set[str] = set(certifiers)
        self._participants: set[str] = set(participants)

    @property
    def administrator(self) -> str:
        return self._administrator

    @property
    def platform_wallet(self) -> str | None:
        return self._platform_wallet

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def register_participant(self, participant: str) -> None:
        """Mark *participant* as registered.

        Raises ``ConflictError`` if the identity is already registered.
        """
        if participant in self._participants:
            raise ConflictError(f"Participant {participant!r} is already registered")
        self._participants.add(participant)
        self._record(lambda: self._participants.discard(participant))
        logger.debug("Registered participant %s.", participant)

    def add_certifier(self, certifier: str, caller: str) -> bool:
        """Grant certifier rights to *certifier*.

        Only the administrator may call this.  Re-adding an existing
        certifier is a no-op.  Returns ``True`` when the set changed.
        """
        if not self.is_administrator(caller):
            raise AuthorizationError(
                f"Not administrator: {caller!r} cannot add certifiers"
            )
        if self.is_certifier(certifier):
            return False
        self._certifiers.add(certifier)
        self._record(lambda: self._certifiers.discard(certifier))
        logger.debug("Added certifier %s.", certifier)
        return True

    # ------------------------------------------------------------------
    # Predicates
    # ------------------------------------------------------------------

    def is_administrator(self, identity: str) -> bool:
        return identity == self._administrator

    def is_certifier(self, identity: str) -> bool:
        return identity in self._implicit_certifiers or identity in self._certifiers

    def is_registered(self, identity: str) -> bool:
        return identity in self._participants

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def certifiers(self) -> list[str]:
        """All certifiers, implicit ones included, sorted."""
        return sorted(self._implicit_certifiers | self._certifiers)

    def added_certifiers(self) -> list[str]:
        """Certifiers granted by the administrator, sorted."""
        return sorted(self._certifiers - self._implicit_certifiers)

    def participants(self) -> list[str]:
        return sorted(self._participants)
