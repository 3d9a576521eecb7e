"""Market error taxonomy.

Every rejected precondition surfaces as one of these distinguishable kinds.
A raised ``MarketError`` always means the call was terminal and the ledger
state is exactly what it was before the call.
"""

from __future__ import annotations


class MarketError(Exception):
    """Base class for all rejected marketplace operations."""


class AuthorizationError(MarketError):
    """Caller lacks the required role (administrator, certifier, owner, participant)."""


class NotFoundError(MarketError):
    """Referenced item or serial number does not exist."""


class ConflictError(MarketError):
    """Duplicate serial number or duplicate participant registration."""


class StateError(MarketError):
    """Item is in the wrong state for the request (not listed, underpaid, ...)."""


class PaymentError(MarketError):
    """The payment rail rejected a fund movement."""
