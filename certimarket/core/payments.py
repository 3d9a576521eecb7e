"""Payment rail boundary and sale-price settlement.

The ledger never holds value itself.  Fund movements go through a
``PaymentRail``; a purchase routes the sale price through an escrow
account and pays out from there.  Completed movements are kept by the
engine until its outermost command commits, so a failed command can send
them back with ``reverse_movements``.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from certimarket.core.errors import PaymentError
from certimarket.models.policy import BASIS_POINTS_DENOMINATOR

logger = logging.getLogger(__name__)

Movement = tuple[str, str, int]  # (sender, recipient, amount)


@runtime_checkable
class PaymentRail(Protocol):
    """Moves value between accounts synchronously.

    ``transfer`` must either complete or raise; a raised exception means
    no value moved.
    """

    def transfer(self, sender: str, recipient: str, amount: int) -> None: ...

    def balance_of(self, account: str) -> int: ...


def split_sale_price(price: int, fee_basis_points: int) -> tuple[int, int]:
    """Return ``(fee_amount, seller_amount)`` for a sale at *price*.

    The fee is floored, so ``fee_amount + seller_amount == price`` exactly.

    Examples
    --------
    >>> split_sale_price(1000, 250)
    (25, 975)
    >>> split_sale_price(39, 250)
    (0, 39)
    """
    fee_amount = price * fee_basis_points // BASIS_POINTS_DENOMINATOR
    return fee_amount, price - fee_amount


class InMemoryPaymentRail:
    """Balance-sheet rail used by tests, the CLI and demos.

    Parameters
    ----------
    balances:
        Opening balances, e.g. restored from a saved snapshot.
    """

    def __init__(self, balances: dict[str, int] | None = None) -> None:
        self._balances: dict[str, int] = dict(balances or {})

    def deposit(self, account: str, amount: int) -> int:
        """Credit *account* with new funds and return its balance."""
        if amount <= 0:
            raise PaymentError(f"Deposit must be positive, got {amount}")
        self._balances[account] = self.balance_of(account) + amount
        return self._balances[account]

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        if amount < 0:
            raise PaymentError(f"Transfer amount must not be negative, got {amount}")
        available = self.balance_of(sender)
        if available < amount:
            raise PaymentError(
                f"Insufficient funds: {sender!r} holds {available}, needs {amount}"
            )
        self._balances[sender] = available - amount
        self._balances[recipient] = self.balance_of(recipient) + amount

    def balance_of(self, account: str) -> int:
        return self._balances.get(account, 0)

    def balances(self) -> dict[str, int]:
        """Copy of every non-zero balance."""
        return {account: amount for account, amount in self._balances.items() if amount}


def reverse_movements(
    rail: PaymentRail,
    movements: Sequence[Movement],
    cause: BaseException | None = None,
) -> None:
    """Send every movement back, newest first.

    Every reversal is attempted even if an earlier one fails.  Failures are
    logged and reported together as one ``PaymentError`` chained from
    *cause*.
    """
    failed = 0
    for sender, recipient, amount in reversed(movements):
        try:
            rail.transfer(recipient, sender, amount)
        except Exception:
            failed += 1
            logger.exception(
                "Could not reverse %d from %s back to %s.", amount, recipient, sender
            )
        else:
            logger.debug("Reversed %d from %s back to %s.", amount, recipient, sender)
    if failed:
        error = PaymentError(
            f"{failed} of {len(movements)} fund movements could not be reversed"
        )
        if cause is None:
            raise error
        raise error from cause
