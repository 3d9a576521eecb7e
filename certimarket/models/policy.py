"""Market policy and purchase settlement models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

BASIS_POINTS_DENOMINATOR = 10_000
DEFAULT_FEE_BASIS_POINTS = 250  # 2.5%


class MarketPolicy(BaseModel):
    """Contract variant toggles, fixed when the market is initialized.

    ``require_registration`` gates item registration, purchases and transfer
    recipients on prior participant registration.  ``charge_platform_fee``
    decides whether a sale routes ``fee_basis_points`` of the price to the
    platform wallet.
    """

    model_config = ConfigDict(frozen=True)

    fee_basis_points: int = Field(
        default=DEFAULT_FEE_BASIS_POINTS, ge=0, le=BASIS_POINTS_DENOMINATOR
    )
    require_registration: bool = True
    charge_platform_fee: bool = True

    @property
    def effective_fee_basis_points(self) -> int:
        return self.fee_basis_points if self.charge_platform_fee else 0


class PurchaseReceipt(BaseModel):
    """How the value of a completed sale was split."""

    model_config = ConfigDict(frozen=True)

    item_id: int
    seller: str
    buyer: str
    price: int
    fee_amount: int
    seller_amount: int
    refund: int = 0

    def as_tuple(self) -> tuple[int, int, int]:
        """Return ``(fee_amount, seller_amount, refund)``."""
        return self.fee_amount, self.seller_amount, self.refund
