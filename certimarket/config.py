"""Market configuration — env-driven via pydantic-settings.

Reads from a .env file and CERTIMARKET_* environment variables.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from certimarket.models.policy import (
    BASIS_POINTS_DENOMINATOR,
    DEFAULT_FEE_BASIS_POINTS,
    MarketPolicy,
)


class MarketSettings(BaseSettings):
    """Market configuration with environment variable overrides.

    Examples
    --------
    Override via environment::

        export CERTIMARKET_ADMINISTRATOR=0xA11CE
        export CERTIMARKET_PLATFORM_WALLET=0xFEE5
        export CERTIMARKET_FEE_BASIS_POINTS=300
        export CERTIMARKET_REQUIRE_REGISTRATION=false

    Or via .env file::

        CERTIMARKET_STATE_PATH=/data/market.json
        CERTIMARKET_LOG_LEVEL=DEBUG
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="CERTIMARKET_",
        env_file_encoding="utf-8",
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "INFO"
    debug: bool = False

    # Storage paths
    state_path: Path = Path(".certimarket/state.json")
    deployments_dir: Path = Path(".certimarket/deployments")

    # Identities fixed at initialization
    administrator: str = "admin"
    platform_wallet: str = "platform"
    escrow_account: str = "market:escrow"

    # Contract variant
    fee_basis_points: int = Field(
        default=DEFAULT_FEE_BASIS_POINTS, ge=0, le=BASIS_POINTS_DENOMINATOR
    )
    require_registration: bool = True
    charge_platform_fee: bool = True

    @property
    def is_production(self) -> bool:
        """Whether running in production mode."""
        return self.environment == "production"

    def policy(self) -> MarketPolicy:
        """The MarketPolicy these settings describe."""
        return MarketPolicy(
            fee_basis_points=self.fee_basis_points,
            require_registration=self.require_registration,
            charge_platform_fee=self.charge_platform_fee,
        )


# Module-level singleton; import as `from certimarket.config import settings`
settings = MarketSettings()
