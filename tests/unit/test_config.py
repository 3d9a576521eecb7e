"""Tests for market settings — env-driven configuration."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from certimarket.config import MarketSettings


class TestMarketSettings:
    def test_defaults(self):
        settings = MarketSettings()
        assert settings.environment == "development"
        assert settings.log_level == "INFO"
        assert settings.fee_basis_points == 250
        assert settings.require_registration is True
        assert settings.charge_platform_fee is True

    def test_default_paths(self):
        settings = MarketSettings()
        assert settings.state_path == Path(".certimarket/state.json")
        assert settings.deployments_dir == Path(".certimarket/deployments")

    def test_is_production(self):
        assert MarketSettings().is_production is False
        assert MarketSettings(environment="production").is_production is True

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("CERTIMARKET_FEE_BASIS_POINTS", "300")
        monkeypatch.setenv("CERTIMARKET_REQUIRE_REGISTRATION", "false")
        monkeypatch.setenv("CERTIMARKET_ADMINISTRATOR", "0xA11CE")
        settings = MarketSettings()
        assert settings.fee_basis_points == 300
        assert settings.require_registration is False
        assert settings.administrator == "0xA11CE"

    def test_fee_out_of_range(self):
        with pytest.raises(ValidationError):
            MarketSettings(fee_basis_points=10_001)

    def test_policy(self):
        policy = MarketSettings(fee_basis_points=100, charge_platform_fee=False).policy()
        assert policy.fee_basis_points == 100
        assert policy.effective_fee_basis_points == 0
