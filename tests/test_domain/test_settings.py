"""Tests for configuration parsing."""

from __future__ import annotations

from decimal import Decimal

from marketplace_governance.config import Settings


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings(_env_file=None)
        assert settings.store_backend == "sql"
        assert settings.max_bulk_items == 500
        assert settings.is_development

    def test_expiry_windows_are_parsed_and_sorted(self) -> None:
        settings = Settings(_env_file=None, allowed_expiry_minutes="60, 15,,30,15")
        assert settings.allowed_expiry_minute_list == [15, 30, 60]

    def test_trading_limits(self) -> None:
        settings = Settings(_env_file=None, min_trade_amount="25", default_expiry_minutes=15)
        limits = settings.trading_limits
        assert limits.min_trade_amount == Decimal("25")
        assert limits.default_expiry_minutes == 15
        assert limits.allowed_expiry_minutes == (15, 30, 60, 120)

    def test_environment_override(self, monkeypatch) -> None:
        monkeypatch.setenv("STORE_BACKEND", "memory")
        monkeypatch.setenv("MAX_BULK_ITEMS", "10")
        settings = Settings(_env_file=None)
        assert settings.store_backend == "memory"
        assert settings.max_bulk_items == 10
