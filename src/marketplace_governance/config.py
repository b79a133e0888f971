"""Application configuration via pydantic-settings.

Reads from .env file or environment variables. All settings are validated
at startup. Trading bounds are exposed to the domain layer as an immutable
TradingLimits value so the lifecycle code never imports pydantic.

Usage:
    from marketplace_governance.config import get_settings
    settings = get_settings()
    print(settings.trading_limits.min_trade_amount)
"""

from __future__ import annotations

from decimal import Decimal
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from marketplace_governance.domain.models import TradingLimits


class Settings(BaseSettings):
    """Central configuration for the marketplace governance engine."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Application ---
    app_env: Literal["development", "staging", "production"] = "development"
    app_debug: bool = True
    app_log_level: str = "DEBUG"
    app_host: str = "0.0.0.0"
    app_port: int = 8000

    # --- Store ---
    store_backend: Literal["sql", "memory"] = "sql"
    database_url: str = (
        "postgresql+asyncpg://marketplace:marketplace_dev"
        "@localhost:5432/marketplace_governance"
    )
    db_pool_size: int = 10
    db_max_overflow: int = 20
    db_pool_timeout: int = 30
    db_echo_sql: bool = False

    # --- Trading bounds ---
    min_trade_amount: Decimal = Decimal("10")
    max_trade_amount: Decimal = Decimal("1000000")
    min_price: Decimal = Decimal("0.01")
    max_price: Decimal = Decimal("1000000")
    default_expiry_minutes: int = 30
    allowed_expiry_minutes: str = "15,30,60,120"

    # --- Moderation ---
    max_bulk_items: int = 500
    approve_note: str = "Approved by administrator"
    reject_note: str = "Rejected by administrator"
    bulk_reject_note: str = "Rejected by bulk action"

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def allowed_expiry_minute_list(self) -> list[int]:
        """Parse comma-separated expiry windows into a sorted list."""
        if not self.allowed_expiry_minutes:
            return []
        return sorted(
            {int(m.strip()) for m in self.allowed_expiry_minutes.split(",") if m.strip()}
        )

    @property
    def trading_limits(self) -> TradingLimits:
        return TradingLimits(
            min_trade_amount=self.min_trade_amount,
            max_trade_amount=self.max_trade_amount,
            min_price=self.min_price,
            max_price=self.max_price,
            default_expiry_minutes=self.default_expiry_minutes,
            allowed_expiry_minutes=tuple(self.allowed_expiry_minute_list),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached singleton of the application settings."""
    return Settings()
