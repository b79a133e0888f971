"""Input validation applied before a resource is created or opened.

Validators collect every violation and raise a single ValidationError so the
caller can show the whole list at once.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING

from marketplace_governance.domain.enums import AdStatus
from marketplace_governance.domain.exceptions import (
    InvalidTransitionError,
    ValidationError,
)

if TYPE_CHECKING:
    from marketplace_governance.domain.models import Ad, AdDraft, TradingLimits


def _check_range(
    violations: list[str], label: str, value: Decimal, low: Decimal, high: Decimal
) -> None:
    if value <= 0:
        violations.append(f"{label} must be strictly positive")
    elif value < low:
        violations.append(f"{label} must be at least {low}")
    elif value > high:
        violations.append(f"{label} must not exceed {high}")


def validate_ad_draft(draft: AdDraft, limits: TradingLimits) -> None:
    """Validate the terms of a new ad.

    Raises:
        ValidationError: listing every violated rule.
    """
    violations: list[str] = []

    _check_range(
        violations, "amount", draft.amount, limits.min_trade_amount, limits.max_trade_amount
    )
    _check_range(violations, "price", draft.price, limits.min_price, limits.max_price)

    if not draft.currency.strip():
        violations.append("currency is required")
    if not [m for m in draft.settlement_methods if m.strip()]:
        violations.append("at least one settlement method is required")

    low = draft.min_amount_per_transaction
    high = draft.max_amount_per_transaction
    if low is not None and low <= 0:
        violations.append("min_amount_per_transaction must be strictly positive")
    if high is not None and high <= 0:
        violations.append("max_amount_per_transaction must be strictly positive")
    if low is not None and high is not None and low > high:
        violations.append("min_amount_per_transaction must not exceed max_amount_per_transaction")
    if high is not None and high > draft.amount:
        violations.append("max_amount_per_transaction must not exceed amount")
    if low is not None and low > draft.amount:
        violations.append("min_amount_per_transaction must not exceed amount")

    if violations:
        raise ValidationError("Invalid ad terms", violations=violations)


def validate_trade_request(
    ad: Ad, buyer_id: str, asset_amount: Decimal
) -> Decimal:
    """Check a buyer's request against a published ad; returns the fiat amount."""
    if ad.status != AdStatus.PUBLISHED:
        raise InvalidTransitionError(ad.status, "open_transaction")

    violations: list[str] = []
    if buyer_id == ad.owner_id:
        violations.append("buyer and seller must be different actors")
    if asset_amount <= 0:
        violations.append("amount must be strictly positive")
    if asset_amount > ad.amount:
        violations.append(f"amount must not exceed the ad amount {ad.amount}")
    if ad.min_amount_per_transaction is not None and asset_amount < ad.min_amount_per_transaction:
        violations.append(f"amount must be at least {ad.min_amount_per_transaction}")
    if ad.max_amount_per_transaction is not None and asset_amount > ad.max_amount_per_transaction:
        violations.append(f"amount must not exceed {ad.max_amount_per_transaction}")

    if violations:
        raise ValidationError("Invalid trade request", violations=violations)
    return asset_amount * ad.price


def resolve_expiry(
    created_at: datetime, expiry_minutes: int | None, limits: TradingLimits
) -> datetime:
    """Return the deadline for a new transaction."""
    minutes = limits.default_expiry_minutes if expiry_minutes is None else expiry_minutes
    if limits.allowed_expiry_minutes and minutes not in limits.allowed_expiry_minutes:
        allowed = ", ".join(str(m) for m in limits.allowed_expiry_minutes)
        raise ValidationError(
            f"Expiry window {minutes} minutes is not allowed",
            violations=[f"expiry_minutes must be one of: {allowed}"],
        )
    return created_at + timedelta(minutes=minutes)
