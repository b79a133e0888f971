"""Immutable resource snapshots handed between the store and the services.

Only the lifecycle services produce modified copies (via dataclasses.replace)
and hand them back to the store; every other component treats them as
read-only.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime  # noqa: TC003 - dataclass field annotations
from decimal import Decimal  # noqa: TC003

from marketplace_governance.domain.enums import AdDirection, AdStatus, TransactionStatus


@dataclass(frozen=True)
class TradingLimits:
    """Validation bounds supplied by the configuration layer."""

    min_trade_amount: Decimal
    max_trade_amount: Decimal
    min_price: Decimal
    max_price: Decimal
    default_expiry_minutes: int
    allowed_expiry_minutes: tuple[int, ...]


@dataclass(frozen=True)
class AdDraft:
    """Owner-supplied terms of a new ad, validated before it is stored."""

    direction: AdDirection
    amount: Decimal
    price: Decimal
    currency: str
    settlement_methods: tuple[str, ...]
    terms: str = ""
    min_amount_per_transaction: Decimal | None = None
    max_amount_per_transaction: Decimal | None = None


@dataclass(frozen=True)
class Ad:
    id: str
    owner_id: str
    direction: AdDirection
    amount: Decimal
    price: Decimal
    currency: str
    settlement_methods: tuple[str, ...]
    created_at: datetime
    updated_at: datetime
    status: AdStatus = AdStatus.PENDING
    terms: str = ""
    min_amount_per_transaction: Decimal | None = None
    max_amount_per_transaction: Decimal | None = None
    admin_note: str | None = None
    approved_by: str | None = None
    approved_at: datetime | None = None
    published_at: datetime | None = None


@dataclass(frozen=True)
class Transaction:
    id: str
    ad_id: str
    buyer_id: str
    seller_id: str
    asset_amount: Decimal
    fiat_amount: Decimal
    created_at: datetime
    updated_at: datetime
    status: TransactionStatus = TransactionStatus.PENDING
    payment_reference: str | None = None
    expires_at: datetime | None = None
    paid_at: datetime | None = None
    released_at: datetime | None = None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at <= now


@dataclass(frozen=True)
class LifecycleEvent:
    """Append-only audit record of one accepted transition."""

    resource_type: str
    resource_id: str
    event_type: str
    new_status: str
    actor: str
    created_at: datetime
    old_status: str | None = None
    metadata: dict = field(default_factory=dict)
