"""SQLAlchemy 2.0 ORM models for the marketplace governance engine.

Three tables:
    1. ads               — Buy/sell offers under moderation.
    2. transactions      — Exchanges executed against a published ad.
    3. lifecycle_events  — Append-only audit log of every accepted transition.

Design decisions:
    - String UUIDs as primary keys so ids are identical across backends.
    - Decimal for amounts (no floating point rounding errors).
    - Portable JSON columns so the same schema runs on PostgreSQL and SQLite.
    - CHECK constraints on status values and on positive amounts.
    - lifecycle_events has no foreign key: audit rows outlive deleted ads.
"""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal  # noqa: TC003 - needed at runtime by SQLAlchemy Mapped[]

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    Index,
    Numeric,
    String,
    Text,
    TypeDecorator,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from marketplace_governance.domain.enums import AdStatus, TransactionStatus


class UTCDateTime(TypeDecorator):
    """Timezone-aware datetime that comes back aware even from SQLite."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_result_value(self, value, dialect):  # noqa: ANN001
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def _status_check(column: str, statuses: type[AdStatus] | type[TransactionStatus], name: str):
    allowed = ", ".join(f"'{s.value}'" for s in statuses)
    return CheckConstraint(f"{column} IN ({allowed})", name=name)


def _utcnow() -> datetime:
    return datetime.now(UTC)


# ---------------------------------------------------------------------------
# 1. ads
# ---------------------------------------------------------------------------
class AdRecord(Base):
    """A buy or sell offer posted by an owner and moderated by admins."""

    __tablename__ = "ads"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    owner_id: Mapped[str] = mapped_column(String(64), nullable=False)

    # --- Terms ---
    direction: Mapped[str] = mapped_column(String(4), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 6), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(18, 6), nullable=False)
    currency: Mapped[str] = mapped_column(String(128), nullable=False)
    settlement_methods: Mapped[list] = mapped_column(
        JSON,
        nullable=False,
        comment="References of the accepted settlement methods",
    )
    terms: Mapped[str] = mapped_column(Text, nullable=False, default="")
    min_amount_per_transaction: Mapped[Decimal | None] = mapped_column(
        Numeric(18, 6), nullable=True
    )
    max_amount_per_transaction: Mapped[Decimal | None] = mapped_column(
        Numeric(18, 6), nullable=True
    )

    # --- Moderation (guarded by AdStateMachine) ---
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=AdStatus.PENDING.value
    )
    admin_note: Mapped[str | None] = mapped_column(Text, nullable=True)
    approved_by: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # --- Timestamps ---
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=_utcnow)
    approved_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    published_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    __table_args__ = (
        _status_check("status", AdStatus, "ck_ad_valid_status"),
        CheckConstraint("amount > 0", name="ck_ad_positive_amount"),
        CheckConstraint("price > 0", name="ck_ad_positive_price"),
        Index("idx_ad_status", "status"),
        Index("idx_ad_owner", "owner_id"),
        Index("idx_ad_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<AdRecord id={self.id} status={self.status} amount={self.amount}>"


# ---------------------------------------------------------------------------
# 2. transactions
# ---------------------------------------------------------------------------
class TransactionRecord(Base):
    """One buyer/seller exchange against an ad."""

    __tablename__ = "transactions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    ad_id: Mapped[str] = mapped_column(String(36), nullable=False)
    buyer_id: Mapped[str] = mapped_column(String(64), nullable=False)
    seller_id: Mapped[str] = mapped_column(String(64), nullable=False)

    # --- Financials (frozen once paid) ---
    asset_amount: Mapped[Decimal] = mapped_column(Numeric(18, 6), nullable=False)
    fiat_amount: Mapped[Decimal] = mapped_column(Numeric(18, 6), nullable=False)
    payment_reference: Mapped[str | None] = mapped_column(String(128), nullable=True)

    # --- Status (guarded by TransactionStateMachine) ---
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=TransactionStatus.PENDING.value
    )

    # --- Timestamps ---
    expires_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    released_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=_utcnow)

    __table_args__ = (
        _status_check("status", TransactionStatus, "ck_transaction_valid_status"),
        CheckConstraint("buyer_id <> seller_id", name="ck_transaction_distinct_parties"),
        CheckConstraint("asset_amount > 0", name="ck_transaction_positive_amount"),
        Index("idx_transaction_status", "status"),
        Index("idx_transaction_ad", "ad_id"),
        Index("idx_transaction_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<TransactionRecord id={self.id} status={self.status}>"


# ---------------------------------------------------------------------------
# 3. lifecycle_events (Append-Only Audit Log)
# ---------------------------------------------------------------------------
class LifecycleEventRecord(Base):
    """Immutable audit record of one accepted transition.

    This table is APPEND-ONLY. No UPDATE or DELETE operations are permitted
    at the application level.
    """

    __tablename__ = "lifecycle_events"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    resource_type: Mapped[str] = mapped_column(String(16), nullable=False)
    resource_id: Mapped[str] = mapped_column(String(36), nullable=False)
    event_type: Mapped[str] = mapped_column(String(40), nullable=False)
    old_status: Mapped[str | None] = mapped_column(String(20), nullable=True)
    new_status: Mapped[str] = mapped_column(String(20), nullable=False)
    actor: Mapped[str] = mapped_column(String(64), nullable=False)
    metadata_json: Mapped[dict | None] = mapped_column("metadata", JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=_utcnow)

    __table_args__ = (
        Index("idx_event_resource", "resource_type", "resource_id"),
        Index("idx_event_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<LifecycleEventRecord {self.resource_type}:{self.resource_id} "
            f"{self.old_status}->{self.new_status}>"
        )
