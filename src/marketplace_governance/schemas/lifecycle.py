"""Pydantic schemas for the moderation and settlement API.

These schemas define the request/response shapes for the REST API. They are
separate from the domain snapshots and the ORM rows to keep clean boundaries
between layers. Business validation (bounds, ordering of min/max) stays in
the domain so HTTP and programmatic callers get identical errors.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from marketplace_governance.domain.enums import AdDirection

# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------


class SubmitAdRequest(BaseModel):
    """Request body for posting a new ad (stored as pending)."""

    direction: AdDirection = Field(..., description="buy or sell")
    amount: Decimal = Field(..., description="Tradable asset amount", examples=["100"])
    price: Decimal = Field(..., description="Unit price in fiat", examples=["10.5"])
    currency: str = Field(..., max_length=128, description="Currency reference")
    settlement_methods: list[str] = Field(
        ...,
        description="Accepted settlement method references (at least one)",
        examples=[["/api/payment_methods/1"]],
    )
    terms: str = Field(default="", max_length=5000)
    min_amount_per_transaction: Decimal | None = None
    max_amount_per_transaction: Decimal | None = None


class RejectAdRequest(BaseModel):
    reason: str | None = Field(
        default=None,
        max_length=2000,
        description="Admin note; a default message is used when omitted",
    )


class MarkPaidRequest(BaseModel):
    payment_reference: str | None = Field(default=None, max_length=128)


class OpenTransactionRequest(BaseModel):
    """Request body for a buyer taking a published ad."""

    ad_id: str
    asset_amount: Decimal | None = Field(
        default=None, description="Defaults to the full ad amount"
    )
    expiry_minutes: int | None = Field(
        default=None, description="Must be one of the configured expiry windows"
    )


class BulkRequest(BaseModel):
    """Apply one operation to many ids; per-id failures do not stop the batch."""

    ids: list[str] = Field(..., description="Resource ids, processed in order")
    operation: str = Field(..., examples=["approve", "mark_paid"])
    reason: str | None = Field(default=None, max_length=2000)
    payment_reference: str | None = Field(default=None, max_length=128)


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------


class AdResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    owner_id: str
    direction: str
    amount: Decimal
    price: Decimal
    currency: str
    settlement_methods: list[str]
    terms: str
    min_amount_per_transaction: Decimal | None
    max_amount_per_transaction: Decimal | None
    status: str
    admin_note: str | None
    approved_by: str | None
    created_at: datetime
    updated_at: datetime
    approved_at: datetime | None
    published_at: datetime | None


class TransactionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    ad_id: str
    buyer_id: str
    seller_id: str
    asset_amount: Decimal
    fiat_amount: Decimal
    status: str
    payment_reference: str | None
    expires_at: datetime | None
    paid_at: datetime | None
    released_at: datetime | None
    created_at: datetime
    updated_at: datetime


class LifecycleEventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    resource_type: str
    resource_id: str
    event_type: str
    old_status: str | None
    new_status: str
    actor: str
    metadata: dict
    created_at: datetime


class TransitionsResponse(BaseModel):
    """Operations the caller may perform on the resource right now."""

    resource_id: str
    status: str
    allowed: list[str]


class BulkFailureResponse(BaseModel):
    id: str
    error: str
    message: str


class BulkResultResponse(BaseModel):
    operation: str
    succeeded: list[str]
    failed: list[BulkFailureResponse]


class AdStatsResponse(BaseModel):
    total: int
    pending: int
    approved: int
    published: int
    paused: int
    rejected: int
    completed: int
    cancelled: int


class TransactionStatsResponse(BaseModel):
    total: int
    pending: int
    paid: int
    released: int
    completed: int
    cancelled: int
    disputed: int
    total_asset_amount: Decimal
    total_fiat_amount: Decimal


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    store: str = "unknown"
