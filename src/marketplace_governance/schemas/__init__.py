"""Pydantic API schemas."""

from marketplace_governance.schemas.lifecycle import (
    AdResponse,
    AdStatsResponse,
    BulkFailureResponse,
    BulkRequest,
    BulkResultResponse,
    HealthResponse,
    LifecycleEventResponse,
    MarkPaidRequest,
    OpenTransactionRequest,
    RejectAdRequest,
    SubmitAdRequest,
    TransactionResponse,
    TransactionStatsResponse,
    TransitionsResponse,
)

__all__ = [
    "AdResponse",
    "AdStatsResponse",
    "BulkFailureResponse",
    "BulkRequest",
    "BulkResultResponse",
    "HealthResponse",
    "LifecycleEventResponse",
    "MarkPaidRequest",
    "OpenTransactionRequest",
    "RejectAdRequest",
    "SubmitAdRequest",
    "TransactionResponse",
    "TransactionStatsResponse",
    "TransitionsResponse",
]
