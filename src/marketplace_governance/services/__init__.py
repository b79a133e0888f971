"""Application services — the lifecycle operations callers invoke."""

from marketplace_governance.services.ad_service import AdLifecycleService
from marketplace_governance.services.bulk_service import (
    BulkFailure,
    BulkOperationCoordinator,
    BulkResult,
)
from marketplace_governance.services.transaction_service import TransactionLifecycleService

__all__ = [
    "AdLifecycleService",
    "BulkFailure",
    "BulkOperationCoordinator",
    "BulkResult",
    "TransactionLifecycleService",
]
