"""Helpers shared by the resource routers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from marketplace_governance.schemas.lifecycle import BulkFailureResponse, BulkResultResponse

if TYPE_CHECKING:
    from marketplace_governance.services import BulkResult


def bulk_response(result: BulkResult) -> BulkResultResponse:
    return BulkResultResponse(
        operation=result.operation.value,
        succeeded=result.succeeded,
        failed=[
            BulkFailureResponse(id=f.resource_id, error=f.code, message=f.error.message)
            for f in result.failed
        ],
    )
