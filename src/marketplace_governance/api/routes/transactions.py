"""Transaction settlement REST API routes.

Routes:
    POST   /api/v1/transactions                      — Open a transaction on a published ad
    GET    /api/v1/transactions/stats                — Counts per status and volume
    POST   /api/v1/transactions/bulk                 — Apply one operation to many transactions
    GET    /api/v1/transactions/{id}                 — Get transaction details
    GET    /api/v1/transactions/{id}/transitions     — Operations available to the caller
    GET    /api/v1/transactions/{id}/events          — Audit trail
    POST   /api/v1/transactions/{id}/mark-paid       — pending -> paid
    POST   /api/v1/transactions/{id}/release         — paid -> released
    POST   /api/v1/transactions/{id}/cancel          — pending | paid -> cancelled
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from marketplace_governance.api.deps import (
    get_actor,
    get_bulk_coordinator,
    get_transaction_service,
)
from marketplace_governance.api.routes.common import bulk_response
from marketplace_governance.domain.enums import ResourceType
from marketplace_governance.domain.roles import Actor
from marketplace_governance.schemas.lifecycle import (
    BulkRequest,
    BulkResultResponse,
    LifecycleEventResponse,
    MarkPaidRequest,
    OpenTransactionRequest,
    TransactionResponse,
    TransactionStatsResponse,
    TransitionsResponse,
)
from marketplace_governance.services import (
    BulkOperationCoordinator,
    TransactionLifecycleService,
)

router = APIRouter(prefix="/api/v1/transactions", tags=["Transactions"])


@router.post(
    "", response_model=TransactionResponse, status_code=201, summary="Open a transaction"
)
async def open_transaction(
    request: OpenTransactionRequest,
    actor: Actor = Depends(get_actor),
    svc: TransactionLifecycleService = Depends(get_transaction_service),
) -> TransactionResponse:
    tx = await svc.open_transaction(
        actor,
        request.ad_id,
        asset_amount=request.asset_amount,
        expiry_minutes=request.expiry_minutes,
    )
    return TransactionResponse.model_validate(tx)


@router.get(
    "/stats", response_model=TransactionStatsResponse, summary="Transaction statistics"
)
async def transaction_stats(
    svc: TransactionLifecycleService = Depends(get_transaction_service),
) -> TransactionStatsResponse:
    return TransactionStatsResponse(**await svc.stats())


@router.post("/bulk", response_model=BulkResultResponse, summary="Bulk settlement actions")
async def bulk_transactions(
    request: BulkRequest,
    actor: Actor = Depends(get_actor),
    coordinator: BulkOperationCoordinator = Depends(get_bulk_coordinator),
) -> BulkResultResponse:
    result = await coordinator.apply_bulk(
        actor,
        request.ids,
        request.operation,
        resource_type=ResourceType.TRANSACTION,
        payment_reference=request.payment_reference,
    )
    return bulk_response(result)


@router.get("/{transaction_id}", response_model=TransactionResponse, summary="Get details")
async def get_transaction(
    transaction_id: str,
    svc: TransactionLifecycleService = Depends(get_transaction_service),
) -> TransactionResponse:
    return TransactionResponse.model_validate(await svc.get_transaction(transaction_id))


@router.get(
    "/{transaction_id}/transitions",
    response_model=TransitionsResponse,
    summary="Operations available to the caller",
)
async def transaction_transitions(
    transaction_id: str,
    actor: Actor = Depends(get_actor),
    svc: TransactionLifecycleService = Depends(get_transaction_service),
) -> TransitionsResponse:
    tx = await svc.get_transaction(transaction_id)
    allowed = svc.list_transitions_for(actor, tx)
    return TransitionsResponse(
        resource_id=tx.id, status=tx.status, allowed=sorted(k.value for k in allowed)
    )


@router.get(
    "/{transaction_id}/events",
    response_model=list[LifecycleEventResponse],
    summary="Audit trail",
)
async def transaction_events(
    transaction_id: str,
    svc: TransactionLifecycleService = Depends(get_transaction_service),
) -> list[LifecycleEventResponse]:
    events = await svc.get_events(transaction_id)
    return [LifecycleEventResponse.model_validate(e) for e in events]


@router.post(
    "/{transaction_id}/mark-paid", response_model=TransactionResponse, summary="Mark paid"
)
async def mark_paid(
    transaction_id: str,
    request: MarkPaidRequest | None = None,
    actor: Actor = Depends(get_actor),
    svc: TransactionLifecycleService = Depends(get_transaction_service),
) -> TransactionResponse:
    reference = request.payment_reference if request is not None else None
    return TransactionResponse.model_validate(
        await svc.mark_paid(actor, transaction_id, reference)
    )


@router.post(
    "/{transaction_id}/release", response_model=TransactionResponse, summary="Release funds"
)
async def release_funds(
    transaction_id: str,
    actor: Actor = Depends(get_actor),
    svc: TransactionLifecycleService = Depends(get_transaction_service),
) -> TransactionResponse:
    return TransactionResponse.model_validate(await svc.release_funds(actor, transaction_id))


@router.post(
    "/{transaction_id}/cancel", response_model=TransactionResponse, summary="Cancel"
)
async def cancel_transaction(
    transaction_id: str,
    actor: Actor = Depends(get_actor),
    svc: TransactionLifecycleService = Depends(get_transaction_service),
) -> TransactionResponse:
    return TransactionResponse.model_validate(await svc.cancel(actor, transaction_id))
