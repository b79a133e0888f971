"""Ad moderation REST API routes.

Routes:
    POST   /api/v1/ads                     — Submit a new ad (pending)
    GET    /api/v1/ads/stats               — Counts per status
    POST   /api/v1/ads/bulk                — Apply one operation to many ads
    GET    /api/v1/ads/{id}                — Get ad details
    GET    /api/v1/ads/{id}/transitions    — Operations available to the caller
    GET    /api/v1/ads/{id}/events         — Audit trail
    POST   /api/v1/ads/{id}/approve        — pending -> approved
    POST   /api/v1/ads/{id}/publish        — approved | paused -> published
    POST   /api/v1/ads/{id}/reject         — non-terminal -> rejected
    POST   /api/v1/ads/{id}/pause          — published -> paused
    DELETE /api/v1/ads/{id}                — Administrative removal
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from marketplace_governance.api.deps import get_actor, get_ad_service, get_bulk_coordinator
from marketplace_governance.api.routes.common import bulk_response
from marketplace_governance.domain.enums import ResourceType
from marketplace_governance.domain.models import AdDraft
from marketplace_governance.domain.roles import Actor
from marketplace_governance.schemas.lifecycle import (
    AdResponse,
    AdStatsResponse,
    BulkRequest,
    BulkResultResponse,
    LifecycleEventResponse,
    RejectAdRequest,
    SubmitAdRequest,
    TransitionsResponse,
)
from marketplace_governance.services import AdLifecycleService, BulkOperationCoordinator

router = APIRouter(prefix="/api/v1/ads", tags=["Ads"])


# ---------------------------------------------------------------------------
# Submit
# ---------------------------------------------------------------------------


@router.post("", response_model=AdResponse, status_code=201, summary="Submit a new ad")
async def submit_ad(
    request: SubmitAdRequest,
    actor: Actor = Depends(get_actor),
    svc: AdLifecycleService = Depends(get_ad_service),
) -> AdResponse:
    draft = AdDraft(
        direction=request.direction,
        amount=request.amount,
        price=request.price,
        currency=request.currency,
        settlement_methods=tuple(request.settlement_methods),
        terms=request.terms,
        min_amount_per_transaction=request.min_amount_per_transaction,
        max_amount_per_transaction=request.max_amount_per_transaction,
    )
    ad = await svc.submit_ad(actor, draft)
    return AdResponse.model_validate(ad)


# ---------------------------------------------------------------------------
# Collection endpoints
# ---------------------------------------------------------------------------


@router.get("/stats", response_model=AdStatsResponse, summary="Ad counts per status")
async def ad_stats(svc: AdLifecycleService = Depends(get_ad_service)) -> AdStatsResponse:
    return AdStatsResponse(**await svc.stats())


@router.post("/bulk", response_model=BulkResultResponse, summary="Bulk moderation")
async def bulk_ads(
    request: BulkRequest,
    actor: Actor = Depends(get_actor),
    coordinator: BulkOperationCoordinator = Depends(get_bulk_coordinator),
) -> BulkResultResponse:
    """Apply approve/publish/reject/pause/delete to many ads.

    Always 200 when the request itself is well-formed; inspect `failed`.
    """
    result = await coordinator.apply_bulk(
        actor,
        request.ids,
        request.operation,
        resource_type=ResourceType.AD,
        reason=request.reason,
    )
    return bulk_response(result)


# ---------------------------------------------------------------------------
# Single ad
# ---------------------------------------------------------------------------


@router.get("/{ad_id}", response_model=AdResponse, summary="Get ad details")
async def get_ad(ad_id: str, svc: AdLifecycleService = Depends(get_ad_service)) -> AdResponse:
    return AdResponse.model_validate(await svc.get_ad(ad_id))


@router.get(
    "/{ad_id}/transitions",
    response_model=TransitionsResponse,
    summary="Operations available to the caller",
)
async def ad_transitions(
    ad_id: str,
    actor: Actor = Depends(get_actor),
    svc: AdLifecycleService = Depends(get_ad_service),
) -> TransitionsResponse:
    ad = await svc.get_ad(ad_id)
    allowed = svc.list_transitions_for(actor, ad)
    return TransitionsResponse(
        resource_id=ad.id, status=ad.status, allowed=sorted(k.value for k in allowed)
    )


@router.get(
    "/{ad_id}/events", response_model=list[LifecycleEventResponse], summary="Audit trail"
)
async def ad_events(
    ad_id: str, svc: AdLifecycleService = Depends(get_ad_service)
) -> list[LifecycleEventResponse]:
    return [LifecycleEventResponse.model_validate(e) for e in await svc.get_events(ad_id)]


@router.post("/{ad_id}/approve", response_model=AdResponse, summary="Approve a pending ad")
async def approve_ad(
    ad_id: str,
    actor: Actor = Depends(get_actor),
    svc: AdLifecycleService = Depends(get_ad_service),
) -> AdResponse:
    return AdResponse.model_validate(await svc.approve(actor, ad_id))


@router.post("/{ad_id}/publish", response_model=AdResponse, summary="Publish an ad")
async def publish_ad(
    ad_id: str,
    actor: Actor = Depends(get_actor),
    svc: AdLifecycleService = Depends(get_ad_service),
) -> AdResponse:
    return AdResponse.model_validate(await svc.publish(actor, ad_id))


@router.post("/{ad_id}/reject", response_model=AdResponse, summary="Reject an ad")
async def reject_ad(
    ad_id: str,
    request: RejectAdRequest | None = None,
    actor: Actor = Depends(get_actor),
    svc: AdLifecycleService = Depends(get_ad_service),
) -> AdResponse:
    reason = request.reason if request is not None else None
    return AdResponse.model_validate(await svc.reject(actor, ad_id, reason))


@router.post("/{ad_id}/pause", response_model=AdResponse, summary="Pause a published ad")
async def pause_ad(
    ad_id: str,
    actor: Actor = Depends(get_actor),
    svc: AdLifecycleService = Depends(get_ad_service),
) -> AdResponse:
    return AdResponse.model_validate(await svc.pause(actor, ad_id))


@router.delete("/{ad_id}", status_code=204, summary="Remove an ad")
async def delete_ad(
    ad_id: str,
    actor: Actor = Depends(get_actor),
    svc: AdLifecycleService = Depends(get_ad_service),
) -> None:
    await svc.delete(actor, ad_id)
