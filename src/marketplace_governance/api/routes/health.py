"""Health check endpoint.

Verifies the configured store is reachable. Used by container healthchecks
and load balancers.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from marketplace_governance.api.deps import get_app_settings
from marketplace_governance.config import Settings
from marketplace_governance.logging_config import get_logger
from marketplace_governance.schemas.lifecycle import HealthResponse

router = APIRouter(tags=["Health"])
logger = get_logger(__name__)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Returns the health status of the application and its store.",
)
async def health_check(settings: Settings = Depends(get_app_settings)) -> HealthResponse:
    if settings.store_backend == "memory":
        return HealthResponse(status="ok", store="memory")

    try:
        from marketplace_governance.infrastructure.database.engine import ping_db

        await ping_db()
        store_status = "healthy"
    except Exception as exc:
        store_status = f"unhealthy: {exc}"
        logger.error("health.db_check_failed", error=str(exc))

    overall = "ok" if store_status == "healthy" else "degraded"
    return HealthResponse(status=overall, store=store_status)
