"""FastAPI application entry point for the marketplace governance engine.

Lifecycle:
    1. Startup: Initialize logging, then the database (tables in dev mode).
    2. Running: Serve the moderation and settlement API.
    3. Shutdown: Dispose of the database engine.

Run with:
    uvicorn marketplace_governance.main:app --reload --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI

from marketplace_governance.config import get_settings
from marketplace_governance.logging_config import get_logger, setup_logging

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application startup and shutdown lifecycle."""
    settings = get_settings()

    setup_logging(settings)
    logger = get_logger(__name__)
    logger.info("app.starting", env=settings.app_env, store=settings.store_backend)

    from marketplace_governance.infrastructure.database.engine import close_db, init_db

    if settings.store_backend == "sql":
        await init_db()

    logger.info("app.started", host=settings.app_host, port=settings.app_port)

    yield

    logger.info("app.shutting_down")
    await close_db()
    logger.info("app.stopped")


def create_app() -> FastAPI:
    """Build the FastAPI app with middleware and the resource routers."""
    settings = get_settings()

    app = FastAPI(
        title="Marketplace Governance",
        description=(
            "Authorization and transition engine for P2P crypto-for-cash "
            "ads and transactions."
        ),
        version="0.1.0",
        lifespan=lifespan,
        debug=settings.app_debug,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )

    from marketplace_governance.api.middleware import setup_middleware

    setup_middleware(app)

    from marketplace_governance.api.routes.ads import router as ads_router
    from marketplace_governance.api.routes.health import router as health_router
    from marketplace_governance.api.routes.transactions import router as transactions_router

    app.include_router(health_router)
    app.include_router(ads_router)
    app.include_router(transactions_router)

    return app


# The app instance used by Uvicorn
app = create_app()
