"""FastAPI dependency injection providers.

These are used with Depends() in route handlers to inject the acting user,
the lifecycle store, the services, and configuration.
"""

from __future__ import annotations

from functools import lru_cache
from typing import TYPE_CHECKING

import structlog
from fastapi import Depends, Header

from marketplace_governance.config import Settings, get_settings
from marketplace_governance.domain.roles import Actor
from marketplace_governance.infrastructure.database.engine import get_async_session
from marketplace_governance.infrastructure.database.repositories import SqlLifecycleStore
from marketplace_governance.infrastructure.memory_store import InMemoryLifecycleStore
from marketplace_governance.services import (
    AdLifecycleService,
    BulkOperationCoordinator,
    TransactionLifecycleService,
)

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from marketplace_governance.domain.store_protocol import LifecycleStore


def get_app_settings() -> Settings:
    """Provide the application settings."""
    return get_settings()


@lru_cache(maxsize=1)
def get_memory_store() -> InMemoryLifecycleStore:
    """Process-wide store for the `memory` backend."""
    return InMemoryLifecycleStore()


async def get_store(
    settings: Settings = Depends(get_app_settings),
) -> AsyncGenerator[LifecycleStore, None]:
    """Yield the configured store; SQL stores share the request's session."""
    if settings.store_backend == "memory":
        yield get_memory_store()
        return
    async for session in get_async_session():
        yield SqlLifecycleStore(session)


async def get_actor(
    x_actor_id: str = Header(..., description="Identifier of the calling user"),
    x_actor_roles: str | None = Header(
        default=None,
        description="Roles as a JSON list, a bracketed list, or a comma list",
    ),
) -> Actor:
    """Resolve the caller from request headers."""
    actor = Actor.from_raw(x_actor_id, x_actor_roles)
    structlog.contextvars.bind_contextvars(actor=actor.id)
    return actor


def get_ad_service(
    store: LifecycleStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
) -> AdLifecycleService:
    return AdLifecycleService(store, settings)


def get_transaction_service(
    store: LifecycleStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
) -> TransactionLifecycleService:
    return TransactionLifecycleService(store, settings)


def get_bulk_coordinator(
    ads: AdLifecycleService = Depends(get_ad_service),
    transactions: TransactionLifecycleService = Depends(get_transaction_service),
    settings: Settings = Depends(get_app_settings),
) -> BulkOperationCoordinator:
    return BulkOperationCoordinator(ads, transactions, settings)
