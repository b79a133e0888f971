"""Shared test fixtures for the marketplace governance test suite.

Provides:
    - Settings pinned to the in-memory backend (no .env lookup)
    - Admin / user / anonymous actors
    - Snapshot factories for ads and transactions
    - Services wired to a fresh InMemoryLifecycleStore
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from marketplace_governance.config import Settings
from marketplace_governance.domain.enums import AdDirection, AdStatus, TransactionStatus
from marketplace_governance.domain.models import Ad, AdDraft, Transaction
from marketplace_governance.domain.roles import Actor
from marketplace_governance.infrastructure.memory_store import InMemoryLifecycleStore
from marketplace_governance.services import (
    AdLifecycleService,
    BulkOperationCoordinator,
    TransactionLifecycleService,
)

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=UTC)


@pytest.fixture
def now() -> datetime:
    """The frozen clock every service fixture uses."""
    return NOW

# ---------------------------------------------------------------------------
# Configuration & actors
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, store_backend="memory", max_bulk_items=50)


@pytest.fixture
def admin() -> Actor:
    return Actor.from_raw(1, ["ROLE_ADMIN", "ROLE_USER"])


@pytest.fixture
def user() -> Actor:
    return Actor.from_raw(2, "ROLE_USER")


@pytest.fixture
def other_user() -> Actor:
    return Actor.from_raw(3, "['ROLE_USER']")


@pytest.fixture
def anonymous() -> Actor:
    return Actor.from_raw(99, None)


# ---------------------------------------------------------------------------
# Snapshot factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_ad():
    counter = iter(range(1, 10_000))

    def _make(status: AdStatus = AdStatus.PENDING, **overrides) -> Ad:
        fields = {
            "id": f"ad-{next(counter)}",
            "owner_id": "2",
            "direction": AdDirection.SELL,
            "amount": Decimal("100"),
            "price": Decimal("10.50"),
            "currency": "/api/currencies/1",
            "settlement_methods": ("/api/payment_methods/1",),
            "created_at": NOW - timedelta(days=1),
            "updated_at": NOW - timedelta(days=1),
            "status": status,
        }
        fields.update(overrides)
        return Ad(**fields)

    return _make


@pytest.fixture
def make_transaction():
    counter = iter(range(1, 10_000))

    def _make(status: TransactionStatus = TransactionStatus.PENDING, **overrides) -> Transaction:
        fields = {
            "id": f"tx-{next(counter)}",
            "ad_id": "ad-1",
            "buyer_id": "3",
            "seller_id": "2",
            "asset_amount": Decimal("50"),
            "fiat_amount": Decimal("525.00"),
            "created_at": NOW - timedelta(minutes=10),
            "updated_at": NOW - timedelta(minutes=10),
            "expires_at": NOW + timedelta(minutes=20),
            "status": status,
        }
        fields.update(overrides)
        return Transaction(**fields)

    return _make


@pytest.fixture
def sample_draft() -> AdDraft:
    return AdDraft(
        direction=AdDirection.SELL,
        amount=Decimal("100"),
        price=Decimal("10.50"),
        currency="/api/currencies/1",
        settlement_methods=("/api/payment_methods/1", "/api/payment_methods/2"),
        terms="Bank transfer only",
        min_amount_per_transaction=Decimal("10"),
        max_amount_per_transaction=Decimal("50"),
    )


# ---------------------------------------------------------------------------
# Services over the in-memory store
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> InMemoryLifecycleStore:
    return InMemoryLifecycleStore()


@pytest.fixture
def ad_service(store, settings) -> AdLifecycleService:
    return AdLifecycleService(store, settings, clock=lambda: NOW)


@pytest.fixture
def tx_service(store, settings) -> TransactionLifecycleService:
    return TransactionLifecycleService(store, settings, clock=lambda: NOW)


@pytest.fixture
def coordinator(ad_service, tx_service, settings) -> BulkOperationCoordinator:
    return BulkOperationCoordinator(ad_service, tx_service, settings)
