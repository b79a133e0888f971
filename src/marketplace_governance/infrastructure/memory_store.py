"""In-process LifecycleStore.

Backs the `memory` store backend and the service test-suite. A single
asyncio.Lock makes each compare-and-set atomic with respect to other
coroutines on the same event loop.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from marketplace_governance.domain.exceptions import ConflictError, ResourceNotFoundError

if TYPE_CHECKING:
    from marketplace_governance.domain.enums import (
        AdStatus,
        ResourceType,
        TransactionStatus,
    )
    from marketplace_governance.domain.models import Ad, LifecycleEvent, Transaction


class InMemoryLifecycleStore:
    """Dict-backed store; snapshots are immutable so no copying is needed."""

    def __init__(self) -> None:
        self._ads: dict[str, Ad] = {}
        self._transactions: dict[str, Transaction] = {}
        self._events: list[LifecycleEvent] = []
        self._lock = asyncio.Lock()

    # --- Ads ---

    async def get_ad(self, ad_id: str) -> Ad | None:
        return self._ads.get(ad_id)

    async def list_ads(self, status: AdStatus | None = None) -> list[Ad]:
        ads = sorted(self._ads.values(), key=lambda a: a.created_at, reverse=True)
        return [a for a in ads if status is None or a.status == status]

    async def add_ad(self, ad: Ad) -> Ad:
        async with self._lock:
            self._ads[ad.id] = ad
        return ad

    async def save_ad(self, ad: Ad, expected_status: AdStatus) -> Ad:
        async with self._lock:
            current = self._ads.get(ad.id)
            if current is None:
                raise ResourceNotFoundError("ad", ad.id)
            if current.status != expected_status:
                raise ConflictError(ad.id, expected_status, current.status)
            self._ads[ad.id] = ad
        return ad

    async def delete_ad(self, ad_id: str) -> None:
        async with self._lock:
            if self._ads.pop(ad_id, None) is None:
                raise ResourceNotFoundError("ad", ad_id)

    # --- Transactions ---

    async def get_transaction(self, transaction_id: str) -> Transaction | None:
        return self._transactions.get(transaction_id)

    async def list_transactions(
        self, status: TransactionStatus | None = None
    ) -> list[Transaction]:
        txs = sorted(self._transactions.values(), key=lambda t: t.created_at, reverse=True)
        return [t for t in txs if status is None or t.status == status]

    async def add_transaction(self, transaction: Transaction) -> Transaction:
        async with self._lock:
            self._transactions[transaction.id] = transaction
        return transaction

    async def save_transaction(
        self, transaction: Transaction, expected_status: TransactionStatus
    ) -> Transaction:
        async with self._lock:
            current = self._transactions.get(transaction.id)
            if current is None:
                raise ResourceNotFoundError("transaction", transaction.id)
            if current.status != expected_status:
                raise ConflictError(transaction.id, expected_status, current.status)
            self._transactions[transaction.id] = transaction
        return transaction

    # --- Audit events ---

    async def append_event(self, event: LifecycleEvent) -> LifecycleEvent:
        self._events.append(event)
        return event

    async def get_events(
        self, resource_type: ResourceType, resource_id: str
    ) -> list[LifecycleEvent]:
        return [
            e
            for e in self._events
            if e.resource_type == resource_type and e.resource_id == resource_id
        ]

    # --- Unit of work ---

    async def commit(self) -> None:
        """Writes are applied immediately; nothing to flush."""

    async def rollback(self) -> None:
        """Each write is atomic on its own; nothing is pending."""
