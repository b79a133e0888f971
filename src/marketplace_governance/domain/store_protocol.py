"""Store Protocol.

Defines the persistence interface the lifecycle services consume. Concrete
stores only need to match the shape:
    - infrastructure/database/repositories.py  (SQLAlchemy, compare-and-set UPDATE)
    - infrastructure/memory_store.py           (asyncio.Lock guarded dicts)

The `save_*` methods are the atomicity boundary: the write is applied only if
the stored status still equals `expected_status`. `commit` and `rollback`
close a unit of work; the bulk coordinator ends one per item.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from marketplace_governance.domain.enums import (
        AdStatus,
        ResourceType,
        TransactionStatus,
    )
    from marketplace_governance.domain.models import Ad, LifecycleEvent, Transaction


@runtime_checkable
class LifecycleStore(Protocol):
    """Protocol every backing store must satisfy."""

    async def get_ad(self, ad_id: str) -> Ad | None: ...

    async def list_ads(self, status: AdStatus | None = None) -> list[Ad]: ...

    async def add_ad(self, ad: Ad) -> Ad: ...

    async def save_ad(self, ad: Ad, expected_status: AdStatus) -> Ad:
        """Persist `ad` if the stored status is still `expected_status`.

        Raises:
            ConflictError: the status changed since it was read.
            ResourceNotFoundError: the ad no longer exists.
        """
        ...

    async def delete_ad(self, ad_id: str) -> None: ...

    async def get_transaction(self, transaction_id: str) -> Transaction | None: ...

    async def list_transactions(
        self, status: TransactionStatus | None = None
    ) -> list[Transaction]: ...

    async def add_transaction(self, transaction: Transaction) -> Transaction: ...

    async def save_transaction(
        self, transaction: Transaction, expected_status: TransactionStatus
    ) -> Transaction:
        """Compare-and-set counterpart of `save_ad`."""
        ...

    async def append_event(self, event: LifecycleEvent) -> LifecycleEvent: ...

    async def get_events(
        self, resource_type: ResourceType, resource_id: str
    ) -> list[LifecycleEvent]: ...

    async def commit(self) -> None:
        """Make every write since the last commit durable."""
        ...

    async def rollback(self) -> None:
        """Discard every write since the last commit."""
        ...
