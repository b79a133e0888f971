"""SQLAlchemy implementation of the LifecycleStore Protocol.

The store accepts an AsyncSession. The request dependency commits it once at
the end; `commit` and `rollback` let the bulk coordinator end a unit of work
after every item instead. Status writes are compare-and-set:

    UPDATE ads SET ... WHERE id = :id AND status = :expected

A zero rowcount means either the row vanished (ResourceNotFoundError) or
another writer moved it first (ConflictError).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import delete, select, update

from marketplace_governance.domain.enums import AdDirection, AdStatus, TransactionStatus
from marketplace_governance.domain.exceptions import ConflictError, ResourceNotFoundError
from marketplace_governance.domain.models import Ad, LifecycleEvent, Transaction
from marketplace_governance.infrastructure.database.orm_models import (
    AdRecord,
    LifecycleEventRecord,
    TransactionRecord,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from marketplace_governance.domain.enums import ResourceType


# ---------------------------------------------------------------------------
# Row <-> snapshot mapping
# ---------------------------------------------------------------------------


def _ad_values(ad: Ad) -> dict:
    return {
        "owner_id": ad.owner_id,
        "direction": ad.direction.value,
        "amount": ad.amount,
        "price": ad.price,
        "currency": ad.currency,
        "settlement_methods": list(ad.settlement_methods),
        "terms": ad.terms,
        "min_amount_per_transaction": ad.min_amount_per_transaction,
        "max_amount_per_transaction": ad.max_amount_per_transaction,
        "status": ad.status.value,
        "admin_note": ad.admin_note,
        "approved_by": ad.approved_by,
        "created_at": ad.created_at,
        "updated_at": ad.updated_at,
        "approved_at": ad.approved_at,
        "published_at": ad.published_at,
    }


def _ad_from_row(row: AdRecord) -> Ad:
    return Ad(
        id=row.id,
        owner_id=row.owner_id,
        direction=AdDirection(row.direction),
        amount=row.amount,
        price=row.price,
        currency=row.currency,
        settlement_methods=tuple(row.settlement_methods),
        terms=row.terms,
        min_amount_per_transaction=row.min_amount_per_transaction,
        max_amount_per_transaction=row.max_amount_per_transaction,
        status=AdStatus(row.status),
        admin_note=row.admin_note,
        approved_by=row.approved_by,
        created_at=row.created_at,
        updated_at=row.updated_at,
        approved_at=row.approved_at,
        published_at=row.published_at,
    )


def _transaction_values(tx: Transaction) -> dict:
    return {
        "ad_id": tx.ad_id,
        "buyer_id": tx.buyer_id,
        "seller_id": tx.seller_id,
        "asset_amount": tx.asset_amount,
        "fiat_amount": tx.fiat_amount,
        "payment_reference": tx.payment_reference,
        "status": tx.status.value,
        "expires_at": tx.expires_at,
        "paid_at": tx.paid_at,
        "released_at": tx.released_at,
        "created_at": tx.created_at,
        "updated_at": tx.updated_at,
    }


def _transaction_from_row(row: TransactionRecord) -> Transaction:
    return Transaction(
        id=row.id,
        ad_id=row.ad_id,
        buyer_id=row.buyer_id,
        seller_id=row.seller_id,
        asset_amount=row.asset_amount,
        fiat_amount=row.fiat_amount,
        payment_reference=row.payment_reference,
        status=TransactionStatus(row.status),
        expires_at=row.expires_at,
        paid_at=row.paid_at,
        released_at=row.released_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class SqlLifecycleStore:
    """Data access for ads, transactions and their audit trail."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    # --- Ads ---

    async def get_ad(self, ad_id: str) -> Ad | None:
        result = await self._session.execute(
            select(AdRecord)
            .where(AdRecord.id == ad_id)
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        return _ad_from_row(row) if row is not None else None

    async def list_ads(self, status: AdStatus | None = None) -> list[Ad]:
        stmt = select(AdRecord).order_by(AdRecord.created_at.desc())
        if status is not None:
            stmt = stmt.where(AdRecord.status == status.value)
        result = await self._session.execute(stmt.execution_options(populate_existing=True))
        return [_ad_from_row(row) for row in result.scalars().all()]

    async def add_ad(self, ad: Ad) -> Ad:
        self._session.add(AdRecord(id=ad.id, **_ad_values(ad)))
        await self._session.flush()
        return ad

    async def save_ad(self, ad: Ad, expected_status: AdStatus) -> Ad:
        result = await self._session.execute(
            update(AdRecord)
            .where(AdRecord.id == ad.id, AdRecord.status == expected_status.value)
            .values(**_ad_values(ad))
        )
        if result.rowcount == 0:
            actual = await self._current_status(AdRecord, ad.id)
            if actual is None:
                raise ResourceNotFoundError("ad", ad.id)
            raise ConflictError(ad.id, expected_status.value, actual)
        return ad

    async def delete_ad(self, ad_id: str) -> None:
        result = await self._session.execute(delete(AdRecord).where(AdRecord.id == ad_id))
        if result.rowcount == 0:
            raise ResourceNotFoundError("ad", ad_id)

    # --- Transactions ---

    async def get_transaction(self, transaction_id: str) -> Transaction | None:
        result = await self._session.execute(
            select(TransactionRecord)
            .where(TransactionRecord.id == transaction_id)
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        return _transaction_from_row(row) if row is not None else None

    async def list_transactions(
        self, status: TransactionStatus | None = None
    ) -> list[Transaction]:
        stmt = select(TransactionRecord).order_by(TransactionRecord.created_at.desc())
        if status is not None:
            stmt = stmt.where(TransactionRecord.status == status.value)
        result = await self._session.execute(stmt.execution_options(populate_existing=True))
        return [_transaction_from_row(row) for row in result.scalars().all()]

    async def add_transaction(self, transaction: Transaction) -> Transaction:
        self._session.add(
            TransactionRecord(id=transaction.id, **_transaction_values(transaction))
        )
        await self._session.flush()
        return transaction

    async def save_transaction(
        self, transaction: Transaction, expected_status: TransactionStatus
    ) -> Transaction:
        result = await self._session.execute(
            update(TransactionRecord)
            .where(
                TransactionRecord.id == transaction.id,
                TransactionRecord.status == expected_status.value,
            )
            .values(**_transaction_values(transaction))
        )
        if result.rowcount == 0:
            actual = await self._current_status(TransactionRecord, transaction.id)
            if actual is None:
                raise ResourceNotFoundError("transaction", transaction.id)
            raise ConflictError(transaction.id, expected_status.value, actual)
        return transaction

    # --- Audit events ---

    async def append_event(self, event: LifecycleEvent) -> LifecycleEvent:
        """Append a new audit event. This is the ONLY write allowed on the table."""
        self._session.add(
            LifecycleEventRecord(
                resource_type=event.resource_type,
                resource_id=event.resource_id,
                event_type=event.event_type,
                old_status=event.old_status,
                new_status=event.new_status,
                actor=event.actor,
                metadata_json=event.metadata or None,
                created_at=event.created_at,
            )
        )
        await self._session.flush()
        return event

    async def get_events(
        self, resource_type: ResourceType, resource_id: str
    ) -> list[LifecycleEvent]:
        result = await self._session.execute(
            select(LifecycleEventRecord)
            .where(
                LifecycleEventRecord.resource_type == resource_type.value,
                LifecycleEventRecord.resource_id == resource_id,
            )
            .order_by(LifecycleEventRecord.created_at.asc(), LifecycleEventRecord.id.asc())
        )
        return [
            LifecycleEvent(
                resource_type=row.resource_type,
                resource_id=row.resource_id,
                event_type=row.event_type,
                old_status=row.old_status,
                new_status=row.new_status,
                actor=row.actor,
                metadata=row.metadata_json or {},
                created_at=row.created_at,
            )
            for row in result.scalars().all()
        ]

    # --- Unit of work ---

    async def commit(self) -> None:
        await self._session.commit()

    async def rollback(self) -> None:
        await self._session.rollback()

    # --- Private helpers ---

    async def _current_status(self, model: type[AdRecord | TransactionRecord], row_id: str):
        result = await self._session.execute(select(model.status).where(model.id == row_id))
        return result.scalar_one_or_none()
