"""Transaction Lifecycle Service — settlement of buyer/seller exchanges.

Coordinates the transaction guard, the expiry policy and the store:

    authorize -> load -> state check -> expiry check -> compare-and-set write

Expiry only blocks mark_paid on a pending transaction; cancel is always
accepted from a legal source state, and release_funds is never blocked
because the buyer has already paid.
"""

from __future__ import annotations

import uuid
from collections import Counter
from dataclasses import replace
from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from marketplace_governance.config import get_settings
from marketplace_governance.domain.enums import (
    EventType,
    ResourceType,
    TransactionStatus,
    TransitionKind,
)
from marketplace_governance.domain.exceptions import (
    AlreadyExpiredError,
    ResourceNotFoundError,
)
from marketplace_governance.domain.models import LifecycleEvent, Transaction
from marketplace_governance.domain.roles import require_member
from marketplace_governance.domain.state_machine import TRANSACTION_GUARD
from marketplace_governance.domain.validation import resolve_expiry, validate_trade_request
from marketplace_governance.logging_config import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable

    from marketplace_governance.config import Settings
    from marketplace_governance.domain.roles import Actor
    from marketplace_governance.domain.store_protocol import LifecycleStore

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TransactionLifecycleService:
    """Manages the transaction settlement lifecycle."""

    def __init__(
        self,
        store: LifecycleStore,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._settings = settings or get_settings()
        self._clock = clock

    # ------------------------------------------------------------------
    # Opening
    # ------------------------------------------------------------------

    async def open_transaction(
        self,
        actor: Actor,
        ad_id: str,
        asset_amount: Decimal | None = None,
        expiry_minutes: int | None = None,
    ) -> Transaction:
        """Buyer takes a published ad; the ad owner becomes the seller."""
        require_member(actor, "open_transaction")
        ad = await self._store.get_ad(ad_id)
        if ad is None:
            raise ResourceNotFoundError(ResourceType.AD, ad_id)

        amount = ad.amount if asset_amount is None else asset_amount
        fiat_amount = validate_trade_request(ad, actor.id, amount)

        now = self._clock()
        tx = Transaction(
            id=str(uuid.uuid4()),
            ad_id=ad.id,
            buyer_id=actor.id,
            seller_id=ad.owner_id,
            asset_amount=amount,
            fiat_amount=fiat_amount,
            expires_at=resolve_expiry(now, expiry_minutes, self._settings.trading_limits),
            created_at=now,
            updated_at=now,
        )
        await self._store.add_transaction(tx)
        await self._record(actor, tx, EventType.TRANSACTION_OPENED, old_status=None)

        logger.info(
            "transaction.opened",
            transaction_id=tx.id,
            ad_id=ad.id,
            buyer=tx.buyer_id,
            seller=tx.seller_id,
            amount=str(amount),
        )
        return tx

    # ------------------------------------------------------------------
    # Settlement
    # ------------------------------------------------------------------

    async def mark_paid(
        self,
        actor: Actor,
        transaction_id: str,
        payment_reference: str | None = None,
    ) -> Transaction:
        """pending -> paid. Refused once the payment deadline has passed."""
        tx, target = await self._prepare(actor, transaction_id, TransitionKind.MARK_PAID)
        now = self._clock()
        if tx.is_expired(now):
            raise AlreadyExpiredError(tx.id, tx.expires_at)

        updated = replace(
            tx,
            status=target,
            payment_reference=payment_reference or tx.payment_reference,
            paid_at=now,
            updated_at=now,
        )
        return await self._commit(
            actor,
            tx,
            updated,
            EventType.TRANSACTION_PAID,
            metadata={"payment_reference": updated.payment_reference},
        )

    async def release_funds(self, actor: Actor, transaction_id: str) -> Transaction:
        """paid -> released."""
        tx, target = await self._prepare(actor, transaction_id, TransitionKind.RELEASE_FUNDS)
        now = self._clock()
        updated = replace(tx, status=target, released_at=now, updated_at=now)
        return await self._commit(actor, tx, updated, EventType.FUNDS_RELEASED)

    async def cancel(self, actor: Actor, transaction_id: str) -> Transaction:
        """pending | paid -> cancelled. Irreversible."""
        tx, target = await self._prepare(actor, transaction_id, TransitionKind.CANCEL)
        updated = replace(tx, status=target, updated_at=self._clock())
        return await self._commit(actor, tx, updated, EventType.TRANSACTION_CANCELLED)

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------

    async def get_transaction(self, transaction_id: str) -> Transaction:
        tx = await self._store.get_transaction(transaction_id)
        if tx is None:
            raise ResourceNotFoundError(ResourceType.TRANSACTION, transaction_id)
        return tx

    async def list_transactions(
        self, status: TransactionStatus | None = None
    ) -> list[Transaction]:
        return await self._store.list_transactions(status)

    def list_transitions_for(
        self, actor: Actor, transaction: Transaction
    ) -> frozenset[TransitionKind]:
        """Operations the actor may perform on this snapshot.

        Depends only on the snapshot's status and the actor's roles; the
        clock is not consulted, so an expired pending transaction still
        lists mark_paid and the call itself reports AlreadyExpired.
        """
        return TRANSACTION_GUARD.allowed(actor, transaction.status)

    async def get_events(self, transaction_id: str) -> list[LifecycleEvent]:
        return await self._store.get_events(ResourceType.TRANSACTION, transaction_id)

    async def stats(self) -> dict:
        """Counts per status plus traded volume."""
        transactions = await self._store.list_transactions()
        counts = Counter(tx.status for tx in transactions)
        return {
            "total": len(transactions),
            **{status.value: counts.get(status, 0) for status in TransactionStatus},
            "total_asset_amount": sum((tx.asset_amount for tx in transactions), Decimal(0)),
            "total_fiat_amount": sum((tx.fiat_amount for tx in transactions), Decimal(0)),
        }

    # ------------------------------------------------------------------
    # Unit of work
    # ------------------------------------------------------------------

    async def commit(self) -> None:
        await self._store.commit()

    async def rollback(self) -> None:
        await self._store.rollback()

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _prepare(
        self, actor: Actor, transaction_id: str, kind: TransitionKind
    ) -> tuple[Transaction, TransactionStatus]:
        TRANSACTION_GUARD.authorize(actor, kind)
        tx = await self.get_transaction(transaction_id)
        return tx, TransactionStatus(TRANSACTION_GUARD.target(tx.status, kind))

    async def _commit(
        self,
        actor: Actor,
        before: Transaction,
        after: Transaction,
        event_type: EventType,
        metadata: dict | None = None,
    ) -> Transaction:
        await self._store.save_transaction(after, expected_status=before.status)
        await self._record(actor, after, event_type, old_status=before.status, metadata=metadata)

        logger.info(
            f"transaction.{after.status.value}",
            transaction_id=after.id,
            old_status=before.status.value,
            actor=actor.id,
        )
        return after

    async def _record(
        self,
        actor: Actor,
        tx: Transaction,
        event_type: EventType,
        old_status: TransactionStatus | None,
        metadata: dict | None = None,
    ) -> None:
        await self._store.append_event(
            LifecycleEvent(
                resource_type=ResourceType.TRANSACTION.value,
                resource_id=tx.id,
                event_type=event_type.value,
                old_status=old_status.value if old_status else None,
                new_status=tx.status.value,
                actor=actor.id,
                metadata=metadata or {},
                created_at=self._clock(),
            )
        )
