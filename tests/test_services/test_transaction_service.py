"""Tests for TransactionLifecycleService over the in-memory store."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import pytest

from marketplace_governance.domain.enums import (
    AdStatus,
    EventType,
    TransactionStatus,
    TransitionKind,
)
from marketplace_governance.domain.exceptions import (
    AlreadyExpiredError,
    InvalidTransitionError,
    ResourceNotFoundError,
    UnauthorizedError,
    ValidationError,
)


class TestOpenTransaction:
    @pytest.mark.asyncio
    async def test_open_against_published_ad(
        self, tx_service, store, other_user, make_ad, now
    ) -> None:
        ad = await store.add_ad(make_ad(AdStatus.PUBLISHED))

        tx = await tx_service.open_transaction(other_user, ad.id, Decimal("20"))

        assert tx.status == TransactionStatus.PENDING
        assert tx.buyer_id == "3"
        assert tx.seller_id == "2"
        assert tx.fiat_amount == Decimal("210.00")
        assert tx.expires_at == now + timedelta(minutes=30)
        events = await tx_service.get_events(tx.id)
        assert [e.event_type for e in events] == [EventType.TRANSACTION_OPENED]

    @pytest.mark.asyncio
    async def test_defaults_to_full_ad_amount(
        self, tx_service, store, other_user, make_ad, now
    ) -> None:
        ad = await store.add_ad(make_ad(AdStatus.PUBLISHED))
        tx = await tx_service.open_transaction(other_user, ad.id, expiry_minutes=15)
        assert tx.asset_amount == Decimal("100")
        assert tx.expires_at == now + timedelta(minutes=15)

    @pytest.mark.asyncio
    async def test_unpublished_ad_is_invalid(self, tx_service, store, other_user, make_ad) -> None:
        ad = await store.add_ad(make_ad(AdStatus.PAUSED))
        with pytest.raises(InvalidTransitionError):
            await tx_service.open_transaction(other_user, ad.id)

    @pytest.mark.asyncio
    async def test_owner_cannot_buy_own_ad(self, tx_service, store, user, make_ad) -> None:
        ad = await store.add_ad(make_ad(AdStatus.PUBLISHED))
        with pytest.raises(ValidationError):
            await tx_service.open_transaction(user, ad.id)

    @pytest.mark.asyncio
    async def test_missing_ad(self, tx_service, other_user) -> None:
        with pytest.raises(ResourceNotFoundError):
            await tx_service.open_transaction(other_user, "missing")

    @pytest.mark.asyncio
    async def test_anonymous_cannot_open(self, tx_service, anonymous) -> None:
        with pytest.raises(UnauthorizedError):
            await tx_service.open_transaction(anonymous, "missing")


class TestSettlement:
    @pytest.mark.asyncio
    async def test_mark_paid_then_release(
        self, tx_service, store, admin, make_transaction, now
    ) -> None:
        tx = await store.add_transaction(make_transaction())

        paid = await tx_service.mark_paid(admin, tx.id, "REF-1")
        assert paid.status == TransactionStatus.PAID
        assert paid.payment_reference == "REF-1"
        assert paid.paid_at == now

        released = await tx_service.release_funds(admin, tx.id)
        assert released.status == TransactionStatus.RELEASED
        assert released.released_at == now

        events = await tx_service.get_events(tx.id)
        assert [e.event_type for e in events] == [
            EventType.TRANSACTION_PAID,
            EventType.FUNDS_RELEASED,
        ]
        assert events[0].metadata == {"payment_reference": "REF-1"}

    @pytest.mark.asyncio
    async def test_release_then_cancel_is_invalid(
        self, tx_service, store, admin, make_transaction
    ) -> None:
        tx = await store.add_transaction(make_transaction(TransactionStatus.PAID))
        await tx_service.release_funds(admin, tx.id)

        with pytest.raises(InvalidTransitionError):
            await tx_service.cancel(admin, tx.id)
        assert (await store.get_transaction(tx.id)).status == TransactionStatus.RELEASED

    @pytest.mark.asyncio
    async def test_release_requires_payment(
        self, tx_service, store, admin, make_transaction
    ) -> None:
        tx = await store.add_transaction(make_transaction())
        with pytest.raises(InvalidTransitionError):
            await tx_service.release_funds(admin, tx.id)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("source", [TransactionStatus.PENDING, TransactionStatus.PAID])
    async def test_cancel(self, tx_service, store, admin, make_transaction, source) -> None:
        tx = await store.add_transaction(make_transaction(source))
        cancelled = await tx_service.cancel(admin, tx.id)
        assert cancelled.status == TransactionStatus.CANCELLED

    @pytest.mark.asyncio
    @pytest.mark.parametrize("op", ["mark_paid", "release_funds", "cancel"])
    async def test_non_admin_is_unauthorized(
        self, tx_service, store, other_user, make_transaction, op
    ) -> None:
        tx = await store.add_transaction(make_transaction(TransactionStatus.PAID))
        with pytest.raises(UnauthorizedError):
            await getattr(tx_service, op)(other_user, tx.id)


class TestExpiry:
    @pytest.mark.asyncio
    async def test_expired_mark_paid_is_refused_but_cancel_succeeds(
        self, tx_service, store, admin, make_transaction, now
    ) -> None:
        tx = await store.add_transaction(
            make_transaction(expires_at=now - timedelta(minutes=1))
        )

        with pytest.raises(AlreadyExpiredError) as exc_info:
            await tx_service.mark_paid(admin, tx.id)
        assert exc_info.value.code == "ALREADY_EXPIRED"
        assert (await store.get_transaction(tx.id)).status == TransactionStatus.PENDING

        cancelled = await tx_service.cancel(admin, tx.id)
        assert cancelled.status == TransactionStatus.CANCELLED

    @pytest.mark.asyncio
    async def test_deadline_is_inclusive(
        self, tx_service, store, admin, make_transaction, now
    ) -> None:
        tx = await store.add_transaction(make_transaction(expires_at=now))
        with pytest.raises(AlreadyExpiredError):
            await tx_service.mark_paid(admin, tx.id)

    @pytest.mark.asyncio
    async def test_release_ignores_expiry(
        self, tx_service, store, admin, make_transaction, now
    ) -> None:
        tx = await store.add_transaction(
            make_transaction(TransactionStatus.PAID, expires_at=now - timedelta(hours=1))
        )
        released = await tx_service.release_funds(admin, tx.id)
        assert released.status == TransactionStatus.RELEASED

    @pytest.mark.asyncio
    async def test_invalid_state_wins_over_expiry(
        self, tx_service, store, admin, make_transaction, now
    ) -> None:
        tx = await store.add_transaction(
            make_transaction(TransactionStatus.CANCELLED, expires_at=now - timedelta(hours=1))
        )
        with pytest.raises(InvalidTransitionError):
            await tx_service.mark_paid(admin, tx.id)


class TestQueries:
    def test_list_transitions_ignores_clock(self, tx_service, admin, make_transaction, now) -> None:
        tx = make_transaction(expires_at=now - timedelta(days=1))
        expected = {TransitionKind.MARK_PAID, TransitionKind.CANCEL}
        assert tx_service.list_transitions_for(admin, tx) == expected
        assert tx_service.list_transitions_for(admin, tx) == expected

    def test_released_has_no_transitions(self, tx_service, admin, make_transaction) -> None:
        tx = make_transaction(TransactionStatus.RELEASED)
        assert tx_service.list_transitions_for(admin, tx) == frozenset()

    @pytest.mark.asyncio
    async def test_stats(self, tx_service, store, make_transaction) -> None:
        await store.add_transaction(make_transaction())
        await store.add_transaction(make_transaction(TransactionStatus.PAID))

        stats = await tx_service.stats()

        assert stats["total"] == 2
        assert stats["pending"] == 1
        assert stats["paid"] == 1
        assert stats["disputed"] == 0
        assert stats["total_asset_amount"] == Decimal("100")
        assert stats["total_fiat_amount"] == Decimal("1050.00")

    @pytest.mark.asyncio
    async def test_missing_transaction(self, tx_service) -> None:
        with pytest.raises(ResourceNotFoundError):
            await tx_service.get_transaction("missing")
