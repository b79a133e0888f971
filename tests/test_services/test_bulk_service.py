"""Tests for BulkOperationCoordinator."""

from __future__ import annotations

from datetime import timedelta

import pytest

from marketplace_governance.domain.enums import (
    AdStatus,
    EventType,
    ResourceType,
    TransactionStatus,
    TransitionKind,
)
from marketplace_governance.domain.exceptions import ValidationError
from marketplace_governance.infrastructure.memory_store import InMemoryLifecycleStore
from marketplace_governance.services import (
    AdLifecycleService,
    BulkOperationCoordinator,
    TransactionLifecycleService,
)


class TestBulkAds:
    @pytest.mark.asyncio
    async def test_partial_success(self, coordinator, store, admin, make_ad) -> None:
        a = await store.add_ad(make_ad(AdStatus.PENDING))
        b = await store.add_ad(make_ad(AdStatus.APPROVED))
        c = await store.add_ad(make_ad(AdStatus.PENDING))

        result = await coordinator.apply_bulk(admin, [a.id, b.id, c.id], "approve")

        assert result.operation is TransitionKind.APPROVE
        assert result.succeeded == [a.id, c.id]
        assert result.failed_ids == [b.id]
        assert result.failed[0].code == "INVALID_TRANSITION"
        assert (await store.get_ad(b.id)).status == AdStatus.APPROVED

    @pytest.mark.asyncio
    async def test_missing_ids_are_reported_per_item(
        self, coordinator, store, admin, make_ad
    ) -> None:
        a = await store.add_ad(make_ad(AdStatus.PUBLISHED))

        result = await coordinator.apply_bulk(admin, ["ghost", a.id], TransitionKind.PAUSE)

        assert result.succeeded == [a.id]
        assert [(f.resource_id, f.code) for f in result.failed] == [("ghost", "NOT_FOUND")]

    @pytest.mark.asyncio
    async def test_non_admin_fails_every_item(self, coordinator, store, user, make_ad) -> None:
        ids = [(await store.add_ad(make_ad())).id for _ in range(3)]

        result = await coordinator.apply_bulk(user, ids, "approve")

        assert result.succeeded == []
        assert {f.code for f in result.failed} == {"UNAUTHORIZED"}

    @pytest.mark.asyncio
    async def test_bulk_reject_uses_bulk_note(self, coordinator, store, admin, make_ad) -> None:
        ad = await store.add_ad(make_ad())
        await coordinator.apply_bulk(admin, [ad.id], "reject")
        assert (await store.get_ad(ad.id)).admin_note == "Rejected by bulk action"

    @pytest.mark.asyncio
    async def test_bulk_reject_with_reason(self, coordinator, store, admin, make_ad) -> None:
        ad = await store.add_ad(make_ad())
        await coordinator.apply_bulk(admin, [ad.id], "reject", reason="Spam")
        assert (await store.get_ad(ad.id)).admin_note == "Spam"

    @pytest.mark.asyncio
    async def test_duplicate_ids_apply_in_order(
        self, coordinator, store, admin, make_ad
    ) -> None:
        ad = await store.add_ad(make_ad())

        result = await coordinator.apply_bulk(admin, [ad.id, ad.id], "approve")

        assert result.succeeded == [ad.id]
        assert result.failed_ids == [ad.id]
        assert result.failed[0].code == "INVALID_TRANSITION"

    @pytest.mark.asyncio
    async def test_bulk_delete(self, coordinator, store, admin, make_ad, ad_service) -> None:
        ad = await store.add_ad(make_ad(AdStatus.REJECTED))
        result = await coordinator.apply_bulk(admin, [ad.id], "delete")
        assert result.succeeded == [ad.id]
        events = await ad_service.get_events(ad.id)
        assert events[-1].event_type == EventType.AD_DELETED


class TestBulkTransactions:
    @pytest.mark.asyncio
    async def test_mark_paid_shares_batch_reference(
        self, coordinator, store, admin, make_transaction, now
    ) -> None:
        t1 = await store.add_transaction(make_transaction())
        t2 = await store.add_transaction(make_transaction())
        expired = await store.add_transaction(
            make_transaction(expires_at=now - timedelta(minutes=5))
        )

        result = await coordinator.apply_bulk(admin, [t1.id, expired.id, t2.id], "mark_paid")

        assert result.succeeded == [t1.id, t2.id]
        assert result.failed[0].code == "ALREADY_EXPIRED"
        ref1 = (await store.get_transaction(t1.id)).payment_reference
        ref2 = (await store.get_transaction(t2.id)).payment_reference
        assert ref1 == ref2
        assert ref1.startswith("BULK-")

    @pytest.mark.asyncio
    async def test_explicit_payment_reference(
        self, coordinator, store, admin, make_transaction
    ) -> None:
        tx = await store.add_transaction(make_transaction())
        await coordinator.apply_bulk(admin, [tx.id], "mark_paid", payment_reference="WIRE-9")
        assert (await store.get_transaction(tx.id)).payment_reference == "WIRE-9"

    @pytest.mark.asyncio
    async def test_cancel_mixed_states(self, coordinator, store, admin, make_transaction) -> None:
        pending = await store.add_transaction(make_transaction())
        released = await store.add_transaction(make_transaction(TransactionStatus.RELEASED))

        result = await coordinator.apply_bulk(admin, [pending.id, released.id], "cancel")

        assert result.succeeded == [pending.id]
        assert result.failed_ids == [released.id]


class TestBulkValidation:
    @pytest.mark.asyncio
    async def test_empty_ids(self, coordinator, admin) -> None:
        with pytest.raises(ValidationError):
            await coordinator.apply_bulk(admin, [], "approve")

    @pytest.mark.asyncio
    async def test_unknown_operation(self, coordinator, admin) -> None:
        with pytest.raises(ValidationError, match="Unknown bulk operation"):
            await coordinator.apply_bulk(admin, ["ad-1"], "archive")

    @pytest.mark.asyncio
    async def test_operation_for_wrong_resource(self, coordinator, admin) -> None:
        with pytest.raises(ValidationError):
            await coordinator.apply_bulk(
                admin, ["tx-1"], "approve", resource_type=ResourceType.TRANSACTION
            )

    @pytest.mark.asyncio
    async def test_too_many_ids(self, coordinator, admin) -> None:
        with pytest.raises(ValidationError, match="at most 50"):
            await coordinator.apply_bulk(admin, [f"ad-{i}" for i in range(51)], "approve")

    @pytest.mark.asyncio
    async def test_blank_id(self, coordinator, admin) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await coordinator.apply_bulk(admin, ["ad-1", " "], "approve")
        assert exc_info.value.violations == ["ids[1] is blank"]

    @pytest.mark.asyncio
    async def test_structural_errors_touch_nothing(
        self, coordinator, store, admin, make_ad
    ) -> None:
        ad = await store.add_ad(make_ad())
        with pytest.raises(ValidationError):
            await coordinator.apply_bulk(admin, [ad.id], "release")
        assert (await store.get_ad(ad.id)).status == AdStatus.PENDING


class RecordingStore(InMemoryLifecycleStore):
    """Counts how each bulk item's unit of work was closed."""

    def __init__(self) -> None:
        super().__init__()
        self.closed: list[str] = []

    async def commit(self) -> None:
        self.closed.append("commit")

    async def rollback(self) -> None:
        self.closed.append("rollback")


class TestBulkUnitOfWork:
    @pytest.mark.asyncio
    async def test_each_item_is_closed_on_its_own(self, settings, admin, make_ad, now) -> None:
        store = RecordingStore()
        coordinator = BulkOperationCoordinator(
            AdLifecycleService(store, settings, clock=lambda: now),
            TransactionLifecycleService(store, settings, clock=lambda: now),
            settings,
        )
        a = await store.add_ad(make_ad(AdStatus.PENDING))
        b = await store.add_ad(make_ad(AdStatus.REJECTED))
        c = await store.add_ad(make_ad(AdStatus.PENDING))

        await coordinator.apply_bulk(admin, [a.id, b.id, c.id], "approve")

        assert store.closed == ["commit", "rollback", "commit"]

    @pytest.mark.asyncio
    async def test_structural_error_closes_nothing(self, settings, admin) -> None:
        store = RecordingStore()
        coordinator = BulkOperationCoordinator(
            AdLifecycleService(store, settings),
            TransactionLifecycleService(store, settings),
            settings,
        )
        with pytest.raises(ValidationError):
            await coordinator.apply_bulk(admin, [], "approve")
        assert store.closed == []
