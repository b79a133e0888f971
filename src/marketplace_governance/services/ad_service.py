"""Ad Lifecycle Service — moderation and publication of ads.

This is the application layer that coordinates between:
    - Domain transition guard (state legality + admin authorization)
    - The LifecycleStore (compare-and-set writes)
    - The audit event log

Both REST routes and the bulk coordinator call into this service, ensuring a
single source of truth for all moderation rules. Every moderation edge is
admin-only; the owner of an ad has no transition rights over it here.
"""

from __future__ import annotations

import uuid
from collections import Counter
from dataclasses import replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from marketplace_governance.config import get_settings
from marketplace_governance.domain.enums import (
    AdStatus,
    EventType,
    ResourceType,
    TransitionKind,
)
from marketplace_governance.domain.exceptions import ResourceNotFoundError
from marketplace_governance.domain.models import Ad, LifecycleEvent
from marketplace_governance.domain.roles import require_member
from marketplace_governance.domain.state_machine import AD_GUARD
from marketplace_governance.domain.validation import validate_ad_draft
from marketplace_governance.logging_config import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable

    from marketplace_governance.config import Settings
    from marketplace_governance.domain.models import AdDraft
    from marketplace_governance.domain.roles import Actor
    from marketplace_governance.domain.store_protocol import LifecycleStore

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class AdLifecycleService:
    """Manages the ad moderation lifecycle."""

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
    # Submission
    # ------------------------------------------------------------------

    async def submit_ad(self, actor: Actor, draft: AdDraft) -> Ad:
        """Validate an owner's draft and store it as a pending ad."""
        require_member(actor, "submit_ad")
        validate_ad_draft(draft, self._settings.trading_limits)

        now = self._clock()
        ad = Ad(
            id=str(uuid.uuid4()),
            owner_id=actor.id,
            direction=draft.direction,
            amount=draft.amount,
            price=draft.price,
            currency=draft.currency,
            settlement_methods=tuple(m for m in draft.settlement_methods if m.strip()),
            terms=draft.terms,
            min_amount_per_transaction=draft.min_amount_per_transaction,
            max_amount_per_transaction=draft.max_amount_per_transaction,
            created_at=now,
            updated_at=now,
        )
        await self._store.add_ad(ad)
        await self._record(actor, ad, EventType.AD_SUBMITTED, old_status=None)

        logger.info("ad.submitted", ad_id=ad.id, owner=actor.id, amount=str(ad.amount))
        return ad

    # ------------------------------------------------------------------
    # Moderation
    # ------------------------------------------------------------------

    async def approve(self, actor: Actor, ad_id: str) -> Ad:
        """pending -> approved. Records the approving admin."""
        ad, target = await self._prepare(actor, ad_id, TransitionKind.APPROVE)
        now = self._clock()
        updated = replace(
            ad,
            status=target,
            approved_by=actor.id,
            approved_at=now,
            admin_note=self._settings.approve_note,
            updated_at=now,
        )
        return await self._commit(actor, ad, updated, EventType.AD_APPROVED)

    async def publish(self, actor: Actor, ad_id: str) -> Ad:
        """approved | paused -> published."""
        ad, target = await self._prepare(actor, ad_id, TransitionKind.PUBLISH)
        now = self._clock()
        updated = replace(ad, status=target, published_at=now, updated_at=now)
        return await self._commit(actor, ad, updated, EventType.AD_PUBLISHED)

    async def reject(self, actor: Actor, ad_id: str, reason: str | None = None) -> Ad:
        """Any non-terminal state -> rejected, with the reason as admin note."""
        ad, target = await self._prepare(actor, ad_id, TransitionKind.REJECT)
        note = (reason or "").strip() or self._settings.reject_note
        updated = replace(ad, status=target, admin_note=note, updated_at=self._clock())
        return await self._commit(
            actor, ad, updated, EventType.AD_REJECTED, metadata={"reason": note}
        )

    async def pause(self, actor: Actor, ad_id: str) -> Ad:
        """published -> paused."""
        ad, target = await self._prepare(actor, ad_id, TransitionKind.PAUSE)
        updated = replace(ad, status=target, updated_at=self._clock())
        return await self._commit(actor, ad, updated, EventType.AD_PAUSED)

    async def delete(self, actor: Actor, ad_id: str) -> Ad:
        """Administrative removal from any state. Returns the removed snapshot."""
        ad, _ = await self._prepare(actor, ad_id, TransitionKind.DELETE)
        await self._store.delete_ad(ad.id)
        await self._record(actor, ad, EventType.AD_DELETED, old_status=ad.status)

        logger.info("ad.deleted", ad_id=ad.id, status=ad.status.value, actor=actor.id)
        return ad

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------

    async def get_ad(self, ad_id: str) -> Ad:
        ad = await self._store.get_ad(ad_id)
        if ad is None:
            raise ResourceNotFoundError(ResourceType.AD, ad_id)
        return ad

    async def list_ads(self, status: AdStatus | None = None) -> list[Ad]:
        return await self._store.list_ads(status)

    def list_transitions_for(self, actor: Actor, ad: Ad) -> frozenset[TransitionKind]:
        """Operations the actor may perform on this snapshot, for UI affordances."""
        return AD_GUARD.allowed(actor, ad.status)

    async def get_events(self, ad_id: str) -> list[LifecycleEvent]:
        return await self._store.get_events(ResourceType.AD, ad_id)

    async def stats(self) -> dict[str, int]:
        """Total count plus one count per status."""
        counts = Counter(ad.status for ad in await self._store.list_ads())
        return {
            "total": sum(counts.values()),
            **{status.value: counts.get(status, 0) for status in AdStatus},
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
        self, actor: Actor, ad_id: str, kind: TransitionKind
    ) -> tuple[Ad, AdStatus]:
        AD_GUARD.authorize(actor, kind)
        ad = await self.get_ad(ad_id)
        return ad, AdStatus(AD_GUARD.target(ad.status, kind))

    async def _commit(
        self,
        actor: Actor,
        before: Ad,
        after: Ad,
        event_type: EventType,
        metadata: dict | None = None,
    ) -> Ad:
        await self._store.save_ad(after, expected_status=before.status)
        await self._record(actor, after, event_type, old_status=before.status, metadata=metadata)

        logger.info(
            f"ad.{after.status.value}",
            ad_id=after.id,
            old_status=before.status.value,
            actor=actor.id,
        )
        return after

    async def _record(
        self,
        actor: Actor,
        ad: Ad,
        event_type: EventType,
        old_status: AdStatus | None,
        metadata: dict | None = None,
    ) -> None:
        await self._store.append_event(
            LifecycleEvent(
                resource_type=ResourceType.AD.value,
                resource_id=ad.id,
                event_type=event_type.value,
                old_status=old_status.value if old_status else None,
                new_status=ad.status.value,
                actor=actor.id,
                metadata=metadata or {},
                created_at=self._clock(),
            )
        )
