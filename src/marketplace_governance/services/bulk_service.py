"""Bulk Operation Coordinator — one transition kind over many resource ids.

Ids are processed sequentially, one store round trip at a time, so a later
item observes everything an earlier item wrote (duplicate ids in one batch
are applied in order; the last application wins).

Every item is its own unit of work: the store commits after a success and
rolls back after a domain failure, which is recorded before the loop moves
on. Nothing that already succeeded is rolled back. Only a structurally
invalid request (no ids, too many ids, unknown operation) raises.
Cancelling the awaiting task stops the batch between items and leaves
committed transitions in place.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from marketplace_governance.config import get_settings
from marketplace_governance.domain.enums import ResourceType, TransitionKind
from marketplace_governance.domain.exceptions import GovernanceError, ValidationError
from marketplace_governance.logging_config import get_logger

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    from marketplace_governance.config import Settings
    from marketplace_governance.domain.roles import Actor
    from marketplace_governance.services.ad_service import AdLifecycleService
    from marketplace_governance.services.transaction_service import (
        TransactionLifecycleService,
    )

logger = get_logger(__name__)


@dataclass(frozen=True)
class BulkFailure:
    resource_id: str
    error: GovernanceError

    @property
    def code(self) -> str:
        return self.error.code


@dataclass
class BulkResult:
    """Partition of a batch into succeeded ids and per-id failures."""

    operation: TransitionKind
    succeeded: list[str] = field(default_factory=list)
    failed: list[BulkFailure] = field(default_factory=list)

    @property
    def failed_ids(self) -> list[str]:
        return [f.resource_id for f in self.failed]


class BulkOperationCoordinator:
    """Fans a single-item lifecycle operation out over a list of ids."""

    def __init__(
        self,
        ads: AdLifecycleService,
        transactions: TransactionLifecycleService,
        settings: Settings | None = None,
    ) -> None:
        self._ads = ads
        self._transactions = transactions
        self._settings = settings or get_settings()

    async def apply_bulk(
        self,
        actor: Actor,
        ids: Sequence[str],
        op: TransitionKind | str,
        *,
        resource_type: ResourceType | None = None,
        reason: str | None = None,
        payment_reference: str | None = None,
    ) -> BulkResult:
        """Apply `op` to every id and report per-item outcomes.

        Args:
            actor: The caller, forwarded to each single-item operation.
            ids: Resource ids, processed in order.
            op: The transition kind (enum or its string value).
            resource_type: If given, `op` must target this resource type.
            reason: Admin note for bulk reject (defaults to the bulk note).
            payment_reference: Reference for bulk mark_paid
                (defaults to BULK-<unix-ms>, shared by the batch).

        Raises:
            ValidationError: empty or oversized id list, or unknown operation.
        """
        kind = self._parse_operation(op, resource_type)
        self._check_ids(ids)
        handler = self._handler_for(kind, reason, payment_reference)
        service = self._ads if kind.resource_type is ResourceType.AD else self._transactions

        result = BulkResult(operation=kind)
        for resource_id in ids:
            try:
                await handler(actor, resource_id)
            except GovernanceError as exc:
                await service.rollback()
                result.failed.append(BulkFailure(resource_id=resource_id, error=exc))
                logger.info(
                    "bulk.item_failed",
                    operation=kind.value,
                    resource_id=resource_id,
                    exc=exc,
                )
            else:
                await service.commit()
                result.succeeded.append(resource_id)

        logger.info(
            "bulk.completed",
            operation=kind.value,
            actor=actor.id,
            requested=len(ids),
            succeeded=len(result.succeeded),
            failed=len(result.failed),
        )
        return result

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _parse_operation(
        op: TransitionKind | str, resource_type: ResourceType | None
    ) -> TransitionKind:
        try:
            kind = TransitionKind(op)
        except ValueError:
            supported = ", ".join(k.value for k in TransitionKind)
            raise ValidationError(
                f"Unknown bulk operation '{op}'. Supported: {supported}"
            ) from None
        if resource_type is not None and kind.resource_type != resource_type:
            raise ValidationError(
                f"Operation '{kind.value}' does not apply to {resource_type.value} resources"
            )
        return kind

    def _check_ids(self, ids: Sequence[str]) -> None:
        if not ids:
            raise ValidationError("Bulk operation requires at least one id")
        limit = self._settings.max_bulk_items
        if len(ids) > limit:
            raise ValidationError(f"Bulk operation accepts at most {limit} ids, got {len(ids)}")
        blank = [i for i, resource_id in enumerate(ids) if not str(resource_id).strip()]
        if blank:
            raise ValidationError(
                "Bulk operation ids must not be blank",
                violations=[f"ids[{i}] is blank" for i in blank],
            )

    def _handler_for(
        self,
        kind: TransitionKind,
        reason: str | None,
        payment_reference: str | None,
    ) -> Callable[[Actor, str], Awaitable[object]]:
        if kind is TransitionKind.REJECT:
            note = reason or self._settings.bulk_reject_note
            return lambda actor, ad_id: self._ads.reject(actor, ad_id, note)
        if kind is TransitionKind.MARK_PAID:
            reference = payment_reference or f"BULK-{int(time.time() * 1000)}"
            return lambda actor, tx_id: self._transactions.mark_paid(actor, tx_id, reference)

        handlers: dict[TransitionKind, Callable[[Actor, str], Awaitable[object]]] = {
            TransitionKind.APPROVE: self._ads.approve,
            TransitionKind.PUBLISH: self._ads.publish,
            TransitionKind.PAUSE: self._ads.pause,
            TransitionKind.DELETE: self._ads.delete,
            TransitionKind.RELEASE_FUNDS: self._transactions.release_funds,
            TransitionKind.CANCEL: self._transactions.cancel,
        }
        return handlers[kind]
