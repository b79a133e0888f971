"""Ad and Transaction lifecycle guards.

Uses python-statemachine to enforce legal state transitions at the domain level.
No matter what the API or a bulk loop asks for, an illegal edge
(e.g., pending -> published) raises InvalidTransitionError.

Each machine is instantiated per check at the resource's current status and
thrown away; the store remains the only place state lives.

Ad transition table:
    pending    -> approved    (approve)
    pending    -> rejected    (reject)
    approved   -> published   (publish)
    approved   -> rejected    (reject)
    published  -> paused      (pause)
    published  -> rejected    (reject)
    published  -> completed   (complete, external)
    published  -> cancelled   (cancel, external)
    paused     -> published   (publish)
    paused     -> rejected    (reject)

Transaction transition table:
    pending    -> paid        (mark_paid)
    pending    -> cancelled   (cancel)
    paid       -> released    (release_funds)
    paid       -> cancelled   (cancel)
    paid       -> disputed    (dispute, external)
    released   -> completed   (settle, external)

Edges marked external are only ever written by collaborators outside this
core; no TransitionKind maps to them, so `TransitionGuard` never fires them.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING

from statemachine import State, StateMachine
from statemachine.exceptions import TransitionNotAllowed

from marketplace_governance.domain.enums import RoleToken, TransitionKind
from marketplace_governance.domain.exceptions import (
    InvalidTransitionError,
    UnauthorizedError,
    ValidationError,
)

if TYPE_CHECKING:
    from marketplace_governance.domain.roles import Actor


class _LifecycleMachine(StateMachine):
    """Shared construction at an arbitrary persisted status."""

    def __init__(self, current_status: str) -> None:
        valid_values = {s.value for s in self.states}
        if current_status not in valid_values:
            valid = ", ".join(sorted(valid_values))
            raise ValueError(f"Unknown status '{current_status}'. Valid states: {valid}")
        super().__init__(start_value=current_status)

    @property
    def status(self) -> str:
        return str(self.current_state.value)


class AdStateMachine(_LifecycleMachine):
    """State machine that guards ad moderation and publication."""

    pending = State("Pending", value="pending", initial=True)
    approved = State("Approved", value="approved")
    published = State("Published", value="published")
    paused = State("Paused", value="paused")
    rejected = State("Rejected", value="rejected", final=True)
    completed = State("Completed", value="completed", final=True)
    cancelled = State("Cancelled", value="cancelled", final=True)

    approve = pending.to(approved)
    publish = approved.to(published) | paused.to(published)
    pause = published.to(paused)
    reject = (
        pending.to(rejected)
        | approved.to(rejected)
        | published.to(rejected)
        | paused.to(rejected)
    )

    complete = published.to(completed)
    cancel = published.to(cancelled)


class TransactionStateMachine(_LifecycleMachine):
    """State machine that guards the buyer/seller settlement flow."""

    pending = State("Pending", value="pending", initial=True)
    paid = State("Paid", value="paid")
    released = State("Released", value="released")
    completed = State("Completed", value="completed", final=True)
    cancelled = State("Cancelled", value="cancelled", final=True)
    disputed = State("Disputed", value="disputed", final=True)

    mark_paid = pending.to(paid)
    release_funds = paid.to(released)
    cancel = pending.to(cancelled) | paid.to(cancelled)

    dispute = paid.to(disputed)
    settle = released.to(completed)


class TransitionGuard:
    """Combines a lifecycle machine with the role each operation requires.

    The mutating services and `allowed` both go through this object, so the
    legality of an edge is defined exactly once.

    Args:
        machine_cls: The state machine holding the legal edges.
        required_roles: Role needed per operation this guard covers.
        unguarded: Operations that bypass the state check entirely
            (administrative overrides such as ad deletion).
    """

    def __init__(
        self,
        machine_cls: type[_LifecycleMachine],
        required_roles: Mapping[TransitionKind, RoleToken],
        unguarded: frozenset[TransitionKind] = frozenset(),
    ) -> None:
        self._machine_cls = machine_cls
        self._required_roles = dict(required_roles)
        self._unguarded = unguarded

    @property
    def kinds(self) -> frozenset[TransitionKind]:
        return frozenset(self._required_roles)

    def authorize(self, actor: Actor, kind: TransitionKind) -> None:
        """Raise UnauthorizedError unless the actor holds the edge's role."""
        required = self._required_role(kind)
        if not actor.has_role(required):
            raise UnauthorizedError(actor.id, kind.value, required.value)

    def target(self, current_status: str, kind: TransitionKind) -> str:
        """Return the status `kind` leads to from `current_status`.

        Raises InvalidTransitionError if the edge does not exist.
        """
        self._required_role(kind)
        if kind in self._unguarded:
            return current_status

        sm = self._machine_cls(current_status=current_status)
        event_method = getattr(sm, kind.value, None)
        if event_method is None:
            raise InvalidTransitionError(current_status, kind.value)
        try:
            event_method()
        except TransitionNotAllowed as err:
            raise InvalidTransitionError(current_status, kind.value) from err
        return sm.status

    def check(self, actor: Actor, current_status: str, kind: TransitionKind) -> str:
        """Authorize first, then validate the edge; returns the new status."""
        self.authorize(actor, kind)
        return self.target(current_status, kind)

    def allowed(self, actor: Actor, current_status: str) -> frozenset[TransitionKind]:
        """Operations that are both state-legal and authorized for `actor`."""
        allowed: set[TransitionKind] = set()
        for kind, role in self._required_roles.items():
            if not actor.has_role(role):
                continue
            try:
                self.target(current_status, kind)
            except InvalidTransitionError:
                continue
            allowed.add(kind)
        return frozenset(allowed)

    def _required_role(self, kind: TransitionKind) -> RoleToken:
        try:
            return self._required_roles[kind]
        except KeyError:
            raise ValidationError(
                f"Operation '{kind}' does not apply to {self._machine_cls.__name__}"
            ) from None


AD_GUARD = TransitionGuard(
    AdStateMachine,
    required_roles={
        TransitionKind.APPROVE: RoleToken.ADMIN,
        TransitionKind.PUBLISH: RoleToken.ADMIN,
        TransitionKind.REJECT: RoleToken.ADMIN,
        TransitionKind.PAUSE: RoleToken.ADMIN,
        TransitionKind.DELETE: RoleToken.ADMIN,
    },
    unguarded=frozenset({TransitionKind.DELETE}),
)

TRANSACTION_GUARD = TransitionGuard(
    TransactionStateMachine,
    required_roles={
        TransitionKind.MARK_PAID: RoleToken.ADMIN,
        TransitionKind.RELEASE_FUNDS: RoleToken.ADMIN,
        TransitionKind.CANCEL: RoleToken.ADMIN,
    },
)
