"""Domain enumerations for the marketplace governance engine.

These enums define the canonical states and types used throughout the system.
They are framework-agnostic (no SQLAlchemy, no FastAPI imports).
"""

import enum


class RoleToken(enum.StrEnum):
    """Canonical role tokens understood by the transition guards."""

    ADMIN = "ROLE_ADMIN"
    USER = "ROLE_USER"


class AdDirection(enum.StrEnum):
    BUY = "buy"
    SELL = "sell"


class AdStatus(enum.StrEnum):
    """Moderation and publication states of an ad.

    Legal edges live in domain/state_machine.py (AdStateMachine).
    """

    PENDING = "pending"
    APPROVED = "approved"
    PUBLISHED = "published"
    PAUSED = "paused"
    REJECTED = "rejected"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TransactionStatus(enum.StrEnum):
    """States of a buyer/seller exchange.

    DISPUTED and COMPLETED are only ever written by external collaborators;
    no in-core operation moves a transaction into them.
    """

    PENDING = "pending"
    PAID = "paid"
    RELEASED = "released"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    DISPUTED = "disputed"


class ResourceType(enum.StrEnum):
    AD = "ad"
    TRANSACTION = "transaction"


class TransitionKind(enum.StrEnum):
    """Operations a caller can request against a single resource.

    The value doubles as the state machine event name.
    """

    # Ad moderation
    APPROVE = "approve"
    PUBLISH = "publish"
    REJECT = "reject"
    PAUSE = "pause"
    DELETE = "delete"

    # Transaction settlement
    MARK_PAID = "mark_paid"
    RELEASE_FUNDS = "release_funds"
    CANCEL = "cancel"

    @property
    def resource_type(self) -> ResourceType:
        if self in AD_TRANSITIONS:
            return ResourceType.AD
        return ResourceType.TRANSACTION


AD_TRANSITIONS = frozenset(
    {
        TransitionKind.APPROVE,
        TransitionKind.PUBLISH,
        TransitionKind.REJECT,
        TransitionKind.PAUSE,
        TransitionKind.DELETE,
    }
)

TRANSACTION_TRANSITIONS = frozenset(
    {
        TransitionKind.MARK_PAID,
        TransitionKind.RELEASE_FUNDS,
        TransitionKind.CANCEL,
    }
)


class EventType(enum.StrEnum):
    """Types of audit events recorded in the lifecycle_events table.

    Every accepted transition MUST produce exactly one event.
    """

    # Ad events
    AD_SUBMITTED = "AD_SUBMITTED"
    AD_APPROVED = "AD_APPROVED"
    AD_PUBLISHED = "AD_PUBLISHED"
    AD_REJECTED = "AD_REJECTED"
    AD_PAUSED = "AD_PAUSED"
    AD_DELETED = "AD_DELETED"

    # Transaction events
    TRANSACTION_OPENED = "TRANSACTION_OPENED"
    TRANSACTION_PAID = "TRANSACTION_PAID"
    FUNDS_RELEASED = "FUNDS_RELEASED"
    TRANSACTION_CANCELLED = "TRANSACTION_CANCELLED"
