"""Domain layer — pure business logic with zero web or database dependencies."""

from marketplace_governance.domain.enums import (
    AdDirection,
    AdStatus,
    EventType,
    ResourceType,
    RoleToken,
    TransactionStatus,
    TransitionKind,
)
from marketplace_governance.domain.exceptions import (
    AlreadyExpiredError,
    ConflictError,
    GovernanceError,
    InvalidTransitionError,
    ResourceNotFoundError,
    UnauthorizedError,
    ValidationError,
)
from marketplace_governance.domain.models import (
    Ad,
    AdDraft,
    LifecycleEvent,
    TradingLimits,
    Transaction,
)
from marketplace_governance.domain.roles import Actor, resolve_roles
from marketplace_governance.domain.state_machine import (
    AD_GUARD,
    TRANSACTION_GUARD,
    AdStateMachine,
    TransactionStateMachine,
    TransitionGuard,
)
from marketplace_governance.domain.store_protocol import LifecycleStore

__all__ = [
    "AdDirection",
    "AdStatus",
    "EventType",
    "ResourceType",
    "RoleToken",
    "TransactionStatus",
    "TransitionKind",
    "AlreadyExpiredError",
    "ConflictError",
    "GovernanceError",
    "InvalidTransitionError",
    "ResourceNotFoundError",
    "UnauthorizedError",
    "ValidationError",
    "Ad",
    "AdDraft",
    "LifecycleEvent",
    "TradingLimits",
    "Transaction",
    "Actor",
    "resolve_roles",
    "AD_GUARD",
    "TRANSACTION_GUARD",
    "AdStateMachine",
    "TransactionStateMachine",
    "TransitionGuard",
    "LifecycleStore",
]
