"""Domain exceptions for the marketplace governance engine.

These exceptions are framework-agnostic and represent business rule violations.
They are caught and translated to HTTP responses by the API layer's middleware,
and recorded per item by the bulk coordinator.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime


class GovernanceError(Exception):
    """Base exception for all domain errors."""

    def __init__(self, message: str, code: str = "GOVERNANCE_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(self.message)


class UnauthorizedError(GovernanceError):
    """Raised when the actor lacks the role required for the requested edge."""

    def __init__(self, actor_id: str, action: str, required_role: str) -> None:
        super().__init__(
            message=f"Actor {actor_id} may not {action}: requires {required_role}",
            code="UNAUTHORIZED",
        )
        self.actor_id = actor_id
        self.action = action
        self.required_role = required_role


class InvalidTransitionError(GovernanceError):
    """Raised when the current status does not permit the requested edge.

    Example: calling publish on a pending ad, or cancel on a released transaction.
    """

    def __init__(self, current_state: str, attempted: str) -> None:
        super().__init__(
            message=f"Invalid transition: {attempted} is not allowed from {current_state}",
            code="INVALID_TRANSITION",
        )
        self.current_state = current_state
        self.attempted = attempted


class ResourceNotFoundError(GovernanceError):
    """Raised when an ad or transaction id does not exist."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        super().__init__(
            message=f"{resource_type.capitalize()} not found: {resource_id}",
            code="NOT_FOUND",
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class ConflictError(GovernanceError):
    """Raised when the stored status changed between read and write."""

    def __init__(self, resource_id: str, expected_status: str, actual_status: str) -> None:
        super().__init__(
            message=(
                f"Concurrent update on {resource_id}: "
                f"expected {expected_status}, found {actual_status}"
            ),
            code="CONFLICT",
        )
        self.resource_id = resource_id
        self.expected_status = expected_status
        self.actual_status = actual_status


class ValidationError(GovernanceError):
    """Raised for malformed input: bad ad terms, empty bulk lists, unknown operations."""

    def __init__(self, message: str, violations: list[str] | None = None) -> None:
        super().__init__(message=message, code="VALIDATION_ERROR")
        self.violations = violations or []


class AlreadyExpiredError(GovernanceError):
    """Raised when a pending transaction is acted on after its deadline."""

    def __init__(self, transaction_id: str, expires_at: datetime) -> None:
        super().__init__(
            message=f"Transaction {transaction_id} expired at {expires_at.isoformat()}",
            code="ALREADY_EXPIRED",
        )
        self.transaction_id = transaction_id
        self.expires_at = expires_at
