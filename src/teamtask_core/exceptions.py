"""Exception hierarchy for authorization, lifecycle and lookup failures.

Every failure is deterministic for a given input, so none of these are
retried. The HTTP layer maps each class to a status code.
"""
from enum import Enum
from typing import Any, Optional, Sequence


class TeamTaskError(Exception):
    """Base class for all domain errors. ``message`` is safe to show to callers."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthenticationRequiredError(TeamTaskError):
    """No actor could be resolved from the request."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class ActorNotActiveError(TeamTaskError):
    """The resolved actor exists but its status is not ACTIVE."""

    def __init__(self, email: str, status: Optional[Enum] = None):
        detail = f" (status: {status.value})" if status is not None else ""
        super().__init__(f"User {email} is not active{detail}")
        self.email = email
        self.status = status


class ResourceNotFoundError(TeamTaskError):
    """
    Target (or a required parent) does not exist, or is in a status treated
    as non-existent for the caller (e.g. DELETED rows for non-admins).
    """

    def __init__(self, resource: str, identifier: Any):
        super().__init__(f"{resource} not found: {identifier}")
        self.resource = resource
        self.identifier = identifier


class AccessDeniedError(TeamTaskError):
    """A capability check failed. ``reason`` names the missing capability."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class InvalidTransitionError(TeamTaskError):
    """Requested status/role change is not in the allowed-next set."""

    def __init__(
        self,
        message: str,
        current_status: Enum,
        requested_status: Enum,
        allowed_transitions: Sequence[Enum],
    ):
        super().__init__(message)
        self.current_status = current_status
        self.requested_status = requested_status
        self.allowed_transitions = list(allowed_transitions)


class InvariantViolationError(TeamTaskError):
    """The operation would break a structural invariant of the data."""


class LastOwnerError(InvariantViolationError):
    """Demoting or removing the last OWNER of a team."""

    def __init__(self, team_id: int):
        super().__init__(f"Cannot demote the last owner of team {team_id}")
        self.team_id = team_id


class LastAdminError(InvariantViolationError):
    """Removing the last active system ADMIN."""

    def __init__(self, user_id: int):
        super().__init__(
            f"User {user_id} is the last active system admin; promote another admin first"
        )
        self.user_id = user_id


class SelfOperationError(InvariantViolationError):
    """An actor attempted an operation that may not target themself."""


class ResourceStateError(TeamTaskError):
    """The target exists but its current status does not permit the operation."""


class DuplicateResourceError(TeamTaskError):
    """A uniqueness rule (title, name, membership) would be violated."""


class InvalidRequestError(TeamTaskError, ValueError):
    """Input is malformed or outside configured limits."""
