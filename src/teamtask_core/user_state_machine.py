"""State machine validation for User account status."""
from .models import UserStatus
from .state_machine import validate_transition

USER_STATUS_TRANSITION_MATRIX: dict[UserStatus, list[UserStatus]] = {
    UserStatus.ACTIVE: [UserStatus.INACTIVE, UserStatus.SUSPENDED, UserStatus.DELETED],
    UserStatus.INACTIVE: [UserStatus.ACTIVE, UserStatus.SUSPENDED, UserStatus.DELETED],
    UserStatus.SUSPENDED: [UserStatus.ACTIVE, UserStatus.DELETED],
    UserStatus.DELETED: [UserStatus.ACTIVE],  # Restore only
}

USER_STATUS_TRANSITION_HINTS: dict[UserStatus, str] = {
    UserStatus.SUSPENDED: "Suspended users must be reactivated before being deactivated.",
    UserStatus.DELETED: "Deleted users can only be restored.",
}


def validate_user_status_transition(current_status: UserStatus, new_status: UserStatus) -> None:
    """
    Validate a User status transition.

    Raises:
        InvalidTransitionError: If the transition is a no-op or not allowed
    """
    validate_transition(
        USER_STATUS_TRANSITION_MATRIX,
        current_status,
        new_status,
        entity="User status",
        hints=USER_STATUS_TRANSITION_HINTS,
    )
