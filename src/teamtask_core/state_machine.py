"""State machine validation for lifecycle status transitions.

One generic primitive, ``validate_transition(matrix, current, requested)``,
backs every lifecycle in the system (tasks here; projects, team roles,
team status and user status in their own modules). Rules shared by all:
- Requesting the current value is an error, not an idempotent success
- Anything not listed in the matrix for the current value is rejected
- A value with no listed successors is terminal
"""
import logging
from enum import Enum
from typing import Mapping, Optional, TypeVar

from .exceptions import InvalidTransitionError
from .models import TaskStatus

logger = logging.getLogger("teamtask-core.state_machine")

S = TypeVar("S", bound=Enum)

# Maps current value → list of allowed next values (never includes itself)
TransitionMatrix = Mapping[S, list[S]]


def get_allowed_transitions(matrix: TransitionMatrix, current: S) -> list[S]:
    """
    Get list of allowed transitions from a value.

    Args:
        matrix: Transition matrix to consult
        current: Current value

    Returns:
        List of allowed next values (empty for terminal values)
    """
    return [s for s in matrix.get(current, []) if s != current]


def is_transition_valid(matrix: TransitionMatrix, current: S, requested: S) -> bool:
    """
    Check if a transition is valid.

    Args:
        matrix: Transition matrix to consult
        current: Current value
        requested: Requested new value

    Returns:
        True if transition is allowed, False otherwise (including no-ops)
    """
    return requested in get_allowed_transitions(matrix, current)


def validate_transition(
    matrix: TransitionMatrix,
    current: S,
    requested: S,
    entity: str = "status",
    hints: Optional[Mapping[S, str]] = None,
) -> None:
    """
    Validate a transition and raise exception if invalid.

    Args:
        matrix: Transition matrix to consult
        current: Current value
        requested: Requested new value
        entity: Label used in messages (e.g. "Task status", "team role")
        hints: Extra guidance appended when leaving a given current value fails

    Raises:
        InvalidTransitionError: If the transition is a no-op or not allowed
    """
    allowed = get_allowed_transitions(matrix, current)

    if current == requested:
        error_msg = f"{entity} is already {current.value}"
        logger.warning(f"Blocked no-op transition: {error_msg}")
        raise InvalidTransitionError(
            message=error_msg,
            current_status=current,
            requested_status=requested,
            allowed_transitions=allowed,
        )

    if requested not in allowed:
        if allowed:
            allowed_names = ", ".join(s.value for s in allowed)
            error_msg = (
                f"Invalid {entity} transition: {current.value} → {requested.value}. "
                f"From {current.value}, you can only transition to: {allowed_names}."
            )
        else:
            error_msg = (
                f"Invalid {entity} transition: {current.value} → {requested.value}. "
                f"{current.value} is terminal."
            )

        if hints and current in hints:
            error_msg += f" {hints[current]}"

        logger.warning(f"Blocked transition: {error_msg}")
        raise InvalidTransitionError(
            message=error_msg,
            current_status=current,
            requested_status=requested,
            allowed_transitions=allowed,
        )

    logger.debug(f"Valid {entity} transition: {current.value} → {requested.value}")


# =============================================================================
# Task lifecycle
# =============================================================================

# DELETED is reachable only through task deletion, so it appears in no list
TASK_TRANSITION_MATRIX: dict[TaskStatus, list[TaskStatus]] = {
    TaskStatus.TO_DO: [
        TaskStatus.IN_PROGRESS,   # Forward: work started
        TaskStatus.BLOCKED,
    ],
    TaskStatus.IN_PROGRESS: [
        TaskStatus.IN_REVIEW,     # Forward: ready for review
        TaskStatus.DONE,          # Forward: finished without review
        TaskStatus.BLOCKED,
        TaskStatus.TO_DO,         # Back: return to backlog
    ],
    TaskStatus.IN_REVIEW: [
        TaskStatus.DONE,          # Forward: review passed
        TaskStatus.IN_PROGRESS,   # Back: changes requested
        TaskStatus.BLOCKED,
    ],
    TaskStatus.DONE: [
        TaskStatus.TO_DO,         # Reopen
        TaskStatus.IN_PROGRESS,   # Reopen
    ],
    TaskStatus.BLOCKED: [
        TaskStatus.TO_DO,         # Unblock
        TaskStatus.IN_PROGRESS,   # Unblock
    ],
    TaskStatus.DELETED: [
        # Terminal - deleted tasks accept no further status updates
    ],
}

TASK_TRANSITION_HINTS: dict[TaskStatus, str] = {
    TaskStatus.DONE: "Done tasks can only be reopened to to_do or in_progress.",
    TaskStatus.BLOCKED: "Blocked tasks can only be unblocked to to_do or in_progress.",
    TaskStatus.TO_DO: "Tasks must be started (in_progress) before review or completion.",
}


def validate_task_transition(current_status: TaskStatus, new_status: TaskStatus) -> None:
    """
    Validate a status change made through the generic task update path.

    Args:
        current_status: Current task status
        new_status: Requested task status

    Raises:
        InvalidTransitionError: If the transition is a no-op, leaves DELETED,
            enters DELETED (use the delete operation), or is not in the matrix
    """
    if current_status != new_status:
        if current_status == TaskStatus.DELETED:
            error_msg = "Cannot change status of a deleted task"
            logger.warning(f"Blocked transition: {error_msg}")
            raise InvalidTransitionError(error_msg, current_status, new_status, [])

        if new_status == TaskStatus.DELETED:
            error_msg = "Use the delete operation to delete a task"
            logger.warning(f"Blocked transition: {error_msg}")
            raise InvalidTransitionError(
                error_msg,
                current_status,
                new_status,
                get_allowed_transitions(TASK_TRANSITION_MATRIX, current_status),
            )

    validate_transition(
        TASK_TRANSITION_MATRIX,
        current_status,
        new_status,
        entity="Task status",
        hints=TASK_TRANSITION_HINTS,
    )


def is_terminal_task_status(status: TaskStatus) -> bool:
    """Check if a task status is terminal (no further transitions)."""
    return not TASK_TRANSITION_MATRIX.get(status)


# Task status sort order for list queries
# Lower number = higher priority (shown first)
TASK_STATUS_SORT_ORDER: dict[TaskStatus, int] = {
    TaskStatus.IN_PROGRESS: 1,   # Actively working - highest priority
    TaskStatus.IN_REVIEW: 2,     # Waiting on a reviewer
    TaskStatus.BLOCKED: 3,       # Needs attention
    TaskStatus.TO_DO: 4,         # Backlog
    TaskStatus.DONE: 5,          # Finished
    TaskStatus.DELETED: 6,       # Admin listings only
}
