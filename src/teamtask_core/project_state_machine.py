"""State machine validation for Project lifecycle status transitions.

Standard lifecycle: planned -> active -> completed -> archived
Side states: on_hold (pause from planned/active)
Soft delete: every status may move to deleted; deleted may only be restored
to planned (system admin), archived may be revived to planned.
"""
import logging

from .exceptions import InvalidRequestError
from .models import ProjectStatus
from .state_machine import validate_transition

logger = logging.getLogger("teamtask-core.project_state_machine")


PROJECT_TRANSITION_MATRIX: dict[ProjectStatus, list[ProjectStatus]] = {
    ProjectStatus.PLANNED: [
        ProjectStatus.ACTIVE,      # Forward: work begins
        ProjectStatus.ON_HOLD,     # Pause before starting
        ProjectStatus.DELETED,
    ],
    ProjectStatus.ACTIVE: [
        ProjectStatus.ON_HOLD,     # Pause
        ProjectStatus.COMPLETED,   # Forward: delivered
        ProjectStatus.DELETED,
    ],
    ProjectStatus.ON_HOLD: [
        ProjectStatus.ACTIVE,      # Resume
        ProjectStatus.ARCHIVED,    # Shelved
        ProjectStatus.DELETED,
    ],
    ProjectStatus.COMPLETED: [
        ProjectStatus.ARCHIVED,
        ProjectStatus.DELETED,
    ],
    ProjectStatus.ARCHIVED: [
        ProjectStatus.PLANNED,     # Revive
        ProjectStatus.DELETED,
    ],
    ProjectStatus.DELETED: [
        ProjectStatus.PLANNED,     # Restore (system admin)
    ],
}

PROJECT_TRANSITION_HINTS: dict[ProjectStatus, str] = {
    ProjectStatus.DELETED: "Deleted projects can only be restored to planned.",
    ProjectStatus.PLANNED: "Planned projects must be activated before they can be completed.",
}

# Statuses a project may be created in
INITIAL_PROJECT_STATUSES = (ProjectStatus.PLANNED, ProjectStatus.ACTIVE, ProjectStatus.ON_HOLD)


def validate_project_transition(current_status: ProjectStatus, new_status: ProjectStatus) -> None:
    """
    Validate a Project status transition.

    Raises:
        InvalidTransitionError: If the transition is a no-op or not allowed
    """
    validate_transition(
        PROJECT_TRANSITION_MATRIX,
        current_status,
        new_status,
        entity="Project status",
        hints=PROJECT_TRANSITION_HINTS,
    )


def resolve_initial_project_status(status: ProjectStatus | None) -> ProjectStatus:
    """
    Status for a newly created project; defaults to planned.

    Raises:
        InvalidRequestError: If the status is not a valid starting status
    """
    if status is None:
        return ProjectStatus.PLANNED
    if status not in INITIAL_PROJECT_STATUSES:
        allowed = ", ".join(s.value for s in INITIAL_PROJECT_STATUSES)
        logger.warning(f"Rejected initial project status {status.value}")
        raise InvalidRequestError(
            f"Projects cannot be created with status {status.value}. Allowed: {allowed}"
        )
    return status
