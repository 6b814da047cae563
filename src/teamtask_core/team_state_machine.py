"""State machine validation for Team status and TeamMember role changes.

Roles:
- member <-> admin
- owner may step down to admin or member, but never while last owner
- nobody is promoted to owner through a role update; ownership transfer is
  a separate operation

Team status:
- active <-> inactive
- active/inactive -> deleted (owner)
- deleted -> active (system admin restore)
"""
import logging

from .exceptions import LastOwnerError
from .models import TeamRole, TeamStatus
from .state_machine import validate_transition

logger = logging.getLogger("teamtask-core.team_state_machine")


TEAM_ROLE_TRANSITION_MATRIX: dict[TeamRole, list[TeamRole]] = {
    TeamRole.MEMBER: [TeamRole.ADMIN],
    TeamRole.ADMIN: [TeamRole.MEMBER],
    TeamRole.OWNER: [TeamRole.ADMIN, TeamRole.MEMBER],
}

TEAM_ROLE_TRANSITION_HINTS: dict[TeamRole, str] = {
    TeamRole.MEMBER: "Ownership can only be handed over through an ownership transfer.",
    TeamRole.ADMIN: "Ownership can only be handed over through an ownership transfer.",
}

TEAM_STATUS_TRANSITION_MATRIX: dict[TeamStatus, list[TeamStatus]] = {
    TeamStatus.ACTIVE: [TeamStatus.INACTIVE, TeamStatus.DELETED],
    TeamStatus.INACTIVE: [TeamStatus.ACTIVE, TeamStatus.DELETED],
    TeamStatus.DELETED: [TeamStatus.ACTIVE],
}


def validate_role_transition(
    team_id: int,
    current_role: TeamRole,
    new_role: TeamRole,
    is_last_owner: bool,
) -> None:
    """
    Validate a TeamMember role change.

    Args:
        team_id: Team the membership belongs to (for messages)
        current_role: Role the member holds now
        new_role: Requested role
        is_last_owner: Whether the team has no other active owner

    Raises:
        InvalidTransitionError: If the role is unchanged or the change is not allowed
        LastOwnerError: If the last owner of the team would be demoted
    """
    if current_role != new_role and current_role == TeamRole.OWNER and is_last_owner:
        logger.warning(f"Blocked demotion of last owner of team {team_id} to {new_role.value}")
        raise LastOwnerError(team_id)

    validate_transition(
        TEAM_ROLE_TRANSITION_MATRIX,
        current_role,
        new_role,
        entity="Team role",
        hints=TEAM_ROLE_TRANSITION_HINTS,
    )


def validate_team_status_transition(current_status: TeamStatus, new_status: TeamStatus) -> None:
    validate_transition(TEAM_STATUS_TRANSITION_MATRIX, current_status, new_status, entity="Team status")
