"""Team roster operations.

Adding, removing and re-roling members is reserved for the team OWNER;
system admins get no override here. The owner can never remove or re-role
themself, and the last owner can never be demoted.
"""
import logging
from datetime import datetime

from sqlalchemy.orm import Session

from .. import lookup, models
from ..exceptions import DuplicateResourceError, InvalidRequestError, LastOwnerError, SelfOperationError
from ..permissions import (
    can_access_team,
    can_add_team_member,
    can_remove_team_member,
    can_update_member_role,
    check_system_admin,
    system_admin_check,
)
from ..relationships import is_last_owner, is_self
from ..status import ensure_actor_active, is_system_admin
from ..team_state_machine import validate_role_transition
from . import commit, paginate

logger = logging.getLogger("teamtask-core.team_members")

ASSIGNABLE_ROLES = (models.TeamRole.MEMBER, models.TeamRole.ADMIN)


def _require_member_or_admin(db: Session, actor: models.User, team_id: int) -> None:
    if not check_system_admin(actor):
        can_access_team(db, actor, team_id).raise_if_denied()


def add_member(
    db: Session,
    actor: models.User,
    team_id: int,
    user_id: int,
    role: models.TeamRole = models.TeamRole.MEMBER,
) -> models.TeamMember:
    """
    Add an active user to an ACTIVE team.

    A user who was removed earlier gets their old roster row back with the
    new role.

    Raises:
        ResourceNotFoundError: If the team or user is missing
        ActorNotActiveError: If the user to add is not ACTIVE
        AccessDeniedError: If the actor is not the team owner
        InvalidRequestError: If ``role`` is OWNER
        DuplicateResourceError: If the user is already an active member
    """
    ensure_actor_active(actor)

    team = lookup.find_active_team(db, team_id)
    user = lookup.find_active_user(db, user_id)
    can_add_team_member(db, actor, team.id).raise_if_denied()

    if role not in ASSIGNABLE_ROLES:
        raise InvalidRequestError("Members can only be added as member or admin; ownership is transferred, not granted")

    member = lookup.get_team_member(db, team.id, user.id)
    if member is not None and member.status == models.TeamMemberStatus.ACTIVE:
        raise DuplicateResourceError(f"User {user.id} is already a member of team {team.id}")

    if member is None:
        member = models.TeamMember(team_id=team.id, user_id=user.id)
        db.add(member)
        action = "added"
    else:
        action = "re-added"

    member.role = role
    member.status = models.TeamMemberStatus.ACTIVE
    member.joined_at = datetime.utcnow()
    commit(db, f"User {user.id} is already a member of team {team.id}")
    db.refresh(member)

    logger.info(f"User {actor.id} {action} user {user.id} to team {team.id} with role {role.value}")
    return member


def remove_member(db: Session, actor: models.User, team_id: int, user_id: int) -> None:
    """
    Raises:
        AccessDeniedError: If the actor is not the team owner
        SelfOperationError: If the owner tries to remove themself
        ResourceNotFoundError: If the user is not an active member
        LastOwnerError: If the target is the team's only owner
    """
    ensure_actor_active(actor)

    team = lookup.find_active_team(db, team_id)
    can_remove_team_member(db, actor, team.id).raise_if_denied()

    if is_self(actor.id, user_id):
        raise SelfOperationError("Team owner cannot remove themselves. Transfer ownership or delete the team.")

    member = lookup.find_active_team_member(db, team.id, user_id)
    if member.role == models.TeamRole.OWNER and is_last_owner(db, team.id):
        raise LastOwnerError(team.id)

    member.status = models.TeamMemberStatus.REMOVED
    commit(db, f"Could not remove user {user_id} from team {team.id}")

    logger.info(f"User {actor.id} removed user {user_id} from team {team.id}")


def update_member_role(
    db: Session,
    actor: models.User,
    team_id: int,
    user_id: int,
    new_role: models.TeamRole,
) -> models.TeamMember:
    """
    Change a member's team role through the role state machine.

    Raises:
        AccessDeniedError: If the actor is not the team owner
        ResourceNotFoundError: If the user is not an active member
        SelfOperationError: If the owner targets their own role
        LastOwnerError: If the last owner would be demoted
        InvalidTransitionError: If the role is unchanged or the change is not allowed
    """
    ensure_actor_active(actor)

    team = lookup.find_active_team(db, team_id)
    can_update_member_role(db, actor, team.id).raise_if_denied()

    member = lookup.find_active_team_member(db, team.id, user_id)
    if is_self(actor.id, user_id):
        if member.role == models.TeamRole.OWNER and is_last_owner(db, team.id):
            raise LastOwnerError(team.id)
        raise SelfOperationError("Team owner cannot update their own role; transfer ownership first")

    validate_role_transition(team.id, member.role, new_role, is_last_owner(db, team.id))

    old_role = member.role
    member.role = new_role
    commit(db, f"Could not update role of user {user_id} in team {team.id}")
    db.refresh(member)

    logger.info(f"User {actor.id} changed role of user {user_id} in team {team.id} from {old_role.value} to {new_role.value}")
    return member


def leave_team(db: Session, actor: models.User, team_id: int) -> None:
    """
    Leave a team. The owner cannot leave.

    Raises:
        ResourceNotFoundError: If the team is not ACTIVE or the actor is not an active member
        SelfOperationError: If the actor owns the team
    """
    ensure_actor_active(actor)

    team = lookup.find_active_team(db, team_id)
    member = lookup.find_active_team_member(db, team.id, actor.id)
    if member.role == models.TeamRole.OWNER:
        raise SelfOperationError("Team owner cannot leave the team. Transfer ownership or delete the team.")

    member.status = models.TeamMemberStatus.REMOVED
    commit(db, f"Could not leave team {team.id}")

    logger.info(f"User {actor.id} left team {team.id}")


def list_members(
    db: Session,
    actor: models.User,
    team_id: int,
    skip: int = 0,
    limit: int = 50,
) -> tuple[list[models.TeamMember], int]:
    """Active members for team members; every roster row for system admins."""
    ensure_actor_active(actor)

    team = lookup.find_active_team(db, team_id)
    _require_member_or_admin(db, actor, team.id)

    query = db.query(models.TeamMember).filter(models.TeamMember.team_id == team.id)
    if not is_system_admin(actor):
        query = query.filter(models.TeamMember.status == models.TeamMemberStatus.ACTIVE)

    query = query.order_by(models.TeamMember.joined_at.asc(), models.TeamMember.id.asc())
    return paginate(query, skip, limit)


def get_member(db: Session, actor: models.User, team_id: int, user_id: int) -> models.TeamMember:
    ensure_actor_active(actor)

    team = lookup.find_active_team(db, team_id)
    _require_member_or_admin(db, actor, team.id)
    return lookup.find_active_team_member(db, team.id, user_id)


def count_active_members(db: Session, actor: models.User, team_id: int) -> int:
    ensure_actor_active(actor)

    team = lookup.find_active_team(db, team_id)
    _require_member_or_admin(db, actor, team.id)
    return db.query(models.TeamMember).filter(
        models.TeamMember.team_id == team.id,
        models.TeamMember.status == models.TeamMemberStatus.ACTIVE,
    ).count()


def count_total_members_for_admin(db: Session, actor: models.User, team_id: int) -> int:
    """Roster rows in every status, for a team in any status. Hard system-admin gate."""
    ensure_actor_active(actor)
    system_admin_check(actor)

    team = lookup.find_team(db, team_id)
    return len(lookup.list_team_members(db, team.id))
