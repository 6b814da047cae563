"""Team operations."""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from .. import lookup, models
from ..exceptions import DuplicateResourceError, InvalidRequestError, ResourceStateError
from ..permissions import (
    can_access_team,
    can_change_team_status,
    can_delete_team,
    can_update_team,
    can_view_owned_resources,
    system_admin_check,
)
from ..status import ensure_actor_active, is_system_admin
from ..team_state_machine import validate_team_status_transition
from . import commit, flush, paginate

logger = logging.getLogger("teamtask-core.teams")


def _normalize_name(name: Optional[str]) -> str:
    if name is None or not name.strip():
        raise InvalidRequestError("Team name cannot be blank")
    return name.strip()


def _ensure_name_available(db: Session, name: str, exclude_team_id: Optional[int] = None) -> None:
    if lookup.team_name_exists(db, name, exclude_team_id=exclude_team_id):
        logger.warning(f"Duplicate team name '{name}'")
        raise DuplicateResourceError(f"Team with name '{name}' already exists")


def _set_member_status(
    db: Session,
    team_id: int,
    new_status: models.TeamMemberStatus,
    from_statuses: tuple[models.TeamMemberStatus, ...],
) -> int:
    members = db.query(models.TeamMember).filter(
        models.TeamMember.team_id == team_id,
        models.TeamMember.status.in_(from_statuses),
    ).all()
    for member in members:
        member.status = new_status
    return len(members)


def _by_name(query):
    return query.order_by(models.Team.name.asc(), models.Team.id.asc())


def create_team(db: Session, actor: models.User, name: str, description: Optional[str] = None) -> models.Team:
    """
    Create a team. The creator becomes its OWNER and first member.

    Raises:
        InvalidRequestError: If the name is blank
        DuplicateResourceError: If a non-deleted team already uses the name
    """
    ensure_actor_active(actor)

    name = _normalize_name(name)
    _ensure_name_available(db, name)

    team = models.Team(
        name=name,
        description=description.strip() if description else description,
        owner_id=actor.id,
        status=models.TeamStatus.ACTIVE,
    )
    db.add(team)
    flush(db, f"Team with name '{name}' already exists")  # Need the id for the owner's roster row

    db.add(models.TeamMember(
        team_id=team.id,
        user_id=actor.id,
        role=models.TeamRole.OWNER,
        status=models.TeamMemberStatus.ACTIVE,
        joined_at=datetime.utcnow(),
    ))
    commit(db, f"Team with name '{name}' already exists")
    db.refresh(team)

    logger.info(f"Team '{team.name}' (ID: {team.id}) created by user {actor.id}")
    return team


def get_team(db: Session, actor: models.User, team_id: int) -> models.Team:
    """ACTIVE teams only, and only for their active members."""
    ensure_actor_active(actor)

    team = lookup.find_active_team(db, team_id)
    can_access_team(db, actor, team.id).raise_if_denied()
    return team


def get_team_by_name(db: Session, actor: models.User, name: str) -> models.Team:
    ensure_actor_active(actor)

    team = lookup.find_active_team_by_name(db, _normalize_name(name))
    can_access_team(db, actor, team.id).raise_if_denied()
    return team


def list_my_teams(db: Session, actor: models.User, skip: int = 0, limit: int = 50) -> tuple[list[models.Team], int]:
    """ACTIVE teams where the actor holds an ACTIVE roster entry."""
    ensure_actor_active(actor)

    member_of = db.query(models.TeamMember.team_id).filter(
        models.TeamMember.user_id == actor.id,
        models.TeamMember.status == models.TeamMemberStatus.ACTIVE,
    )
    query = db.query(models.Team).filter(
        models.Team.id.in_(member_of),
        models.Team.status == models.TeamStatus.ACTIVE,
    )
    return paginate(_by_name(query), skip, limit)


def list_teams_by_owner(
    db: Session,
    actor: models.User,
    owner_id: int,
    skip: int = 0,
    limit: int = 50,
) -> tuple[list[models.Team], int]:
    """System admins see every status; users see their own ACTIVE teams."""
    ensure_actor_active(actor)
    can_view_owned_resources(actor, owner_id).raise_if_denied()

    query = db.query(models.Team).filter(models.Team.owner_id == owner_id)
    if not is_system_admin(actor):
        query = query.filter(models.Team.status == models.TeamStatus.ACTIVE)
    return paginate(_by_name(query), skip, limit)


def list_all_teams_for_admin(
    db: Session,
    actor: models.User,
    skip: int = 0,
    limit: int = 50,
) -> tuple[list[models.Team], int]:
    ensure_actor_active(actor)
    system_admin_check(actor)

    return paginate(_by_name(db.query(models.Team)), skip, limit)


def update_team(
    db: Session,
    actor: models.User,
    team_id: int,
    name: Optional[str] = None,
    description: Optional[str] = None,
    status: Optional[models.TeamStatus] = None,
) -> models.Team:
    """
    Update an ACTIVE team.

    Name and description need a team owner/admin. A status change also needs
    the owner and goes through the team status machine; deletion has its own
    operation.

    Raises:
        InvalidRequestError: If nothing is given or the name is blank
        AccessDeniedError: If the actor lacks the needed team role
        InvalidTransitionError: If the status change is not allowed
        DuplicateResourceError: If the new name is taken
    """
    ensure_actor_active(actor)

    if name is None and description is None and status is None:
        raise InvalidRequestError("At least one field must be provided for update")

    team = lookup.find_active_team(db, team_id)
    can_access_team(db, actor, team.id).raise_if_denied()
    can_update_team(db, actor, team.id).raise_if_denied()

    if name is not None:
        name = _normalize_name(name)
        _ensure_name_available(db, name, exclude_team_id=team.id)

    if status is not None:
        can_change_team_status(db, actor, team.id).raise_if_denied()
        if status == models.TeamStatus.DELETED:
            raise InvalidRequestError("Use the delete operation to delete a team")
        validate_team_status_transition(team.status, status)

    old_status = team.status
    if name is not None:
        team.name = name
    if description is not None:
        team.description = description.strip()
    if status is not None:
        team.status = status

    commit(db, f"Team with name '{team.name}' already exists")
    db.refresh(team)

    if status is not None:
        logger.info(f"Team {team.id} status {old_status.value} → {status.value} by user {actor.id}")
    else:
        logger.info(f"Team '{team.name}' (ID: {team.id}) updated by user {actor.id}")
    return team


def delete_team(db: Session, actor: models.User, team_id: int) -> None:
    """
    Soft-delete an ACTIVE team. Owner only. Active roster entries become INACTIVE.

    Raises:
        ResourceNotFoundError: If the team is missing or not ACTIVE
        AccessDeniedError: If the actor is not the team owner
    """
    ensure_actor_active(actor)

    team = lookup.find_active_team(db, team_id)
    can_delete_team(db, actor, team.id).raise_if_denied()
    validate_team_status_transition(team.status, models.TeamStatus.DELETED)

    team.status = models.TeamStatus.DELETED
    deactivated = _set_member_status(
        db, team.id, models.TeamMemberStatus.INACTIVE, (models.TeamMemberStatus.ACTIVE,)
    )
    commit(db, f"Could not delete team {team.id}")

    logger.info(f"Team '{team.name}' (ID: {team.id}) deleted by user {actor.id}; {deactivated} members deactivated")


def restore_team(db: Session, actor: models.User, team_id: int) -> models.Team:
    """
    Bring a DELETED or INACTIVE team back to ACTIVE. System admin only.

    Roster entries made INACTIVE by the deletion become ACTIVE again;
    REMOVED members stay removed.

    Raises:
        AccessDeniedError: If the actor is not a system admin
        ResourceStateError: If the team is already ACTIVE
        DuplicateResourceError: If another team took the name meanwhile
    """
    ensure_actor_active(actor)
    system_admin_check(actor)

    team = lookup.find_team(db, team_id)
    if team.status == models.TeamStatus.ACTIVE:
        raise ResourceStateError(f"Team {team.id} is already active")

    validate_team_status_transition(team.status, models.TeamStatus.ACTIVE)
    _ensure_name_available(db, team.name, exclude_team_id=team.id)

    team.status = models.TeamStatus.ACTIVE
    reactivated = _set_member_status(
        db, team.id, models.TeamMemberStatus.ACTIVE, (models.TeamMemberStatus.INACTIVE,)
    )
    commit(db, f"Team with name '{team.name}' already exists")
    db.refresh(team)

    logger.info(f"Team '{team.name}' (ID: {team.id}) restored by admin {actor.id}; {reactivated} members reactivated")
    return team
