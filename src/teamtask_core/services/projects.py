"""Project operations.

Several admin-facing project operations (all-for-admin listing, activate,
archive, restore, delete) run the soft system-admin check and then waive
its result. Those endpoints have always been reachable by any active user;
the waiver keeps that behaviour visible in logs instead of hiding it.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from .. import lookup, models
from ..exceptions import DuplicateResourceError, InvalidRequestError
from ..permissions import (
    can_access_project,
    can_access_team,
    can_create_project,
    can_update_project,
    can_view_owned_resources,
    check_system_admin,
    system_admin_check,
)
from ..project_state_machine import resolve_initial_project_status, validate_project_transition
from ..status import ensure_actor_active, is_system_admin
from . import commit, paginate

logger = logging.getLogger("teamtask-core.projects")

RELAXED_ADMIN_CHECK = "admin check not enforced on this endpoint (long-standing behaviour)"


def _to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _validate_dates(
    start_date: Optional[datetime],
    end_date: Optional[datetime],
    check_start_not_past: bool = True,
) -> None:
    """
    Raises:
        InvalidRequestError: If a date is in the past or start is not before end
    """
    now = datetime.utcnow()
    if check_start_not_past and start_date is not None and start_date < now:
        raise InvalidRequestError("Start date must be in the future")
    if end_date is not None and end_date < now:
        raise InvalidRequestError("End date must be today or in the future")
    _validate_date_order(start_date, end_date)


def _validate_date_order(start_date: Optional[datetime], end_date: Optional[datetime]) -> None:
    if start_date is not None and end_date is not None and start_date >= end_date:
        raise InvalidRequestError("End date must be after start date")


def _normalize_name(name: Optional[str]) -> str:
    if name is None or not name.strip():
        raise InvalidRequestError("Project name cannot be blank")
    return name.strip()


def _ensure_name_available(db: Session, name: str, team_id: int, exclude_project_id: Optional[int] = None) -> None:
    if lookup.project_name_exists(db, name, team_id, exclude_project_id=exclude_project_id):
        logger.warning(f"Duplicate project name '{name}' in team {team_id}")
        raise DuplicateResourceError(f"Project with name '{name}' already exists in team {team_id}")


def _newest_first(query):
    return query.order_by(models.Project.created_at.desc(), models.Project.id.desc())


def create_project(
    db: Session,
    actor: models.User,
    team_id: int,
    name: str,
    description: Optional[str] = None,
    status: Optional[models.ProjectStatus] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> models.Project:
    """
    Create a project in an ACTIVE team. Only the team owner may do this.

    Raises:
        ResourceNotFoundError: If the team does not exist or is not ACTIVE
        AccessDeniedError: If the actor is not the team owner
        DuplicateResourceError: If the name is taken in the team
        InvalidRequestError: If dates or the initial status are invalid
    """
    ensure_actor_active(actor)

    team = lookup.find_active_team(db, team_id)
    can_create_project(db, actor, team.id).raise_if_denied()

    name = _normalize_name(name)
    _ensure_name_available(db, name, team.id)

    start_date, end_date = _to_naive_utc(start_date), _to_naive_utc(end_date)
    _validate_dates(start_date, end_date)
    initial_status = resolve_initial_project_status(status)

    project = models.Project(
        team_id=team.id,
        name=name,
        description=description,
        status=initial_status,
        start_date=start_date,
        end_date=end_date,
        created_by=actor.id,
        updated_by=actor.id,
    )
    db.add(project)
    commit(db, f"Project with name '{name}' already exists in team {team.id}")
    db.refresh(project)

    logger.info(f"Project '{project.name}' (ID: {project.id}) created in team {team.id} by user {actor.id}")
    return project


def get_project(db: Session, actor: models.User, project_id: int) -> models.Project:
    """
    System admins see projects in any status. Everyone else sees non-deleted
    projects of ACTIVE teams they belong to.
    """
    ensure_actor_active(actor)

    if is_system_admin(actor):
        project = lookup.find_project(db, project_id)
    else:
        project = lookup.find_project_not_deleted(db, project_id)
        lookup.find_active_team(db, project.team_id)

    can_access_project(db, actor, project).raise_if_denied()
    return project


def list_projects_by_team(
    db: Session,
    actor: models.User,
    team_id: int,
    skip: int = 0,
    limit: int = 50,
) -> tuple[list[models.Project], int]:
    ensure_actor_active(actor)

    team = lookup.find_active_team(db, team_id)
    query = db.query(models.Project).filter(models.Project.team_id == team.id)

    if not is_system_admin(actor):
        can_access_team(db, actor, team.id).raise_if_denied()
        query = query.filter(models.Project.status != models.ProjectStatus.DELETED)

    return paginate(_newest_first(query), skip, limit)


def list_projects_by_owner(
    db: Session,
    actor: models.User,
    owner_id: int,
    skip: int = 0,
    limit: int = 50,
) -> tuple[list[models.Project], int]:
    """Projects of every team ``owner_id`` owns. Self or system admin only."""
    ensure_actor_active(actor)
    can_view_owned_resources(actor, owner_id).raise_if_denied()

    owned_team_ids = db.query(models.TeamMember.team_id).filter(
        models.TeamMember.user_id == owner_id,
        models.TeamMember.role == models.TeamRole.OWNER,
    )
    query = db.query(models.Project).filter(models.Project.team_id.in_(owned_team_ids))
    if not is_system_admin(actor):
        query = query.filter(models.Project.status != models.ProjectStatus.DELETED)

    return paginate(_newest_first(query), skip, limit)


def list_all_projects_for_admin(
    db: Session,
    actor: models.User,
    skip: int = 0,
    limit: int = 50,
) -> tuple[list[models.Project], int]:
    ensure_actor_active(actor)
    check_system_admin(actor).waive(RELAXED_ADMIN_CHECK)

    return paginate(_newest_first(db.query(models.Project)), skip, limit)


def update_project(
    db: Session,
    actor: models.User,
    project_id: int,
    name: Optional[str] = None,
    description: Optional[str] = None,
    status: Optional[models.ProjectStatus] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> models.Project:
    """
    Update project fields. Status changes go through the project state
    machine; DELETED is only reachable through ``delete_project``.

    Raises:
        InvalidRequestError: If nothing is given, the name is blank, or dates are invalid
        AccessDeniedError: If the actor is not a system admin or team owner/admin
        InvalidTransitionError: If the status change is not allowed
        DuplicateResourceError: If the new name is taken in the team
    """
    ensure_actor_active(actor)

    if all(v is None for v in (name, description, status, start_date, end_date)):
        raise InvalidRequestError("At least one field must be provided for update")

    project = lookup.find_project_not_deleted(db, project_id)
    lookup.find_active_team(db, project.team_id)
    can_update_project(db, actor, project).raise_if_denied()

    if name is not None:
        name = _normalize_name(name)
        _ensure_name_available(db, name, project.team_id, exclude_project_id=project.id)

    if status is not None:
        if status == models.ProjectStatus.DELETED:
            raise InvalidRequestError("Use the delete operation to delete a project")
        validate_project_transition(project.status, status)

    if start_date is not None or end_date is not None:
        start_date, end_date = _to_naive_utc(start_date), _to_naive_utc(end_date)
        _validate_dates(start_date, end_date)
        effective_start = start_date if start_date is not None else project.start_date
        effective_end = end_date if end_date is not None else project.end_date
        _validate_date_order(effective_start, effective_end)

    old_status = project.status
    if name is not None:
        project.name = name
    if description is not None:
        project.description = description
    if status is not None:
        project.status = status
    if start_date is not None:
        project.start_date = start_date
    if end_date is not None:
        project.end_date = end_date

    project.updated_by = actor.id
    commit(db, f"Project with name '{project.name}' already exists in team {project.team_id}")
    db.refresh(project)

    if status is not None:
        logger.info(f"Project {project.id} status {old_status.value} → {status.value} by user {actor.id}")
    else:
        logger.info(f"Project {project.id} updated by user {actor.id}")
    return project


def transfer_project(db: Session, actor: models.User, project_id: int, new_team_id: int) -> models.Project:
    """
    Move a project to another ACTIVE team. Hard system-admin gate.

    Raises:
        AccessDeniedError: If the actor is not a system admin
        ResourceNotFoundError: If the project or target team is missing
        InvalidRequestError: If the project already belongs to the target team
        DuplicateResourceError: If the target team already has a project with this name
    """
    ensure_actor_active(actor)
    system_admin_check(actor)

    project = lookup.find_project_not_deleted(db, project_id)
    target = lookup.find_active_team(db, new_team_id)

    if project.team_id == target.id:
        raise InvalidRequestError(f"Project {project.id} already belongs to team {target.id}")
    _ensure_name_available(db, project.name, target.id)

    old_team_id = project.team_id
    project.team_id = target.id
    project.updated_by = actor.id
    commit(db, f"Project with name '{project.name}' already exists in team {target.id}")
    db.refresh(project)

    logger.info(f"Project {project.id} transferred from team {old_team_id} to team {target.id} by user {actor.id}")
    return project


def _change_status_relaxed(
    db: Session,
    actor: models.User,
    project: models.Project,
    new_status: models.ProjectStatus,
) -> models.Project:
    old_status = project.status
    validate_project_transition(old_status, new_status)

    project.status = new_status
    project.updated_by = actor.id
    commit(db, f"Project with name '{project.name}' already exists in team {project.team_id}")
    db.refresh(project)

    logger.info(
        f"Project '{project.name}' (ID: {project.id}) {old_status.value} → {new_status.value} by user {actor.id}"
    )
    return project


def activate_project(db: Session, actor: models.User, project_id: int) -> models.Project:
    """
    Move a project to ACTIVE. The end date must not have passed yet.

    Raises:
        ResourceNotFoundError: If the project or its team (ACTIVE) is missing
        InvalidTransitionError: If the project cannot become ACTIVE from its status
        InvalidRequestError: If the project's end date has passed
    """
    ensure_actor_active(actor)

    project = lookup.find_project(db, project_id)
    team = lookup.find_active_team(db, project.team_id)
    check_system_admin(actor).waive(RELAXED_ADMIN_CHECK)

    validate_project_transition(project.status, models.ProjectStatus.ACTIVE)
    _ensure_name_available(db, project.name, team.id, exclude_project_id=project.id)
    _validate_dates(project.start_date, project.end_date, check_start_not_past=False)

    return _change_status_relaxed(db, actor, project, models.ProjectStatus.ACTIVE)


def archive_project(db: Session, actor: models.User, project_id: int) -> models.Project:
    ensure_actor_active(actor)

    project = lookup.find_project(db, project_id)
    lookup.find_active_team(db, project.team_id)
    check_system_admin(actor).waive(RELAXED_ADMIN_CHECK)

    return _change_status_relaxed(db, actor, project, models.ProjectStatus.ARCHIVED)


def restore_project(db: Session, actor: models.User, project_id: int) -> models.Project:
    """
    Restore a DELETED (or revive an ARCHIVED) project to PLANNED.

    The name must still be free in the team, since another project may have
    taken it while this one was deleted.
    """
    ensure_actor_active(actor)

    project = lookup.find_project(db, project_id)
    team = lookup.find_active_team(db, project.team_id)
    check_system_admin(actor).waive(RELAXED_ADMIN_CHECK)

    validate_project_transition(project.status, models.ProjectStatus.PLANNED)
    _ensure_name_available(db, project.name, team.id, exclude_project_id=project.id)

    return _change_status_relaxed(db, actor, project, models.ProjectStatus.PLANNED)


def delete_project(db: Session, actor: models.User, project_id: int) -> None:
    ensure_actor_active(actor)
    check_system_admin(actor).waive(RELAXED_ADMIN_CHECK)

    project = lookup.find_project(db, project_id)
    _change_status_relaxed(db, actor, project, models.ProjectStatus.DELETED)
