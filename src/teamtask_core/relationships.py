"""Relationship questions between actors and teams.

Every answer is a fresh read through ``lookup``; nothing is cached, so a
single operation may repeat a query. Operations are short request/response
cycles, so there is no invalidation to manage.
"""
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from . import lookup, models

OWNER_OR_ADMIN = (models.TeamRole.OWNER, models.TeamRole.ADMIN)


def is_team_member(db: Session, user_id: int, team_id: int) -> bool:
    """Any ACTIVE roster entry, whatever the role (OWNER and ADMIN included)."""
    member = lookup.get_team_member(db, team_id, user_id)
    return member is not None and member.status == models.TeamMemberStatus.ACTIVE


def has_team_role(
    db: Session,
    user_id: int,
    team_id: int,
    roles: Iterable[models.TeamRole],
) -> bool:
    """True when the user is an ACTIVE member holding one of ``roles``."""
    member = lookup.get_team_member(db, team_id, user_id)
    if member is None or member.status != models.TeamMemberStatus.ACTIVE:
        return False
    return member.role in set(roles)


def is_team_owner(db: Session, user_id: int, team_id: int) -> bool:
    return has_team_role(db, user_id, team_id, [models.TeamRole.OWNER])


def is_team_owner_or_admin(db: Session, user_id: int, team_id: int) -> bool:
    return has_team_role(db, user_id, team_id, OWNER_OR_ADMIN)


def is_self(actor_id: int, subject_id: Optional[int]) -> bool:
    """Self-reference: the actor is the subject (assignee, author, target user)."""
    return subject_id is not None and actor_id == subject_id


def is_last_owner(db: Session, team_id: int) -> bool:
    """True when the team has at most one ACTIVE owner left."""
    return lookup.count_active_owners(db, team_id) <= 1


def team_id_for_project(db: Session, project_id: int) -> int:
    """
    Owning team of a non-deleted project.

    Raises:
        ResourceNotFoundError: If the project is missing or DELETED
    """
    return lookup.find_project_not_deleted(db, project_id).team_id


def team_id_for_task(db: Session, task: models.Task) -> int:
    """Owning team of a task, resolved through its (non-deleted) project."""
    return team_id_for_project(db, task.project_id)


def team_id_for_task_id(db: Session, task_id: int) -> int:
    """Owning team of a non-deleted task, for comments and attachments."""
    return team_id_for_task(db, lookup.find_task_not_deleted(db, task_id))
