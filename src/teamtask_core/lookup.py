"""Entity lookup queries.

Two flavours per entity:
- ``get_*`` returns the row or None
- ``find_*`` applies a visibility rule and raises ResourceNotFoundError

Uniqueness helpers (``*_exists``) are read-only checks; the caller writes
afterwards, so a concurrent writer can still slip in between. The partial
unique indexes in ``models`` are the final guard.
"""
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from . import models
from .exceptions import ActorNotActiveError, ResourceNotFoundError
from .status import is_active


# =============================================================================
# Users
# =============================================================================


def get_user(db: Session, user_id: int) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> Optional[models.User]:
    """Case-insensitive email lookup."""
    return db.query(models.User).filter(func.lower(models.User.email) == email.strip().lower()).first()


def find_user(db: Session, user_id: int) -> models.User:
    user = get_user(db, user_id)
    if not user:
        raise ResourceNotFoundError("User", user_id)
    return user


def find_active_user(db: Session, user_id: int) -> models.User:
    """
    Get a user that may take part in an operation (assignee, new member).

    Raises:
        ResourceNotFoundError: If the user does not exist
        ActorNotActiveError: If the user exists but is not ACTIVE
    """
    user = find_user(db, user_id)
    if not is_active(user):
        raise ActorNotActiveError(user.email, user.status)
    return user


def exists_other_active_admins(db: Session, user_id: int) -> bool:
    """True when at least one ACTIVE system admin other than ``user_id`` exists."""
    return db.query(models.User.id).filter(
        models.User.role == models.SystemRole.ADMIN,
        models.User.status == models.UserStatus.ACTIVE,
        models.User.id != user_id,
    ).first() is not None


# =============================================================================
# Teams
# =============================================================================


def get_team(db: Session, team_id: int) -> Optional[models.Team]:
    return db.query(models.Team).filter(models.Team.id == team_id).first()


def find_team(db: Session, team_id: int) -> models.Team:
    team = get_team(db, team_id)
    if not team:
        raise ResourceNotFoundError("Team", team_id)
    return team


def find_active_team(db: Session, team_id: int) -> models.Team:
    """Teams that are not ACTIVE are reported as missing."""
    team = find_team(db, team_id)
    if team.status != models.TeamStatus.ACTIVE:
        raise ResourceNotFoundError("Team", team_id)
    return team


def find_active_team_by_name(db: Session, name: str) -> models.Team:
    team = db.query(models.Team).filter(
        func.lower(models.Team.name) == name.lower(),
        models.Team.status == models.TeamStatus.ACTIVE,
    ).first()
    if not team:
        raise ResourceNotFoundError("Team", name)
    return team


def team_name_exists(db: Session, name: str, exclude_team_id: Optional[int] = None) -> bool:
    query = db.query(models.Team.id).filter(
        func.lower(models.Team.name) == name.lower(),
        models.Team.status != models.TeamStatus.DELETED,
    )
    if exclude_team_id is not None:
        query = query.filter(models.Team.id != exclude_team_id)
    return query.first() is not None


def get_team_member(db: Session, team_id: int, user_id: int) -> Optional[models.TeamMember]:
    """Roster row for (team, user) in any status."""
    return db.query(models.TeamMember).filter(
        models.TeamMember.team_id == team_id,
        models.TeamMember.user_id == user_id,
    ).first()


def find_active_team_member(db: Session, team_id: int, user_id: int) -> models.TeamMember:
    member = get_team_member(db, team_id, user_id)
    if not member or member.status != models.TeamMemberStatus.ACTIVE:
        raise ResourceNotFoundError("Team member", f"user {user_id} in team {team_id}")
    return member


def list_team_members(db: Session, team_id: int) -> list[models.TeamMember]:
    """All roster rows for a team regardless of status."""
    return db.query(models.TeamMember).filter(models.TeamMember.team_id == team_id).all()


def count_active_owners(db: Session, team_id: int) -> int:
    return db.query(models.TeamMember).filter(
        models.TeamMember.team_id == team_id,
        models.TeamMember.role == models.TeamRole.OWNER,
        models.TeamMember.status == models.TeamMemberStatus.ACTIVE,
    ).count()


# =============================================================================
# Projects
# =============================================================================


def get_project(db: Session, project_id: int) -> Optional[models.Project]:
    return db.query(models.Project).filter(models.Project.id == project_id).first()


def find_project(db: Session, project_id: int) -> models.Project:
    """Any status, DELETED included (admin paths)."""
    project = get_project(db, project_id)
    if not project:
        raise ResourceNotFoundError("Project", project_id)
    return project


def find_project_not_deleted(db: Session, project_id: int) -> models.Project:
    project = find_project(db, project_id)
    if project.status == models.ProjectStatus.DELETED:
        raise ResourceNotFoundError("Project", project_id)
    return project


def project_name_exists(
    db: Session,
    name: str,
    team_id: int,
    exclude_project_id: Optional[int] = None,
) -> bool:
    query = db.query(models.Project.id).filter(
        models.Project.team_id == team_id,
        func.lower(models.Project.name) == name.lower(),
        models.Project.status != models.ProjectStatus.DELETED,
    )
    if exclude_project_id is not None:
        query = query.filter(models.Project.id != exclude_project_id)
    return query.first() is not None


# =============================================================================
# Tasks
# =============================================================================


def get_task(db: Session, task_id: int) -> Optional[models.Task]:
    return db.query(models.Task).filter(models.Task.id == task_id).first()


def find_task(db: Session, task_id: int) -> models.Task:
    """Any status, DELETED included (admin paths)."""
    task = get_task(db, task_id)
    if not task:
        raise ResourceNotFoundError("Task", task_id)
    return task


def find_task_not_deleted(db: Session, task_id: int) -> models.Task:
    task = find_task(db, task_id)
    if task.status == models.TaskStatus.DELETED:
        raise ResourceNotFoundError("Task", task_id)
    return task


def task_title_exists(
    db: Session,
    title: str,
    project_id: int,
    exclude_task_id: Optional[int] = None,
) -> bool:
    """Case-insensitive title check among the project's non-deleted tasks."""
    query = db.query(models.Task.id).filter(
        models.Task.project_id == project_id,
        func.lower(models.Task.title) == title.lower(),
        models.Task.status != models.TaskStatus.DELETED,
    )
    if exclude_task_id is not None:
        query = query.filter(models.Task.id != exclude_task_id)
    return query.first() is not None


# =============================================================================
# Comments and attachments
# =============================================================================


def find_comment(db: Session, comment_id: int) -> models.Comment:
    comment = db.query(models.Comment).filter(models.Comment.id == comment_id).first()
    if not comment:
        raise ResourceNotFoundError("Comment", comment_id)
    return comment


def find_comment_not_deleted(db: Session, comment_id: int) -> models.Comment:
    comment = find_comment(db, comment_id)
    if comment.status == models.CommentStatus.DELETED:
        raise ResourceNotFoundError("Comment", comment_id)
    return comment


def find_attachment(db: Session, attachment_id: int) -> models.Attachment:
    attachment = db.query(models.Attachment).filter(models.Attachment.id == attachment_id).first()
    if not attachment:
        raise ResourceNotFoundError("Attachment", attachment_id)
    return attachment


def find_attachment_not_deleted(db: Session, attachment_id: int) -> models.Attachment:
    attachment = find_attachment(db, attachment_id)
    if attachment.status == models.AttachmentStatus.DELETED:
        raise ResourceNotFoundError("Attachment", attachment_id)
    return attachment


def count_active_attachments(db: Session, task_id: int) -> int:
    return db.query(models.Attachment).filter(
        models.Attachment.task_id == task_id,
        models.Attachment.status == models.AttachmentStatus.ACTIVE,
    ).count()
