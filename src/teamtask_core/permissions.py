"""Capability checks: who may do what to which resource.

Every check is an OR of ANDs over a handful of predicates, evaluated
admin-first:
- system admin override (``status.is_system_admin``)
- team role on the team that transitively owns the resource
- active team membership
- self-reference (assignee, author, uploader, target user)

Soft checks return a ``Decision``. Callers must either propagate it with
``raise_if_denied()`` or discard it explicitly with ``waive(note)``; a
waived denial is logged so relaxed paths stay greppable.

Hard checks (``system_admin_check``) raise directly.

The actor-active check is not part of any capability: callers run
``status.ensure_actor_active`` first (``check``/``authorize`` do so).
"""
import enum
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from sqlalchemy.orm import Session

from . import models
from .exceptions import AccessDeniedError, InvalidRequestError
from .relationships import (
    is_self,
    is_team_member,
    is_team_owner,
    is_team_owner_or_admin,
    team_id_for_project,
    team_id_for_task,
    team_id_for_task_id,
)
from .status import ensure_actor_active, is_system_admin

logger = logging.getLogger("teamtask-core.permissions")


@dataclass(frozen=True)
class Decision:
    """Outcome of a soft capability check: allowed, or denied with a reason."""

    allowed: bool
    reason: Optional[str] = None

    @classmethod
    def allow(cls) -> "Decision":
        return cls(True)

    @classmethod
    def deny(cls, reason: str) -> "Decision":
        return cls(False, reason)

    def __bool__(self) -> bool:
        return self.allowed

    def raise_if_denied(self) -> None:
        """
        Propagate a denial.

        Raises:
            AccessDeniedError: If the decision is a denial
        """
        if not self.allowed:
            logger.warning(f"Access denied: {self.reason}")
            raise AccessDeniedError(self.reason)

    def waive(self, note: str) -> None:
        """Discard the decision on purpose. Denials are logged with ``note``."""
        if not self.allowed:
            logger.warning(f"Waived denial ({self.reason}): {note}")


# =============================================================================
# System admin
# =============================================================================


def check_system_admin(actor: models.User) -> Decision:
    """Soft system-admin check."""
    if is_system_admin(actor):
        return Decision.allow()
    return Decision.deny(f"User {actor.id} is not a system admin")


def system_admin_check(actor: models.User) -> None:
    """
    Hard system-admin gate for admin-only operations.

    Raises:
        AccessDeniedError: If the actor is not a system admin
    """
    check_system_admin(actor).raise_if_denied()


# =============================================================================
# Tasks
# =============================================================================


def can_access_task(db: Session, actor: models.User, task: models.Task) -> Decision:
    """System admin, or any active member of the task's team."""
    if is_system_admin(actor):
        return Decision.allow()
    team_id = team_id_for_task(db, task)
    if is_team_member(db, actor.id, team_id):
        return Decision.allow()
    return Decision.deny(f"User {actor.id} is not a member of team {team_id} and cannot access task {task.id}")


def can_create_task_in_project(db: Session, actor: models.User, project: models.Project) -> Decision:
    if is_system_admin(actor):
        return Decision.allow()
    if is_team_member(db, actor.id, project.team_id):
        return Decision.allow()
    return Decision.deny(
        f"User {actor.id} is not a member of team {project.team_id} and cannot create tasks in project {project.id}"
    )


def can_modify_task(db: Session, actor: models.User, task: models.Task) -> Decision:
    """System admin, team owner/admin, or the task's current assignee."""
    if is_system_admin(actor):
        return Decision.allow()
    team_id = team_id_for_task(db, task)
    if is_team_owner_or_admin(db, actor.id, team_id):
        return Decision.allow()
    if is_self(actor.id, task.assigned_to):
        return Decision.allow()
    return Decision.deny(
        f"User {actor.id} must be a team owner/admin or the assignee to modify task {task.id}"
    )


def can_delete_task(db: Session, actor: models.User, task: models.Task) -> Decision:
    if is_system_admin(actor):
        return Decision.allow()
    team_id = team_id_for_task(db, task)
    if is_team_owner_or_admin(db, actor.id, team_id):
        return Decision.allow()
    return Decision.deny(f"User {actor.id} must be a team owner/admin to delete task {task.id}")


def can_assign_task(db: Session, actor: models.User, project_id: int, assignee_id: int) -> Decision:
    """
    System admin, or: the assignee is a member of the project's team AND the
    actor is a team owner/admin or is assigning the task to themself.

    Takes the project rather than the task so it also covers assignment at
    creation time. The project is resolved before the admin override, so a
    deleted project is reported missing even to admins.

    Raises:
        ResourceNotFoundError: If the project is missing or DELETED
    """
    team_id = team_id_for_project(db, project_id)
    if is_system_admin(actor):
        return Decision.allow()
    if not is_team_member(db, assignee_id, team_id):
        return Decision.deny(f"User {assignee_id} is not a member of team {team_id} and cannot be assigned tasks")
    if is_team_owner_or_admin(db, actor.id, team_id) or is_self(actor.id, assignee_id):
        return Decision.allow()
    return Decision.deny(
        f"User {actor.id} must be a team owner/admin to assign tasks in project {project_id} to another user"
    )


# =============================================================================
# Comments and attachments
# =============================================================================


def can_access_comment(db: Session, actor: models.User, comment: models.Comment) -> Decision:
    if is_system_admin(actor):
        return Decision.allow()
    team_id = team_id_for_task_id(db, comment.task_id)
    if is_team_member(db, actor.id, team_id):
        return Decision.allow()
    return Decision.deny(f"User {actor.id} is not a member of team {team_id} and cannot access comment {comment.id}")


def can_modify_comment(db: Session, actor: models.User, comment: models.Comment) -> Decision:
    """System admin, team owner/admin, or the comment's author."""
    if is_system_admin(actor):
        return Decision.allow()
    team_id = team_id_for_task_id(db, comment.task_id)
    if is_team_owner_or_admin(db, actor.id, team_id):
        return Decision.allow()
    if is_self(actor.id, comment.user_id):
        return Decision.allow()
    return Decision.deny(
        f"User {actor.id} must be the author or a team owner/admin to modify comment {comment.id}"
    )


def can_delete_comment(db: Session, actor: models.User, comment: models.Comment) -> Decision:
    """Author path plus the owner/admin moderation path; same rule as modify."""
    decision = can_modify_comment(db, actor, comment)
    if decision:
        return decision
    return Decision.deny(
        f"User {actor.id} must be the author or a team owner/admin to delete comment {comment.id}"
    )


def can_access_attachment(db: Session, actor: models.User, attachment: models.Attachment) -> Decision:
    if is_system_admin(actor):
        return Decision.allow()
    team_id = team_id_for_task_id(db, attachment.task_id)
    if is_team_member(db, actor.id, team_id):
        return Decision.allow()
    return Decision.deny(
        f"User {actor.id} is not a member of team {team_id} and cannot access attachment {attachment.id}"
    )


def can_delete_attachment(db: Session, actor: models.User, attachment: models.Attachment) -> Decision:
    if is_system_admin(actor):
        return Decision.allow()
    team_id = team_id_for_task_id(db, attachment.task_id)
    if is_team_owner_or_admin(db, actor.id, team_id):
        return Decision.allow()
    if is_self(actor.id, attachment.user_id):
        return Decision.allow()
    return Decision.deny(
        f"User {actor.id} must be the uploader or a team owner/admin to delete attachment {attachment.id}"
    )


# =============================================================================
# Teams and membership
# =============================================================================


def can_access_team(db: Session, actor: models.User, team_id: int) -> Decision:
    """Active members only; system admins use the admin listing instead."""
    if is_team_member(db, actor.id, team_id):
        return Decision.allow()
    return Decision.deny(f"User {actor.id} is not a member of team {team_id}")


def can_update_team(db: Session, actor: models.User, team_id: int) -> Decision:
    if is_team_owner_or_admin(db, actor.id, team_id):
        return Decision.allow()
    return Decision.deny(f"User {actor.id} must be a team owner/admin to update team {team_id}")


def _require_team_owner(db: Session, actor: models.User, team_id: int, action: str) -> Decision:
    # No system admin override for owner-only operations
    if is_team_owner(db, actor.id, team_id):
        return Decision.allow()
    return Decision.deny(f"Only the owner of team {team_id} can {action}")


def can_change_team_status(db: Session, actor: models.User, team_id: int) -> Decision:
    return _require_team_owner(db, actor, team_id, "change its status")


def can_delete_team(db: Session, actor: models.User, team_id: int) -> Decision:
    return _require_team_owner(db, actor, team_id, "delete it")


def can_add_team_member(db: Session, actor: models.User, team_id: int) -> Decision:
    return _require_team_owner(db, actor, team_id, "add members")


def can_remove_team_member(db: Session, actor: models.User, team_id: int) -> Decision:
    return _require_team_owner(db, actor, team_id, "remove members")


def can_update_member_role(db: Session, actor: models.User, team_id: int) -> Decision:
    return _require_team_owner(db, actor, team_id, "change member roles")


# =============================================================================
# Projects
# =============================================================================


def can_create_project(db: Session, actor: models.User, team_id: int) -> Decision:
    """Owner of the target team; no member or system admin fallback."""
    return _require_team_owner(db, actor, team_id, "create projects")


def can_access_project(db: Session, actor: models.User, project: models.Project) -> Decision:
    if is_system_admin(actor):
        return Decision.allow()
    if is_team_member(db, actor.id, project.team_id):
        return Decision.allow()
    return Decision.deny(
        f"User {actor.id} is not a member of team {project.team_id} and cannot access project {project.id}"
    )


def can_update_project(db: Session, actor: models.User, project: models.Project) -> Decision:
    if is_system_admin(actor):
        return Decision.allow()
    if is_team_owner_or_admin(db, actor.id, project.team_id):
        return Decision.allow()
    return Decision.deny(f"User {actor.id} must be a team owner/admin to update project {project.id}")


# =============================================================================
# Users
# =============================================================================


def can_view_owned_resources(actor: models.User, owner_id: int) -> Decision:
    """System admin, or the actor looking at their own resources."""
    if is_system_admin(actor) or is_self(actor.id, owner_id):
        return Decision.allow()
    return Decision.deny(f"User {actor.id} cannot view resources owned by user {owner_id}")


# =============================================================================
# Capability table
# =============================================================================


class Operation(str, enum.Enum):
    """Named operations accepted by ``check``/``authorize``."""

    ACCESS_TASK = "access_task"
    CREATE_TASK_IN_PROJECT = "create_task_in_project"
    MODIFY_TASK = "modify_task"
    DELETE_TASK = "delete_task"
    ASSIGN_TASK = "assign_task"
    ACCESS_COMMENT = "access_comment"
    CREATE_COMMENT = "create_comment"
    MODIFY_COMMENT = "modify_comment"
    DELETE_COMMENT = "delete_comment"
    ACCESS_ATTACHMENT = "access_attachment"
    UPLOAD_ATTACHMENT = "upload_attachment"
    DELETE_ATTACHMENT = "delete_attachment"
    ACCESS_TEAM = "access_team"
    UPDATE_TEAM = "update_team"
    CHANGE_TEAM_STATUS = "change_team_status"
    DELETE_TEAM = "delete_team"
    ADD_TEAM_MEMBER = "add_team_member"
    REMOVE_TEAM_MEMBER = "remove_team_member"
    UPDATE_MEMBER_ROLE = "update_member_role"
    CREATE_PROJECT = "create_project"
    ACCESS_PROJECT = "access_project"
    UPDATE_PROJECT = "update_project"
    TRANSFER_PROJECT = "transfer_project"
    VIEW_ALL_FOR_ADMIN = "view_all_for_admin"
    VIEW_OWNED_RESOURCES = "view_owned_resources"
    MANAGE_USERS = "manage_users"


def _check_assign_task(db: Session, actor: models.User, task: models.Task, ctx: dict) -> Decision:
    if ctx.get("assignee_id") is None:
        raise InvalidRequestError("assignee_id is required")
    return can_assign_task(db, actor, task.project_id, ctx["assignee_id"])


# Each entry takes (db, actor, resource, context). Team-scoped operations take
# the team id as their resource.
CAPABILITIES: dict[Operation, Callable[[Session, models.User, Any, dict], Decision]] = {
    Operation.ACCESS_TASK: lambda db, actor, task, ctx: can_access_task(db, actor, task),
    Operation.CREATE_TASK_IN_PROJECT: lambda db, actor, project, ctx: can_create_task_in_project(db, actor, project),
    Operation.MODIFY_TASK: lambda db, actor, task, ctx: can_modify_task(db, actor, task),
    Operation.DELETE_TASK: lambda db, actor, task, ctx: can_delete_task(db, actor, task),
    Operation.ASSIGN_TASK: _check_assign_task,
    Operation.ACCESS_COMMENT: lambda db, actor, comment, ctx: can_access_comment(db, actor, comment),
    Operation.CREATE_COMMENT: lambda db, actor, task, ctx: can_access_task(db, actor, task),
    Operation.MODIFY_COMMENT: lambda db, actor, comment, ctx: can_modify_comment(db, actor, comment),
    Operation.DELETE_COMMENT: lambda db, actor, comment, ctx: can_delete_comment(db, actor, comment),
    Operation.ACCESS_ATTACHMENT: lambda db, actor, attachment, ctx: can_access_attachment(db, actor, attachment),
    Operation.UPLOAD_ATTACHMENT: lambda db, actor, task, ctx: can_access_task(db, actor, task),
    Operation.DELETE_ATTACHMENT: lambda db, actor, attachment, ctx: can_delete_attachment(db, actor, attachment),
    Operation.ACCESS_TEAM: lambda db, actor, team_id, ctx: can_access_team(db, actor, team_id),
    Operation.UPDATE_TEAM: lambda db, actor, team_id, ctx: can_update_team(db, actor, team_id),
    Operation.CHANGE_TEAM_STATUS: lambda db, actor, team_id, ctx: can_change_team_status(db, actor, team_id),
    Operation.DELETE_TEAM: lambda db, actor, team_id, ctx: can_delete_team(db, actor, team_id),
    Operation.ADD_TEAM_MEMBER: lambda db, actor, team_id, ctx: can_add_team_member(db, actor, team_id),
    Operation.REMOVE_TEAM_MEMBER: lambda db, actor, team_id, ctx: can_remove_team_member(db, actor, team_id),
    Operation.UPDATE_MEMBER_ROLE: lambda db, actor, team_id, ctx: can_update_member_role(db, actor, team_id),
    Operation.CREATE_PROJECT: lambda db, actor, team_id, ctx: can_create_project(db, actor, team_id),
    Operation.ACCESS_PROJECT: lambda db, actor, project, ctx: can_access_project(db, actor, project),
    Operation.UPDATE_PROJECT: lambda db, actor, project, ctx: can_update_project(db, actor, project),
    Operation.TRANSFER_PROJECT: lambda db, actor, project, ctx: check_system_admin(actor),
    Operation.VIEW_ALL_FOR_ADMIN: lambda db, actor, resource, ctx: check_system_admin(actor),
    Operation.VIEW_OWNED_RESOURCES: lambda db, actor, owner_id, ctx: can_view_owned_resources(actor, owner_id),
    Operation.MANAGE_USERS: lambda db, actor, user, ctx: check_system_admin(actor),
}


def check(
    db: Session,
    operation: Operation,
    actor: models.User,
    resource: Any = None,
    **context: Any,
) -> Decision:
    """
    Evaluate ``operation`` for ``actor`` against ``resource``.

    Args:
        db: Database session used by relationship lookups
        operation: Capability to evaluate
        actor: Resolved acting user
        resource: Entity (or team id for team-scoped operations)
        **context: Extra inputs, e.g. ``assignee_id`` for ASSIGN_TASK

    Returns:
        Decision for the operation

    Raises:
        ActorNotActiveError: If the actor is not ACTIVE (checked first)
        ResourceNotFoundError: If a parent needed to answer is missing
        InvalidRequestError: If a required context value is missing
    """
    ensure_actor_active(actor)
    decision = CAPABILITIES[operation](db, actor, resource, context)
    logger.debug(f"{operation.value} for user {actor.id}: {'allowed' if decision else 'denied'}")
    return decision


def authorize(
    db: Session,
    operation: Operation,
    actor: models.User,
    resource: Any = None,
    **context: Any,
) -> None:
    """
    ``check`` and propagate a denial.

    Raises:
        ActorNotActiveError: If the actor is not ACTIVE
        AccessDeniedError: If the capability check fails
    """
    check(db, operation, actor, resource, **context).raise_if_denied()
