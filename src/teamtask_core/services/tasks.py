"""Task operations."""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import case
from sqlalchemy.orm import Session

from .. import lookup, models
from ..exceptions import DuplicateResourceError, InvalidRequestError, ResourceStateError
from ..permissions import (
    can_assign_task,
    can_create_task_in_project,
    can_delete_task,
    can_modify_task,
    can_access_task,
    system_admin_check,
)
from ..state_machine import TASK_STATUS_SORT_ORDER, validate_task_transition
from ..status import ensure_actor_active, is_deleted, is_system_admin
from . import commit, paginate

logger = logging.getLogger("teamtask-core.tasks")


def _status_sort_expression():
    """CASE expression ordering tasks by TASK_STATUS_SORT_ORDER (in_progress first)."""
    return case(
        *[(models.Task.status == status, order) for status, order in TASK_STATUS_SORT_ORDER.items()],
        else_=len(TASK_STATUS_SORT_ORDER) + 1,
    )


def _ordered(query):
    return query.order_by(_status_sort_expression(), models.Task.created_at.desc(), models.Task.id.desc())


def _normalize_title(title: Optional[str]) -> str:
    if title is None or not title.strip():
        raise InvalidRequestError("Task title cannot be blank")
    return title.strip()


def _ensure_title_available(db: Session, title: str, project_id: int, exclude_task_id: Optional[int] = None) -> None:
    if lookup.task_title_exists(db, title, project_id, exclude_task_id=exclude_task_id):
        logger.warning(f"Duplicate task title '{title}' in project {project_id}")
        raise DuplicateResourceError(f"Task with title '{title}' already exists in project {project_id}")


def create_task(
    db: Session,
    actor: models.User,
    project_id: int,
    title: str,
    description: Optional[str] = None,
    priority: Optional[models.TaskPriority] = None,
    assigned_to: Optional[int] = None,
    due_date: Optional[datetime] = None,
) -> models.Task:
    """
    Create a task in an ACTIVE project.

    Raises:
        ActorNotActiveError: If the actor is not ACTIVE
        ResourceNotFoundError: If the project (or assignee) does not exist
        ResourceStateError: If the project is not ACTIVE
        AccessDeniedError: If the actor cannot create tasks here or assign to ``assigned_to``
        InvalidRequestError: If the title is blank
        DuplicateResourceError: If the title is taken in the project
    """
    ensure_actor_active(actor)

    project = lookup.find_project_not_deleted(db, project_id)
    if project.status != models.ProjectStatus.ACTIVE:
        logger.warning(f"Blocked task creation in {project.status.value} project {project.id}")
        raise ResourceStateError(
            f"Tasks can only be created in active projects; project {project.id} is {project.status.value}"
        )

    can_create_task_in_project(db, actor, project).raise_if_denied()

    title = _normalize_title(title)
    _ensure_title_available(db, title, project.id)

    if assigned_to is not None:
        assignee = lookup.find_active_user(db, assigned_to)
        can_assign_task(db, actor, project.id, assignee.id).raise_if_denied()

    task = models.Task(
        project_id=project.id,
        title=title,
        description=description,
        priority=priority or models.TaskPriority.MEDIUM,
        assigned_to=assigned_to,
        due_date=due_date,
        status=models.TaskStatus.TO_DO,
        created_by=actor.id,
        updated_by=actor.id,
    )
    db.add(task)
    commit(db, f"Task with title '{title}' already exists in project {project.id}")
    db.refresh(task)

    logger.info(f"Task '{task.title}' (ID: {task.id}) created in project {project.id} by user {actor.id}")
    return task


def get_task(db: Session, actor: models.User, task_id: int) -> models.Task:
    """System admins also see DELETED tasks; everyone else gets not-found for them."""
    ensure_actor_active(actor)

    if is_system_admin(actor):
        task = lookup.find_task(db, task_id)
    else:
        task = lookup.find_task_not_deleted(db, task_id)

    can_access_task(db, actor, task).raise_if_denied()
    return task


def list_tasks_by_project(
    db: Session,
    actor: models.User,
    project_id: int,
    skip: int = 0,
    limit: int = 50,
    status_filter: Optional[models.TaskStatus] = None,
) -> tuple[list[models.Task], int]:
    ensure_actor_active(actor)

    project = lookup.find_project_not_deleted(db, project_id)
    can_create_task_in_project(db, actor, project).raise_if_denied()

    query = db.query(models.Task).filter(models.Task.project_id == project.id)
    if not is_system_admin(actor):
        query = query.filter(models.Task.status != models.TaskStatus.DELETED)
    if status_filter:
        query = query.filter(models.Task.status == status_filter)

    return paginate(_ordered(query), skip, limit)


def update_task(
    db: Session,
    actor: models.User,
    task_id: int,
    title: Optional[str] = None,
    description: Optional[str] = None,
    status: Optional[models.TaskStatus] = None,
    priority: Optional[models.TaskPriority] = None,
    due_date: Optional[datetime] = None,
) -> models.Task:
    """
    Update task fields. Status changes go through the task state machine.

    Raises:
        InvalidRequestError: If no field is given or the title is blank
        AccessDeniedError: If the actor cannot modify the task
        InvalidTransitionError: If the status change is not allowed
        DuplicateResourceError: If the new title is taken in the project
    """
    ensure_actor_active(actor)

    if all(v is None for v in (title, description, status, priority, due_date)):
        raise InvalidRequestError("At least one field must be provided for update")

    if is_system_admin(actor):
        task = lookup.find_task(db, task_id)
    else:
        task = lookup.find_task_not_deleted(db, task_id)

    can_modify_task(db, actor, task).raise_if_denied()

    if status is not None:
        validate_task_transition(task.status, status)
    elif is_deleted(task):
        raise ResourceStateError(f"Task {task.id} is deleted and cannot be updated")

    if title is not None:
        title = _normalize_title(title)
        _ensure_title_available(db, title, task.project_id, exclude_task_id=task.id)
        task.title = title

    if description is not None:
        task.description = description
    if priority is not None:
        task.priority = priority
    if due_date is not None:
        task.due_date = due_date

    old_status = task.status
    if status is not None:
        task.status = status
        if status == models.TaskStatus.DONE:
            task.completed_at = datetime.utcnow()
        elif old_status == models.TaskStatus.DONE:
            task.completed_at = None

    task.updated_by = actor.id
    commit(db, f"Task with title '{task.title}' already exists in project {task.project_id}")
    db.refresh(task)

    if status is not None:
        logger.info(f"Task {task.id} status {old_status.value} → {status.value} by user {actor.id}")
    else:
        logger.info(f"Task {task.id} updated by user {actor.id}")
    return task


def delete_task(db: Session, actor: models.User, task_id: int) -> None:
    """
    Soft-delete a task. The only path into DELETED.

    Raises:
        ResourceNotFoundError: If the task does not exist or is already DELETED
        AccessDeniedError: If the actor is not a system admin or team owner/admin
    """
    ensure_actor_active(actor)

    task = lookup.find_task_not_deleted(db, task_id)
    can_delete_task(db, actor, task).raise_if_denied()

    old_status = task.status
    task.status = models.TaskStatus.DELETED
    task.updated_by = actor.id
    commit(db, f"Could not delete task {task.id}")

    logger.info(f"Task '{task.title}' (ID: {task.id}) deleted by user {actor.id} (was {old_status.value})")


def assign_task(db: Session, actor: models.User, task_id: int, assignee_id: int) -> models.Task:
    """
    Assign (or reassign) a task.

    Raises:
        ResourceNotFoundError: If the task or assignee does not exist
        ActorNotActiveError: If the actor or the assignee is not ACTIVE
        AccessDeniedError: If the assignment is not allowed
    """
    ensure_actor_active(actor)

    task = lookup.find_task_not_deleted(db, task_id)
    assignee = lookup.find_active_user(db, assignee_id)
    can_assign_task(db, actor, task.project_id, assignee.id).raise_if_denied()

    previous = task.assigned_to
    task.assigned_to = assignee.id
    task.updated_by = actor.id
    commit(db, f"Could not assign task {task.id}")
    db.refresh(task)

    if previous is None:
        logger.info(f"Task {task.id} assigned to user {assignee.id} by user {actor.id}")
    else:
        logger.info(f"Task {task.id} reassigned from user {previous} to user {assignee.id} by user {actor.id}")
    return task


def unassign_task(db: Session, actor: models.User, task_id: int) -> models.Task:
    """
    Clear a task's assignee.

    Raises:
        ResourceStateError: If the task has no assignee
        AccessDeniedError: If the actor cannot modify the task
    """
    ensure_actor_active(actor)

    task = lookup.find_task_not_deleted(db, task_id)
    if task.assigned_to is None:
        raise ResourceStateError(f"Task {task.id} is already unassigned")

    can_modify_task(db, actor, task).raise_if_denied()

    previous = task.assigned_to
    task.assigned_to = None
    task.updated_by = actor.id
    commit(db, f"Could not unassign task {task.id}")
    db.refresh(task)

    logger.info(f"Task {task.id} unassigned from user {previous} by user {actor.id}")
    return task


def list_my_tasks(db: Session, actor: models.User, skip: int = 0, limit: int = 50) -> tuple[list[models.Task], int]:
    """Non-deleted tasks assigned to the actor."""
    ensure_actor_active(actor)

    query = db.query(models.Task).filter(
        models.Task.assigned_to == actor.id,
        models.Task.status != models.TaskStatus.DELETED,
    )
    return paginate(_ordered(query), skip, limit)


def list_all_tasks_for_admin(
    db: Session,
    actor: models.User,
    skip: int = 0,
    limit: int = 50,
) -> tuple[list[models.Task], int]:
    """Every task in every status. Hard system-admin gate."""
    ensure_actor_active(actor)
    system_admin_check(actor)

    return paginate(_ordered(db.query(models.Task)), skip, limit)
