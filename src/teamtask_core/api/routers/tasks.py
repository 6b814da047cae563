"""Tasks API endpoints."""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from teamtask_core import models, schemas
from teamtask_core.services import tasks as task_service

from ...database import get_db
from ..dependencies import PageParams, get_current_actor

router = APIRouter(tags=["tasks"])


@router.post("/", response_model=schemas.TaskResponse, status_code=201)
def create_task(
    task: schemas.TaskCreate,
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    """
    Create a task in an active project.

    - **project_id**: Project the task belongs to (must be active)
    - **title**: Unique within the project (case-insensitive)
    - **assigned_to**: Optional assignee; must be an active team member
    """
    return task_service.create_task(
        db,
        actor,
        project_id=task.project_id,
        title=task.title,
        description=task.description,
        priority=task.priority,
        assigned_to=task.assigned_to,
        due_date=task.due_date,
    )


@router.get("/me", response_model=schemas.TaskListResponse)
def list_my_tasks(
    paging: PageParams = Depends(),
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    """Tasks assigned to the current user."""
    items, total = task_service.list_my_tasks(db, actor, skip=paging.skip, limit=paging.page_size)
    return paging.response(items, total)


@router.get("/admin/all", response_model=schemas.TaskListResponse)
def list_all_tasks(
    paging: PageParams = Depends(),
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    """Every task in every status (system admins only)."""
    items, total = task_service.list_all_tasks_for_admin(db, actor, skip=paging.skip, limit=paging.page_size)
    return paging.response(items, total)


@router.get("/project/{project_id}", response_model=schemas.TaskListResponse)
def list_project_tasks(
    project_id: int,
    status: Optional[models.TaskStatus] = Query(None, description="Filter by status"),
    paging: PageParams = Depends(),
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    """
    List a project's tasks, in-progress work first.
    """
    items, total = task_service.list_tasks_by_project(
        db, actor, project_id, skip=paging.skip, limit=paging.page_size, status_filter=status,
    )
    return paging.response(items, total)


@router.get("/{task_id}", response_model=schemas.TaskResponse)
def get_task(
    task_id: int,
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    return task_service.get_task(db, actor, task_id)


@router.put("/{task_id}", response_model=schemas.TaskResponse)
def update_task(
    task_id: int,
    update: schemas.TaskUpdate,
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    """
    Update a task.

    Status changes must follow the task workflow:
    to_do -> in_progress -> in_review -> done, with blocked as a side state.
    Use DELETE to delete a task.
    """
    return task_service.update_task(db, actor, task_id, **update.model_dump(exclude_unset=True))


@router.delete("/{task_id}", status_code=204)
def delete_task(
    task_id: int,
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    task_service.delete_task(db, actor, task_id)


@router.post("/{task_id}/assign", response_model=schemas.TaskResponse)
def assign_task(
    task_id: int,
    assignment: schemas.TaskAssign,
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    return task_service.assign_task(db, actor, task_id, assignment.assignee_id)


@router.post("/{task_id}/unassign", response_model=schemas.TaskResponse)
def unassign_task(
    task_id: int,
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    return task_service.unassign_task(db, actor, task_id)
