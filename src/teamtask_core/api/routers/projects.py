"""Projects API endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from teamtask_core import models, schemas
from teamtask_core.services import projects as project_service

from ...database import get_db
from ..dependencies import PageParams, get_current_actor

router = APIRouter(tags=["projects"])


@router.post("/", response_model=schemas.ProjectResponse, status_code=201)
def create_project(
    project: schemas.ProjectCreate,
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    """
    Create a new project. Only the owner of the target team may do this.

    - **team_id**: Owning team (must be active)
    - **name**: Unique within the team (case-insensitive)
    - **status**: planned (default), active or on_hold
    - **start_date** / **end_date**: Not in the past; start before end
    """
    return project_service.create_project(
        db,
        actor,
        team_id=project.team_id,
        name=project.name,
        description=project.description,
        status=project.status,
        start_date=project.start_date,
        end_date=project.end_date,
    )


@router.get("/admin/all", response_model=schemas.ProjectListResponse)
def list_all_projects(
    paging: PageParams = Depends(),
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    items, total = project_service.list_all_projects_for_admin(db, actor, skip=paging.skip, limit=paging.page_size)
    return paging.response(items, total)


@router.get("/team/{team_id}", response_model=schemas.ProjectListResponse)
def list_team_projects(
    team_id: int,
    paging: PageParams = Depends(),
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    items, total = project_service.list_projects_by_team(db, actor, team_id, skip=paging.skip, limit=paging.page_size)
    return paging.response(items, total)


@router.get("/owner/{owner_id}", response_model=schemas.ProjectListResponse)
def list_owner_projects(
    owner_id: int,
    paging: PageParams = Depends(),
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    """Projects of the teams a user owns (that user or a system admin)."""
    items, total = project_service.list_projects_by_owner(
        db, actor, owner_id, skip=paging.skip, limit=paging.page_size,
    )
    return paging.response(items, total)


@router.get("/{project_id}", response_model=schemas.ProjectResponse)
def get_project(
    project_id: int,
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    return project_service.get_project(db, actor, project_id)


@router.put("/{project_id}", response_model=schemas.ProjectResponse)
def update_project(
    project_id: int,
    update: schemas.ProjectUpdate,
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    return project_service.update_project(db, actor, project_id, **update.model_dump(exclude_unset=True))


@router.post("/{project_id}/transfer", response_model=schemas.ProjectResponse)
def transfer_project(
    project_id: int,
    transfer: schemas.ProjectTransfer,
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    """Move a project to another active team (system admins only)."""
    return project_service.transfer_project(db, actor, project_id, transfer.team_id)


@router.post("/{project_id}/activate", response_model=schemas.ProjectResponse)
def activate_project(
    project_id: int,
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    return project_service.activate_project(db, actor, project_id)


@router.post("/{project_id}/archive", response_model=schemas.ProjectResponse)
def archive_project(
    project_id: int,
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    return project_service.archive_project(db, actor, project_id)


@router.post("/{project_id}/restore", response_model=schemas.ProjectResponse)
def restore_project(
    project_id: int,
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    return project_service.restore_project(db, actor, project_id)


@router.delete("/{project_id}", status_code=204)
def delete_project(
    project_id: int,
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    project_service.delete_project(db, actor, project_id)
