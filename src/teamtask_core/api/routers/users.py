"""Users API endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from teamtask_core import models, schemas
from teamtask_core.services import users as user_service

from ...database import get_db
from ..dependencies import PageParams, get_current_actor

router = APIRouter(tags=["users"])


@router.get("/me", response_model=schemas.UserResponse)
def get_me(
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    return user_service.get_user(db, actor, actor.id)


@router.get("/admin/all", response_model=list[schemas.UserResponse])
def list_all_users(
    paging: PageParams = Depends(),
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    items, _ = user_service.list_all_users_for_admin(db, actor, skip=paging.skip, limit=paging.page_size)
    return items


@router.get("/{user_id}", response_model=schemas.UserResponse)
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    """Own record, or any record for system admins."""
    return user_service.get_user(db, actor, user_id)


@router.post("/{user_id}/activate", response_model=schemas.UserResponse)
def activate_user(
    user_id: int,
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    return user_service.activate_user(db, actor, user_id)


@router.post("/{user_id}/deactivate", response_model=schemas.UserResponse)
def deactivate_user(
    user_id: int,
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    return user_service.deactivate_user(db, actor, user_id)


@router.post("/{user_id}/suspend", response_model=schemas.UserResponse)
def suspend_user(
    user_id: int,
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    return user_service.suspend_user(db, actor, user_id)


@router.post("/{user_id}/restore", response_model=schemas.UserResponse)
def restore_user(
    user_id: int,
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    return user_service.restore_user(db, actor, user_id)


@router.put("/{user_id}/role", response_model=schemas.UserResponse)
def change_user_role(
    user_id: int,
    update: schemas.UserRoleUpdate,
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    return user_service.change_user_role(db, actor, user_id, update.role)


@router.delete("/{user_id}", status_code=204)
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    user_service.delete_user(db, actor, user_id)
