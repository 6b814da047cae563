"""Comments API endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from teamtask_core import models, schemas
from teamtask_core.services import comments as comment_service

from ...database import get_db
from ..dependencies import PageParams, get_current_actor

router = APIRouter(tags=["comments"])


@router.post("/", response_model=schemas.CommentResponse, status_code=201)
def create_comment(
    comment: schemas.CommentCreate,
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    return comment_service.create_comment(db, actor, comment.task_id, comment.content)


@router.get("/me", response_model=schemas.CommentListResponse)
def list_my_comments(
    paging: PageParams = Depends(),
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    items, total = comment_service.list_my_comments(db, actor, skip=paging.skip, limit=paging.page_size)
    return paging.response(items, total)


@router.get("/admin/all", response_model=schemas.CommentListResponse)
def list_all_comments(
    paging: PageParams = Depends(),
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    items, total = comment_service.list_all_comments_for_admin(db, actor, skip=paging.skip, limit=paging.page_size)
    return paging.response(items, total)


@router.get("/user/{user_id}", response_model=schemas.CommentListResponse)
def list_user_comments(
    user_id: int,
    paging: PageParams = Depends(),
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    """Comments written by a user (system admins only)."""
    items, total = comment_service.list_comments_by_user(
        db, actor, user_id, skip=paging.skip, limit=paging.page_size,
    )
    return paging.response(items, total)


@router.get("/task/{task_id}", response_model=schemas.CommentListResponse)
def list_task_comments(
    task_id: int,
    paging: PageParams = Depends(),
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    items, total = comment_service.list_comments_by_task(db, actor, task_id, skip=paging.skip, limit=paging.page_size)
    return paging.response(items, total)


@router.get("/{comment_id}", response_model=schemas.CommentResponse)
def get_comment(
    comment_id: int,
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    return comment_service.get_comment(db, actor, comment_id)


@router.put("/{comment_id}", response_model=schemas.CommentResponse)
def update_comment(
    comment_id: int,
    update: schemas.CommentUpdate,
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    """Edit a comment (author, team owner/admin, or system admin)."""
    return comment_service.update_comment(db, actor, comment_id, update.content)


@router.delete("/{comment_id}", status_code=204)
def delete_comment(
    comment_id: int,
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    comment_service.delete_comment(db, actor, comment_id)
