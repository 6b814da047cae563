"""Attachments API endpoints (metadata and storage handles)."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from teamtask_core import models, schemas
from teamtask_core.services import attachments as attachment_service

from ...database import get_db
from ..dependencies import PageParams, get_current_actor

router = APIRouter(tags=["attachments"])


@router.post("/", response_model=schemas.AttachmentResponse, status_code=201)
def upload_attachment(
    attachment: schemas.AttachmentCreate,
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    """
    Register a file uploaded to object storage.

    The response carries the ``object_key`` the bytes must be stored under.
    """
    return attachment_service.upload_attachment(
        db,
        actor,
        task_id=attachment.task_id,
        original_filename=attachment.original_filename,
        file_size=attachment.file_size,
        content_type=attachment.content_type,
    )


@router.get("/me", response_model=schemas.AttachmentListResponse)
def list_my_attachments(
    paging: PageParams = Depends(),
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    items, total = attachment_service.list_my_attachments(db, actor, skip=paging.skip, limit=paging.page_size)
    return paging.response(items, total)


@router.get("/admin/all", response_model=schemas.AttachmentListResponse)
def list_all_attachments(
    paging: PageParams = Depends(),
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    items, total = attachment_service.list_all_attachments_for_admin(
        db, actor, skip=paging.skip, limit=paging.page_size,
    )
    return paging.response(items, total)


@router.get("/task/{task_id}", response_model=schemas.AttachmentListResponse)
def list_task_attachments(
    task_id: int,
    paging: PageParams = Depends(),
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    items, total = attachment_service.list_attachments_by_task(
        db, actor, task_id, skip=paging.skip, limit=paging.page_size,
    )
    return paging.response(items, total)


@router.get("/{attachment_id}", response_model=schemas.AttachmentResponse)
def get_attachment(
    attachment_id: int,
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    return attachment_service.get_attachment(db, actor, attachment_id)


@router.get("/{attachment_id}/download", response_model=schemas.AttachmentDownload)
def download_attachment(
    attachment_id: int,
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    """
    Storage handle for an attachment.

    The caller fetches the bytes from object storage under ``object_key``.
    """
    return attachment_service.download_attachment(db, actor, attachment_id)


@router.delete("/{attachment_id}", status_code=204)
def delete_attachment(
    attachment_id: int,
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    attachment_service.delete_attachment(db, actor, attachment_id)
