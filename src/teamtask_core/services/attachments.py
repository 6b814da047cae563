"""Attachment metadata operations.

File bytes are written to object storage by the caller; this module records
where they live and who may see or remove them.
"""
import logging
import os
import uuid
from typing import Optional

from sqlalchemy.orm import Session

from .. import lookup, models
from ..config import get_settings
from ..exceptions import InvalidRequestError
from ..permissions import (
    can_access_attachment,
    can_access_task,
    can_delete_attachment,
    system_admin_check,
)
from ..status import ensure_actor_active, is_system_admin
from . import commit, paginate

logger = logging.getLogger("teamtask-core.attachments")

OBJECT_KEY_PREFIX = "attachments/"
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def generate_stored_filename(original_filename: str) -> str:
    """Random, collision-free name that keeps the original extension."""
    _, extension = os.path.splitext(original_filename)
    return f"{uuid.uuid4().hex}{extension.lower()}"


def _newest_first(query):
    return query.order_by(models.Attachment.created_at.desc(), models.Attachment.id.desc())


def _validate_file_size(file_size: int) -> None:
    settings = get_settings()
    if file_size <= 0:
        raise InvalidRequestError("File cannot be empty")
    if file_size > settings.attachment_max_file_size:
        limit_mb = settings.attachment_max_file_size // 1024 // 1024
        raise InvalidRequestError(f"File size exceeds maximum allowed: {limit_mb} MB")


def upload_attachment(
    db: Session,
    actor: models.User,
    task_id: int,
    original_filename: str,
    file_size: int,
    content_type: Optional[str] = None,
) -> models.Attachment:
    """
    Record an attachment on a task.

    Raises:
        ResourceNotFoundError: If the task does not exist or is DELETED
        AccessDeniedError: If the actor cannot access the task
        InvalidRequestError: If the file is empty, too large, unnamed, or the
            task already holds the maximum number of attachments
    """
    ensure_actor_active(actor)

    task = lookup.find_task_not_deleted(db, task_id)
    can_access_task(db, actor, task).raise_if_denied()

    _validate_file_size(file_size)

    max_files = get_settings().attachment_max_files_per_task
    if lookup.count_active_attachments(db, task.id) >= max_files:
        logger.warning(f"Attachment limit reached on task {task.id}")
        raise InvalidRequestError(f"Maximum {max_files} attachments allowed per task")

    if original_filename is None or not original_filename.strip():
        raise InvalidRequestError("File must have a name")

    original_filename = original_filename.strip()
    stored_filename = generate_stored_filename(original_filename)

    attachment = models.Attachment(
        task_id=task.id,
        user_id=actor.id,
        original_filename=original_filename,
        stored_filename=stored_filename,
        object_key=f"{OBJECT_KEY_PREFIX}{stored_filename}",
        content_type=content_type or DEFAULT_CONTENT_TYPE,
        file_size=file_size,
        status=models.AttachmentStatus.ACTIVE,
    )
    db.add(attachment)
    commit(db, f"Could not attach {original_filename} to task {task.id}")
    db.refresh(attachment)

    logger.info(
        f"Attachment '{original_filename}' (ID: {attachment.id}, {file_size} bytes) "
        f"uploaded to task {task.id} by user {actor.id}"
    )
    return attachment


def get_attachment(db: Session, actor: models.User, attachment_id: int) -> models.Attachment:
    ensure_actor_active(actor)

    if is_system_admin(actor):
        attachment = lookup.find_attachment(db, attachment_id)
    else:
        attachment = lookup.find_attachment_not_deleted(db, attachment_id)

    can_access_attachment(db, actor, attachment).raise_if_denied()
    return attachment


def download_attachment(db: Session, actor: models.User, attachment_id: int) -> models.Attachment:
    """
    Resolve the storage handle for an attachment's bytes.

    Deleted attachments cannot be downloaded, even by system admins.
    """
    ensure_actor_active(actor)

    attachment = lookup.find_attachment_not_deleted(db, attachment_id)
    can_access_attachment(db, actor, attachment).raise_if_denied()

    logger.info(f"Attachment {attachment.id} download requested by user {actor.id}")
    return attachment


def list_attachments_by_task(
    db: Session,
    actor: models.User,
    task_id: int,
    skip: int = 0,
    limit: int = 50,
) -> tuple[list[models.Attachment], int]:
    ensure_actor_active(actor)

    task = lookup.find_task_not_deleted(db, task_id)
    can_access_task(db, actor, task).raise_if_denied()

    query = db.query(models.Attachment).filter(models.Attachment.task_id == task.id)
    if not is_system_admin(actor):
        query = query.filter(models.Attachment.status != models.AttachmentStatus.DELETED)
    return paginate(_newest_first(query), skip, limit)


def delete_attachment(db: Session, actor: models.User, attachment_id: int) -> None:
    """Soft delete; the stored object is left for storage lifecycle rules."""
    ensure_actor_active(actor)

    attachment = lookup.find_attachment_not_deleted(db, attachment_id)
    can_delete_attachment(db, actor, attachment).raise_if_denied()

    attachment.status = models.AttachmentStatus.DELETED
    attachment.updated_by = actor.id
    commit(db, f"Could not delete attachment {attachment.id}")

    logger.info(f"Attachment {attachment.id} deleted by user {actor.id}")


def list_my_attachments(
    db: Session,
    actor: models.User,
    skip: int = 0,
    limit: int = 50,
) -> tuple[list[models.Attachment], int]:
    ensure_actor_active(actor)

    query = db.query(models.Attachment).filter(
        models.Attachment.user_id == actor.id,
        models.Attachment.status != models.AttachmentStatus.DELETED,
    )
    return paginate(_newest_first(query), skip, limit)


def list_all_attachments_for_admin(
    db: Session,
    actor: models.User,
    skip: int = 0,
    limit: int = 50,
) -> tuple[list[models.Attachment], int]:
    ensure_actor_active(actor)
    system_admin_check(actor)

    return paginate(_newest_first(db.query(models.Attachment)), skip, limit)
