"""Comment operations."""
import logging

from sqlalchemy.orm import Session

from .. import lookup, models
from ..exceptions import InvalidRequestError
from ..permissions import (
    can_access_comment,
    can_access_task,
    can_delete_comment,
    can_modify_comment,
    system_admin_check,
)
from ..status import ensure_actor_active, is_system_admin
from . import commit, paginate

logger = logging.getLogger("teamtask-core.comments")


def _normalize_content(content: str) -> str:
    if content is None or not content.strip():
        raise InvalidRequestError("Comment content cannot be blank")
    return content.strip()


def _newest_first(query):
    return query.order_by(models.Comment.created_at.desc(), models.Comment.id.desc())


def create_comment(db: Session, actor: models.User, task_id: int, content: str) -> models.Comment:
    """Anyone who can access the task may comment on it."""
    ensure_actor_active(actor)

    task = lookup.find_task_not_deleted(db, task_id)
    can_access_task(db, actor, task).raise_if_denied()

    comment = models.Comment(
        task_id=task.id,
        user_id=actor.id,
        content=_normalize_content(content),
        status=models.CommentStatus.ACTIVE,
    )
    db.add(comment)
    commit(db, f"Could not add comment to task {task.id}")
    db.refresh(comment)

    logger.info(f"Comment {comment.id} created on task {task.id} by user {actor.id}")
    return comment


def get_comment(db: Session, actor: models.User, comment_id: int) -> models.Comment:
    ensure_actor_active(actor)

    if is_system_admin(actor):
        comment = lookup.find_comment(db, comment_id)
    else:
        comment = lookup.find_comment_not_deleted(db, comment_id)

    can_access_comment(db, actor, comment).raise_if_denied()
    return comment


def list_comments_by_task(
    db: Session,
    actor: models.User,
    task_id: int,
    skip: int = 0,
    limit: int = 50,
) -> tuple[list[models.Comment], int]:
    ensure_actor_active(actor)

    task = lookup.find_task_not_deleted(db, task_id)
    can_access_task(db, actor, task).raise_if_denied()

    query = db.query(models.Comment).filter(models.Comment.task_id == task.id)
    if not is_system_admin(actor):
        query = query.filter(models.Comment.status != models.CommentStatus.DELETED)
    return paginate(_newest_first(query), skip, limit)


def update_comment(db: Session, actor: models.User, comment_id: int, content: str) -> models.Comment:
    """
    Edit a comment's content.

    Raises:
        ResourceNotFoundError: If the comment does not exist or is DELETED
        AccessDeniedError: If the actor is not the author, a team owner/admin or a system admin
    """
    ensure_actor_active(actor)

    comment = lookup.find_comment_not_deleted(db, comment_id)
    can_modify_comment(db, actor, comment).raise_if_denied()

    comment.content = _normalize_content(content)
    comment.updated_by = actor.id
    commit(db, f"Could not update comment {comment.id}")
    db.refresh(comment)

    logger.info(f"Comment {comment.id} updated by user {actor.id}")
    return comment


def delete_comment(db: Session, actor: models.User, comment_id: int) -> None:
    ensure_actor_active(actor)

    comment = lookup.find_comment_not_deleted(db, comment_id)
    can_delete_comment(db, actor, comment).raise_if_denied()

    comment.status = models.CommentStatus.DELETED
    comment.updated_by = actor.id
    commit(db, f"Could not delete comment {comment.id}")

    logger.info(f"Comment {comment.id} deleted by user {actor.id}")


def list_my_comments(db: Session, actor: models.User, skip: int = 0, limit: int = 50) -> tuple[list[models.Comment], int]:
    ensure_actor_active(actor)

    query = db.query(models.Comment).filter(
        models.Comment.user_id == actor.id,
        models.Comment.status != models.CommentStatus.DELETED,
    )
    return paginate(_newest_first(query), skip, limit)


def list_comments_by_user(
    db: Session,
    actor: models.User,
    user_id: int,
    skip: int = 0,
    limit: int = 50,
) -> tuple[list[models.Comment], int]:
    """Non-deleted comments written by an active user. Hard system-admin gate."""
    ensure_actor_active(actor)
    system_admin_check(actor)

    author = lookup.find_active_user(db, user_id)
    query = db.query(models.Comment).filter(
        models.Comment.user_id == author.id,
        models.Comment.status != models.CommentStatus.DELETED,
    )
    return paginate(_newest_first(query), skip, limit)


def list_all_comments_for_admin(
    db: Session,
    actor: models.User,
    skip: int = 0,
    limit: int = 50,
) -> tuple[list[models.Comment], int]:
    ensure_actor_active(actor)
    system_admin_check(actor)

    return paginate(_newest_first(db.query(models.Comment)), skip, limit)
