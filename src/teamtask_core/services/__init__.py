"""Service operations.

Each operation runs the same fixed sequence: actor-active check, target
lookup, capability check, transition validation, write, commit. The
session passed in is the transaction boundary.
"""
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..exceptions import DuplicateResourceError

logger = logging.getLogger("teamtask-core.services")


def commit(db: Session, conflict_message: str) -> None:
    """
    Commit the session, translating a uniqueness backstop hit.

    Two concurrent writers can both pass a ``*_exists`` check; the partial
    unique indexes reject the second one here.

    Raises:
        DuplicateResourceError: If a unique index rejected the write
        SQLAlchemyError: For any other database failure (after rollback)
    """
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Uniqueness conflict on commit: {conflict_message}")
        raise DuplicateResourceError(conflict_message) from e
    except SQLAlchemyError:
        db.rollback()
        logger.error("Database error on commit", exc_info=True)
        raise


def flush(db: Session, conflict_message: str) -> None:
    """
    Flush pending inserts mid-transaction, translating a uniqueness hit.

    Used where a generated id is needed before the final commit.

    Raises:
        DuplicateResourceError: If a unique index rejected the insert
    """
    try:
        db.flush()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Uniqueness conflict on flush: {conflict_message}")
        raise DuplicateResourceError(conflict_message) from e


def paginate(query: Query, skip: int, limit: int) -> tuple[list, int]:
    """Return one page of ``query`` plus the total row count."""
    total = query.count()
    return query.offset(skip).limit(limit).all(), total
