"""Status predicates over users and entities.

Pure functions: they read the ``status`` attribute they are given and never
touch the database.
"""
import logging

from .exceptions import ActorNotActiveError
from .models import User, UserStatus, SystemRole

logger = logging.getLogger("teamtask-core.status")


def is_active(user: User) -> bool:
    """True when the user account is ACTIVE."""
    return user.status == UserStatus.ACTIVE


def is_deleted(entity) -> bool:
    """True when the entity's status is its enum's DELETED member."""
    status = entity.status
    deleted = getattr(type(status), "DELETED", None)
    return deleted is not None and status == deleted


def is_system_admin(user: User) -> bool:
    """Soft check: the user holds the system-wide ADMIN role."""
    return user.role == SystemRole.ADMIN


def ensure_actor_active(actor: User) -> None:
    """
    Raise unless the actor is ACTIVE.

    Runs before any capability check: an inactive actor may perform no
    operation at all.

    Raises:
        ActorNotActiveError: If actor.status != ACTIVE
    """
    if not is_active(actor):
        logger.warning(f"Rejected inactive actor {actor.id} ({actor.status.value})")
        raise ActorNotActiveError(actor.email, actor.status)
