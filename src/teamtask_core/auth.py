"""Actor resolution.

The authentication gateway in front of the API verifies credentials and
forwards the authenticated principal (an email address). This module only
maps that principal to a User row; it never checks passwords or tokens.
"""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from . import models
from .exceptions import AuthenticationRequiredError
from .lookup import get_user_by_email

logger = logging.getLogger("teamtask-core.auth")


def resolve_actor(db: Session, principal: Optional[str]) -> models.User:
    """
    Resolve the acting user from an authenticated principal.

    The returned user may still be inactive; callers check that separately
    so the two failures stay distinguishable.

    Args:
        db: Database session
        principal: Email forwarded by the authentication gateway

    Returns:
        The matching User

    Raises:
        AuthenticationRequiredError: If no principal was given or it matches no user
    """
    if not principal or not principal.strip():
        raise AuthenticationRequiredError()

    user = get_user_by_email(db, principal)
    if not user:
        logger.warning(f"Unknown principal {principal!r}")
        raise AuthenticationRequiredError(f"No user registered for {principal.strip()}")

    logger.debug(f"Resolved actor {user.id} for {user.email}")
    return user
