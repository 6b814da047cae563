"""User account operations.

Status and role changes are admin-only. An admin can never deactivate,
suspend or delete their own account, and the last active system admin can
never be taken out of service or demoted.
"""
import logging

from sqlalchemy.orm import Session

from .. import lookup, models
from ..exceptions import InvalidRequestError, LastAdminError, ResourceNotFoundError, ResourceStateError, SelfOperationError
from ..permissions import can_view_owned_resources, system_admin_check
from ..relationships import is_self
from ..status import ensure_actor_active, is_system_admin
from ..user_state_machine import validate_user_status_transition
from . import commit, paginate

logger = logging.getLogger("teamtask-core.users")


def _ensure_not_last_admin(db: Session, user: models.User) -> None:
    if user.role == models.SystemRole.ADMIN and not lookup.exists_other_active_admins(db, user.id):
        logger.warning(f"Blocked change to last active admin {user.id}")
        raise LastAdminError(user.id)


def _set_status(db: Session, actor: models.User, user: models.User, new_status: models.UserStatus) -> models.User:
    old_status = user.status
    validate_user_status_transition(old_status, new_status)

    user.status = new_status
    commit(db, f"Could not update user {user.id}")
    db.refresh(user)

    logger.info(f"User {user.id} status {old_status.value} → {new_status.value} by admin {actor.id}")
    return user


def get_user(db: Session, actor: models.User, user_id: int) -> models.User:
    """Users read their own record; system admins read any record, DELETED included."""
    ensure_actor_active(actor)
    can_view_owned_resources(actor, user_id).raise_if_denied()

    user = lookup.find_user(db, user_id)
    if not is_system_admin(actor) and user.status == models.UserStatus.DELETED:
        raise ResourceNotFoundError("User", user_id)
    return user


def list_all_users_for_admin(
    db: Session,
    actor: models.User,
    skip: int = 0,
    limit: int = 50,
) -> tuple[list[models.User], int]:
    ensure_actor_active(actor)
    system_admin_check(actor)

    query = db.query(models.User).order_by(models.User.email.asc())
    return paginate(query, skip, limit)


def activate_user(db: Session, actor: models.User, user_id: int) -> models.User:
    """
    Raises:
        ResourceStateError: If the user is DELETED (use ``restore_user``)
        InvalidTransitionError: If the user is already ACTIVE
    """
    ensure_actor_active(actor)
    system_admin_check(actor)

    user = lookup.find_user(db, user_id)
    if user.status == models.UserStatus.DELETED:
        raise ResourceStateError(f"Cannot activate deleted user {user.id}; restore the user instead")

    return _set_status(db, actor, user, models.UserStatus.ACTIVE)


def deactivate_user(db: Session, actor: models.User, user_id: int) -> models.User:
    ensure_actor_active(actor)
    system_admin_check(actor)

    user = lookup.find_user(db, user_id)
    if is_self(actor.id, user.id):
        raise SelfOperationError("You cannot deactivate your own account")
    _ensure_not_last_admin(db, user)
    if user.status != models.UserStatus.ACTIVE:
        raise ResourceStateError(f"Cannot deactivate user {user.id}; current status: {user.status.value}")

    return _set_status(db, actor, user, models.UserStatus.INACTIVE)


def suspend_user(db: Session, actor: models.User, user_id: int) -> models.User:
    ensure_actor_active(actor)
    system_admin_check(actor)

    user = lookup.find_user(db, user_id)
    if is_self(actor.id, user.id):
        raise SelfOperationError("You cannot suspend your own account")
    _ensure_not_last_admin(db, user)

    return _set_status(db, actor, user, models.UserStatus.SUSPENDED)


def restore_user(db: Session, actor: models.User, user_id: int) -> models.User:
    ensure_actor_active(actor)
    system_admin_check(actor)

    user = lookup.find_user(db, user_id)
    if user.status != models.UserStatus.DELETED:
        raise ResourceStateError(f"User {user.id} is not deleted")

    return _set_status(db, actor, user, models.UserStatus.ACTIVE)


def delete_user(db: Session, actor: models.User, user_id: int) -> None:
    """Soft delete. Team rosters and authored content are left untouched."""
    ensure_actor_active(actor)
    system_admin_check(actor)

    user = lookup.find_user(db, user_id)
    if is_self(actor.id, user.id):
        raise SelfOperationError("You cannot delete your own account")
    _ensure_not_last_admin(db, user)

    _set_status(db, actor, user, models.UserStatus.DELETED)


def change_user_role(db: Session, actor: models.User, user_id: int, new_role: models.SystemRole) -> models.User:
    """
    Change a user's system role.

    Raises:
        AccessDeniedError: If the actor is not a system admin
        InvalidRequestError: If the role is unchanged
        ResourceStateError: If the user is not ACTIVE
        LastAdminError: If the last active admin would be demoted
    """
    ensure_actor_active(actor)
    system_admin_check(actor)

    user = lookup.find_user(db, user_id)
    if user.status != models.UserStatus.ACTIVE:
        raise ResourceStateError(f"Cannot change role of user {user.id}; current status: {user.status.value}")
    if user.role == new_role:
        raise InvalidRequestError(f"User {user.id} already has role {new_role.value}")
    if new_role != models.SystemRole.ADMIN:
        _ensure_not_last_admin(db, user)

    old_role = user.role
    user.role = new_role
    commit(db, f"Could not update user {user.id}")
    db.refresh(user)

    logger.info(f"User {user.id} role {old_role.value} → {new_role.value} by admin {actor.id}")
    return user
