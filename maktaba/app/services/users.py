"""User accounts and logins.

Account mutations are audit-logged but NOT committed; the caller (endpoint
or script) commits. ``login`` is the exception: it commits every attempt so
lockout counters survive a rejected request.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from maktaba.app.core.config import settings
from maktaba.app.core.dates import as_utc, utcnow
from maktaba.app.core.security import get_password_hash, verify_password
from maktaba.app.models.user import RoleEnum, User
from maktaba.app.services.audit import log_action
from maktaba.app.services.errors import (
    AccountLockedError,
    InactiveUserError,
    InvalidCredentialsError,
    NotFoundError,
)
from maktaba.app.services.ledger import ensure_till_for_user

logger = logging.getLogger(__name__)


def list_users(db: Session) -> list[User]:
    return db.query(User).order_by(User.created_at, User.username).all()


def get_user(db: Session, user_id: UUID) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    return user


def find_by_username(db: Session, username: str) -> User | None:
    """Usernames are matched case-insensitively."""
    return db.query(User).filter(func.lower(User.username) == username.lower()).first()


def authenticate(db: Session, username: str, password: str) -> User | None:
    """Return the user when *password* matches, None otherwise."""
    user = find_by_username(db, username)
    if user is None or not verify_password(password, user.hashed_password):
        return None
    return user


def login(db: Session, username: str, password: str, ip_address: str | None) -> User:
    """Check a login attempt and keep the lockout counters.

    Every attempt is audit-logged and committed, failed ones included.
    ``MAX_LOGIN_ATTEMPTS`` consecutive failures lock the account for
    ``LOCKOUT_MINUTES``.
    """
    user = find_by_username(db, username)
    now = utcnow()

    def _audit(action: str, **changes: object) -> None:
        log_action(
            db,
            user_id=user.id if user else None,
            action=action,
            resource_type="auth",
            resource_id=username,
            ip_address=ip_address,
            changes=changes or None,
        )
        db.commit()

    locked_until = as_utc(user.locked_until) if user else None
    if locked_until and now < locked_until:
        _audit("LOGIN_BLOCKED", reason="account_locked")
        raise AccountLockedError(int((locked_until - now).total_seconds() // 60) + 1)
    if locked_until:
        # Lockout served
        user.failed_login_attempts = 0
        user.locked_until = None

    if user is None or not verify_password(password, user.hashed_password):
        if user is not None:
            user.failed_login_attempts = (user.failed_login_attempts or 0) + 1
            if user.failed_login_attempts >= settings.MAX_LOGIN_ATTEMPTS:
                user.locked_until = now + timedelta(minutes=settings.LOCKOUT_MINUTES)
                logger.warning("Account %s locked after failed logins", username)
        _audit(
            "LOGIN_FAILED",
            reason="invalid_credentials",
            failed_attempts=user.failed_login_attempts if user else None,
        )
        raise InvalidCredentialsError("Incorrect username or password")

    if not user.is_active:
        _audit("LOGIN_FAILED", reason="inactive_user")
        raise InactiveUserError("Inactive user")

    user.failed_login_attempts = 0
    user.locked_until = None
    _audit("LOGIN_SUCCESS", role=user.role.value)
    return user


def _active_admin_count(db: Session) -> int:
    return (
        db.query(User)
        .filter(User.role == RoleEnum.ADMIN, User.is_active.is_(True))
        .count()
    )


def create_user(
    db: Session,
    *,
    username: str,
    password: str,
    role: RoleEnum,
    admin_id: UUID | None,
) -> User:
    """Create a user account. Cashiers get their own till account."""
    if find_by_username(db, username):
        raise ValueError("Username already exists")

    user = User(
        username=username,
        hashed_password=get_password_hash(password),
        role=role,
    )
    db.add(user)
    db.flush()
    if role == RoleEnum.CASHIER:
        ensure_till_for_user(db, user)

    log_action(
        db,
        user_id=admin_id,
        action="USER_CREATED",
        resource_type="users",
        resource_id=str(user.id),
        changes={"username": username, "role": role.value},
    )
    return user


def update_user(
    db: Session,
    *,
    user_id: UUID,
    admin_id: UUID,
    username: str | None = None,
    role: RoleEnum | None = None,
    is_active: bool | None = None,
    password: str | None = None,
) -> User:
    """Update a user. The shop always keeps at least one active admin."""
    user = get_user(db, user_id)
    changes: dict[str, object] = {}

    if username is not None and username != user.username:
        existing = db.query(User).filter(
            func.lower(User.username) == username.lower(),
            User.id != user_id,
        ).first()
        if existing:
            raise ValueError("Username already exists")
        changes["username"] = {"old": user.username, "new": username}
        user.username = username

    losing_admin = user.is_admin and user.is_active and (
        (role is not None and role != RoleEnum.ADMIN) or is_active is False
    )
    if losing_admin:
        if user_id == admin_id:
            raise ValueError("You cannot demote or deactivate yourself")
        if _active_admin_count(db) <= 1:
            raise ValueError("The last active admin cannot be demoted or deactivated")

    if role is not None and role != user.role:
        changes["role"] = {"old": user.role.value, "new": role.value}
        user.role = role

    if is_active is not None and is_active != user.is_active:
        changes["is_active"] = is_active
        user.is_active = is_active

    if password is not None:
        user.hashed_password = get_password_hash(password)
        user.failed_login_attempts = 0
        user.locked_until = None
        changes["password"] = "reset"

    db.flush()
    if user.role == RoleEnum.CASHIER:
        ensure_till_for_user(db, user)

    if changes:
        log_action(
            db,
            user_id=admin_id,
            action="USER_UPDATED",
            resource_type="users",
            resource_id=str(user.id),
            changes=changes,
        )
    return user


def delete_user(db: Session, *, user_id: UUID, admin_id: UUID) -> None:
    """Delete a user. Their till account and history stay in the ledger."""
    user = get_user(db, user_id)
    if user_id == admin_id:
        raise ValueError("You cannot delete yourself")
    if user.is_admin and user.is_active and _active_admin_count(db) <= 1:
        raise ValueError("The last active admin cannot be deleted")

    log_action(
        db,
        user_id=admin_id,
        action="USER_DELETED",
        resource_type="users",
        resource_id=str(user.id),
        changes={"username": user.username},
    )
    db.delete(user)
    db.flush()


def change_own_password(
    db: Session,
    *,
    user_id: UUID,
    current_password: str,
    new_password: str,
) -> User:
    """Raises ValueError if the current password is wrong."""
    user = get_user(db, user_id)
    if not verify_password(current_password, user.hashed_password):
        raise ValueError("Current password is incorrect")

    user.hashed_password = get_password_hash(new_password)
    db.flush()

    log_action(
        db,
        user_id=user_id,
        action="USER_PASSWORD_CHANGED",
        resource_type="users",
        resource_id=str(user_id),
    )
    return user
