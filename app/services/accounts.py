"""Account flows: registration, login with lockout, token refresh, profile and role changes."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from app.core.config import Settings
from app.core.errors import (
    AuthenticationError,
    ForbiddenError,
    InvalidTokenError,
    NotFoundError,
    ValidationError,
)
from app.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    password_meets_policy,
    verify_password,
)
from app.repositories.base import UserRecord, UserRepository, utcnow, validate_role
from app.services.login_attempts import LoginThrottle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoginResult:
    user: UserRecord
    access_token: str
    refresh_token: str


def register_failed_login(
    users: UserRepository,
    user: UserRecord,
    *,
    max_attempts: int,
    lockout: timedelta,
    now: datetime | None = None,
) -> UserRecord:
    """
    Count a failed password check against the account.

    An expired lock restarts the counter at 1. Reaching max_attempts sets
    lock_until = now + lockout.
    """
    now = now or utcnow()
    if user.lock_until is not None and not user.is_locked(now):
        updated = users.update(user.id, login_attempts=1, lock_until=None)
    else:
        attempts = user.login_attempts + 1
        changes: dict[str, object] = {"login_attempts": attempts}
        if attempts >= max_attempts and not user.is_locked(now):
            changes["lock_until"] = now + lockout
            logger.warning("Account %s locked after %s failed attempts", user.id, attempts)
        updated = users.update(user.id, **changes)
    return updated or user


def reset_login_attempts(
    users: UserRepository, user: UserRecord, *, now: datetime | None = None
) -> UserRecord:
    """Successful login: clear counter and lock, stamp last login."""
    updated = users.update(
        user.id, login_attempts=0, lock_until=None, last_login=now or utcnow()
    )
    return updated or user


def register_user(
    users: UserRepository,
    *,
    name: str,
    email: str,
    password: str,
    confirm_password: str | None,
) -> UserRecord:
    if not name.strip() or not email.strip() or not password:
        raise ValidationError("All fields required", code="MISSING_FIELDS")
    if not password_meets_policy(password):
        raise ValidationError(
            "Password must be 8+ chars with uppercase, lowercase, number, special char",
            code="WEAK_PASSWORD",
        )
    if password != confirm_password:
        raise ValidationError("Passwords do not match", code="PASSWORD_MISMATCH")
    user = users.create(name=name, email=email, password_hash=hash_password(password))
    logger.info("Registered user %s", user.id)
    return user


def issue_tokens(user: UserRecord, settings: Settings) -> tuple[str, str]:
    access = create_access_token(user.id, user.email, user.role, settings=settings)
    refresh = create_refresh_token(user.id, settings=settings)
    return access, refresh


def login(
    users: UserRepository,
    throttle: LoginThrottle,
    settings: Settings,
    *,
    email: str | None,
    password: str | None,
    identifier: str,
    now: datetime | None = None,
) -> LoginResult:
    """
    Authenticate by email and password.

    Order: an already-locked account is rejected with ACCOUNT_LOCKED first, then
    the throttle records the attempt (RATE_LIMITED when full), then the input and
    password are checked. Success clears both the account counter and the
    throttle entry.
    """
    now = now or utcnow()
    user = users.get_by_email(email) if email else None
    if user is not None and user.is_locked(now):
        raise ForbiddenError(
            "Account locked. Try again later.",
            code="ACCOUNT_LOCKED",
            extra={"unlockTime": user.lock_until.isoformat()},
        )

    throttle.hit(identifier, now=now.timestamp())

    if not email or not password:
        raise ValidationError("Email and password required", code="MISSING_CREDENTIALS")
    if user is None:
        raise AuthenticationError("Invalid credentials", code="INVALID_CREDENTIALS")
    if not verify_password(password, user.password_hash):
        register_failed_login(
            users,
            user,
            max_attempts=settings.MAX_LOGIN_ATTEMPTS,
            lockout=timedelta(minutes=settings.LOCKOUT_MINUTES),
            now=now,
        )
        raise AuthenticationError("Invalid credentials", code="INVALID_CREDENTIALS")
    if not user.is_active:
        raise ForbiddenError("Account is disabled", code="ACCOUNT_DISABLED")

    user = reset_login_attempts(users, user, now=now)
    throttle.reset(identifier)
    access, refresh = issue_tokens(user, settings)
    logger.info("User %s logged in", user.id)
    return LoginResult(user=user, access_token=access, refresh_token=refresh)


def refresh_access_token(
    users: UserRepository, settings: Settings, refresh_token: str | None
) -> tuple[UserRecord, str]:
    """Exchange a refresh token for a new access token; email and role are re-read."""
    if not refresh_token:
        raise AuthenticationError("Refresh token required", code="NO_REFRESH_TOKEN")
    claims = decode_token(refresh_token, "refresh", settings=settings)
    user = users.get(claims["sub"])
    if user is None or not user.is_active:
        raise InvalidTokenError("Invalid refresh token", code="INVALID_REFRESH_TOKEN")
    return user, create_access_token(user.id, user.email, user.role, settings=settings)


def update_profile(
    users: UserRepository, user_id: str, *, name: str | None, phone: str | None
) -> UserRecord:
    changes: dict[str, str] = {}
    if name:
        changes["name"] = name.strip()
    if phone:
        changes["phone"] = phone.strip()
    updated = users.update(user_id, **changes)
    if updated is None:
        raise NotFoundError("User not found", code="USER_NOT_FOUND")
    return updated


def change_role(users: UserRepository, user_id: str, role: str) -> UserRecord:
    validate_role(role)
    updated = users.update(user_id, role=role)
    if updated is None:
        raise NotFoundError("User not found", code="NOT_FOUND")
    logger.info("User %s role changed to %s", user_id, role)
    return updated


def delete_user(users: UserRepository, user_id: str) -> UserRecord:
    deleted = users.delete(user_id)
    if deleted is None:
        raise NotFoundError("User not found", code="USER_NOT_FOUND")
    logger.info("User %s deleted", user_id)
    return deleted
