"""Password hashing, password policy, and JWT access/refresh tokens."""

import re
from datetime import UTC, datetime, timedelta
from typing import Any, Literal

import bcrypt
import jwt

from app.core.config import Settings, get_settings
from app.core.errors import InvalidTokenError, TokenExpiredError

# Bcrypt cost (rounds); 12 is a good default for security vs speed.
BCRYPT_ROUNDS = 12

PASSWORD_MIN_LEN = 8
# bcrypt only reads the first 72 bytes; longer passwords are refused, not truncated.
PASSWORD_MAX_BYTES = 72
PASSWORD_SPECIAL_CHARS = "@$!%*?&"

_POLICY_CLAUSES = (
    re.compile(r"[a-z]"),
    re.compile(r"[A-Z]"),
    re.compile(r"\d"),
    re.compile("[" + re.escape(PASSWORD_SPECIAL_CHARS) + "]"),
)

TokenKind = Literal["access", "refresh"]


def hash_password(plain_password: str) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    pw_bytes = plain_password.encode("utf-8")
    if len(pw_bytes) > PASSWORD_MAX_BYTES:
        raise ValueError(f"Password exceeds {PASSWORD_MAX_BYTES} bytes")
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    pw_bytes = plain_password.encode("utf-8")
    if len(pw_bytes) > PASSWORD_MAX_BYTES:
        return False
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def password_meets_policy(password: str) -> bool:
    """
    True iff the password is at least 8 chars and at most 72 UTF-8 bytes, with a
    lowercase letter, an uppercase letter, a digit, and one of @$!%*?&.
    """
    if not isinstance(password, str):
        return False
    if len(password) < PASSWORD_MIN_LEN:
        return False
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        return False
    return all(clause.search(password) for clause in _POLICY_CLAUSES)


def _secret_for(kind: TokenKind, settings: Settings) -> str:
    if kind == "access":
        return settings.JWT_SECRET.get_secret_value()
    return settings.JWT_REFRESH_SECRET.get_secret_value()


def _encode(
    claims: dict[str, Any],
    kind: TokenKind,
    lifetime: timedelta,
    settings: Settings,
    issued_at: datetime | None,
) -> str:
    now = issued_at or datetime.now(UTC)
    payload = {**claims, "type": kind, "iat": now, "exp": now + lifetime}
    return jwt.encode(payload, _secret_for(kind, settings), algorithm=settings.JWT_ALGORITHM)


def create_access_token(
    user_id: str,
    email: str,
    role: str,
    *,
    settings: Settings | None = None,
    issued_at: datetime | None = None,
) -> str:
    """Create a short-lived access token carrying sub, email and role."""
    settings = settings or get_settings()
    return _encode(
        {"sub": str(user_id), "email": email, "role": role},
        "access",
        timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        settings,
        issued_at,
    )


def create_refresh_token(
    user_id: str,
    *,
    settings: Settings | None = None,
    issued_at: datetime | None = None,
) -> str:
    """Create a long-lived refresh token carrying only the user id."""
    settings = settings or get_settings()
    return _encode(
        {"sub": str(user_id)},
        "refresh",
        timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        settings,
        issued_at,
    )


def decode_token(
    token: str, kind: TokenKind, *, settings: Settings | None = None
) -> dict[str, Any]:
    """
    Decode and validate a token of the given kind; return its claims.

    Raises TokenExpiredError for an expired token and InvalidTokenError for a bad
    signature, malformed token, missing subject, or a token of the other kind.
    """
    settings = settings or get_settings()
    try:
        payload = jwt.decode(
            token,
            _secret_for(kind, settings),
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": ["exp", "iat", "sub"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise TokenExpiredError() from exc
    except jwt.PyJWTError as exc:
        raise InvalidTokenError() from exc
    if payload.get("type") != kind or not payload.get("sub"):
        raise InvalidTokenError()
    return payload
