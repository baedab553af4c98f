"""
Request dependencies: backend handles and the authorization gate.

The gate is a chain of dependencies (authenticate -> role -> permission ->
ownership); each either returns the resolved user or raises a ServiceError that
ends the request.
"""

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.config import Settings
from app.core.errors import (
    AuthenticationError,
    ForbiddenError,
    NotFoundError,
    ServiceError,
)
from app.core.permissions import has_permissions, permissions_for
from app.core.security import decode_token
from app.repositories import Backend, ReservationRepository, UserRecord, UserRepository
from app.services.backup import ReservationBackup
from app.services.login_attempts import LoginThrottle
from app.services.mailer import Mailer

ACCESS_COOKIE = "accessToken"
# Older clients stored the access token under this name.
LEGACY_ACCESS_COOKIE = "token"

security = HTTPBearer(auto_error=False)


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


def get_backend(request: Request) -> Backend:
    return request.app.state.backend


def get_users(backend: Annotated[Backend, Depends(get_backend)]) -> UserRepository:
    return backend.users


def get_reservations(
    backend: Annotated[Backend, Depends(get_backend)],
) -> ReservationRepository:
    return backend.reservations


def get_throttle(request: Request) -> LoginThrottle:
    return request.app.state.login_throttle


def get_backup(request: Request) -> ReservationBackup:
    return request.app.state.backup


def get_mailer(request: Request) -> Mailer:
    return request.app.state.mailer


def _extract_token(
    request: Request, credentials: HTTPAuthorizationCredentials | None
) -> str | None:
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(ACCESS_COOKIE) or request.cookies.get(LEGACY_ACCESS_COOKIE)


def get_current_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    users: Annotated[UserRepository, Depends(get_users)],
    settings: Annotated[Settings, Depends(get_settings_dep)],
) -> UserRecord:
    """Require a valid access token for an existing, active user."""
    token = _extract_token(request, credentials)
    if not token:
        raise AuthenticationError("Not authorized to access this route", code="NO_TOKEN")
    claims = decode_token(token, "access", settings=settings)
    user = users.get(claims["sub"])
    if user is None:
        raise NotFoundError("User not found", code="USER_NOT_FOUND")
    if not user.is_active:
        raise ForbiddenError("Account is disabled", code="ACCOUNT_DISABLED")
    request.state.user = user
    return user


def get_optional_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    users: Annotated[UserRepository, Depends(get_users)],
    settings: Annotated[Settings, Depends(get_settings_dep)],
) -> UserRecord | None:
    """Resolve the caller when a valid token is present; never rejects.

    Public helper for routes whose output changes for signed-in callers.
    """
    try:
        return get_current_user(request, credentials, users, settings)
    except ServiceError:
        return None


CurrentUser = Annotated[UserRecord, Depends(get_current_user)]


def require_roles(*roles: str) -> Callable[[UserRecord], UserRecord]:
    """Dependency factory: the caller's role must be one of roles."""

    def check_role(current_user: CurrentUser) -> UserRecord:
        if current_user.role not in roles:
            raise ForbiddenError(
                "Insufficient permissions",
                code="FORBIDDEN",
                extra={"userRole": current_user.role, "requiredRoles": list(roles)},
            )
        return current_user

    return check_role


def require_permissions(*permissions: str) -> Callable[[UserRecord], UserRecord]:
    """Dependency factory: the caller's role must grant every listed permission."""

    def check_permissions(current_user: CurrentUser) -> UserRecord:
        if not has_permissions(current_user.role, permissions):
            raise ForbiddenError(
                "Insufficient permissions",
                code="INSUFFICIENT_PERMISSIONS",
                extra={
                    "requiredPermissions": list(permissions),
                    "userPermissions": sorted(permissions_for(current_user.role)),
                },
            )
        return current_user

    return check_permissions


def require_ownership(id: str, current_user: CurrentUser) -> UserRecord:
    """The path-addressed id must be the caller's own, unless the caller is an admin."""
    if current_user.role == "admin":
        return current_user
    if str(id) != current_user.id:
        raise ForbiddenError("Cannot access this resource", code="NOT_OWNER")
    return current_user
