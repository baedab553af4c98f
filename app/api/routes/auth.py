"""Registration, login (throttled), token refresh, logout and current-user endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status

from app.api.deps import (
    ACCESS_COOKIE,
    CurrentUser,
    get_current_user,
    get_settings_dep,
    get_throttle,
    get_users,
)
from app.core.config import Settings
from app.repositories import UserRepository
from app.schemas.auth import (
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RefreshTokenRequest,
    RegisterRequest,
    TokenRefreshResponse,
    UserOut,
    UserResponse,
)
from app.services import accounts
from app.services.audit import audit_action
from app.services.login_attempts import LoginThrottle

router = APIRouter()

REFRESH_COOKIE = "refreshToken"


def _set_auth_cookie(
    response: Response, key: str, value: str, max_age: int, settings: Settings
) -> None:
    response.set_cookie(
        key=key,
        value=value,
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
        max_age=max_age,
    )


def _caller_address(request: Request) -> str:
    return request.client.host if request.client else "unknown"


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    users: Annotated[UserRepository, Depends(get_users)],
) -> UserResponse:
    """Create a 'user' account. The response never includes the password."""
    user = accounts.register_user(
        users,
        name=body.name,
        email=body.email,
        password=body.password,
        confirm_password=body.confirm_password,
    )
    return UserResponse(
        message="Registration successful! Please login.",
        user=UserOut.model_validate(user),
    )


@router.post(
    "/login",
    response_model=LoginResponse,
    dependencies=[Depends(audit_action("LOGIN", "user"))],
)
def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    users: Annotated[UserRepository, Depends(get_users)],
    throttle: Annotated[LoginThrottle, Depends(get_throttle)],
    settings: Annotated[Settings, Depends(get_settings_dep)],
) -> LoginResponse:
    """
    Authenticate with email and password.

    Returns the access token in the body and sets httpOnly accessToken and
    refreshToken cookies. Throttled per submitted email (or caller address).
    """
    identifier = (body.email or "").strip().lower() or _caller_address(request)
    result = accounts.login(
        users,
        throttle,
        settings,
        email=body.email,
        password=body.password,
        identifier=identifier,
    )
    request.state.user = result.user
    _set_auth_cookie(
        response,
        ACCESS_COOKIE,
        result.access_token,
        settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        settings,
    )
    _set_auth_cookie(
        response,
        REFRESH_COOKIE,
        result.refresh_token,
        settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
        settings,
    )
    return LoginResponse(
        message="Login successful",
        access_token=result.access_token,
        user=UserOut.model_validate(result.user),
    )


@router.post("/refresh-token", response_model=TokenRefreshResponse)
def refresh_token(
    request: Request,
    response: Response,
    users: Annotated[UserRepository, Depends(get_users)],
    settings: Annotated[Settings, Depends(get_settings_dep)],
    body: RefreshTokenRequest | None = None,
) -> TokenRefreshResponse:
    """Issue a new access token from the refreshToken cookie or body field."""
    token = request.cookies.get(REFRESH_COOKIE) or (body.refresh_token if body else None)
    _, access_token = accounts.refresh_access_token(users, settings, token)
    _set_auth_cookie(
        response,
        ACCESS_COOKIE,
        access_token,
        settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        settings,
    )
    return TokenRefreshResponse(message="Token refreshed", access_token=access_token)


@router.post(
    "/logout",
    response_model=MessageResponse,
    dependencies=[Depends(get_current_user), Depends(audit_action("LOGOUT", "user"))],
)
def logout(response: Response) -> MessageResponse:
    """Clear both auth cookies. Issued tokens stay valid until they expire."""
    response.delete_cookie(ACCESS_COOKIE)
    response.delete_cookie(REFRESH_COOKIE)
    return MessageResponse(message="Logged out successfully", code="LOGOUT_SUCCESS")


@router.get("/me", response_model=UserResponse)
def me(current_user: CurrentUser) -> UserResponse:
    return UserResponse(
        message="User profile retrieved", user=UserOut.model_validate(current_user)
    )
