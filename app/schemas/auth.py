"""Request/response schemas for auth and user endpoints."""

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class CamelModel(BaseModel):
    """Accepts and emits camelCase keys; snake_case names also accepted on input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class RegisterRequest(CamelModel):
    """New account details."""

    name: str = Field(..., max_length=255, description="Full name")
    email: str = Field(..., max_length=320, description="Email (unique, case-insensitive)")
    password: str = Field(..., max_length=72, description="Password (at most 72 UTF-8 bytes)")
    confirm_password: str | None = Field(default=None, max_length=72)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        v = v.strip()
        if v and not _EMAIL_RE.match(v):
            raise ValueError("email must be a valid address")
        return v


class LoginRequest(CamelModel):
    """Credentials for login."""

    email: str | None = Field(default=None, max_length=320)
    password: str | None = Field(default=None, max_length=128)


class RefreshTokenRequest(CamelModel):
    refresh_token: str | None = None


class UserOut(CamelModel):
    """User as returned to clients (never includes the password hash)."""

    id: str
    name: str
    email: str
    role: str
    phone: str | None = None
    is_active: bool
    last_login: datetime | None = None
    login_attempts: int = 0
    lock_until: datetime | None = None
    created_at: datetime
    updated_at: datetime


class UserResponse(CamelModel):
    message: str
    user: UserOut


class LoginResponse(CamelModel):
    message: str
    access_token: str
    user: UserOut


class TokenRefreshResponse(CamelModel):
    message: str
    access_token: str


class MessageResponse(CamelModel):
    message: str
    code: str | None = None


class ProfileUpdate(CamelModel):
    name: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=64)


class RoleUpdate(CamelModel):
    role: str


class UsersListResponse(CamelModel):
    """Response for GET /admin/users."""

    message: str
    count: int
    users: list[UserOut]


class DeletedUserResponse(CamelModel):
    message: str
    deleted_user: str
