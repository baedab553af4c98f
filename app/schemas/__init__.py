"""Pydantic request/response schemas."""

from app.schemas.auth import (
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    UserOut,
    UserResponse,
)
from app.schemas.health import HealthResponse
from app.schemas.reservation import (
    ReservationCreate,
    ReservationOut,
    ReservationsListResponse,
    ReservationStatusUpdate,
)

__all__ = [
    "HealthResponse",
    "LoginRequest",
    "LoginResponse",
    "RegisterRequest",
    "ReservationCreate",
    "ReservationOut",
    "ReservationStatusUpdate",
    "ReservationsListResponse",
    "UserOut",
    "UserResponse",
]
