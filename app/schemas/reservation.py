"""Request/response schemas for reservation endpoints."""

from datetime import datetime

from pydantic import Field, field_validator

from app.schemas.auth import CamelModel


class ReservationCreate(CamelModel):
    """Booking details submitted by an authenticated user."""

    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=3, max_length=320)
    phone: str = Field(..., min_length=1, max_length=64)
    date: str = Field(..., min_length=1, max_length=32)
    time: str = Field(..., min_length=1, max_length=32)
    guests: str = Field(..., min_length=1, max_length=16)
    special_requests: str | None = Field(default=None, max_length=2000)
    venue: str = Field(..., min_length=1, max_length=255)
    venue_location: str | None = Field(default=None, max_length=1024)

    @field_validator("guests", mode="before")
    @classmethod
    def coerce_guests(cls, v: object) -> object:
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v


class ReservationOwner(CamelModel):
    id: str
    name: str
    email: str


class ReservationOut(CamelModel):
    id: str
    user_id: str
    name: str
    email: str
    phone: str
    date: str
    time: str
    guests: str
    special_requests: str | None = None
    venue: str
    venue_location: str | None = None
    status: str
    created_at: datetime
    updated_at: datetime
    owner: ReservationOwner | None = None


class ReservationSummary(CamelModel):
    id: str
    venue: str
    date: str
    time: str
    guests: str


class ReservationCreatedResponse(CamelModel):
    message: str
    reservation: ReservationSummary


class ReservationResponse(CamelModel):
    message: str
    reservation: ReservationOut


class ReservationsListResponse(CamelModel):
    message: str
    count: int
    reservations: list[ReservationOut]


class ReservationStatusUpdate(CamelModel):
    # Checked against the allowed statuses in the service so the error code is INVALID_STATUS.
    status: str


class ReservationDeletedResponse(CamelModel):
    message: str
    deleted_id: str
