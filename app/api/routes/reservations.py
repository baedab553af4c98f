"""Reservation endpoints for authenticated users."""

from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, status

from app.api.deps import CurrentUser, get_backup, get_mailer, get_reservations
from app.repositories import ReservationRepository
from app.schemas.reservation import (
    ReservationCreate,
    ReservationCreatedResponse,
    ReservationOut,
    ReservationsListResponse,
    ReservationSummary,
)
from app.services import reservations as reservation_service
from app.services.backup import ReservationBackup
from app.services.mailer import Mailer

router = APIRouter()


@router.post(
    "",
    response_model=ReservationCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_reservation(
    body: ReservationCreate,
    current_user: CurrentUser,
    background_tasks: BackgroundTasks,
    reservations: Annotated[ReservationRepository, Depends(get_reservations)],
    backup: Annotated[ReservationBackup, Depends(get_backup)],
    mailer: Annotated[Mailer, Depends(get_mailer)],
) -> ReservationCreatedResponse:
    """
    Book a table for the caller.

    The reservation is stored, appended to the JSON backup file, and a
    confirmation email is sent after the response (send failures are only logged).
    """
    reservation = reservation_service.create_reservation(
        reservations, backup, current_user, body.model_dump(by_alias=True)
    )
    background_tasks.add_task(mailer.send_reservation_confirmation, reservation)
    return ReservationCreatedResponse(
        message="Reservation successful! Confirmation email sent.",
        reservation=ReservationSummary.model_validate(reservation),
    )


@router.get("/my-bookings", response_model=ReservationsListResponse)
def my_bookings(
    current_user: CurrentUser,
    reservations: Annotated[ReservationRepository, Depends(get_reservations)],
) -> ReservationsListResponse:
    """The caller's reservations, newest first."""
    items = reservation_service.list_for_owner(reservations, current_user.id)
    return ReservationsListResponse(
        message="Reservations retrieved",
        count=len(items),
        reservations=[ReservationOut.model_validate(item) for item in items],
    )
