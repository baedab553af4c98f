"""Reservation flows shared by the user and admin routes."""

import logging
from typing import Any

from app.core.errors import NotFoundError
from app.repositories.base import DEFAULT_SORT, ReservationRepository, UserRecord, validate_status
from app.services.backup import ReservationBackup

logger = logging.getLogger(__name__)


def create_reservation(
    reservations: ReservationRepository,
    backup: ReservationBackup,
    owner: UserRecord,
    details: dict[str, Any],
) -> dict[str, Any]:
    """Persist a confirmed reservation for owner and append it to the JSON backup."""
    reservation = reservations.create({**details, "userId": owner.id, "status": "confirmed"})
    try:
        backup.append(
            {
                key: reservation[key]
                for key in (
                    "userId",
                    "name",
                    "email",
                    "phone",
                    "date",
                    "time",
                    "guests",
                    "specialRequests",
                    "venue",
                    "venueLocation",
                )
            }
            | {"createdAt": reservation["createdAt"].isoformat()}
        )
    except OSError as exc:
        logger.error("Reservation %s not written to backup file: %s", reservation["id"], exc)
    logger.info("Reservation %s created for user %s", reservation["id"], owner.id)
    return reservation


def list_for_owner(reservations: ReservationRepository, owner_id: str) -> list[dict[str, Any]]:
    return reservations.find({"userId": owner_id}, sort=DEFAULT_SORT)


def list_all(reservations: ReservationRepository) -> list[dict[str, Any]]:
    return reservations.find(sort=DEFAULT_SORT, populate_owner=True)


def set_status(
    reservations: ReservationRepository, reservation_id: str, status: str
) -> dict[str, Any]:
    validate_status(status)
    updated = reservations.update(reservation_id, {"status": status})
    if updated is None:
        raise NotFoundError("Reservation not found", code="NOT_FOUND")
    logger.info("Reservation %s status set to %s", reservation_id, status)
    return updated


def delete_reservation(reservations: ReservationRepository, reservation_id: str) -> dict[str, Any]:
    deleted = reservations.delete(reservation_id)
    if deleted is None:
        raise NotFoundError("Reservation not found", code="NOT_FOUND")
    logger.info("Reservation %s deleted", reservation_id)
    return deleted
