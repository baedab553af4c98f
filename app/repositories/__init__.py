"""Storage backends for users and reservations."""

from app.repositories.backend import Backend, init_backend
from app.repositories.base import ReservationRepository, UserRecord, UserRepository

__all__ = [
    "Backend",
    "ReservationRepository",
    "UserRecord",
    "UserRepository",
    "init_backend",
]
