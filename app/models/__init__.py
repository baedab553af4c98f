"""SQLAlchemy ORM models."""

from app.models.base import Base
from app.models.reservation import Reservation
from app.models.user import User

__all__ = ["Base", "Reservation", "User"]
