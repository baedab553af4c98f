"""ORM model for persisted reservations."""

from sqlalchemy import Column, DateTime, Index, Integer, String, Text, func

from app.models.base import Base


class Reservation(Base):
    """
    One booking. user_id is the owner's id stored as an opaque string (no foreign
    key), so rows stay valid whichever backend owns the users.
    """

    __tablename__ = "reservations"
    __table_args__ = (Index("ix_reservations_user_id_created_at", "user_id", "created_at"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False)
    name = Column(String(255), nullable=False)
    email = Column(String(320), nullable=False)
    phone = Column(String(64), nullable=False)
    date = Column(String(32), nullable=False)
    time = Column(String(32), nullable=False)
    guests = Column(String(16), nullable=False)
    special_requests = Column(Text, nullable=True)
    venue = Column(String(255), nullable=False)
    venue_location = Column(String(1024), nullable=True)
    status = Column(String(16), nullable=False, default="confirmed")
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
