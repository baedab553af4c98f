"""SQLAlchemy declarative Base for the users and reservations tables."""

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase

# Index names match the ones the Alembic revisions create.
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
}


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)
