"""Start-up backend selection: check the relational database once, else use documents."""

import logging
from dataclasses import dataclass
from typing import Literal

from sqlalchemy.engine import Engine

from app.core.config import Settings
from app.core.database import build_engine, build_session_factory, check_db_connected
from app.models import Base
from app.repositories.base import ReservationRepository, UserRepository
from app.repositories.document import (
    DocumentReservationRepository,
    DocumentStore,
    DocumentUserRepository,
)
from app.repositories.sql import SqlReservationRepository, SqlUserRepository

logger = logging.getLogger(__name__)

BackendKind = Literal["relational", "document"]


@dataclass(frozen=True)
class Backend:
    """The storage handle chosen at start-up; read-only for the process lifetime."""

    kind: BackendKind
    users: UserRepository
    reservations: ReservationRepository
    engine: Engine | None = None
    store: DocumentStore | None = None

    def close(self) -> None:
        if self.engine is not None:
            self.engine.dispose()


def relational_backend(engine: Engine) -> Backend:
    """Create tables if missing and wire the SQL repositories to engine."""
    Base.metadata.create_all(engine)
    session_factory = build_session_factory(engine)
    users = SqlUserRepository(session_factory)
    return Backend(
        kind="relational",
        users=users,
        reservations=SqlReservationRepository(session_factory, users),
        engine=engine,
    )


def document_backend(path: str | None = None) -> Backend:
    store = DocumentStore(path)
    users = DocumentUserRepository(store)
    return Backend(
        kind="document",
        users=users,
        reservations=DocumentReservationRepository(store, users),
        store=store,
    )


def init_backend(settings: Settings) -> Backend:
    """
    Select the storage backend before the server accepts requests.

    STORAGE_BACKEND=auto checks DATABASE_URL with SELECT 1 and falls back to the
    document store when the URL is unset or unreachable. There is no retry and no
    later switch. STORAGE_BACKEND=relational raises instead of falling back.
    """
    if settings.STORAGE_BACKEND != "document" and settings.DATABASE_URL:
        engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)
        if check_db_connected(engine):
            logger.info("Relational database reachable; using it for users and reservations")
            return relational_backend(engine)
        engine.dispose()
        if settings.STORAGE_BACKEND == "relational":
            raise RuntimeError("STORAGE_BACKEND=relational but the database is unreachable")
        logger.warning("Relational database unavailable; falling back to the document store")
    backend = document_backend(settings.DOCUMENT_STORE_PATH)
    logger.info(
        "Using document store for users and reservations (persisted to %s)",
        settings.DOCUMENT_STORE_PATH or "memory only",
    )
    return backend
