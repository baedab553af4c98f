"""
Copy reservations from the persisted document store into the relational database.
Run from project root once DATABASE_URL is reachable:

  python -m app.scripts.migrate_reservations

Original createdAt/updatedAt are kept. The document collection is cleared only
when every reservation was copied.
"""

import logging
import sys

from sqlalchemy.exc import SQLAlchemyError

from app.core.config import get_settings
from app.core.database import build_engine, check_db_connected
from app.core.errors import ServiceError
from app.core.logging import configure_logging
from app.repositories.backend import relational_backend
from app.repositories.base import RESERVATION_WRITABLE_FIELDS
from app.repositories.document import DocumentReservationRepository, DocumentStore

logger = logging.getLogger(__name__)


def main() -> int:
    """Migrate reservations; return 0 when the collection was fully copied."""
    settings = get_settings()
    configure_logging(settings)
    if not settings.DATABASE_URL:
        logger.error("DATABASE_URL is not set; nothing to migrate into")
        return 1
    if not settings.DOCUMENT_STORE_PATH:
        logger.error("DOCUMENT_STORE_PATH is not set; no persisted documents to migrate")
        return 1

    engine = build_engine(settings.DATABASE_URL)
    if not check_db_connected(engine):
        logger.error("Relational database unreachable; aborting migration")
        engine.dispose()
        return 1

    store = DocumentStore(settings.DOCUMENT_STORE_PATH)
    source = store.find(DocumentReservationRepository.collection)
    backend = relational_backend(engine)
    migrated = 0
    try:
        for doc in source:
            data = {key: doc.get(key) for key in RESERVATION_WRITABLE_FIELDS}
            try:
                backend.reservations.create(
                    data,
                    created_at=doc.get("createdAt"),
                    updated_at=doc.get("updatedAt"),
                )
            except (ServiceError, SQLAlchemyError) as e:
                logger.exception("Failed to migrate reservation %s: %s", doc.get("id"), e)
                continue
            migrated += 1
        logger.info("Migrated %s of %s reservations", migrated, len(source))
        if migrated != len(source):
            logger.warning("Some reservations failed; document collection left untouched")
            return 1
        cleared = store.clear(DocumentReservationRepository.collection)
        logger.info("Cleared %s reservations from the document store", cleared)
        return 0
    finally:
        backend.close()


if __name__ == "__main__":
    sys.exit(main())
