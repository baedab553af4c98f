"""
Contract tests run against both storage backends: the in-memory document store and
SQLAlchemy on in-memory SQLite. Both must return identical shapes.
"""

import json
import os
import tempfile
import unittest
from datetime import UTC, datetime

from app.core.database import build_engine
from app.core.errors import ConflictError, ValidationError
from app.repositories.backend import document_backend, init_backend, relational_backend
from app.repositories.base import RESERVATION_FIELDS
from app.repositories.document import DocumentStore
from tests.support import make_settings, reservation_details, seed_user


class RepositoryContract:
    """Mixin; subclasses set self.backend in setUp."""

    def test_user_create_normalizes_email_and_rejects_duplicates(self) -> None:
        user = seed_user(self.backend.users, email="  Mixed@Example.COM ")
        self.assertEqual(user.email, "mixed@example.com")
        self.assertEqual(user.role, "user")
        self.assertTrue(user.is_active)
        self.assertEqual(user.login_attempts, 0)
        with self.assertRaises(ConflictError) as ctx:
            seed_user(self.backend.users, email="mixed@example.com")
        self.assertEqual(ctx.exception.code, "EMAIL_EXISTS")

    def test_user_lookup_and_update(self) -> None:
        user = seed_user(self.backend.users)
        self.assertEqual(self.backend.users.get_by_email("DINER@example.com").id, user.id)
        updated = self.backend.users.update(user.id, phone="555", role="manager")
        self.assertEqual(updated.phone, "555")
        self.assertEqual(updated.role, "manager")
        self.assertGreaterEqual(updated.updated_at, user.updated_at)

    def test_user_update_rejects_invalid_role(self) -> None:
        user = seed_user(self.backend.users)
        with self.assertRaises(ValidationError) as ctx:
            self.backend.users.update(user.id, role="owner")
        self.assertEqual(ctx.exception.code, "INVALID_ROLE")

    def test_missing_user_operations_return_none(self) -> None:
        self.assertIsNone(self.backend.users.get("999999"))
        self.assertIsNone(self.backend.users.update("999999", name="x"))
        self.assertIsNone(self.backend.users.delete("999999"))

    def test_user_delete(self) -> None:
        user = seed_user(self.backend.users)
        self.assertEqual(self.backend.users.delete(user.id).email, user.email)
        self.assertIsNone(self.backend.users.get(user.id))

    def test_reservation_create_returns_contract_keys(self) -> None:
        owner = seed_user(self.backend.users)
        reservation = self.backend.reservations.create(
            reservation_details(userId=owner.id, guests=4)
        )
        self.assertEqual(set(reservation), set(RESERVATION_FIELDS))
        self.assertEqual(reservation["status"], "confirmed")
        self.assertEqual(reservation["guests"], "4")
        self.assertEqual(reservation["userId"], owner.id)
        self.assertIsInstance(reservation["id"], str)
        self.assertIsNotNone(reservation["createdAt"].tzinfo)

    def test_reservation_create_accepts_existing_timestamps(self) -> None:
        owner = seed_user(self.backend.users)
        created = datetime(2026, 9, 18, 14, 48, 35, tzinfo=UTC)
        reservation = self.backend.reservations.create(
            reservation_details(userId=owner.id), created_at=created
        )
        self.assertEqual(reservation["createdAt"], created)
        self.assertEqual(reservation["updatedAt"], created)
        self.assertEqual(self.backend.reservations.get(reservation["id"])["createdAt"], created)

    def test_reservation_create_requires_fields(self) -> None:
        owner = seed_user(self.backend.users)
        with self.assertRaises(ValidationError):
            self.backend.reservations.create(reservation_details(userId=owner.id, venue=""))

    def test_reservation_find_filters_sorts_and_populates(self) -> None:
        alice = seed_user(self.backend.users, email="alice@example.com", name="Alice")
        bob = seed_user(self.backend.users, email="bob@example.com", name="Bob")
        first = self.backend.reservations.create(reservation_details(userId=alice.id))
        second = self.backend.reservations.create(reservation_details(userId=alice.id))
        self.backend.reservations.create(reservation_details(userId=bob.id))

        mine = self.backend.reservations.find({"userId": alice.id}, sort=("createdAt", -1))
        self.assertEqual({r["id"] for r in mine}, {first["id"], second["id"]})
        self.assertGreaterEqual(mine[0]["createdAt"], mine[1]["createdAt"])
        self.assertNotIn("owner", mine[0])

        everything = self.backend.reservations.find(populate_owner=True)
        self.assertEqual(len(everything), 3)
        owners = {r["owner"]["email"] for r in everything}
        self.assertEqual(owners, {"alice@example.com", "bob@example.com"})
        self.assertEqual(set(everything[0]["owner"]), {"id", "name", "email"})

    def test_owner_is_none_when_user_deleted(self) -> None:
        owner = seed_user(self.backend.users)
        self.backend.reservations.create(reservation_details(userId=owner.id))
        self.backend.users.delete(owner.id)
        (item,) = self.backend.reservations.find(populate_owner=True)
        self.assertIsNone(item["owner"])

    def test_reservation_find_rejects_unknown_filter(self) -> None:
        with self.assertRaises(ValidationError):
            self.backend.reservations.find({"club": "x"})

    def test_reservation_status_update(self) -> None:
        owner = seed_user(self.backend.users)
        created = self.backend.reservations.create(reservation_details(userId=owner.id))
        updated = self.backend.reservations.update(created["id"], {"status": "cancelled"})
        self.assertEqual(updated["status"], "cancelled")
        self.assertEqual(updated["userId"], owner.id)
        self.assertEqual(self.backend.reservations.get(created["id"])["status"], "cancelled")

    def test_reservation_invalid_status_rejected(self) -> None:
        owner = seed_user(self.backend.users)
        created = self.backend.reservations.create(reservation_details(userId=owner.id))
        with self.assertRaises(ValidationError) as ctx:
            self.backend.reservations.update(created["id"], {"status": "pending"})
        self.assertEqual(ctx.exception.code, "INVALID_STATUS")
        self.assertEqual(self.backend.reservations.get(created["id"])["status"], "confirmed")

    def test_reservation_delete_and_missing_ids(self) -> None:
        owner = seed_user(self.backend.users)
        created = self.backend.reservations.create(reservation_details(userId=owner.id))
        self.assertEqual(self.backend.reservations.delete(created["id"])["id"], created["id"])
        self.assertIsNone(self.backend.reservations.get(created["id"]))
        self.assertIsNone(self.backend.reservations.delete(created["id"]))
        self.assertIsNone(self.backend.reservations.update("not-an-id", {"status": "completed"}))


class TestDocumentRepositories(RepositoryContract, unittest.TestCase):
    def setUp(self) -> None:
        self.backend = document_backend()


class TestSqlRepositories(RepositoryContract, unittest.TestCase):
    def setUp(self) -> None:
        self.backend = relational_backend(build_engine("sqlite://"))

    def tearDown(self) -> None:
        self.backend.close()


class TestDocumentStorePersistence(unittest.TestCase):
    def test_reload_from_file_keeps_documents_and_datetimes(self) -> None:
        path = os.path.join(tempfile.mkdtemp(), "store.json")
        backend = document_backend(path)
        owner = seed_user(backend.users)
        created = backend.reservations.create(reservation_details(userId=owner.id))

        with open(path, encoding="utf-8") as fh:
            raw = json.load(fh)
        self.assertEqual(len(raw["reservations"]), 1)

        reloaded = document_backend(path)
        self.assertEqual(reloaded.users.get(owner.id).email, owner.email)
        self.assertEqual(reloaded.reservations.get(created["id"]), created)

    def test_clear_empties_collection(self) -> None:
        store = DocumentStore()
        store.insert("reservations", {"venue": "A"})
        store.insert("reservations", {"venue": "B"})
        self.assertEqual(store.clear("reservations"), 2)
        self.assertEqual(store.find("reservations"), [])

    def test_returned_documents_are_copies(self) -> None:
        store = DocumentStore()
        doc = store.insert("reservations", {"venue": "A"})
        doc["venue"] = "changed"
        self.assertEqual(store.get("reservations", doc["id"])["venue"], "A")


class TestBackendSelection(unittest.TestCase):
    def test_document_backend_when_no_database_url(self) -> None:
        backend = init_backend(make_settings(STORAGE_BACKEND="auto"))
        self.assertEqual(backend.kind, "document")
        self.assertIsNone(backend.engine)

    def test_relational_backend_when_database_reachable(self) -> None:
        backend = init_backend(make_settings(STORAGE_BACKEND="auto", DATABASE_URL="sqlite://"))
        try:
            self.assertEqual(backend.kind, "relational")
            self.assertIsNotNone(backend.engine)
        finally:
            backend.close()

    def test_falls_back_when_database_unreachable(self) -> None:
        url = "sqlite:////nonexistent-dir-for-tests/app.db"
        backend = init_backend(make_settings(STORAGE_BACKEND="auto", DATABASE_URL=url))
        self.assertEqual(backend.kind, "document")

    def test_forced_relational_raises_when_unreachable(self) -> None:
        url = "sqlite:////nonexistent-dir-for-tests/app.db"
        with self.assertRaises(RuntimeError):
            init_backend(make_settings(STORAGE_BACKEND="relational", DATABASE_URL=url))

    def test_forced_document_ignores_database_url(self) -> None:
        backend = init_backend(make_settings(STORAGE_BACKEND="document", DATABASE_URL="sqlite://"))
        self.assertEqual(backend.kind, "document")


if __name__ == "__main__":
    unittest.main()
