"""Shared helpers for tests: isolated settings and seeded users."""

import os
import tempfile
from typing import Any

from app.core.config import Settings
from app.core.security import hash_password
from app.repositories import UserRecord, UserRepository

STRONG_PASSWORD = "Str0ng!pass"


def make_settings(**overrides: Any) -> Settings:
    """Settings that ignore .env and write backups to a throwaway directory."""
    values: dict[str, Any] = {
        "APP_ENV": "dev",
        "LOG_LEVEL": "WARNING",
        "JWT_SECRET": "test-access-secret",
        "JWT_REFRESH_SECRET": "test-refresh-secret",
        "STORAGE_BACKEND": "document",
        "DATABASE_URL": None,
        "DOCUMENT_STORE_PATH": None,
        "RESERVATION_BACKUP_PATH": os.path.join(tempfile.mkdtemp(), "reservations.json"),
        "EMAIL_USER": None,
        "EMAIL_PASS": None,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def seed_user(
    users: UserRepository,
    email: str = "diner@example.com",
    *,
    name: str = "Dana Diner",
    password: str = STRONG_PASSWORD,
    role: str = "user",
) -> UserRecord:
    return users.create(name=name, email=email, password_hash=hash_password(password), role=role)


def reservation_details(**overrides: Any) -> dict[str, Any]:
    details = {
        "name": "Dana Diner",
        "email": "diner@example.com",
        "phone": "+1 555 0100",
        "date": "2026-11-02",
        "time": "19:30",
        "guests": "4",
        "specialRequests": "Window seat",
        "venue": "Harbor Grill",
        "venueLocation": "12 Pier Road",
    }
    details.update(overrides)
    return details
