"""
Storage contracts shared by the relational and document backends.

Users travel as UserRecord instances. Reservations travel as plain dicts keyed by
the camelCase contract fields in RESERVATION_FIELDS, whichever backend produced
them, so route handlers never branch on the backend.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Protocol

from app.core.errors import ValidationError

USER_ROLES = ("user", "admin", "manager")
RESERVATION_STATUSES = ("confirmed", "cancelled", "completed")

RESERVATION_FIELDS = (
    "id",
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
    "status",
    "createdAt",
    "updatedAt",
)
# Fields a caller may set on create/update; id and timestamps are backend-managed.
RESERVATION_WRITABLE_FIELDS = (
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
    "status",
)
RESERVATION_REQUIRED_FIELDS = (
    "userId",
    "name",
    "email",
    "phone",
    "date",
    "time",
    "guests",
    "venue",
)

USER_UPDATABLE_FIELDS = frozenset(
    {
        "name",
        "email",
        "password_hash",
        "role",
        "phone",
        "is_active",
        "last_login",
        "login_attempts",
        "lock_until",
    }
)

Sort = tuple[str, int]
DEFAULT_SORT: Sort = ("createdAt", -1)


def utcnow() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes (SQLite drops tzinfo)."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


def normalize_email(email: str) -> str:
    return email.strip().lower()


@dataclass
class UserRecord:
    """Backend-neutral user. password_hash never leaves the service layer."""

    id: str
    name: str
    email: str
    password_hash: str
    role: str = "user"
    phone: str | None = None
    is_active: bool = True
    last_login: datetime | None = None
    login_attempts: int = 0
    lock_until: datetime | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def is_locked(self, now: datetime | None = None) -> bool:
        """Locked iff lock_until is set and still in the future."""
        if self.lock_until is None:
            return False
        return as_utc(self.lock_until) > (now or utcnow())


def validate_status(status: Any) -> str:
    if status not in RESERVATION_STATUSES:
        raise ValidationError("Invalid status", code="INVALID_STATUS")
    return status


def validate_role(role: Any) -> str:
    if role not in USER_ROLES:
        raise ValidationError("Invalid role", code="INVALID_ROLE")
    return role


def validate_sort(sort: Sort | None) -> Sort | None:
    if sort is None:
        return None
    key, direction = sort
    if key not in RESERVATION_FIELDS or direction not in (1, -1):
        raise ValidationError("Invalid sort", code="INVALID_SORT")
    return key, direction


def validate_filters(filters: Mapping[str, Any] | None) -> dict[str, Any]:
    filters = dict(filters or {})
    unknown = set(filters) - set(RESERVATION_FIELDS)
    if unknown:
        raise ValidationError(
            f"Unknown reservation filter field(s): {', '.join(sorted(unknown))}",
            code="INVALID_FILTER",
        )
    if "userId" in filters and filters["userId"] is not None:
        filters["userId"] = str(filters["userId"])
    return filters


def prepare_reservation(data: Mapping[str, Any]) -> dict[str, Any]:
    """Keep writable fields, check required ones, default and validate status."""
    prepared = {key: data.get(key) for key in RESERVATION_WRITABLE_FIELDS}
    missing = [key for key in RESERVATION_REQUIRED_FIELDS if prepared[key] in (None, "")]
    if missing:
        raise ValidationError("Missing required fields", code="VALIDATION_ERROR")
    prepared["userId"] = str(prepared["userId"])
    prepared["guests"] = str(prepared["guests"])
    prepared["status"] = validate_status(prepared["status"] or "confirmed")
    return prepared


def prepare_reservation_changes(changes: Mapping[str, Any]) -> dict[str, Any]:
    """Drop non-writable keys; validate status when it is being changed."""
    prepared = {
        key: value
        for key, value in changes.items()
        if key in RESERVATION_WRITABLE_FIELDS and key != "userId"
    }
    if "status" in prepared:
        validate_status(prepared["status"])
    if "guests" in prepared and prepared["guests"] is not None:
        prepared["guests"] = str(prepared["guests"])
    return prepared


def owner_summary(user: UserRecord | None) -> dict[str, Any] | None:
    if user is None:
        return None
    return {"id": user.id, "name": user.name, "email": user.email}


class UserRepository(Protocol):
    def create(
        self, *, name: str, email: str, password_hash: str, role: str = "user"
    ) -> UserRecord: ...

    def get(self, user_id: str) -> UserRecord | None: ...

    def get_by_email(self, email: str) -> UserRecord | None: ...

    def list_all(self) -> list[UserRecord]: ...

    def update(self, user_id: str, **changes: Any) -> UserRecord | None: ...

    def delete(self, user_id: str) -> UserRecord | None: ...


class ReservationRepository(Protocol):
    def create(
        self,
        data: Mapping[str, Any],
        *,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ) -> dict[str, Any]:
        """Timestamps default to now; callers copying existing records pass them through."""
        ...

    def get(self, reservation_id: str) -> dict[str, Any] | None: ...

    def find(
        self,
        filters: Mapping[str, Any] | None = None,
        *,
        sort: Sort | None = None,
        populate_owner: bool = False,
    ) -> list[dict[str, Any]]: ...

    def update(
        self, reservation_id: str, changes: Mapping[str, Any]
    ) -> dict[str, Any] | None: ...

    def delete(self, reservation_id: str) -> dict[str, Any] | None: ...
