"""
Relational backend: users and reservations over SQLAlchemy ORM sessions.

Reservation rows use snake_case columns; every result is mapped back to the
camelCase contract so it matches the document backend field for field.
"""

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from sqlalchemy import asc, desc
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from app.core.errors import ConflictError
from app.models import Reservation, User
from app.repositories.base import (
    USER_UPDATABLE_FIELDS,
    Sort,
    UserRecord,
    UserRepository,
    as_utc,
    normalize_email,
    owner_summary,
    prepare_reservation,
    prepare_reservation_changes,
    utcnow,
    validate_filters,
    validate_role,
    validate_sort,
)

# Contract field -> column name, where they differ.
CONTRACT_TO_COLUMN = {
    "userId": "user_id",
    "specialRequests": "special_requests",
    "venueLocation": "venue_location",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}


def _column(field_name: str) -> str:
    return CONTRACT_TO_COLUMN.get(field_name, field_name)


def _parse_id(raw_id: str | int) -> int | None:
    """Row ids are integers; anything else cannot match a row."""
    try:
        return int(str(raw_id))
    except (TypeError, ValueError):
        return None


def _user_from_row(row: User) -> UserRecord:
    return UserRecord(
        id=str(row.id),
        name=row.name,
        email=row.email,
        password_hash=row.password_hash,
        role=row.role,
        phone=row.phone,
        is_active=bool(row.is_active),
        last_login=as_utc(row.last_login),
        login_attempts=row.login_attempts or 0,
        lock_until=as_utc(row.lock_until),
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at),
    )


def reservation_from_row(row: Reservation) -> dict[str, Any]:
    return {
        "id": str(row.id),
        "userId": row.user_id,
        "name": row.name,
        "email": row.email,
        "phone": row.phone,
        "date": row.date,
        "time": row.time,
        "guests": row.guests,
        "specialRequests": row.special_requests,
        "venue": row.venue,
        "venueLocation": row.venue_location,
        "status": row.status,
        "createdAt": as_utc(row.created_at),
        "updatedAt": as_utc(row.updated_at),
    }


class SqlUserRepository:
    """Users table access."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def create(
        self, *, name: str, email: str, password_hash: str, role: str = "user"
    ) -> UserRecord:
        email = normalize_email(email)
        validate_role(role)
        now = utcnow()
        with self._session_factory() as db:
            if db.query(User.id).filter(User.email == email).first() is not None:
                raise ConflictError("Email already registered", code="EMAIL_EXISTS")
            row = User(
                name=name.strip(),
                email=email,
                password_hash=password_hash,
                role=role,
                is_active=True,
                login_attempts=0,
                created_at=now,
                updated_at=now,
            )
            db.add(row)
            try:
                db.commit()
            except IntegrityError as exc:
                db.rollback()
                raise ConflictError("Email already registered", code="EMAIL_EXISTS") from exc
            db.refresh(row)
            return _user_from_row(row)

    def get(self, user_id: str) -> UserRecord | None:
        pk = _parse_id(user_id)
        if pk is None:
            return None
        with self._session_factory() as db:
            row = db.get(User, pk)
            return _user_from_row(row) if row else None

    def get_by_email(self, email: str) -> UserRecord | None:
        with self._session_factory() as db:
            row = db.query(User).filter(User.email == normalize_email(email)).first()
            return _user_from_row(row) if row else None

    def list_all(self) -> list[UserRecord]:
        with self._session_factory() as db:
            return [_user_from_row(row) for row in db.query(User).order_by(User.id).all()]

    def update(self, user_id: str, **changes: Any) -> UserRecord | None:
        unknown = set(changes) - USER_UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update user field(s): {', '.join(sorted(unknown))}")
        if "role" in changes:
            validate_role(changes["role"])
        if "email" in changes:
            changes["email"] = normalize_email(changes["email"])
        pk = _parse_id(user_id)
        if pk is None:
            return None
        with self._session_factory() as db:
            row = db.get(User, pk)
            if row is None:
                return None
            for attr, value in changes.items():
                setattr(row, attr, value)
            row.updated_at = utcnow()
            try:
                db.commit()
            except IntegrityError as exc:
                db.rollback()
                raise ConflictError("Email already registered", code="EMAIL_EXISTS") from exc
            db.refresh(row)
            return _user_from_row(row)

    def delete(self, user_id: str) -> UserRecord | None:
        pk = _parse_id(user_id)
        if pk is None:
            return None
        with self._session_factory() as db:
            row = db.get(User, pk)
            if row is None:
                return None
            record = _user_from_row(row)
            db.delete(row)
            db.commit()
            return record


class SqlReservationRepository:
    """Reservations table access with camelCase <-> snake_case mapping."""

    def __init__(self, session_factory: sessionmaker[Session], users: UserRepository) -> None:
        self._session_factory = session_factory
        self._users = users

    def create(
        self,
        data: Mapping[str, Any],
        *,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ) -> dict[str, Any]:
        prepared = prepare_reservation(data)
        created_at = created_at or utcnow()
        row = Reservation(
            **{_column(key): value for key, value in prepared.items()},
            created_at=created_at,
            updated_at=updated_at or created_at,
        )
        with self._session_factory() as db:
            db.add(row)
            db.commit()
            db.refresh(row)
            return reservation_from_row(row)

    def get(self, reservation_id: str) -> dict[str, Any] | None:
        pk = _parse_id(reservation_id)
        if pk is None:
            return None
        with self._session_factory() as db:
            row = db.get(Reservation, pk)
            return reservation_from_row(row) if row else None

    def find(
        self,
        filters: Mapping[str, Any] | None = None,
        *,
        sort: Sort | None = None,
        populate_owner: bool = False,
    ) -> list[dict[str, Any]]:
        criteria = validate_filters(filters)
        sort = validate_sort(sort)
        with self._session_factory() as db:
            query = db.query(Reservation)
            for key, value in criteria.items():
                if key == "id":
                    value = _parse_id(value)
                query = query.filter(getattr(Reservation, _column(key)) == value)
            if sort is not None:
                key, direction = sort
                column = getattr(Reservation, _column(key))
                query = query.order_by(desc(column) if direction == -1 else asc(column))
            results = [reservation_from_row(row) for row in query.all()]
        if populate_owner:
            owners: dict[str, UserRecord | None] = {}
            for item in results:
                owner_id = item["userId"]
                if owner_id not in owners:
                    owners[owner_id] = self._users.get(owner_id)
                item["owner"] = owner_summary(owners[owner_id])
        return results

    def update(
        self, reservation_id: str, changes: Mapping[str, Any]
    ) -> dict[str, Any] | None:
        prepared = prepare_reservation_changes(changes)
        pk = _parse_id(reservation_id)
        if pk is None:
            return None
        with self._session_factory() as db:
            row = db.get(Reservation, pk)
            if row is None:
                return None
            for key, value in prepared.items():
                setattr(row, _column(key), value)
            row.updated_at = utcnow()
            db.commit()
            db.refresh(row)
            return reservation_from_row(row)

    def delete(self, reservation_id: str) -> dict[str, Any] | None:
        pk = _parse_id(reservation_id)
        if pk is None:
            return None
        with self._session_factory() as db:
            row = db.get(Reservation, pk)
            if row is None:
                return None
            result = reservation_from_row(row)
            db.delete(row)
            db.commit()
            return result
