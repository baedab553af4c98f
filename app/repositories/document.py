"""
Document-store backend: named collections of JSON documents kept in process
memory, optionally persisted to a single JSON file after every write.
"""

import copy
import json
import logging
import os
import threading
import uuid
from collections.abc import Callable, Mapping
from datetime import datetime
from pathlib import Path
from typing import Any

from app.core.errors import ConflictError
from app.repositories.base import (
    RESERVATION_FIELDS,
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

logger = logging.getLogger(__name__)

Document = dict[str, Any]

# Datetimes are persisted as {"$date": "<iso>"} and restored on load.
_DATE_KEY = "$date"


def _encode_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return {_DATE_KEY: value.isoformat()}
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _decode_hook(obj: dict[str, Any]) -> Any:
    if len(obj) == 1 and _DATE_KEY in obj:
        return as_utc(datetime.fromisoformat(obj[_DATE_KEY]))
    return obj


class DocumentStore:
    """Thread-safe in-memory collections with optional JSON-file persistence."""

    def __init__(self, path: str | Path | None = None) -> None:
        self._path = Path(path) if path else None
        self._collections: dict[str, dict[str, Document]] = {}
        self._lock = threading.RLock()
        self._load()

    @property
    def path(self) -> Path | None:
        return self._path

    @property
    def lock(self) -> threading.RLock:
        """Held by repositories that must check-then-write atomically."""
        return self._lock

    def _load(self) -> None:
        if self._path is None or not self._path.exists():
            return
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"), object_hook=_decode_hook)
        except (OSError, json.JSONDecodeError) as exc:
            raise RuntimeError(f"Unable to load document store from {self._path}") from exc
        if not isinstance(raw, dict):
            raise RuntimeError(f"Document store file {self._path} must hold a JSON object")
        for name, documents in raw.items():
            self._collections[name] = {doc["id"]: doc for doc in documents}
        logger.info(
            "Loaded document store from %s (%s collection(s))",
            self._path,
            len(self._collections),
        )

    def _persist(self) -> None:
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        snapshot = {name: list(docs.values()) for name, docs in self._collections.items()}
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp_path.write_text(
            json.dumps(snapshot, default=_encode_default, indent=2), encoding="utf-8"
        )
        os.replace(tmp_path, self._path)

    def _collection(self, name: str) -> dict[str, Document]:
        return self._collections.setdefault(name, {})

    def insert(self, name: str, document: Mapping[str, Any]) -> Document:
        with self._lock:
            doc = copy.deepcopy(dict(document))
            doc["id"] = uuid.uuid4().hex
            self._collection(name)[doc["id"]] = doc
            self._persist()
            return copy.deepcopy(doc)

    def get(self, name: str, doc_id: str) -> Document | None:
        with self._lock:
            doc = self._collection(name).get(doc_id)
            return copy.deepcopy(doc) if doc is not None else None

    def find(
        self, name: str, predicate: Callable[[Document], bool] | None = None
    ) -> list[Document]:
        with self._lock:
            docs = self._collection(name).values()
            return [copy.deepcopy(d) for d in docs if predicate is None or predicate(d)]

    def update(self, name: str, doc_id: str, changes: Mapping[str, Any]) -> Document | None:
        with self._lock:
            doc = self._collection(name).get(doc_id)
            if doc is None:
                return None
            doc.update(copy.deepcopy(dict(changes)))
            self._persist()
            return copy.deepcopy(doc)

    def delete(self, name: str, doc_id: str) -> Document | None:
        with self._lock:
            doc = self._collection(name).pop(doc_id, None)
            if doc is not None:
                self._persist()
            return doc

    def clear(self, name: str) -> int:
        with self._lock:
            removed = len(self._collection(name))
            self._collections[name] = {}
            self._persist()
            return removed


# UserRecord attribute -> document key
_USER_KEYS = {
    "name": "name",
    "email": "email",
    "password_hash": "password",
    "role": "role",
    "phone": "phone",
    "is_active": "isActive",
    "last_login": "lastLogin",
    "login_attempts": "loginAttempts",
    "lock_until": "lockUntil",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
}


def _user_from_doc(doc: Document) -> UserRecord:
    values = {attr: doc.get(key) for attr, key in _USER_KEYS.items()}
    return UserRecord(
        id=doc["id"],
        name=values["name"],
        email=values["email"],
        password_hash=values["password_hash"],
        role=values["role"] or "user",
        phone=values["phone"],
        is_active=bool(values["is_active"]) if values["is_active"] is not None else True,
        last_login=values["last_login"],
        login_attempts=values["login_attempts"] or 0,
        lock_until=values["lock_until"],
        created_at=values["created_at"],
        updated_at=values["updated_at"],
    )


class DocumentUserRepository:
    """Users collection in a DocumentStore."""

    collection = "users"

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    def _email_taken(self, email: str, exclude_id: str | None = None) -> bool:
        return bool(
            self._store.find(
                self.collection,
                lambda d: d.get("email") == email and d["id"] != exclude_id,
            )
        )

    def create(
        self, *, name: str, email: str, password_hash: str, role: str = "user"
    ) -> UserRecord:
        email = normalize_email(email)
        validate_role(role)
        now = utcnow()
        # Uniqueness check and insert happen under the store lock.
        with self._store.lock:
            if self._email_taken(email):
                raise ConflictError("Email already registered", code="EMAIL_EXISTS")
            doc = self._store.insert(
                self.collection,
                {
                    "name": name.strip(),
                    "email": email,
                    "password": password_hash,
                    "role": role,
                    "phone": None,
                    "isActive": True,
                    "lastLogin": None,
                    "loginAttempts": 0,
                    "lockUntil": None,
                    "createdAt": now,
                    "updatedAt": now,
                },
            )
        return _user_from_doc(doc)

    def get(self, user_id: str) -> UserRecord | None:
        doc = self._store.get(self.collection, str(user_id))
        return _user_from_doc(doc) if doc else None

    def get_by_email(self, email: str) -> UserRecord | None:
        email = normalize_email(email)
        docs = self._store.find(self.collection, lambda d: d.get("email") == email)
        return _user_from_doc(docs[0]) if docs else None

    def list_all(self) -> list[UserRecord]:
        docs = self._store.find(self.collection)
        return [_user_from_doc(d) for d in sorted(docs, key=lambda d: d["createdAt"])]

    def update(self, user_id: str, **changes: Any) -> UserRecord | None:
        unknown = set(changes) - USER_UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update user field(s): {', '.join(sorted(unknown))}")
        if "role" in changes:
            validate_role(changes["role"])
        with self._store.lock:
            if "email" in changes:
                changes["email"] = normalize_email(changes["email"])
                if self._email_taken(changes["email"], exclude_id=str(user_id)):
                    raise ConflictError("Email already registered", code="EMAIL_EXISTS")
            doc_changes = {_USER_KEYS[attr]: value for attr, value in changes.items()}
            doc_changes["updatedAt"] = utcnow()
            doc = self._store.update(self.collection, str(user_id), doc_changes)
        return _user_from_doc(doc) if doc else None

    def delete(self, user_id: str) -> UserRecord | None:
        doc = self._store.delete(self.collection, str(user_id))
        return _user_from_doc(doc) if doc else None


def _reservation_view(doc: Document) -> dict[str, Any]:
    return {key: doc.get(key) for key in RESERVATION_FIELDS}


class DocumentReservationRepository:
    """Reservations collection in a DocumentStore; documents use the contract keys."""

    collection = "reservations"

    def __init__(self, store: DocumentStore, users: UserRepository) -> None:
        self._store = store
        self._users = users

    def create(
        self,
        data: Mapping[str, Any],
        *,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ) -> dict[str, Any]:
        doc = prepare_reservation(data)
        doc["createdAt"] = created_at or utcnow()
        doc["updatedAt"] = updated_at or doc["createdAt"]
        return _reservation_view(self._store.insert(self.collection, doc))

    def get(self, reservation_id: str) -> dict[str, Any] | None:
        doc = self._store.get(self.collection, str(reservation_id))
        return _reservation_view(doc) if doc else None

    def find(
        self,
        filters: Mapping[str, Any] | None = None,
        *,
        sort: Sort | None = None,
        populate_owner: bool = False,
    ) -> list[dict[str, Any]]:
        criteria = validate_filters(filters)
        sort = validate_sort(sort)
        docs = self._store.find(
            self.collection,
            lambda d: all(d.get(key) == value for key, value in criteria.items()),
        )
        if sort is not None:
            key, direction = sort
            docs.sort(
                key=lambda d: (d.get(key) is not None, d.get(key)),
                reverse=direction == -1,
            )
        results = [_reservation_view(d) for d in docs]
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
        prepared["updatedAt"] = utcnow()
        doc = self._store.update(self.collection, str(reservation_id), prepared)
        return _reservation_view(doc) if doc else None

    def delete(self, reservation_id: str) -> dict[str, Any] | None:
        doc = self._store.delete(self.collection, str(reservation_id))
        return _reservation_view(doc) if doc else None

