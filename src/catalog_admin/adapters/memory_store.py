"""In-memory persistence for the reference content server."""

import base64
import binascii
import hashlib
import hmac
import secrets
import threading
from dataclasses import dataclass, replace
from datetime import UTC, datetime

from catalog_admin.domain.entities import EntityKind
from catalog_admin.domain.models import User

_PBKDF2_SCHEME = "pbkdf2_sha256"
_PBKDF2_ROUNDS = 600_000
_PBKDF2_SALT_BYTES = 16


def hash_password(password: str, rounds: int = _PBKDF2_ROUNDS) -> str:
    salt = secrets.token_bytes(_PBKDF2_SALT_BYTES)
    hash_bytes = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, rounds)
    encoded_salt = base64.b64encode(salt).decode("ascii")
    encoded_hash = base64.b64encode(hash_bytes).decode("ascii")
    return f"{_PBKDF2_SCHEME}${rounds}${encoded_salt}${encoded_hash}"


def verify_password(password: str, hashed: str) -> bool:
    try:
        scheme, rounds_text, salt_b64, hash_b64 = hashed.split("$", 3)
        rounds = int(rounds_text)
        salt = base64.b64decode(salt_b64)
        expected = base64.b64decode(hash_b64)
    except (ValueError, TypeError, binascii.Error):
        return False
    if scheme != _PBKDF2_SCHEME:
        return False
    calculated = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, rounds)
    return hmac.compare_digest(expected, calculated)


@dataclass
class _UserRecord:
    user: User
    password_hash: str


def _now() -> str:
    return datetime.now(tz=UTC).isoformat()


class InMemoryContentStore:
    """Entity records kept as camelCase dicts, keyed by kind and id."""

    def __init__(self, password_rounds: int = _PBKDF2_ROUNDS) -> None:
        self._password_rounds = password_rounds
        self._records: dict[EntityKind, dict[int, dict[str, object]]] = {
            kind: {} for kind in EntityKind
        }
        self._next_ids: dict[EntityKind, int] = {kind: 1 for kind in EntityKind}
        self._users: dict[int, _UserRecord] = {}
        self._about_stats: dict[str, object] | None = None
        self._lock = threading.Lock()

    # Users

    def add_user(self, username: str, email: str, password: str) -> User:
        with self._lock:
            user = User(id=len(self._users) + 1, username=username, email=email)
            self._users[user.id] = _UserRecord(
                user=user,
                password_hash=hash_password(password, self._password_rounds),
            )
        return user

    def has_users(self) -> bool:
        return bool(self._users)

    def get_user(self, user_id: int) -> User | None:
        record = self._users.get(user_id)
        return record.user if record else None

    def authenticate(self, username: str, password: str) -> User | None:
        for record in self._users.values():
            if record.user.username == username:
                if verify_password(password, record.password_hash):
                    return record.user
                return None
        return None

    def update_user(
        self, user_id: int, *, username: str | None = None, email: str | None = None
    ) -> User | None:
        with self._lock:
            record = self._users.get(user_id)
            if record is None:
                return None
            record.user = replace(
                record.user,
                username=username or record.user.username,
                email=email or record.user.email,
            )
            return record.user

    def change_password(self, user_id: int, current: str, new: str) -> bool:
        """Replace a password after checking the current one."""
        record = self._users.get(user_id)
        if record is None or not verify_password(current, record.password_hash):
            return False
        with self._lock:
            record.password_hash = hash_password(new, self._password_rounds)
        return True

    # Entities

    def list_records(self, kind: EntityKind) -> list[dict[str, object]]:
        with self._lock:
            return [dict(record) for record in self._records[kind].values()]

    def get(self, kind: EntityKind, entity_id: int) -> dict[str, object] | None:
        record = self._records[kind].get(entity_id)
        return dict(record) if record else None

    def create(self, kind: EntityKind, data: dict[str, object]) -> dict[str, object]:
        with self._lock:
            entity_id = self._next_ids[kind]
            self._next_ids[kind] = entity_id + 1
            timestamp = _now()
            record = {
                **data,
                "id": entity_id,
                "createdAt": timestamp,
                "updatedAt": timestamp,
            }
            if kind is EntityKind.INQUIRIES:
                record["read"] = False
            self._records[kind][entity_id] = record
            return dict(record)

    def update(
        self, kind: EntityKind, entity_id: int, data: dict[str, object]
    ) -> dict[str, object] | None:
        with self._lock:
            existing = self._records[kind].get(entity_id)
            if existing is None:
                return None
            # Last write wins; there is no version check.
            existing.update(data)
            existing["id"] = entity_id
            existing["updatedAt"] = _now()
            return dict(existing)

    def delete(self, kind: EntityKind, entity_id: int) -> bool:
        with self._lock:
            return self._records[kind].pop(entity_id, None) is not None

    def get_singleton(self, kind: EntityKind) -> dict[str, object] | None:
        records = self._records[kind]
        return dict(next(iter(records.values()))) if records else None

    def put_singleton(self, kind: EntityKind, data: dict[str, object]) -> dict[str, object]:
        current = self.get_singleton(kind)
        if current is None:
            return self.create(kind, data)
        updated = self.update(kind, int(current["id"]), data)
        return updated or self.create(kind, data)

    def mark_inquiry_read(self, entity_id: int) -> dict[str, object] | None:
        return self.update(EntityKind.INQUIRIES, entity_id, {"read": True})

    # About stats

    def get_about_stats(self) -> dict[str, object] | None:
        return dict(self._about_stats) if self._about_stats else None

    def put_about_stats(self, data: dict[str, object]) -> dict[str, object]:
        with self._lock:
            self._about_stats = {**data, "updatedAt": _now()}
            return dict(self._about_stats)
