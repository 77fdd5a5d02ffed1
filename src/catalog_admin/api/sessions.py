"""Cookie session tracking for the reference content server."""

import secrets
import threading
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

SESSION_COOKIE_NAME = "catalog_session"


@dataclass
class _SessionRecord:
    user_id: int
    expires_at: datetime


class SessionManager:
    """Issue, resolve, and revoke opaque session tokens."""

    def __init__(self, *, ttl: timedelta = timedelta(hours=8)) -> None:
        self._ttl = ttl
        self._sessions: dict[str, _SessionRecord] = {}
        self._lock = threading.Lock()

    @property
    def cookie_max_age(self) -> int:
        return int(self._ttl.total_seconds())

    def create(self, user_id: int) -> str:
        token = secrets.token_urlsafe(32)
        with self._lock:
            self._sessions[token] = _SessionRecord(
                user_id=user_id, expires_at=self._now() + self._ttl
            )
        return token

    def resolve(self, token: str) -> int | None:
        """Return the user id for a live token, sliding its expiry."""
        now = self._now()
        with self._lock:
            record = self._sessions.get(token)
            if record is None:
                return None
            if record.expires_at <= now:
                self._sessions.pop(token, None)
                return None
            record.expires_at = now + self._ttl
            return record.user_id

    def destroy(self, token: str) -> None:
        with self._lock:
            self._sessions.pop(token, None)

    @staticmethod
    def _now() -> datetime:
        return datetime.now(tz=UTC)
