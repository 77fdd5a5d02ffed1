"""Domain models for the authenticated operator."""

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class User:
    """Represents the signed-in operator."""

    id: int
    username: str
    email: str

    @classmethod
    def from_payload(cls, payload: dict[str, object]) -> "User":
        """Build a user from a `{id, username, email}` JSON object."""
        return cls(
            id=int(payload["id"]),
            username=str(payload["username"]),
            email=str(payload["email"]),
        )

    def to_payload(self) -> dict[str, object]:
        return {"id": self.id, "username": self.username, "email": self.email}


class AuthState(str, Enum):
    """Session states tracked by the auth service."""

    UNAUTHENTICATED = "unauthenticated"
    LOADING = "loading"
    AUTHENTICATED = "authenticated"
