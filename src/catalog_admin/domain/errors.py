"""Typed failures returned by the resource client."""


class ApiError(Exception):
    """Base class for failed resource requests."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


class AuthenticationRequired(ApiError):
    """The server answered 401."""

    def __init__(self, message: str = "Not authenticated") -> None:
        super().__init__(message, status=401)


class ValidationFailed(ApiError):
    """The payload was rejected with field-level messages (400)."""

    def __init__(
        self,
        message: str = "Invalid data",
        field_errors: dict[str, list[str]] | None = None,
    ) -> None:
        super().__init__(message, status=400)
        self.field_errors = field_errors or {}


class NotFound(ApiError):
    """The addressed entity does not exist (404)."""

    def __init__(self, message: str = "Not found") -> None:
        super().__init__(message, status=404)


class TransportFailure(ApiError):
    """Network error or an unexpected response."""


class PhotoIngestionBusy(RuntimeError):
    """A file read is already in progress for the photo list."""
