"""HTTP client for the content REST API."""

import logging
from dataclasses import dataclass
from typing import Protocol

import httpx

from catalog_admin.domain.errors import (
    ApiError,
    AuthenticationRequired,
    NotFound,
    TransportFailure,
    ValidationFailed,
)

_logger = logging.getLogger(__name__)


class ResourceClient(Protocol):
    """Interface for issuing requests against resource paths."""

    async def get(self, path: str) -> dict[str, object]:
        """Fetch a resource and return the decoded JSON body."""

    async def send(
        self, method: str, path: str, payload: dict[str, object] | None = None
    ) -> dict[str, object]:
        """Issue a mutation and return the decoded JSON body."""


@dataclass
class HttpxResourceClient(ResourceClient):
    """Resource client backed by an httpx session with a cookie jar."""

    base_url: str
    http_client: httpx.AsyncClient
    timeout: float = 15

    @classmethod
    def create(cls, base_url: str, timeout: float = 15) -> "HttpxResourceClient":
        """Create a resource client with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
            timeout=timeout,
        )

    async def get(self, path: str) -> dict[str, object]:
        """Fetch a resource path."""
        return await self._request("GET", path)

    async def send(
        self, method: str, path: str, payload: dict[str, object] | None = None
    ) -> dict[str, object]:
        """Send a POST/PUT/PATCH/DELETE request."""
        return await self._request(method, path, payload)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    async def _request(
        self, method: str, path: str, payload: dict[str, object] | None = None
    ) -> dict[str, object]:
        url = f"{self.base_url}{path}"
        try:
            response = await self.http_client.request(
                method, url, json=payload, timeout=self.timeout
            )
        except httpx.HTTPError as exc:
            _logger.warning("%s %s failed: %s", method, path, exc)
            raise TransportFailure(f"Request to {path} failed: {exc}") from exc
        if response.is_success:
            return _decode(response)
        raise _error_for(response)


def _decode(response: httpx.Response) -> dict[str, object]:
    if not response.content:
        return {}
    try:
        body = response.json()
    except ValueError as exc:
        raise TransportFailure(
            "Response was not valid JSON", status=response.status_code
        ) from exc
    if not isinstance(body, dict):
        raise TransportFailure("Unexpected response shape", status=response.status_code)
    return body


def _error_for(response: httpx.Response) -> ApiError:
    """Map a non-success response to the typed error taxonomy."""
    body: dict[str, object] = {}
    try:
        decoded = response.json()
        if isinstance(decoded, dict):
            body = decoded
    except ValueError:
        pass
    message = str(body.get("message") or response.reason_phrase)
    status = response.status_code
    _logger.info("%s %s -> %s", response.request.method, response.request.url.path, status)
    if status == httpx.codes.UNAUTHORIZED:
        return AuthenticationRequired(message)
    if status == httpx.codes.BAD_REQUEST:
        return ValidationFailed(message, _field_errors(body.get("errors")))
    if status == httpx.codes.NOT_FOUND:
        return NotFound(message)
    return TransportFailure(f"{status}: {message}", status=status)


def _field_errors(raw: object) -> dict[str, list[str]]:
    grouped: dict[str, list[str]] = {}
    if not isinstance(raw, list):
        return grouped
    for item in raw:
        if not isinstance(item, dict):
            continue
        path = item.get("path") or []
        key = ".".join(str(part) for part in path) if isinstance(path, list) else str(path)
        grouped.setdefault(key or "__root__", []).append(str(item.get("message", "")))
    return grouped
