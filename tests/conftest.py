"""Shared test fixtures."""

import asyncio
from dataclasses import dataclass, field

import httpx
import pytest
from fastapi import FastAPI

from catalog_admin.adapters.resource_client import ResourceClient
from catalog_admin.api.app import create_app
from catalog_admin.config import ServerSettings, Settings
from catalog_admin.containers import AppContainer, build_container
from catalog_admin.domain.errors import TransportFailure
from catalog_admin.services.auth import SessionAuthService
from catalog_admin.services.cache import ResponseCache
from catalog_admin.services.feedback import NavigationHistory, NotificationLog
from catalog_admin.services.resources import ResourceService


@dataclass
class FakeResourceClient(ResourceClient):
    """Resource client returning queued responses per (method, path).

    The last queued result for a route is repeated once the queue runs down.
    """

    responses: dict[tuple[str, str], list[object]] = field(default_factory=dict)
    calls: list[tuple[str, str, dict[str, object] | None]] = field(default_factory=list)
    gate: asyncio.Event | None = None
    route_gates: dict[tuple[str, str], asyncio.Event] = field(default_factory=dict)

    def queue(self, method: str, path: str, *results: object) -> None:
        self.responses.setdefault((method, path), []).extend(results)

    def count(self, method: str, path: str) -> int:
        return sum(1 for call in self.calls if call[0] == method and call[1] == path)

    async def get(self, path: str) -> dict[str, object]:
        return await self._respond("GET", path, None)

    async def send(
        self, method: str, path: str, payload: dict[str, object] | None = None
    ) -> dict[str, object]:
        return await self._respond(method, path, payload)

    async def _respond(
        self, method: str, path: str, payload: dict[str, object] | None
    ) -> dict[str, object]:
        self.calls.append((method, path, payload))
        if self.gate is not None:
            await self.gate.wait()
        route_gate = self.route_gates.get((method, path))
        if route_gate is not None:
            await route_gate.wait()
        results = self.responses.get((method, path))
        if not results:
            raise TransportFailure(f"No response queued for {method} {path}")
        result = results.pop(0) if len(results) > 1 else results[0]
        if isinstance(result, Exception):
            raise result
        return result


def product_payload(product_id: int, name: str = "Fire Engine") -> dict[str, object]:
    return {
        "id": product_id,
        "name": name,
        "description": "A pumper truck for municipal fleets",
        "photos": [f"https://img.example.com/{product_id}.jpg"],
        "createdAt": "2024-01-01T00:00:00+00:00",
        "updatedAt": "2024-01-01T00:00:00+00:00",
    }


ADMIN = {"id": 1, "username": "admin", "email": "admin@example.com"}


@pytest.fixture
def fake_client() -> FakeResourceClient:
    return FakeResourceClient()


@pytest.fixture
def cache() -> ResponseCache:
    return ResponseCache()


@pytest.fixture
def resource_service(
    fake_client: FakeResourceClient, cache: ResponseCache
) -> ResourceService:
    return ResourceService(client=fake_client, cache=cache)


@pytest.fixture
def notifications() -> NotificationLog:
    return NotificationLog()


@pytest.fixture
def navigation() -> NavigationHistory:
    return NavigationHistory()


@pytest.fixture
def auth_service(
    resource_service: ResourceService,
    notifications: NotificationLog,
    navigation: NavigationHistory,
) -> SessionAuthService:
    return SessionAuthService(
        resources=resource_service,
        notifier=notifications,
        navigator=navigation,
    )


@pytest.fixture
def server_settings() -> ServerSettings:
    return ServerSettings(
        admin_username="admin",
        admin_password="correctpass",
        admin_email="admin@example.com",
        password_rounds=1_000,
    )


@pytest.fixture
def server_app(server_settings: ServerSettings) -> FastAPI:
    return create_app(server_settings)


@pytest.fixture
def live_container(server_app: FastAPI) -> AppContainer:
    """Client container talking to the in-process reference server."""
    http_client = httpx.AsyncClient(transport=httpx.ASGITransport(app=server_app))
    return build_container(
        Settings(api_base_url="http://testserver"), http_client=http_client
    )
