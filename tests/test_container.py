"""Tests for container wiring and settings."""

import asyncio

import pytest

from catalog_admin.config import ServerSettings, Settings
from catalog_admin.containers import build_container
from catalog_admin.domain.entities import EntityKind


def test_build_container_creates_services() -> None:
    container = build_container(Settings(api_base_url="https://catalog.test/"))

    assert container.auth_service is not None
    assert container.resource_client.base_url == "https://catalog.test"
    assert set(container.managers) == set(EntityKind)
    asyncio.run(container.close_resources())


def test_managers_share_one_cache() -> None:
    container = build_container(Settings())

    products = container.manager(EntityKind.PRODUCTS)
    blogs = container.manager(EntityKind.BLOGS)

    assert products.resources is blogs.resources
    assert container.auth_service.resources.cache is container.cache
    asyncio.run(container.close_resources())


def test_settings_read_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CATALOG_API_BASE_URL", "https://api.example.com")
    monkeypatch.setenv("CATALOG_CACHE_STALE_AFTER_SECONDS", "30")

    settings = Settings()

    assert settings.api_base_url == "https://api.example.com"
    assert settings.cache_stale_after_seconds == 30
    assert settings.request_timeout_seconds == 15


def test_server_settings_require_password(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CATALOG_SERVER_ADMIN_PASSWORD", "s3cret")

    settings = ServerSettings()

    assert settings.admin_password == "s3cret"
    assert settings.session_ttl_hours == 8
