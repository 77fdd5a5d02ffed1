"""Dependency container wiring for the back-office client."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import httpx

from catalog_admin.adapters.resource_client import HttpxResourceClient
from catalog_admin.config import Settings
from catalog_admin.domain.entities import EntityKind
from catalog_admin.services.admin import ResourceManager, build_managers
from catalog_admin.services.auth import SessionAuthService
from catalog_admin.services.cache import ResponseCache
from catalog_admin.services.feedback import NavigationHistory, NotificationLog
from catalog_admin.services.public import PublicContentService
from catalog_admin.services.resources import ResourceService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    resource_client: HttpxResourceClient
    cache: ResponseCache
    resource_service: ResourceService
    notifications: NotificationLog
    navigation: NavigationHistory
    auth_service: SessionAuthService
    public_service: PublicContentService
    managers: dict[EntityKind, ResourceManager]
    close_resources: Callable[[], Awaitable[None]]

    def manager(self, kind: EntityKind) -> ResourceManager:
        return self.managers[kind]


def build_container(
    settings: Settings | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    if http_client is None:
        resource_client = HttpxResourceClient.create(
            resolved_settings.api_base_url,
            timeout=resolved_settings.request_timeout_seconds,
        )
    else:
        resource_client = HttpxResourceClient(
            base_url=resolved_settings.api_base_url.rstrip("/"),
            http_client=http_client,
            timeout=resolved_settings.request_timeout_seconds,
        )
    cache = ResponseCache(stale_after_seconds=resolved_settings.cache_stale_after_seconds)
    resource_service = ResourceService(client=resource_client, cache=cache)
    notifications = NotificationLog()
    navigation = NavigationHistory()
    auth_service = SessionAuthService(
        resources=resource_service,
        notifier=notifications,
        navigator=navigation,
        admin_entry_path=resolved_settings.admin_entry_path,
        public_entry_path=resolved_settings.public_entry_path,
    )
    managers = build_managers(
        resource_service,
        notifications,
        photo_warn_bytes=resolved_settings.embedded_photo_warn_bytes,
    )

    async def close_resources() -> None:
        await auth_service.teardown()
        cache.clear()
        await resource_client.close()

    return AppContainer(
        settings=resolved_settings,
        resource_client=resource_client,
        cache=cache,
        resource_service=resource_service,
        notifications=notifications,
        navigation=navigation,
        auth_service=auth_service,
        public_service=PublicContentService(resource_service),
        managers=managers,
        close_resources=close_resources,
    )
