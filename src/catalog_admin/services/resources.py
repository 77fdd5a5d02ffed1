"""Cached reads and invalidating mutations over the resource client."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from catalog_admin.adapters.resource_client import ResourceClient
from catalog_admin.services.cache import ResponseCache

_logger = logging.getLogger(__name__)


@dataclass
class ResourceService:
    """Reads go through the cache; mutations invalidate what they declare."""

    client: ResourceClient
    cache: ResponseCache

    async def read(self, key: str) -> dict[str, object]:
        """Return the payload for a key, fetching at most once concurrently."""
        return await self.cache.fetch(key, lambda: self.client.get(key))

    def cached(self, key: str) -> dict[str, object] | None:
        """Return the last-known-good payload for a key, if any."""
        entry = self.cache.peek(key)
        return entry.value if entry is not None else None

    async def mutate(
        self,
        method: str,
        key: str,
        payload: dict[str, object] | None = None,
        invalidates: Iterable[str] = (),
    ) -> dict[str, object]:
        """Send a mutation; on success mark every declared key stale."""
        result = await self.client.send(method, key, payload)
        for pattern in invalidates:
            self.cache.invalidate(pattern)
        _logger.info("%s %s succeeded", method, key)
        return result

    def invalidate(self, pattern: str) -> list[str]:
        return self.cache.invalidate(pattern)
