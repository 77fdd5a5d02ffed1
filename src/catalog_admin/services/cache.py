"""Path-keyed response cache with request deduplication."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol

_logger = logging.getLogger(__name__)


class Cache(Protocol):
    """Cache interface for resource responses."""

    async def fetch(
        self, key: str, loader: Callable[[], Awaitable[object]]
    ) -> object:
        """Return a fresh cached value or load it once for all waiters."""

    def invalidate(self, pattern: str) -> list[str]:
        """Mark matching entries stale and return their keys."""


@dataclass
class CacheEntry:
    key: str
    value: object
    fetched_at: datetime
    stale: bool = False


class ResponseCache(Cache):
    """In-memory cache of the last successful response per resource path.

    A pattern passed to `invalidate` is either an exact key or `prefix/*`,
    which matches the prefix itself and every key below it.
    """

    def __init__(self, stale_after_seconds: int | None = None) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._in_flight: dict[str, asyncio.Task] = {}
        self._generations: dict[str, int] = {}
        self._stale_after = (
            timedelta(seconds=stale_after_seconds)
            if stale_after_seconds is not None
            else None
        )

    def peek(self, key: str) -> CacheEntry | None:
        """Return the last-known-good entry, stale or not."""
        return self._entries.get(key)

    def get(self, key: str) -> object | None:
        """Return a cached value if present and fresh."""
        entry = self._entries.get(key)
        if entry is None or not self._is_fresh(entry):
            return None
        return entry.value

    def set(self, key: str, value: object) -> None:
        self._entries[key] = CacheEntry(
            key=key, value=value, fetched_at=datetime.now(tz=UTC)
        )

    async def fetch(
        self, key: str, loader: Callable[[], Awaitable[object]]
    ) -> object:
        """Serve a fresh entry, join an outstanding request, or start one."""
        entry = self._entries.get(key)
        if entry is not None and self._is_fresh(entry):
            return entry.value
        task = self._in_flight.get(key)
        if task is None:
            generation = self._generations.get(key, 0)
            task = asyncio.ensure_future(self._load(key, loader, generation))
            self._in_flight[key] = task
        return await asyncio.shield(task)

    def invalidate(self, pattern: str) -> list[str]:
        """Mark matching entries stale so the next read refetches."""
        matched = [key for key in self._known_keys() if _matches(pattern, key)]
        for key in matched:
            self._generations[key] = self._generations.get(key, 0) + 1
            # Later reads must not join a request issued before the change.
            self._in_flight.pop(key, None)
            entry = self._entries.get(key)
            if entry is not None:
                entry.stale = True
        if matched:
            _logger.debug("Invalidated %s", ", ".join(sorted(matched)))
        return matched

    def in_flight(self, key: str) -> bool:
        return key in self._in_flight

    def clear(self) -> None:
        """Drop every entry and cancel outstanding loads."""
        for task in self._in_flight.values():
            task.cancel()
        self._in_flight.clear()
        self._entries.clear()
        self._generations.clear()

    async def _load(
        self,
        key: str,
        loader: Callable[[], Awaitable[object]],
        generation: int,
    ) -> object:
        try:
            value = await loader()
        finally:
            if self._in_flight.get(key) is asyncio.current_task():
                self._in_flight.pop(key, None)
        if self._generations.get(key, 0) == generation:
            self.set(key, value)
            return value
        # Invalidated while the request was outstanding: keep it only as a
        # stale fallback, never over a newer entry.
        current = self._entries.get(key)
        if current is None or current.stale:
            self.set(key, value)
            self._entries[key].stale = True
        return value

    def _known_keys(self) -> set[str]:
        return set(self._entries) | set(self._in_flight)

    def _is_fresh(self, entry: CacheEntry) -> bool:
        if entry.stale:
            return False
        if self._stale_after is None:
            return True
        return datetime.now(tz=UTC) - entry.fetched_at < self._stale_after


def _matches(pattern: str, key: str) -> bool:
    if pattern.endswith("/*"):
        prefix = pattern[:-2]
        return key == prefix or key.startswith(f"{prefix}/")
    return key == pattern
