"""Process-wide TTL cache for audit results with single-flight computation."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from cachetools import TTLCache

logger = logging.getLogger(__name__)


class ResultCache:
    """
    Best-effort URL-keyed cache.

    Concurrent requests for the same key share one computation: the first
    caller starts a shared task and later callers await it. Entries expire after
    `ttl` seconds; the oldest entries are evicted beyond `maxsize`.
    """

    def __init__(self, ttl: float = 3600, maxsize: int = 256):
        self._entries: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl)
        self._inflight: dict[str, _Flight] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Any | None:
        async with self._lock:
            return self._entries.get(key)

    async def set(self, key: str, value: Any) -> None:
        async with self._lock:
            self._entries[key] = value

    async def evict_expired(self) -> None:
        async with self._lock:
            self._entries.expire()

    async def clear(self) -> None:
        async with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    async def get_or_compute(
        self,
        key: str,
        factory: Callable[[], Awaitable[Any]],
        cache_if: Callable[[Any], bool] | None = None,
    ) -> Any:
        """
        Return the cached value for `key`, computing it at most once.

        The computation runs in its own task shared by every caller of the
        key. A cancelled caller stops waiting; the computation itself is
        cancelled only when no caller is left waiting for it.

        Args:
            key: Cache key
            factory: Coroutine function producing the value
            cache_if: Predicate deciding whether a computed value is stored

        Returns:
            The cached or freshly computed value
        """
        async with self._lock:
            if key in self._entries:
                logger.debug(f"Cache hit for {key}")
                return self._entries[key]
            flight = self._inflight.get(key)
            if flight is None:
                flight = _Flight(asyncio.create_task(self._compute(key, factory, cache_if)))
                self._inflight[key] = flight
            else:
                logger.debug(f"Joining in-flight computation for {key}")
            flight.waiters += 1

        try:
            return await asyncio.shield(flight.task)
        except asyncio.CancelledError:
            if flight.waiters == 1 and not flight.task.done():
                logger.debug(f"Last waiter for {key} cancelled, stopping computation")
                flight.task.cancel()
            raise
        finally:
            flight.waiters -= 1

    async def _compute(
        self,
        key: str,
        factory: Callable[[], Awaitable[Any]],
        cache_if: Callable[[Any], bool] | None,
    ) -> Any:
        try:
            value = await factory()
            async with self._lock:
                if cache_if is None or cache_if(value):
                    self._entries[key] = value
            return value
        finally:
            self._inflight.pop(key, None)


@dataclass
class _Flight:
    task: asyncio.Task
    waiters: int = 0
