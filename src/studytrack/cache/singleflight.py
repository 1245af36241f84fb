"""Single-flight fetch coordination on top of the TTL cache.

Concurrent callers asking for the same cache key while a fetch for it is
running share that fetch instead of each querying the document store.

Example:
    flight = SingleFlight(cache)

    subjects = await flight.get_or_fetch(
        CacheNamespace.SUBJECTS,
        owner_id,
        lambda: repo.list_subjects(owner_id),
    )
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from studytrack.cache.keys import CacheKeys, CacheNamespace
from studytrack.cache.memory import CacheStats, TTLCache
from studytrack.observability.metrics import record_shared_fetch

logger = logging.getLogger(__name__)

T = TypeVar("T")

Fetcher = Callable[[], Awaitable[T]]


@dataclass
class _InFlight:
    future: asyncio.Future[Any]
    generation: tuple[int, int]


class SingleFlight:
    """Cache-or-fetch with at most one upstream fetch per key at a time.

    A fetch that started before an invalidation of its namespace still
    resolves its waiters, but its result is not written to the cache and
    later callers start a fresh fetch instead of joining it.
    """

    def __init__(self, cache: TTLCache) -> None:
        self.cache = cache
        self._inflight: dict[str, _InFlight] = {}

    @property
    def in_flight(self) -> int:
        return len(self._inflight)

    async def get_or_fetch(
        self,
        namespace: CacheNamespace,
        owner_id: str,
        fetcher: Fetcher[T],
        extra: str | None = None,
        ttl: float | None = None,
    ) -> T:
        """Return the cached value or fetch, share and cache it.

        ``None`` results are returned but never cached.
        """
        cached = self.cache.get(namespace, owner_id, extra)
        if cached is not None:
            return cached  # type: ignore[no-any-return]

        key = CacheKeys.build(namespace, owner_id, extra)
        generation = self.cache.generation(namespace, owner_id)

        pending = self._inflight.get(key)
        if pending is not None and pending.generation == generation:
            record_shared_fetch(namespace.value)
            return await asyncio.shield(pending.future)  # type: ignore[no-any-return]

        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        slot = _InFlight(future=future, generation=generation)
        self._inflight[key] = slot

        try:
            value = await fetcher()
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as exc:
            if not future.done():
                future.set_exception(exc)
                # Mark retrieved so a fetch nobody joined doesn't log a warning
                future.exception()
            raise
        else:
            if value is not None and self.cache.generation(namespace, owner_id) == generation:
                self.cache.set(namespace, owner_id, value, extra=extra, ttl=ttl)
            elif value is not None:
                logger.debug(f"Discarding result for {key} fetched before invalidation")
            future.set_result(value)
            return value
        finally:
            if self._inflight.get(key) is slot:
                del self._inflight[key]

    def get_stats(self) -> CacheStats:
        """Cache counters plus the number of fetches currently in flight."""
        stats = self.cache.get_stats()
        stats.locks = len(self._inflight)
        return stats
