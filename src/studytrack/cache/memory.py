"""In-process TTL cache for StudyTrack.

Entries live in a plain dict keyed by ``namespace:owner[:extra]``. Each entry
remembers when it was stored and its own TTL; expired entries are treated as
misses and removed lazily on lookup, or in bulk by ``cleanup()``.

The cache is not thread-safe. It is meant to be shared by coroutines of a
single event loop, where no other task can run while a method executes.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import asdict, dataclass
from typing import Any

from studytrack.cache.keys import CacheKeys, CacheNamespace
from studytrack.observability.metrics import (
    record_cache_hit,
    record_cache_invalidation,
    record_cache_miss,
)

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """A cached value with its insertion time and TTL (seconds)."""

    value: Any
    timestamp: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now - self.timestamp > self.ttl


@dataclass
class CacheStats:
    """Snapshot of cache counters."""

    hits: int = 0
    misses: int = 0
    sets: int = 0
    invalidations: int = 0
    size: int = 0
    locks: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


class TTLCache:
    """Key/value cache with per-namespace expiry and owner-scoped invalidation."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._generations: dict[str, int] = {}
        self._epoch = 0
        self._hits = 0
        self._misses = 0
        self._sets = 0
        self._invalidations = 0

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, namespace: CacheNamespace, owner_id: str, extra: str | None = None) -> Any:
        """Return the cached value, or None on miss or expiry."""
        key = CacheKeys.build(namespace, owner_id, extra)
        entry = self._entries.get(key)

        if entry is None:
            self._misses += 1
            record_cache_miss(namespace.value)
            return None

        if entry.is_expired(self._clock()):
            del self._entries[key]
            self._misses += 1
            record_cache_miss(namespace.value)
            return None

        self._hits += 1
        record_cache_hit(namespace.value)
        return entry.value

    def set(
        self,
        namespace: CacheNamespace,
        owner_id: str,
        value: Any,
        extra: str | None = None,
        ttl: float | None = None,
    ) -> None:
        """Store a value, replacing any existing entry for the key."""
        key = CacheKeys.build(namespace, owner_id, extra)
        self._entries[key] = CacheEntry(
            value=value,
            timestamp=self._clock(),
            ttl=namespace.ttl if ttl is None else ttl,
        )
        self._sets += 1

    def set_batch(
        self,
        namespace: CacheNamespace,
        owner_id: str,
        values: Mapping[str, Any],
        ttl: float | None = None,
    ) -> None:
        """Store several sub-values of one namespace/owner pair, keyed by extra."""
        for extra, value in values.items():
            self.set(namespace, owner_id, value, extra=extra, ttl=ttl)

    def invalidate(
        self, namespace: CacheNamespace, owner_id: str, extra: str | None = None
    ) -> int:
        """Remove one key, or every key of the namespace/owner pair.

        The prefix form scans all entries. Returns the number of removed entries.
        """
        self._bump_generation(namespace, owner_id)

        if extra is not None:
            key = CacheKeys.build(namespace, owner_id, extra)
            removed = 1 if self._entries.pop(key, None) is not None else 0
        else:
            doomed = [
                key
                for key in self._entries
                if CacheKeys.matches_prefix(key, namespace, owner_id)
            ]
            for key in doomed:
                del self._entries[key]
            removed = len(doomed)

        self._invalidations += removed
        record_cache_invalidation(namespace.value, removed)
        return removed

    def invalidate_owner(self, owner_id: str) -> int:
        """Remove every entry belonging to one owner, across all namespaces."""
        return sum(self.invalidate(namespace, owner_id) for namespace in CacheNamespace)

    def generation(self, namespace: CacheNamespace, owner_id: str) -> tuple[int, int]:
        """Version of a namespace/owner pair, changed by every invalidation touching it."""
        return (self._epoch, self._generations.get(CacheKeys.prefix(namespace, owner_id), 0))

    def cleanup(self) -> int:
        """Drop every expired entry. Returns the number removed."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"Cache cleanup removed {len(expired)} expired entries")
        return len(expired)

    def clear(self) -> None:
        """Drop all entries and reset counters."""
        self._entries.clear()
        self._generations.clear()
        self._epoch += 1
        self._hits = 0
        self._misses = 0
        self._sets = 0
        self._invalidations = 0

    def get_stats(self) -> CacheStats:
        return CacheStats(
            hits=self._hits,
            misses=self._misses,
            sets=self._sets,
            invalidations=self._invalidations,
            size=len(self._entries),
        )

    def _bump_generation(self, namespace: CacheNamespace, owner_id: str) -> None:
        prefix = CacheKeys.prefix(namespace, owner_id)
        self._generations[prefix] = self._generations.get(prefix, 0) + 1
