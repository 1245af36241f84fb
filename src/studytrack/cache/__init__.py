"""Cache layer for StudyTrack.

Provides an in-process cache in front of the document store:
- TTL cache with per-namespace expiry and owner-scoped keys
- Single-flight fetches so concurrent misses share one store query
- Invalidation rules applied after every committed write
"""

from studytrack.cache.invalidation import (
    CacheInvalidator,
    EntityType,
    InvalidationMessage,
    InvalidationPolicy,
    InvalidationRule,
    Operation,
)
from studytrack.cache.keys import CacheKeys, CacheNamespace
from studytrack.cache.memory import CacheEntry, CacheStats, TTLCache
from studytrack.cache.singleflight import SingleFlight

__all__ = [
    # Core cache
    "CacheKeys",
    "CacheNamespace",
    "CacheEntry",
    "CacheStats",
    "TTLCache",
    "SingleFlight",
    # Invalidation
    "CacheInvalidator",
    "EntityType",
    "InvalidationMessage",
    "InvalidationPolicy",
    "InvalidationRule",
    "Operation",
]
