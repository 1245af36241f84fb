"""Cache key schema for StudyTrack.

Key format: {namespace}:{owner_id}[:{extra}]

Where:
- namespace: one of the CacheNamespace values ("questions", "subjects", ...)
- owner_id: identity provider subject id of the owning user, percent-encoded
  so it never contains the separator
- extra: optional discriminator inside the namespace (entity id or a
  canonical rendering of query parameters)

Every key is scoped by owner, so invalidation for one user never touches
another user's entries.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any
from urllib.parse import quote

import orjson

MINUTE = 60.0


class CacheNamespace(str, Enum):
    """Closed set of cache categories, each carrying its default TTL in seconds."""

    ttl: float

    MOCK_EXAMS = ("mock_exams", 30 * MINUTE)
    SUBJECTS = ("subjects", 30 * MINUTE)
    TOPICS = ("topics", 30 * MINUTE)
    QUESTIONS = ("questions", 2 * MINUTE)
    QUESTION = ("question", 30.0)
    QUESTION_COUNTS = ("question_counts", 2 * MINUTE)
    RELATIONS = ("relations", 10 * MINUTE)
    ALL_RELATIONS = ("all_relations", 30 * MINUTE)
    USER_STATS = ("user_stats", MINUTE)
    DETAILED_STATS = ("detailed_stats", MINUTE)
    TRASH = ("trash", 5 * MINUTE)

    def __new__(cls, value: str, ttl: float) -> "CacheNamespace":
        member = str.__new__(cls, value)
        member._value_ = value
        member.ttl = ttl
        return member


class CacheKeys:
    """Cache key generator following the namespace:owner[:extra] convention."""

    SEPARATOR = ":"

    @classmethod
    def build(cls, namespace: CacheNamespace, owner_id: str, extra: str | None = None) -> str:
        """Key for one entry."""
        base = cls.prefix(namespace, owner_id)
        if extra is None:
            return base
        return f"{base}{cls.SEPARATOR}{extra}"

    @classmethod
    def prefix(cls, namespace: CacheNamespace, owner_id: str) -> str:
        """Key shared by every entry of a namespace/owner pair."""
        return f"{namespace.value}{cls.SEPARATOR}{quote(owner_id, safe='')}"

    @classmethod
    def matches_prefix(cls, key: str, namespace: CacheNamespace, owner_id: str) -> bool:
        """Whether key belongs to the namespace/owner pair.

        Matches on whole segments so owner "u1" never matches keys of owner "u10".
        """
        base = cls.prefix(namespace, owner_id)
        return key == base or key.startswith(base + cls.SEPARATOR)

    @staticmethod
    def params(params: Mapping[str, Any]) -> str:
        """Canonical rendering of query parameters, independent of insertion order."""
        return orjson.dumps(dict(params), option=orjson.OPT_SORT_KEYS).decode()
