"""Cache invalidation rules for StudyTrack writes.

Every mutating storage operation reports what it changed as an
``InvalidationMessage`` (entity type, operation, owner, optional entity id).
The ``InvalidationPolicy`` maps that to the namespaces that may now hold
stale data, and the ``CacheInvalidator`` clears them for that owner only.

Invalidation is coarse by entity type and fine by owner: a whole namespace is
often cleared where a single key would do, but never another owner's keys.

Example:
    invalidator = CacheInvalidator(cache)

    # after the batch that created the question has committed
    invalidator.invalidate(EntityType.QUESTION, Operation.CREATE, owner_id)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from studytrack.cache.keys import CacheNamespace
from studytrack.cache.memory import TTLCache

logger = logging.getLogger(__name__)


class EntityType(str, Enum):
    """Kind of entity a write touched."""

    MOCK_EXAM = "mock_exam"
    SUBJECT = "subject"
    TOPIC = "topic"
    QUESTION = "question"
    TRASHED_QUESTION = "trashed_question"


class Operation(str, Enum):
    """Kind of write."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class InvalidationRule:
    """Namespace to clear; ``per_entity`` clears only the written entity's key."""

    namespace: CacheNamespace
    per_entity: bool = False


@dataclass(frozen=True)
class InvalidationMessage:
    """Description of a committed write."""

    entity: EntityType
    operation: Operation
    owner_id: str
    entity_id: str | None = None

    def to_dict(self) -> dict[str, str | None]:
        return {
            "entity": self.entity.value,
            "operation": self.operation.value,
            "owner_id": self.owner_id,
            "entity_id": self.entity_id,
        }


def _whole(*namespaces: CacheNamespace) -> tuple[InvalidationRule, ...]:
    return tuple(InvalidationRule(namespace) for namespace in namespaces)


def _keyed(*namespaces: CacheNamespace) -> tuple[InvalidationRule, ...]:
    return tuple(InvalidationRule(namespace, per_entity=True) for namespace in namespaces)


_STATS = _whole(CacheNamespace.USER_STATS, CacheNamespace.DETAILED_STATS)

_QUESTION_CREATE = (
    _whole(
        CacheNamespace.QUESTIONS,
        CacheNamespace.ALL_RELATIONS,
        CacheNamespace.QUESTION_COUNTS,
    )
    + _STATS
)
_QUESTION_UPDATE = _QUESTION_CREATE + _keyed(CacheNamespace.QUESTION, CacheNamespace.RELATIONS)
_QUESTION_DELETE = _QUESTION_UPDATE + _whole(CacheNamespace.TRASH)

_MOCK_EXAM_CREATE = _whole(CacheNamespace.MOCK_EXAMS) + _STATS
_MOCK_EXAM_UPDATE = _MOCK_EXAM_CREATE + _whole(
    CacheNamespace.QUESTIONS,
    CacheNamespace.QUESTION,
    CacheNamespace.QUESTION_COUNTS,
)
# Deleting a mock exam removes relation rows of many questions at once
_MOCK_EXAM_DELETE = _MOCK_EXAM_UPDATE + _whole(
    CacheNamespace.ALL_RELATIONS,
    CacheNamespace.RELATIONS,
    CacheNamespace.TRASH,
)

_SUBJECT_CREATE = _whole(CacheNamespace.SUBJECTS, CacheNamespace.DETAILED_STATS)
_SUBJECT_UPDATE = _SUBJECT_CREATE + _whole(CacheNamespace.QUESTIONS, CacheNamespace.QUESTION)

_TOPIC_CREATE = _whole(CacheNamespace.TOPICS, CacheNamespace.DETAILED_STATS)
_TOPIC_UPDATE = _TOPIC_CREATE + _whole(CacheNamespace.QUESTIONS, CacheNamespace.QUESTION)

_TRASH = _whole(CacheNamespace.TRASH)


class InvalidationPolicy:
    """Table of which namespaces each (entity, operation) pair makes stale."""

    RULES: dict[tuple[EntityType, Operation], tuple[InvalidationRule, ...]] = {
        (EntityType.QUESTION, Operation.CREATE): _QUESTION_CREATE,
        (EntityType.QUESTION, Operation.UPDATE): _QUESTION_UPDATE,
        (EntityType.QUESTION, Operation.DELETE): _QUESTION_DELETE,
        (EntityType.MOCK_EXAM, Operation.CREATE): _MOCK_EXAM_CREATE,
        (EntityType.MOCK_EXAM, Operation.UPDATE): _MOCK_EXAM_UPDATE,
        (EntityType.MOCK_EXAM, Operation.DELETE): _MOCK_EXAM_DELETE,
        (EntityType.SUBJECT, Operation.CREATE): _SUBJECT_CREATE,
        (EntityType.SUBJECT, Operation.UPDATE): _SUBJECT_UPDATE,
        (EntityType.SUBJECT, Operation.DELETE): _SUBJECT_UPDATE,
        (EntityType.TOPIC, Operation.CREATE): _TOPIC_CREATE,
        (EntityType.TOPIC, Operation.UPDATE): _TOPIC_UPDATE,
        (EntityType.TOPIC, Operation.DELETE): _TOPIC_UPDATE,
        (EntityType.TRASHED_QUESTION, Operation.CREATE): _TRASH,
        (EntityType.TRASHED_QUESTION, Operation.UPDATE): _TRASH,
        (EntityType.TRASHED_QUESTION, Operation.DELETE): _TRASH,
    }

    def rules_for(self, entity: EntityType, operation: Operation) -> tuple[InvalidationRule, ...]:
        return self.RULES[(entity, operation)]

    def namespaces_for(self, entity: EntityType, operation: Operation) -> set[CacheNamespace]:
        return {rule.namespace for rule in self.rules_for(entity, operation)}


class CacheInvalidator:
    """Applies the invalidation policy to a cache after writes commit.

    Failures are logged and skipped: the write has already been committed,
    so a cache problem must never fail the request that made it.
    """

    def __init__(self, cache: TTLCache, policy: InvalidationPolicy | None = None) -> None:
        self.cache = cache
        self.policy = policy or InvalidationPolicy()

    def invalidate(
        self,
        entity: EntityType,
        operation: Operation,
        owner_id: str,
        entity_id: str | None = None,
    ) -> int:
        """Clear every namespace the write may have made stale. Returns entries removed."""
        return self.handle(InvalidationMessage(entity, operation, owner_id, entity_id))

    def handle(self, message: InvalidationMessage) -> int:
        removed = 0
        for rule in self.policy.rules_for(message.entity, message.operation):
            # Without an id a per-entity rule falls back to the whole namespace
            extra = message.entity_id if rule.per_entity else None
            try:
                removed += self.cache.invalidate(rule.namespace, message.owner_id, extra)
            except Exception:
                logger.exception(
                    f"Cache invalidation of {rule.namespace.value} failed",
                    extra=message.to_dict(),
                )
        logger.debug(
            f"Invalidated {removed} cache entries after "
            f"{message.entity.value} {message.operation.value}",
            extra=message.to_dict(),
        )
        return removed
