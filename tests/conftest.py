"""Global pytest configuration and fixtures."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import pytest

from studytrack.cache import TTLCache
from studytrack.core.model import QuestionDraft, QuestionType, QuestionWithRelations
from studytrack.persistence.memory import MemoryDocumentStore
from studytrack.persistence.storage import Storage

OWNER = "user-1"

# A Monday
START = datetime(2026, 10, 12, 9, 0, tzinfo=UTC)


class FakeClock:
    """Monotonic clock the test moves by hand."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class Ticker:
    """Wall clock that moves one second per reading, so creation order is stable."""

    def __init__(self, start: datetime = START) -> None:
        self.current = start

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


@dataclass
class Catalog:
    """Mock exams, subject and topic one owner starts with."""

    exam_a: str
    exam_b: str
    subject: str
    topic: str


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> TTLCache:
    return TTLCache(clock=clock)


@pytest.fixture
def store() -> MemoryDocumentStore:
    return MemoryDocumentStore()


@pytest.fixture
def storage(store: MemoryDocumentStore, cache: TTLCache) -> Storage:
    return Storage(store, cache, clock=Ticker())


@pytest.fixture
def seed(storage: Storage) -> Callable[[str], Awaitable[Catalog]]:
    async def _seed(owner_id: str = OWNER) -> Catalog:
        exam_a = await storage.create_mock_exam(owner_id, "Mock A")
        exam_b = await storage.create_mock_exam(owner_id, "Mock B")
        subject = await storage.create_subject(owner_id, "Anatomy")
        topic = await storage.create_topic(owner_id, "Bones")
        return Catalog(exam_a=exam_a.id, exam_b=exam_b.id, subject=subject.id, topic=topic.id)

    return _seed


@pytest.fixture
def add_question(storage: Storage) -> Callable[..., Awaitable[QuestionWithRelations]]:
    async def _add(
        catalog: Catalog,
        mock_exam_ids: list[str] | None = None,
        owner_id: str = OWNER,
        theory: str = "Femur is the longest bone",
        type: QuestionType = QuestionType.ERROR,
        is_learned: bool = False,
        failure_count: int = 0,
    ) -> QuestionWithRelations:
        draft = QuestionDraft(
            mock_exam_ids=mock_exam_ids if mock_exam_ids is not None else [catalog.exam_a],
            subject_id=catalog.subject,
            topic_id=catalog.topic,
            type=type,
            theory=theory,
            is_learned=is_learned,
            failure_count=failure_count,
        )
        return await storage.create_question(owner_id, draft)

    return _add
