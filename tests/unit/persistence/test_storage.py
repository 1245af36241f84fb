"""Tests for cache-aware storage: entity operations and read-your-writes."""

from __future__ import annotations

import asyncio

import pytest

from studytrack.cache import CacheNamespace, TTLCache
from studytrack.core.errors import (
    ConsistencyError,
    EntityInUseError,
    UnknownMockExamError,
    UnknownReferenceError,
    ValidationError,
)
from studytrack.core.filters import QuestionFilter
from studytrack.core.model import QuestionDraft, QuestionPatch, QuestionType
from studytrack.persistence.memory import MemoryDocumentStore
from studytrack.persistence.storage import Storage

OWNER = "user-1"
OTHER = "user-10"


class TestMockExams:
    """Mock exam operations."""

    @pytest.mark.asyncio
    async def test_list_newest_first(self, storage: Storage) -> None:
        first = await storage.create_mock_exam(OWNER, "First")
        second = await storage.create_mock_exam(OWNER, "Second")
        assert [exam.id for exam in await storage.get_mock_exams(OWNER)] == [second.id, first.id]

    @pytest.mark.asyncio
    async def test_title_is_required(self, storage: Storage) -> None:
        with pytest.raises(ValidationError):
            await storage.create_mock_exam(OWNER, "   ")

    @pytest.mark.asyncio
    async def test_rename_is_visible_immediately(self, storage: Storage) -> None:
        exam = await storage.create_mock_exam(OWNER, "Old")
        await storage.get_mock_exams(OWNER)

        renamed = await storage.update_mock_exam(OWNER, exam.id, "New")

        assert renamed is not None and renamed.title == "New"
        assert [e.title for e in await storage.get_mock_exams(OWNER)] == ["New"]

    @pytest.mark.asyncio
    async def test_question_counts(self, storage: Storage, seed, add_question) -> None:
        catalog = await seed()
        await add_question(catalog, [catalog.exam_a, catalog.exam_b])
        await add_question(catalog, [catalog.exam_a])

        counts = {e.id: e.question_count for e in await storage.get_mock_exams_with_counts(OWNER)}
        assert counts == {catalog.exam_a: 2, catalog.exam_b: 1}

    @pytest.mark.asyncio
    async def test_other_owner_cannot_touch(self, storage: Storage) -> None:
        exam = await storage.create_mock_exam(OWNER, "Mine")
        assert await storage.update_mock_exam(OTHER, exam.id, "Theirs") is None
        assert await storage.delete_mock_exam(OTHER, exam.id) is False
        assert await storage.get_mock_exams(OTHER) == []


class TestSubjectsAndTopics:
    """Named entities."""

    @pytest.mark.asyncio
    async def test_create_returns_existing_by_name(self, storage: Storage) -> None:
        """Names match case-insensitively per owner."""
        first = await storage.create_subject(OWNER, "Anatomy")
        again = await storage.create_subject(OWNER, "anatomy")
        theirs = await storage.create_subject(OTHER, "Anatomy")

        assert again.id == first.id
        assert theirs.id != first.id
        assert len(await storage.get_subjects(OWNER)) == 1

    @pytest.mark.asyncio
    async def test_list_sorted_by_name(self, storage: Storage) -> None:
        for name in ("cardio", "Anatomy", "bones"):
            await storage.create_topic(OWNER, name)
        assert [t.name for t in await storage.get_topics(OWNER)] == ["Anatomy", "bones", "cardio"]

    @pytest.mark.asyncio
    async def test_rename_clash(self, storage: Storage) -> None:
        await storage.create_subject(OWNER, "Anatomy")
        other = await storage.create_subject(OWNER, "Physiology")
        with pytest.raises(ConsistencyError):
            await storage.update_subject(OWNER, other.id, "ANATOMY")

    @pytest.mark.asyncio
    async def test_rename_reaches_hydrated_questions(
        self, storage: Storage, seed, add_question
    ) -> None:
        catalog = await seed()
        question = await add_question(catalog)
        await storage.get_questions(OWNER)
        await storage.get_question(OWNER, question.id)

        await storage.update_subject(OWNER, catalog.subject, "Histology")
        await storage.update_topic(OWNER, catalog.topic, "Cells")

        listed = await storage.get_questions(OWNER)
        single = await storage.get_question(OWNER, question.id)
        assert listed[0].subject is not None and listed[0].subject.name == "Histology"
        assert single is not None and single.topic is not None and single.topic.name == "Cells"
        assert (await storage.get_subject(OWNER, catalog.subject)).name == "Histology"

    @pytest.mark.asyncio
    async def test_delete_in_use(self, storage: Storage, seed, add_question) -> None:
        catalog = await seed()
        await add_question(catalog)

        with pytest.raises(EntityInUseError) as exc_info:
            await storage.delete_topic(OWNER, catalog.topic)
        assert exc_info.value.references == 1

    @pytest.mark.asyncio
    async def test_delete_unused(self, storage: Storage) -> None:
        subject = await storage.create_subject(OWNER, "Anatomy")
        await storage.get_subject(OWNER, subject.id)

        assert await storage.delete_subject(OWNER, subject.id) is True
        assert await storage.get_subject(OWNER, subject.id) is None
        assert await storage.delete_subject(OWNER, subject.id) is False

    @pytest.mark.asyncio
    async def test_list_fills_single_lookups(
        self, storage: Storage, store: MemoryDocumentStore
    ) -> None:
        """Entities from a list read are served by id without another query."""
        subject = await storage.create_subject(OWNER, "Anatomy")
        topic = await storage.create_topic(OWNER, "Bones")
        await storage.get_subjects(OWNER)
        await storage.get_topics(OWNER)
        reads = store.reads

        found_subject = await storage.get_subject(OWNER, subject.id)
        found_topic = await storage.get_topic(OWNER, topic.id)

        assert store.reads == reads
        assert found_subject is not None and found_subject.name == "Anatomy"
        assert found_topic is not None and found_topic.name == "Bones"

    @pytest.mark.asyncio
    async def test_list_overlapping_a_rename(self) -> None:
        """Single lookups after a list read that overlapped a rename see the new name."""
        store = MemoryDocumentStore(latency=0.01)
        storage = Storage(store, TTLCache())
        subject = await storage.create_subject(OWNER, "Anatomy")

        reader = asyncio.create_task(storage.get_subjects(OWNER))
        await asyncio.sleep(0)
        await storage.update_subject(OWNER, subject.id, "Histology")
        await reader

        found = await storage.get_subject(OWNER, subject.id)
        assert found is not None and found.name == "Histology"


class TestQuestions:
    """Question writes and hydrated reads."""

    @pytest.mark.asyncio
    async def test_create_hydrates(self, storage: Storage, seed, add_question) -> None:
        catalog = await seed()
        question = await add_question(catalog, [catalog.exam_a, catalog.exam_b, catalog.exam_a])

        assert sorted(question.mock_exam_ids) == sorted([catalog.exam_a, catalog.exam_b])
        assert {exam.title for exam in question.mock_exams} == {"Mock A", "Mock B"}
        assert question.subject is not None and question.subject.name == "Anatomy"
        assert question.topic is not None and question.topic.name == "Bones"

    @pytest.mark.asyncio
    async def test_create_requires_mock_exam(self, storage: Storage, seed, add_question) -> None:
        catalog = await seed()
        with pytest.raises(ValidationError):
            await add_question(catalog, [])

    @pytest.mark.asyncio
    async def test_create_rejects_foreign_references(
        self, storage: Storage, seed, add_question
    ) -> None:
        mine = await seed()
        theirs = await seed(OTHER)

        with pytest.raises(UnknownMockExamError):
            await add_question(mine, [theirs.exam_a])

        draft = QuestionDraft(
            mock_exam_ids=[mine.exam_a],
            subject_id=theirs.subject,
            topic_id=mine.topic,
            type=QuestionType.DOUBT,
            theory="x",
        )
        with pytest.raises(UnknownReferenceError):
            await storage.create_question(OWNER, draft)
        assert await storage.get_questions(OWNER) == []

    @pytest.mark.asyncio
    async def test_list_newest_first(self, storage: Storage, seed, add_question) -> None:
        catalog = await seed()
        first = await add_question(catalog, theory="first")
        second = await add_question(catalog, theory="second")
        assert [q.id for q in await storage.get_questions(OWNER)] == [second.id, first.id]

    @pytest.mark.asyncio
    async def test_filtered_lists_are_cached_separately(
        self, storage: Storage, seed, add_question
    ) -> None:
        catalog = await seed()
        await add_question(catalog, [catalog.exam_a], type=QuestionType.DOUBT)
        await add_question(catalog, [catalog.exam_b], type=QuestionType.ERROR)

        doubts = await storage.get_questions(OWNER, QuestionFilter(types=[QuestionType.DOUBT]))
        in_b = await storage.get_questions(OWNER, QuestionFilter(mock_exam_ids=[catalog.exam_b]))
        none = await storage.get_questions(OWNER, QuestionFilter(subject_ids=[]))

        assert [q.type for q in doubts] == [QuestionType.DOUBT]
        assert [q.mock_exam_ids for q in in_b] == [[catalog.exam_b]]
        assert none == []
        assert len(await storage.get_questions(OWNER)) == 2

    @pytest.mark.asyncio
    async def test_update_replaces_mock_exams(self, storage: Storage, seed, add_question) -> None:
        catalog = await seed()
        question = await add_question(catalog, [catalog.exam_a])
        await storage.get_mock_exams_with_counts(OWNER)

        updated = await storage.update_question(
            OWNER, question.id, QuestionPatch(mock_exam_ids=[catalog.exam_b], theory="Tibia")
        )

        assert updated is not None
        assert updated.mock_exam_ids == [catalog.exam_b]
        assert updated.theory == "Tibia"
        counts = {e.id: e.question_count for e in await storage.get_mock_exams_with_counts(OWNER)}
        assert counts == {catalog.exam_a: 0, catalog.exam_b: 1}

    @pytest.mark.asyncio
    async def test_update_rejects_empty_mock_exams(
        self, storage: Storage, seed, add_question
    ) -> None:
        catalog = await seed()
        question = await add_question(catalog)
        with pytest.raises(ValidationError):
            await storage.update_question(OWNER, question.id, QuestionPatch(mock_exam_ids=[]))

    @pytest.mark.asyncio
    async def test_update_missing(self, storage: Storage) -> None:
        assert await storage.update_question(OWNER, "nope", QuestionPatch(theory="x")) is None

    @pytest.mark.asyncio
    async def test_set_learned(self, storage: Storage, seed, add_question) -> None:
        catalog = await seed()
        question = await add_question(catalog)
        await storage.get_question(OWNER, question.id)

        updated = await storage.set_learned(OWNER, question.id, True)

        assert updated is not None and updated.is_learned is True
        fetched = await storage.get_question(OWNER, question.id)
        assert fetched is not None and fetched.is_learned is True

    @pytest.mark.asyncio
    async def test_failure_count_never_negative(
        self, storage: Storage, seed, add_question
    ) -> None:
        catalog = await seed()
        question = await add_question(catalog, failure_count=1)

        bumped = await storage.update_failure_count(OWNER, question.id, change=2)
        assert bumped is not None and bumped.failure_count == 3
        lowered = await storage.update_failure_count(OWNER, question.id, change=-10)
        assert lowered is not None and lowered.failure_count == 0
        absolute = await storage.update_failure_count(OWNER, question.id, value=5)
        assert absolute is not None and absolute.failure_count == 5

        with pytest.raises(ValidationError):
            await storage.update_failure_count(OWNER, question.id)


class TestCacheConsistency:
    """Reads after a committed write never return pre-write data."""

    @pytest.mark.asyncio
    async def test_warm_reads_skip_the_store(
        self, storage: Storage, store: MemoryDocumentStore, seed, add_question
    ) -> None:
        catalog = await seed()
        await add_question(catalog)
        await storage.get_questions(OWNER)
        await storage.get_user_stats(OWNER)

        reads = store.reads
        await storage.get_questions(OWNER)
        await storage.get_user_stats(OWNER)
        await storage.get_subjects(OWNER)

        assert store.reads == reads

    @pytest.mark.asyncio
    async def test_stats_follow_writes(self, storage: Storage, seed, add_question) -> None:
        catalog = await seed()
        question = await add_question(catalog)
        before = await storage.get_user_stats(OWNER)
        assert (before.total_questions, before.learned_questions) == (1, 0)

        await storage.set_learned(OWNER, question.id, True)
        after = await storage.get_user_stats(OWNER)
        detailed = await storage.get_detailed_stats(OWNER)

        assert after.learned_questions == 1
        assert after.progress_percentage == 100
        assert detailed.learned_questions == 1
        assert detailed.questions_by_subject[0].learned == 1

        await storage.delete_question(OWNER, question.id)
        assert (await storage.get_user_stats(OWNER)).total_questions == 0
        assert (await storage.get_detailed_stats(OWNER)).total_questions == 0

    @pytest.mark.asyncio
    async def test_writes_leave_other_owner_cached(
        self, storage: Storage, cache: TTLCache, seed, add_question
    ) -> None:
        mine = await seed()
        await seed(OTHER)
        await storage.get_subjects(OTHER)
        await storage.get_questions(OTHER)

        await add_question(mine)
        await storage.create_subject(OWNER, "Pharmacology")

        assert cache.get(CacheNamespace.SUBJECTS, OTHER) is not None
        assert cache.get(CacheNamespace.QUESTIONS, OTHER, "all") is not None

    @pytest.mark.asyncio
    async def test_concurrent_misses_share_one_query(self) -> None:
        store = MemoryDocumentStore(latency=0.01)
        storage = Storage(store, TTLCache())
        await storage.create_subject(OWNER, "Anatomy")
        reads = store.reads

        results = await asyncio.gather(*(storage.get_subjects(OWNER) for _ in range(5)))

        assert all([s.name for s in result] == ["Anatomy"] for result in results)
        assert store.reads == reads + 1

    @pytest.mark.asyncio
    async def test_read_racing_a_write(self) -> None:
        """Whatever the in-flight read returns, the next read sees the write."""
        store = MemoryDocumentStore(latency=0.01)
        storage = Storage(store, TTLCache())
        exam = await storage.create_mock_exam(OWNER, "Mock")

        reader = asyncio.create_task(storage.get_mock_exams_with_counts(OWNER))
        await asyncio.sleep(0)
        subject = await storage.create_subject(OWNER, "Anatomy")
        topic = await storage.create_topic(OWNER, "Bones")
        await storage.create_question(
            OWNER,
            QuestionDraft(
                mock_exam_ids=[exam.id],
                subject_id=subject.id,
                topic_id=topic.id,
                type=QuestionType.ERROR,
                theory="x",
            ),
        )
        await reader

        counts = await storage.get_mock_exams_with_counts(OWNER)
        assert [e.question_count for e in counts] == [1]

    @pytest.mark.asyncio
    async def test_clear_cache(self, storage: Storage, store: MemoryDocumentStore) -> None:
        await storage.create_subject(OWNER, "Anatomy")
        await storage.get_subjects(OWNER)
        # The list plus one entry per subject id
        assert storage.cache_stats()["size"] == 2

        storage.clear_cache()
        reads = store.reads
        await storage.get_subjects(OWNER)

        assert store.reads == reads + 1
        assert storage.cache_stats()["locks"] == 0
