"""Cache-aware storage for StudyTrack.

All reads go through the single-flight coordinator, so a warm cache serves
them without touching the document store and concurrent misses share one
query. All writes follow the same sequence:

1. Validate references against the document store, never the cache
2. Stage every document change into one write batch
3. Commit the batch
4. Invalidate the affected cache namespaces for the owner

Invalidation happens strictly after the commit; a read that races the write
either sees pre-write data from a fetch that will not be cached, or
post-write data.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import datetime
from typing import TypeVar

from studytrack.cache import (
    CacheInvalidator,
    CacheNamespace,
    EntityType,
    Operation,
    SingleFlight,
    TTLCache,
)
from studytrack.core.errors import (
    ConsistencyError,
    EntityInUseError,
    NotRestorableError,
    UnknownMockExamError,
    UnknownReferenceError,
    ValidationError,
)
from studytrack.core.filters import QuestionFilter
from studytrack.core.ids import new_id, utcnow
from studytrack.core.model import (
    DetailedStats,
    MockExam,
    MockExamWithQuestionCount,
    Question,
    QuestionDraft,
    QuestionMockExam,
    QuestionPatch,
    QuestionWithRelations,
    RestoreResult,
    Subject,
    Topic,
    TrashedQuestion,
    UserStats,
)
from studytrack.core.stats import compute_detailed_stats, compute_user_stats
from studytrack.persistence.documents import (
    Collection,
    Document,
    DocumentStore,
    WriteBatch,
    where,
)
from studytrack.persistence.relations import RelationStore

logger = logging.getLogger(__name__)

NamedT = TypeVar("NamedT", Subject, Topic)


class Storage:
    """Owner-scoped entity operations over a document store and a TTL cache."""

    def __init__(
        self,
        store: DocumentStore,
        cache: TTLCache | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.cache = cache if cache is not None else TTLCache()
        self.flight = SingleFlight(self.cache)
        self.invalidator = CacheInvalidator(self.cache)
        self.relations = RelationStore(store, self.flight)
        self._now = clock

    # =========================================================================
    # Mock exams
    # =========================================================================

    async def get_mock_exams(self, owner_id: str) -> list[MockExam]:
        """Owner's mock exams, newest first."""

        async def fetch() -> list[MockExam]:
            docs = await self._owned_docs(Collection.MOCK_EXAMS, owner_id)
            exams = [MockExam.model_validate(doc) for doc in docs]
            exams.sort(key=lambda exam: exam.created_at, reverse=True)
            return exams

        return list(await self.flight.get_or_fetch(CacheNamespace.MOCK_EXAMS, owner_id, fetch))

    async def get_mock_exams_with_counts(self, owner_id: str) -> list[MockExamWithQuestionCount]:
        exams = await self.get_mock_exams(owner_id)
        counts = await self.relations.count_by_mock_exam(owner_id)
        return [
            MockExamWithQuestionCount(**exam.model_dump(), question_count=counts.get(exam.id, 0))
            for exam in exams
        ]

    async def create_mock_exam(self, owner_id: str, title: str) -> MockExam:
        exam = MockExam(
            id=new_id(),
            title=_required_text(title, "title"),
            owner_id=owner_id,
            created_at=self._now(),
        )
        await self.store.set(Collection.MOCK_EXAMS, exam.id, exam.to_document())
        self.invalidator.invalidate(EntityType.MOCK_EXAM, Operation.CREATE, owner_id, exam.id)
        return exam

    async def update_mock_exam(self, owner_id: str, mock_exam_id: str, title: str) -> MockExam | None:
        doc = await self._owned_doc(Collection.MOCK_EXAMS, owner_id, mock_exam_id)
        if doc is None:
            return None
        doc["title"] = _required_text(title, "title")
        await self.store.update(Collection.MOCK_EXAMS, mock_exam_id, {"title": doc["title"]})
        self.invalidator.invalidate(EntityType.MOCK_EXAM, Operation.UPDATE, owner_id, mock_exam_id)
        return MockExam.model_validate(doc)

    async def delete_mock_exam(self, owner_id: str, mock_exam_id: str) -> bool:
        """Delete a mock exam and its relation rows.

        Questions that belonged only to this mock exam go to the trash in the
        same batch; questions that also belong to other mock exams just lose
        the link.
        """
        if await self._owned_doc(Collection.MOCK_EXAMS, owner_id, mock_exam_id) is None:
            return False

        batch = self.store.batch()
        trashed = 0
        for edge in await self.relations.load_for_mock_exam(owner_id, mock_exam_id):
            linked = [e.mock_exam_id for e in await self.relations.load(owner_id, edge.question_id)]
            if linked == [mock_exam_id]:
                trashed += await self._stage_trash(batch, owner_id, edge.question_id)
            else:
                batch.delete(
                    Collection.QUESTION_MOCK_EXAMS,
                    QuestionMockExam.document_id(edge.question_id, mock_exam_id),
                )
        batch.delete(Collection.MOCK_EXAMS, mock_exam_id)
        await batch.commit()

        self.invalidator.invalidate(EntityType.MOCK_EXAM, Operation.DELETE, owner_id, mock_exam_id)
        if trashed:
            logger.info(f"Moved {trashed} question(s) of deleted mock exam {mock_exam_id} to trash")
        return True

    # =========================================================================
    # Subjects and topics
    # =========================================================================

    async def get_subjects(self, owner_id: str) -> list[Subject]:
        return await self._list_named(Collection.SUBJECTS, CacheNamespace.SUBJECTS, Subject, owner_id)

    async def get_subject(self, owner_id: str, subject_id: str) -> Subject | None:
        return await self._get_named(
            Collection.SUBJECTS, CacheNamespace.SUBJECTS, Subject, owner_id, subject_id
        )

    async def create_subject(self, owner_id: str, name: str) -> Subject:
        """Create a subject, or return the owner's existing one with that name."""
        return await self._create_named(Collection.SUBJECTS, EntityType.SUBJECT, Subject, owner_id, name)

    async def update_subject(self, owner_id: str, subject_id: str, name: str) -> Subject | None:
        return await self._rename(
            Collection.SUBJECTS, EntityType.SUBJECT, Subject, owner_id, subject_id, name
        )

    async def delete_subject(self, owner_id: str, subject_id: str) -> bool:
        """Delete a subject no active question references.

        Raises:
            EntityInUseError: If questions still reference the subject
        """
        return await self._delete_named(
            Collection.SUBJECTS, EntityType.SUBJECT, "subject_id", owner_id, subject_id
        )

    async def get_topics(self, owner_id: str) -> list[Topic]:
        return await self._list_named(Collection.TOPICS, CacheNamespace.TOPICS, Topic, owner_id)

    async def get_topic(self, owner_id: str, topic_id: str) -> Topic | None:
        return await self._get_named(Collection.TOPICS, CacheNamespace.TOPICS, Topic, owner_id, topic_id)

    async def create_topic(self, owner_id: str, name: str) -> Topic:
        """Create a topic, or return the owner's existing one with that name."""
        return await self._create_named(Collection.TOPICS, EntityType.TOPIC, Topic, owner_id, name)

    async def update_topic(self, owner_id: str, topic_id: str, name: str) -> Topic | None:
        return await self._rename(Collection.TOPICS, EntityType.TOPIC, Topic, owner_id, topic_id, name)

    async def delete_topic(self, owner_id: str, topic_id: str) -> bool:
        return await self._delete_named(
            Collection.TOPICS, EntityType.TOPIC, "topic_id", owner_id, topic_id
        )

    async def _list_named(
        self,
        collection: Collection,
        namespace: CacheNamespace,
        model: type[NamedT],
        owner_id: str,
    ) -> list[NamedT]:
        async def fetch() -> list[NamedT]:
            generation = self.cache.generation(namespace, owner_id)
            docs = await self._owned_docs(collection, owner_id)
            items = [model.model_validate(doc) for doc in docs]
            items.sort(key=lambda item: item.name.casefold())
            # Also serve later single lookups, unless a write landed meanwhile
            if self.cache.generation(namespace, owner_id) == generation:
                self.cache.set_batch(namespace, owner_id, {item.id: item for item in items})
            return items

        return list(await self.flight.get_or_fetch(namespace, owner_id, fetch))

    async def _get_named(
        self,
        collection: Collection,
        namespace: CacheNamespace,
        model: type[NamedT],
        owner_id: str,
        entity_id: str,
    ) -> NamedT | None:
        async def fetch() -> NamedT | None:
            doc = await self._owned_doc(collection, owner_id, entity_id)
            return model.model_validate(doc) if doc is not None else None

        return await self.flight.get_or_fetch(namespace, owner_id, fetch, extra=entity_id)

    async def _find_by_name(
        self, collection: Collection, owner_id: str, name: str
    ) -> Document | None:
        wanted = name.casefold()
        for doc in await self._owned_docs(collection, owner_id):
            if str(doc.get("name", "")).casefold() == wanted:
                return doc
        return None

    async def _create_named(
        self,
        collection: Collection,
        entity: EntityType,
        model: type[NamedT],
        owner_id: str,
        name: str,
    ) -> NamedT:
        name = _required_text(name, "name")
        existing = await self._find_by_name(collection, owner_id, name)
        if existing is not None:
            return model.model_validate(existing)

        item = model(id=new_id(), name=name, owner_id=owner_id, created_at=self._now())
        await self.store.set(collection, item.id, item.to_document())
        self.invalidator.invalidate(entity, Operation.CREATE, owner_id, item.id)
        return item

    async def _rename(
        self,
        collection: Collection,
        entity: EntityType,
        model: type[NamedT],
        owner_id: str,
        entity_id: str,
        name: str,
    ) -> NamedT | None:
        doc = await self._owned_doc(collection, owner_id, entity_id)
        if doc is None:
            return None
        name = _required_text(name, "name")
        clash = await self._find_by_name(collection, owner_id, name)
        if clash is not None and clash["id"] != entity_id:
            raise ConsistencyError(f"{entity.value} named '{name}' already exists")

        await self.store.update(collection, entity_id, {"name": name})
        self.invalidator.invalidate(entity, Operation.UPDATE, owner_id, entity_id)
        return model.model_validate({**doc, "name": name})

    async def _delete_named(
        self,
        collection: Collection,
        entity: EntityType,
        reference_field: str,
        owner_id: str,
        entity_id: str,
    ) -> bool:
        if await self._owned_doc(collection, owner_id, entity_id) is None:
            return False
        references = await self.store.query(
            Collection.QUESTIONS, [where("owner_id", owner_id), where(reference_field, entity_id)]
        )
        if references:
            raise EntityInUseError(entity.value, entity_id, len(references))

        await self.store.delete(collection, entity_id)
        self.invalidator.invalidate(entity, Operation.DELETE, owner_id, entity_id)
        return True

    # =========================================================================
    # Questions
    # =========================================================================

    async def get_questions(
        self, owner_id: str, question_filter: QuestionFilter | None = None
    ) -> list[QuestionWithRelations]:
        """Hydrated questions matching the filter, newest first."""
        question_filter = question_filter or QuestionFilter()

        async def fetch() -> list[QuestionWithRelations]:
            docs = await self._owned_docs(Collection.QUESTIONS, owner_id)
            questions = [Question.model_validate(doc) for doc in docs]
            questions.sort(key=lambda question: question.created_at, reverse=True)
            relations = await self.relations.get_all(owner_id)
            hydrated = await self._hydrate(
                owner_id, [(q, relations.get(q.id, [])) for q in questions]
            )
            return question_filter.apply(hydrated)

        return list(
            await self.flight.get_or_fetch(
                CacheNamespace.QUESTIONS, owner_id, fetch, extra=question_filter.cache_extra()
            )
        )

    async def get_question(self, owner_id: str, question_id: str) -> QuestionWithRelations | None:
        async def fetch() -> QuestionWithRelations | None:
            doc = await self._owned_doc(Collection.QUESTIONS, owner_id, question_id)
            if doc is None:
                return None
            mock_exam_ids = await self.relations.get_for_question(owner_id, question_id)
            hydrated = await self._hydrate(
                owner_id, [(Question.model_validate(doc), mock_exam_ids)]
            )
            return hydrated[0]

        return await self.flight.get_or_fetch(
            CacheNamespace.QUESTION, owner_id, fetch, extra=question_id
        )

    async def create_question(self, owner_id: str, draft: QuestionDraft) -> QuestionWithRelations:
        """Create a question linked to one or more mock exams.

        Raises:
            ValidationError: If no mock exam is given
            UnknownMockExamError: If a mock exam is not the owner's
            UnknownReferenceError: If the subject or topic is not the owner's
        """
        mock_exam_ids = _unique(draft.mock_exam_ids)
        if not mock_exam_ids:
            raise ValidationError("A question must belong to at least one mock exam")
        await self._require_mock_exams(owner_id, mock_exam_ids)
        await self._require_owned(Collection.SUBJECTS, "subject", owner_id, draft.subject_id)
        await self._require_owned(Collection.TOPICS, "topic", owner_id, draft.topic_id)

        question = Question(
            id=new_id(),
            owner_id=owner_id,
            created_at=self._now(),
            **draft.model_dump(exclude={"mock_exam_ids"}),
        )
        batch = self.store.batch()
        batch.set(Collection.QUESTIONS, question.id, question.to_document())
        self.relations.stage_create(
            batch, owner_id, question.id, mock_exam_ids, created_at=question.created_at
        )
        await batch.commit()

        self.invalidator.invalidate(EntityType.QUESTION, Operation.CREATE, owner_id, question.id)
        return await self._require_question(owner_id, question.id)

    async def update_question(
        self, owner_id: str, question_id: str, patch: QuestionPatch
    ) -> QuestionWithRelations | None:
        doc = await self._owned_doc(Collection.QUESTIONS, owner_id, question_id)
        if doc is None:
            return None

        if patch.subject_id is not None:
            await self._require_owned(Collection.SUBJECTS, "subject", owner_id, patch.subject_id)
        if patch.topic_id is not None:
            await self._require_owned(Collection.TOPICS, "topic", owner_id, patch.topic_id)

        batch = self.store.batch()
        if patch.mock_exam_ids is not None:
            mock_exam_ids = _unique(patch.mock_exam_ids)
            if not mock_exam_ids:
                raise ValidationError("A question must belong to at least one mock exam")
            await self._require_mock_exams(owner_id, mock_exam_ids)
            await self.relations.stage_replace(batch, owner_id, question_id, mock_exam_ids)

        changes = patch.changes()
        if changes:
            batch.update(Collection.QUESTIONS, question_id, changes)
        if len(batch):
            await batch.commit()
            self.invalidator.invalidate(EntityType.QUESTION, Operation.UPDATE, owner_id, question_id)
        return await self.get_question(owner_id, question_id)

    async def set_learned(
        self, owner_id: str, question_id: str, is_learned: bool
    ) -> QuestionWithRelations | None:
        return await self.update_question(owner_id, question_id, QuestionPatch(is_learned=is_learned))

    async def update_failure_count(
        self,
        owner_id: str,
        question_id: str,
        value: int | None = None,
        change: int | None = None,
    ) -> QuestionWithRelations | None:
        """Set the failure count, or shift it by ``change``; never below zero."""
        if value is None and change is None:
            raise ValidationError("Either a failure count or a change is required")
        doc = await self._owned_doc(Collection.QUESTIONS, owner_id, question_id)
        if doc is None:
            return None
        target = value if value is not None else int(doc.get("failure_count", 0)) + (change or 0)
        patch = QuestionPatch(failure_count=max(0, target))
        return await self.update_question(owner_id, question_id, patch)

    async def _require_question(self, owner_id: str, question_id: str) -> QuestionWithRelations:
        question = await self.get_question(owner_id, question_id)
        if question is None:
            raise LookupError(f"Question {question_id} vanished after commit")
        return question

    async def _hydrate(
        self, owner_id: str, rows: Sequence[tuple[Question, list[str]]]
    ) -> list[QuestionWithRelations]:
        exams = {exam.id: exam for exam in await self.get_mock_exams(owner_id)}
        subjects = {subject.id: subject for subject in await self.get_subjects(owner_id)}
        topics = {topic.id: topic for topic in await self.get_topics(owner_id)}

        hydrated = []
        for question, mock_exam_ids in rows:
            hydrated.append(
                QuestionWithRelations(
                    **question.model_dump(),
                    mock_exam_ids=list(mock_exam_ids),
                    mock_exams=[exams[i] for i in mock_exam_ids if i in exams],
                    subject=subjects.get(question.subject_id),
                    topic=topics.get(question.topic_id),
                )
            )
        return hydrated

    # =========================================================================
    # Trash
    # =========================================================================

    async def get_trashed_questions(self, owner_id: str) -> list[TrashedQuestion]:
        """Owner's trash, most recently deleted first."""

        async def fetch() -> list[TrashedQuestion]:
            docs = await self._owned_docs(Collection.TRASHED_QUESTIONS, owner_id)
            trashed = [TrashedQuestion.model_validate(doc) for doc in docs]
            trashed.sort(key=lambda item: item.deleted_at, reverse=True)
            return trashed

        return list(await self.flight.get_or_fetch(CacheNamespace.TRASH, owner_id, fetch))

    async def delete_question(self, owner_id: str, question_id: str) -> bool:
        """Move a question to the trash. Returns False if it does not exist."""
        batch = self.store.batch()
        if not await self._stage_trash(batch, owner_id, question_id):
            return False
        await batch.commit()
        self.invalidator.invalidate(EntityType.QUESTION, Operation.DELETE, owner_id, question_id)
        return True

    async def restore_question(
        self, owner_id: str, trashed_id: str, partial: bool = False
    ) -> RestoreResult | None:
        """Recreate a trashed question under a new id.

        The question keeps its original creation time. Every referenced mock
        exam, the subject and the topic must still exist; with ``partial``
        the vanished mock exams are dropped instead, as long as one remains.

        Raises:
            NotRestorableError: If a reference no longer exists
        """
        doc = await self._owned_doc(Collection.TRASHED_QUESTIONS, owner_id, trashed_id)
        if doc is None:
            return None
        trashed = TrashedQuestion.model_validate(doc)

        missing = []
        if await self._owned_doc(Collection.SUBJECTS, owner_id, trashed.subject_id) is None:
            missing.append(f"subject '{trashed.subject_name}'")
        if await self._owned_doc(Collection.TOPICS, owner_id, trashed.topic_id) is None:
            missing.append(f"topic '{trashed.topic_name}'")
        if missing:
            raise NotRestorableError(trashed_id, f"{' and '.join(missing)} no longer exist")

        existing = await self._existing_ids(Collection.MOCK_EXAMS, owner_id, trashed.mock_exam_ids)
        kept = [i for i in trashed.mock_exam_ids if i in existing]
        dropped = [i for i in trashed.mock_exam_ids if i not in existing]
        if dropped and not partial:
            raise NotRestorableError(
                trashed_id, f"mock exams no longer exist: {', '.join(dropped)}"
            )
        if not kept:
            raise NotRestorableError(trashed_id, "none of its mock exams exist any more")

        question = Question(
            id=new_id(),
            subject_id=trashed.subject_id,
            topic_id=trashed.topic_id,
            type=trashed.type,
            theory=trashed.theory,
            is_learned=trashed.is_learned,
            failure_count=trashed.failure_count,
            owner_id=owner_id,
            created_at=trashed.created_at,
        )
        batch = self.store.batch()
        batch.set(Collection.QUESTIONS, question.id, question.to_document())
        self.relations.stage_create(batch, owner_id, question.id, kept, created_at=self._now())
        batch.delete(Collection.TRASHED_QUESTIONS, trashed_id)
        await batch.commit()

        self.invalidator.invalidate(EntityType.QUESTION, Operation.CREATE, owner_id, question.id)
        self.invalidator.invalidate(
            EntityType.TRASHED_QUESTION, Operation.DELETE, owner_id, trashed_id
        )
        logger.info(f"Restored trashed question {trashed_id} as {question.id}")
        return RestoreResult(
            question=await self._require_question(owner_id, question.id),
            dropped_mock_exam_ids=dropped,
        )

    async def purge_trashed(self, owner_id: str, trashed_id: str) -> bool:
        """Permanently delete one trash entry. Returns False if already gone."""
        if await self._owned_doc(Collection.TRASHED_QUESTIONS, owner_id, trashed_id) is None:
            return False
        await self.store.delete(Collection.TRASHED_QUESTIONS, trashed_id)
        self.invalidator.invalidate(
            EntityType.TRASHED_QUESTION, Operation.DELETE, owner_id, trashed_id
        )
        return True

    async def empty_trash(self, owner_id: str) -> int:
        """Permanently delete all of the owner's trash. Returns the number removed."""
        docs = await self._owned_docs(Collection.TRASHED_QUESTIONS, owner_id)
        if not docs:
            return 0
        batch = self.store.batch()
        for doc in docs:
            batch.delete(Collection.TRASHED_QUESTIONS, doc["id"])
        await batch.commit()
        self.invalidator.invalidate(EntityType.TRASHED_QUESTION, Operation.DELETE, owner_id)
        return len(docs)

    async def _stage_trash(self, batch: WriteBatch, owner_id: str, question_id: str) -> int:
        """Stage the active -> trashed transition. Returns 0 if the question is gone."""
        doc = await self._owned_doc(Collection.QUESTIONS, owner_id, question_id)
        if doc is None:
            return 0
        question = Question.model_validate(doc)
        mock_exam_ids = await self.relations.stage_delete_all(batch, owner_id, question_id)

        subject = await self._owned_doc(Collection.SUBJECTS, owner_id, question.subject_id)
        topic = await self._owned_doc(Collection.TOPICS, owner_id, question.topic_id)
        titles = []
        for mock_exam_id in mock_exam_ids:
            exam = await self._owned_doc(Collection.MOCK_EXAMS, owner_id, mock_exam_id)
            titles.append(exam["title"] if exam is not None else "")

        # Keyed on the question id so concurrent deletes converge on one entry
        trashed = TrashedQuestion(
            id=question.id,
            original_id=question.id,
            subject_id=question.subject_id,
            subject_name=subject["name"] if subject is not None else "",
            topic_id=question.topic_id,
            topic_name=topic["name"] if topic is not None else "",
            mock_exam_ids=mock_exam_ids,
            mock_exam_titles=titles,
            type=question.type,
            theory=question.theory,
            is_learned=question.is_learned,
            failure_count=question.failure_count,
            owner_id=owner_id,
            created_at=question.created_at,
            deleted_at=self._now(),
        )
        batch.set(Collection.TRASHED_QUESTIONS, trashed.id, trashed.to_document())
        batch.delete(Collection.QUESTIONS, question_id)
        return 1

    # =========================================================================
    # Statistics
    # =========================================================================

    async def get_user_stats(self, owner_id: str) -> UserStats:
        async def fetch() -> UserStats:
            return compute_user_stats(
                await self.get_mock_exams(owner_id), await self._load_questions(owner_id)
            )

        return await self.flight.get_or_fetch(CacheNamespace.USER_STATS, owner_id, fetch)

    async def get_detailed_stats(self, owner_id: str) -> DetailedStats:
        async def fetch() -> DetailedStats:
            return compute_detailed_stats(
                await self.get_mock_exams(owner_id),
                await self.get_subjects(owner_id),
                await self.get_topics(owner_id),
                await self._load_questions(owner_id),
                now=self._now(),
            )

        return await self.flight.get_or_fetch(CacheNamespace.DETAILED_STATS, owner_id, fetch)

    async def _load_questions(self, owner_id: str) -> list[Question]:
        docs = await self._owned_docs(Collection.QUESTIONS, owner_id)
        return [Question.model_validate(doc) for doc in docs]

    # =========================================================================
    # Cache operations
    # =========================================================================

    def cache_stats(self) -> dict[str, int]:
        return self.flight.get_stats().to_dict()

    def clear_cache(self) -> None:
        self.cache.clear()
        logger.info("Cache cleared")

    # =========================================================================
    # Document store helpers
    # =========================================================================

    async def _owned_doc(self, collection: Collection, owner_id: str, doc_id: str) -> Document | None:
        doc = await self.store.get(collection, doc_id)
        if doc is None or doc.get("owner_id") != owner_id:
            return None
        return doc

    async def _owned_docs(self, collection: Collection, owner_id: str) -> list[Document]:
        return await self.store.query(collection, [where("owner_id", owner_id)])

    async def _existing_ids(
        self, collection: Collection, owner_id: str, ids: Sequence[str]
    ) -> set[str]:
        return {i for i in ids if await self._owned_doc(collection, owner_id, i) is not None}

    async def _require_mock_exams(self, owner_id: str, mock_exam_ids: Sequence[str]) -> None:
        existing = await self._existing_ids(Collection.MOCK_EXAMS, owner_id, mock_exam_ids)
        unknown = [i for i in mock_exam_ids if i not in existing]
        if unknown:
            raise UnknownMockExamError(unknown)

    async def _require_owned(
        self, collection: Collection, entity: str, owner_id: str, entity_id: str
    ) -> None:
        if await self._owned_doc(collection, owner_id, entity_id) is None:
            raise UnknownReferenceError(entity, [entity_id])


def _required_text(value: str, field: str) -> str:
    value = value.strip()
    if not value:
        raise ValidationError(f"{field} must not be empty")
    return value


def _unique(values: Sequence[str]) -> list[str]:
    return list(dict.fromkeys(values))
