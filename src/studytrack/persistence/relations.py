"""Question <-> mock exam relation documents.

Each edge is its own document, ``{question_id}_{mock_exam_id}``, in the
``question_mock_exams`` collection. Reads go through the cache; writes are
only ever staged into a caller's batch so that relation rows change in the
same commit as the question they belong to.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence
from datetime import datetime

from studytrack.cache import CacheNamespace, SingleFlight
from studytrack.core.ids import utcnow
from studytrack.core.model import QuestionMockExam
from studytrack.persistence.documents import Collection, DocumentStore, WriteBatch, where


class RelationStore:
    """Cached reads and batched writes of question/mock exam edges."""

    def __init__(self, store: DocumentStore, flight: SingleFlight) -> None:
        self.store = store
        self.flight = flight

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get_for_question(self, owner_id: str, question_id: str) -> list[str]:
        """Mock exam ids of one question, oldest link first."""

        async def fetch() -> list[str]:
            return [edge.mock_exam_id for edge in await self._edges(owner_id, question_id)]

        mock_exam_ids = await self.flight.get_or_fetch(
            CacheNamespace.RELATIONS, owner_id, fetch, extra=question_id
        )
        return list(mock_exam_ids)

    async def get_all(self, owner_id: str) -> dict[str, list[str]]:
        """Mock exam ids of every question of the owner, in one read."""

        async def fetch() -> dict[str, list[str]]:
            grouped: dict[str, list[str]] = {}
            for edge in await self._edges(owner_id):
                grouped.setdefault(edge.question_id, []).append(edge.mock_exam_id)
            return grouped

        grouped = await self.flight.get_or_fetch(CacheNamespace.ALL_RELATIONS, owner_id, fetch)
        return {question_id: list(ids) for question_id, ids in grouped.items()}

    async def count_by_mock_exam(self, owner_id: str) -> dict[str, int]:
        """Number of questions linked to each mock exam."""

        async def fetch() -> dict[str, int]:
            return dict(Counter(edge.mock_exam_id for edge in await self._edges(owner_id)))

        counts = await self.flight.get_or_fetch(CacheNamespace.QUESTION_COUNTS, owner_id, fetch)
        return dict(counts)

    async def load(self, owner_id: str, question_id: str | None = None) -> list[QuestionMockExam]:
        """Uncached edges, for write paths that must see committed state."""
        return await self._edges(owner_id, question_id)

    async def load_for_mock_exam(self, owner_id: str, mock_exam_id: str) -> list[QuestionMockExam]:
        docs = await self.store.query(
            Collection.QUESTION_MOCK_EXAMS,
            [where("owner_id", owner_id), where("mock_exam_id", mock_exam_id)],
        )
        return [QuestionMockExam.model_validate(doc) for doc in docs]

    async def _edges(self, owner_id: str, question_id: str | None = None) -> list[QuestionMockExam]:
        filters = [where("owner_id", owner_id)]
        if question_id is not None:
            filters.append(where("question_id", question_id))
        docs = await self.store.query(Collection.QUESTION_MOCK_EXAMS, filters)
        edges = [QuestionMockExam.model_validate(doc) for doc in docs]
        edges.sort(key=lambda edge: (edge.created_at, edge.mock_exam_id))
        return edges

    # -------------------------------------------------------------------------
    # Staged writes
    # -------------------------------------------------------------------------

    def stage_create(
        self,
        batch: WriteBatch,
        owner_id: str,
        question_id: str,
        mock_exam_ids: Iterable[str],
        created_at: datetime | None = None,
    ) -> None:
        """Add one edge per mock exam id to the batch."""
        created_at = created_at or utcnow()
        for mock_exam_id in mock_exam_ids:
            edge = QuestionMockExam(
                question_id=question_id,
                mock_exam_id=mock_exam_id,
                owner_id=owner_id,
                created_at=created_at,
            )
            batch.set(
                Collection.QUESTION_MOCK_EXAMS,
                QuestionMockExam.document_id(question_id, mock_exam_id),
                edge.to_document(),
            )

    async def stage_replace(
        self,
        batch: WriteBatch,
        owner_id: str,
        question_id: str,
        mock_exam_ids: Sequence[str],
    ) -> None:
        """Make the question's edges exactly ``mock_exam_ids``.

        Edges that stay keep their document; the rest are deleted or created
        within the same batch.
        """
        current = [edge.mock_exam_id for edge in await self.load(owner_id, question_id)]
        wanted = set(mock_exam_ids)
        for mock_exam_id in current:
            if mock_exam_id not in wanted:
                batch.delete(
                    Collection.QUESTION_MOCK_EXAMS,
                    QuestionMockExam.document_id(question_id, mock_exam_id),
                )
        self.stage_create(
            batch,
            owner_id,
            question_id,
            [mock_exam_id for mock_exam_id in mock_exam_ids if mock_exam_id not in current],
        )

    async def stage_delete_all(self, batch: WriteBatch, owner_id: str, question_id: str) -> list[str]:
        """Delete every edge of the question. Returns the unlinked mock exam ids."""
        removed = []
        for edge in await self.load(owner_id, question_id):
            batch.delete(
                Collection.QUESTION_MOCK_EXAMS,
                QuestionMockExam.document_id(question_id, edge.mock_exam_id),
            )
            removed.append(edge.mock_exam_id)
        return removed
