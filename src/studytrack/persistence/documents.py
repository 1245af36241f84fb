"""Document store interface.

StudyTrack keeps every entity as a JSON document in a named collection.
Backends implement single-document reads and writes, simple equality
queries, and write batches that commit all-or-nothing.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Literal

Document = dict[str, Any]


class Collection(StrEnum):
    """Named document collections."""

    MOCK_EXAMS = "mock_exams"
    SUBJECTS = "subjects"
    TOPICS = "topics"
    QUESTIONS = "questions"
    QUESTION_MOCK_EXAMS = "question_mock_exams"
    TRASHED_QUESTIONS = "trashed_questions"


class DocumentNotFoundError(LookupError):
    """Update of a document that does not exist."""

    def __init__(self, collection: str, doc_id: str):
        self.collection = collection
        self.doc_id = doc_id
        super().__init__(f"{collection}/{doc_id} not found")


@dataclass(frozen=True)
class FieldFilter:
    """Equality or membership condition on a top-level document field."""

    field: str
    op: Literal["==", "in"]
    value: Any

    def matches(self, doc: Document) -> bool:
        actual = doc.get(self.field)
        if self.op == "in":
            return actual in self.value
        return actual == self.value


def where(field: str, value: Any) -> FieldFilter:
    return FieldFilter(field, "==", value)


def where_in(field: str, values: Iterable[Any]) -> FieldFilter:
    return FieldFilter(field, "in", tuple(values))


def _sort_key(value: Any) -> tuple[bool, Any]:
    return (value is not None, value if value is not None else "")


def select_documents(
    docs: Iterable[Document],
    filters: Sequence[FieldFilter] = (),
    order_by: str | None = None,
    descending: bool = False,
    limit: int | None = None,
) -> list[Document]:
    """Apply filters, ordering and limit in Python."""
    selected = [doc for doc in docs if all(f.matches(doc) for f in filters)]
    if order_by is not None:
        # Documents missing the field sort first
        selected.sort(key=lambda doc: _sort_key(doc.get(order_by)), reverse=descending)
    if limit is not None:
        selected = selected[:limit]
    return selected


@dataclass(frozen=True)
class BatchOperation:
    kind: Literal["set", "update", "delete"]
    collection: str
    doc_id: str
    data: Document | None = None


class WriteBatch(ABC):
    """Ordered list of writes applied atomically by ``commit()``."""

    def __init__(self) -> None:
        self._operations: list[BatchOperation] = []
        self._committed = False

    def __len__(self) -> int:
        return len(self._operations)

    @property
    def operations(self) -> list[BatchOperation]:
        return list(self._operations)

    def set(self, collection: str, doc_id: str, data: Document) -> WriteBatch:
        self._operations.append(BatchOperation("set", str(collection), doc_id, dict(data)))
        return self

    def update(self, collection: str, doc_id: str, fields: Document) -> WriteBatch:
        self._operations.append(BatchOperation("update", str(collection), doc_id, dict(fields)))
        return self

    def delete(self, collection: str, doc_id: str) -> WriteBatch:
        self._operations.append(BatchOperation("delete", str(collection), doc_id))
        return self

    async def commit(self) -> None:
        """Apply every staged write, or none of them if any fails."""
        if self._committed:
            raise RuntimeError("Batch already committed")
        await self._apply(self._operations)
        self._committed = True

    @abstractmethod
    async def _apply(self, operations: Sequence[BatchOperation]) -> None:
        ...


class DocumentStore(ABC):
    """Abstract base class for document store backends."""

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Document | None:
        """Return a copy of the document, or None if it does not exist."""
        ...

    @abstractmethod
    async def set(self, collection: str, doc_id: str, data: Document) -> None:
        """Create or replace a document."""
        ...

    @abstractmethod
    async def update(self, collection: str, doc_id: str, fields: Document) -> None:
        """Merge top-level fields into an existing document.

        Raises:
            DocumentNotFoundError: If the document does not exist
        """
        ...

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> bool:
        """Delete a document. Returns False if it did not exist."""
        ...

    @abstractmethod
    async def query(
        self,
        collection: str,
        filters: Sequence[FieldFilter] = (),
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Document]:
        """Return copies of the documents matching every filter."""
        ...

    @abstractmethod
    def batch(self) -> WriteBatch:
        """Start a new write batch."""
        ...

    async def health_check(self) -> bool:
        """Whether the backend can serve requests."""
        return True

    async def close(self) -> None:
        """Release backend resources."""
        return None
