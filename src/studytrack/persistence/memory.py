"""In-memory document store.

Used in development and tests. Documents are deep-copied on the way in and
out so callers can never mutate stored state by accident.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from collections.abc import Sequence

from studytrack.persistence.documents import (
    BatchOperation,
    Document,
    DocumentNotFoundError,
    DocumentStore,
    FieldFilter,
    WriteBatch,
    select_documents,
)

logger = logging.getLogger(__name__)

Collections = dict[str, dict[str, Document]]


def _apply_operations(collections: Collections, operations: Sequence[BatchOperation]) -> None:
    for op in operations:
        docs = collections.setdefault(op.collection, {})
        if op.kind == "set":
            docs[op.doc_id] = copy.deepcopy(op.data or {})
        elif op.kind == "update":
            if op.doc_id not in docs:
                raise DocumentNotFoundError(op.collection, op.doc_id)
            docs[op.doc_id].update(copy.deepcopy(op.data or {}))
        else:
            docs.pop(op.doc_id, None)


class MemoryWriteBatch(WriteBatch):
    def __init__(self, store: MemoryDocumentStore) -> None:
        super().__init__()
        self._store = store

    async def _apply(self, operations: Sequence[BatchOperation]) -> None:
        await self._store._pause()
        # Apply to a scratch copy, then swap, so a failing operation leaves nothing behind
        staged = copy.deepcopy(self._store._collections)
        _apply_operations(staged, operations)
        self._store._collections = staged
        self._store.commits += 1


class MemoryDocumentStore(DocumentStore):
    """Dict-backed document store.

    ``latency`` adds an ``asyncio.sleep`` before every operation so tests can
    interleave coroutines; ``reads`` counts get/query calls.
    """

    def __init__(self, latency: float = 0.0) -> None:
        self._collections: Collections = {}
        self.latency = latency
        self.reads = 0
        self.commits = 0

    async def _pause(self) -> None:
        if self.latency:
            await asyncio.sleep(self.latency)

    async def get(self, collection: str, doc_id: str) -> Document | None:
        self.reads += 1
        await self._pause()
        doc = self._collections.get(str(collection), {}).get(doc_id)
        return copy.deepcopy(doc) if doc is not None else None

    async def set(self, collection: str, doc_id: str, data: Document) -> None:
        await self.batch().set(collection, doc_id, data).commit()

    async def update(self, collection: str, doc_id: str, fields: Document) -> None:
        await self.batch().update(collection, doc_id, fields).commit()

    async def delete(self, collection: str, doc_id: str) -> bool:
        existed = doc_id in self._collections.get(str(collection), {})
        await self.batch().delete(collection, doc_id).commit()
        return existed

    async def query(
        self,
        collection: str,
        filters: Sequence[FieldFilter] = (),
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Document]:
        self.reads += 1
        await self._pause()
        docs = self._collections.get(str(collection), {}).values()
        return copy.deepcopy(select_documents(docs, filters, order_by, descending, limit))

    def batch(self) -> MemoryWriteBatch:
        return MemoryWriteBatch(self)

    def count(self, collection: str) -> int:
        return len(self._collections.get(str(collection), {}))

    def clear(self) -> None:
        self._collections.clear()
