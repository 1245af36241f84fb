"""SQL document store.

Stores documents in the single ``documents`` table via SQLAlchemy asyncio.
Collection and owner filters run in SQL; any other filter, the ordering and
the limit are applied in Python on the owner's documents, which keeps the
backend portable between PostgreSQL and SQLite.

A write batch is one transaction.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy import delete, select, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from studytrack.persistence.documents import (
    BatchOperation,
    Document,
    DocumentNotFoundError,
    DocumentStore,
    FieldFilter,
    WriteBatch,
    select_documents,
)
from studytrack.persistence.tables import DocumentTable

logger = logging.getLogger(__name__)


async def _apply_operation(session: AsyncSession, op: BatchOperation) -> None:
    row = await session.get(DocumentTable, (op.collection, op.doc_id))

    if op.kind == "delete":
        if row is not None:
            await session.delete(row)
            await session.flush()
        return

    data = dict(op.data or {})

    if op.kind == "update":
        if row is None:
            raise DocumentNotFoundError(op.collection, op.doc_id)
        # Assign a new dict so the JSON column is flagged dirty
        row.data = {**row.data, **data}
        row.owner_id = row.data.get("owner_id")
    elif row is None:
        session.add(
            DocumentTable(
                collection=op.collection,
                id=op.doc_id,
                owner_id=data.get("owner_id"),
                data=data,
            )
        )
    else:
        row.data = data
        row.owner_id = data.get("owner_id")
    await session.flush()


class SqlWriteBatch(WriteBatch):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        super().__init__()
        self._session_factory = session_factory

    async def _apply(self, operations: Sequence[BatchOperation]) -> None:
        async with self._session_factory() as session, session.begin():
            for op in operations:
                await _apply_operation(session, op)
        logger.debug(f"Committed batch of {len(operations)} operations")


class SqlDocumentStore(DocumentStore):
    """Document store on a relational database."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None) -> None:
        if session_factory is None:
            from studytrack.persistence.db import get_session_factory

            session_factory = get_session_factory()
        self._session_factory = session_factory

    async def get(self, collection: str, doc_id: str) -> Document | None:
        async with self._session_factory() as session:
            row = await session.get(DocumentTable, (str(collection), doc_id))
            return dict(row.data) if row is not None else None

    async def set(self, collection: str, doc_id: str, data: Document) -> None:
        await self.batch().set(collection, doc_id, data).commit()

    async def update(self, collection: str, doc_id: str, fields: Document) -> None:
        await self.batch().update(collection, doc_id, fields).commit()

    async def delete(self, collection: str, doc_id: str) -> bool:
        async with self._session_factory() as session, session.begin():
            result = await session.execute(
                delete(DocumentTable).where(
                    DocumentTable.collection == str(collection), DocumentTable.id == doc_id
                )
            )
            return bool(result.rowcount)

    async def query(
        self,
        collection: str,
        filters: Sequence[FieldFilter] = (),
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Document]:
        stmt = select(DocumentTable.data).where(DocumentTable.collection == str(collection))
        remaining: list[FieldFilter] = []
        for field_filter in filters:
            if field_filter.field == "owner_id" and field_filter.op == "==":
                stmt = stmt.where(DocumentTable.owner_id == field_filter.value)
            else:
                remaining.append(field_filter)

        async with self._session_factory() as session:
            result = await session.execute(stmt)
            docs = [dict(data) for data in result.scalars()]
        return select_documents(docs, remaining, order_by, descending, limit)

    def batch(self) -> SqlWriteBatch:
        return SqlWriteBatch(self._session_factory)

    async def health_check(self) -> bool:
        try:
            async with self._session_factory() as session:
                await session.execute(text("SELECT 1"))
            return True
        except Exception:
            logger.warning("Document store health check failed", exc_info=True)
            return False

    async def close(self) -> None:
        from studytrack.persistence.db import close_db

        await close_db()
