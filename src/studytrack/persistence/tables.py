"""SQLAlchemy ORM model for the SQL document store.

Every collection shares one table. A document is addressed by
(collection, id); its JSON body lives in ``data`` (JSONB on PostgreSQL) and
``owner_id`` is copied out of the body so owner-scoped queries use an index.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Index, String, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class DocumentTable(Base):
    __tablename__ = "documents"

    collection: Mapped[str] = mapped_column(String(64), primary_key=True)
    id: Mapped[str] = mapped_column(String(128), primary_key=True)

    # Owner extracted from data for owner-scoped queries
    owner_id: Mapped[str | None] = mapped_column(String(256), nullable=True)

    data: Mapped[dict[str, Any]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"), nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    __table_args__ = (Index("idx_documents_collection_owner", "collection", "owner_id"),)
