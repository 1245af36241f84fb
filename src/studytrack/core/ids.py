from __future__ import annotations

from datetime import UTC, datetime
from uuid import uuid4


def new_id() -> str:
    """Generate a document identifier (UUID4, 32 hex characters)."""
    return uuid4().hex


def utcnow() -> datetime:
    return datetime.now(UTC)
