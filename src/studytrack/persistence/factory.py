"""Document store factory for StudyTrack."""

from __future__ import annotations

from studytrack.config import Settings, settings
from studytrack.persistence.documents import DocumentStore
from studytrack.persistence.memory import MemoryDocumentStore
from studytrack.persistence.sql import SqlDocumentStore


def create_document_store(config: Settings | None = None) -> DocumentStore:
    """Build the document store selected by ``STUDYTRACK_DOCUMENT_STORE``."""
    config = config or settings
    store_type = config.document_store.lower()
    if store_type == "memory":
        return MemoryDocumentStore()
    if store_type in {"sql", "postgres", "postgresql"}:
        return SqlDocumentStore()
    raise ValueError("Unsupported document_store. Supported values: memory, sql.")
