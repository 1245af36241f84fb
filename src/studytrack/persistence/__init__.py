"""Persistence layer for StudyTrack.

Provides:
- DocumentStore interface with in-memory and SQL backends
- RelationStore for question <-> mock exam edges
- Storage, the cache-aware entry point used by the API
"""

from studytrack.persistence.documents import (
    Collection,
    DocumentNotFoundError,
    DocumentStore,
    FieldFilter,
    WriteBatch,
    where,
    where_in,
)
from studytrack.persistence.factory import create_document_store
from studytrack.persistence.memory import MemoryDocumentStore
from studytrack.persistence.relations import RelationStore
from studytrack.persistence.sql import SqlDocumentStore
from studytrack.persistence.storage import Storage

__all__ = [
    "Collection",
    "DocumentNotFoundError",
    "DocumentStore",
    "FieldFilter",
    "WriteBatch",
    "where",
    "where_in",
    "create_document_store",
    "MemoryDocumentStore",
    "SqlDocumentStore",
    "RelationStore",
    "Storage",
]
