"""Domain errors raised by the storage layer.

The API layer translates these into HTTP responses; see
``studytrack.api.errors``.
"""

from __future__ import annotations

from collections.abc import Iterable


class StudyTrackError(Exception):
    """Base class for domain errors."""


class ValidationError(StudyTrackError):
    """Input that can never be stored, such as a question without mock exams."""


class ConsistencyError(StudyTrackError):
    """A write rejected because it would break a cross-entity invariant."""

    code = "Conflict"


class EntityInUseError(ConsistencyError):
    """Deleting a subject or topic that active questions still reference."""

    code = "EntityInUse"

    def __init__(self, entity: str, entity_id: str, references: int):
        self.entity = entity
        self.entity_id = entity_id
        self.references = references
        super().__init__(
            f"{entity} '{entity_id}' is referenced by {references} question(s)"
        )


class UnknownReferenceError(ConsistencyError):
    """A write referencing entities the owner does not have."""

    code = "UnknownReference"

    def __init__(self, entity: str, ids: Iterable[str]):
        self.entity = entity
        self.ids = sorted(ids)
        super().__init__(f"Unknown {entity}: {', '.join(self.ids)}")


class UnknownMockExamError(UnknownReferenceError):
    code = "UnknownMockExam"

    def __init__(self, ids: Iterable[str]):
        super().__init__("mock exam", ids)


class NotRestorableError(ConsistencyError):
    """Restoring a trashed question whose references no longer exist."""

    code = "NotRestorable"

    def __init__(self, trashed_id: str, reason: str):
        self.trashed_id = trashed_id
        self.reason = reason
        super().__init__(f"Trashed question '{trashed_id}' cannot be restored: {reason}")
