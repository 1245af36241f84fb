"""Domain model, filters, statistics and errors for StudyTrack."""

from studytrack.core.errors import (
    ConsistencyError,
    EntityInUseError,
    NotRestorableError,
    StudyTrackError,
    UnknownMockExamError,
    UnknownReferenceError,
    ValidationError,
)
from studytrack.core.filters import QuestionFilter
from studytrack.core.model import (
    DetailedStats,
    MockExam,
    MockExamWithQuestionCount,
    Question,
    QuestionDraft,
    QuestionMockExam,
    QuestionPatch,
    QuestionType,
    QuestionWithRelations,
    RestoreResult,
    Subject,
    Topic,
    TrashedQuestion,
    UserStats,
)

__all__ = [
    # Model
    "DetailedStats",
    "MockExam",
    "MockExamWithQuestionCount",
    "Question",
    "QuestionFilter",
    "QuestionDraft",
    "QuestionMockExam",
    "QuestionPatch",
    "QuestionType",
    "QuestionWithRelations",
    "RestoreResult",
    "Subject",
    "Topic",
    "TrashedQuestion",
    "UserStats",
    # Errors
    "ConsistencyError",
    "EntityInUseError",
    "NotRestorableError",
    "StudyTrackError",
    "UnknownMockExamError",
    "UnknownReferenceError",
    "ValidationError",
]
