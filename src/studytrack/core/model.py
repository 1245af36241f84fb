"""Domain models for StudyTrack.

Documents are stored with snake_case field names; the HTTP surface serialises
the same models with camelCase aliases (``isLearned``, ``mockExamIds``, ...).
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class DomainModel(BaseModel):
    """Base model: camelCase aliases on the wire, field names accepted too."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_document(self) -> dict[str, object]:
        """JSON-compatible dict for the document store."""
        return self.model_dump(mode="json")


class QuestionType(str, Enum):
    """Why a question was recorded."""

    ERROR = "error"
    DOUBT = "doubt"


class MockExam(DomainModel):
    id: str
    title: str
    owner_id: str
    created_at: datetime


class MockExamWithQuestionCount(MockExam):
    question_count: int = 0


class Subject(DomainModel):
    id: str
    name: str
    owner_id: str
    created_at: datetime


class Topic(DomainModel):
    id: str
    name: str
    owner_id: str
    created_at: datetime


class Question(DomainModel):
    id: str
    subject_id: str
    topic_id: str
    type: QuestionType
    theory: str
    is_learned: bool = False
    failure_count: int = Field(default=0, ge=0)
    owner_id: str
    created_at: datetime


class QuestionMockExam(DomainModel):
    """One edge of the question <-> mock exam relation."""

    question_id: str
    mock_exam_id: str
    owner_id: str
    created_at: datetime

    @staticmethod
    def document_id(question_id: str, mock_exam_id: str) -> str:
        return f"{question_id}_{mock_exam_id}"


class QuestionWithRelations(Question):
    """A question joined with its mock exams, subject and topic."""

    mock_exam_ids: list[str] = Field(default_factory=list)
    mock_exams: list[MockExam] = Field(default_factory=list)
    subject: Subject | None = None
    topic: Topic | None = None


class TrashedQuestion(DomainModel):
    """Frozen copy of a deleted question.

    Names and titles are captured at deletion time so the entry stays readable
    after the referenced subject, topic or mock exams change or disappear.
    """

    id: str
    original_id: str
    subject_id: str
    subject_name: str
    topic_id: str
    topic_name: str
    mock_exam_ids: list[str] = Field(default_factory=list)
    mock_exam_titles: list[str] = Field(default_factory=list)
    type: QuestionType
    theory: str
    is_learned: bool = False
    failure_count: int = 0
    owner_id: str
    created_at: datetime
    deleted_at: datetime


class RestoreResult(DomainModel):
    question: QuestionWithRelations
    dropped_mock_exam_ids: list[str] = Field(default_factory=list)


# =============================================================================
# Statistics
# =============================================================================


class UserStats(DomainModel):
    completed_exams: int = 0
    learned_questions: int = 0
    total_questions: int = 0
    progress_percentage: int = 0


class TypeCount(DomainModel):
    type: str
    count: int


class SubjectBreakdown(DomainModel):
    subject: str
    total: int = 0
    learned: int = 0
    doubt: int = 0
    error: int = 0


class TopicBreakdown(DomainModel):
    topic: str
    total: int = 0
    learned: int = 0
    doubt: int = 0
    error: int = 0


class LearningProgressPoint(DomainModel):
    date: str
    learned: int
    total: int


class FailureBucket(DomainModel):
    range: str
    count: int


class WeekdayActivity(DomainModel):
    day: str
    questions: int


class TheoryCount(DomainModel):
    theory: str
    count: int


class DetailedStats(DomainModel):
    total_questions: int = 0
    learned_questions: int = 0
    doubt_questions: int = 0
    error_questions: int = 0
    progress_percentage: int = 0
    completed_exams: int = 0
    total_subjects: int = 0
    total_topics: int = 0
    average_failure_rate: float = 0.0
    questions_by_type: list[TypeCount] = Field(default_factory=list)
    questions_by_subject: list[SubjectBreakdown] = Field(default_factory=list)
    questions_by_topic: list[TopicBreakdown] = Field(default_factory=list)
    learning_progress: list[LearningProgressPoint] = Field(default_factory=list)
    failure_distribution: list[FailureBucket] = Field(default_factory=list)
    weekly_activity: list[WeekdayActivity] = Field(default_factory=list)
    theory_distribution: list[TheoryCount] = Field(default_factory=list)


# =============================================================================
# Write inputs
# =============================================================================


class QuestionDraft(DomainModel):
    """Fields a client supplies to create a question."""

    mock_exam_ids: list[str]
    subject_id: str
    topic_id: str
    type: QuestionType
    theory: str
    is_learned: bool = False
    failure_count: int = Field(default=0, ge=0)


class QuestionPatch(DomainModel):
    """Partial question update; unset fields are left unchanged."""

    mock_exam_ids: list[str] | None = None
    subject_id: str | None = None
    topic_id: str | None = None
    type: QuestionType | None = None
    theory: str | None = None
    is_learned: bool | None = None
    failure_count: int | None = Field(default=None, ge=0)

    def changes(self) -> dict[str, object]:
        """Set question fields in document form, relation ids excluded."""
        return self.model_dump(mode="json", exclude_none=True, exclude={"mock_exam_ids"})
