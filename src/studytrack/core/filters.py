"""Question list filter.

Each list-valued criterion distinguishes "not set" (``None``, no filtering)
from "set to nothing" (``[]``, which matches no question).
"""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import Field

from studytrack.cache.keys import CacheKeys
from studytrack.core.model import DomainModel, QuestionType, QuestionWithRelations


class QuestionFilter(DomainModel):
    mock_exam_ids: list[str] | None = None
    subject_ids: list[str] | None = None
    topic_ids: list[str] | None = None
    types: list[QuestionType] | None = None
    learning_status: list[bool] | None = None
    keywords: str | None = None
    failure_count_exact: int | None = Field(default=None, ge=0)
    failure_count_min: int | None = Field(default=None, ge=0)
    failure_count_max: int | None = Field(default=None, ge=0)

    @property
    def is_empty(self) -> bool:
        """True when no criterion is set."""
        return not self.model_dump(exclude_none=True)

    def cache_extra(self) -> str:
        """Canonical cache discriminator; equal filters give equal strings."""
        if self.is_empty:
            return "all"
        params: dict[str, object] = {}
        for name, value in self.model_dump(mode="json", exclude_none=True).items():
            params[name] = sorted(value) if isinstance(value, list) else value
        return CacheKeys.params(params)

    def matches(self, question: QuestionWithRelations) -> bool:
        if self.mock_exam_ids is not None and not _intersects(
            question.mock_exam_ids, self.mock_exam_ids
        ):
            return False
        if self.subject_ids is not None and question.subject_id not in self.subject_ids:
            return False
        if self.topic_ids is not None and question.topic_id not in self.topic_ids:
            return False
        if self.types is not None and question.type not in self.types:
            return False
        if self.learning_status is not None and question.is_learned not in self.learning_status:
            return False
        if self.keywords:
            if self.keywords.strip().lower() not in question.theory.lower():
                return False
        if (
            self.failure_count_exact is not None
            and question.failure_count != self.failure_count_exact
        ):
            return False
        if self.failure_count_min is not None and question.failure_count < self.failure_count_min:
            return False
        if self.failure_count_max is not None and question.failure_count > self.failure_count_max:
            return False
        return True

    def apply(self, questions: Iterable[QuestionWithRelations]) -> list[QuestionWithRelations]:
        return [question for question in questions if self.matches(question)]


def _intersects(values: Iterable[str], wanted: Iterable[str]) -> bool:
    return not set(values).isdisjoint(wanted)
