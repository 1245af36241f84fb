"""Tests for the question list filter."""

from __future__ import annotations

from datetime import UTC, datetime

from studytrack.core.filters import QuestionFilter
from studytrack.core.model import QuestionType, QuestionWithRelations

NOW = datetime(2026, 10, 12, 9, 0, tzinfo=UTC)


def make_question(**overrides: object) -> QuestionWithRelations:
    fields: dict[str, object] = {
        "id": "q1",
        "subject_id": "s1",
        "topic_id": "t1",
        "type": QuestionType.ERROR,
        "theory": "The Femur is the longest bone",
        "is_learned": False,
        "failure_count": 2,
        "owner_id": "u1",
        "created_at": NOW,
        "mock_exam_ids": ["m1", "m2"],
    }
    fields.update(overrides)
    return QuestionWithRelations.model_validate(fields)


class TestQuestionFilter:
    """Matching rules."""

    def test_empty_filter_matches_everything(self) -> None:
        question_filter = QuestionFilter()
        assert question_filter.is_empty
        assert question_filter.matches(make_question())

    def test_mock_exams_match_any(self) -> None:
        assert QuestionFilter(mock_exam_ids=["m2", "m9"]).matches(make_question())
        assert not QuestionFilter(mock_exam_ids=["m9"]).matches(make_question())

    def test_empty_list_matches_nothing(self) -> None:
        """An explicitly empty selection is not the same as no selection."""
        question_filter = QuestionFilter(types=[])
        assert not question_filter.is_empty
        assert not question_filter.matches(make_question())

    def test_subject_topic_and_type(self) -> None:
        question = make_question(type=QuestionType.DOUBT)
        assert QuestionFilter(subject_ids=["s1"], topic_ids=["t1"], types=["doubt"]).matches(
            question
        )
        assert not QuestionFilter(topic_ids=["t2"]).matches(question)

    def test_learning_status(self) -> None:
        learned = make_question(is_learned=True)
        assert QuestionFilter(learning_status=[True]).matches(learned)
        assert not QuestionFilter(learning_status=[False]).matches(learned)
        assert QuestionFilter(learning_status=[True, False]).matches(make_question())

    def test_keywords_are_case_insensitive(self) -> None:
        assert QuestionFilter(keywords="  femur ").matches(make_question())
        assert not QuestionFilter(keywords="tibia").matches(make_question())

    def test_failure_count_bounds(self) -> None:
        question = make_question(failure_count=2)
        assert QuestionFilter(failure_count_exact=2).matches(question)
        assert not QuestionFilter(failure_count_exact=3).matches(question)
        assert QuestionFilter(failure_count_min=1, failure_count_max=2).matches(question)
        assert not QuestionFilter(failure_count_min=3).matches(question)
        assert not QuestionFilter(failure_count_max=1).matches(question)

    def test_apply_keeps_order(self) -> None:
        questions = [
            make_question(id="a", is_learned=True),
            make_question(id="b"),
            make_question(id="c", is_learned=True),
        ]
        selected = QuestionFilter(learning_status=[True]).apply(questions)
        assert [q.id for q in selected] == ["a", "c"]

    def test_accepts_camel_case(self) -> None:
        question_filter = QuestionFilter.model_validate(
            {"mockExamIds": ["m1"], "failureCountMin": 1}
        )
        assert question_filter.mock_exam_ids == ["m1"]
        assert question_filter.failure_count_min == 1


class TestCacheExtra:
    """Cache discriminators."""

    def test_empty_filter(self) -> None:
        assert QuestionFilter().cache_extra() == "all"

    def test_order_does_not_matter(self) -> None:
        first = QuestionFilter(subject_ids=["b", "a"], types=["error", "doubt"])
        second = QuestionFilter(types=["doubt", "error"], subject_ids=["a", "b"])
        assert first.cache_extra() == second.cache_extra()

    def test_different_filters_differ(self) -> None:
        assert (
            QuestionFilter(subject_ids=["a"]).cache_extra()
            != QuestionFilter(topic_ids=["a"]).cache_extra()
        )
        assert QuestionFilter(subject_ids=[]).cache_extra() != "all"
