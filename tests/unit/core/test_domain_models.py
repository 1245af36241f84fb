"""Tests for domain models and their document/wire forms."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from studytrack.core.ids import new_id
from studytrack.core.model import Question, QuestionMockExam, QuestionPatch, QuestionType

NOW = datetime(2026, 10, 12, 9, 0, tzinfo=UTC)


class TestQuestion:
    """Question model."""

    def test_document_form_is_snake_case_json(self) -> None:
        question = Question(
            id="q1",
            subject_id="s1",
            topic_id="t1",
            type=QuestionType.DOUBT,
            theory="Femur",
            owner_id="u1",
            created_at=NOW,
        )
        doc = question.to_document()
        assert doc["subject_id"] == "s1"
        assert doc["type"] == "doubt"
        assert doc["created_at"] == "2026-10-12T09:00:00Z"
        assert Question.model_validate(doc) == question

    def test_wire_form_is_camel_case(self) -> None:
        question = Question.model_validate(
            {
                "id": "q1",
                "subjectId": "s1",
                "topicId": "t1",
                "type": "error",
                "theory": "Femur",
                "isLearned": True,
                "failureCount": 3,
                "ownerId": "u1",
                "createdAt": "2026-10-12T09:00:00Z",
            }
        )
        dumped = question.model_dump(by_alias=True)
        assert dumped["isLearned"] is True
        assert dumped["failureCount"] == 3

    def test_negative_failure_count_rejected(self) -> None:
        with pytest.raises(ValidationError):
            QuestionPatch(failure_count=-1)


class TestQuestionPatch:
    """Partial updates."""

    def test_changes_skip_unset_fields_and_relations(self) -> None:
        patch = QuestionPatch(mock_exam_ids=["m1"], is_learned=False, type=QuestionType.ERROR)
        assert patch.changes() == {"is_learned": False, "type": "error"}

    def test_empty_patch(self) -> None:
        assert QuestionPatch().changes() == {}


class TestIdentifiers:
    """Document ids."""

    def test_relation_document_id(self) -> None:
        assert QuestionMockExam.document_id("q1", "m1") == "q1_m1"

    def test_new_ids_are_unique_hex(self) -> None:
        ids = {new_id() for _ in range(100)}
        assert len(ids) == 100
        assert all(len(i) == 32 and int(i, 16) >= 0 for i in ids)
