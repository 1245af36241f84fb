"""Question endpoints.

- GET    /api/questions                      - List questions (filterable)
- POST   /api/questions                      - Create question
- GET    /api/questions/{id}                 - Get question
- PUT    /api/questions/{id}                 - Update question
- PATCH  /api/questions/{id}/learned         - Mark learned / not learned
- PATCH  /api/questions/{id}/failure-count   - Set or shift the failure count
- DELETE /api/questions/{id}                 - Move question to trash

List filters are repeatable query parameters (``mockExamIds=a&mockExamIds=b``).
An omitted parameter does not filter; a parameter given with an empty value
matches nothing.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query, Response, status

from studytrack.api.deps import StorageDep
from studytrack.api.errors import BadRequestError, NotFoundError
from studytrack.api.schemas import FailureCountInput, LearnedInput
from studytrack.core.filters import QuestionFilter
from studytrack.core.model import QuestionDraft, QuestionPatch, QuestionType, QuestionWithRelations
from studytrack.security.deps import OwnerId

router = APIRouter(prefix="/questions", tags=["Questions"])


def _ids(values: list[str] | None) -> list[str] | None:
    if values is None:
        return None
    return [value for value in values if value]


@router.get("", response_model=list[QuestionWithRelations])
async def list_questions(
    owner_id: OwnerId,
    storage: StorageDep,
    mock_exam_ids: Annotated[list[str] | None, Query(alias="mockExamIds")] = None,
    subject_ids: Annotated[list[str] | None, Query(alias="subjectIds")] = None,
    topic_ids: Annotated[list[str] | None, Query(alias="topicIds")] = None,
    types: Annotated[list[QuestionType] | None, Query()] = None,
    learning_status: Annotated[list[bool] | None, Query(alias="learningStatus")] = None,
    keywords: Annotated[str | None, Query()] = None,
    failure_count_exact: Annotated[int | None, Query(alias="failureCountExact", ge=0)] = None,
    failure_count_min: Annotated[int | None, Query(alias="failureCountMin", ge=0)] = None,
    failure_count_max: Annotated[int | None, Query(alias="failureCountMax", ge=0)] = None,
) -> list[QuestionWithRelations]:
    question_filter = QuestionFilter(
        mock_exam_ids=_ids(mock_exam_ids),
        subject_ids=_ids(subject_ids),
        topic_ids=_ids(topic_ids),
        types=types,
        learning_status=learning_status,
        keywords=keywords or None,
        failure_count_exact=failure_count_exact,
        failure_count_min=failure_count_min,
        failure_count_max=failure_count_max,
    )
    return await storage.get_questions(owner_id, question_filter)


@router.post("", response_model=QuestionWithRelations, status_code=status.HTTP_201_CREATED)
async def create_question(
    body: QuestionDraft, owner_id: OwnerId, storage: StorageDep
) -> QuestionWithRelations:
    return await storage.create_question(owner_id, body)


@router.get("/{question_id}", response_model=QuestionWithRelations)
async def get_question(question_id: str, owner_id: OwnerId, storage: StorageDep) -> QuestionWithRelations:
    question = await storage.get_question(owner_id, question_id)
    if question is None:
        raise NotFoundError("Question", question_id)
    return question


@router.put("/{question_id}", response_model=QuestionWithRelations)
async def update_question(
    question_id: str, body: QuestionPatch, owner_id: OwnerId, storage: StorageDep
) -> QuestionWithRelations:
    question = await storage.update_question(owner_id, question_id, body)
    if question is None:
        raise NotFoundError("Question", question_id)
    return question


@router.patch("/{question_id}/learned", response_model=QuestionWithRelations)
async def set_learned(
    question_id: str, body: LearnedInput, owner_id: OwnerId, storage: StorageDep
) -> QuestionWithRelations:
    question = await storage.set_learned(owner_id, question_id, body.is_learned)
    if question is None:
        raise NotFoundError("Question", question_id)
    return question


@router.patch("/{question_id}/failure-count", response_model=QuestionWithRelations)
async def update_failure_count(
    question_id: str, body: FailureCountInput, owner_id: OwnerId, storage: StorageDep
) -> QuestionWithRelations:
    if body.failure_count is None and body.change is None:
        raise BadRequestError("Either failureCount or change is required")
    question = await storage.update_failure_count(
        owner_id, question_id, value=body.failure_count, change=body.change
    )
    if question is None:
        raise NotFoundError("Question", question_id)
    return question


@router.delete("/{question_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_question(question_id: str, owner_id: OwnerId, storage: StorageDep) -> Response:
    if not await storage.delete_question(owner_id, question_id):
        raise NotFoundError("Question", question_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
