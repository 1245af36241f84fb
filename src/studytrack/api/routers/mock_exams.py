"""Mock exam endpoints.

- GET    /api/mock-exams        - List mock exams with question counts
- POST   /api/mock-exams        - Create mock exam
- PUT    /api/mock-exams/{id}   - Rename mock exam
- DELETE /api/mock-exams/{id}   - Delete mock exam; orphaned questions go to trash
"""

from __future__ import annotations

from fastapi import APIRouter, Response, status

from studytrack.api.deps import StorageDep
from studytrack.api.errors import NotFoundError
from studytrack.api.schemas import MockExamInput
from studytrack.core.model import MockExam, MockExamWithQuestionCount
from studytrack.security.deps import OwnerId

router = APIRouter(prefix="/mock-exams", tags=["Mock exams"])


@router.get("", response_model=list[MockExamWithQuestionCount])
async def list_mock_exams(owner_id: OwnerId, storage: StorageDep) -> list[MockExamWithQuestionCount]:
    return await storage.get_mock_exams_with_counts(owner_id)


@router.post("", response_model=MockExam, status_code=status.HTTP_201_CREATED)
async def create_mock_exam(body: MockExamInput, owner_id: OwnerId, storage: StorageDep) -> MockExam:
    return await storage.create_mock_exam(owner_id, body.title)


@router.put("/{mock_exam_id}", response_model=MockExam)
async def update_mock_exam(
    mock_exam_id: str, body: MockExamInput, owner_id: OwnerId, storage: StorageDep
) -> MockExam:
    exam = await storage.update_mock_exam(owner_id, mock_exam_id, body.title)
    if exam is None:
        raise NotFoundError("MockExam", mock_exam_id)
    return exam


@router.delete("/{mock_exam_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_mock_exam(mock_exam_id: str, owner_id: OwnerId, storage: StorageDep) -> Response:
    if not await storage.delete_mock_exam(owner_id, mock_exam_id):
        raise NotFoundError("MockExam", mock_exam_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
