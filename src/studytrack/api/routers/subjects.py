"""Subject endpoints.

POST returns the existing subject when the owner already has one with the
same name.
"""

from __future__ import annotations

from fastapi import APIRouter, Response, status

from studytrack.api.deps import StorageDep
from studytrack.api.errors import NotFoundError
from studytrack.api.schemas import NameInput
from studytrack.core.model import Subject
from studytrack.security.deps import OwnerId

router = APIRouter(prefix="/subjects", tags=["Subjects"])


@router.get("", response_model=list[Subject])
async def list_subjects(owner_id: OwnerId, storage: StorageDep) -> list[Subject]:
    return await storage.get_subjects(owner_id)


@router.post("", response_model=Subject, status_code=status.HTTP_201_CREATED)
async def create_subject(body: NameInput, owner_id: OwnerId, storage: StorageDep) -> Subject:
    return await storage.create_subject(owner_id, body.name)


@router.put("/{subject_id}", response_model=Subject)
async def update_subject(
    subject_id: str, body: NameInput, owner_id: OwnerId, storage: StorageDep
) -> Subject:
    subject = await storage.update_subject(owner_id, subject_id, body.name)
    if subject is None:
        raise NotFoundError("Subject", subject_id)
    return subject


@router.delete("/{subject_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_subject(subject_id: str, owner_id: OwnerId, storage: StorageDep) -> Response:
    if not await storage.delete_subject(owner_id, subject_id):
        raise NotFoundError("Subject", subject_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
