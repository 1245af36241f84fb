"""Trash endpoints.

- GET    /api/trash                - List trashed questions
- DELETE /api/trash                - Empty the trash
- POST   /api/trash/{id}/restore   - Restore (``?partial=true`` drops vanished mock exams)
- DELETE /api/trash/{id}           - Permanently delete one entry
"""

from __future__ import annotations

from fastapi import APIRouter, Response, status

from studytrack.api.deps import StorageDep
from studytrack.api.errors import NotFoundError
from studytrack.api.schemas import TrashEmptied
from studytrack.core.model import RestoreResult, TrashedQuestion
from studytrack.security.deps import OwnerId

router = APIRouter(prefix="/trash", tags=["Trash"])


@router.get("", response_model=list[TrashedQuestion])
async def list_trash(owner_id: OwnerId, storage: StorageDep) -> list[TrashedQuestion]:
    return await storage.get_trashed_questions(owner_id)


@router.delete("", response_model=TrashEmptied)
async def empty_trash(owner_id: OwnerId, storage: StorageDep) -> TrashEmptied:
    return TrashEmptied(deleted=await storage.empty_trash(owner_id))


@router.post("/{trashed_id}/restore", response_model=RestoreResult)
async def restore(
    trashed_id: str, owner_id: OwnerId, storage: StorageDep, partial: bool = False
) -> RestoreResult:
    result = await storage.restore_question(owner_id, trashed_id, partial=partial)
    if result is None:
        raise NotFoundError("TrashedQuestion", trashed_id)
    return result


@router.delete("/{trashed_id}", status_code=status.HTTP_204_NO_CONTENT)
async def purge(trashed_id: str, owner_id: OwnerId, storage: StorageDep) -> Response:
    if not await storage.purge_trashed(owner_id, trashed_id):
        raise NotFoundError("TrashedQuestion", trashed_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
