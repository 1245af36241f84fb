"""User statistics endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from studytrack.api.deps import StorageDep
from studytrack.core.model import DetailedStats, UserStats
from studytrack.security.deps import OwnerId

router = APIRouter(prefix="/user", tags=["Statistics"])


@router.get("/stats", response_model=UserStats)
async def user_stats(owner_id: OwnerId, storage: StorageDep) -> UserStats:
    return await storage.get_user_stats(owner_id)


@router.get("/detailed-stats", response_model=DetailedStats)
async def detailed_stats(owner_id: OwnerId, storage: StorageDep) -> DetailedStats:
    return await storage.get_detailed_stats(owner_id)
