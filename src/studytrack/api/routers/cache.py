"""Operational cache endpoints, mounted only when cache admin is enabled.

Both act on the whole process cache, not just the caller's entries.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter

from studytrack.api.deps import StorageDep
from studytrack.security.deps import CurrentUser

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dev/cache", tags=["Operations"])


@router.get("/stats")
async def cache_stats(user: CurrentUser, storage: StorageDep) -> dict[str, int]:
    return storage.cache_stats()


@router.post("/clear")
async def clear_cache(user: CurrentUser, storage: StorageDep) -> dict[str, str]:
    storage.clear_cache()
    logger.info(f"Cache cleared by {user.sub}")
    return {"status": "cleared"}
