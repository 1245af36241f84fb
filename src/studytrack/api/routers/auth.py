"""Identity endpoint.

Tokens are issued by the external identity provider; this only reports who
the bearer token belongs to.
"""

from __future__ import annotations

from fastapi import APIRouter

from studytrack.api.schemas import UserInfo
from studytrack.security.deps import CurrentUser

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.get("/me", response_model=UserInfo)
async def me(user: CurrentUser) -> UserInfo:
    return UserInfo(id=user.sub, email=user.email, name=user.name, picture=user.picture)
