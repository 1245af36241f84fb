"""FastAPI security dependencies for StudyTrack.

Provides injectable dependencies for authentication:
- get_current_user: Extract and validate user from request
- require_authenticated: Require a user (anonymous when auth is disabled)
- require_owner: Owner id of the caller, bound to the logging context

Usage:
    @router.get("/subjects")
    async def list_subjects(owner_id: str = Depends(require_owner)):
        ...
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status

from studytrack.observability.logging import owner_id_var
from studytrack.security.oidc import InvalidTokenError, User, get_token_validator

ANONYMOUS_OWNER = "anonymous"


async def get_current_user(
    request: Request,
    authorization: Annotated[str | None, Header()] = None,
) -> User | None:
    """Extract and validate user from Authorization header.

    Returns None if:
    - OIDC is not configured (authentication disabled)
    - No Authorization header provided

    Raises HTTPException if token is invalid.
    """
    validator = get_token_validator()

    # If OIDC not configured, authentication is disabled
    if validator is None:
        return None

    if authorization is None:
        return None

    if not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header format",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = authorization[7:]  # Remove "Bearer " prefix

    try:
        user = await validator.validate_token(token)
    except InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        ) from e
    request.state.user = user
    return user


async def require_authenticated(
    request: Request,
    user: Annotated[User | None, Depends(get_current_user)],
) -> User:
    """Require authenticated user.

    Raises 401 if not authenticated.
    """
    # If OIDC not configured, every request acts as the same anonymous owner
    if get_token_validator() is None:
        anon = User(sub=ANONYMOUS_OWNER, name="Anonymous")
        request.state.user = anon
        return anon

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def require_owner(user: Annotated[User, Depends(require_authenticated)]) -> str:
    owner_id_var.set(user.owner_id)
    return user.owner_id


CurrentUser = Annotated[User, Depends(require_authenticated)]
OwnerId = Annotated[str, Depends(require_owner)]
