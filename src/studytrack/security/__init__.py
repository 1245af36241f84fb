"""Security module for StudyTrack.

Authentication is delegated to an external OIDC provider; every document is
owned by the provider's subject id.
"""

from studytrack.security.deps import (
    ANONYMOUS_OWNER,
    CurrentUser,
    OwnerId,
    get_current_user,
    require_authenticated,
    require_owner,
)
from studytrack.security.oidc import InvalidTokenError, OIDCConfig, TokenValidator, User

__all__ = [
    "ANONYMOUS_OWNER",
    "CurrentUser",
    "OwnerId",
    "get_current_user",
    "require_authenticated",
    "require_owner",
    "InvalidTokenError",
    "OIDCConfig",
    "TokenValidator",
    "User",
]
