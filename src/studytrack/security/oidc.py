"""OIDC token validation for StudyTrack.

Validates ID tokens issued by an external OIDC provider. Firebase
Authentication tokens are plain OIDC tokens:

- issuer: https://securetoken.google.com/<project-id>
- audience: <project-id>
- JWKS: https://www.googleapis.com/service_accounts/v1/jwk/securetoken@system.gserviceaccount.com

Supports:
- JWT signature verification with JWKS
- Token expiry validation
- Issuer and audience validation
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

import httpx
from jose import JWTError, jwt
from jose.exceptions import ExpiredSignatureError

from studytrack.config import settings

logger = logging.getLogger(__name__)

FIREBASE_ISSUER_PREFIX = "https://securetoken.google.com/"
FIREBASE_JWKS_URI = (
    "https://www.googleapis.com/service_accounts/v1/jwk/securetoken@system.gserviceaccount.com"
)


@dataclass
class OIDCConfig:
    """OIDC provider configuration."""

    issuer: str
    audience: str
    jwks_uri: str | None = None
    jwks_cache_seconds: int = 3600

    def __post_init__(self) -> None:
        """Derive the JWKS URI from the issuer if not provided."""
        if self.jwks_uri is None:
            if self.issuer.startswith(FIREBASE_ISSUER_PREFIX):
                self.jwks_uri = FIREBASE_JWKS_URI
            else:
                self.jwks_uri = f"{self.issuer.rstrip('/')}/.well-known/jwks.json"


@dataclass
class User:
    """Authenticated user from JWT token."""

    sub: str  # Subject (user ID), also the owner id of every document
    email: str | None = None
    name: str | None = None
    picture: str | None = None
    claims: dict[str, Any] = field(default_factory=dict)

    @property
    def owner_id(self) -> str:
        return self.sub


class TokenValidator:
    """Validates JWT tokens from OIDC provider."""

    def __init__(self, config: OIDCConfig):
        self.config = config
        self._jwks: dict[str, Any] | None = None
        self._jwks_fetched_at: datetime | None = None

    async def validate_token(self, token: str) -> User:
        """Validate JWT token and return user.

        Args:
            token: The JWT (without "Bearer " prefix)

        Raises:
            InvalidTokenError: If token is invalid
        """
        jwks = await self._get_jwks()

        try:
            payload = jwt.decode(
                token,
                jwks,
                algorithms=["RS256", "ES256"],
                audience=self.config.audience,
                issuer=self.config.issuer,
                options={"verify_exp": True},
            )
        except ExpiredSignatureError as e:
            raise InvalidTokenError("Token has expired") from e
        except JWTError as e:
            raise InvalidTokenError(f"Invalid token: {e}") from e

        sub = payload.get("sub") or payload.get("user_id")
        if not sub:
            raise InvalidTokenError("Token has no subject")

        return User(
            sub=sub,
            email=payload.get("email"),
            name=payload.get("name") or payload.get("preferred_username"),
            picture=payload.get("picture"),
            claims=payload,
        )

    async def _get_jwks(self) -> dict[str, Any]:
        """Get JWKS keys, with caching."""
        now = datetime.now(UTC)
        if self._jwks is not None and self._jwks_fetched_at is not None:
            age = (now - self._jwks_fetched_at).total_seconds()
            if age < self.config.jwks_cache_seconds:
                return self._jwks

        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(self.config.jwks_uri or "", timeout=10.0)
                response.raise_for_status()
                self._jwks = response.json()
                self._jwks_fetched_at = now
                logger.info(f"Fetched JWKS from {self.config.jwks_uri}")
                return self._jwks
        except (httpx.HTTPError, ValueError) as e:
            if self._jwks is not None:
                logger.warning(f"Failed to refresh JWKS, using cached: {e}")
                return self._jwks
            raise InvalidTokenError(f"Failed to fetch JWKS: {e}") from e


class InvalidTokenError(Exception):
    """Raised when token validation fails."""

    pass


# Global validator instance (configured lazily)
_validator: TokenValidator | None = None


def get_token_validator() -> TokenValidator | None:
    """Get the global token validator.

    Returns None if OIDC is not configured.
    """
    global _validator

    if not settings.oidc_issuer:
        return None

    if _validator is None:
        issuer = settings.oidc_issuer
        audience = settings.oidc_audience
        if audience is None and issuer.startswith(FIREBASE_ISSUER_PREFIX):
            audience = issuer[len(FIREBASE_ISSUER_PREFIX) :]
        config = OIDCConfig(
            issuer=issuer,
            audience=audience or settings.app_name,
            jwks_uri=settings.oidc_jwks_uri,
            jwks_cache_seconds=settings.oidc_jwks_cache_seconds,
        )
        _validator = TokenValidator(config)

    return _validator
