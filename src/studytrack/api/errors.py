"""Error responses for StudyTrack.

Every error body uses the same Result/Message structure:

    {"messages": [{"code": "NotFound", "messageType": "Error",
                   "text": "...", "timestamp": "..."}]}

Domain errors raised by the storage layer are translated here, so route
handlers only deal with the "not found" case themselves.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from enum import Enum

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from pydantic import BaseModel, Field

from studytrack.core.errors import ConsistencyError, ValidationError

logger = logging.getLogger(__name__)


class MessageType(str, Enum):
    """Type of message in error response."""

    ERROR = "Error"
    WARNING = "Warning"
    INFO = "Info"
    EXCEPTION = "Exception"


class Message(BaseModel):
    model_config = {"extra": "forbid", "populate_by_name": True}

    code: str
    message_type: MessageType = Field(alias="messageType")
    text: str
    timestamp: str | None = None


class Result(BaseModel):
    """Result wrapper for errors."""

    model_config = {"extra": "forbid"}

    messages: list[Message]


def _result(code: str, text: str, message_type: MessageType = MessageType.ERROR) -> Result:
    return Result(
        messages=[
            Message(
                code=code,
                messageType=message_type,
                text=text,
                timestamp=datetime.now(UTC).isoformat(),
            )
        ]
    )


class ApiError(HTTPException):
    """Base exception for API errors."""

    def __init__(
        self,
        status_code: int,
        code: str,
        text: str,
        message_type: MessageType = MessageType.ERROR,
    ):
        self.code = code
        self.text = text
        self.message_type = message_type
        super().__init__(status_code=status_code, detail=text)

    def to_result(self) -> Result:
        return _result(self.code, self.text, self.message_type)


class NotFoundError(ApiError):
    """Resource not found (404)."""

    def __init__(self, resource_type: str, identifier: str, text: str | None = None):
        super().__init__(
            status_code=404,
            code="NotFound",
            text=text or f"{resource_type} with identifier '{identifier}' not found",
        )


class ConflictError(ApiError):
    """Write rejected by a consistency rule (409)."""

    def __init__(self, text: str, code: str = "Conflict"):
        super().__init__(status_code=409, code=code, text=text)


class BadRequestError(ApiError):
    """Invalid request (400)."""

    def __init__(self, text: str):
        super().__init__(status_code=400, code="BadRequest", text=text)


class InternalServerError(ApiError):
    """Internal server error (500)."""

    def __init__(self, text: str = "An unexpected error occurred"):
        super().__init__(
            status_code=500,
            code="InternalServerError",
            text=text,
            message_type=MessageType.EXCEPTION,
        )


def _respond(error: ApiError) -> ORJSONResponse:
    return ORJSONResponse(
        status_code=error.status_code,
        content=error.to_result().model_dump(by_alias=True),
    )


async def api_exception_handler(request: Request, exc: ApiError) -> ORJSONResponse:
    """Exception handler for API errors."""
    return _respond(exc)


async def consistency_exception_handler(request: Request, exc: ConsistencyError) -> ORJSONResponse:
    """Consistency violations become 409 with the specific reason as code."""
    return _respond(ConflictError(str(exc), code=exc.code))


async def validation_exception_handler(request: Request, exc: ValidationError) -> ORJSONResponse:
    return _respond(BadRequestError(str(exc)))


async def request_validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> ORJSONResponse:
    """Malformed request bodies and parameters become 400."""
    details = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
    )
    return _respond(BadRequestError(details or "Invalid request"))


async def generic_exception_handler(request: Request, exc: Exception) -> ORJSONResponse:
    """Exception handler for unexpected errors."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return _respond(InternalServerError())
