"""Error responses for the Tessera API.

Every error body follows the Result/Message structure:

    {"messages": [{"code": ..., "messageType": ..., "text": ..., "timestamp": ...}]}
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from tessera.tenancy.errors import TenantError


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
    model_config = {"extra": "forbid"}

    messages: list[Message]


def build_result(code: str, text: str, message_type: MessageType = MessageType.ERROR) -> Result:
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
        return build_result(self.code, self.text, self.message_type)


class BadRequestError(ApiError):
    def __init__(self, text: str):
        super().__init__(status_code=400, code="BadRequest", text=text)


class ForbiddenError(ApiError):
    def __init__(self, text: str = "Forbidden"):
        super().__init__(status_code=403, code="Forbidden", text=text)


class NotFoundError(ApiError):
    def __init__(self, resource_type: str, identifier: str):
        super().__init__(
            status_code=404,
            code="NotFound",
            text=f"{resource_type} '{identifier}' not found",
        )


def tenant_error_response(exc: TenantError) -> JSONResponse:
    """Render a TenantError with its own status and code."""
    message_type = MessageType.EXCEPTION if exc.status_code >= 500 else MessageType.ERROR
    return JSONResponse(
        status_code=exc.status_code,
        content=build_result(exc.code, str(exc), message_type).model_dump(by_alias=True),
    )


async def api_exception_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_result().model_dump(by_alias=True),
    )


async def tenant_exception_handler(request: Request, exc: TenantError) -> JSONResponse:
    return tenant_error_response(exc)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Exception handler for unexpected errors."""
    return JSONResponse(
        status_code=500,
        content=build_result(
            "InternalServerError",
            "An unexpected error occurred",
            MessageType.EXCEPTION,
        ).model_dump(by_alias=True),
    )
