"""Domain exceptions and their JSON error handlers.

Services raise these to signal expected outcomes (bad input, missing
permission, duplicates) without knowing about HTTP. The handlers registered
by ``register_exception_handlers`` turn them into responses of the shape::

    {"error": "Conflict", "message": "...", "details": {...}}

Anything else that escapes a route is logged with its traceback and answered
with a generic 500 body.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class HuCaresError(Exception):
    """Base class for expected, client-facing failures."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    error: str = "BadRequest"

    def __init__(self, message: str, details: Any | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.error, "message": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(HuCaresError):
    """Raised when input validation fails. Carries every violated rule."""

    status_code = status.HTTP_400_BAD_REQUEST
    error = "ValidationError"

    def __init__(self, messages: list[str] | str) -> None:
        if isinstance(messages, str):
            messages = [messages]
        self.messages = list(messages)
        super().__init__(", ".join(self.messages), details={"messages": self.messages})


class UnauthorizedError(HuCaresError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error = "Unauthorized"


class ForbiddenError(HuCaresError):
    status_code = status.HTTP_403_FORBIDDEN
    error = "Forbidden"


class NotFoundError(HuCaresError):
    status_code = status.HTTP_404_NOT_FOUND
    error = "NotFound"


class ConflictError(HuCaresError):
    """Raised when a uniqueness or resource conflict occurs."""

    status_code = status.HTTP_409_CONFLICT
    error = "Conflict"


def _format_validation_error(err: dict[str, Any]) -> str:
    loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
    field = ".".join(loc)
    return f"{field}: {err.get('msg')}" if field else str(err.get("msg"))


def register_exception_handlers(app: FastAPI) -> None:
    """Register domain error handlers on the given FastAPI app."""

    @app.exception_handler(HuCaresError)
    async def handle_domain_error(request: Request, exc: HuCaresError) -> JSONResponse:
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, UnauthorizedError) else None
        return JSONResponse(
            status_code=exc.status_code,
            content=jsonable_encoder(exc.to_dict()),
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        err = ValidationError([_format_validation_error(e) for e in exc.errors()])
        return JSONResponse(status_code=err.status_code, content=jsonable_encoder(err.to_dict()))

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "InternalServerError", "message": "Internal server error"},
        )
