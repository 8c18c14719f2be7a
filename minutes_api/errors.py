from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from .logging import request_id_of

logger = logging.getLogger("minutes.errors")


class ErrorResponse(BaseModel):
    error: str
    message: str
    details: Optional[str] = None


# ---------------------------------------------------------------------------
# Input errors (client-caused, always 400)
# ---------------------------------------------------------------------------


class InputError(Exception):
    """Rejected request input. `error` is the short label sent on the wire."""

    error = "Bad request"
    default_message = "The request could not be processed"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class MissingInput(InputError):
    error = "Missing input"
    default_message = "Please provide either a .txt file upload or text in the request body"


class EmptyInput(InputError):
    error = "Empty input"
    default_message = "Meeting notes cannot be empty"


class InputTooLarge(InputError):
    error = "Input too large"
    default_message = "Meeting notes must be less than 50,000 characters"


class InvalidFileType(InputError):
    error = "Invalid file type"
    default_message = "Only .txt files are allowed"


class FileTooLarge(InputError):
    error = "File too large"
    default_message = "File size must be less than 10MB"


# ---------------------------------------------------------------------------
# Extraction errors (upstream-caused)
# ---------------------------------------------------------------------------


class ExtractionError(Exception):
    """The pipeline could not produce a result; `cause` is the underlying reason."""

    def __init__(self, cause: object) -> None:
        self.cause = cause
        super().__init__(f"Failed to process meeting notes: {cause}")


class UpstreamError(ExtractionError):
    """The AI service call itself failed (transport, HTTP status, empty reply)."""


class MalformedAIResponse(ExtractionError):
    """The AI reply was not parseable JSON."""


class InvalidAIResponseShape(ExtractionError):
    """The AI reply parsed but lacks summary/decisions/actionItems of the right types."""


@dataclass(frozen=True)
class ErrorMapping:
    status_code: int
    error: str
    message: str


def classify_extraction_error(message: str) -> ErrorMapping:
    """Map an extraction failure message to a response status and body.

    This is a substring heuristic over whatever text the upstream client put in
    the exception; the upstream does not give us a typed error code. Checks are
    case-sensitive and ordered: API key, then quota/rate limit, then timeout.
    A message that mentions more than one of these is classified by the first
    match.
    """
    if "API key" in message:
        return ErrorMapping(401, "Authentication failed", "Invalid or missing API key")
    if "quota" in message or "rate limit" in message:
        return ErrorMapping(429, "Rate limit exceeded", "Too many requests. Please try again later.")
    if "timeout" in message:
        return ErrorMapping(504, "Request timeout", "The AI service took too long to respond")
    return ErrorMapping(500, "Processing failed", "An error occurred while processing the meeting notes")


def _json_error(status_code: int, body: ErrorResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.dict(exclude_none=True))


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(InputError)
    async def _handle_input_error(request: Request, exc: InputError):  # type: ignore[unused-variable]
        logger.info(
            f"input rejected: {exc.error}: {exc.message}",
            extra={"request_id": request_id_of(request)},
        )
        return _json_error(400, ErrorResponse(error=exc.error, message=exc.message))

    @app.exception_handler(ExtractionError)
    async def _handle_extraction_error(request: Request, exc: ExtractionError):  # type: ignore[unused-variable]
        mapping = classify_extraction_error(str(exc))
        logger.error(
            f"extraction failed status={mapping.status_code}: {exc}",
            exc_info=exc,
            extra={"request_id": request_id_of(request)},
        )
        details = None
        if mapping.status_code == 500 and not request.app.state.settings.is_production:
            details = str(exc)
        return _json_error(
            mapping.status_code,
            ErrorResponse(error=mapping.error, message=mapping.message, details=details),
        )

    @app.exception_handler(StarletteHTTPException)
    async def _handle_http_exception(request: Request, exc: StarletteHTTPException):  # type: ignore[unused-variable]
        # Unknown paths and wrong methods on known paths are both "not found"
        if exc.status_code in (404, 405):
            return _json_error(
                404,
                ErrorResponse(error="Not found", message="The requested endpoint does not exist"),
            )
        return _json_error(exc.status_code, ErrorResponse(error="Bad request", message=str(exc.detail)))

    @app.exception_handler(Exception)
    async def _handle_unexpected(request: Request, exc: Exception):  # type: ignore[unused-variable]
        logger.error(
            f"unhandled error on {request.url.path}",
            exc_info=exc,
            extra={"request_id": request_id_of(request)},
        )
        return _json_error(
            500,
            ErrorResponse(error="Server error", message="An unexpected error occurred"),
        )
