"""
Log Ingest - Error Handling

Error taxonomy for the ingest pipeline and the handlers that turn every
failure into a uniform `{"error": "<message>"}` JSON body.

Client errors (4xx):
    Unauthenticated       401  no credential presented
    Forbidden             403  credential presented but wrong
    MalformedPayload      400  body failed to parse as JSON / NDJSON
    NoValidRecords        400  nothing left to store after filtering
    PayloadTooLarge       413  body exceeds MAX_BODY_BYTES
    UnsupportedMediaType  415  content type is neither JSON nor text

Server errors (5xx):
    StorageFailure        500  directory lookup, insert or read failed
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from .middleware import get_request_id

logger = logging.getLogger(__name__)

MSG_UNAUTHORIZED = "Unauthorized"
MSG_FORBIDDEN = "Forbidden"
MSG_INVALID_JSON = "Invalid JSON payload"
MSG_NO_VALID_USER = "No valid user_id in payload"
MSG_NO_RECORDS = "No records in payload"
MSG_TOO_LARGE = "request entity too large"
MSG_UNSUPPORTED_TYPE = "Unsupported content type"
MSG_INTERNAL = "Internal Server Error"


class ErrorResponse(BaseModel):
    """Body of every error response."""

    error: str


# =============================================================================
# Exceptions
# =============================================================================


class LogIngestError(Exception):
    """Base exception for request-terminating ingest failures."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = MSG_INTERNAL

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(LogIngestError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = MSG_UNAUTHORIZED


class Forbidden(LogIngestError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = MSG_FORBIDDEN


class MalformedPayload(LogIngestError):
    """A line or value failed to parse; the whole request is rejected."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = MSG_INVALID_JSON


class NoValidRecords(LogIngestError):
    """Filtering left nothing to store."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = MSG_NO_VALID_USER


class PayloadTooLarge(LogIngestError):
    status_code = 413
    default_message = MSG_TOO_LARGE


class UnsupportedMediaType(LogIngestError):
    status_code = status.HTTP_415_UNSUPPORTED_MEDIA_TYPE
    default_message = MSG_UNSUPPORTED_TYPE


class StorageFailure(LogIngestError):
    """
    The log store or user directory reported an error.

    The message returned to the caller is always generic; the underlying
    driver error is kept as __cause__ for logging.
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = MSG_INTERNAL

    def __init__(self, operation: str):
        super().__init__(MSG_INTERNAL)
        self.operation = operation


# =============================================================================
# Exception Handlers
# =============================================================================


def create_error_response(status_code: int, message: str) -> JSONResponse:
    """Build the `{"error": message}` JSON response."""
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(),
    )


async def log_ingest_error_handler(request: Request, exc: LogIngestError) -> JSONResponse:
    """Map taxonomy errors to their status code and message."""
    if isinstance(exc, StorageFailure):
        logger.error(
            f"Storage failure during {exc.operation}: {exc.__cause__!r}",
            extra={
                "request_id": get_request_id(),
                "path": request.url.path,
                "error_type": type(exc.__cause__).__name__ if exc.__cause__ else None,
            },
        )
    elif exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    else:
        logger.warning(
            f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}",
            extra={"request_id": get_request_id(), "status_code": exc.status_code},
        )

    return create_error_response(exc.status_code, exc.message)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render routing errors (404, 405, ...) in the uniform shape."""
    if exc.status_code >= 500:
        logger.error(f"HTTP {exc.status_code}: {exc.detail}")

    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=message).model_dump(),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    logger.warning(
        f"Validation error on {request.url.path}: {len(exc.errors())} errors",
        extra={"request_id": get_request_id(), "path": request.url.path},
    )
    return create_error_response(422, "Invalid request")


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Last-resort boundary for anything outside the taxonomy.

    The traceback goes to the log; the caller only sees the generic 500 body.
    """
    logger.error(
        f"Unhandled exception: {type(exc).__name__}: {exc}",
        extra={
            "request_id": get_request_id(),
            "path": request.url.path,
            "method": request.method,
            "error_type": type(exc).__name__,
        },
        exc_info=True,
    )
    return create_error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, MSG_INTERNAL)


def setup_error_handlers(app: FastAPI) -> None:
    """Register all error handlers with the FastAPI app."""
    app.add_exception_handler(LogIngestError, log_ingest_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    logger.info("Error handlers registered")
