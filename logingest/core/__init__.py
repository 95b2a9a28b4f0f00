"""
Log Ingest - Core Module

Contains security, error taxonomy, middleware and logging utilities.
"""

from .errors import (
    Forbidden,
    LogIngestError,
    MalformedPayload,
    NoValidRecords,
    PayloadTooLarge,
    StorageFailure,
    Unauthenticated,
    UnsupportedMediaType,
    setup_error_handlers,
)
from .middleware import RequestLoggingMiddleware, get_request_id
from .security import check_token, extract_token, require_api_token

__all__ = [
    # Security
    "extract_token",
    "check_token",
    "require_api_token",
    # Middleware
    "RequestLoggingMiddleware",
    "get_request_id",
    # Errors
    "LogIngestError",
    "Unauthenticated",
    "Forbidden",
    "MalformedPayload",
    "NoValidRecords",
    "PayloadTooLarge",
    "UnsupportedMediaType",
    "StorageFailure",
    "setup_error_handlers",
]
