"""
Log Ingest - Middleware

Correlation ids and one access-log line per request.
"""

import logging
import time
import uuid
from contextvars import ContextVar
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .logging import LogContext

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def get_request_id() -> str:
    """Correlation id of the request being handled, or "" outside one."""
    return request_id_var.get()


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def _level_for(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Tags every request with a correlation id and logs its outcome.

    The id is taken from the X-Request-ID header when the client sends one,
    otherwise an 8-character id is generated. It is bound into LogContext for
    everything logged while the request runs and echoed on the response.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:8]
        id_token = request_id_var.set(request_id)
        started = time.perf_counter()

        try:
            with LogContext(request_id=request_id):
                try:
                    response = await call_next(request)
                except Exception as exc:
                    # Render here so the 500 still carries the id and gets an access line
                    from .errors import generic_exception_handler

                    response = await generic_exception_handler(request, exc)
                elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
                logger.log(
                    _level_for(response.status_code),
                    f"{request.method} {request.url.path} -> {response.status_code} "
                    f"({elapsed_ms:.1f}ms)",
                    extra={
                        "method": request.method,
                        "path": request.url.path,
                        "status_code": response.status_code,
                        "duration_ms": elapsed_ms,
                        "client_ip": _client_ip(request),
                        "content_type": request.headers.get("content-type"),
                    },
                )
        finally:
            request_id_var.reset(id_token)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
