"""
Log Ingest - Structured Logging

One JSON object per line in production, a compact coloured line in
development. Fields bound through LogContext (request_id, ...) and the
ingest-specific extras (record_count, dropped_count, ...) ride along on every
entry written inside the block.

WARNING and above go to stderr, everything else to stdout, so container
runtimes can tell failures from chatter.

Usage:
    import logging

    from logingest.core.logging import LogContext

    logger = logging.getLogger(__name__)

    with LogContext(request_id=request_id):
        logger.info("Batch received", extra={"record_count": 3})
"""

from __future__ import annotations

import json
import logging
import re
import sys
import traceback
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Iterator, Mapping

_bound_fields: ContextVar[Mapping[str, Any]] = ContextVar("logingest_log_fields", default={})

# Attributes copied from LogRecord extras when present
RECORD_FIELDS = (
    "request_id",
    "method",
    "path",
    "status_code",
    "duration_ms",
    "client_ip",
    "content_type",
    "record_count",
    "dropped_count",
    "error_type",
)


def get_current_context() -> dict[str, Any]:
    """Fields bound for the current task."""
    return dict(_bound_fields.get())


@contextmanager
def LogContext(**fields: Any) -> Iterator[None]:
    """
    Bind fields to every log entry emitted inside the block.

    Nested blocks merge; the outer binding is restored on exit.
    """
    token = _bound_fields.set({**_bound_fields.get(), **fields})
    try:
        yield
    finally:
        _bound_fields.reset(token)


# =============================================================================
# Redaction
# =============================================================================

SENSITIVE_KEYS = ("token", "authorization", "secret", "password", "api_key", "mongo_uri")

_MONGO_CREDENTIALS = re.compile(r"(mongodb(?:\+srv)?://)[^@/\s]+@")
_QUERY_TOKEN = re.compile(r"([?&]token=)[^&\s]+")


def scrub_text(text: str) -> str:
    """Mask Mongo URI credentials and `token=` query values inside free text."""
    text = _MONGO_CREDENTIALS.sub(r"\1***@", text)
    return _QUERY_TOKEN.sub(r"\1***", text)


def redact(value: Any, depth: int = 8) -> Any:
    """Replace values under sensitive keys and scrub strings, recursively."""
    if depth <= 0:
        return "..."
    if isinstance(value, dict):
        return {
            key: "[REDACTED]"
            if any(marker in str(key).lower() for marker in SENSITIVE_KEYS)
            else redact(item, depth - 1)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [redact(item, depth - 1) for item in value]
    if isinstance(value, str):
        return scrub_text(value)
    return value


def _extras(record: logging.LogRecord) -> dict[str, Any]:
    fields = get_current_context()
    for name in RECORD_FIELDS:
        value = getattr(record, name, None)
        if value is not None:
            fields[name] = value
    return fields


# =============================================================================
# Formatters
# =============================================================================


class StructuredJsonFormatter(logging.Formatter):
    """
    JSON line formatter.

    {"timestamp": "...", "level": "INFO", "logger": "logingest.services.writer",
     "message": "Inserted 3 records", "service": "logingest",
     "request_id": "1f2e3d4c", "record_count": 3}
    """

    def __init__(self, service_name: str = "logingest"):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
            **_extras(record),
        }
        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc, tb = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc),
                "traceback": traceback.format_exception(exc_type, exc, tb),
            }
        return json.dumps(redact(entry), default=str, ensure_ascii=False)


class ColoredConsoleFormatter(logging.Formatter):
    """`12:00:01.234 INFO     logingest.services.writer [req=ab12cd34] Inserted 3 records`"""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        fields = _extras(record)
        request_id = fields.pop("request_id", None)
        tag = f" [req={request_id}]" if request_id else ""
        counts = "".join(
            f" {name}={fields[name]}" for name in ("record_count", "dropped_count") if name in fields
        )
        stamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S.%f")[:-3]
        color = self.LEVEL_COLORS.get(record.levelno, "")

        line = (
            f"{stamp} {color}{record.levelname:<8}{self.RESET} {record.name}{tag} "
            f"{scrub_text(record.getMessage())}{counts}"
        )
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


# =============================================================================
# Handlers
# =============================================================================


class _MaxLevelFilter(logging.Filter):
    def __init__(self, max_level: int):
        super().__init__()
        self.max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno <= self.max_level


def _create_split_handlers(formatter: logging.Formatter, level: int) -> list[logging.Handler]:
    """stdout for DEBUG/INFO, stderr for WARNING and above."""
    out = logging.StreamHandler(sys.stdout)
    out.setLevel(level)
    out.addFilter(_MaxLevelFilter(logging.INFO))

    err = logging.StreamHandler(sys.stderr)
    err.setLevel(max(level, logging.WARNING))

    for handler in (out, err):
        handler.setFormatter(formatter)
    return [out, err]


def configure_structured_logging(
    level: str = "INFO",
    json_output: bool = True,
    service_name: str = "logingest",
) -> None:
    """
    Replace the root logger's handlers with the split stdout/stderr pair.

    Args:
        level: Root log level name
        json_output: JSON lines when True, coloured console otherwise
        service_name: Value of the `service` field in JSON output
    """
    numeric_level = logging.getLevelName(level.upper())
    formatter: logging.Formatter = (
        StructuredJsonFormatter(service_name) if json_output else ColoredConsoleFormatter()
    )

    root = logging.getLogger()
    root.setLevel(numeric_level)
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in _create_split_handlers(formatter, numeric_level):
        root.addHandler(handler)
