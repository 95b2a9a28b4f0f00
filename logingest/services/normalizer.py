"""
Log Ingest - Body Normalizer

Turns a raw request body into an ordered list of log records.

Two wire encodings are accepted, chosen once from the request Content-Type:

    application/json   a single JSON object or an array of objects
    text/plain         newline-delimited JSON, one object per line

Any parse failure rejects the whole body with MalformedPayload; there is no
partial acceptance at this stage.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..core.errors import MalformedPayload

logger = logging.getLogger(__name__)


class PayloadKind(str, Enum):
    """Accepted request encodings, keyed by media type."""

    JSON = "application/json"
    NDJSON = "text/plain"

    @classmethod
    def from_content_type(cls, content_type: str | None) -> PayloadKind | None:
        """Map a Content-Type header to a kind; parameters such as charset are ignored."""
        if not content_type:
            return None
        media_type = content_type.split(";", 1)[0].strip().lower()
        for kind in cls:
            if kind.value == media_type:
                return kind
        return None


@dataclass(frozen=True)
class RawPayload:
    """A buffered request body tagged with its encoding."""

    kind: PayloadKind
    body: bytes


def _reject_constant(name: str) -> Any:
    # NaN / Infinity are not JSON
    raise ValueError(f"Invalid JSON constant: {name}")


def _loads(text: str) -> Any:
    try:
        return json.loads(text, parse_constant=_reject_constant)
    except RecursionError as e:
        # Nesting deeper than the interpreter stack allows
        raise ValueError("JSON nested too deeply") from e


def _as_record(value: Any) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise MalformedPayload()
    return value


def _decode(body: bytes) -> str:
    try:
        return body.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise MalformedPayload() from e


def parse_json_body(text: str) -> list[dict[str, Any]]:
    """Parse an application/json body: array → each element, otherwise the value itself."""
    if not text.strip():
        return []

    try:
        value = _loads(text)
    except ValueError as e:
        logger.warning(f"JSON parse error: {e}")
        raise MalformedPayload() from e

    if isinstance(value, list):
        return [_as_record(item) for item in value]
    return [_as_record(value)]


def parse_ndjson_body(text: str) -> list[dict[str, Any]]:
    """Parse newline-delimited JSON, skipping blank lines."""
    records = []
    for line_number, line in enumerate(text.split("\n"), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            value = _loads(line)
        except ValueError as e:
            logger.warning(f"NDJSON parse error on line {line_number}: {e}")
            raise MalformedPayload() from e
        records.append(_as_record(value))
    return records


def normalize_payload(payload: RawPayload) -> list[dict[str, Any]]:
    """
    Normalize a tagged request body into records.

    Args:
        payload: Buffered body and its encoding

    Returns:
        Records in wire order (possibly empty)

    Raises:
        MalformedPayload: If the body is not valid UTF-8, any value fails to
            parse, or any record is not a JSON object
    """
    text = _decode(payload.body)
    if payload.kind is PayloadKind.NDJSON:
        return parse_ndjson_body(text)
    return parse_json_body(text)
