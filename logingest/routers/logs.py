"""
Log Ingest - Logs Router

POST /logs   ingest a JSON or NDJSON batch (204 on success)
GET  /logs   debug view of the newest records

Both methods sit behind the shared-token guard.
"""

import logging
from typing import Any

from bson import ObjectId
from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from ..config import Settings
from ..core.errors import ErrorResponse, PayloadTooLarge, UnsupportedMediaType
from ..core.security import require_api_token
from ..services import (
    BatchWriter,
    DebugReader,
    IngestPipeline,
    PayloadKind,
    RawPayload,
    RecordValidator,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["logs"], dependencies=[Depends(require_api_token)])

_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse, "description": "Malformed payload or no valid records"},
    401: {"model": ErrorResponse, "description": "No token presented"},
    403: {"model": ErrorResponse, "description": "Wrong token"},
    500: {"model": ErrorResponse, "description": "Storage failure"},
}


# ═══════════════════════════════════════════════════════════════════════════
# DEPENDENCIES
# ═══════════════════════════════════════════════════════════════════════════


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_pipeline(request: Request) -> IngestPipeline:
    """Build the ingest pipeline for this request from the app's store."""
    settings: Settings = request.app.state.settings
    store = request.app.state.store

    validator = RecordValidator(store.users) if settings.VALIDATE_USER_ID else None
    return IngestPipeline(BatchWriter(store.logs), validator)


def get_reader(request: Request) -> DebugReader:
    return DebugReader(request.app.state.store.logs)


async def read_payload(request: Request, max_bytes: int) -> RawPayload:
    """
    Buffer the request body, enforcing the content type and size cap.

    Raises:
        UnsupportedMediaType: Content-Type is neither JSON nor text/plain
        PayloadTooLarge: Declared or actual body size exceeds max_bytes
    """
    kind = PayloadKind.from_content_type(request.headers.get("content-type"))
    if kind is None:
        raise UnsupportedMediaType()

    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > max_bytes:
        raise PayloadTooLarge()

    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > max_bytes:
            raise PayloadTooLarge()

    return RawPayload(kind=kind, body=bytes(body))


# ═══════════════════════════════════════════════════════════════════════════
# ENDPOINTS
# ═══════════════════════════════════════════════════════════════════════════


@router.post(
    "/logs",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={
        **_ERROR_RESPONSES,
        413: {"model": ErrorResponse, "description": "Body too large"},
        415: {"model": ErrorResponse, "description": "Unsupported content type"},
    },
    summary="Ingest a batch of log records",
)
async def ingest_logs(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    pipeline: IngestPipeline = Depends(get_pipeline),
) -> Response:
    payload = await read_payload(request, settings.MAX_BODY_BYTES)
    await pipeline.ingest(payload)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/logs",
    responses={k: v for k, v in _ERROR_RESPONSES.items() if k != 400},
    summary="Newest 100 log records (debug)",
)
async def read_logs(reader: DebugReader = Depends(get_reader)) -> JSONResponse:
    records = await reader.latest()
    return JSONResponse(content=jsonable_encoder(records, custom_encoder={ObjectId: str}))
