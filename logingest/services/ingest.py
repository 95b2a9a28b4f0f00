"""
Log Ingest - Ingest Pipeline

Request-scoped orchestration of the three ingest stages:

    normalize → validate (validating profile only) → write

Stages run strictly in sequence; every failure ends the request.
"""

from __future__ import annotations

import logging

from ..core.errors import MSG_NO_RECORDS, NoValidRecords
from .normalizer import RawPayload, normalize_payload
from .validator import RecordValidator
from .writer import BatchWriter

logger = logging.getLogger(__name__)


class IngestPipeline:
    def __init__(self, writer: BatchWriter, validator: RecordValidator | None = None):
        self._writer = writer
        self._validator = validator

    @property
    def validates_owner(self) -> bool:
        return self._validator is not None

    async def ingest(self, payload: RawPayload) -> int:
        """
        Normalize, filter and persist one request body.

        Returns:
            Number of records written

        Raises:
            MalformedPayload: Body failed to parse
            NoValidRecords: Nothing left to store
            StorageFailure: Directory lookup or insert failed
        """
        records = normalize_payload(payload)

        if self._validator is not None:
            logger.info(
                f"Received {len(records)} records; validating user_id",
                extra={"record_count": len(records), "content_type": payload.kind.value},
            )
            records = await self._validator.filter(records)
        else:
            logger.info(
                f"Received batch of {len(records)} records",
                extra={"record_count": len(records), "content_type": payload.kind.value},
            )
            if not records:
                raise NoValidRecords(MSG_NO_RECORDS)

        return await self._writer.write(records)
