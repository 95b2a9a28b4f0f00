"""
Log Ingest - Batch Writer

Persists a batch with a single bulk insert. No retry: a store failure is
surfaced immediately and the caller re-submits.
"""

import logging
from typing import Any, Sequence

from ..db import LogCollection

logger = logging.getLogger(__name__)


class BatchWriter:
    def __init__(self, collection: LogCollection):
        self._collection = collection

    async def write(self, records: Sequence[dict[str, Any]]) -> int:
        """
        Insert all records in one operation.

        Returns:
            Number of records written

        Raises:
            ValueError: If records is empty
            StorageFailure: If the store rejects the insert
        """
        if not records:
            raise ValueError("BatchWriter.write requires at least one record")

        inserted = await self._collection.insert_many(records)
        logger.info(f"Inserted {inserted} records", extra={"record_count": inserted})
        return inserted
