"""
Log Ingest - Record Validator

Keeps only records whose `user_id` resolves to an entry in the user
directory. Rejected records are dropped silently; the batch fails only when
nothing survives.
"""

import logging
from typing import Any, Sequence

from ..core.errors import NoValidRecords
from ..db import UserDirectory

logger = logging.getLogger(__name__)


class RecordValidator:
    """Owner filter for the validating profile."""

    def __init__(self, directory: UserDirectory):
        self._directory = directory

    async def filter(self, records: Sequence[dict[str, Any]]) -> list[dict[str, Any]]:
        """
        Return the records whose owner exists, in their original order.

        Lookups run one at a time per record; the directory may change
        between them.

        Raises:
            NoValidRecords: If no record passes
            StorageFailure: If a directory lookup fails
        """
        valid = []
        for record in records:
            user_id = record.get("user_id")
            # Only non-empty strings are looked up; other values never match
            if not isinstance(user_id, str) or not user_id:
                continue
            if await self._directory.exists(user_id):
                valid.append(record)

        dropped = len(records) - len(valid)
        if not valid:
            logger.warning(
                "No valid user_id found in this batch, dropping",
                extra={"record_count": len(records), "dropped_count": dropped},
            )
            raise NoValidRecords()

        if dropped:
            logger.info(
                f"Dropped {dropped} of {len(records)} records with unknown user_id",
                extra={"record_count": len(valid), "dropped_count": dropped},
            )
        return valid
