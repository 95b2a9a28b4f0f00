"""Log Ingest - Debug Reader: newest persisted records first."""

from typing import Any

from ..db import LogCollection

DEBUG_READ_LIMIT = 100


class DebugReader:
    def __init__(self, collection: LogCollection, limit: int = DEBUG_READ_LIMIT):
        self._collection = collection
        self._limit = limit

    async def latest(self) -> list[dict[str, Any]]:
        """Up to `limit` records ordered by insertion, newest first."""
        return await self._collection.find_latest(self._limit)
