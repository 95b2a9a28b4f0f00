# logingest/db.py
"""
Log Ingest - Database Layer

MongoDB persistence via the PyMongo async client. Exposes two capabilities
to the ingest pipeline:

- LogCollection: insert_many(records) / find_latest(limit)
- UserDirectory: exists(user_id)

Driver errors are wrapped into StorageFailure so the HTTP layer can answer
with a generic 500 without knowing about PyMongo.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, Sequence

from loguru import logger
from pymongo import AsyncMongoClient, DESCENDING
from pymongo.errors import PyMongoError

from .core.errors import StorageFailure

if TYPE_CHECKING:
    from .config import Settings


class LogCollection(Protocol):
    """Write/read capability on the log collection."""

    async def insert_many(self, records: Sequence[dict[str, Any]]) -> int: ...

    async def find_latest(self, limit: int) -> list[dict[str, Any]]: ...


class UserDirectory(Protocol):
    """Point-lookup capability on the user directory."""

    async def exists(self, user_id: str) -> bool: ...


# ---------------------------------------------------------------------------
# Collection adapters
# ---------------------------------------------------------------------------


class MongoLogCollection:
    """LogCollection backed by a Mongo collection."""

    def __init__(self, collection: Any):
        self._collection = collection

    async def insert_many(self, records: Sequence[dict[str, Any]]) -> int:
        # The driver assigns _id in place; write copies so caller data stays untouched
        documents = [dict(record) for record in records]
        try:
            result = await self._collection.insert_many(documents, ordered=True)
        except PyMongoError as e:
            raise StorageFailure("insert_many") from e
        return len(result.inserted_ids)

    async def find_latest(self, limit: int) -> list[dict[str, Any]]:
        """Most recently inserted documents first, by _id."""
        try:
            cursor = self._collection.find().sort("_id", DESCENDING).limit(limit)
            return await cursor.to_list(length=limit)
        except PyMongoError as e:
            raise StorageFailure("find_latest") from e


class MongoUserDirectory:
    """UserDirectory backed by a Mongo collection keyed by `user_id`."""

    def __init__(self, collection: Any):
        self._collection = collection

    async def exists(self, user_id: str) -> bool:
        try:
            document = await self._collection.find_one({"user_id": user_id}, projection={"_id": 1})
        except PyMongoError as e:
            raise StorageFailure("user_lookup") from e
        return document is not None


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class MongoStore:
    """
    Owns the Mongo client and hands out the two collection adapters.

    Created once per application and closed on shutdown.
    """

    def __init__(
        self,
        uri: str,
        database: str,
        log_collection: str,
        users_collection: str,
    ):
        self._uri = uri
        self._database_name = database
        self._log_collection_name = log_collection
        self._users_collection_name = users_collection
        self._client: AsyncMongoClient | None = None
        self._logs: MongoLogCollection | None = None
        self._users: MongoUserDirectory | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> MongoStore:
        return cls(
            uri=settings.MONGO_URI,
            database=settings.MONGO_DB_NAME,
            log_collection=settings.MONGO_LOGCOL,
            users_collection=settings.MONGO_USERSCOL,
        )

    @property
    def logs(self) -> MongoLogCollection:
        if self._logs is None:
            raise RuntimeError("MongoStore is not connected. Call connect() first.")
        return self._logs

    @property
    def users(self) -> MongoUserDirectory:
        if self._users is None:
            raise RuntimeError("MongoStore is not connected. Call connect() first.")
        return self._users

    async def connect(self) -> None:
        """
        Create the client and verify the server answers a ping.

        Collection handles are bound before the ping so a slow or absent
        server still leaves the store usable once it comes back.

        Raises:
            StorageFailure: If the ping fails
        """
        if self._client is not None:
            return

        self._client = AsyncMongoClient(self._uri)
        database = self._client[self._database_name]
        self._logs = MongoLogCollection(database[self._log_collection_name])
        self._users = MongoUserDirectory(database[self._users_collection_name])

        try:
            await self._client.admin.command("ping")
        except PyMongoError as e:
            raise StorageFailure("connect") from e

        logger.info(
            f"Connected to MongoDB collections: "
            f"logs={self._database_name}.{self._log_collection_name}, "
            f"users={self._database_name}.{self._users_collection_name}"
        )

    async def close(self) -> None:
        if self._client is None:
            return
        await self._client.close()
        self._client = None
        self._logs = None
        self._users = None
        logger.info("MongoDB client closed")
