"""
tests/helpers.py

Test doubles and settings builders shared across the suite.

InMemoryStore implements the same LogCollection / UserDirectory capabilities
as logingest.db.MongoStore, so API tests never need a running MongoDB.
"""

from __future__ import annotations

from itertools import count
from typing import Any, Sequence

from logingest.config import Settings
from logingest.core.errors import StorageFailure

API_TOKEN = "test-api-token-12345"


def make_settings(**overrides: Any) -> Settings:
    """Settings for tests; ignores any .env file on disk."""
    values: dict[str, Any] = {
        "API_TOKEN": API_TOKEN,
        "MONGO_URI": "mongodb://localhost:27017",
        "ENVIRONMENT": "dev",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class InMemoryLogCollection:
    """Log collection double; `_id` is a monotonically increasing int."""

    def __init__(self) -> None:
        self.records: list[dict[str, Any]] = []
        self.insert_calls = 0
        self.fail_with: Exception | None = None
        self._ids = count(1)

    async def insert_many(self, records: Sequence[dict[str, Any]]) -> int:
        self.insert_calls += 1
        if self.fail_with is not None:
            raise StorageFailure("insert_many") from self.fail_with
        for record in records:
            self.records.append({**record, "_id": next(self._ids)})
        return len(records)

    async def find_latest(self, limit: int) -> list[dict[str, Any]]:
        if self.fail_with is not None:
            raise StorageFailure("find_latest") from self.fail_with
        return list(reversed(self.records))[:limit]


class InMemoryUserDirectory:
    def __init__(self, user_ids: Sequence[str] = ()) -> None:
        self.user_ids = set(user_ids)
        self.lookups: list[str] = []
        self.fail_with: Exception | None = None

    async def exists(self, user_id: str) -> bool:
        self.lookups.append(user_id)
        if self.fail_with is not None:
            raise StorageFailure("user_lookup") from self.fail_with
        return user_id in self.user_ids


class InMemoryStore:
    def __init__(self, user_ids: Sequence[str] = ()) -> None:
        self.logs = InMemoryLogCollection()
        self.users = InMemoryUserDirectory(user_ids)
        self.connected = False
        self.closed = False

    async def connect(self) -> None:
        self.connected = True

    async def close(self) -> None:
        self.closed = True
