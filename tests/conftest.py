"""
tests/conftest.py

Pytest configuration and shared fixtures for the Log Ingest test suite.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from logingest.config import Settings
from logingest.main import create_app
from tests.helpers import API_TOKEN, InMemoryStore, make_settings


@pytest.fixture
def api_token() -> str:
    return API_TOKEN


@pytest.fixture
def auth_headers(api_token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {api_token}"}


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def store() -> InMemoryStore:
    """Store whose user directory knows u1 and u2."""
    return InMemoryStore(user_ids=["u1", "u2"])


@pytest.fixture
def client(settings: Settings, store: InMemoryStore) -> TestClient:
    """Test client for the validating profile."""
    app = create_app(settings=settings, store=store)
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def plain_client(store: InMemoryStore) -> TestClient:
    """Test client with user_id validation disabled."""
    app = create_app(settings=make_settings(VALIDATE_USER_ID=False), store=store)
    return TestClient(app, raise_server_exceptions=False)
