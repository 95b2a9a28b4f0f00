"""
Test the shared-token access guard.

Verifies:
1. Token from ?token= or from the second segment of Authorization
2. Query parameter takes precedence over the header
3. No credential -> 401 {"error": "Unauthorized"}
4. Wrong credential -> 403 {"error": "Forbidden"}
5. A repeated `token` query parameter -> 403
6. Both GET and POST /logs are guarded; /health is not
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from logingest.core.errors import Forbidden, Unauthenticated
from logingest.core.security import check_token, extract_token


class TestExtractToken:
    @pytest.mark.parametrize(
        "query_token, authorization, expected",
        [
            ("abc", None, "abc"),
            (None, "Bearer abc", "abc"),
            ("abc", "Bearer other", "abc"),
            ("", "Bearer abc", "abc"),
            (None, "Token abc", "abc"),
            (None, "Bearer", None),
            (None, "Bearer ", None),
            (None, "", None),
            (None, None, None),
        ],
    )
    def test_resolution(self, query_token, authorization, expected) -> None:
        assert extract_token(query_token, authorization) == expected


class TestCheckToken:
    def test_match_passes(self) -> None:
        check_token("secret", "secret")

    def test_missing_is_unauthenticated(self) -> None:
        with pytest.raises(Unauthenticated):
            check_token(None, "secret")

    def test_empty_is_unauthenticated(self) -> None:
        with pytest.raises(Unauthenticated):
            check_token("", "secret")

    def test_mismatch_is_forbidden(self) -> None:
        with pytest.raises(Forbidden):
            check_token("nope", "secret")

    def test_prefix_is_forbidden(self) -> None:
        with pytest.raises(Forbidden):
            check_token("secre", "secret")


class TestGuardedEndpoints:
    """Guard behaviour through the HTTP surface."""

    def test_get_without_token_returns_401(self, client: TestClient) -> None:
        response = client.get("/logs")

        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}

    def test_get_with_wrong_query_token_returns_403(self, client: TestClient) -> None:
        response = client.get("/logs", params={"token": "wrong"})

        assert response.status_code == 403
        assert response.json() == {"error": "Forbidden"}

    def test_get_with_wrong_bearer_returns_403(self, client: TestClient) -> None:
        response = client.get("/logs", headers={"Authorization": "Bearer wrong"})

        assert response.status_code == 403
        assert response.json() == {"error": "Forbidden"}

    def test_query_token_accepted(self, client: TestClient, api_token: str) -> None:
        response = client.get("/logs", params={"token": api_token})

        assert response.status_code == 200

    def test_bearer_token_accepted(self, client: TestClient, auth_headers) -> None:
        response = client.get("/logs", headers=auth_headers)

        assert response.status_code == 200

    def test_query_token_wins_over_header(self, client: TestClient, api_token: str) -> None:
        """A wrong query token is not rescued by a correct header."""
        response = client.get(
            "/logs",
            params={"token": "wrong"},
            headers={"Authorization": f"Bearer {api_token}"},
        )

        assert response.status_code == 403

    def test_empty_query_token_falls_back_to_header(
        self, client: TestClient, auth_headers
    ) -> None:
        response = client.get("/logs?token=", headers=auth_headers)

        assert response.status_code == 200

    @pytest.mark.parametrize(
        "query",
        [
            "token=wrong&token={secret}",
            "token={secret}&token=wrong",
            "token={secret}&token={secret}",
        ],
    )
    def test_repeated_query_token_is_forbidden(
        self, client: TestClient, api_token: str, store, query: str
    ) -> None:
        response = client.post(
            f"/logs?{query.format(secret=api_token)}", json=[{"user_id": "u1"}]
        )

        assert response.status_code == 403
        assert response.json() == {"error": "Forbidden"}
        assert store.logs.insert_calls == 0

    def test_post_without_token_returns_401_before_parsing(
        self, client: TestClient, store
    ) -> None:
        response = client.post(
            "/logs", content=b"{bad json}", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}
        assert store.logs.insert_calls == 0

    def test_post_with_wrong_token_leaves_store_untouched(
        self, client: TestClient, store
    ) -> None:
        response = client.post(
            "/logs",
            params={"token": "wrong"},
            json=[{"user_id": "u1", "msg": "hi"}],
        )

        assert response.status_code == 403
        assert store.logs.records == []
        assert store.users.lookups == []

    def test_health_requires_no_token(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"
