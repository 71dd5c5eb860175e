"""Security tests for API key authentication

Tests cover:
- Direct endpoint access without a key
- Unknown, inactive and expired keys
- Header precedence and Bearer prefix handling
- Keys never echoed back in responses or logs
"""

import logging
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from models.api_key import ApiKey


pytestmark = pytest.mark.security

MISSING = {"success": False, "message": "API key is required"}
INVALID = {"success": False, "message": "Invalid or expired API key"}


def add_key(db_session: Session, key: str, **kwargs) -> ApiKey:
    api_key = ApiKey(name="Security Test", key=key, **kwargs)
    db_session.add(api_key)
    db_session.commit()
    return api_key


class TestUnauthenticatedAccess:
    """Protected endpoints reject requests without a key"""

    @pytest.mark.parametrize("endpoint,method", [
        ("/v1/document-requests", "GET"),
        ("/v1/document-requests", "POST"),
        ("/v1/document-requests/statistics", "GET"),
        ("/v1/document-requests/1", "GET"),
        ("/v1/document-requests/1", "DELETE"),
        ("/v1/document-requests/1/files", "GET"),
        ("/v1/file-types", "GET"),
    ])
    def test_protected_endpoints_require_key(self, anonymous_client: TestClient, endpoint: str, method: str):
        response = anonymous_client.request(method, endpoint, json={} if method == "POST" else None)

        assert response.status_code == 401
        assert response.json() == MISSING

    def test_empty_header_is_missing(self, anonymous_client: TestClient):
        response = anonymous_client.get("/v1/file-types", headers={"X-API-Key": ""})

        assert response.status_code == 401
        assert response.json() == MISSING

    def test_public_endpoints_stay_open(self, anonymous_client: TestClient):
        assert anonymous_client.get("/").status_code == 200
        assert anonymous_client.get("/metrics").status_code == 200


class TestInvalidKeys:

    def test_unknown_key(self, anonymous_client: TestClient, api_key: ApiKey):
        response = anonymous_client.get("/v1/file-types", headers={"X-API-Key": "sk-not-a-real-key"})

        assert response.status_code == 401
        assert response.json() == INVALID

    def test_inactive_key(self, anonymous_client: TestClient, db_session: Session):
        add_key(db_session, "sk-inactive", is_active=False)

        response = anonymous_client.get("/v1/file-types", headers={"X-API-Key": "sk-inactive"})

        assert response.status_code == 401
        assert response.json() == INVALID

    def test_expired_key(self, anonymous_client: TestClient, db_session: Session):
        add_key(db_session, "sk-expired", expires_at=datetime.now(timezone.utc) - timedelta(minutes=1))

        response = anonymous_client.get("/v1/file-types", headers={"X-API-Key": "sk-expired"})

        assert response.status_code == 401
        assert response.json() == INVALID

    def test_key_with_future_expiry(self, anonymous_client: TestClient, db_session: Session):
        add_key(db_session, "sk-future", expires_at=datetime.now(timezone.utc) + timedelta(days=1))

        response = anonymous_client.get("/v1/file-types", headers={"X-API-Key": "sk-future"})

        assert response.status_code == 200

    def test_key_prefix_does_not_match(self, anonymous_client: TestClient, api_key: ApiKey):
        response = anonymous_client.get("/v1/file-types", headers={"X-API-Key": api_key.key[:-1]})

        assert response.status_code == 401

    @pytest.mark.parametrize("payload", [
        "' OR '1'='1",
        "sk-x'; DROP TABLE api_keys; --",
        "%",
    ])
    def test_injection_payloads_rejected(self, anonymous_client: TestClient, api_key: ApiKey, payload: str):
        response = anonymous_client.get("/v1/file-types", headers={"X-API-Key": payload})

        assert response.status_code == 401
        assert anonymous_client.get("/v1/file-types", headers={"X-API-Key": api_key.key}).status_code == 200


class TestHeaderHandling:

    def test_bearer_authorization(self, anonymous_client: TestClient, api_key: ApiKey):
        response = anonymous_client.get("/v1/file-types", headers={"Authorization": f"Bearer {api_key.key}"})

        assert response.status_code == 200

    def test_lowercase_bearer_not_stripped(self, anonymous_client: TestClient, api_key: ApiKey):
        response = anonymous_client.get("/v1/file-types", headers={"Authorization": f"bearer {api_key.key}"})

        assert response.status_code == 401
        assert response.json() == INVALID

    def test_x_api_key_takes_precedence(self, anonymous_client: TestClient, api_key: ApiKey):
        response = anonymous_client.get(
            "/v1/file-types",
            headers={"X-API-Key": "sk-wrong", "Authorization": f"Bearer {api_key.key}"},
        )

        assert response.status_code == 401

    def test_last_used_at_recorded(self, client: TestClient, api_key: ApiKey, db_session: Session):
        assert api_key.last_used_at is None

        client.get("/v1/file-types")

        db_session.refresh(api_key)
        assert api_key.last_used_at is not None


class TestKeyConfidentiality:

    def test_key_not_in_responses(self, client: TestClient, api_key: ApiKey):
        for path in ("/v1/document-requests", "/v1/file-types", "/v1/document-requests/statistics"):
            assert api_key.key not in client.get(path).text

    def test_key_not_logged(self, anonymous_client: TestClient, api_key: ApiKey, caplog):
        with caplog.at_level(logging.DEBUG):
            anonymous_client.get("/v1/file-types", headers={"X-API-Key": api_key.key})
            anonymous_client.get("/v1/file-types", headers={"X-API-Key": "sk-guess"})

        assert api_key.key not in caplog.text
        assert "sk-guess" not in caplog.text
