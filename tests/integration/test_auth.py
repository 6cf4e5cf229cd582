"""Integration tests for JWT authentication.

Validates:
  - /health is public (plain Django view, no DRF).
  - The orders API answers 401 without a token, with an invalid token
    and with a malformed Authorization header.
  - A token from the SimpleJWT endpoint opens the orders API.
"""

import pytest

pytestmark = pytest.mark.integration

ORDERS_URL = "/api/v1/orders/"


class TestPublicEndpoints:
    def test_health_is_public(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestProtectedEndpoints:
    """All DRF endpoints require a valid JWT by default (Fail Closed)."""

    def test_no_token_returns_401(self, api_client):
        response = api_client.get(ORDERS_URL)
        assert response.status_code == 401

    def test_invalid_token_returns_401(self, api_client):
        api_client.credentials(HTTP_AUTHORIZATION="Bearer invalid.token.here")
        response = api_client.get(ORDERS_URL)
        assert response.status_code == 401

    def test_malformed_auth_header_returns_401(self, api_client):
        api_client.credentials(HTTP_AUTHORIZATION="Token some-token")
        response = api_client.get(ORDERS_URL)
        assert response.status_code == 401

    def test_401_includes_www_authenticate_header(self, api_client):
        response = api_client.get(ORDERS_URL)
        assert response.status_code == 401
        assert "Bearer" in response.get("WWW-Authenticate", "")

    def test_vendor_endpoints_require_authentication(self, api_client):
        response = api_client.get(f"{ORDERS_URL}vendor/")
        assert response.status_code == 401


class TestTokenFlow:
    def test_obtained_token_grants_access(self, api_client, customer):
        token = api_client.post(
            "/api/v1/auth/token/",
            {"username": "shopper", "password": "testpass123"},
            format="json",
        )
        assert token.status_code == 200

        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {token.json()['access']}")
        response = api_client.get(ORDERS_URL)

        assert response.status_code == 200

    def test_wrong_password_is_rejected(self, api_client, user):
        response = api_client.post(
            "/api/v1/auth/token/",
            {"username": "shopper", "password": "wrong"},
            format="json",
        )
        assert response.status_code == 401
        assert response.json()["type"] == "client_error"
