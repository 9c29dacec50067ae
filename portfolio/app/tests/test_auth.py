"""
Login/logout exchange tests.

Covers the ID token to session cookie exchange, cookie attributes, logout
revocation and the error bodies of every failure path.
"""

from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from portfolio.app.auth.provider import IdentityProviderError
from portfolio.app.auth.session import SESSION_DURATION
from portfolio.app.main import create_app


def cookie_header(value: str) -> dict:
    return {"Cookie": f"__session={value}"}


def set_cookie_header(response) -> str:
    return response.headers.get("set-cookie", "")


def set_cookie_value(response) -> str:
    return set_cookie_header(response).split(";", 1)[0].split("=", 1)[1]


@pytest.fixture
def id_token(identity_provider):
    return identity_provider.issue_identity_token("admin-uid-123", email="admin@example.com")


@pytest.fixture
def mock_provider():
    return Mock()


@pytest.fixture
def mock_client(mock_settings, mock_provider, content_store, media_store, categorizer):
    app = create_app(
        settings=mock_settings,
        identity_provider=mock_provider,
        content_store=content_store,
        media_store=media_store,
        categorizer=categorizer,
    )
    return TestClient(app)


class TestLogin:
    def test_login_sets_session_cookie(self, client, id_token):
        response = client.post("/api/auth/login", headers={"Authorization": f"Bearer {id_token}"})

        assert response.status_code == 200
        assert response.json() == {"status": "success"}

        header = set_cookie_header(response)
        assert header.startswith("__session=")
        assert "HttpOnly" in header
        assert "Secure" in header
        assert "Max-Age=432000" in header
        assert "Path=/" in header

    def test_issued_cookie_opens_admin_area(self, client, id_token):
        login = client.post("/api/auth/login", headers={"Authorization": f"Bearer {id_token}"})

        response = client.get("/admin01", headers=cookie_header(set_cookie_value(login)), follow_redirects=False)

        assert response.status_code == 200

    def test_login_requests_five_day_session(self, mock_client, mock_provider):
        mock_provider.create_session_cookie.return_value = "issued-cookie"

        response = mock_client.post("/api/auth/login", headers={"Authorization": "Bearer id-token"})

        assert response.status_code == 200
        assert set_cookie_value(response) == "issued-cookie"
        mock_provider.create_session_cookie.assert_called_once_with("id-token", expires_in=SESSION_DURATION)

    @pytest.mark.parametrize(
        "headers",
        [
            {},
            {"Authorization": ""},
            {"Authorization": "Basic dXNlcjpwYXNz"},
            {"Authorization": "Bearer"},
            {"Authorization": "Bearer a b"},
        ],
    )
    def test_login_without_bearer_token_is_unauthorized(self, mock_client, mock_provider, headers):
        response = mock_client.post("/api/auth/login", headers=headers)

        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}
        assert "set-cookie" not in response.headers
        mock_provider.create_session_cookie.assert_not_called()

    def test_bearer_scheme_is_case_insensitive(self, mock_client, mock_provider):
        mock_provider.create_session_cookie.return_value = "issued-cookie"

        response = mock_client.post("/api/auth/login", headers={"Authorization": "bearer id-token"})

        assert response.status_code == 200

    def test_rejected_id_token_is_internal_error(self, client):
        response = client.post("/api/auth/login", headers={"Authorization": "Bearer not-a-token"})

        assert response.status_code == 500
        assert response.json() == {"error": "Internal Server Error"}
        assert "set-cookie" not in response.headers

    def test_provider_failure_is_internal_error(self, mock_client, mock_provider):
        mock_provider.create_session_cookie.side_effect = IdentityProviderError("upstream down")

        response = mock_client.post("/api/auth/login", headers={"Authorization": "Bearer id-token"})

        assert response.status_code == 500
        assert response.json() == {"error": "Internal Server Error"}


class TestLogout:
    def test_logout_without_cookie_clears_cookie(self, mock_client, mock_provider):
        response = mock_client.post("/api/auth/logout")

        assert response.status_code == 200
        assert response.json() == {"status": "success"}
        header = set_cookie_header(response)
        assert header.startswith("__session=")
        assert "Max-Age=0" in header
        mock_provider.revoke_refresh_tokens.assert_not_called()

    def test_logout_revokes_subject(self, client, identity_provider, auth_headers):
        response = client.post("/api/auth/logout", headers=auth_headers)

        assert response.status_code == 200
        assert "Max-Age=0" in set_cookie_header(response)

        # The old credential no longer opens the admin area
        again = client.get("/admin01", headers=auth_headers, follow_redirects=False)
        assert again.status_code == 307

    def test_logout_verifies_without_revocation_check(self, mock_client, mock_provider):
        mock_provider.verify_session_cookie.return_value = {"sub": "user-1"}

        mock_client.post("/api/auth/logout", headers=cookie_header("cookie-value"))

        mock_provider.verify_session_cookie.assert_called_once_with("cookie-value")
        mock_provider.revoke_refresh_tokens.assert_called_once_with("user-1")

    def test_logout_with_invalid_cookie_still_succeeds(self, mock_client, mock_provider):
        mock_provider.verify_session_cookie.side_effect = IdentityProviderError("expired")

        response = mock_client.post("/api/auth/logout", headers=cookie_header("expired-cookie"))

        assert response.status_code == 200
        assert response.json() == {"status": "success"}
        assert "Max-Age=0" in set_cookie_header(response)
        mock_provider.revoke_refresh_tokens.assert_not_called()

    def test_logout_revocation_failure_still_succeeds(self, mock_client, mock_provider):
        mock_provider.verify_session_cookie.return_value = {"sub": "user-1"}
        mock_provider.revoke_refresh_tokens.side_effect = IdentityProviderError("upstream down")

        response = mock_client.post("/api/auth/logout", headers=cookie_header("cookie-value"))

        assert response.status_code == 200
        assert "Max-Age=0" in set_cookie_header(response)

    def test_logout_is_idempotent(self, client, auth_headers):
        first = client.post("/api/auth/logout", headers=auth_headers)
        second = client.post("/api/auth/logout", headers=auth_headers)

        assert first.status_code == second.status_code == 200


class TestExchangeRouting:
    @pytest.mark.parametrize("route", ["refresh", "session", "LOGIN"])
    def test_unknown_route_is_not_found(self, client, route):
        response = client.post(f"/api/auth/{route}")

        assert response.status_code == 404
        assert response.json() == {"error": "Not Found"}

    def test_only_post_is_accepted(self, client):
        assert client.get("/api/auth/login").status_code == 405

    def test_missing_provider_is_internal_error(self, mock_settings, content_store, media_store, categorizer):
        app = create_app(
            settings=mock_settings,
            identity_provider=None,
            content_store=content_store,
            media_store=media_store,
            categorizer=categorizer,
        )
        client = TestClient(app)

        for route in ("login", "logout"):
            response = client.post(f"/api/auth/{route}", headers={"Authorization": "Bearer id-token"})
            assert response.status_code == 500
            assert response.json() == {"error": "Identity provider not initialized"}
