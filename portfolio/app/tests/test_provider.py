"""
Identity provider tests: the local HS256 backend and the Firebase wrapper.
"""

from datetime import timedelta
from unittest.mock import Mock, patch

import jwt
import pytest
from firebase_admin import exceptions as firebase_exceptions

from portfolio.app.auth.provider import (
    FirebaseIdentityProvider,
    IdentityProviderError,
    LocalIdentityProvider,
    init_identity_provider,
    reset_identity_provider,
)
from portfolio.app.auth.session import SESSION_DURATION
from portfolio.app.config import Settings

TEST_SECRET = "provider-test-secret-0123456789abcdefgh"


@pytest.fixture
def provider():
    return LocalIdentityProvider(secret=TEST_SECRET)


def _login(provider, uid="user-1", **claims):
    id_token = provider.issue_identity_token(uid, **claims)
    return provider.create_session_cookie(id_token, expires_in=SESSION_DURATION)


class TestLocalIdentityProvider:
    def test_session_round_trip(self, provider):
        cookie = _login(provider, email="a@example.com", name="Ada")

        decoded = provider.verify_session_cookie(cookie)

        assert decoded["sub"] == "user-1"
        assert decoded["uid"] == "user-1"
        assert decoded["email"] == "a@example.com"
        assert decoded["name"] == "Ada"
        assert decoded["exp"] - decoded["iat"] == int(SESSION_DURATION.total_seconds())

    def test_revocation_rejects_earlier_credentials(self, provider):
        cookie = _login(provider)

        provider.revoke_refresh_tokens("user-1")

        with pytest.raises(IdentityProviderError):
            provider.verify_session_cookie(cookie, check_revoked=True)
        # Signature and expiry are still valid
        assert provider.verify_session_cookie(cookie, check_revoked=False)["sub"] == "user-1"

    def test_revocation_is_per_subject(self, provider):
        other = _login(provider, uid="user-2")

        provider.revoke_refresh_tokens("user-1")

        assert provider.verify_session_cookie(other, check_revoked=True)["sub"] == "user-2"

    def test_login_after_revocation_succeeds(self, provider):
        _login(provider)
        provider.revoke_refresh_tokens("user-1")

        fresh = _login(provider)

        assert provider.verify_session_cookie(fresh, check_revoked=True)["sub"] == "user-1"

    def test_revoked_identity_token_cannot_create_session(self, provider):
        id_token = provider.issue_identity_token("user-1")
        provider.revoke_refresh_tokens("user-1")

        with pytest.raises(IdentityProviderError):
            provider.create_session_cookie(id_token, expires_in=SESSION_DURATION)

    def test_identity_token_is_not_a_session(self, provider):
        id_token = provider.issue_identity_token("user-1")

        with pytest.raises(IdentityProviderError):
            provider.verify_session_cookie(id_token)

    def test_session_is_not_an_identity_token(self, provider):
        cookie = _login(provider)

        with pytest.raises(IdentityProviderError):
            provider.create_session_cookie(cookie, expires_in=SESSION_DURATION)

    def test_expired_identity_token_rejected(self, provider):
        id_token = provider.issue_identity_token("user-1", expires_in=timedelta(minutes=-1))

        with pytest.raises(IdentityProviderError):
            provider.create_session_cookie(id_token, expires_in=SESSION_DURATION)

    def test_foreign_signature_rejected(self, provider):
        forged = LocalIdentityProvider(secret="another-secret-that-is-long-enough-000")
        cookie = _login(forged)

        with pytest.raises(IdentityProviderError):
            provider.verify_session_cookie(cookie)

    def test_garbage_rejected(self, provider):
        with pytest.raises(IdentityProviderError):
            provider.verify_session_cookie("not-a-jwt")

    @pytest.mark.parametrize("duration", [timedelta(minutes=4), timedelta(days=15)])
    def test_session_duration_bounds(self, provider, duration):
        id_token = provider.issue_identity_token("user-1")

        with pytest.raises(IdentityProviderError):
            provider.create_session_cookie(id_token, expires_in=duration)

    def test_session_cookie_is_hs256_jwt(self, provider):
        cookie = _login(provider)

        assert jwt.get_unverified_header(cookie)["alg"] == "HS256"

    def test_requires_secret(self):
        with pytest.raises(IdentityProviderError):
            LocalIdentityProvider(secret="")

    def test_revoke_requires_subject(self, provider):
        with pytest.raises(IdentityProviderError):
            provider.revoke_refresh_tokens("")


class TestFirebaseIdentityProvider:
    @pytest.fixture
    def firebase_auth(self):
        with patch("portfolio.app.auth.provider.firebase_auth") as mocked:
            yield mocked

    def test_create_session_cookie_decodes_bytes(self, firebase_auth):
        firebase_auth.create_session_cookie.return_value = b"cookie-value"
        provider = FirebaseIdentityProvider(app=Mock())

        assert provider.create_session_cookie("id-token", SESSION_DURATION) == "cookie-value"
        firebase_auth.create_session_cookie.assert_called_once_with(
            "id-token", expires_in=SESSION_DURATION, app=provider._app
        )

    def test_verify_forwards_check_revoked(self, firebase_auth):
        firebase_auth.verify_session_cookie.return_value = {"sub": "u", "uid": "u"}
        provider = FirebaseIdentityProvider(app=Mock())

        assert provider.verify_session_cookie("cookie", check_revoked=True) == {"sub": "u", "uid": "u"}
        firebase_auth.verify_session_cookie.assert_called_once_with(
            "cookie", check_revoked=True, app=provider._app
        )

    def test_sdk_errors_are_wrapped(self, firebase_auth):
        firebase_auth.verify_session_cookie.side_effect = firebase_exceptions.UnauthenticatedError("revoked")
        firebase_auth.create_session_cookie.side_effect = ValueError("bad token")
        firebase_auth.revoke_refresh_tokens.side_effect = firebase_exceptions.NotFoundError("no user")
        provider = FirebaseIdentityProvider(app=Mock())

        with pytest.raises(IdentityProviderError):
            provider.verify_session_cookie("cookie")
        with pytest.raises(IdentityProviderError):
            provider.create_session_cookie("id-token", SESSION_DURATION)
        with pytest.raises(IdentityProviderError):
            provider.revoke_refresh_tokens("uid")


class TestProcessWideProvider:
    @pytest.fixture(autouse=True)
    def reset(self):
        reset_identity_provider()
        yield
        reset_identity_provider()

    def test_init_is_idempotent(self):
        settings = Settings(_env_file=None, IDENTITY_PROVIDER="local", LOCAL_IDENTITY_SECRET=TEST_SECRET)

        first = init_identity_provider(settings)
        second = init_identity_provider(settings)

        assert isinstance(first, LocalIdentityProvider)
        assert first is second

    def test_firebase_init_failure_is_wrapped(self):
        settings = Settings(_env_file=None, IDENTITY_PROVIDER="firebase")

        with patch("portfolio.app.auth.provider.init_firebase_app", side_effect=ValueError("no credentials")):
            with pytest.raises(IdentityProviderError):
                init_identity_provider(settings)
