"""
Shared fixtures: an application wired to the local identity provider and
in-memory stores, so no test touches Firebase or Gemini.
"""

import json

import httpx
import pytest
from fastapi.testclient import TestClient

from portfolio.app.ai.categorize import ContentCategorizer
from portfolio.app.auth.provider import LocalIdentityProvider
from portfolio.app.auth.session import SESSION_DURATION
from portfolio.app.config import Settings
from portfolio.app.content.store import InMemoryContentStore
from portfolio.app.main import create_app
from portfolio.app.media.store import InMemoryMediaStore


TEST_SECRET = "test-local-identity-secret-0123456789abcdef"
TEST_UID = "admin-uid-123"
TEST_EMAIL = "admin@example.com"


def gemini_reply(text: str) -> dict:
    """generateContent response body carrying text as the model's reply."""
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}


@pytest.fixture
def mock_settings():
    return Settings(
        _env_file=None,
        IDENTITY_PROVIDER="local",
        LOCAL_IDENTITY_SECRET=TEST_SECRET,
        CONTENT_STORE="memory",
        GEMINI_API_KEY="test-gemini-key",
        MAX_UPLOAD_BYTES=4096,
    )


@pytest.fixture
def identity_provider():
    return LocalIdentityProvider(secret=TEST_SECRET, issuer="portfolio-local")


@pytest.fixture
def content_store():
    return InMemoryContentStore()


@pytest.fixture
def media_store():
    return InMemoryMediaStore(bucket_name="test-bucket")


@pytest.fixture
def gemini_handler():
    """Default Gemini stub; a test module can override this fixture."""
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=gemini_reply(json.dumps({"suggestedTags": ["Technology", "Original"]})))

    return handler


@pytest.fixture
def categorizer(gemini_handler):
    return ContentCategorizer(
        api_key="test-gemini-key",
        model="gemini-test",
        api_base="https://gemini.test/v1beta",
        transport=httpx.MockTransport(gemini_handler),
    )


@pytest.fixture
def app(mock_settings, identity_provider, content_store, media_store, categorizer):
    return create_app(
        settings=mock_settings,
        identity_provider=identity_provider,
        content_store=content_store,
        media_store=media_store,
        categorizer=categorizer,
    )


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def session_cookie(identity_provider):
    """A valid session credential for TEST_UID."""
    id_token = identity_provider.issue_identity_token(TEST_UID, email=TEST_EMAIL, name="Test Admin")
    return identity_provider.create_session_cookie(id_token, expires_in=SESSION_DURATION)


@pytest.fixture
def auth_headers(session_cookie):
    # TestClient talks plain http and will not replay Secure cookies
    return {"Cookie": f"__session={session_cookie}"}
