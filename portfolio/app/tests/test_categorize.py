"""
Categorization tests: reply parsing, the Gemini client and the admin route.
"""

import json

import httpx
import pytest
from fastapi.testclient import TestClient

from portfolio.app.ai.categorize import (
    CategorizationError,
    ContentCategorizer,
    build_prompt,
    extract_json,
    normalize_tags,
)
from portfolio.app.main import create_app


def gemini_reply(text: str) -> dict:
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}


def categorizer_for(handler, api_key="test-gemini-key") -> ContentCategorizer:
    return ContentCategorizer(
        api_key=api_key,
        model="gemini-test",
        api_base="https://gemini.test/v1beta/",
        transport=httpx.MockTransport(handler),
    )


class TestExtractJson:
    def test_plain_object(self):
        assert extract_json('{"suggestedTags": ["Technology"]}') == {"suggestedTags": ["Technology"]}

    def test_code_fence(self):
        assert extract_json('```json\n{"suggestedTags": ["Original"]}\n```') == {"suggestedTags": ["Original"]}

    def test_surrounding_prose(self):
        text = 'Sure! Here you go: {"suggestedTags": ["Repost", "Domestic"]} Let me know.'

        assert extract_json(text) == {"suggestedTags": ["Repost", "Domestic"]}

    def test_braces_inside_strings(self):
        text = 'Result: {"note": "uses } and {", "tags": ["Technology"]}'

        assert extract_json(text) == {"note": "uses } and {", "tags": ["Technology"]}

    def test_bare_array(self):
        assert extract_json('Tags: ["Technology", "Government"]') == ["Technology", "Government"]

    @pytest.mark.parametrize("text", ["", "no json here", "{broken"])
    def test_unparseable(self, text):
        assert extract_json(text) is None


class TestNormalizeTags:
    def test_keeps_vocabulary_only(self):
        assert normalize_tags({"suggestedTags": ["Technology", "Sports", "Original"]}) == ["Technology", "Original"]

    def test_case_insensitive_and_deduplicated(self):
        assert normalize_tags(["technology", " TECHNOLOGY ", "qualitative"]) == ["Technology", "Qualitative"]

    def test_accepts_tags_key(self):
        assert normalize_tags({"tags": ["Government"]}) == ["Government"]

    def test_empty_list_is_valid(self):
        assert normalize_tags({"suggestedTags": []}) == []

    @pytest.mark.parametrize("parsed", [{"other": []}, "Technology", 42, None])
    def test_rejects_non_lists(self, parsed):
        with pytest.raises(CategorizationError):
            normalize_tags(parsed)


def test_prompt_lists_vocabulary():
    prompt = build_prompt("A title", "A body")

    assert "A title" in prompt
    assert "A body" in prompt
    assert "Quantitative" in prompt
    assert '{"suggestedTags": ["..."]}' in prompt


class TestContentCategorizer:
    @pytest.mark.asyncio
    async def test_request_shape(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["key"] = request.headers.get("x-goog-api-key")
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json=gemini_reply('{"suggestedTags": ["Technology"]}'))

        tags = await categorizer_for(handler).categorize("Title", "Body")

        assert tags == ["Technology"]
        assert captured["url"] == "https://gemini.test/v1beta/models/gemini-test:generateContent"
        assert captured["key"] == "test-gemini-key"
        assert captured["body"]["generationConfig"]["responseMimeType"] == "application/json"
        assert "Title" in captured["body"]["contents"][0]["parts"][0]["text"]

    @pytest.mark.asyncio
    async def test_reply_split_across_parts(self):
        def handler(request):
            reply = {"candidates": [{"content": {"parts": [{"text": '{"suggestedTags": '}, {"text": '["Repost"]}'}]}}]}
            return httpx.Response(200, json=reply)

        assert await categorizer_for(handler).categorize("t", "b") == ["Repost"]

    @pytest.mark.asyncio
    async def test_missing_api_key(self):
        def handler(request):
            raise AssertionError("no request expected")

        with pytest.raises(CategorizationError):
            await categorizer_for(handler, api_key=None).categorize("t", "b")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(500, json={"error": {"message": "boom"}}),
            httpx.Response(429, json={"error": {"message": "quota"}}),
            httpx.Response(200, json={"candidates": []}),
            httpx.Response(200, json=gemini_reply("I cannot help with that.")),
            httpx.Response(200, text="not json"),
        ],
    )
    async def test_unusable_responses(self, response):
        with pytest.raises(CategorizationError):
            await categorizer_for(lambda request: response).categorize("t", "b")

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(CategorizationError):
            await categorizer_for(handler).categorize("t", "b")

    @pytest.mark.asyncio
    async def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(CategorizationError):
            await categorizer_for(handler).categorize("t", "b")


class TestCategorizeRoute:
    def test_requires_session(self, client):
        response = client.post("/api/admin/categorize", json={"title": "t", "body": "b"})

        assert response.status_code == 401

    def test_suggested_tags(self, client, auth_headers):
        response = client.post("/api/admin/categorize", json={"title": "t", "body": "b"}, headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["suggestedTags"] == ["Technology", "Original"]

    def test_validation(self, client, auth_headers):
        response = client.post("/api/admin/categorize", json={"title": "", "body": "b"}, headers=auth_headers)

        assert response.status_code == 422

    def test_failure_is_bad_gateway(self, mock_settings, identity_provider, content_store, media_store, auth_headers):
        failing = categorizer_for(lambda request: httpx.Response(503, json={}))
        client = TestClient(
            create_app(
                settings=mock_settings,
                identity_provider=identity_provider,
                content_store=content_store,
                media_store=media_store,
                categorizer=failing,
            )
        )

        response = client.post("/api/admin/categorize", json={"title": "t", "body": "b"}, headers=auth_headers)

        assert response.status_code == 502
        assert response.json() == {
            "suggestedTags": [],
            "error": "Failed to categorize content. Please try again.",
        }
