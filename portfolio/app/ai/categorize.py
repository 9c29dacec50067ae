"""
AI-assisted content categorization.

Sends a content title and body to Gemini (generateContent REST API) and
returns suggested tags from the site's fixed vocabulary. Model replies are
parsed defensively: code fences and surrounding prose are tolerated, and
tags outside the vocabulary are dropped.
"""

import json
import logging
import re
from typing import Any, List, Optional

import httpx

from ..config import Settings
from ..models import TAG_VOCABULARY

logger = logging.getLogger("portfolio.ai.categorize")


PROMPT_TEMPLATE = """You are an expert content categorizer. Given the title and body of a content, you will suggest relevant tags from the following list: {vocabulary}.

Title: {title}
Body: {body}

Please provide the suggested tags as a JSON object of the form {{"suggestedTags": ["..."]}}.
"""


class CategorizationError(Exception):
    """Raised when the model cannot be reached or returns an unusable reply"""
    pass


def build_prompt(title: str, body: str) -> str:
    return PROMPT_TEMPLATE.format(vocabulary=", ".join(TAG_VOCABULARY), title=title, body=body)


def extract_json(text: str) -> Optional[Any]:
    """
    Best-effort extraction of the first JSON object or array in a model reply.
    """
    if not text:
        return None
    t = text.strip()

    # Strip ```json fences if present
    if t.startswith("```"):
        t = re.sub(r"^```[a-zA-Z]*\s*", "", t)
        t = re.sub(r"\s*```$", "", t)
        t = t.strip()

    try:
        return json.loads(t)
    except ValueError:
        pass

    # Fallback: scan for the first balanced object/array substring
    in_str = False
    escape = False
    stack = []
    start = None

    for i, ch in enumerate(t):
        if escape:
            escape = False
            continue
        if ch == "\\":
            escape = True
            continue
        if ch == '"':
            in_str = not in_str
            continue
        if in_str:
            continue

        if ch in "{[":
            if not stack:
                start = i
            stack.append("}" if ch == "{" else "]")
        elif stack and ch == stack[-1]:
            stack.pop()
            if not stack and start is not None:
                try:
                    return json.loads(t[start : i + 1])
                except ValueError:
                    start = None
    return None


def normalize_tags(parsed: Any) -> List[str]:
    """
    Keep vocabulary tags only, case-insensitively, deduplicated in reply order.

    Accepts {"suggestedTags": [...]}, {"tags": [...]} or a bare list.
    """
    if isinstance(parsed, dict):
        parsed = parsed.get("suggestedTags", parsed.get("tags"))
    if not isinstance(parsed, list):
        raise CategorizationError("Model reply does not contain a tag list")

    canonical = {tag.lower(): tag for tag in TAG_VOCABULARY}
    tags: List[str] = []
    for item in parsed:
        tag = canonical.get(str(item).strip().lower())
        if tag and tag not in tags:
            tags.append(tag)
    return tags


class ContentCategorizer:
    """
    Gemini-backed tag suggester.

    Args:
        api_key: Gemini API key; calls fail with CategorizationError when missing
        model: Model name, e.g. gemini-2.5-flash
        api_base: Base URL of the Generative Language API
        timeout: Request timeout in seconds
        transport: Optional httpx transport (tests use httpx.MockTransport)
    """

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gemini-2.5-flash",
        api_base: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._api_key = api_key
        self._model = model
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "ContentCategorizer":
        return cls(
            api_key=settings.GEMINI_API_KEY,
            model=settings.GEMINI_MODEL,
            api_base=settings.GEMINI_API_BASE,
            timeout=settings.LLM_TIMEOUT_SECONDS,
        )

    async def categorize(self, title: str, body: str) -> List[str]:
        """
        Suggest tags for a piece of content.

        Raises:
            CategorizationError: On missing configuration, HTTP failure or an
                unusable reply
        """
        if not self._api_key:
            raise CategorizationError("GEMINI_API_KEY is not configured")

        url = f"{self._api_base}/models/{self._model}:generateContent"
        payload = {
            "contents": [{"role": "user", "parts": [{"text": build_prompt(title, body)}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "temperature": 0.2,
            },
        }

        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self._timeout) as client:
                response = await client.post(
                    url,
                    json=payload,
                    headers={"x-goog-api-key": self._api_key},
                )
                response.raise_for_status()
                data = response.json()
        except httpx.TimeoutException as e:
            raise CategorizationError(f"Model request timed out: {e}") from e
        except httpx.HTTPStatusError as e:
            raise CategorizationError(f"Model request failed with status {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            raise CategorizationError(f"Model request failed: {e}") from e

        text = _reply_text(data)
        parsed = extract_json(text)
        if parsed is None:
            raise CategorizationError("Model reply is not valid JSON")

        tags = normalize_tags(parsed)
        logger.info("Content categorized", extra={"model": self._model, "tag_count": len(tags)})
        return tags


def _reply_text(data: Any) -> str:
    try:
        parts = data["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError) as e:
        raise CategorizationError("Model reply has no candidates") from e
    return "".join(part.get("text", "") for part in parts if isinstance(part, dict))
