"""Text rewrite service clients (OpenAI chat completions, Google Gemini).

Both speak plain HTTP through ``requests`` and translate transport failures
into the ``RewriteError`` family; they never retry.
"""

import json
import os
import re
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

import requests
from loguru import logger

from gdoc_importer.config import (
    DEFAULT_GEMINI_MODEL,
    DEFAULT_OPENAI_MODEL,
    GEMINI_API_URL,
    OPENAI_API_URL,
    REWRITE_MAX_TOKENS,
    REWRITE_TEMPERATURE,
    REWRITE_TIMEOUT,
)
from gdoc_importer.errors import (
    RewriteProviderError,
    RewriteQuotaExceededError,
    RewriteTimeoutError,
)

# Seconds to wait, as quoted in provider error messages ("Please retry in 18.8s").
_RETRY_DELAY_RE = re.compile(r"retry[^\d]*(\d+(?:\.\d+)?)\s*s", re.IGNORECASE)
_CODE_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*\n?(.*?)\n?```\s*$", re.DOTALL)

FAQ_SYSTEM_PROMPT = (
    "You are a JSON formatter. Always return a valid JSON array only, "
    "no markdown, no code blocks."
)

FAQ_PROMPT_TEMPLATE = """\
You are editing FAQ content for a website. Improve clarity, grammar and \
readability of the questions and answers.

Rules:
- Keep questions concise and clear
- Preserve the original meaning and tone
- Do not add or remove blocks or items
- Return ONLY valid JSON, no markdown, no code blocks

Input FAQ data:
{data}

Return a JSON array with the same structure, where each FAQ block has:
- blockIndex: same as input
- title: edited title (or null if not provided)
- items: array of {{ itemIndex: number, question: string, answer: string }}

Return ONLY the JSON array, nothing else:"""


def parse_retry_delay(text: str, retry_after: str | None = None) -> float | None:
    """Seconds until the provider expects the quota to reset, if it says so."""
    if retry_after:
        try:
            return float(retry_after)
        except ValueError:
            pass
    m = _RETRY_DELAY_RE.search(text)
    return float(m.group(1)) if m else None


def parse_faq_response(text: str) -> list[dict[str, Any]]:
    """Parse the JSON returned for a batch FAQ rewrite.

    Tolerates markdown code fences, ``{"faqs": [...]}`` / ``{"data": [...]}``
    wrappers and a single block object.
    """
    text = text.strip()
    m = _CODE_FENCE_RE.match(text)
    if m:
        text = m.group(1).strip()
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        msg = f"Rewrite service returned invalid JSON: {exc}"
        raise RewriteProviderError(msg) from exc

    if isinstance(data, dict):
        for key in ("faqs", "data"):
            if isinstance(data.get(key), list):
                data = data[key]
                break
        else:
            data = [data]
    if not isinstance(data, list):
        msg = f"Rewrite service returned {type(data).__name__}, expected a list"
        raise RewriteProviderError(msg)
    return [entry for entry in data if isinstance(entry, dict)]


class ChatRewriter(ABC):
    """Shared request handling for chat-style text generation services."""

    provider = "chat"

    def __init__(self, *, api_key: str, model: str, timeout: float = REWRITE_TIMEOUT) -> None:
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.sess = requests.Session()

    @abstractmethod
    def _complete(self, system: str, user: str) -> str:
        """Send one system/user exchange and return the generated text."""

    def _post(self, url: str, payload: dict[str, Any], **kwargs: Any) -> dict[str, Any]:
        logger.debug("Calling {} ({}): {!r}", self.provider, self.model, url)
        try:
            r = self.sess.post(url, json=payload, timeout=self.timeout, **kwargs)
        except requests.Timeout as exc:
            msg = f"{self.provider} request timed out after {self.timeout}s"
            raise RewriteTimeoutError(msg) from exc
        except requests.RequestException as exc:
            msg = f"{self.provider} request failed: {exc}"
            raise RewriteProviderError(msg) from exc

        if r.status_code == 429:
            msg = f"{self.provider} quota exceeded: {r.text[:300]}"
            hint = parse_retry_delay(r.text, r.headers.get("Retry-After"))
            raise RewriteQuotaExceededError(msg, reset_hint=hint)
        if not r.ok:
            msg = f"{self.provider} returned HTTP {r.status_code}: {r.text[:300]}"
            raise RewriteProviderError(msg)
        try:
            rv: dict[str, Any] = r.json()
        except ValueError as exc:
            msg = f"{self.provider} returned a non-JSON response"
            raise RewriteProviderError(msg) from exc
        return rv

    def rewrite(self, text: str, instructions: str) -> str:
        """Rewrite text following the instructions."""
        rewritten = self._complete(instructions, text)
        if not rewritten.strip():
            msg = f"{self.provider} returned an empty response"
            raise RewriteProviderError(msg)
        logger.debug("Rewrote {} chars into {} chars", len(text), len(rewritten))
        return rewritten

    def rewrite_faqs(self, blocks: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Rewrite all FAQ blocks in one request."""
        prompt = FAQ_PROMPT_TEMPLATE.format(data=json.dumps(blocks, indent=2, ensure_ascii=False))
        return parse_faq_response(self._complete(FAQ_SYSTEM_PROMPT, prompt))


class OpenAIRewriter(ChatRewriter):
    """OpenAI chat completions endpoint (or any compatible base URL)."""

    provider = "openai"

    def __init__(
        self,
        *,
        api_key: str,
        model: str = DEFAULT_OPENAI_MODEL,
        base_url: str = OPENAI_API_URL,
        timeout: float = REWRITE_TIMEOUT,
    ) -> None:
        super().__init__(api_key=api_key, model=model, timeout=timeout)
        self.base_url = base_url.rstrip("/")
        self.sess.headers["Authorization"] = f"Bearer {api_key}"

    def _complete(self, system: str, user: str) -> str:
        rv = self._post(
            f"{self.base_url}/chat/completions",
            {
                "model": self.model,
                "messages": [
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
                "temperature": REWRITE_TEMPERATURE,
                "max_tokens": REWRITE_MAX_TOKENS,
            },
        )
        try:
            return str(rv["choices"][0]["message"]["content"] or "")
        except (KeyError, IndexError, TypeError) as exc:
            msg = f"Unexpected openai response shape: {str(rv)[:200]}"
            raise RewriteProviderError(msg) from exc


class GeminiRewriter(ChatRewriter):
    """Google Gemini generateContent endpoint."""

    provider = "gemini"

    def __init__(
        self,
        *,
        api_key: str,
        model: str = DEFAULT_GEMINI_MODEL,
        timeout: float = REWRITE_TIMEOUT,
    ) -> None:
        super().__init__(api_key=api_key, model=model, timeout=timeout)

    def _complete(self, system: str, user: str) -> str:
        rv = self._post(
            f"{GEMINI_API_URL}/models/{self.model}:generateContent",
            {
                "systemInstruction": {"parts": [{"text": system}]},
                "contents": [{"role": "user", "parts": [{"text": user}]}],
                "generationConfig": {
                    "temperature": REWRITE_TEMPERATURE,
                    "maxOutputTokens": REWRITE_MAX_TOKENS,
                },
            },
            params={"key": self.api_key},
        )
        try:
            parts = rv["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError) as exc:
            msg = f"Unexpected gemini response shape: {str(rv)[:200]}"
            raise RewriteProviderError(msg) from exc
        return "".join(str(p.get("text", "")) for p in parts if isinstance(p, dict))


def resolve_rewriter(environ: Mapping[str, str] | None = None) -> ChatRewriter | None:
    """Pick a rewrite provider from the environment: OpenAI first, then Gemini."""
    env = os.environ if environ is None else environ
    if env.get("OPENAI_API_KEY"):
        return OpenAIRewriter(
            api_key=env["OPENAI_API_KEY"],
            model=env.get("OPENAI_MODEL") or DEFAULT_OPENAI_MODEL,
            base_url=env.get("OPENAI_BASE_URL") or OPENAI_API_URL,
        )
    if env.get("GOOGLE_AI_API_KEY"):
        return GeminiRewriter(
            api_key=env["GOOGLE_AI_API_KEY"],
            model=env.get("GOOGLE_AI_MODEL") or DEFAULT_GEMINI_MODEL,
        )
    logger.debug("No rewrite provider configured")
    return None
