"""LLM client — HTTP connection to a text/multimodal generation backend.

The remote service injects an LLM callable matching the protocol:

    async def __call__(self, stage: str, prompt: str, image: Image | None = None) -> str: ...

`stage` identifies which handler is calling ("story", "judge_text",
"judge_image"). The implementation may use it for logging or routing.
`image` is an optional (mime_type, base64_data) pair sent alongside the
prompt for multimodal judging.

Production code constructs a GeminiLLM from Settings. Tests use StubLLM
(defined in the test helpers) instead.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from symbal.config import Settings

logger = logging.getLogger(__name__)

Image = tuple[str, str]


# ---------------------------------------------------------------------------
# Protocol: every LLM implementation must match this signature
# ---------------------------------------------------------------------------

class LLM(Protocol):
    async def __call__(self, stage: str, prompt: str, image: Image | None = None) -> str: ...


# ---------------------------------------------------------------------------
# GeminiLLM: talks to the generateContent REST API
# ---------------------------------------------------------------------------

class GeminiLLM:
    """Async HTTP client for the Gemini generateContent endpoint.

      POST {base_url}/v1beta/models/{model}:generateContent?key=...
           {"contents": [{"parts": [{"text": ...}, {"inline_data": {...}}]}]}
      Response: {"candidates": [{"content": {"parts": [{"text": "..."}]}}]}

    Args:
        base_url: API root, e.g. "https://generativelanguage.googleapis.com".
        api_key:  API key, sent as the `key` query parameter when set.
        model:    Model identifier. Defaults to "gemini-1.5-flash".
        timeout:  HTTP timeout in seconds. Defaults to 8.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        model: str = "gemini-1.5-flash",
        timeout: float = 8.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._model = model
        self._timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> GeminiLLM:
        return cls(
            base_url=settings.llm_base_url,
            api_key=settings.llm_api_key,
            model=settings.llm_model,
            timeout=settings.llm_timeout,
        )

    def _build_request(self, prompt: str, image: Image | None) -> tuple[str, dict, dict]:
        """Return (url, params, body)."""
        url = f"{self._base_url}/v1beta/models/{self._model}:generateContent"
        params = {"key": self._api_key} if self._api_key else {}
        parts: list[dict] = [{"text": prompt}]
        if image is not None:
            mime_type, data = image
            parts.append({"inline_data": {"mime_type": mime_type, "data": data}})
        return url, params, {"contents": [{"parts": parts}]}

    def _parse_response(self, data: Any) -> str:
        """Extract the completion text from the response body."""
        candidates = data.get("candidates") if isinstance(data, dict) else None
        if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
            raise LLMError("Unexpected response format from Gemini backend")
        content = candidates[0].get("content")
        parts = content.get("parts") if isinstance(content, dict) else None
        if not isinstance(parts, list):
            raise LLMError("Unexpected response format from Gemini backend")
        texts = [p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str)]
        if not texts:
            raise LLMError("Unexpected response format from Gemini backend")
        return "".join(texts)

    async def __call__(self, stage: str, prompt: str, image: Image | None = None) -> str:
        url, params, body = self._build_request(prompt, image)
        logger.debug(
            "llm call stage=%s model=%s prompt_len=%d image=%s",
            stage, self._model, len(prompt), image is not None,
        )

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(url, params=params, json=body)
                resp.raise_for_status()
        except httpx.ConnectError as e:
            raise LLMError(f"Cannot connect to LLM backend at {self._base_url}") from e
        except httpx.HTTPStatusError as e:
            raise LLMError(
                f"LLM backend returned HTTP {e.response.status_code}"
            ) from e
        except httpx.TimeoutException as e:
            raise LLMError(f"LLM backend timed out after {self._timeout}s") from e
        except httpx.RequestError as e:
            raise LLMError(f"LLM request failed: {e}") from e

        try:
            data = resp.json()
        except ValueError as e:
            raise LLMError("LLM backend returned invalid JSON") from e

        text = self._parse_response(data)
        logger.debug("llm response stage=%s len=%d", stage, len(text))
        return text


# ---------------------------------------------------------------------------
# LLMError
# ---------------------------------------------------------------------------

class LLMError(RuntimeError):
    """Raised when the LLM backend cannot be reached or returns an error."""
