"""Remote call adapter: the transport both flows share.

One operation, `invoke(endpoint_name, payload)`, POSTs a JSON payload to
`{functions_url}/{endpoint_name}` and returns the decoded JSON object. Every
transport or decoding failure becomes a RemoteError. There are no retries:
fallback policy belongs to StoryGenerator and SubmissionJudge.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from symbal.config import Settings

logger = logging.getLogger(__name__)

GENERATE_STORY = "generate-story"
JUDGE_SUBMISSION = "judge-submission"


class Remote(Protocol):
    async def invoke(self, endpoint_name: str, payload: dict[str, Any]) -> dict[str, Any]: ...


class RemoteClient:
    """Async HTTP client for the remote function service.

    Args:
        functions_url: Base URL, e.g. "http://localhost:13013/functions".
        api_key:       Bearer token, or empty string if not required.
        timeout:       Client-side timeout in seconds. Defaults to 15.
    """

    def __init__(self, functions_url: str, api_key: str = "", timeout: float = 15.0) -> None:
        self._base_url = functions_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> RemoteClient:
        return cls(
            functions_url=settings.functions_url,
            api_key=settings.functions_key,
            timeout=settings.request_timeout,
        )

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def invoke(self, endpoint_name: str, payload: dict[str, Any]) -> dict[str, Any]:
        url = f"{self._base_url}/{endpoint_name}"
        logger.debug("remote call endpoint=%s keys=%s", endpoint_name, sorted(payload))

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(url, json=payload, headers=self._headers())
                resp.raise_for_status()
        except httpx.ConnectError as e:
            raise RemoteError(f"Cannot connect to remote service at {self._base_url}") from e
        except httpx.HTTPStatusError as e:
            raise RemoteError(
                f"Remote service returned HTTP {e.response.status_code}"
            ) from e
        except httpx.TimeoutException as e:
            raise RemoteError(f"Remote service timed out after {self._timeout}s") from e
        except httpx.RequestError as e:
            raise RemoteError(f"Remote request failed: {e}") from e

        try:
            data = resp.json()
        except ValueError as e:
            raise RemoteError("Remote service returned invalid JSON") from e
        if not isinstance(data, dict):
            raise RemoteError(
                f"Remote service returned {type(data).__name__}, expected an object"
            )

        logger.debug("remote response endpoint=%s success=%r", endpoint_name, data.get("success"))
        return data


class RemoteError(RuntimeError):
    """Raised when the remote service cannot be reached or returns garbage."""
