"""Tests for symbal.llm — GeminiLLM."""

import pytest
import httpx
from unittest.mock import AsyncMock, MagicMock, patch

from symbal.config import Settings
from symbal.llm import GeminiLLM, LLMError


def _mock_response(body: dict, status: int = 200) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.json.return_value = body
    resp.raise_for_status = MagicMock(
        side_effect=None if status < 400 else httpx.HTTPStatusError(
            "", request=MagicMock(), response=resp
        )
    )
    return resp


def _gemini_body(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


class TestGeminiLLM:
    @pytest.fixture
    def llm(self) -> GeminiLLM:
        return GeminiLLM(base_url="http://gemini.test", api_key="secret")

    async def test_happy_path(self, llm: GeminiLLM) -> None:
        mock_post = AsyncMock(return_value=_mock_response(_gemini_body('{"title": "Hi"}')))
        with patch("httpx.AsyncClient.post", mock_post):
            result = await llm("story", "Make a story.")
        assert result == '{"title": "Hi"}'

    async def test_posts_to_model_url(self, llm: GeminiLLM) -> None:
        mock_post = AsyncMock(return_value=_mock_response(_gemini_body("ok")))
        with patch("httpx.AsyncClient.post", mock_post):
            await llm("story", "prompt")
        url = mock_post.call_args[0][0]
        assert url == "http://gemini.test/v1beta/models/gemini-1.5-flash:generateContent"

    async def test_api_key_sent_as_query_param(self, llm: GeminiLLM) -> None:
        mock_post = AsyncMock(return_value=_mock_response(_gemini_body("ok")))
        with patch("httpx.AsyncClient.post", mock_post):
            await llm("story", "prompt")
        assert mock_post.call_args.kwargs["params"] == {"key": "secret"}

    async def test_no_key_param_without_api_key(self) -> None:
        llm = GeminiLLM(base_url="http://gemini.test/")
        mock_post = AsyncMock(return_value=_mock_response(_gemini_body("ok")))
        with patch("httpx.AsyncClient.post", mock_post):
            await llm("story", "prompt")
        assert mock_post.call_args.kwargs["params"] == {}
        assert mock_post.call_args[0][0].startswith("http://gemini.test/v1beta/")

    async def test_text_only_body(self, llm: GeminiLLM) -> None:
        mock_post = AsyncMock(return_value=_mock_response(_gemini_body("ok")))
        with patch("httpx.AsyncClient.post", mock_post):
            await llm("judge_text", "my prompt")
        sent = mock_post.call_args.kwargs["json"]
        assert sent == {"contents": [{"parts": [{"text": "my prompt"}]}]}

    async def test_image_sent_inline(self, llm: GeminiLLM) -> None:
        mock_post = AsyncMock(return_value=_mock_response(_gemini_body("ok")))
        with patch("httpx.AsyncClient.post", mock_post):
            await llm("judge_image", "judge this", image=("image/png", "iVBORw0KGgo="))
        parts = mock_post.call_args.kwargs["json"]["contents"][0]["parts"]
        assert parts[0] == {"text": "judge this"}
        assert parts[1] == {"inline_data": {"mime_type": "image/png", "data": "iVBORw0KGgo="}}

    async def test_multiple_parts_joined(self, llm: GeminiLLM) -> None:
        body = {"candidates": [{"content": {"parts": [{"text": "{\"a\":"}, {"text": " 1}"}]}}]}
        mock_post = AsyncMock(return_value=_mock_response(body))
        with patch("httpx.AsyncClient.post", mock_post):
            assert await llm("story", "p") == '{"a": 1}'

    async def test_connect_error_raises_llm_error(self, llm: GeminiLLM) -> None:
        mock_post = AsyncMock(side_effect=httpx.ConnectError("refused"))
        with patch("httpx.AsyncClient.post", mock_post):
            with pytest.raises(LLMError, match="Cannot connect"):
                await llm("story", "prompt")

    async def test_timeout_raises_llm_error(self, llm: GeminiLLM) -> None:
        mock_post = AsyncMock(side_effect=httpx.TimeoutException("timeout"))
        with patch("httpx.AsyncClient.post", mock_post):
            with pytest.raises(LLMError, match="timed out"):
                await llm("story", "prompt")

    async def test_http_error_raises_llm_error(self, llm: GeminiLLM) -> None:
        mock_post = AsyncMock(return_value=_mock_response({}, status=429))
        with patch("httpx.AsyncClient.post", mock_post):
            with pytest.raises(LLMError, match="HTTP 429"):
                await llm("story", "prompt")

    @pytest.mark.parametrize("body", [
        {"unexpected": "format"},
        {"candidates": []},
        {"candidates": [{"content": {"parts": []}}]},
        {"candidates": [{"finishReason": "SAFETY"}]},
        {"candidates": ["oops"]},
        {"candidates": "oops"},
        {"candidates": [{"content": "oops"}]},
        {"candidates": [{"content": {"parts": "oops"}}]},
        {"candidates": [{"content": {"parts": [{"text": 42}]}}]},
        ["not", "an", "object"],
    ])
    async def test_malformed_response_raises_llm_error(self, llm: GeminiLLM, body) -> None:
        mock_post = AsyncMock(return_value=_mock_response(body))
        with patch("httpx.AsyncClient.post", mock_post):
            with pytest.raises(LLMError, match="Unexpected response format"):
                await llm("story", "prompt")

    @pytest.mark.parametrize("error", [
        httpx.ReadError("connection reset"),
        httpx.RemoteProtocolError("server disconnected"),
        httpx.WriteError("broken pipe"),
    ])
    async def test_other_transport_errors_raise_llm_error(self, llm: GeminiLLM, error) -> None:
        with patch("httpx.AsyncClient.post", AsyncMock(side_effect=error)):
            with pytest.raises(LLMError, match="LLM request failed"):
                await llm("story", "prompt")

    async def test_invalid_json_raises_llm_error(self, llm: GeminiLLM) -> None:
        resp = _mock_response({})
        resp.json.side_effect = ValueError("Expecting value")
        with patch("httpx.AsyncClient.post", AsyncMock(return_value=resp)):
            with pytest.raises(LLMError, match="invalid JSON"):
                await llm("story", "prompt")


def test_from_settings() -> None:
    settings = Settings(llm_base_url="http://x.test", llm_api_key="k", llm_model="gemini-pro", llm_timeout=5)
    llm = GeminiLLM.from_settings(settings)
    assert llm._base_url == "http://x.test"
    assert llm._model == "gemini-pro"
    assert llm._timeout == 5
