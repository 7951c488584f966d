"""Tests for the completion client."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import anthropic
import httpx
import pytest

from lifeos.llm.client import LLMError, complete_json, complete_text
from lifeos.llm.models import MODEL_MAP

GROQ_URL = "https://api.groq.com/openai/v1/chat/completions"


def _mock_httpx_client(mock_client_cls: MagicMock, response: httpx.Response) -> AsyncMock:
    """Wire up an AsyncClient context-manager mock that returns *response*."""
    mock_client = AsyncMock()
    mock_client.post.return_value = response
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    mock_client_cls.return_value = mock_client
    return mock_client


def _groq_response(content: str | None, status_code: int = 200) -> httpx.Response:
    return httpx.Response(
        status_code=status_code,
        json={"choices": [{"message": {"role": "assistant", "content": content}}]},
        request=httpx.Request("POST", GROQ_URL),
    )


@pytest.fixture
def mock_settings():
    with patch("lifeos.llm.client.settings") as s:
        s.groq_api_key = "test-groq-key"
        s.groq_api_url = GROQ_URL
        s.llm_temperature = 0.3
        s.llm_max_tokens = 1024
        s.llm_timeout_seconds = 5.0
        yield s


# -- Groq -------------------------------------------------------------------------


async def test_groq_request_shape(mock_settings) -> None:
    resp = _groq_response('{"action": "CHAT"}')
    with patch("lifeos.llm.client.httpx.AsyncClient") as mock_cls:
        mock_client = _mock_httpx_client(mock_cls, resp)
        text = await complete_json(
            [{"role": "user", "content": "hi"}], system="SYS", model=MODEL_MAP["llama-70b"]
        )

    assert text == '{"action": "CHAT"}'
    args, kwargs = mock_client.post.call_args
    assert args[0] == GROQ_URL
    assert kwargs["headers"]["Authorization"] == "Bearer test-groq-key"
    body = kwargs["json"]
    assert body["model"] == "llama-3.3-70b-versatile"
    assert body["messages"][0] == {"role": "system", "content": "SYS"}
    assert body["messages"][1] == {"role": "user", "content": "hi"}
    assert body["response_format"] == {"type": "json_object"}
    assert body["temperature"] == 0.3
    assert body["max_tokens"] == 1024


async def test_groq_error_status_raises(mock_settings) -> None:
    resp = httpx.Response(status_code=429, text="rate limited", request=httpx.Request("POST", GROQ_URL))
    with patch("lifeos.llm.client.httpx.AsyncClient") as mock_cls:
        _mock_httpx_client(mock_cls, resp)
        with pytest.raises(LLMError, match="429"):
            await complete_json([], system="", model=MODEL_MAP["llama-8b"])


async def test_groq_empty_content_returns_empty_object(mock_settings) -> None:
    with patch("lifeos.llm.client.httpx.AsyncClient") as mock_cls:
        _mock_httpx_client(mock_cls, _groq_response(None))
        assert await complete_json([], system="", model=MODEL_MAP["llama-8b"]) == "{}"


async def test_groq_unexpected_payload_raises(mock_settings) -> None:
    resp = httpx.Response(status_code=200, json={"oops": True}, request=httpx.Request("POST", GROQ_URL))
    with patch("lifeos.llm.client.httpx.AsyncClient") as mock_cls:
        _mock_httpx_client(mock_cls, resp)
        with pytest.raises(LLMError):
            await complete_json([], system="", model=MODEL_MAP["llama-8b"])


async def test_timeout_raises(mock_settings) -> None:
    mock_settings.llm_timeout_seconds = 0.01

    async def slow_post(*args, **kwargs):
        await asyncio.sleep(1)

    with patch("lifeos.llm.client.httpx.AsyncClient") as mock_cls:
        mock_client = _mock_httpx_client(mock_cls, _groq_response("{}"))
        mock_client.post.side_effect = slow_post
        with pytest.raises(TimeoutError):
            await complete_json([], system="", model=MODEL_MAP["llama-8b"])


# -- Claude -----------------------------------------------------------------------


async def test_claude_path(mock_settings) -> None:
    client = MagicMock()
    client.messages.create = AsyncMock(
        return_value=SimpleNamespace(content=[SimpleNamespace(type="text", text='{"action": "CHAT"}')])
    )
    with patch("lifeos.llm.client._get_client", return_value=client):
        text = await complete_json([{"role": "user", "content": "hi"}], system="SYS", model=MODEL_MAP["haiku"])

    assert text == '{"action": "CHAT"}'
    kwargs = client.messages.create.call_args.kwargs
    assert kwargs["system"] == "SYS"
    assert kwargs["model"] == MODEL_MAP["haiku"]
    assert kwargs["messages"] == [{"role": "user", "content": "hi"}]


async def test_claude_status_error_becomes_llm_error(mock_settings) -> None:
    request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    error = anthropic.APIStatusError(
        "overloaded", response=httpx.Response(529, request=request), body=None
    )
    client = MagicMock()
    client.messages.create = AsyncMock(side_effect=error)
    with patch("lifeos.llm.client._get_client", return_value=client):
        with pytest.raises(LLMError, match="529"):
            await complete_json([], system="", model=MODEL_MAP["sonnet"])


# -- plain text -------------------------------------------------------------------


async def test_text_completion_skips_json_mode(mock_settings) -> None:
    with patch("lifeos.llm.client.httpx.AsyncClient") as mock_cls:
        mock_client = _mock_httpx_client(mock_cls, _groq_response("\n## Packing\n- [ ] passport\n"))
        text = await complete_text(
            [{"role": "user", "content": "add a list"}],
            system="SYS",
            model=MODEL_MAP["llama-8b"],
            temperature=0.5,
            max_tokens=2048,
        )

    assert text == "## Packing\n- [ ] passport"
    body = mock_client.post.call_args.kwargs["json"]
    assert "response_format" not in body
    assert body["temperature"] == 0.5
    assert body["max_tokens"] == 2048


async def test_text_completion_empty_content(mock_settings) -> None:
    with patch("lifeos.llm.client.httpx.AsyncClient") as mock_cls:
        _mock_httpx_client(mock_cls, _groq_response(None))
        assert await complete_text([], system="", model=MODEL_MAP["llama-8b"]) == ""


async def test_text_completion_claude_without_text_block(mock_settings) -> None:
    client = MagicMock()
    client.messages.create = AsyncMock(return_value=SimpleNamespace(content=[]))
    with patch("lifeos.llm.client._get_client", return_value=client):
        assert await complete_text([], system="", model=MODEL_MAP["haiku"]) == ""
