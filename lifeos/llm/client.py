"""Single-shot completions from Groq (httpx) or Claude (anthropic SDK).

``complete_json`` drives intent parsing; ``complete_text`` returns free text
(markdown) for note enhancement.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import anthropic
import httpx

from lifeos.config import settings
from lifeos.llm.models import ModelManager, friendly, provider_for

logger = logging.getLogger(__name__)

_client: anthropic.AsyncAnthropic | None = None


class LLMError(Exception):
    """The model endpoint answered with an error or an unusable payload."""


def _get_client() -> anthropic.AsyncAnthropic:
    """Lazily initialize the Anthropic client."""
    global _client  # noqa: PLW0603
    if _client is None:
        _client = anthropic.AsyncAnthropic(api_key=settings.anthropic_api_key)
    return _client


async def _groq_completion(
    messages: list[dict[str, str]],
    *,
    system: str,
    model: str,
    temperature: float,
    max_tokens: int,
    json_mode: bool,
) -> str:
    headers = {
        "Authorization": f"Bearer {settings.groq_api_key}",
        "Content-Type": "application/json",
    }
    body = {
        "model": model,
        "messages": [{"role": "system", "content": system}, *messages],
        "temperature": temperature,
        "max_tokens": max_tokens,
    }
    if json_mode:
        body["response_format"] = {"type": "json_object"}

    async with httpx.AsyncClient(timeout=settings.llm_timeout_seconds) as client:
        resp = await client.post(settings.groq_api_url, headers=headers, json=body)

    if resp.status_code != 200:
        msg = f"Groq API returned {resp.status_code}: {resp.text[:200]}"
        raise LLMError(msg)

    try:
        data = resp.json()
        content = data["choices"][0]["message"].get("content")
    except (ValueError, KeyError, IndexError, TypeError) as exc:
        msg = "Groq API returned an unexpected payload"
        raise LLMError(msg) from exc
    return content or ("{}" if json_mode else "")


async def _claude_completion(
    messages: list[dict[str, str]],
    *,
    system: str,
    model: str,
    temperature: float,
    max_tokens: int,
    json_mode: bool,
) -> str:
    client = _get_client()
    try:
        response = await client.messages.create(
            model=model,
            system=system,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
        )
    except anthropic.APIStatusError as exc:
        msg = f"Anthropic API returned {exc.status_code}"
        raise LLMError(msg) from exc
    for block in response.content:
        if block.type == "text":
            return block.text
    return "{}" if json_mode else ""


async def _complete(
    messages: list[dict[str, str]],
    *,
    system: str,
    model: str | None,
    temperature: float | None,
    max_tokens: int | None,
    json_mode: bool,
) -> str:
    model = model or ModelManager.get().get_chat_model()
    kwargs: dict[str, Any] = {
        "system": system,
        "model": model,
        "temperature": settings.llm_temperature if temperature is None else temperature,
        "max_tokens": max_tokens or settings.llm_max_tokens,
        "json_mode": json_mode,
    }
    call = _claude_completion if provider_for(model) == "anthropic" else _groq_completion

    logger.info(
        "Requesting %s completion from %s (%d messages)",
        "JSON" if json_mode else "text",
        friendly(model),
        len(messages),
    )
    return await asyncio.wait_for(call(messages, **kwargs), timeout=settings.llm_timeout_seconds)


async def complete_json(
    messages: list[dict[str, str]],
    *,
    system: str,
    model: str | None = None,
    temperature: float | None = None,
    max_tokens: int | None = None,
) -> str:
    """One model call that should come back as a single JSON object.

    Returns the raw response text; parsing is the caller's job.  Raises
    ``LLMError`` for error responses, ``TimeoutError`` when the call exceeds
    ``llm_timeout_seconds``, and lets ``httpx.HTTPError`` / anthropic
    connection errors propagate.
    """
    return await _complete(
        messages,
        system=system,
        model=model,
        temperature=temperature,
        max_tokens=max_tokens,
        json_mode=True,
    )


async def complete_text(
    messages: list[dict[str, str]],
    *,
    system: str,
    model: str | None = None,
    temperature: float | None = None,
    max_tokens: int | None = None,
) -> str:
    """Like ``complete_json`` but without JSON mode; returns the text stripped."""
    text = await _complete(
        messages,
        system=system,
        model=model,
        temperature=temperature,
        max_tokens=max_tokens,
        json_mode=False,
    )
    return text.strip()
