"""Tests for the intent parser."""

import json
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from lifeos.actions.kinds import ActionKind
from lifeos.assistant.parser import FALLBACK_TEXT, intents_from_response, parse, parse_model_json
from lifeos.llm.client import LLMError


def _history(n: int) -> list[dict[str, str]]:
    return [{"role": "user" if i % 2 == 0 else "assistant", "content": f"m{i}"} for i in range(n)]


# -- parse_model_json -------------------------------------------------------------


def test_plain_json() -> None:
    assert parse_model_json('{"action": "CHAT"}') == {"action": "CHAT"}


def test_fenced_json() -> None:
    text = 'Here you go:\n```json\n{"action": "CHAT", "response_text": "hi"}\n```'
    assert parse_model_json(text) == {"action": "CHAT", "response_text": "hi"}


def test_not_json() -> None:
    assert parse_model_json("sorry, I can't") is None
    assert parse_model_json("{broken") is None


def test_json_array_rejected() -> None:
    assert parse_model_json('[{"action": "CHAT"}]') is None


# -- intents_from_response ---------------------------------------------------------


def test_single_form() -> None:
    intents = intents_from_response(
        {"action": "ADD_EXPENSE", "data": {"amount": 50, "category": "Food"}, "response_text": "Logged"}
    )
    assert len(intents) == 1
    assert intents[0].action is ActionKind.ADD_EXPENSE
    assert intents[0].response_text == "Logged"


def test_batch_form_only_first_carries_text() -> None:
    intents = intents_from_response({
        "actions": [
            {"action": "ADD_EXPENSE", "data": {"amount": 50, "category": "Food"}},
            {"action": "COMPLETE_HABIT", "data": {"name": "gym"}},
        ],
        "response_text": "Done both!",
    })
    assert [i.action for i in intents] == [ActionKind.ADD_EXPENSE, ActionKind.COMPLETE_HABIT]
    assert [i.response_text for i in intents] == ["Done both!", ""]


def test_missing_action_falls_back() -> None:
    intents = intents_from_response({"data": {}, "response_text": "hmm"})
    assert len(intents) == 1
    assert intents[0].action is ActionKind.CHAT
    assert intents[0].response_text == FALLBACK_TEXT


def test_batch_without_usable_items_falls_back() -> None:
    intents = intents_from_response({"actions": [{"data": {}}, "junk"]})
    assert intents[0].response_text == FALLBACK_TEXT


# -- parse ------------------------------------------------------------------------


def _patch_model(**kwargs):
    return patch("lifeos.assistant.parser.complete_json", new_callable=AsyncMock, **kwargs)


async def test_parse_sends_window_and_context() -> None:
    reply = json.dumps({"action": "CHAT", "data": {}, "response_text": "Hi!"})
    with _patch_model(return_value=reply) as mock_complete:
        intents = await parse("hello", _history(14), "TASKS: 0 active")

    assert intents[0].action is ActionKind.CHAT
    assert intents[0].response_text == "Hi!"
    messages = mock_complete.call_args.args[0]
    assert len(messages) == 11
    assert messages[0]["content"] == "m4"
    assert messages[-1] == {"role": "user", "content": "hello"}
    system = mock_complete.call_args.kwargs["system"]
    assert "CURRENT APP CONTEXT:\nTASKS: 0 active" in system


async def test_parse_drops_non_conversation_roles() -> None:
    history = [{"role": "system", "content": "x"}, {"role": "assistant", "content": "ok"}]
    with _patch_model(return_value='{"action": "CHAT"}') as mock_complete:
        await parse("hi", history, "")

    assert mock_complete.call_args.args[0] == [
        {"role": "assistant", "content": "ok"},
        {"role": "user", "content": "hi"},
    ]


@pytest.mark.parametrize(
    "error",
    [
        LLMError("Groq API returned 500: boom"),
        TimeoutError(),
        httpx.ConnectError("no route"),
    ],
)
async def test_parse_never_raises(error) -> None:
    with _patch_model(side_effect=error):
        intents = await parse("add 50 for lunch", [], "")

    assert len(intents) == 1
    assert intents[0].action is ActionKind.CHAT
    assert intents[0].response_text == FALLBACK_TEXT


async def test_parse_malformed_json_falls_back() -> None:
    with _patch_model(return_value="I think you spent 50"):
        intents = await parse("add 50 for lunch", [], "")
    assert intents[0].response_text == FALLBACK_TEXT


async def test_parse_expense_without_category_clarifies() -> None:
    reply = json.dumps({"action": "ADD_EXPENSE", "data": {"amount": 500}, "response_text": "Added ৳500!"})
    with _patch_model(return_value=reply):
        intents = await parse("spent 500", [], "")
    assert intents[0].action is ActionKind.CLARIFY
    assert intents[0].response_text == "What category should this expense go under?"


async def test_parse_passes_model() -> None:
    with _patch_model(return_value='{"action": "CHAT"}') as mock_complete:
        await parse("hi", [], "", model="claude-haiku-4-5-20251001")
    assert mock_complete.call_args.kwargs["model"] == "claude-haiku-4-5-20251001"
