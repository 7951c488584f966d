"""Tests for the Telegram handlers."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from lifeos.assistant.turn import TurnInProgressError, TurnResult
from lifeos.bot import handlers
from lifeos.bot.handlers import (
    handle_clear,
    handle_enhance,
    handle_message,
    handle_model,
    handle_status,
)
from lifeos.stores.models import Note


@pytest.fixture(autouse=True)
def _allow_all():
    with patch("lifeos.bot.handlers.is_allowed", return_value=True):
        yield
    handlers._reset()


def _update(text: str = "hi", chat_id: int = 7) -> MagicMock:
    update = MagicMock()
    update.effective_chat.id = chat_id
    update.effective_user.id = 111
    update.message.text = text
    update.message.reply_text = AsyncMock()
    return update


def _assistant(**kwargs) -> MagicMock:
    assistant = MagicMock()
    assistant.handle_message = AsyncMock(**kwargs)
    assistant.location = "/"
    assistant.busy = False
    assistant.session.messages = []
    return assistant


async def test_message_reply_includes_notification() -> None:
    assistant = _assistant(return_value=TurnResult("Added 'Call mom'", notification="✅ 1 action applied"))
    update = _update("remind me to call mom")
    with patch("lifeos.bot.handlers.get_assistant", return_value=assistant):
        await handle_message(update, MagicMock())

    assistant.handle_message.assert_awaited_once_with("remind me to call mom")
    update.message.reply_text.assert_awaited_once_with("Added 'Call mom'\n\n✅ 1 action applied")


async def test_message_without_notification() -> None:
    assistant = _assistant(return_value=TurnResult("Hey there!"))
    update = _update()
    with patch("lifeos.bot.handlers.get_assistant", return_value=assistant):
        await handle_message(update, MagicMock())
    update.message.reply_text.assert_awaited_once_with("Hey there!")


async def test_message_while_busy() -> None:
    assistant = _assistant(side_effect=TurnInProgressError())
    update = _update()
    with patch("lifeos.bot.handlers.get_assistant", return_value=assistant):
        await handle_message(update, MagicMock())
    assert "Still working" in update.message.reply_text.call_args.args[0]


async def test_unexpected_error_is_reported() -> None:
    assistant = _assistant(side_effect=RuntimeError("bug"))
    update = _update()
    with patch("lifeos.bot.handlers.get_assistant", return_value=assistant):
        await handle_message(update, MagicMock())
    update.message.reply_text.assert_awaited_once_with("Something went wrong. Check the logs.")


async def test_disallowed_user_ignored() -> None:
    update = _update()
    with (
        patch("lifeos.bot.handlers.is_allowed", return_value=False),
        patch("lifeos.bot.handlers.get_assistant") as mock_get,
    ):
        await handle_message(update, MagicMock())
    mock_get.assert_not_called()
    update.message.reply_text.assert_not_awaited()


async def test_clear_forgets_history_and_resets_page() -> None:
    assistant = _assistant()
    assistant.location = "/finance"
    assistant.session.clear.return_value = 4
    update = _update()
    with patch("lifeos.bot.handlers.get_assistant", return_value=assistant):
        await handle_clear(update, MagicMock())

    assert assistant.location == "/"
    update.message.reply_text.assert_awaited_once_with("Forgot 4 messages. Your data is untouched.")


async def test_clear_refused_while_busy() -> None:
    assistant = _assistant()
    assistant.busy = True
    update = _update()
    with patch("lifeos.bot.handlers.get_assistant", return_value=assistant):
        await handle_clear(update, MagicMock())

    assistant.session.clear.assert_not_called()
    assert "still working" in update.message.reply_text.call_args.args[0]


async def test_status_shows_page() -> None:
    assistant = _assistant()
    assistant.location = "/finance"
    update = _update()
    with patch("lifeos.bot.handlers.get_assistant", return_value=assistant):
        await handle_status(update, MagicMock())
    assert "Current page: /finance" in update.message.reply_text.call_args.args[0]


async def test_model_menu_marks_current() -> None:
    mm = MagicMock()
    mm.get_chat_model.return_value = "llama-3.3-70b-versatile"
    context = MagicMock()
    context.args = []
    update = _update()
    with patch("lifeos.bot.handlers.ModelManager.get", return_value=mm):
        await handle_model(update, context)

    text = update.message.reply_text.call_args.args[0]
    assert "groq: **llama-70b**, llama-8b" in text
    assert "anthropic: haiku, sonnet" in text


async def test_model_switch() -> None:
    mm = MagicMock()
    mm.set_chat_model.return_value = "claude-haiku-4-5-20251001"
    mm.get_chat_model.return_value = "claude-haiku-4-5-20251001"
    context = MagicMock()
    context.args = ["haiku"]
    update = _update()
    with patch("lifeos.bot.handlers.ModelManager.get", return_value=mm):
        await handle_model(update, context)
    mm.set_chat_model.assert_called_once_with("haiku")
    assert "**haiku**" in update.message.reply_text.call_args.args[0]


async def test_model_unknown_name() -> None:
    mm = MagicMock()
    mm.set_chat_model.return_value = None
    mm.get_chat_model.return_value = "llama-3.3-70b-versatile"
    context = MagicMock()
    context.args = ["gpt-4"]
    update = _update()
    with patch("lifeos.bot.handlers.ModelManager.get", return_value=mm):
        await handle_model(update, context)
    assert "Unknown model 'gpt-4'" in update.message.reply_text.call_args.args[0]


async def test_model_unknown_name_is_escaped() -> None:
    mm = MagicMock()
    mm.set_chat_model.return_value = None
    mm.get_chat_model.return_value = "llama-3.3-70b-versatile"
    context = MagicMock()
    context.args = ["gpt_4*"]
    update = _update()
    with patch("lifeos.bot.handlers.ModelManager.get", return_value=mm):
        await handle_model(update, context)

    args, kwargs = update.message.reply_text.call_args
    assert "Unknown model 'gpt\\_4\\*'" in args[0]
    assert kwargs["parse_mode"] == "Markdown"


# -- /enhance -------------------------------------------------------------------


async def test_enhance_usage_without_instruction() -> None:
    context = MagicMock()
    context.args = ["Trip", "plan"]
    update = _update()
    with patch("lifeos.bot.handlers.enhance_note", AsyncMock()) as mock_enhance:
        await handle_enhance(update, context)
    mock_enhance.assert_not_awaited()
    assert update.message.reply_text.call_args.args[0].startswith("Usage: /enhance")


async def test_enhance_replies_with_new_content() -> None:
    assistant = _assistant()
    note = Note(id="n1", user_id="user-1", title="Trip plan", content="Fly Friday")
    context = MagicMock()
    context.args = ["Trip", "plan:", "add", "a", "packing", "list"]
    update = _update()
    with (
        patch("lifeos.bot.handlers.get_assistant", return_value=assistant),
        patch("lifeos.bot.handlers.enhance_note", AsyncMock(return_value=(note, "- [ ] passport"))) as mock_enhance,
    ):
        await handle_enhance(update, context)

    mock_enhance.assert_awaited_once_with(assistant.stores, "Trip plan", "add a packing list")
    update.message.reply_text.assert_awaited_once_with("Updated 'Trip plan':\n\n- [ ] passport")


async def test_enhance_unknown_note() -> None:
    context = MagicMock()
    context.args = ["Nope:", "expand"]
    update = _update()
    with (
        patch("lifeos.bot.handlers.get_assistant", return_value=_assistant()),
        patch("lifeos.bot.handlers.enhance_note", AsyncMock(side_effect=LookupError("none"))),
    ):
        await handle_enhance(update, context)
    update.message.reply_text.assert_awaited_once_with("I couldn't find a note matching 'Nope'.")


async def test_enhance_model_failure_reported() -> None:
    context = MagicMock()
    context.args = ["Ideas:", "expand"]
    update = _update()
    with (
        patch("lifeos.bot.handlers.get_assistant", return_value=_assistant()),
        patch("lifeos.bot.handlers.enhance_note", AsyncMock(side_effect=TimeoutError)),
    ):
        await handle_enhance(update, context)
    assert "Nothing was changed" in update.message.reply_text.call_args.args[0]


def test_get_assistant_is_per_chat(monkeypatch) -> None:
    monkeypatch.setattr("lifeos.bot.handlers.Stores.get", MagicMock(return_value=MagicMock()))
    monkeypatch.setattr("lifeos.bot.handlers.get_session", MagicMock(side_effect=lambda chat_id: MagicMock()))
    a = handlers.get_assistant(1)
    assert handlers.get_assistant(1) is a
    assert handlers.get_assistant(2) is not a
