"""Telegram message handlers: each text message runs one assistant turn."""

import contextlib
import logging

from telegram import Update
from telegram.ext import ContextTypes
from telegram.helpers import escape_markdown

from lifeos.assistant.enhance import enhance_note
from lifeos.assistant.session import get_session
from lifeos.assistant.turn import Assistant, TurnInProgressError
from lifeos.bot.security import is_allowed
from lifeos.config import settings
from lifeos.llm.models import MODELS, ModelManager, friendly
from lifeos.stores.container import Stores

logger = logging.getLogger(__name__)

# One assistant per chat, so each chat keeps its own page and turn flag.
_assistants: dict[int, Assistant] = {}


def get_assistant(chat_id: int) -> Assistant:
    if chat_id not in _assistants:
        _assistants[chat_id] = Assistant(Stores.get(), get_session(chat_id))
    return _assistants[chat_id]


def _reset() -> None:
    """Drop every per-chat assistant (for testing)."""
    _assistants.clear()


def _model_menu(current: str) -> str:
    lines = []
    for provider in ("groq", "anthropic"):
        names = [
            f"**{name}**" if info.model_id == current else name
            for name, info in MODELS.items()
            if info.provider == provider
        ]
        lines.append(f"{provider}: {', '.join(names)}")
    return "\n".join(lines)


async def handle_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start: greet the user."""
    if not is_allowed(update):
        return

    await update.message.reply_text(
        "Hey! I'm Nova, your LifeOS assistant. Tell me what you spent, what you need "
        "to do, or what you finished, and I'll keep track."
    )


async def handle_clear(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /clear: forget this chat's conversation and go back to the dashboard."""
    if not is_allowed(update):
        return

    assistant = get_assistant(update.effective_chat.id)
    if assistant.busy:
        await update.message.reply_text("Hang on, I'm still working on your last message.")
        return

    count = assistant.session.clear()
    assistant.location = "/"
    logger.info("Cleared %d messages for chat %s", count, update.effective_chat.id)
    await update.message.reply_text(f"Forgot {count} messages. Your data is untouched.")


async def handle_status(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    if not is_allowed(update):
        return

    assistant = get_assistant(update.effective_chat.id)
    mm = ModelManager.get()
    lines = [
        "**LifeOS Status**",
        f"Chat model: {friendly(mm.get_chat_model())}",
        f"Messages stored: {len(assistant.session.messages)} (model sees {settings.history_window})",
        f"Current page: {assistant.location}",
        f"User: {update.effective_user.id}",
        "Status: busy" if assistant.busy else "Status: online",
    ]
    await update.message.reply_text("\n".join(lines), parse_mode="Markdown")


async def handle_model(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /model: list models by provider, or switch with ``/model <name>``."""
    if not is_allowed(update):
        return

    mm = ModelManager.get()
    if not context.args:
        await update.message.reply_text(_model_menu(mm.get_chat_model()), parse_mode="Markdown")
        return

    name = context.args[0]
    if mm.set_chat_model(name) is None:
        await update.message.reply_text(
            f"Unknown model '{escape_markdown(name)}'.\n{_model_menu(mm.get_chat_model())}",
            parse_mode="Markdown",
        )
        return

    await update.message.reply_text(
        f"Now reading your messages with **{friendly(mm.get_chat_model())}**",
        parse_mode="Markdown",
    )


_ENHANCE_USAGE = "Usage: /enhance <note>: <what to do>\nFor example: /enhance Trip plan: add a packing checklist"
_TELEGRAM_LIMIT = 4000


async def handle_enhance(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /enhance: rewrite one note's content with the model."""
    if not is_allowed(update):
        return

    query, sep, instruction = " ".join(context.args or []).partition(":")
    query, instruction = query.strip(), instruction.strip()
    if not sep or not query or not instruction:
        await update.message.reply_text(_ENHANCE_USAGE)
        return

    assistant = get_assistant(update.effective_chat.id)
    try:
        note, content = await enhance_note(assistant.stores, query, instruction)
    except LookupError:
        await update.message.reply_text(f"I couldn't find a note matching '{query}'.")
        return
    except Exception:
        logger.exception("Error enhancing note %r", query)
        with contextlib.suppress(Exception):
            await update.message.reply_text("Couldn't enhance that note right now. Nothing was changed.")
        return

    preview = content if len(content) <= _TELEGRAM_LIMIT else content[:_TELEGRAM_LIMIT] + "..."
    # No parse_mode: note content is not escaped.
    await update.message.reply_text(f"Updated '{note.title or 'Untitled'}':\n\n{preview}")


async def handle_message(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle an incoming text message."""
    if not is_allowed(update):
        return

    chat_id = update.effective_chat.id
    user_message = update.message.text
    logger.info("Message from %s: %s", chat_id, user_message[:80])

    assistant = get_assistant(chat_id)
    try:
        result = await assistant.handle_message(user_message)
    except TurnInProgressError:
        await update.message.reply_text("Still working on your last message, one moment...")
        return
    except Exception:
        logger.exception("Error running assistant turn")
        with contextlib.suppress(Exception):
            await update.message.reply_text("Something went wrong. Check the logs.")
        return

    text = result.reply
    if result.notification:
        text = f"{text}\n\n{result.notification}"
    await update.message.reply_text(text)
