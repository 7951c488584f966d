"""Telegram application factory."""

from __future__ import annotations

import logging

from telegram import BotCommand
from telegram.ext import Application, CommandHandler, ContextTypes, MessageHandler, filters

from lifeos.bot.handlers import (
    handle_clear,
    handle_enhance,
    handle_message,
    handle_model,
    handle_start,
    handle_status,
)
from lifeos.config import settings
from lifeos.stores.container import Stores

logger = logging.getLogger(__name__)

COMMANDS: list[tuple[str, str]] = [
    ("start", "Say hello to Nova"),
    ("clear", "Forget this chat's conversation"),
    ("status", "Model, current page and stored history"),
    ("model", "Show or switch the model that reads your messages"),
    ("enhance", "Rewrite a note: /enhance <note>: <what to do>"),
]


async def _post_init(app: Application) -> None:
    await app.bot.set_my_commands([BotCommand(name, text) for name, text in COMMANDS])
    tasks = await Stores.get().tasks.list()
    logger.info(
        "Stores ready for user %s (%d tasks)", settings.lifeos_user_id or "<signed out>", len(tasks)
    )


async def _on_error(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    logger.error("Unhandled error while processing %s", update, exc_info=context.error)


def create_app() -> Application:
    """Build and configure the Telegram application."""
    # Updates run one at a time, so a chat's turns never overlap.
    app = Application.builder().token(settings.telegram_bot_token).post_init(_post_init).build()

    app.add_handler(CommandHandler("start", handle_start))
    app.add_handler(CommandHandler("clear", handle_clear))
    app.add_handler(CommandHandler("status", handle_status))
    app.add_handler(CommandHandler("model", handle_model))
    app.add_handler(CommandHandler("enhance", handle_enhance))
    app.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, handle_message))
    app.add_error_handler(_on_error)

    return app
