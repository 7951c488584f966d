"""LifeOS bot entry point."""

import logging

from lifeos.config import settings

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=getattr(logging, settings.log_level),
)
logger = logging.getLogger(__name__)


def main() -> None:
    """Start the bot on Telegram."""
    from lifeos.bot.app import create_app
    from lifeos.llm.models import ModelManager, friendly

    allowed = settings.get_allowed_user_ids()
    if not allowed:
        logger.warning("ALLOWED_USER_IDS is empty, bot will reject all messages")
    else:
        logger.info("Allowed user IDs: %s", allowed)
    if not settings.lifeos_user_id:
        logger.warning("LIFEOS_USER_ID is not set, every change will be refused")

    logger.info(
        "Starting LifeOS on Telegram with model %s...", friendly(ModelManager.get().get_chat_model())
    )
    app = create_app()
    app.run_polling()


if __name__ == "__main__":
    main()
