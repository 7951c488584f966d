"""Application settings loaded from environment variables."""

import os
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_file() -> str | None:
    if os.getenv("PYTEST_CURRENT_TEST"):
        return None
    return ".env"


class Settings(BaseSettings):
    """LifeOS configuration. All values come from environment variables."""

    # Telegram front end
    telegram_bot_token: str = Field(default="")
    allowed_user_ids: str = Field(default="")

    # Signed-in LifeOS account; every store row is scoped to it. Empty = signed out.
    lifeos_user_id: str = Field(default="")

    # Intent parsing: Groq (OpenAI-compatible) or Anthropic
    groq_api_key: str = Field(default="")
    groq_api_url: str = Field(default="https://api.groq.com/openai/v1/chat/completions")
    anthropic_api_key: str = Field(default="")
    default_chat_model: str = Field(default="llama-70b")
    llm_temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    llm_max_tokens: int = Field(default=1024, gt=0)
    llm_timeout_seconds: float = Field(default=30.0, gt=0)

    # Storage: a local libSQL file unless TURSO_DATABASE_URL is set
    database_path: Path = Field(default=Path("data/lifeos.db"))
    turso_database_url: str = Field(default="")
    turso_auth_token: str = Field(default="")

    # Conversation history: stored in full, the model sees the last `history_window`
    history_dir: Path = Field(default=Path("data/history"))
    history_window: int = Field(default=10, ge=0)

    # Context snapshot sent with every request
    snapshot_note_limit: int = Field(default=20, ge=0)
    snapshot_transaction_limit: int = Field(default=10, ge=0)
    snapshot_note_preview_chars: int = Field(default=500, gt=0)

    # Locale
    timezone: str = Field(default="Asia/Dhaka")
    currency_symbol: str = Field(default="৳")

    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(env_file=_env_file(), env_file_encoding="utf-8")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        if os.getenv("PYTEST_CURRENT_TEST"):
            return (init_settings,)
        return (init_settings, env_settings, dotenv_settings, file_secret_settings)

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            msg = f"Unknown timezone: {value}"
            raise ValueError(msg) from exc
        return value

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.strip().upper()

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def get_allowed_user_ids(self) -> set[int]:
        """Telegram user IDs from the comma-separated ALLOWED_USER_IDS."""
        return {int(uid) for uid in self.allowed_user_ids.replace(" ", "").split(",") if uid}


settings = Settings()
