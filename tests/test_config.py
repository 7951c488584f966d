"""Tests for settings parsing."""

from pathlib import Path
from zoneinfo import ZoneInfo

import pytest
from pydantic import ValidationError

from lifeos.config import Settings


def test_parse_allowed_user_ids() -> None:
    """Should parse comma-separated IDs into a set of ints."""
    s = Settings(allowed_user_ids="111,222,333")
    assert s.get_allowed_user_ids() == {111, 222, 333}


def test_parse_allowed_user_ids_with_spaces() -> None:
    s = Settings(allowed_user_ids=" 111 , 222 , 333 ")
    assert s.get_allowed_user_ids() == {111, 222, 333}


def test_parse_allowed_user_ids_empty() -> None:
    s = Settings(allowed_user_ids="")
    assert s.get_allowed_user_ids() == set()


def test_defaults() -> None:
    s = Settings()
    assert s.default_chat_model == "llama-70b"
    assert s.history_window == 10
    assert s.snapshot_transaction_limit == 10
    assert s.database_path == Path("data/lifeos.db")
    assert s.currency_symbol == "৳"
    assert s.lifeos_user_id == ""


def test_environment_ignored_under_pytest(monkeypatch) -> None:
    """Only explicit init values count while tests run."""
    monkeypatch.setenv("HISTORY_WINDOW", "3")
    assert Settings().history_window == 10
    assert Settings(history_window=4).history_window == 4


def test_unknown_timezone_rejected() -> None:
    with pytest.raises(ValidationError, match="Unknown timezone"):
        Settings(timezone="Mars/Olympus_Mons")


def test_tz_property() -> None:
    assert Settings(timezone="Asia/Dhaka").tz == ZoneInfo("Asia/Dhaka")


def test_log_level_normalised() -> None:
    assert Settings(log_level=" debug ").log_level == "DEBUG"


def test_negative_history_window_rejected() -> None:
    with pytest.raises(ValidationError):
        Settings(history_window=-1)
