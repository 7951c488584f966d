"""Shared test fixtures."""

from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest

from lifeos.actions.dispatch import IntentDispatcher
from lifeos.stores.container import Stores

# Monday morning in Dhaka
NOW = datetime(2025, 3, 10, 9, 30, tzinfo=ZoneInfo("Asia/Dhaka"))


@pytest.fixture(autouse=False)
def _no_turso(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure tests use local file, not remote Turso."""
    monkeypatch.setattr("lifeos.config.settings.turso_database_url", "")


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def stores(tmp_path: Path, _no_turso: None) -> Stores:
    """All domain stores for one signed-in user, backed by a temp database."""
    return Stores.for_user("user-1", db_path=tmp_path / "test.db")


@pytest.fixture
def dispatcher(stores: Stores, now: datetime) -> IntentDispatcher:
    return IntentDispatcher(stores, clock=lambda: now)
