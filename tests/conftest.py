"""Shared test fixtures.

Storage tests run against an in-memory SQLite database; time-sensitive tests
use a controllable clock.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from daygo_cli.adapters.sqlite import (
    DatabaseConnection,
    SqliteSyncSessionRepository,
    SqliteTaskRepository,
)
from daygo_cli.services.task_service import TaskService

BASE_TIME = datetime(2024, 3, 4, 9, 0, tzinfo=UTC)


def at_minutes(minutes: float) -> datetime:
    """BASE_TIME shifted by *minutes*."""
    return BASE_TIME + timedelta(minutes=minutes)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = BASE_TIME):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def at():
    """Build timestamps relative to a fixed base time."""
    return at_minutes


@pytest.fixture()
def database():
    db = DatabaseConnection(":memory:")
    db.open()
    yield db
    db.close()


@pytest.fixture()
def task_repo(database) -> SqliteTaskRepository:
    return SqliteTaskRepository(database)


@pytest.fixture()
def session_repo(database) -> SqliteSyncSessionRepository:
    return SqliteSyncSessionRepository(database)


@pytest.fixture()
def task_service(task_repo, session_repo) -> TaskService:
    return TaskService(task_repo, session_repo)


@pytest.fixture(autouse=True)
def isolated_dirs(tmp_path, monkeypatch):
    """Keep config, data and logs of every test inside tmp_path."""
    for name in (
        "DAYGO_DB_URL",
        "DAYGO_LOG_LEVEL",
        "DAYGO_LOG_PATH",
        "DAYGO_TIME_FORMAT",
        "DAYGO_SYNC_SERVER_URL",
        "DAYGO_SYNC_RATE",
        "DAYGO_CMD_TIMEOUT",
        "DAYGO_SYNC_DB_URL",
        "DAYGO_SYNC_PORT",
        "DAYGO_SYNC_HOST",
        "DAYGO_SYNC_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    for target in (
        "daygo_cli.config.user_config_dir",
        "daygo_cli.config.user_data_dir",
        "daygo_cli.config.user_log_dir",
        "daygo_cli.adapters.sqlite.connection.user_data_dir",
        "daygo_cli.utils.logger.user_log_dir",
    ):
        monkeypatch.setattr(target, lambda *args, **kwargs: str(tmp_path))
    monkeypatch.setattr("daygo_cli.config._config_manager", None)
    yield
    DatabaseConnection.close_all()
    from daygo_cli.utils.logger import reset_logger

    reset_logger()
