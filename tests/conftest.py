# tests/conftest.py

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from types import SimpleNamespace

import pytest

from tasknag.browser.executor import BrowserActionExecutor
from tasknag.browser.url_validator import URLValidator
from tasknag.core.state import AppState
from tasknag.notifications.dispatcher import NotificationDispatcher
from tasknag.notifications.scheduler import NotificationScheduler
from tasknag.tasks.task_store import TaskStore

from .fakes import FakeClock, FakeOpener, FakeSink, SleepRecorder


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the CLI commands.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the environment and .env files.
    """
    return SimpleNamespace(
        app_name="tasknag-test",
        data_dir=tmp_path,
        tasks_db_path=tmp_path / "tasks.sqlite3",
        check_interval_minutes=15,
        tolerance_minutes=15,
        url_open_timeout_seconds=0.05,
        action_pacing_seconds=0.5,
        desktop_alerts=False,
    )


@pytest.fixture()
def store(settings: SimpleNamespace) -> TaskStore:
    return TaskStore(settings.tasks_db_path)


@pytest.fixture()
def sink() -> FakeSink:
    return FakeSink()


@pytest.fixture()
def opener() -> FakeOpener:
    return FakeOpener()


@pytest.fixture()
def executor(opener: FakeOpener) -> BrowserActionExecutor:
    return BrowserActionExecutor(opener, URLValidator(), open_timeout=0.05, pacing=0.5, sleep=SleepRecorder())


@pytest.fixture()
def state(settings: SimpleNamespace, store: TaskStore, sink: FakeSink, executor: BrowserActionExecutor) -> AppState:
    """
    AppState wired with deterministic fakes.

    NOTE: We keep the real SQLite TaskStore here because reading the stored
    notification settings is part of what we want to test.
    """
    dispatcher = NotificationDispatcher(sink, executor)
    return AppState(
        settings=settings,
        task_store=store,
        sink=sink,
        validator=executor.validator,
        executor=executor,
        dispatcher=dispatcher,
        scheduler=NotificationScheduler(
            store,
            dispatcher,
            interval_minutes=15,
            tolerance_minutes=15,
            # Wednesday 2025-03-12 09:05 local time.
            clock=FakeClock(datetime(2025, 3, 12, 9, 5)),
        ),
    )
