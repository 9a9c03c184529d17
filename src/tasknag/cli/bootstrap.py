# src/tasknag/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState
  (task store, presentation sink, URL opener, dispatcher, scheduler).
"""

from __future__ import annotations

import logging

from ..browser.executor import BrowserActionExecutor, SystemUrlOpener
from ..browser.url_validator import URLValidator
from ..config import get_settings
from ..connectors.console_connector import ConsoleSink
from ..connectors.desktop_sink import DesktopSink
from ..core.ports import PresentationSink
from ..core.state import AppState
from ..notifications.dispatcher import NotificationDispatcher
from ..notifications.scheduler import NotificationScheduler
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None, sink: PresentationSink | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    if sink is None:
        if getattr(settings, "desktop_alerts", False):
            sink = DesktopSink(app_name=settings.app_name)
        else:
            sink = ConsoleSink(app_name=settings.app_name)

    validator = URLValidator()
    executor = BrowserActionExecutor(
        SystemUrlOpener(),
        validator,
        open_timeout=settings.url_open_timeout_seconds,
        pacing=settings.action_pacing_seconds,
    )
    dispatcher = NotificationDispatcher(sink, executor)
    task_store = TaskStore(settings.tasks_db_path)
    scheduler = NotificationScheduler(
        task_store,
        dispatcher,
        interval_minutes=settings.check_interval_minutes,
        tolerance_minutes=settings.tolerance_minutes,
    )

    logger.debug("AppState wired (sink=%s)", type(sink).__name__)
    return AppState(
        settings=settings,
        task_store=task_store,
        sink=sink,
        validator=validator,
        executor=executor,
        dispatcher=dispatcher,
        scheduler=scheduler,
    )
