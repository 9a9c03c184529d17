# src/tasknag/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..browser.executor import BrowserActionExecutor
from ..browser.url_validator import URLValidator
from ..notifications.dispatcher import NotificationDispatcher
from ..notifications.scheduler import NotificationScheduler, SchedulerBackgroundRunner
from ..tasks.task_store import TaskStore
from .ports import PresentationSink


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: Any

    task_store: TaskStore
    sink: PresentationSink
    validator: URLValidator
    executor: BrowserActionExecutor
    dispatcher: NotificationDispatcher
    scheduler: NotificationScheduler

    # Set once the background scheduler thread is running.
    runner: SchedulerBackgroundRunner | None = None
