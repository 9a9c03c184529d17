# src/tasknag/notifications/dispatcher.py

from __future__ import annotations

"""
Notification dispatcher.

Turns a fired reminder into side effects, escalating by level:
- level 1: alert
- level 2: alert + audible cue
- level 3: alert + cue + bring the app to front + run the task's browser actions

Only the alert itself can fail a dispatch (DeliveryError). Everything after it
is best-effort: the user has already been notified.
"""

import logging

from ..browser.executor import BrowserActionExecutor
from ..core.ports import PresentationSink
from ..errors import DeliveryError
from .models import FiredNotification, NotificationKind, Task

logger = logging.getLogger(__name__)

LEVEL_CUE = 2
LEVEL_ESCALATE = 3


def build_alert_title(notification: FiredNotification) -> str:
    if notification.kind is NotificationKind.DUE_DATE_BASED:
        days = notification.days_until_due
        if days is None:
            return "📅 Due soon"
        if days < 0:
            return "📅 Overdue"
        if days == 0:
            return "📅 Due today"
        if days == 1:
            return "📅 Due tomorrow"
        return f"📅 Due in {days} days"
    if notification.kind is NotificationKind.RECURRING:
        return "🔔 Recurring reminder"
    return "📋 Reminder"


def build_alert_body(notification: FiredNotification, task: Task | None = None) -> str:
    body = notification.title
    if task is not None and task.due_at is not None and notification.kind is NotificationKind.DUE_DATE_BASED:
        body = f"{body} (due {task.due_at.strftime('%Y-%m-%d %H:%M')})"
    return body


class NotificationDispatcher:
    def __init__(self, sink: PresentationSink, executor: BrowserActionExecutor) -> None:
        self._sink = sink
        self._executor = executor

    async def fire(self, notification: FiredNotification, task: Task) -> None:
        logger.info(
            "Firing notification task=%s level=%d kind=%s title=%r",
            notification.task_id,
            notification.level,
            notification.kind.value,
            notification.title,
        )

        title = build_alert_title(notification)
        body = build_alert_body(notification, task)
        try:
            await self._sink.show_alert(title, body)
        except Exception as e:
            raise DeliveryError(f"alert for task {notification.task_id} failed: {e}") from e

        if notification.level >= LEVEL_CUE:
            try:
                await self._sink.play_cue()
            except Exception:
                logger.warning("Audible cue failed for task %s", notification.task_id, exc_info=True)

        if notification.level >= LEVEL_ESCALATE:
            try:
                await self._sink.bring_to_front()
            except Exception:
                logger.warning("bring_to_front failed for task %s", notification.task_id, exc_info=True)

            actions = task.browser_actions.enabled_actions()
            if actions:
                try:
                    await self._executor.run(actions)
                except Exception:
                    logger.warning(
                        "Browser actions failed for task %s; the alert was still shown",
                        notification.task_id,
                        exc_info=True,
                    )
            else:
                logger.debug("No enabled browser actions for task %s", notification.task_id)

        logger.info("Notification delivered task=%s", notification.task_id)
