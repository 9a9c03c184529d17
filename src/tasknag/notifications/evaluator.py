# src/tasknag/notifications/evaluator.py

"""
Notification evaluator.

Pure decision function: given one task and "now", decide whether a reminder
fires. No I/O, no state: it may be called redundantly and it never
deduplicates. Keeping each boundary crossing to a single fire is the job of
the scheduler cadence (tolerance == wake interval, half-open window).

Rules:
- due_date_based: the reminder instant is the due instant (its date combined
  with time_of_day when set) moved days_before days earlier. It fires when
  0 <= now - reminder_instant < tolerance.
- recurring: today's weekday (0=Sunday) must be configured; it fires when the
  forward distance from time_of_day to now, modulo one day, is < tolerance.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from ..errors import ConfigurationError
from .models import FiredNotification, NotificationKind, Task

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE_MINUTES = 15
SECONDS_PER_DAY = 24 * 60 * 60


def weekday_sunday_first(dt: datetime) -> int:
    """0=Sunday .. 6=Saturday."""
    return (dt.weekday() + 1) % 7


def _align(dt: datetime, now: datetime) -> datetime:
    """Express dt in the same kind of clock as now (naive local vs aware)."""
    if now.tzinfo is None:
        if dt.tzinfo is None:
            return dt
        return dt.astimezone().replace(tzinfo=None)
    if dt.tzinfo is None:
        return dt.replace(tzinfo=now.tzinfo)
    return dt.astimezone(now.tzinfo)


def due_target(task: Task, now: datetime) -> datetime:
    """The due instant, with its time replaced by time_of_day when configured."""
    if task.due_at is None:
        raise ConfigurationError(f"task {task.id} is due-date based but has no due date")
    due = _align(task.due_at, now)
    tod = task.notification.time_of_day
    if tod is None:
        return due
    return due.replace(hour=tod.hour, minute=tod.minute, second=0, microsecond=0)


def reminder_instant(task: Task, now: datetime) -> datetime:
    return due_target(task, now) - timedelta(days=task.notification.days_before)


def _evaluate_due_date(task: Task, now: datetime, tolerance_s: float) -> FiredNotification | None:
    target = due_target(task, now)
    opens_at = target - timedelta(days=task.notification.days_before)
    diff_s = (now - opens_at).total_seconds()

    logger.debug(
        "Due-date check task=%s target=%s opens_at=%s now=%s diff=%.0fs",
        task.id,
        target.isoformat(timespec="minutes"),
        opens_at.isoformat(timespec="minutes"),
        now.isoformat(timespec="seconds"),
        diff_s,
    )

    if not 0 <= diff_s < tolerance_s:
        return None

    return FiredNotification(
        task_id=task.id,
        title=task.title,
        level=task.notification.level,
        kind=NotificationKind.DUE_DATE_BASED,
        days_until_due=(target.date() - now.date()).days,
    )


def _evaluate_recurring(task: Task, now: datetime, tolerance_s: float) -> FiredNotification | None:
    cfg = task.notification
    if not cfg.days_of_week or cfg.time_of_day is None:
        raise ConfigurationError(f"task {task.id} has an incomplete recurring configuration")

    weekday = weekday_sunday_first(now)
    if weekday not in cfg.days_of_week:
        logger.debug("Recurring check task=%s weekday %d not in %s", task.id, weekday, sorted(cfg.days_of_week))
        return None

    target_s = cfg.time_of_day.hour * 3600 + cfg.time_of_day.minute * 60
    now_s = now.hour * 3600 + now.minute * 60 + now.second + now.microsecond / 1_000_000
    # Forward distance handles rollover (target 23:30, now 00:10).
    diff_s = (now_s - target_s) % SECONDS_PER_DAY

    logger.debug(
        "Recurring check task=%s target=%s now=%s diff=%.0fs",
        task.id,
        cfg.time_of_day.strftime("%H:%M"),
        now.strftime("%H:%M:%S"),
        diff_s,
    )

    if diff_s >= tolerance_s:
        return None

    return FiredNotification(
        task_id=task.id,
        title=task.title,
        level=cfg.level,
        kind=NotificationKind.RECURRING,
        days_until_due=None,
    )


def evaluate(
    task: Task,
    now: datetime,
    *,
    tolerance_minutes: float = DEFAULT_TOLERANCE_MINUTES,
) -> FiredNotification | None:
    """
    Decide whether task fires at now.

    Returns None for done tasks and for kind "none". Raises ConfigurationError
    when the configuration cannot be evaluated (e.g. due-date based, no due date).
    """
    if task.is_done:
        return None

    kind = task.notification.kind
    tolerance_s = float(tolerance_minutes) * 60.0

    if kind is NotificationKind.DUE_DATE_BASED:
        return _evaluate_due_date(task, now, tolerance_s)
    if kind is NotificationKind.RECURRING:
        return _evaluate_recurring(task, now, tolerance_s)
    return None


def notification_for(task: Task, now: datetime) -> FiredNotification:
    """Build the payload for task regardless of timing (manual "fire now")."""
    days: int | None = None
    if task.notification.kind is NotificationKind.DUE_DATE_BASED and task.due_at is not None:
        days = (due_target(task, now).date() - now.date()).days
    return FiredNotification(
        task_id=task.id,
        title=task.title,
        level=task.notification.level,
        kind=task.notification.kind,
        days_until_due=days,
    )


class NotificationEvaluator:
    """evaluate() bound to a tolerance, so the scheduler can own one instance."""

    def __init__(self, tolerance_minutes: float = DEFAULT_TOLERANCE_MINUTES) -> None:
        if tolerance_minutes <= 0:
            raise ValueError("tolerance_minutes must be positive")
        self.tolerance_minutes = float(tolerance_minutes)

    def evaluate(self, task: Task, now: datetime) -> FiredNotification | None:
        return evaluate(task, now, tolerance_minutes=self.tolerance_minutes)
