# src/tasknag/notifications/models.py

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, time
from enum import StrEnum
from typing import Any

from ..browser.models import BrowserActionSettings
from ..errors import ConfigurationError

DEFAULT_DAYS_BEFORE = 1
DEFAULT_LEVEL = 1


class TaskStatus(StrEnum):
    INBOX = "inbox"
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"

    @classmethod
    def from_db(cls, raw: str | None) -> TaskStatus:
        if not raw:
            return cls.TODO
        try:
            return cls(raw)
        except ValueError:
            return cls.TODO


class NotificationKind(StrEnum):
    NONE = "none"
    DUE_DATE_BASED = "due_date_based"
    RECURRING = "recurring"

    @classmethod
    def parse(cls, raw: str | None) -> NotificationKind:
        if raw is None or raw == "":
            return cls.NONE
        try:
            return cls(raw)
        except ValueError as e:
            raise ConfigurationError(f"unknown notification kind: {raw!r}") from e


def parse_time_of_day(raw: str | None) -> time | None:
    """Parse "HH:MM" (24h). None/empty means "not set"."""
    if raw is None or not raw.strip():
        return None
    parts = raw.strip().split(":")
    if len(parts) != 2:
        raise ConfigurationError(f"time of day must be HH:MM, got {raw!r}")
    try:
        hour, minute = int(parts[0]), int(parts[1])
        return time(hour, minute)
    except ValueError as e:
        raise ConfigurationError(f"time of day out of range: {raw!r}") from e


def parse_days_of_week(raw: str | Iterable[Any] | None) -> frozenset[int]:
    """
    Weekdays as 0=Sunday..6=Saturday.

    Accepts the stored JSON array text ("[1,3,5]") or an already decoded list.
    """
    if raw is None:
        return frozenset()
    if isinstance(raw, str):
        if not raw.strip():
            return frozenset()
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"days of week are not valid JSON: {raw!r}") from e
        if not isinstance(raw, list):
            raise ConfigurationError("days of week must be a JSON array")

    days: set[int] = set()
    for d in raw:
        if isinstance(d, bool) or not isinstance(d, int) or not 0 <= d <= 6:
            raise ConfigurationError(f"day of week must be an integer 0..6, got {d!r}")
        days.add(d)
    return frozenset(days)


def parse_due(raw: str | datetime | None) -> datetime | None:
    if raw is None or isinstance(raw, datetime):
        return raw
    if not raw.strip():
        return None
    try:
        return datetime.fromisoformat(raw.strip())
    except ValueError as e:
        raise ConfigurationError(f"due date is not ISO-8601: {raw!r}") from e


@dataclass(slots=True, frozen=True)
class NotificationConfig:
    kind: NotificationKind = NotificationKind.NONE
    days_before: int = DEFAULT_DAYS_BEFORE
    time_of_day: time | None = None
    days_of_week: frozenset[int] = frozenset()
    level: int = DEFAULT_LEVEL

    def __post_init__(self) -> None:
        if self.level not in (1, 2, 3):
            raise ConfigurationError(f"notification level must be 1, 2 or 3, got {self.level!r}")
        if self.days_before < 0:
            raise ConfigurationError(f"days before must be >= 0, got {self.days_before!r}")
        if self.kind is NotificationKind.RECURRING:
            if not self.days_of_week:
                raise ConfigurationError("recurring notification needs at least one weekday")
            if self.time_of_day is None:
                raise ConfigurationError("recurring notification needs a time of day")

    @classmethod
    def from_storage(cls, raw: Mapping[str, Any]) -> NotificationConfig:
        """
        Build from the persisted shape:
        {kind, daysBefore, timeOfDay: "HH:MM", daysOfWeek: [int] | "[...]", level}.
        """
        kind = NotificationKind.parse(raw.get("kind"))

        days_before_raw = raw.get("daysBefore")
        try:
            days_before = DEFAULT_DAYS_BEFORE if days_before_raw is None else int(days_before_raw)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"days before is not an integer: {days_before_raw!r}") from e

        level_raw = raw.get("level")
        try:
            level = DEFAULT_LEVEL if level_raw is None else int(level_raw)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"notification level is not an integer: {level_raw!r}") from e

        if kind is NotificationKind.NONE:
            return cls(kind=kind, level=level if level in (1, 2, 3) else DEFAULT_LEVEL)

        return cls(
            kind=kind,
            days_before=days_before,
            time_of_day=parse_time_of_day(raw.get("timeOfDay")),
            days_of_week=parse_days_of_week(raw.get("daysOfWeek")),
            level=level,
        )

    def to_storage(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "daysBefore": self.days_before if self.kind is NotificationKind.DUE_DATE_BASED else None,
            "timeOfDay": self.time_of_day.strftime("%H:%M") if self.time_of_day else None,
            "daysOfWeek": sorted(self.days_of_week) if self.kind is NotificationKind.RECURRING else None,
            "level": self.level,
        }


@dataclass(slots=True)
class Task:
    id: str
    title: str
    status: TaskStatus = TaskStatus.TODO
    due_at: datetime | None = None
    notification: NotificationConfig = field(default_factory=NotificationConfig)
    browser_actions: BrowserActionSettings = field(default_factory=BrowserActionSettings)
    description: str | None = None

    @property
    def is_done(self) -> bool:
        return self.status is TaskStatus.DONE


@dataclass(slots=True, frozen=True)
class FiredNotification:
    """A reminder the evaluator decided to fire. A value; never persisted."""

    task_id: str
    title: str
    level: int
    kind: NotificationKind
    days_until_due: int | None = None
