# tests/test_notification_models.py

from __future__ import annotations

from datetime import datetime, time

import pytest

from tasknag.errors import ConfigurationError
from tasknag.notifications.models import (
    NotificationConfig,
    NotificationKind,
    TaskStatus,
    parse_days_of_week,
    parse_due,
    parse_time_of_day,
)


def test_recurring_from_storage() -> None:
    cfg = NotificationConfig.from_storage(
        {"kind": "recurring", "timeOfDay": "09:00", "daysOfWeek": "[1,3,5]", "level": 2}
    )

    assert cfg.kind is NotificationKind.RECURRING
    assert cfg.time_of_day == time(9, 0)
    assert cfg.days_of_week == frozenset({1, 3, 5})
    assert cfg.level == 2


def test_nulls_fall_back_to_defaults() -> None:
    cfg = NotificationConfig.from_storage(
        {"kind": "due_date_based", "daysBefore": None, "timeOfDay": None, "daysOfWeek": None, "level": None}
    )

    assert cfg.kind is NotificationKind.DUE_DATE_BASED
    assert cfg.days_before == 1
    assert cfg.level == 1
    assert cfg.time_of_day is None


def test_missing_kind_means_none() -> None:
    assert NotificationConfig.from_storage({}).kind is NotificationKind.NONE
    assert NotificationConfig.from_storage({"kind": ""}).kind is NotificationKind.NONE


def test_to_storage_shape() -> None:
    cfg = NotificationConfig(
        kind=NotificationKind.RECURRING,
        time_of_day=time(7, 30),
        days_of_week=frozenset({5, 1}),
        level=3,
    )

    assert cfg.to_storage() == {
        "kind": "recurring",
        "daysBefore": None,
        "timeOfDay": "07:30",
        "daysOfWeek": [1, 5],
        "level": 3,
    }


@pytest.mark.parametrize(
    "raw",
    [
        {"kind": "weekly"},
        {"kind": "due_date_based", "level": 4},
        {"kind": "due_date_based", "level": "high"},
        {"kind": "due_date_based", "daysBefore": -1},
        {"kind": "due_date_based", "timeOfDay": "9am"},
        {"kind": "recurring", "timeOfDay": "25:00", "daysOfWeek": [1]},
        {"kind": "recurring", "timeOfDay": "09:00", "daysOfWeek": "[7]"},
        {"kind": "recurring", "timeOfDay": "09:00", "daysOfWeek": "mon,wed"},
        {"kind": "recurring", "timeOfDay": "09:00", "daysOfWeek": "[]"},
        {"kind": "recurring", "daysOfWeek": [1, 2]},
    ],
)
def test_malformed_settings_raise(raw: dict) -> None:
    with pytest.raises(ConfigurationError):
        NotificationConfig.from_storage(raw)


def test_parsers() -> None:
    assert parse_time_of_day(" 23:59 ") == time(23, 59)
    assert parse_time_of_day("") is None
    assert parse_days_of_week([0, 6, 6]) == frozenset({0, 6})
    assert parse_days_of_week(None) == frozenset()
    assert parse_due("2025-03-10T15:00:00") == datetime(2025, 3, 10, 15, 0)
    assert parse_due(None) is None

    with pytest.raises(ConfigurationError):
        parse_days_of_week([True])
    with pytest.raises(ConfigurationError):
        parse_due("tomorrow")


def test_task_status_from_db() -> None:
    assert TaskStatus.from_db("done") is TaskStatus.DONE
    assert TaskStatus.from_db("in_progress") is TaskStatus.IN_PROGRESS
    assert TaskStatus.from_db(None) is TaskStatus.TODO
    assert TaskStatus.from_db("archived") is TaskStatus.TODO
