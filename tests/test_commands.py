# tests/test_commands.py

from __future__ import annotations

from datetime import datetime, time

from tasknag.browser.models import BrowserAction, BrowserActionSettings
from tasknag.cli.commands import CommandRegistry, registry
from tasknag.notifications.models import NotificationConfig, NotificationKind


def test_command_registry_routes_2_and_3_params(state) -> None:
    reg = CommandRegistry()
    called = {"h2": 0, "h3": 0}
    notes: list[str] = []

    def h2(state, args):
        called["h2"] += 1
        return "h2"

    def h3(state, args, emit):
        called["h3"] += 1
        if emit is not None:
            emit("note")
        return "h3:" + ",".join(args)

    reg.register("a", h2, "a")
    reg.register("b", h3, "b", aliases=["bee"])

    assert reg.handle(state, "/a x") == "h2"
    assert reg.handle(state, "/BEE y z", emit=notes.append) == "h3:y,z"
    assert called == {"h2": 1, "h3": 1}
    assert notes == ["note"]


def test_command_registry_unknown_and_non_command(state) -> None:
    reg = CommandRegistry()
    assert reg.handle(state, "hello") is None
    assert "Unknown command" in (reg.handle(state, "/nope") or "")
    assert "Empty command" in (reg.handle(state, "/") or "")


def test_help_lists_commands(state) -> None:
    out = registry.handle(state, "/help") or ""
    for name in ("/status", "/tasks", "/check", "/validate", "/suggest", "/open", "/fire"):
        assert name in out


def test_validate_command(state) -> None:
    assert registry.handle(state, "/validate google") == "Valid: https://google (protocol=https, host=google)"

    out = registry.handle(state, "/validate javascript:alert(1)") or ""
    assert out.startswith("Invalid: URL contains dangerous pattern")

    out = registry.handle(state, "/validate http://gmail") or ""
    assert "Did you mean" in out


def test_suggest_command(state) -> None:
    out = registry.handle(state, "/suggest google") or ""
    assert "google.com" in out
    assert registry.handle(state, "/suggest https://example.com") == "No suggestions."


def test_check_command_fires_due_reminders(state, sink) -> None:
    # The state clock reads Wednesday 09:05.
    state.task_store.add_task(
        title="Stand-up",
        notification=NotificationConfig(
            kind=NotificationKind.RECURRING, time_of_day=time(9, 0), days_of_week=frozenset({3})
        ),
    )
    state.task_store.add_task(
        title="Later",
        notification=NotificationConfig(
            kind=NotificationKind.RECURRING, time_of_day=time(17, 0), days_of_week=frozenset({3})
        ),
    )

    out = registry.handle(state, "/check") or ""

    assert out.startswith("Fired 1 notification(s)")
    assert "Stand-up" in out
    assert [a[2] for a in sink.alerts] == ["Stand-up"]


def test_check_command_with_nothing_due(state) -> None:
    assert registry.handle(state, "/checknow") == "No notifications due right now."


def test_tasks_command(state) -> None:
    assert registry.handle(state, "/tasks") == "No active tasks with notifications."

    state.task_store.add_task(
        title="Pay rent",
        due_at=datetime(2025, 3, 14, 12, 0),
        notification=NotificationConfig(kind=NotificationKind.DUE_DATE_BASED, days_before=1, level=2),
    )
    out = registry.handle(state, "/tasks") or ""
    assert "L2  Pay rent" in out
    assert "reminds at 2025-03-13 12:00" in out


def test_fire_command_runs_browser_actions(state, sink, opener) -> None:
    actions = BrowserActionSettings(enabled=True)
    actions.add_action(BrowserAction.new("Bank", "bank.example.com", 0))
    task_id = state.task_store.add_task(
        title="Pay rent",
        due_at=datetime(2025, 3, 14, 12, 0),
        notification=NotificationConfig(kind=NotificationKind.DUE_DATE_BASED, level=3),
        browser_actions=actions,
    )

    out = registry.handle(state, f"/fire {task_id}") or ""

    assert out == "Fired reminder for 'Pay rent' (level 3)."
    assert sink.kinds() == ["alert", "cue", "front"]
    assert opener.attempts == ["https://bank.example.com"]
    assert registry.handle(state, "/fire nope") == "No task with id nope."


def test_open_command(state, opener) -> None:
    notes: list[str] = []

    assert registry.handle(state, "/open example.com", emit=notes.append) == "Opened."
    assert opener.attempts == ["https://example.com"]
    assert notes == ["Opening example.com ..."]

    out = registry.handle(state, "/open javascript:alert(1)") or ""
    assert out.startswith("Failed: Security violation")


def test_status_command(state) -> None:
    out = registry.handle(state, "/status") or ""
    assert "Scheduler: OFF" in out
    assert "tolerance 15 min" in out
