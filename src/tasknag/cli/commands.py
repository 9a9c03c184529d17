# src/tasknag/cli/commands.py

from __future__ import annotations

import asyncio
import contextlib
import inspect
import logging
from collections.abc import Callable
from datetime import datetime
from typing import cast

from ..core.state import AppState
from ..errors import BrowserActionError, ConfigurationError, DeliveryError
from ..notifications.evaluator import notification_for, reminder_instant
from ..notifications.models import FiredNotification, NotificationKind, Task

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /check, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _now(state: AppState) -> datetime:
    return state.scheduler.clock.now()


def _format_fired(fired: list[FiredNotification]) -> str:
    if not fired:
        return "No notifications due right now."
    lines = [f"Fired {len(fired)} notification(s):"]
    for n in fired:
        extra = f", due in {n.days_until_due}d" if n.days_until_due is not None else ""
        lines.append(f"  - [{n.kind.value}, level {n.level}{extra}] {n.title} ({n.task_id})")
    return "\n".join(lines)


def _describe_schedule(task: Task, now: datetime) -> str:
    cfg = task.notification
    if cfg.kind is NotificationKind.DUE_DATE_BASED:
        try:
            at = reminder_instant(task, now)
        except ConfigurationError as e:
            return f"due-date (invalid: {e})"
        return f"due-date, reminds at {at.strftime('%Y-%m-%d %H:%M')}"
    if cfg.kind is NotificationKind.RECURRING:
        names = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
        days = ",".join(names[d] for d in sorted(cfg.days_of_week))
        tod = cfg.time_of_day.strftime("%H:%M") if cfg.time_of_day else "--:--"
        return f"recurring {days} at {tod}"
    return "none"


def cmd_help(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    settings = state.settings
    scheduler = "ON" if state.runner is not None else "OFF"
    opener = "available" if state.executor.is_available() else "NOT available"
    return (
        "Status:\n"
        f"  Scheduler: {scheduler} (every {state.scheduler.interval_minutes} min, "
        f"tolerance {state.scheduler.tolerance_minutes:g} min)\n"
        f"  Alerts: {type(state.sink).__name__}\n"
        f"  URL opener: {opener}\n"
        f"  Tasks DB: {getattr(settings, 'tasks_db_path', '?')}"
    )


def cmd_tasks(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    tasks = state.task_store.list_active_notifiable()
    if not tasks:
        return "No active tasks with notifications."
    now = _now(state)
    lines = [f"Active tasks with notifications ({len(tasks)}):"]
    for t in tasks:
        actions = len(t.browser_actions.enabled_actions())
        lines.append(
            f"  {t.id}  L{t.notification.level}  {t.title}  [{_describe_schedule(t, now)}]"
            + (f"  +{actions} url(s)" if actions else "")
        )
    return "\n".join(lines)


def cmd_check(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """Manual trigger: one sweep through the same path as the periodic loop."""
    if state.runner is not None:
        fired = state.runner.check_now()
    else:
        fired = asyncio.run(state.scheduler.check_now())
    return _format_fired(fired)


def cmd_validate(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return "Usage: /validate <url>"
    url = " ".join(args)
    result = state.validator.validate(url)
    if result.is_valid:
        return f"Valid: {result.normalized_url} (protocol={result.protocol}, host={result.host})"
    suggestions = state.validator.suggest_corrections(url)
    hint = f"\n  Did you mean: {', '.join(suggestions)}" if suggestions else ""
    return f"Invalid: {result.error}{hint}"


def cmd_suggest(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return "Usage: /suggest <url>"
    suggestions = state.validator.suggest_corrections(" ".join(args))
    if not suggestions:
        return "No suggestions."
    return "Suggestions:\n" + "\n".join(f"  {s}" for s in suggestions)


def cmd_open(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """Test a URL by opening it now (errors are reported, not swallowed)."""
    if not args:
        return "Usage: /open <url>"
    url = " ".join(args)
    if emit:
        with contextlib.suppress(Exception):
            emit(f"Opening {url} ...")
    try:
        asyncio.run(state.executor.test_url(url))
    except BrowserActionError as e:
        return f"Failed: {e}"
    return "Opened."


def cmd_fire(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """Dispatch a task's reminder immediately, ignoring its schedule."""
    if not args:
        return "Usage: /fire <task_id>"
    try:
        task = state.task_store.get_task(args[0])
    except ConfigurationError as e:
        return f"Task {args[0]} has invalid notification settings: {e}"
    if task is None:
        return f"No task with id {args[0]}."

    notification = notification_for(task, _now(state))
    try:
        asyncio.run(state.dispatcher.fire(notification, task))
    except DeliveryError as e:
        return f"Alert failed: {e}"
    return f"Fired reminder for {task.title!r} (level {notification.level})."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show scheduler and alert settings.")
registry.register("tasks", cmd_tasks, help_text="List active tasks with notifications.")
registry.register("check", cmd_check, help_text="Run a notification check now.", aliases=["checknow"])
registry.register("validate", cmd_validate, help_text="Validate a URL: /validate <url>.")
registry.register("suggest", cmd_suggest, help_text="Suggest fixes for a URL: /suggest <url>.")
registry.register("open", cmd_open, help_text="Open a URL now to test it: /open <url>.")
registry.register("fire", cmd_fire, help_text="Fire a task's reminder now: /fire <task_id>.")
