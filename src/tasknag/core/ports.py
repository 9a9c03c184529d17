# src/tasknag/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the notification engine.

The engine depends on Protocols instead of concrete implementations.
Storage, the UI/desktop layer and the OS URL facility stay swappable,
and tests can drive the scheduler without real sleeping.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Awaitable, Protocol

if TYPE_CHECKING:
    from ..notifications.models import Task


class TaskSnapshotProvider(Protocol):
    """Storage-side port: tasks that are not done and have notifications configured."""

    def list_active_notifiable(self) -> list[Task]: ...


class PresentationSink(Protocol):
    """
    UI-side port: how the engine shows reminders.

    show_alert failures are reported by raising; play_cue and bring_to_front
    are best-effort and their failures are only logged by the caller.
    """

    def show_alert(self, title: str, body: str) -> Awaitable[None]: ...
    def play_cue(self) -> Awaitable[None]: ...
    def bring_to_front(self) -> Awaitable[None]: ...


class UrlOpener(Protocol):
    """Open a URL in the default external handler (browser)."""

    def open_url(self, url: str) -> Awaitable[None]: ...


class Clock(Protocol):
    def now(self) -> datetime: ...
    def sleep(self, seconds: float) -> Awaitable[None]: ...
