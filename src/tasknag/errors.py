# src/tasknag/errors.py

from __future__ import annotations


class TaskNagError(Exception):
    """Base class for all tasknag errors."""


class ConfigurationError(TaskNagError):
    """A task's notification configuration cannot be used (bad time, weekdays, ...)."""


class DeliveryError(TaskNagError):
    """The presentation sink failed to show an alert."""


class BrowserActionError(TaskNagError):
    """Opening a browser action failed."""


class InvalidUrlError(BrowserActionError):
    def __init__(self, url: str) -> None:
        super().__init__(f"Invalid URL: {url}")
        self.url = url


class SecurityViolation(BrowserActionError):
    def __init__(self, reason: str) -> None:
        super().__init__(f"Security violation: {reason}")
        self.reason = reason


class CommandFailed(BrowserActionError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"Browser command failed: {detail}")
        self.detail = detail


class OpenTimeout(BrowserActionError):
    def __init__(self, url: str, timeout: float) -> None:
        super().__init__(f"Browser action timed out after {timeout:.1f}s: {url}")
        self.url = url
        self.timeout = timeout
