# src/tasknag/browser/executor.py

from __future__ import annotations

"""
Browser action executor.

Opens the URLs attached to a task, one after another:
- every URL is validated first; invalid ones are skipped,
- every open is bounded by a timeout,
- a failing action never stops the remaining ones,
- a short pause separates consecutive opens so the OS/browser is not
  flooded with simultaneous process spawns.
"""

import asyncio
import logging
import shutil
import sys
from collections.abc import Awaitable, Callable, Sequence

from ..core.ports import UrlOpener
from ..errors import BrowserActionError, CommandFailed, InvalidUrlError, OpenTimeout, SecurityViolation
from .models import BrowserAction
from .url_validator import URLValidator

logger = logging.getLogger(__name__)

DEFAULT_OPEN_TIMEOUT_SECONDS = 3.0
DEFAULT_PACING_SECONDS = 0.5


def _open_command(url: str) -> list[str]:
    if sys.platform.startswith("win"):
        return ["cmd", "/C", "start", "", url]
    if sys.platform == "darwin":
        return ["open", url]
    return ["xdg-open", url]


class SystemUrlOpener:
    """Opens URLs with the platform's default handler (start / open / xdg-open)."""

    async def open_url(self, url: str) -> None:
        cmd = _open_command(url)
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as e:
            raise CommandFailed(f"failed to execute {cmd[0]}: {e}") from e

        try:
            rc = await proc.wait()
        except asyncio.CancelledError:
            # Timed out or shutting down: do not leave the helper process behind.
            if proc.returncode is None:
                proc.kill()
            raise

        if rc != 0:
            raise CommandFailed(f"{cmd[0]} exited with status {rc}")

    @staticmethod
    def is_available() -> bool:
        return shutil.which(_open_command("x")[0]) is not None


class BrowserActionExecutor:
    def __init__(
        self,
        opener: UrlOpener | None = None,
        validator: URLValidator | None = None,
        *,
        open_timeout: float = DEFAULT_OPEN_TIMEOUT_SECONDS,
        pacing: float = DEFAULT_PACING_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._opener: UrlOpener = opener or SystemUrlOpener()
        self._validator = validator or URLValidator()
        self._open_timeout = max(0.1, float(open_timeout))
        self._pacing = max(0.0, float(pacing))
        self._sleep = sleep

    @property
    def validator(self) -> URLValidator:
        return self._validator

    async def run(self, actions: Sequence[BrowserAction]) -> None:
        """
        Open every enabled action in ascending order.

        Never raises for a single action: invalid URLs, open failures and
        timeouts are logged and the loop moves on.
        """
        ordered = sorted(actions, key=lambda a: a.order)
        enabled = [a for a in ordered if a.enabled]
        for skipped in ordered:
            if not skipped.enabled:
                logger.debug("Skipping disabled action: %s", skipped.label)

        if not enabled:
            logger.debug("No browser actions to execute")
            return

        logger.info("Executing %d browser actions", len(enabled))

        for index, action in enumerate(enabled):
            logger.info(
                "Browser action %d/%d: %s -> %s", index + 1, len(enabled), action.label, action.url
            )

            result = self._validator.validate(action.url)
            if not result.is_valid:
                logger.warning("Skipping invalid URL %s: %s", action.url, result.error)
                continue

            try:
                await self._open_with_timeout(result.normalized_url or action.url)
                logger.info("Opened URL: %s", action.url)
            except BrowserActionError as e:
                logger.warning("Failed to open URL %s: %s. Continuing with remaining actions.", action.url, e)
            except Exception:
                logger.exception("Unexpected error opening URL %s; continuing", action.url)

            if index < len(enabled) - 1 and self._pacing > 0:
                await self._sleep(self._pacing)

        logger.info("Completed browser actions execution")

    async def run_one(self, action: BrowserAction) -> None:
        """Open a single action, propagating any failure (used by "test this action")."""
        if not action.enabled:
            return
        await self.test_url(action.url)

    async def test_url(self, url: str) -> None:
        result = self._validator.validate(url)
        if not result.is_valid:
            if result.security:
                raise SecurityViolation(result.error or "Unknown validation error")
            raise InvalidUrlError(url)
        await self._open_with_timeout(result.normalized_url or url)

    def is_available(self) -> bool:
        check = getattr(self._opener, "is_available", None)
        if check is None:
            return True
        try:
            return bool(check())
        except Exception:
            logger.debug("Opener availability check failed.", exc_info=True)
            return False

    async def _open_with_timeout(self, url: str) -> None:
        try:
            await asyncio.wait_for(self._opener.open_url(url), timeout=self._open_timeout)
        except asyncio.TimeoutError as e:
            raise OpenTimeout(url, self._open_timeout) from e
