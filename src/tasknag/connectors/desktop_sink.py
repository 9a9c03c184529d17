# src/tasknag/connectors/desktop_sink.py

from __future__ import annotations

import asyncio
import logging
import sys

from ..errors import DeliveryError

logger = logging.getLogger(__name__)

ALERT_TIMEOUT_SECONDS = 10.0
CUE_TIMEOUT_SECONDS = 5.0


def _ps_quote(text: str) -> str:
    return text.replace("'", "''")


def _as_quote(text: str) -> str:
    """Escape for an AppleScript string literal: backslashes first, then quotes."""
    return text.replace("\\", "\\\\").replace('"', '\\"')


def _alert_command(app_name: str, title: str, body: str) -> list[str]:
    if sys.platform.startswith("win"):
        script = (
            "[Windows.UI.Notifications.ToastNotificationManager, Windows.UI.Notifications, "
            "ContentType = WindowsRuntime] | Out-Null;"
            "$t = [Windows.UI.Notifications.ToastNotificationManager]::GetTemplateContent("
            "[Windows.UI.Notifications.ToastTemplateType]::ToastText02);"
            f"$t.GetElementsByTagName('text')[0].AppendChild($t.CreateTextNode('{_ps_quote(title)}')) | Out-Null;"
            f"$t.GetElementsByTagName('text')[1].AppendChild($t.CreateTextNode('{_ps_quote(body[:200])}')) | Out-Null;"
            "[Windows.UI.Notifications.ToastNotificationManager]::CreateToastNotifier("
            f"'{_ps_quote(app_name)}').Show([Windows.UI.Notifications.ToastNotification]::new($t))"
        )
        return ["powershell", "-NoProfile", "-Command", script]
    if sys.platform == "darwin":
        return ["osascript", "-e", f'display notification "{_as_quote(body)}" with title "{_as_quote(title)}"']
    return ["notify-send", "--app-name", app_name, title, body]


def _cue_command() -> list[str]:
    if sys.platform.startswith("win"):
        return ["powershell", "-NoProfile", "-Command", "[System.Media.SystemSounds]::Asterisk.Play()"]
    if sys.platform == "darwin":
        return ["afplay", "/System/Library/Sounds/Glass.aiff"]
    return ["canberra-gtk-play", "--id", "message-new-instant"]


async def _run(cmd: list[str], timeout: float) -> int:
    proc = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=asyncio.subprocess.DEVNULL,
        stderr=asyncio.subprocess.DEVNULL,
    )
    try:
        return await asyncio.wait_for(proc.wait(), timeout=timeout)
    except asyncio.TimeoutError:
        if proc.returncode is None:
            proc.kill()
        raise


class DesktopSink:
    """
    PresentationSink backed by the OS notification center.

    - Linux: notify-send
    - macOS: osascript "display notification"
    - Windows: PowerShell toast
    """

    def __init__(self, app_name: str = "tasknag") -> None:
        self.app_name = app_name

    async def show_alert(self, title: str, body: str) -> None:
        cmd = _alert_command(self.app_name, title, body)
        try:
            rc = await _run(cmd, ALERT_TIMEOUT_SECONDS)
        except (OSError, asyncio.TimeoutError) as e:
            raise DeliveryError(f"{cmd[0]} failed: {e!r}") from e
        if rc != 0:
            raise DeliveryError(f"{cmd[0]} exited with status {rc}")
        logger.debug("Desktop alert shown: %s", title)

    async def play_cue(self) -> None:
        cmd = _cue_command()
        try:
            await _run(cmd, CUE_TIMEOUT_SECONDS)
        except (OSError, asyncio.TimeoutError):
            # Sound players are optional on most desktops; fall back to the terminal bell.
            sys.stdout.write("\a")
            sys.stdout.flush()

    async def bring_to_front(self) -> None:
        # A CLI process owns no window; the alert itself is the foreground signal.
        logger.info("Escalated reminder: bring-to-front requested")
