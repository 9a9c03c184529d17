# src/tasknag/connectors/console_connector.py

from __future__ import annotations

import logging
import sys
import threading
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState

logger = logging.getLogger(__name__)

# Alerts arrive from the scheduler thread while the REPL waits on input().
_print_lock = threading.Lock()


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    with _print_lock:
        print(f"[{_ts_local()}] {text}", flush=True)


class ConsoleSink:
    """PresentationSink that prints alerts to the terminal."""

    def __init__(self, app_name: str = "tasknag") -> None:
        self.app_name = app_name

    async def show_alert(self, title: str, body: str) -> None:
        _print_ts(f"[{self.app_name}] {title}: {body}")

    async def play_cue(self) -> None:
        with _print_lock:
            sys.stdout.write("\a")
            sys.stdout.flush()

    async def bring_to_front(self) -> None:
        _print_ts(f"[{self.app_name}] ⚠ This reminder needs your attention now.")


def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started.")
    _print_ts("[CONSOLE] Use /help for commands. Use /exit to quit.\n")

    def emit(text: str) -> None:
        # Immediate user-visible feedback for slow commands (e.g. opening a URL).
        _print_ts(text)

    while True:
        try:
            user_input = input(">>> ").strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            response = command_registry.handle(state, user_input, emit=emit)
        except Exception:
            logger.exception("Command handler crashed.")
            response = "Internal error while handling a command."

        if response is None:
            response = "Commands start with '/'. Use /help to list them."

        _print_ts(response)

    logger.info("Console connector finished.")
