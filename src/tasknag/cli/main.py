# src/tasknag/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then starts:
- the notification scheduler in a background thread (optional),
- the console REPL in the main thread (optional).
"""

from __future__ import annotations

import contextlib
import logging
import signal
import threading

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging
from ..notifications.scheduler import start_scheduler_in_background

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    log_dir = getattr(settings, "data_dir", ".local/tasknag")
    log_file = setup_logging(log_dir=log_dir, console_level=console_level)

    logger.info("Starting %s (log file: %s)...", getattr(settings, "app_name", "tasknag"), log_file)

    # IMPORTANT: reuse same settings object
    state = create_initial_state(settings=settings)

    if settings.scheduler_enabled:
        state.runner = start_scheduler_in_background(state.scheduler)
    else:
        logger.info("Notification scheduler disabled (TASKNAG_SCHEDULER_ENABLED=0).")

    # Use an Event so main can wait without a busy while-loop.
    stop_main = threading.Event()

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        stop_main.set()

    # Some platforms do not support SIGTERM.
    with contextlib.suppress(ValueError, OSError, AttributeError):
        signal.signal(signal.SIGINT, _handle_signal)
        signal.signal(signal.SIGTERM, _handle_signal)

    try:
        if settings.console_enabled:
            run_console_loop(state)
            stop_main.set()
        else:
            logger.info("Console disabled. Running the scheduler only. Press Ctrl+C to stop.")
            stop_main.wait()

    finally:
        if state.runner is not None:
            state.runner.stop()
            state.runner.join(timeout=10.0)

        state.task_store.close()
        logger.info("Bye.")


if __name__ == "__main__":
    main()
