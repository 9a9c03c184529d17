# src/tasknag/logging_setup.py

"""
Logging for tasknag.

Two sinks with different audiences:
- the console is shared with the REPL, so it only shows what a user acts on
  (fired reminders, skipped tasks, failures, command feedback);
- tasknag.log keeps everything, including every evaluation decision and the
  routine "sweep at HH:MM" line written every interval.

The scheduler runs in its own thread, so file lines carry the thread name.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FILE_NAME = "tasknag.log"

# Set via `extra={SWEEP_RECORD: True}` on the routine per-sweep summary line.
SWEEP_RECORD = "tasknag_sweep"

_EVALUATOR_LOGGER = "tasknag.notifications.evaluator"

_CONSOLE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_FILE_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s [%(threadName)s] %(name)s: %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ConsoleRouting(logging.Filter):
    """
    Decide what reaches the interactive console.

    - per-sweep summaries: file only, unless WARNING+
    - evaluator: WARNING+ (its DEBUG lines explain every non-fire)
    - other tasknag loggers: everything the handler level lets through
    - third-party and captured py.warnings: ERROR+
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, SWEEP_RECORD, False):
            return record.levelno >= logging.WARNING

        name = record.name
        if name == _EVALUATOR_LOGGER:
            return record.levelno >= logging.WARNING
        if name == "tasknag" or name.startswith("tasknag."):
            return True
        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path = ".local/tasknag",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Install the console and file handlers on the root logger.

    Replaces handlers from an earlier call, so running it twice does not
    duplicate output. Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(min(console_level, file_level))
    for h in list(root.handlers):
        root.removeHandler(h)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT, datefmt=_DATE_FORMAT))
    console.addFilter(ConsoleRouting())
    root.addHandler(console)

    file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_DATE_FORMAT))
    root.addHandler(file_handler)

    logging.captureWarnings(True)
    return log_file
