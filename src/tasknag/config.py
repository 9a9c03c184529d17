# src/tasknag/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- Nothing secret is needed; every value has a working default.
- Scheduler timing invariants are enforced here, once.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TASKNAG"

DEFAULT_INTERVAL_MINUTES = 15

logger = logging.getLogger(__name__)

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Surfaces ----
    console_enabled: bool
    scheduler_enabled: bool
    desktop_alerts: bool

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    tasks_db_path: Path

    # ---- Scheduler timing ----
    check_interval_minutes: int
    tolerance_minutes: int

    # ---- Browser actions ----
    url_open_timeout_seconds: float
    action_pacing_seconds: float

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "tasknag") or "tasknag"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)
        scheduler_enabled = _env_bool(_k("SCHEDULER_ENABLED"), True)
        desktop_alerts = _env_bool(_k("DESKTOP_ALERTS"), False)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/tasknag"))
        tasks_db_path = _env_path(_k("TASKS_DB_PATH"), data_dir / "tasks.sqlite3")

        interval = _env_int(_k("CHECK_INTERVAL_MINUTES"), DEFAULT_INTERVAL_MINUTES)
        if interval <= 0 or 60 % interval != 0:
            # Boundaries must tile the hour (:00, :15, ...).
            logger.warning("Invalid check interval %r; using %d", interval, DEFAULT_INTERVAL_MINUTES)
            interval = DEFAULT_INTERVAL_MINUTES

        # Half-open window [target, target + tolerance): shorter misses boundaries,
        # longer fires the same reminder on two consecutive sweeps.
        tolerance = _env_int(_k("TOLERANCE_MINUTES"), interval)
        if tolerance != interval:
            logger.warning("Tolerance %d min != interval %d min; using %d", tolerance, interval, interval)
            tolerance = interval

        url_open_timeout_seconds = max(0.1, _env_float(_k("URL_OPEN_TIMEOUT"), 3.0))
        action_pacing_seconds = max(0.0, _env_float(_k("ACTION_PACING"), 0.5))

        return Settings(
            app_name=app_name,
            log_level=log_level,
            console_enabled=console_enabled,
            scheduler_enabled=scheduler_enabled,
            desktop_alerts=desktop_alerts,
            data_dir=data_dir,
            tasks_db_path=tasks_db_path,
            check_interval_minutes=interval,
            tolerance_minutes=tolerance,
            url_open_timeout_seconds=url_open_timeout_seconds,
            action_pacing_seconds=action_pacing_seconds,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
