# src/tasknag/tasks/task_store.py

from __future__ import annotations

import contextlib
import json
import logging
import sqlite3
import time
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any

from ..browser.models import BrowserActionSettings
from ..errors import ConfigurationError
from ..notifications.models import (
    NotificationConfig,
    NotificationKind,
    Task,
    TaskStatus,
    parse_due,
)

logger = logging.getLogger(__name__)


class TaskStore:
    """
    SQLite task store (the task snapshot provider for the notification engine).

    The schema is intentionally simple and migration-safe:
    - create table if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Notification settings are stored the way the host app writes them:
    notification_time as "HH:MM", notification_days_of_week as a JSON array,
    browser_actions as a JSON object.

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        try:
            total = self.count_tasks()
        except Exception:
            total = -1
        logger.info("TaskStore ready db=%s total=%s", self._db_path, total)

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(Exception):
            conn.execute("PRAGMA journal_mode=WAL")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    description TEXT,
                    status TEXT NOT NULL DEFAULT 'todo',
                    due_date TEXT,
                    created_at REAL NOT NULL,
                    updated_at REAL NOT NULL,
                    notification_type TEXT DEFAULT 'none',
                    notification_days_before INTEGER,
                    notification_time TEXT,
                    notification_days_of_week TEXT,
                    notification_level INTEGER DEFAULT 1,
                    browser_actions TEXT DEFAULT NULL
                )
                """
            )

            # Migrations (safe): add missing columns.
            cur.execute("PRAGMA table_info(tasks)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE tasks ADD COLUMN {name} {decl}")
                logger.info("TaskStore migration: added column %s", name)

            add_col("description", "TEXT")
            add_col("due_date", "TEXT")
            add_col("notification_type", "TEXT DEFAULT 'none'")
            add_col("notification_days_before", "INTEGER")
            add_col("notification_time", "TEXT")
            add_col("notification_days_of_week", "TEXT")
            add_col("notification_level", "INTEGER DEFAULT 1")
            add_col("browser_actions", "TEXT DEFAULT NULL")

            cur.execute(
                "CREATE INDEX IF NOT EXISTS idx_tasks_notification "
                "ON tasks(status, notification_type)"
            )

            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        """Raises ConfigurationError when the stored notification settings are malformed."""
        notification = NotificationConfig.from_storage(
            {
                "kind": row["notification_type"],
                "daysBefore": row["notification_days_before"],
                "timeOfDay": row["notification_time"],
                "daysOfWeek": row["notification_days_of_week"],
                "level": row["notification_level"],
            }
        )
        return Task(
            id=str(row["id"]),
            title=str(row["title"] or ""),
            status=TaskStatus.from_db(row["status"]),
            due_at=parse_due(row["due_date"]),
            notification=notification,
            browser_actions=BrowserActionSettings.from_json(row["browser_actions"]),
            description=row["description"],
        )

    def _rows_to_tasks(self, rows: list[sqlite3.Row]) -> list[Task]:
        out: list[Task] = []
        for r in rows:
            try:
                out.append(self._row_to_task(r))
            except ConfigurationError as e:
                logger.warning("Skipping task %s: malformed notification settings: %s", r["id"], e)
        return out

    # ---- public API ----

    def count_tasks(self) -> int:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT COUNT(*) FROM tasks")
            (n,) = cur.fetchone()
            return int(n)
        finally:
            conn.close()

    def add_task(
        self,
        *,
        title: str,
        description: str | None = None,
        status: TaskStatus = TaskStatus.TODO,
        due_at: datetime | None = None,
        notification: NotificationConfig | None = None,
        browser_actions: BrowserActionSettings | None = None,
        task_id: str | None = None,
    ) -> str:
        if not title or not title.strip():
            raise ValueError("title is required")

        cfg = notification or NotificationConfig()
        stored = cfg.to_storage()
        days_json = None
        if stored["daysOfWeek"] is not None:
            days_json = json.dumps(stored["daysOfWeek"])

        new_id = task_id or str(uuid.uuid4())
        now = time.time()

        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO tasks(
                    id, title, description, status, due_date, created_at, updated_at,
                    notification_type, notification_days_before, notification_time,
                    notification_days_of_week, notification_level, browser_actions
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    new_id,
                    title.strip(),
                    description,
                    status.value,
                    due_at.isoformat() if due_at is not None else None,
                    now,
                    now,
                    stored["kind"],
                    stored["daysBefore"],
                    stored["timeOfDay"],
                    days_json,
                    stored["level"],
                    browser_actions.to_json() if browser_actions is not None else None,
                ),
            )
            conn.commit()
            logger.debug("Task added id=%s kind=%s status=%s due=%s", new_id, cfg.kind.value, status.value, due_at)
            return new_id
        finally:
            conn.close()

    def get_task(self, task_id: str) -> Task | None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT * FROM tasks WHERE id = ?", (task_id,))
            row = cur.fetchone()
            return self._row_to_task(row) if row is not None else None
        finally:
            conn.close()

    def list_tasks(self, limit: int = 100) -> list[Task]:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT * FROM tasks ORDER BY created_at ASC LIMIT ?", (int(limit),))
            return self._rows_to_tasks(cur.fetchall())
        finally:
            conn.close()

    def list_active_notifiable(self) -> list[Task]:
        """
        Tasks the notification scheduler should evaluate:
        status != done and a notification kind other than none.

        A row with malformed settings is skipped on its own; the rest are returned.
        """
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                SELECT *
                FROM tasks
                WHERE status != 'done'
                  AND notification_type IS NOT NULL
                  AND notification_type != 'none'
                ORDER BY notification_level DESC, created_at DESC
                """
            )
            tasks = self._rows_to_tasks(cur.fetchall())
            logger.debug("Active notifiable tasks: %d", len(tasks))
            return [t for t in tasks if t.notification.kind is not NotificationKind.NONE]
        finally:
            conn.close()

    def update_status(self, task_id: str, new_status: TaskStatus) -> None:
        self._update(task_id, {"status": new_status.value})

    def update_notification_settings(self, task_id: str, config: NotificationConfig) -> None:
        stored = config.to_storage()
        days = stored["daysOfWeek"]
        self._update(
            task_id,
            {
                "notification_type": stored["kind"],
                "notification_days_before": stored["daysBefore"],
                "notification_time": stored["timeOfDay"],
                "notification_days_of_week": None if days is None else json.dumps(days),
                "notification_level": stored["level"],
            },
        )

    def update_browser_actions(self, task_id: str, settings: BrowserActionSettings) -> None:
        self._update(task_id, {"browser_actions": settings.to_json()})

    def _update(self, task_id: str, values: dict[str, Any]) -> None:
        fields = [f"{name} = ?" for name in values]
        params: list[Any] = list(values.values())

        fields.append("updated_at = ?")
        params.append(time.time())
        params.append(task_id)

        sql = f"UPDATE tasks SET {', '.join(fields)} WHERE id = ?"

        conn = self._get_conn()
        try:
            conn.execute(sql, params)
            conn.commit()
        finally:
            conn.close()
