# src/tasknag/notifications/scheduler.py

from __future__ import annotations

"""
Notification scheduler.

A single timer loop that:
- sleeps until the next wall-clock boundary (:00, :15, :30, :45 by default),
- runs one sweep: pull active tasks, evaluate each, dispatch what fires,
- re-arms on the same fixed interval.

The scheduler keeps no state across sweeps. A manual check_now() goes through
the same sweep and is serialized with the periodic one by an asyncio.Lock.

To stop the scheduler, cancel the run_forever() coroutine/task.
"""

import asyncio
import contextlib
import logging
import threading
from dataclasses import dataclass
from datetime import datetime

from ..core.ports import Clock, TaskSnapshotProvider
from ..errors import ConfigurationError, DeliveryError
from ..logging_setup import SWEEP_RECORD
from .dispatcher import NotificationDispatcher
from .evaluator import DEFAULT_TOLERANCE_MINUTES, NotificationEvaluator
from .models import FiredNotification, NotificationKind

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_MINUTES = 15


class SystemClock:
    """Local wall clock (timezone-aware) + asyncio sleep."""

    def now(self) -> datetime:
        return datetime.now().astimezone()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


def seconds_until_next_boundary(now: datetime, interval_minutes: int = DEFAULT_INTERVAL_MINUTES) -> float:
    """
    Seconds from now to the next multiple of interval_minutes past midnight.

    At an exact boundary the following one is returned (never 0).
    """
    interval_s = int(interval_minutes) * 60
    since_midnight = now.hour * 3600 + now.minute * 60 + now.second + now.microsecond / 1_000_000
    remainder = since_midnight % interval_s
    return float(interval_s - remainder)


class NotificationScheduler:
    def __init__(
        self,
        provider: TaskSnapshotProvider,
        dispatcher: NotificationDispatcher,
        *,
        interval_minutes: int = DEFAULT_INTERVAL_MINUTES,
        tolerance_minutes: float = DEFAULT_TOLERANCE_MINUTES,
        clock: Clock | None = None,
    ) -> None:
        if interval_minutes <= 0:
            raise ValueError("interval_minutes must be positive")
        if tolerance_minutes != interval_minutes:
            # Shorter misses boundaries; longer fires one crossing on two consecutive sweeps.
            logger.warning(
                "Tolerance %.1f min does not match the %d min interval; using %d",
                tolerance_minutes,
                interval_minutes,
                interval_minutes,
            )
            tolerance_minutes = float(interval_minutes)

        self._provider = provider
        self._dispatcher = dispatcher
        self._evaluator = NotificationEvaluator(tolerance_minutes)
        self._clock: Clock = clock or SystemClock()
        self.interval_minutes = int(interval_minutes)
        self._lock = asyncio.Lock()

    @property
    def tolerance_minutes(self) -> float:
        return self._evaluator.tolerance_minutes

    @property
    def clock(self) -> Clock:
        return self._clock

    async def check_now(self) -> list[FiredNotification]:
        """Run one sweep on demand and return what was delivered."""
        logger.info("Manual notification check requested")
        return await self.sweep()

    async def sweep(self, now: datetime | None = None) -> list[FiredNotification]:
        async with self._lock:
            now = now or self._clock.now()
            return await self._sweep_locked(now)

    async def _sweep_locked(self, now: datetime) -> list[FiredNotification]:
        try:
            tasks = self._provider.list_active_notifiable()
        except Exception:
            logger.exception("list_active_notifiable failed")
            return []

        logger.info(
            "Notification sweep at %s: %d active tasks",
            now.strftime("%Y-%m-%d %H:%M"),
            len(tasks),
            extra={SWEEP_RECORD: True},
        )

        fired: list[FiredNotification] = []
        for task in tasks:
            if task.is_done or task.notification.kind is NotificationKind.NONE:
                continue

            try:
                notification = self._evaluator.evaluate(task, now)
            except ConfigurationError as e:
                logger.warning("Skipping task %s this sweep: %s", task.id, e)
                continue
            except Exception:
                logger.exception("Evaluation crashed task_id=%s", task.id)
                continue

            if notification is None:
                continue

            try:
                await self._dispatcher.fire(notification, task)
            except DeliveryError as e:
                logger.error("Delivery failed task_id=%s: %s", task.id, e)
                continue
            except Exception:
                logger.exception("Dispatch crashed task_id=%s", task.id)
                continue

            fired.append(notification)

        if fired:
            logger.info("Sweep fired %d notification(s)", len(fired))
        return fired

    async def run_forever(self) -> None:
        """Align to the next boundary, sweep, then repeat every interval."""
        wait_s = seconds_until_next_boundary(self._clock.now(), self.interval_minutes)
        logger.info(
            "Notification scheduler: first check in %.0fs (every %d min)", wait_s, self.interval_minutes
        )

        while True:
            await self._clock.sleep(wait_s)

            try:
                await self.sweep()
            except Exception:
                logger.exception("Notification sweep failed")

            # Re-arm against the wall clock so sweep duration does not drift the cadence.
            wait_s = seconds_until_next_boundary(self._clock.now(), self.interval_minutes)


@dataclass(slots=True)
class SchedulerBackgroundRunner:
    thread: threading.Thread
    loop: asyncio.AbstractEventLoop
    scheduler: NotificationScheduler
    task: asyncio.Task[None]

    def check_now(self, timeout: float | None = 60.0) -> list[FiredNotification]:
        """Thread-safe manual trigger: runs on the scheduler's loop and waits for the result."""
        fut = asyncio.run_coroutine_threadsafe(self.scheduler.check_now(), self.loop)
        return fut.result(timeout=timeout)

    def stop(self) -> None:
        try:
            self.loop.call_soon_threadsafe(self.task.cancel)
        except Exception:
            logger.debug("Failed to signal scheduler stop.", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)


def start_scheduler_in_background(scheduler: NotificationScheduler) -> SchedulerBackgroundRunner | None:
    """
    Run the scheduler on its own event loop in a daemon thread.

    The console REPL blocks on input(), so the timer loop cannot share its thread.
    """
    ready = threading.Event()
    holder: dict[str, object] = {}

    def runner() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        task = loop.create_task(scheduler.run_forever())

        holder["loop"] = loop
        holder["task"] = task
        ready.set()

        try:
            with contextlib.suppress(asyncio.CancelledError):
                loop.run_until_complete(task)
        finally:
            with contextlib.suppress(Exception):
                loop.close()

    t = threading.Thread(target=runner, name="notification-scheduler", daemon=True)
    t.start()

    ready.wait(timeout=5.0)
    loop = holder.get("loop")
    task = holder.get("task")

    if not isinstance(loop, asyncio.AbstractEventLoop) or not isinstance(task, asyncio.Task):
        logger.error("Scheduler thread did not initialize properly.")
        return None

    logger.info("Notification scheduler thread started.")
    return SchedulerBackgroundRunner(thread=t, loop=loop, scheduler=scheduler, task=task)
