"""
Refresh triggers.

A trigger decides when a background refresh runs. Desktop and server
processes use a recurring timer; mobile-style hosts run one-shot tasks
bounded by a deadline.
"""

import asyncio
import contextlib
import sys
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

from tidings_core.logging_config import get_logger

logger = get_logger(__name__)

RefreshCallback = Callable[[asyncio.Event | None], Awaitable[int]]

MOBILE_PLATFORMS = ("ios", "ipados", "android")
DEFAULT_DEADLINE_SECONDS = 30.0


class RefreshTrigger(ABC):
    """Schedules calls to a refresh callback."""

    def __init__(self, refresh: RefreshCallback, interval_minutes: int):
        """
        Initialize the trigger.

        Args:
            refresh: Called with an optional cancel event; returns the
                number of new articles.
            interval_minutes: Minutes between refreshes, 0 for manual only.
        """
        self._refresh = refresh
        self.interval_minutes = interval_minutes
        self._task: asyncio.Task[None] | None = None

    @property
    def interval_seconds(self) -> float:
        return self.interval_minutes * 60.0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start scheduling. Does nothing when refresh is manual only."""
        self.stop()
        if self.interval_minutes <= 0:
            logger.info("Automatic refresh disabled")
            return
        self._task = asyncio.create_task(self._run())
        logger.info(
            "Refresh scheduled",
            extra={"trigger": type(self).__name__, "interval_minutes": self.interval_minutes},
        )

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def wait_stopped(self) -> None:
        """Stop and wait until the scheduling task has finished."""
        task = self._task
        self.stop()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def trigger_now(self) -> int:
        """Run a refresh immediately, outside the schedule."""
        return await self._refresh(None)

    @abstractmethod
    async def _run(self) -> None:
        """Scheduling loop."""


class TimerRefreshTrigger(RefreshTrigger):
    """Recurring timer that refreshes every interval."""

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                new_articles = await self._refresh(None)
            except Exception:
                logger.exception("Scheduled refresh failed")
                continue
            logger.info("Scheduled refresh finished", extra={"new_articles": new_articles})


class ScheduledTaskRefreshTrigger(RefreshTrigger):
    """
    One-shot background tasks with an expiration deadline.

    Each run is requested again before it executes. When the deadline
    passes the refresh is asked to stop through its cancel event and is
    then awaited, so persisted work stays consistent.
    """

    def __init__(
        self,
        refresh: RefreshCallback,
        interval_minutes: int,
        deadline_seconds: float = DEFAULT_DEADLINE_SECONDS,
    ):
        super().__init__(refresh, interval_minutes)
        self.deadline_seconds = deadline_seconds

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            completed = await self.handle_background_task()
            logger.info("Background task finished", extra={"success": completed})

    async def handle_background_task(self) -> bool:
        """
        Execute one background task.

        Returns:
            True if the refresh finished before the deadline.
        """
        cancel_event = asyncio.Event()
        refresh_task = asyncio.create_task(self._refresh(cancel_event))

        done, _ = await asyncio.wait({refresh_task}, timeout=self.deadline_seconds)
        expired = refresh_task not in done
        if expired:
            logger.info("Background task expired, cancelling refresh")
            cancel_event.set()

        try:
            await refresh_task
        except Exception:
            logger.exception("Background refresh failed")
            return False
        return not expired


def select_refresh_trigger(
    refresh: RefreshCallback,
    interval_minutes: int,
    platform: str | None = None,
) -> RefreshTrigger:
    """
    Choose the trigger implementation for a platform.

    Args:
        refresh: Refresh callback.
        interval_minutes: Minutes between refreshes, 0 for manual only.
        platform: Platform name, defaults to ``sys.platform``.
    """
    platform = (platform or sys.platform).lower()
    if platform.startswith(MOBILE_PLATFORMS):
        return ScheduledTaskRefreshTrigger(refresh, interval_minutes)
    return TimerRefreshTrigger(refresh, interval_minutes)
