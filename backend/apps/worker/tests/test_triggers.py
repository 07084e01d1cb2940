"""Tests for refresh triggers."""

import asyncio

import pytest

from tidings_worker.triggers import (
    ScheduledTaskRefreshTrigger,
    TimerRefreshTrigger,
    select_refresh_trigger,
)


class RecordingRefresh:
    """Refresh callback that records its calls."""

    def __init__(self, result: int = 0, error: Exception | None = None):
        self.result = result
        self.error = error
        self.calls: list[asyncio.Event | None] = []

    async def __call__(self, cancel_event: asyncio.Event | None) -> int:
        self.calls.append(cancel_event)
        if self.error is not None:
            raise self.error
        return self.result


class TestSelectRefreshTrigger:
    """Platform selection."""

    @pytest.mark.parametrize("platform", ["ios", "iPadOS", "android"])
    def test_mobile_platforms_use_scheduled_tasks(self, platform):
        trigger = select_refresh_trigger(RecordingRefresh(), 30, platform)

        assert isinstance(trigger, ScheduledTaskRefreshTrigger)

    @pytest.mark.parametrize("platform", ["linux", "darwin", "win32"])
    def test_other_platforms_use_timer(self, platform):
        trigger = select_refresh_trigger(RecordingRefresh(), 30, platform)

        assert isinstance(trigger, TimerRefreshTrigger)


class TestTimerRefreshTrigger:
    """Recurring timer."""

    @pytest.mark.asyncio
    async def test_manual_interval_does_not_start(self):
        trigger = TimerRefreshTrigger(RecordingRefresh(), 0)

        trigger.start()

        assert not trigger.is_running

    @pytest.mark.asyncio
    async def test_trigger_now(self):
        refresh = RecordingRefresh(result=3)
        trigger = TimerRefreshTrigger(refresh, 0)

        assert await trigger.trigger_now() == 3
        assert refresh.calls == [None]

    @pytest.mark.asyncio
    async def test_runs_repeatedly_and_survives_failures(self, monkeypatch):
        monkeypatch.setattr(TimerRefreshTrigger, "interval_seconds", 0.01)
        refresh = RecordingRefresh(error=RuntimeError("boom"))
        trigger = TimerRefreshTrigger(refresh, 30)

        trigger.start()
        assert trigger.is_running
        await asyncio.sleep(0.1)
        await trigger.wait_stopped()

        assert len(refresh.calls) >= 2
        assert not trigger.is_running


class TestScheduledTaskRefreshTrigger:
    """One-shot tasks with a deadline."""

    @pytest.mark.asyncio
    async def test_completed_task(self):
        refresh = RecordingRefresh(result=2)
        trigger = ScheduledTaskRefreshTrigger(refresh, 30)

        assert await trigger.handle_background_task() is True
        (cancel_event,) = refresh.calls
        assert not cancel_event.is_set()

    @pytest.mark.asyncio
    async def test_failed_task(self):
        trigger = ScheduledTaskRefreshTrigger(RecordingRefresh(error=RuntimeError("boom")), 30)

        assert await trigger.handle_background_task() is False

    @pytest.mark.asyncio
    async def test_expired_task_is_cancelled_cooperatively(self):
        finished = []

        async def slow_refresh(cancel_event):
            await cancel_event.wait()
            finished.append(True)
            return 0

        trigger = ScheduledTaskRefreshTrigger(slow_refresh, 30, deadline_seconds=0.01)

        assert await trigger.handle_background_task() is False
        assert finished == [True]
