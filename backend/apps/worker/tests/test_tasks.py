"""Tests for worker tasks and entry points."""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
import pytest

from tidings_core.errors import FeedNetworkError, FeedNotFound
from tidings_worker.container import build_container
from tidings_worker.main import refresh_cron_jobs
from tidings_worker.tasks.feed_fetcher import refresh_feed_task, scheduled_refresh


def _ctx(**methods):
    """Worker context whose background service methods are AsyncMocks."""
    background = AsyncMock()
    for name, outcome in methods.items():
        if isinstance(outcome, Exception):
            getattr(background, name).side_effect = outcome
        else:
            getattr(background, name).return_value = outcome
    return {"container": SimpleNamespace(background=background)}


class TestRefreshFeedTask:
    """On-demand single feed refresh."""

    @pytest.mark.asyncio
    async def test_success(self):
        ctx = _ctx(refresh_feed=4)

        result = await refresh_feed_task(ctx, "feed-1")

        assert result == {"status": "success", "feed_id": "feed-1", "new_entries": 4}
        ctx["container"].background.refresh_feed.assert_awaited_once_with("feed-1")

    @pytest.mark.asyncio
    async def test_missing_feed(self):
        result = await refresh_feed_task(_ctx(refresh_feed=FeedNotFound("feed-1")), "feed-1")

        assert result == {"status": "error", "message": "Feed not found"}

    @pytest.mark.asyncio
    async def test_refresh_error(self):
        result = await refresh_feed_task(_ctx(refresh_feed=FeedNetworkError("timed out")), "feed-1")

        assert result["status"] == "error"
        assert result["feed_id"] == "feed-1"


class TestScheduledRefresh:
    """Periodic refresh task."""

    @pytest.mark.asyncio
    async def test_reports_new_articles(self):
        assert await scheduled_refresh(_ctx(perform_background_refresh=5)) == {"new_articles": 5}


class TestCronJobs:
    """Mapping refresh intervals to cron schedules."""

    def test_manual_only(self):
        assert refresh_cron_jobs(0) == []

    def test_minutes(self):
        (job,) = refresh_cron_jobs(15)

        assert job.minute == {0, 15, 30, 45}

    def test_hours(self):
        (job,) = refresh_cron_jobs(360)

        assert job.hour == {0, 6, 12, 18}
        assert job.minute == {0}


class TestContainer:
    """Service container lifecycle."""

    @pytest.mark.asyncio
    async def test_build_and_close(self, settings):
        transport = httpx.MockTransport(lambda request: httpx.Response(404))

        container = await build_container(settings, transport=transport)
        try:
            assert container.background.should_refresh()
            assert container.parser is not None
            assert await container.background.perform_background_refresh() == 0
        finally:
            await container.close()

        assert container.http_client.is_closed
