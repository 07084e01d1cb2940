"""Tests for new-article notifications."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from tidings_core.schemas import AuthorizationStatus, NewArticleEvent
from tidings_core.services import LoggingNotificationPresenter, NotificationDispatcher, build_notifications

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def _event(article_id: str, feed_id: str = "feed-1", feed_title: str = "Example") -> NewArticleEvent:
    return NewArticleEvent(
        article_id=article_id,
        article_title=f"Article {article_id}",
        feed_id=feed_id,
        feed_title=feed_title,
    )


def _presenter(status: AuthorizationStatus = AuthorizationStatus.AUTHORIZED) -> AsyncMock:
    presenter = AsyncMock()
    presenter.authorization_status.return_value = status
    return presenter


class TestBuildNotifications:
    """Grouping rules."""

    def test_single_article(self):
        (notification,) = build_notifications([_event("a1")], now=NOW)

        assert notification.identifier == "article-a1"
        assert notification.title == "Example"
        assert notification.body == "Article a1"
        assert notification.thread_id == "feed-1"
        assert notification.category == "NEW_ARTICLE"

    def test_summary_for_several_articles(self):
        (notification,) = build_notifications([_event("a1"), _event("a2"), _event("a3")], now=NOW)

        assert notification.identifier == f"feed-feed-1-{NOW.timestamp()}"
        assert notification.body == "3 new articles"
        assert notification.article_id == "a1"
        assert notification.article_count == 3

    def test_grouped_per_feed_in_first_seen_order(self):
        events = [_event("b1", "feed-2", "Second"), _event("a1"), _event("b2", "feed-2", "Second")]

        notifications = build_notifications(events, now=NOW)

        assert [n.feed_id for n in notifications] == ["feed-2", "feed-1"]
        assert [n.body for n in notifications] == ["2 new articles", "Article a1"]

    def test_no_events(self):
        assert build_notifications([]) == []


class TestNotificationDispatcher:
    """Delivery conditions."""

    @pytest.mark.asyncio
    async def test_delivers_when_authorized(self, settings):
        presenter = _presenter()
        dispatcher = NotificationDispatcher(presenter, settings)

        delivered = await dispatcher.dispatch([_event("a1"), _event("b1", "feed-2")])

        assert len(delivered) == 2
        assert presenter.deliver.await_count == 2

    @pytest.mark.asyncio
    async def test_disabled_in_settings(self, settings):
        settings.notifications_enabled = False
        presenter = _presenter()

        assert await NotificationDispatcher(presenter, settings).dispatch([_event("a1")]) == []
        presenter.deliver.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [AuthorizationStatus.DENIED, AuthorizationStatus.NOT_DETERMINED])
    async def test_not_authorized(self, settings, status):
        presenter = _presenter(status)

        assert await NotificationDispatcher(presenter, settings).dispatch([_event("a1")]) == []
        presenter.deliver.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delivery_failure_is_contained(self, settings):
        presenter = _presenter()
        presenter.deliver.side_effect = [RuntimeError("boom"), None]

        delivered = await NotificationDispatcher(presenter, settings).dispatch(
            [_event("a1"), _event("b1", "feed-2")]
        )

        assert [n.feed_id for n in delivered] == ["feed-2"]

    @pytest.mark.asyncio
    async def test_logging_presenter(self, settings, caplog):
        presenter = LoggingNotificationPresenter(AuthorizationStatus.NOT_DETERMINED)
        dispatcher = NotificationDispatcher(presenter, settings)

        assert await dispatcher.request_authorization() is True
        with caplog.at_level("INFO", logger="tidings"):
            delivered = await dispatcher.dispatch([_event("a1")])

        assert len(delivered) == 1
        assert "New articles" in caplog.text
