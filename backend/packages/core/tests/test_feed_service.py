"""Tests for feed subscription management."""

import pytest
from sqlalchemy import func, select

from tidings_core.errors import (
    DuplicateFeed,
    FeedNetworkError,
    FeedNotFound,
    FeedParsingFailed,
    FolderNotFound,
    InvalidURL,
)
from tidings_core.services import FeedService, FolderService, normalize_feed_url
from tidings_database.models import Article, Feed

FEED_URL = "https://example.com/feed"


class TestNormalizeFeedURL:
    """URL normalization rules."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("example.com/feed", "https://example.com/feed"),
            ("  http://example.com/rss  ", "http://example.com/rss"),
            ("HTTPS://Example.com/Feed", "HTTPS://Example.com/Feed"),
            ("https://example.com:8080/feed?x=1&y=%20", "https://example.com:8080/feed?x=1&y=%20"),
            ("localhost/feed.xml", "https://localhost/feed.xml"),
        ],
    )
    def test_valid(self, value, expected):
        assert normalize_feed_url(value) == expected

    @pytest.mark.parametrize(
        "value",
        [
            "",
            "   ",
            "not a url",
            "https://exa mple.com/feed",
            "https://example.com/%zz",
            "https://",
            "https://-bad-.example.com/feed",
            "https://example.com:99999/feed",
        ],
    )
    def test_invalid(self, value):
        with pytest.raises(InvalidURL):
            normalize_feed_url(value)


class TestFeedService:
    """Subscribing and unsubscribing."""

    @pytest.mark.asyncio
    async def test_add_feed_stores_metadata_and_articles(self, db_session, feed_parser, fake_web, make_rss):
        fake_web.add(
            FEED_URL,
            make_rss("Example", [("One", "https://example.com/1"), ("Two", "https://example.com/2")]),
        )
        service = FeedService(db_session, feed_parser)

        feed = await service.add_feed("example.com/feed")

        assert feed.url == FEED_URL
        assert feed.title == "Example"
        assert feed.description == "Example description"
        assert feed.last_updated is not None
        assert feed.fetch_full_content is False
        count = await db_session.scalar(
            select(func.count(Article.id)).where(Article.feed_id == feed.id)
        )
        assert count == 2

    @pytest.mark.asyncio
    async def test_add_feed_rejects_duplicates_before_fetching(self, db_session, feed_parser, fake_web, make_rss):
        fake_web.add(FEED_URL, make_rss("Example", []))
        service = FeedService(db_session, feed_parser)
        await service.add_feed(FEED_URL)

        with pytest.raises(DuplicateFeed):
            await service.add_feed(" https://example.com/feed ")

        assert fake_web.requested(FEED_URL) == 1
        assert await service.feed_exists(FEED_URL)

    @pytest.mark.asyncio
    async def test_add_feed_network_error(self, db_session, feed_parser, fake_web):
        fake_web.fail(FEED_URL)
        service = FeedService(db_session, feed_parser)

        with pytest.raises(FeedNetworkError) as exc_info:
            await service.add_feed(FEED_URL)

        assert exc_info.value.recovery_suggestion
        assert await db_session.scalar(select(func.count(Feed.id))) == 0

    @pytest.mark.asyncio
    async def test_add_feed_not_a_feed(self, db_session, feed_parser, fake_web):
        fake_web.add(FEED_URL, "<html><body>Hello</body></html>", content_type="text/html")
        service = FeedService(db_session, feed_parser)

        with pytest.raises(FeedParsingFailed):
            await service.add_feed(FEED_URL)

    @pytest.mark.asyncio
    async def test_add_feed_invalid_url_does_not_fetch(self, db_session, feed_parser, fake_web):
        service = FeedService(db_session, feed_parser)

        with pytest.raises(InvalidURL):
            await service.add_feed("not a url")

        assert fake_web.requests == []

    @pytest.mark.asyncio
    async def test_add_feed_into_missing_folder(self, db_session, feed_parser, fake_web, make_rss):
        fake_web.add(FEED_URL, make_rss("Example", []))
        service = FeedService(db_session, feed_parser)

        with pytest.raises(FolderNotFound):
            await service.add_feed(FEED_URL, folder_id="missing")

    @pytest.mark.asyncio
    async def test_sort_order_is_appended_per_folder(self, db_session, feed_parser, fake_web, make_rss):
        folder = await FolderService(db_session).create_folder("News")
        for name in ("a", "b", "c"):
            fake_web.add(f"https://{name}.example.com/feed", make_rss(name.upper(), []))
        service = FeedService(db_session, feed_parser)

        first = await service.add_feed("https://a.example.com/feed")
        second = await service.add_feed("https://b.example.com/feed")
        in_folder = await service.add_feed("https://c.example.com/feed", folder_id=folder.id)

        assert (first.sort_order, second.sort_order, in_folder.sort_order) == (0, 1, 0)

    @pytest.mark.asyncio
    async def test_validate_feed_does_not_persist(self, db_session, feed_parser, fake_web, make_rss):
        fake_web.add(FEED_URL, make_rss("Example", [("One", "https://example.com/1")]))
        service = FeedService(db_session, feed_parser)

        parsed = await service.validate_feed("example.com/feed")

        assert parsed.title == "Example"
        assert not await service.feed_exists(FEED_URL)

    @pytest.mark.asyncio
    async def test_delete_feed_removes_articles(self, db_session, feed_parser, fake_web, make_rss):
        fake_web.add(FEED_URL, make_rss("Example", [("One", "https://example.com/1")]))
        service = FeedService(db_session, feed_parser)
        feed = await service.add_feed(FEED_URL)

        await service.delete_feed(feed.id)

        assert await db_session.scalar(select(func.count(Feed.id))) == 0
        assert await db_session.scalar(select(func.count(Article.id))) == 0

    @pytest.mark.asyncio
    async def test_delete_missing_feed(self, db_session, feed_parser):
        with pytest.raises(FeedNotFound):
            await FeedService(db_session, feed_parser).delete_feed("missing")

    @pytest.mark.asyncio
    async def test_list_feeds_counts_unread(self, db_session, feed_parser, fake_web, make_rss):
        fake_web.add(
            FEED_URL,
            make_rss("Example", [("One", "https://example.com/1"), ("Two", "https://example.com/2")]),
        )
        service = FeedService(db_session, feed_parser)
        await service.add_feed(FEED_URL)

        feeds = await service.list_feeds()

        assert [(feed.title, feed.unread_count) for feed in feeds] == [("Example", 2)]
