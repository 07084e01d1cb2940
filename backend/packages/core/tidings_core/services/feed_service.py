"""
Feed subscription service.

Handles URL normalization, feed validation, subscribing and unsubscribing.
"""

import re
from datetime import datetime, timezone
from urllib.parse import urlsplit

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tidings_core.errors import (
    DuplicateFeed,
    FeedNotFound,
    FolderNotFound,
    InvalidURL,
    SaveFailed,
    from_parse_error,
)
from tidings_core.logging_config import get_logger
from tidings_core.schemas import FeedResponse
from tidings_core.services.refresh_service import apply_feed_metadata, build_new_articles
from tidings_database.models import Article, Feed, Folder
from tidings_rss import FeedParseError, FeedParser, ParsedFeed

logger = get_logger(__name__)

# RFC 3986 unreserved, reserved and percent characters
_URL_CHARS_RE = re.compile(r"^[A-Za-z0-9\-._~:/?#\[\]@!$&'()*+,;=%]+$")
_BAD_PERCENT_RE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_HOST_RE = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?(?:\.[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?)*\.?$")


def normalize_feed_url(url_string: str) -> str:
    """
    Normalize user input into an absolute feed URL.

    Surrounding whitespace is trimmed and ``https://`` is prepended when no
    http(s) scheme is present.

    Args:
        url_string: URL as entered by the user.

    Returns:
        Normalized URL.

    Raises:
        InvalidURL: If the result is not a well-formed http(s) URL with a host.
    """
    normalized = url_string.strip()
    if not normalized.lower().startswith(("http://", "https://")):
        normalized = f"https://{normalized}"

    if not _URL_CHARS_RE.match(normalized) or _BAD_PERCENT_RE.search(normalized):
        raise InvalidURL(url_string)

    try:
        parts = urlsplit(normalized)
        host = parts.hostname
        # Accessing port validates it
        parts.port
    except ValueError as e:
        raise InvalidURL(url_string) from e

    if not host:
        raise InvalidURL(url_string)
    # IPv6 literals come back without brackets
    if ":" not in host and not _HOST_RE.match(host):
        raise InvalidURL(url_string)

    return normalized


class FeedService:
    """Feed subscription management service."""

    def __init__(self, session: AsyncSession, parser: FeedParser):
        """
        Initialize feed service.

        Args:
            session: Database session.
            parser: Feed parser used to validate and fetch feeds.
        """
        self.session = session
        self.parser = parser

    async def feed_exists(self, url: str) -> bool:
        """Check whether a feed with exactly this URL is stored."""
        stmt = select(Feed.id).where(Feed.url == url)
        result = await self.session.execute(stmt)
        return result.first() is not None

    async def validate_feed(self, url_string: str) -> ParsedFeed:
        """
        Normalize a URL, then fetch and parse it without persisting anything.

        Raises:
            InvalidURL: If the URL is malformed.
            FeedNetworkError: On transport failures.
            FeedParsingFailed: If the document is not a supported feed.
        """
        url = normalize_feed_url(url_string)
        try:
            return await self.parser.fetch_and_parse(url)
        except FeedParseError as e:
            raise from_parse_error(e) from e

    async def add_feed(self, url_string: str, folder_id: str | None = None) -> Feed:
        """
        Subscribe to a feed.

        The feed is fetched once; its metadata and initial articles are
        stored together with the new feed.

        Args:
            url_string: Feed URL as entered by the user.
            folder_id: Optional folder to place the feed in.

        Returns:
            The stored feed.

        Raises:
            InvalidURL: If the URL is malformed.
            DuplicateFeed: If the normalized URL is already subscribed.
            FeedNetworkError: On transport failures.
            FeedParsingFailed: If the document is not a supported feed.
            FolderNotFound: If ``folder_id`` does not exist.
            SaveFailed: If persisting fails.
        """
        url = normalize_feed_url(url_string)

        if await self.feed_exists(url):
            raise DuplicateFeed(url)

        if folder_id is not None and await self.session.get(Folder, folder_id) is None:
            raise FolderNotFound(folder_id)

        try:
            parsed = await self.parser.fetch_and_parse(url)
        except FeedParseError as e:
            raise from_parse_error(e) from e

        feed = Feed(
            url=url,
            folder_id=folder_id,
            sort_order=await self._next_sort_order(folder_id),
            fetch_full_content=False,
        )
        apply_feed_metadata(feed, parsed, datetime.now(timezone.utc))
        self.session.add(feed)

        try:
            await self.session.flush()
            self.session.add_all(build_new_articles(feed.id, parsed.articles, set()))
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise SaveFailed(str(e)) from e

        logger.info(
            "Added feed",
            extra={"feed_id": feed.id, "url": url, "articles": len(parsed.articles)},
        )
        return feed

    async def get_feed(self, feed_id: str) -> Feed:
        """
        Get a feed by id.

        Raises:
            FeedNotFound: If no such feed exists.
        """
        feed = await self.session.get(Feed, feed_id)
        if feed is None:
            raise FeedNotFound(feed_id)
        return feed

    async def list_feeds(self) -> list[FeedResponse]:
        """All feeds in sidebar order with their unread counts."""
        unread = (
            select(Article.feed_id, func.count(Article.id).label("unread"))
            .where(Article.is_read.is_(False))
            .group_by(Article.feed_id)
            .subquery()
        )
        stmt = (
            select(Feed, func.coalesce(unread.c.unread, 0))
            .outerjoin(unread, unread.c.feed_id == Feed.id)
            .order_by(Feed.sort_order, Feed.title)
        )
        result = await self.session.execute(stmt)

        responses = []
        for feed, unread_count in result.all():
            response = FeedResponse.model_validate(feed)
            response.unread_count = unread_count
            responses.append(response)
        return responses

    async def set_fetch_full_content(self, feed_id: str, enabled: bool) -> Feed:
        """Opt a feed in or out of full-content extraction."""
        feed = await self.get_feed(feed_id)
        feed.fetch_full_content = enabled
        await self.session.commit()
        return feed

    async def delete_feed(self, feed_id: str) -> None:
        """
        Unsubscribe from a feed.

        The feed's articles are removed in the same transaction.

        Raises:
            FeedNotFound: If no such feed exists.
            SaveFailed: If the delete fails.
        """
        feed = await self.get_feed(feed_id)

        try:
            await self.session.execute(delete(Article).where(Article.feed_id == feed.id))
            await self.session.execute(delete(Feed).where(Feed.id == feed.id))
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise SaveFailed(str(e)) from e

        logger.info("Deleted feed", extra={"feed_id": feed_id})

    async def _next_sort_order(self, folder_id: str | None) -> int:
        condition = Feed.folder_id.is_(None) if folder_id is None else Feed.folder_id == folder_id
        stmt = select(func.max(Feed.sort_order)).where(condition)
        result = await self.session.execute(stmt)
        current = result.scalar()
        return 0 if current is None else current + 1
