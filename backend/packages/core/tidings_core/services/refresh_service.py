"""
Feed refresh service.

Refreshes feeds one at a time, de-duplicates parsed articles against the
stored ones, and optionally backfills full article content.
"""

import asyncio
from collections.abc import Iterable, Sequence
from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tidings_core.config import Settings
from tidings_core.errors import FeedServiceError, SaveFailed, from_parse_error
from tidings_core.logging_config import get_logger
from tidings_core.schemas import NewArticleEvent, RefreshResult
from tidings_database.models import Article, Feed
from tidings_rss import ContentExtractError, ContentExtractor, FeedParseError, FeedParser
from tidings_rss.parser import ParsedArticle, ParsedFeed

logger = get_logger(__name__)

MINIMUM_REFRESH_INTERVAL = timedelta(minutes=15)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def select_refresh_candidates(
    feeds: Iterable[Feed],
    now: datetime,
    minimum_interval: timedelta = MINIMUM_REFRESH_INTERVAL,
) -> list[Feed]:
    """
    Order feeds by refresh priority.

    Feeds never refreshed come first, then the least recently refreshed.
    Feeds refreshed less than ``minimum_interval`` ago are excluded.
    """
    now = _as_utc(now)
    eligible = [
        feed
        for feed in feeds
        if feed.last_updated is None or now - _as_utc(feed.last_updated) >= minimum_interval
    ]
    return sorted(
        eligible,
        key=lambda feed: (
            feed.last_updated is not None,
            _as_utc(feed.last_updated) if feed.last_updated else now,
        ),
    )


def apply_feed_metadata(feed: Feed, parsed: ParsedFeed, now: datetime) -> None:
    """Copy parsed metadata onto the stored feed and stamp the refresh time."""
    feed.title = parsed.title
    feed.description = parsed.description
    feed.home_page_url = parsed.home_page_url
    feed.image_url = parsed.image_url
    feed.last_updated = now


def build_new_articles(
    feed_id: str, parsed_articles: Sequence[ParsedArticle], existing_keys: set[str]
) -> list[Article]:
    """
    Create articles for parsed entries whose key is not stored yet.

    ``existing_keys`` is updated in place so duplicates inside one
    document are only inserted once.
    """
    articles = []
    for parsed in parsed_articles:
        key = parsed.dedup_key
        if key in existing_keys:
            continue
        existing_keys.add(key)
        articles.append(
            Article(
                feed_id=feed_id,
                guid=parsed.id,
                url=parsed.url,
                title=parsed.title,
                summary=parsed.summary,
                content_html=parsed.content_html,
                author=parsed.author,
                published_at=parsed.published_at,
                is_read=False,
                is_starred=False,
                has_full_content=False,
            )
        )
    return articles


class RefreshService:
    """Feed refresh service."""

    def __init__(
        self,
        session: AsyncSession,
        parser: FeedParser,
        extractor: ContentExtractor | None = None,
        settings: Settings | None = None,
    ):
        """
        Initialize refresh service.

        Args:
            session: Database session.
            parser: Feed parser used to fetch feeds.
            extractor: Content extractor for feeds opted into full content.
            settings: Application settings.
        """
        self.session = session
        self.parser = parser
        self.extractor = extractor
        self.settings = settings or Settings()

    @property
    def minimum_interval(self) -> timedelta:
        return timedelta(minutes=self.settings.minimum_refresh_interval_minutes)

    async def list_feeds(self) -> list[Feed]:
        """All feeds in sidebar order."""
        stmt = select(Feed).order_by(Feed.sort_order, Feed.title)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def refresh_candidates(self, now: datetime | None = None) -> list[Feed]:
        """Feeds due for a refresh, highest priority first."""
        feeds = await self.list_feeds()
        return select_refresh_candidates(
            feeds, now or datetime.now(timezone.utc), self.minimum_interval
        )

    async def refresh_one(self, feed: Feed, cancel_event: asyncio.Event | None = None) -> int:
        """
        Refresh a single feed.

        Args:
            feed: Feed to refresh.
            cancel_event: Optional cooperative cancellation signal for the
                full-content backfill.

        Returns:
            Number of new articles.

        Raises:
            FeedServiceError: If the feed cannot be fetched, parsed or saved.
        """
        new_articles = await self._refresh_feed(feed, cancel_event)
        return len(new_articles)

    async def refresh_all(
        self,
        feeds: Sequence[Feed] | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> RefreshResult:
        """
        Refresh feeds sequentially.

        A failing feed does not stop the batch. The last failure is raised
        only when the whole batch produced no new articles.

        Args:
            feeds: Feeds to refresh, defaults to every feed.
            cancel_event: Checked between feeds; once set, the batch stops.

        Returns:
            Batch outcome including new-article events.

        Raises:
            FeedServiceError: The last per-feed failure, when no progress was made.
        """
        if feeds is None:
            feeds = await self.list_feeds()
        feed_ids = [feed.id for feed in feeds]

        result = RefreshResult()
        last_error: FeedServiceError | None = None

        for index, feed_id in enumerate(feed_ids):
            if cancel_event is not None and cancel_event.is_set():
                logger.info("Refresh cancelled", extra={"remaining": len(feed_ids) - index})
                result.cancelled = True
                break

            feed = await self.session.get(Feed, feed_id)
            if feed is None:
                continue

            try:
                new_articles = await self._refresh_feed(feed, cancel_event)
            except FeedServiceError as e:
                logger.warning("Failed to refresh feed", extra={"feed_id": feed_id, "error": str(e)})
                last_error = e
                result.failed_feed_count += 1
                continue

            result.refreshed_feed_count += 1
            result.new_article_count += len(new_articles)
            result.new_articles.extend(
                NewArticleEvent(
                    article_id=article.id,
                    article_title=article.title,
                    feed_id=feed.id,
                    feed_title=feed.title,
                )
                for article in new_articles
            )

        if last_error is not None:
            result.last_error = str(last_error)
            if result.new_article_count == 0:
                raise last_error

        logger.info(
            "Refresh completed",
            extra={
                "new_articles": result.new_article_count,
                "refreshed": result.refreshed_feed_count,
                "failed": result.failed_feed_count,
            },
        )
        return result

    async def _refresh_feed(
        self, feed: Feed, cancel_event: asyncio.Event | None = None
    ) -> list[Article]:
        try:
            parsed = await self.parser.fetch_and_parse(feed.url)
        except FeedParseError as e:
            raise from_parse_error(e) from e

        apply_feed_metadata(feed, parsed, datetime.now(timezone.utc))

        existing_keys = await self._existing_keys(feed.id)
        new_articles = build_new_articles(feed.id, parsed.articles, existing_keys)
        self.session.add_all(new_articles)

        # One commit per feed; a cancelled batch never leaves a feed half-applied
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise SaveFailed(str(e)) from e

        logger.info(
            "Refreshed feed",
            extra={"feed_id": feed.id, "new_articles": len(new_articles)},
        )

        if feed.fetch_full_content:
            await self.backfill_full_content(feed, cancel_event)

        return new_articles

    async def _existing_keys(self, feed_id: str) -> set[str]:
        result = await self.session.scalars(select(Article).where(Article.feed_id == feed_id))
        return {article.dedup_key for article in result}

    async def backfill_full_content(
        self, feed: Feed, cancel_event: asyncio.Event | None = None
    ) -> int:
        """
        Extract full content for articles of a feed that lack it.

        Extraction failures are logged and skipped; this never raises for
        a single article.

        Returns:
            Number of articles enriched.
        """
        if self.extractor is None:
            return 0

        stmt = (
            select(Article)
            .where(
                Article.feed_id == feed.id,
                Article.has_full_content.is_(False),
                Article.url.is_not(None),
            )
            .order_by(Article.published_at.desc())
        )
        result = await self.session.execute(stmt)
        articles = list(result.scalars().all())

        enriched = 0
        for index, article in enumerate(articles):
            if cancel_event is not None and cancel_event.is_set():
                break
            if index > 0:
                # Spread requests to the same host
                await asyncio.sleep(self.settings.full_content_delay_seconds)

            try:
                extracted = await self.extractor.extract_content(article.url)
            except ContentExtractError as e:
                logger.info(
                    "Full content extraction skipped",
                    extra={"article_id": article.id, "error": str(e)},
                )
                continue

            if extracted.content:
                article.full_content = extracted.content
                article.has_full_content = True
                enriched += 1

        if enriched:
            try:
                await self.session.commit()
            except SQLAlchemyError:
                logger.exception("Failed to save extracted content", extra={"feed_id": feed.id})
                await self.session.rollback()
                return 0

        return enriched
