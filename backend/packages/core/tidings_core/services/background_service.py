"""
Background refresh entry point.

Called by refresh triggers. Checks connectivity preferences, refreshes the
feeds that are due and notifies about new articles.
"""

import asyncio
from dataclasses import dataclass
from typing import Protocol

from tidings_core.config import Settings
from tidings_core.errors import FeedNotFound, FeedServiceError
from tidings_core.logging_config import get_logger
from tidings_core.schemas import RefreshResult
from tidings_core.services.notification_service import NotificationDispatcher
from tidings_core.services.refresh_service import RefreshService
from tidings_database import Database, Feed
from tidings_rss import ContentExtractor, FeedParser

logger = get_logger(__name__)


class ReachabilityObserver(Protocol):
    """Reports the current network conditions."""

    @property
    def has_connectivity(self) -> bool: ...

    @property
    def is_on_wifi(self) -> bool: ...


@dataclass
class StaticReachability:
    """Reachability with fixed answers, for servers and tests."""

    has_connectivity: bool = True
    is_on_wifi: bool = True


class BackgroundRefreshService:
    """Runs refreshes on behalf of timers and OS schedulers."""

    def __init__(
        self,
        database: Database,
        parser: FeedParser,
        extractor: ContentExtractor | None,
        dispatcher: NotificationDispatcher,
        settings: Settings,
        reachability: ReachabilityObserver | None = None,
    ):
        self.database = database
        self.parser = parser
        self.extractor = extractor
        self.dispatcher = dispatcher
        self.settings = settings
        self.reachability = reachability or StaticReachability()

    def should_refresh(self) -> bool:
        """Whether network conditions allow a background refresh."""
        if not self.reachability.has_connectivity:
            logger.info("Background refresh skipped: no network connection")
            return False
        if self.settings.refresh_on_wifi_only and not self.reachability.is_on_wifi:
            logger.info("Background refresh skipped: Wi-Fi only and not on Wi-Fi")
            return False
        return True

    async def perform_background_refresh(self, cancel_event: asyncio.Event | None = None) -> int:
        """
        Refresh due feeds and send notifications.

        Never raises for feed failures; they are logged.

        Args:
            cancel_event: Cooperative cancellation signal.

        Returns:
            Number of new articles.
        """
        if not self.should_refresh():
            return 0

        async with self.database.session() as session:
            service = RefreshService(session, self.parser, self.extractor, self.settings)
            candidates = await service.refresh_candidates()
            if not candidates:
                logger.info("No feeds to refresh")
                return 0

            logger.info("Starting background refresh", extra={"feeds": len(candidates)})
            try:
                result = await service.refresh_all(candidates, cancel_event)
            except FeedServiceError as e:
                logger.warning("Background refresh failed", extra={"error": str(e)})
                return 0

        if result.new_articles:
            await self.dispatcher.dispatch(result.new_articles)

        return result.new_article_count

    async def perform_refresh(self, cancel_event: asyncio.Event | None = None) -> RefreshResult:
        """
        User-initiated refresh of every feed.

        Ignores connectivity preferences and the minimum interval.

        Raises:
            FeedServiceError: When every feed failed and nothing new was found.
        """
        async with self.database.session() as session:
            service = RefreshService(session, self.parser, self.extractor, self.settings)
            return await service.refresh_all(cancel_event=cancel_event)

    async def refresh_feed(self, feed_id: str) -> int:
        """
        User-initiated refresh of one feed.

        Raises:
            FeedNotFound: If no such feed exists.
            FeedServiceError: If the refresh fails.
        """
        async with self.database.session() as session:
            feed = await session.get(Feed, feed_id)
            if feed is None:
                raise FeedNotFound(feed_id)
            service = RefreshService(session, self.parser, self.extractor, self.settings)
            return await service.refresh_one(feed)
