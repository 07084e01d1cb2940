"""
Service container.

Builds the long-lived collaborators once at process start so they can be
injected into triggers and tasks.
"""

from dataclasses import dataclass

import httpx

from tidings_core.config import Settings
from tidings_core.logging_config import get_logger
from tidings_core.services import (
    BackgroundRefreshService,
    LoggingNotificationPresenter,
    NotificationDispatcher,
    NotificationPresenter,
    ReachabilityObserver,
)
from tidings_database import Database
from tidings_rss import ContentExtractor, FeedParser

logger = get_logger(__name__)


@dataclass
class Container:
    """Shared collaborators for one process."""

    settings: Settings
    database: Database
    http_client: httpx.AsyncClient
    parser: FeedParser
    extractor: ContentExtractor
    dispatcher: NotificationDispatcher
    background: BackgroundRefreshService

    async def close(self) -> None:
        await self.http_client.aclose()
        await self.database.dispose()
        logger.info("Container closed")


async def build_container(
    settings: Settings,
    presenter: NotificationPresenter | None = None,
    reachability: ReachabilityObserver | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Container:
    """
    Build and initialize the container.

    Args:
        settings: Application settings.
        presenter: Notification presenter, defaults to logging.
        reachability: Network conditions, defaults to always connected.
        transport: Optional HTTP transport, used by tests.

    Returns:
        Ready-to-use container with the database schema created.
    """
    database = Database(settings.database_url)
    await database.create_all()

    http_client = httpx.AsyncClient(
        timeout=settings.http_timeout_seconds,
        follow_redirects=True,
        transport=transport,
    )
    parser = FeedParser(
        client=http_client,
        user_agent=settings.user_agent,
        timeout=settings.http_timeout_seconds,
    )
    extractor = ContentExtractor(
        client=http_client,
        user_agent=settings.user_agent,
        timeout=settings.http_timeout_seconds,
    )
    dispatcher = NotificationDispatcher(presenter or LoggingNotificationPresenter(), settings)
    background = BackgroundRefreshService(
        database, parser, extractor, dispatcher, settings, reachability
    )

    logger.info("Container ready")
    return Container(
        settings=settings,
        database=database,
        http_client=http_client,
        parser=parser,
        extractor=extractor,
        dispatcher=dispatcher,
        background=background,
    )
