"""
OPML import and export.

Import subscribes to every feed of a document; export writes all stored
feeds in sidebar order.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tidings_core.config import Settings
from tidings_core.errors import DuplicateFeed, FeedServiceError
from tidings_core.logging_config import get_logger
from tidings_core.schemas import OPMLImportResult
from tidings_core.services.feed_service import FeedService
from tidings_core.services.folder_service import FolderService
from tidings_database.models import Feed
from tidings_rss import FeedParser, OPMLNoFeeds, OPMLOutline, generate_opml, parse_opml
from tidings_rss.errors import OPMLExportFailed

logger = get_logger(__name__)


class OPMLService:
    """OPML import/export service."""

    def __init__(self, session: AsyncSession, parser: FeedParser, settings: Settings | None = None):
        """
        Initialize OPML service.

        Args:
            session: Database session.
            parser: Feed parser used when subscribing imported feeds.
            settings: Application settings.
        """
        self.session = session
        self.settings = settings or Settings()
        self.feed_service = FeedService(session, parser)
        self.folder_service = FolderService(session)

    async def import_opml(self, content: bytes | str, create_folders: bool = True) -> OPMLImportResult:
        """
        Import subscriptions from an OPML document.

        Each feed is subscribed individually. Already subscribed feeds are
        skipped; feeds that fail to validate are counted and reported.

        Args:
            content: OPML document.
            create_folders: Put feeds of top-level folder outlines into
                folders of the same name. Deeper nesting is flattened into
                the top-level folder. When False all feeds are imported
                uncategorized.

        Returns:
            Import summary.

        Raises:
            OPMLInvalidData: If the document is empty.
            OPMLParsingFailed: If the document is not well-formed XML.
            OPMLNoFeeds: If the document contains no feeds.
        """
        document = parse_opml(content)
        if not document.all_feeds:
            raise OPMLNoFeeds()

        result = OPMLImportResult(total=len(document.all_feeds))

        for outline in document.outlines:
            if outline.is_feed:
                await self._import_feed(outline, None, result)
                continue

            feeds = _feeds_of(outline)
            if not feeds:
                continue

            folder_id = None
            if create_folders:
                folder, created = await self.folder_service.get_or_create_folder(outline.title)
                folder_id = folder.id
                if created:
                    result.folders_created += 1

            for feed_outline in feeds:
                await self._import_feed(feed_outline, folder_id, result)

        logger.info(
            "OPML import finished",
            extra={
                "total": result.total,
                "added": result.added,
                "skipped": result.skipped,
                "failed": result.failed,
            },
        )
        return result

    async def _import_feed(
        self, outline: OPMLOutline, folder_id: str | None, result: OPMLImportResult
    ) -> None:
        try:
            await self.feed_service.add_feed(outline.feed_url or "", folder_id=folder_id)
        except DuplicateFeed:
            result.skipped += 1
        except FeedServiceError as e:
            result.failed += 1
            result.errors.append(f"{outline.feed_url}: {e}")
        else:
            result.added += 1

    async def export_opml(self, title: str | None = None) -> bytes:
        """
        Export all feeds as an OPML document.

        Raises:
            OPMLExportFailed: If the document cannot be encoded.
        """
        stmt = select(Feed).order_by(Feed.sort_order, Feed.title)
        feeds = (await self.session.execute(stmt)).scalars().all()

        outlines = [
            OPMLOutline(title=feed.title, feed_url=feed.url, html_url=feed.home_page_url)
            for feed in feeds
        ]
        document = generate_opml(outlines, title=title or self.settings.opml_export_title)

        try:
            return document.encode("utf-8")
        except UnicodeEncodeError as e:
            raise OPMLExportFailed(str(e)) from e


def _feeds_of(outline: OPMLOutline) -> list[OPMLOutline]:
    feeds = []
    for child in outline.children:
        if child.is_feed:
            feeds.append(child)
        else:
            feeds.extend(_feeds_of(child))
    return feeds
