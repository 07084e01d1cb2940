"""
Folder service.

Groups feeds into folders and maintains sidebar ordering.
"""

from collections.abc import Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tidings_core.errors import DuplicateFolderName, FeedNotFound, FolderNotFound
from tidings_core.logging_config import get_logger
from tidings_core.schemas import FeedResponse, FolderResponse, FolderTreeResponse
from tidings_database.models import Article, Feed, Folder

logger = get_logger(__name__)


class FolderService:
    """Folder management service."""

    def __init__(self, session: AsyncSession):
        """
        Initialize folder service.

        Args:
            session: Database session.
        """
        self.session = session

    async def list_folders(self) -> list[Folder]:
        stmt = select(Folder).order_by(Folder.sort_order, Folder.name)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_folder(self, folder_id: str) -> Folder:
        """
        Get a folder by id.

        Raises:
            FolderNotFound: If no such folder exists.
        """
        folder = await self.session.get(Folder, folder_id)
        if folder is None:
            raise FolderNotFound(folder_id)
        return folder

    async def find_by_name(self, name: str) -> Folder | None:
        stmt = select(Folder).where(Folder.name == name)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def create_folder(self, name: str) -> Folder:
        """
        Create a folder at the end of the folder list.

        Raises:
            DuplicateFolderName: If a folder with this name exists.
        """
        name = name.strip()
        if await self.find_by_name(name) is not None:
            raise DuplicateFolderName(name)

        stmt = select(func.max(Folder.sort_order))
        current = (await self.session.execute(stmt)).scalar()

        folder = Folder(
            name=name,
            sort_order=0 if current is None else current + 1,
            is_expanded=True,
        )
        self.session.add(folder)
        await self.session.commit()

        logger.info("Created folder", extra={"folder_id": folder.id, "folder_name": name})
        return folder

    async def get_or_create_folder(self, name: str) -> tuple[Folder, bool]:
        """
        Return the folder with this name, creating it if needed.

        Returns:
            Tuple of folder and whether it was created.
        """
        folder = await self.find_by_name(name.strip())
        if folder is not None:
            return folder, False
        return await self.create_folder(name), True

    async def rename_folder(self, folder_id: str, name: str) -> Folder:
        """
        Rename a folder.

        Raises:
            FolderNotFound: If no such folder exists.
            DuplicateFolderName: If another folder already uses the name.
        """
        folder = await self.get_folder(folder_id)
        name = name.strip()

        existing = await self.find_by_name(name)
        if existing is not None and existing.id != folder.id:
            raise DuplicateFolderName(name)

        folder.name = name
        await self.session.commit()
        return folder

    async def toggle_expanded(self, folder_id: str) -> bool:
        """Flip the expansion state of a folder and return the new state."""
        folder = await self.get_folder(folder_id)
        folder.is_expanded = not folder.is_expanded
        await self.session.commit()
        return folder.is_expanded

    async def move_feed(self, feed_id: str, folder_id: str | None) -> Feed:
        """
        Move a feed into a folder, or out of any folder when ``folder_id`` is None.

        The feed is placed after the feeds already in the destination.
        """
        feeds = await self.move_feeds([feed_id], folder_id)
        return feeds[0]

    async def move_feeds(self, feed_ids: Sequence[str], folder_id: str | None) -> list[Feed]:
        """
        Move several feeds into a folder, keeping their relative order.

        Raises:
            FeedNotFound: If any feed does not exist.
            FolderNotFound: If the destination folder does not exist.
        """
        if folder_id is not None:
            await self.get_folder(folder_id)

        condition = Feed.folder_id.is_(None) if folder_id is None else Feed.folder_id == folder_id
        current = (
            await self.session.execute(select(func.max(Feed.sort_order)).where(condition))
        ).scalar()
        next_order = 0 if current is None else current + 1

        feeds = []
        for feed_id in feed_ids:
            feed = await self.session.get(Feed, feed_id)
            if feed is None:
                raise FeedNotFound(feed_id)
            if feed.folder_id != folder_id:
                feed.folder_id = folder_id
                feed.sort_order = next_order
                next_order += 1
            feeds.append(feed)

        await self.session.commit()
        return feeds

    async def reorder_folders(self, folder_ids: Sequence[str]) -> None:
        """Assign sort orders following the given folder id order."""
        for index, folder_id in enumerate(folder_ids):
            await self.session.execute(
                update(Folder).where(Folder.id == folder_id).values(sort_order=index)
            )
        await self.session.commit()

    async def reorder_feeds(self, feed_ids: Sequence[str]) -> None:
        """Assign sort orders following the given feed id order."""
        for index, feed_id in enumerate(feed_ids):
            await self.session.execute(
                update(Feed).where(Feed.id == feed_id).values(sort_order=index)
            )
        await self.session.commit()

    async def delete_folder(self, folder_id: str) -> None:
        """
        Delete a folder.

        Its feeds are kept and become uncategorized.

        Raises:
            FolderNotFound: If no such folder exists.
        """
        folder = await self.get_folder(folder_id)

        await self.session.execute(
            update(Feed).where(Feed.folder_id == folder.id).values(folder_id=None)
        )
        await self.session.execute(delete(Folder).where(Folder.id == folder.id))
        await self.session.commit()

        logger.info("Deleted folder", extra={"folder_id": folder_id})

    async def folder_tree(self) -> FolderTreeResponse:
        """
        Build the sidebar tree.

        Unread counts are computed from articles for feeds and summed for
        folders.
        """
        unread_stmt = (
            select(Article.feed_id, func.count(Article.id))
            .where(Article.is_read.is_(False))
            .group_by(Article.feed_id)
        )
        unread_by_feed = dict((await self.session.execute(unread_stmt)).all())

        feeds_stmt = select(Feed).order_by(Feed.sort_order, Feed.title)
        feeds = (await self.session.execute(feeds_stmt)).scalars().all()

        feeds_by_folder: dict[str | None, list[FeedResponse]] = {}
        for feed in feeds:
            response = FeedResponse.model_validate(feed)
            response.unread_count = unread_by_feed.get(feed.id, 0)
            feeds_by_folder.setdefault(feed.folder_id, []).append(response)

        folders = []
        for folder in await self.list_folders():
            members = feeds_by_folder.get(folder.id, [])
            folders.append(
                FolderResponse(
                    id=folder.id,
                    name=folder.name,
                    sort_order=folder.sort_order,
                    is_expanded=folder.is_expanded,
                    unread_count=sum(feed.unread_count for feed in members),
                    feeds=members,
                )
            )

        return FolderTreeResponse(folders=folders, uncategorized=feeds_by_folder.get(None, []))
