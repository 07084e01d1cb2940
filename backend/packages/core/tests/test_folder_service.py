"""Tests for folder management."""

import pytest
from sqlalchemy import func, select

from tidings_core.errors import DuplicateFolderName, FeedNotFound, FolderNotFound
from tidings_core.services import ArticleService, FeedService, FolderService
from tidings_database.models import Feed


@pytest.fixture
def subscribe(db_session, feed_parser, fake_web, make_rss):
    """Subscribe to a feed with the given number of articles."""

    async def _subscribe(name: str, articles: int = 0, folder_id: str | None = None) -> Feed:
        url = f"https://{name}.example.com/feed"
        items = [(f"{name} {i}", f"https://{name}.example.com/{i}") for i in range(articles)]
        fake_web.add(url, make_rss(name.title(), items))
        return await FeedService(db_session, feed_parser).add_feed(url, folder_id=folder_id)

    return _subscribe


class TestFolderService:
    """Folder CRUD and feed placement."""

    @pytest.mark.asyncio
    async def test_create_appends_and_rejects_duplicates(self, db_session):
        service = FolderService(db_session)

        first = await service.create_folder("News")
        second = await service.create_folder("  Tech ")

        assert (first.sort_order, second.sort_order) == (0, 1)
        assert second.name == "Tech"
        assert first.is_expanded
        with pytest.raises(DuplicateFolderName):
            await service.create_folder("News")

    @pytest.mark.asyncio
    async def test_get_or_create(self, db_session):
        service = FolderService(db_session)

        folder, created = await service.get_or_create_folder("News")
        again, created_again = await service.get_or_create_folder("News")

        assert created and not created_again
        assert again.id == folder.id

    @pytest.mark.asyncio
    async def test_rename(self, db_session):
        service = FolderService(db_session)
        news = await service.create_folder("News")
        await service.create_folder("Tech")

        renamed = await service.rename_folder(news.id, "Headlines")

        assert renamed.name == "Headlines"
        with pytest.raises(DuplicateFolderName):
            await service.rename_folder(news.id, "Tech")
        with pytest.raises(FolderNotFound):
            await service.rename_folder("missing", "Anything")

    @pytest.mark.asyncio
    async def test_toggle_expanded(self, db_session):
        service = FolderService(db_session)
        folder = await service.create_folder("News")

        assert await service.toggle_expanded(folder.id) is False
        assert await service.toggle_expanded(folder.id) is True

    @pytest.mark.asyncio
    async def test_move_feeds(self, db_session, subscribe):
        service = FolderService(db_session)
        folder = await service.create_folder("News")
        a = await subscribe("a")
        b = await subscribe("b")

        moved = await service.move_feeds([b.id, a.id], folder.id)

        assert [feed.folder_id for feed in moved] == [folder.id, folder.id]
        assert [feed.sort_order for feed in moved] == [0, 1]

        back = await service.move_feed(a.id, None)
        assert back.folder_id is None

        with pytest.raises(FeedNotFound):
            await service.move_feed("missing", folder.id)
        with pytest.raises(FolderNotFound):
            await service.move_feed(a.id, "missing")

    @pytest.mark.asyncio
    async def test_reorder(self, db_session, subscribe):
        service = FolderService(db_session)
        news = await service.create_folder("News")
        tech = await service.create_folder("Tech")
        a = await subscribe("a")
        b = await subscribe("b")

        await service.reorder_folders([tech.id, news.id])
        await service.reorder_feeds([b.id, a.id])

        tree = await service.folder_tree()
        assert [folder.name for folder in tree.folders] == ["Tech", "News"]
        assert [feed.title for feed in tree.uncategorized] == ["B", "A"]

    @pytest.mark.asyncio
    async def test_tree_unread_counts(self, db_session, subscribe):
        service = FolderService(db_session)
        folder = await service.create_folder("News")
        a = await subscribe("a", articles=2, folder_id=folder.id)
        await subscribe("b", articles=3, folder_id=folder.id)
        await subscribe("c", articles=1)

        await ArticleService(db_session).mark_all_read(a.id)
        tree = await service.folder_tree()

        news = tree.folders[0]
        assert news.unread_count == 3
        assert {feed.title: feed.unread_count for feed in news.feeds} == {"A": 0, "B": 3}
        assert [(feed.title, feed.unread_count) for feed in tree.uncategorized] == [("C", 1)]

    @pytest.mark.asyncio
    async def test_delete_keeps_feeds(self, db_session, subscribe):
        service = FolderService(db_session)
        folder = await service.create_folder("News")
        feed = await subscribe("a", folder_id=folder.id)

        await service.delete_folder(folder.id)

        assert await service.list_folders() == []
        assert await db_session.scalar(select(func.count(Feed.id))) == 1
        stored = (await db_session.execute(select(Feed.folder_id).where(Feed.id == feed.id))).scalar_one()
        assert stored is None
