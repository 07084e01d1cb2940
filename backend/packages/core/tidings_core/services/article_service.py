"""
Article service.

Read and starred state, plus article listings.
"""

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tidings_core.errors import ArticleNotFound
from tidings_database.models import Article, Feed


class ArticleService:
    """Article state management service."""

    def __init__(self, session: AsyncSession):
        """
        Initialize article service.

        Args:
            session: Database session.
        """
        self.session = session

    async def get_article(self, article_id: str) -> Article:
        """
        Get an article by id.

        Raises:
            ArticleNotFound: If no such article exists.
        """
        article = await self.session.get(Article, article_id)
        if article is None:
            raise ArticleNotFound(article_id)
        return article

    async def list_articles(
        self,
        feed_id: str | None = None,
        folder_id: str | None = None,
        unread_only: bool = False,
        starred_only: bool = False,
    ) -> list[Article]:
        """
        List articles, newest first.

        Args:
            feed_id: Restrict to one feed.
            folder_id: Restrict to the feeds of one folder.
            unread_only: Only unread articles.
            starred_only: Only starred articles.
        """
        stmt = select(Article)
        if feed_id is not None:
            stmt = stmt.where(Article.feed_id == feed_id)
        if folder_id is not None:
            stmt = stmt.join(Feed, Feed.id == Article.feed_id).where(Feed.folder_id == folder_id)
        if unread_only:
            stmt = stmt.where(Article.is_read.is_(False))
        if starred_only:
            stmt = stmt.where(Article.is_starred.is_(True))
        stmt = stmt.order_by(Article.published_at.desc().nulls_last(), Article.created_at.desc())

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def set_read(self, article_id: str, is_read: bool = True) -> Article:
        article = await self.get_article(article_id)
        article.is_read = is_read
        await self.session.commit()
        return article

    async def toggle_starred(self, article_id: str) -> Article:
        article = await self.get_article(article_id)
        article.is_starred = not article.is_starred
        await self.session.commit()
        return article

    async def mark_all_read(self, feed_id: str | None = None) -> int:
        """
        Mark unread articles as read.

        Args:
            feed_id: Restrict to one feed; all feeds when None.

        Returns:
            Number of articles changed.
        """
        stmt = update(Article).where(Article.is_read.is_(False)).values(is_read=True)
        if feed_id is not None:
            stmt = stmt.where(Article.feed_id == feed_id)
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount or 0

    async def unread_count(self, feed_id: str | None = None) -> int:
        stmt = select(func.count(Article.id)).where(Article.is_read.is_(False))
        if feed_id is not None:
            stmt = stmt.where(Article.feed_id == feed_id)
        result = await self.session.execute(stmt)
        return result.scalar() or 0
