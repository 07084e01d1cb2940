"""
Refresh schemas.
"""

from pydantic import BaseModel

from .notification import NewArticleEvent


class RefreshResult(BaseModel):
    """Outcome of a batch refresh."""

    new_article_count: int = 0
    refreshed_feed_count: int = 0
    failed_feed_count: int = 0
    last_error: str | None = None
    cancelled: bool = False
    new_articles: list[NewArticleEvent] = []
