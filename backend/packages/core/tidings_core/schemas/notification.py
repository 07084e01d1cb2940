"""
Notification schemas.
"""

from enum import Enum

from pydantic import BaseModel


class AuthorizationStatus(str, Enum):
    """Notification permission state reported by the presentation layer."""

    NOT_DETERMINED = "not_determined"
    DENIED = "denied"
    AUTHORIZED = "authorized"


class NewArticleEvent(BaseModel):
    """An article discovered by a refresh."""

    article_id: str
    article_title: str
    feed_id: str
    feed_title: str


class ArticleNotification(BaseModel):
    """
    A notification ready for presentation.

    ``thread_id`` is the feed id so presenters can group notifications per
    feed. ``article_id`` is the article to open when the notification is
    activated; for summaries it is the first new article.
    """

    identifier: str
    title: str
    body: str
    thread_id: str
    feed_id: str
    article_id: str
    article_count: int = 1
    category: str = "NEW_ARTICLE"
