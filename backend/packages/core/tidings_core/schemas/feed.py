"""
Feed, article and folder schemas.

Read models for presenting stored entities with derived counts.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class FeedResponse(BaseModel):
    """Feed read model."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    url: str
    title: str
    home_page_url: str | None
    description: str | None
    image_url: str | None
    last_updated: datetime | None
    sort_order: int
    fetch_full_content: bool
    folder_id: str | None
    unread_count: int = 0


class ArticleResponse(BaseModel):
    """Article read model."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    feed_id: str
    title: str
    url: str | None
    summary: str | None
    author: str | None
    published_at: datetime | None
    is_read: bool
    is_starred: bool
    has_full_content: bool


class FolderResponse(BaseModel):
    """Folder with its feeds and derived unread count."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    sort_order: int
    is_expanded: bool
    unread_count: int = 0
    feeds: list[FeedResponse] = []


class FolderTreeResponse(BaseModel):
    """Sidebar tree: folders followed by feeds that belong to no folder."""

    folders: list[FolderResponse]
    uncategorized: list[FeedResponse]
