"""
Feed model definition.

This module defines the Feed model for storing subscribed feed information.
"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, LargeBinary, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, generate_uuid


class Feed(Base, TimestampMixin):
    """
    Subscribed feed model.

    Attributes:
        id: Unique feed identifier (UUID).
        url: Normalized feed URL (unique, indexed).
        title: Feed title from source.
        home_page_url: Website URL associated with the feed.
        description: Feed description.
        image_url: Feed image or icon URL.
        icon_data: Cached icon bytes.
        last_updated: Timestamp of the last successful refresh, None if never refreshed.
        sort_order: Position within its folder or the uncategorized list.
        fetch_full_content: Whether article pages are fetched for full content.
        folder_id: Owning folder, if any.
    """

    __tablename__ = "feeds"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)

    url: Mapped[str] = mapped_column(String(2000), unique=True, nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    home_page_url: Mapped[str | None] = mapped_column(String(2000))
    description: Mapped[str | None] = mapped_column(Text)
    image_url: Mapped[str | None] = mapped_column(String(2000))
    icon_data: Mapped[bytes | None] = mapped_column(LargeBinary)

    last_updated: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), index=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    fetch_full_content: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    folder_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("folders.id", ondelete="SET NULL"), index=True
    )

    # Relationships
    folder = relationship("Folder", back_populates="feeds")
    articles = relationship("Article", back_populates="feed", passive_deletes=True)
