"""
Article model definition.
"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, generate_uuid


class Article(Base, TimestampMixin):
    """
    Article model.

    Articles are created during refresh and are only ever removed together
    with their feed.

    Attributes:
        id: Unique article identifier (UUID).
        feed_id: Owning feed.
        guid: Format-native identifier (GUID, entry id or item id).
        url: Canonical article URL.
        title: Article title.
        summary: Plain-text summary.
        content_html: Content HTML from the feed.
        author: Author name.
        published_at: Publication timestamp.
        is_read: Read flag.
        is_starred: Starred flag.
        full_content: Extracted full-content HTML.
        has_full_content: True only when full_content is non-empty.
    """

    __tablename__ = "articles"
    __table_args__ = (Index("ix_articles_feed_id_url", "feed_id", "url"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    feed_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("feeds.id", ondelete="CASCADE"), nullable=False, index=True
    )

    guid: Mapped[str] = mapped_column(String(2000), nullable=False)
    url: Mapped[str | None] = mapped_column(String(2000))
    title: Mapped[str] = mapped_column(String(1000), nullable=False)
    summary: Mapped[str | None] = mapped_column(Text)
    content_html: Mapped[str | None] = mapped_column(Text)
    author: Mapped[str | None] = mapped_column(String(500))
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), index=True)

    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_starred: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    full_content: Mapped[str | None] = mapped_column(Text)
    has_full_content: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    feed = relationship("Feed", back_populates="articles")

    @property
    def dedup_key(self) -> str:
        """Key used to detect re-delivered articles: URL, else native id."""
        return self.url or self.guid
