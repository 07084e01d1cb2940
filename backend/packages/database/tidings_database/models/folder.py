"""
Folder model definition.
"""

from sqlalchemy import Boolean, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, generate_uuid


class Folder(Base, TimestampMixin):
    """
    Feed folder.

    Unread counts and member articles are derived from the contained
    feeds and never stored.
    """

    __tablename__ = "folders"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_expanded: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    feeds = relationship("Feed", back_populates="folder")
