"""
Database models package.

This module exports all SQLAlchemy models for the Tidings application.
"""

from .article import Article
from .base import Base, TimestampMixin, generate_uuid
from .feed import Feed
from .folder import Folder

__all__ = [
    "Base",
    "TimestampMixin",
    "generate_uuid",
    "Feed",
    "Article",
    "Folder",
]
