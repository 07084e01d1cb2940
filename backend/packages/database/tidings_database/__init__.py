"""
Tidings Database Package.

SQLAlchemy models and session management for feeds, articles and folders.
"""

from .models import Article, Base, Feed, Folder
from .session import Database

__all__ = ["Base", "Database", "Feed", "Article", "Folder"]
