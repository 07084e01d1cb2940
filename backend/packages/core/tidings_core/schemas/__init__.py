"""
Pydantic schemas shared by the service layer.
"""

from .feed import ArticleResponse, FeedResponse, FolderResponse, FolderTreeResponse
from .notification import ArticleNotification, AuthorizationStatus, NewArticleEvent
from .opml import OPMLImportResult
from .refresh import RefreshResult

__all__ = [
    "FeedResponse",
    "ArticleResponse",
    "FolderResponse",
    "FolderTreeResponse",
    "NewArticleEvent",
    "ArticleNotification",
    "AuthorizationStatus",
    "OPMLImportResult",
    "RefreshResult",
]
