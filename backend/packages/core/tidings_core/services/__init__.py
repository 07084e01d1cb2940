"""
Service layer.

Business logic services for the application.
"""

from .article_service import ArticleService
from .background_service import BackgroundRefreshService, ReachabilityObserver, StaticReachability
from .feed_service import FeedService, normalize_feed_url
from .folder_service import FolderService
from .notification_service import (
    LoggingNotificationPresenter,
    NotificationDispatcher,
    NotificationPresenter,
    build_notifications,
)
from .opml_service import OPMLService
from .refresh_service import RefreshService, select_refresh_candidates
from .search_service import SearchScope, SearchService

__all__ = [
    "FeedService",
    "RefreshService",
    "FolderService",
    "ArticleService",
    "SearchService",
    "SearchScope",
    "OPMLService",
    "BackgroundRefreshService",
    "NotificationDispatcher",
    # Collaborators
    "NotificationPresenter",
    "LoggingNotificationPresenter",
    "ReachabilityObserver",
    "StaticReachability",
    # Helpers
    "normalize_feed_url",
    "select_refresh_candidates",
    "build_notifications",
]
