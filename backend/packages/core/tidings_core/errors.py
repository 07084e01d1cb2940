"""
Service errors.

User-facing failures raised by the service layer. Each error carries a
short message and, where one exists, a recovery suggestion.
"""

from tidings_rss import FeedParseError, NetworkError


class ServiceError(Exception):
    """Base class for service errors."""

    message = "Unexpected error"
    recovery_suggestion: str | None = None

    def __init__(self, detail: str | None = None):
        self.detail = detail
        super().__init__(f"{self.message}: {detail}" if detail else self.message)


class FeedServiceError(ServiceError):
    """Raised by feed add/validate/refresh operations."""


class InvalidURL(FeedServiceError):
    message = "Invalid URL"
    recovery_suggestion = "Please enter a valid feed URL (e.g., https://example.com/feed.xml)"


class DuplicateFeed(FeedServiceError):
    message = "This feed has already been added"
    recovery_suggestion = "This feed is already in your library"


class FeedNetworkError(FeedServiceError):
    message = "Network error"
    recovery_suggestion = "Check your internet connection and try again"


class FeedParsingFailed(FeedServiceError):
    message = "Failed to parse feed"
    recovery_suggestion = "Make sure the URL points to a valid RSS, Atom, or JSON feed"


class SaveFailed(FeedServiceError):
    message = "Failed to save"
    recovery_suggestion = "Try again later"


class FeedNotFound(FeedServiceError):
    message = "Feed not found"


class ArticleNotFound(ServiceError):
    message = "Article not found"


class FolderServiceError(ServiceError):
    """Raised by folder operations."""


class FolderNotFound(FolderServiceError):
    message = "Folder not found"


class DuplicateFolderName(FolderServiceError):
    message = "A folder with this name already exists"


def from_parse_error(error: FeedParseError) -> FeedServiceError:
    """Translate a parser error into the matching service error."""
    if isinstance(error, NetworkError):
        return FeedNetworkError(error.detail or str(error))
    return FeedParsingFailed(str(error))
