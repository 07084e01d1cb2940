"""
RSS package errors.

Exception hierarchy raised by the feed parser, the content extractor,
and the OPML codec.
"""


class TidingsRSSError(Exception):
    """Base class for all errors raised by this package."""

    message = "Unexpected feed processing error"
    recovery_suggestion: str | None = None

    def __init__(self, detail: str | None = None):
        """
        Initialize the error.

        Args:
            detail: Optional detail appended to the base message.
        """
        self.detail = detail
        super().__init__(f"{self.message}: {detail}" if detail else self.message)


# Feed parsing


class FeedParseError(TidingsRSSError):
    """Raised when a feed cannot be fetched or parsed."""

    message = "Failed to parse feed"


class NetworkError(FeedParseError):
    """Transport failure or non-2xx response."""

    message = "Network error"
    recovery_suggestion = "Check your internet connection and try again"


class ParsingError(FeedParseError):
    """Malformed markup or JSON."""

    message = "Parsing error"
    recovery_suggestion = "Make sure the URL points to a valid RSS, Atom, or JSON feed"


class UnknownFeedType(FeedParseError):
    """Document parsed but matches none of the supported feed formats."""

    message = "Unknown or unsupported feed type"
    recovery_suggestion = "Make sure the URL points to a valid RSS, Atom, or JSON feed"


# Content extraction


class ContentExtractError(TidingsRSSError):
    """Raised when full content cannot be extracted from a page."""

    message = "Content extraction failed"


class ExtractorNetworkError(ContentExtractError):
    message = "Network error"


class InvalidHTML(ContentExtractError):
    message = "Invalid HTML content"


class NoContentFound(ContentExtractError):
    message = "Could not find main content"


class ExtractionFailed(ContentExtractError):
    message = "Extraction failed"


# OPML


class OPMLError(TidingsRSSError):
    """Raised by OPML import/export."""

    message = "OPML error"


class OPMLInvalidData(OPMLError):
    message = "Invalid OPML data"


class OPMLParsingFailed(OPMLError):
    message = "Failed to parse OPML"


class OPMLNoFeeds(OPMLError):
    message = "No feeds found in OPML file"
    recovery_suggestion = "Make sure the file contains outlines with an xmlUrl attribute"


class OPMLExportFailed(OPMLError):
    message = "Failed to export OPML"
