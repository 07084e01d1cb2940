"""
RSS processing package.

Provides RSS/Atom/JSON Feed parsing, full-text content extraction,
and OPML import/export.
"""

from .errors import (
    ContentExtractError,
    ExtractionFailed,
    ExtractorNetworkError,
    FeedParseError,
    InvalidHTML,
    NetworkError,
    NoContentFound,
    OPMLError,
    OPMLExportFailed,
    OPMLInvalidData,
    OPMLNoFeeds,
    OPMLParsingFailed,
    ParsingError,
    UnknownFeedType,
)
from .extractor import (
    ContentExtractor,
    ExtractedContent,
    extract_content_from_html,
    extract_main_content,
    resolve_relative_urls,
)
from .html import strip_html_tags
from .opml import OPMLDocument, OPMLOutline, generate_opml, parse_opml
from .parser import FeedParser, ParsedArticle, ParsedFeed, parse_feed

__all__ = [
    "FeedParser",
    "ParsedFeed",
    "ParsedArticle",
    "parse_feed",
    "ContentExtractor",
    "ExtractedContent",
    "extract_content_from_html",
    "extract_main_content",
    "resolve_relative_urls",
    "strip_html_tags",
    "parse_opml",
    "generate_opml",
    "OPMLDocument",
    "OPMLOutline",
    # Errors
    "FeedParseError",
    "NetworkError",
    "ParsingError",
    "UnknownFeedType",
    "ContentExtractError",
    "ExtractorNetworkError",
    "InvalidHTML",
    "NoContentFound",
    "ExtractionFailed",
    "OPMLError",
    "OPMLInvalidData",
    "OPMLParsingFailed",
    "OPMLNoFeeds",
    "OPMLExportFailed",
]
