"""
RSS/Atom/JSON Feed parser.

Detects the wire format of a feed document and normalizes it into a
single ParsedFeed model. RSS and Atom are parsed with feedparser,
JSON Feed is decoded directly.
"""

import asyncio
import io
import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from urllib.parse import urljoin, urlsplit

import feedparser
import httpx
from feedparser import FeedParserDict

from .errors import NetworkError, ParsingError, UnknownFeedType
from .fetcher import DEFAULT_TIMEOUT, DEFAULT_USER_AGENT, FEED_ACCEPT, fetch
from .html import strip_html_tags

JSON_TITLE_FALLBACK_LENGTH = 50

# Encoding complaints on otherwise well-formed documents
_BENIGN_BOZO = (feedparser.CharacterEncodingOverride, feedparser.NonXMLContentType)


@dataclass
class ParsedArticle:
    """Parsed article data, independent of the source format."""

    id: str
    title: str
    summary: str | None = None
    content_html: str | None = None
    url: str | None = None
    author: str | None = None
    published_at: datetime | None = None

    @property
    def dedup_key(self) -> str:
        """Key used to detect articles already stored for a feed."""
        return self.url or self.id


@dataclass
class ParsedFeed:
    """Parsed feed metadata and articles."""

    title: str
    description: str | None = None
    home_page_url: str | None = None
    image_url: str | None = None
    articles: list[ParsedArticle] = field(default_factory=list)


class FeedParser:
    """
    Fetches and parses feeds.

    Only one fetch/parse runs at a time per instance.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """
        Initialize the parser.

        Args:
            client: Optional shared HTTP client.
            user_agent: User-Agent sent with every request.
            timeout: Request timeout in seconds.
        """
        self._client = client
        self._user_agent = user_agent
        self._timeout = timeout
        self._lock = asyncio.Lock()

    async def fetch_and_parse(self, url: str) -> ParsedFeed:
        """
        Fetch a feed and parse it.

        Args:
            url: Absolute feed URL.

        Returns:
            Parsed feed.

        Raises:
            NetworkError: On transport failure or a non-2xx response.
            ParsingError: If the document is malformed.
            UnknownFeedType: If the document is not RSS, Atom or JSON Feed.
        """
        async with self._lock:
            try:
                response = await fetch(
                    url,
                    accept=FEED_ACCEPT,
                    client=self._client,
                    user_agent=self._user_agent,
                    timeout=self._timeout,
                )
            except httpx.HTTPError as e:
                raise NetworkError(str(e)) from e

            return parse_feed(response.content, url)

    async def validate_feed(self, url: str) -> ParsedFeed:
        """Fetch and parse a feed without any side effects."""
        return await self.fetch_and_parse(url)


def parse_feed(content: bytes | str, url: str) -> ParsedFeed:
    """
    Parse a feed document.

    Args:
        content: Raw feed document.
        url: Feed URL, used for the title fallback.

    Returns:
        Parsed feed. A feed without items is a valid, empty result.

    Raises:
        ParsingError: If the document is malformed.
        UnknownFeedType: If the document matches no supported format.
    """
    raw = content.encode("utf-8") if isinstance(content, str) else content

    if _looks_like_json(raw):
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise ParsingError(f"Invalid JSON: {e}") from e

        if isinstance(data, dict) and isinstance(data.get("items"), list):
            return _parse_json_feed(data, url)
        raise UnknownFeedType()

    data = feedparser.parse(io.BytesIO(raw))
    version = data.get("version") or ""

    if version.startswith("rss"):
        return _parse_rss_feed(data, url)
    if version.startswith("atom"):
        return _parse_atom_feed(data, url)

    bozo_exception = data.get("bozo_exception")
    if data.get("bozo", False) and not isinstance(bozo_exception, _BENIGN_BOZO):
        raise ParsingError(str(bozo_exception or "Unknown error"))
    raise UnknownFeedType()


def _looks_like_json(raw: bytes) -> bool:
    head = raw.lstrip(b"\xef\xbb\xbf \t\r\n")[:1]
    return head in (b"{", b"[")


def _fallback_title(url: str) -> str:
    return urlsplit(url).hostname or "Unknown Feed"


def _generate_id() -> str:
    return str(uuid.uuid4())


def _to_datetime(parsed: Any) -> datetime | None:
    if not parsed:
        return None
    try:
        return datetime(*parsed[:6], tzinfo=timezone.utc)
    except (TypeError, ValueError):
        return None


def _absolute(link: str | None, base_url: str) -> str | None:
    """Resolve a possibly relative link against the feed URL."""
    if not link:
        return None
    return urljoin(base_url, link)


def _image_url(feed_info: FeedParserDict) -> str | None:
    image = feed_info.get("image") or {}
    return image.get("href") or feed_info.get("logo") or feed_info.get("icon")


def _content_value(entry: FeedParserDict) -> str | None:
    content_list = entry.get("content", [])
    if content_list:
        return content_list[0].get("value")
    return None


# RSS


def _parse_rss_feed(data: FeedParserDict, url: str) -> ParsedFeed:
    feed_info = data.get("feed", {})

    articles = []
    for entry in data.get("entries", []):
        article = _parse_rss_item(entry, url)
        if article is not None:
            articles.append(article)

    return ParsedFeed(
        title=feed_info.get("title") or _fallback_title(url),
        description=feed_info.get("description") or None,
        home_page_url=_absolute(feed_info.get("link"), url),
        image_url=_image_url(feed_info),
        articles=articles,
    )


def _parse_rss_item(entry: FeedParserDict, base_url: str) -> ParsedArticle | None:
    title = entry.get("title")
    if not title:
        return None

    link = _absolute(entry.get("link"), base_url)
    description = entry.get("summary")

    author = _rss_author(entry)

    return ParsedArticle(
        id=entry.get("id") or link or _generate_id(),
        title=title,
        summary=strip_html_tags(description) if description else None,
        content_html=_content_value(entry) or description,
        url=link,
        author=author or None,
        published_at=_to_datetime(entry.get("published_parsed")),
    )


def _rss_author(entry: FeedParserDict) -> str | None:
    """Prefer the RSS <author> element, an email field, over dc:creator."""
    authors = entry.get("authors") or []
    for detail in authors:
        email = detail.get("email")
        if email:
            name = detail.get("name")
            return f"{email} ({name})" if name else email
    for detail in authors:
        if detail.get("name"):
            return detail["name"]
    return entry.get("author")


# Atom


def _parse_atom_feed(data: FeedParserDict, url: str) -> ParsedFeed:
    feed_info = data.get("feed", {})

    articles = []
    for entry in data.get("entries", []):
        article = _parse_atom_entry(entry, url)
        if article is not None:
            articles.append(article)

    return ParsedFeed(
        title=feed_info.get("title") or _fallback_title(url),
        description=feed_info.get("subtitle") or None,
        home_page_url=_absolute(
            _alternate_link(feed_info.get("links", [])) or feed_info.get("link"), url
        ),
        image_url=_image_url(feed_info),
        articles=articles,
    )


def _alternate_link(links: list[dict[str, Any]]) -> str | None:
    for link in links:
        if link.get("rel") == "alternate" and link.get("href"):
            return link["href"]
    if links:
        return links[0].get("href")
    return None


def _parse_atom_entry(entry: FeedParserDict, base_url: str) -> ParsedArticle | None:
    title = entry.get("title")
    if not title:
        return None

    links = entry.get("links", [])
    first_href = links[0].get("href") if links else None

    authors = entry.get("authors") or []
    author = authors[0].get("name") if authors else entry.get("author")

    summary = entry.get("summary")
    published = entry.get("published_parsed") or entry.get("updated_parsed")

    return ParsedArticle(
        id=entry.get("id") or first_href or _generate_id(),
        title=title,
        summary=strip_html_tags(summary) if summary else None,
        content_html=_content_value(entry),
        url=_absolute(_alternate_link(links), base_url),
        author=author or None,
        published_at=_to_datetime(published),
    )


# JSON Feed


def _parse_json_feed(data: dict[str, Any], url: str) -> ParsedFeed:
    articles = []
    for item in data.get("items", []):
        if not isinstance(item, dict):
            continue
        article = _parse_json_item(item, url)
        if article is not None:
            articles.append(article)

    return ParsedFeed(
        title=data.get("title") or _fallback_title(url),
        description=data.get("description") or None,
        home_page_url=_absolute(data.get("home_page_url"), url),
        image_url=data.get("icon") or data.get("favicon") or None,
        articles=articles,
    )


def _parse_json_item(item: dict[str, Any], base_url: str) -> ParsedArticle | None:
    content_text = item.get("content_text")
    content_html = item.get("content_html")

    title = item.get("title")
    if not title:
        plain = content_text or strip_html_tags(content_html)
        title = plain[:JSON_TITLE_FALLBACK_LENGTH] if plain else None
    if not title:
        return None

    item_id = item.get("id")
    item_url = _absolute(item.get("url"), base_url)

    return ParsedArticle(
        id=str(item_id) if item_id not in (None, "") else item_url or _generate_id(),
        title=title,
        summary=item.get("summary") or None,
        content_html=content_html or content_text or None,
        url=item_url,
        author=_json_author(item),
        published_at=_parse_iso_date(item.get("date_published") or item.get("date_modified")),
    )


def _json_author(item: dict[str, Any]) -> str | None:
    author = item.get("author")
    if not isinstance(author, dict):
        # JSON Feed 1.1 replaced author with an authors array
        authors = item.get("authors") or []
        author = authors[0] if authors and isinstance(authors[0], dict) else None
    if author:
        return author.get("name") or None
    return None


def _parse_iso_date(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
