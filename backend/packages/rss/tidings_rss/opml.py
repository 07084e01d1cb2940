"""
OPML import/export.

Handles OPML file parsing and generation for feed subscription management.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from xml.etree import ElementTree as ET

from .errors import OPMLInvalidData, OPMLParsingFailed

DEFAULT_TITLE = "Tidings Subscriptions"
UNTITLED = "Untitled"

# Ampersand must come first so later substitutions are not double-escaped
_XML_ESCAPES = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&apos;"),
)


@dataclass
class OPMLOutline:
    """
    OPML outline node.

    A node with a feed URL is a feed; a node without one is a folder
    holding its children.
    """

    title: str
    feed_url: str | None = None
    html_url: str | None = None
    children: list["OPMLOutline"] = field(default_factory=list)

    @property
    def is_feed(self) -> bool:
        return self.feed_url is not None

    @property
    def is_folder(self) -> bool:
        return self.feed_url is None and bool(self.children)


@dataclass
class OPMLDocument:
    """Parsed OPML document."""

    title: str
    date_created: datetime | None = None
    outlines: list[OPMLOutline] = field(default_factory=list)

    @property
    def all_feeds(self) -> list[OPMLOutline]:
        """All feed outlines, depth-first, ignoring folder structure."""
        return _flatten_feeds(self.outlines)


def _flatten_feeds(outlines: list[OPMLOutline]) -> list[OPMLOutline]:
    feeds = []
    for outline in outlines:
        if outline.is_feed:
            feeds.append(outline)
        feeds.extend(_flatten_feeds(outline.children))
    return feeds


def parse_opml(content: bytes | str) -> OPMLDocument:
    """
    Parse OPML file.

    Args:
        content: OPML XML content.

    Returns:
        Parsed document. Well-formed XML that is not OPML yields a
        document without outlines.

    Raises:
        OPMLInvalidData: If the content is empty.
        OPMLParsingFailed: If the content is not well-formed XML.
    """
    raw = content.encode("utf-8") if isinstance(content, str) else content
    if not raw or not raw.strip():
        raise OPMLInvalidData()

    try:
        root = ET.fromstring(raw)
    except ET.ParseError as e:
        raise OPMLParsingFailed(str(e)) from e

    if root.tag != "opml":
        return OPMLDocument(title=UNTITLED)

    title = UNTITLED
    date_created = None
    head = root.find("head")
    if head is not None:
        title = (head.findtext("title") or "").strip() or UNTITLED
        date_created = _parse_date(head.findtext("dateCreated"))

    outlines = []
    body = root.find("body")
    if body is not None:
        outlines = _parse_outlines(body)

    return OPMLDocument(title=title, date_created=date_created, outlines=outlines)


def _parse_outlines(parent: ET.Element) -> list[OPMLOutline]:
    outlines = []
    for element in parent.findall("outline"):
        title = element.get("title") or element.get("text") or UNTITLED
        xml_url = element.get("xmlUrl")

        if xml_url:
            outlines.append(
                OPMLOutline(title=title, feed_url=xml_url, html_url=element.get("htmlUrl") or None)
            )
        else:
            outlines.append(OPMLOutline(title=title, children=_parse_outlines(element)))

    return outlines


def _parse_date(value: str | None) -> datetime | None:
    if not value or not value.strip():
        return None
    value = value.strip()

    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        pass

    # OPML 2.0 readers in the wild also emit RFC 822 dates
    try:
        return parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None


def escape_xml(value: str) -> str:
    """Escape the five reserved XML characters."""
    for char, entity in _XML_ESCAPES:
        value = value.replace(char, entity)
    return value


def format_date(value: datetime) -> str:
    """Format a timestamp as ISO-8601 in UTC."""
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def generate_opml(
    feeds: Iterable[OPMLOutline],
    title: str = DEFAULT_TITLE,
    now: datetime | None = None,
) -> str:
    """
    Generate OPML file from feeds.

    Args:
        feeds: Feed outlines, already in the desired order. Folder outlines
            are skipped.
        title: OPML document title.
        now: Creation timestamp, defaults to the current time.

    Returns:
        OPML XML string.
    """
    created = format_date(now or datetime.now(timezone.utc))

    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<opml version="2.0">',
        "    <head>",
        f"        <title>{escape_xml(title)}</title>",
        f"        <dateCreated>{created}</dateCreated>",
        "    </head>",
        "    <body>",
    ]

    for feed in feeds:
        if not feed.feed_url:
            continue
        outline = (
            f'        <outline type="rss" text="{escape_xml(feed.title)}" '
            f'title="{escape_xml(feed.title)}" xmlUrl="{escape_xml(feed.feed_url)}" '
        )
        if feed.html_url:
            outline += f'htmlUrl="{escape_xml(feed.html_url)}" '
        lines.append(outline + "/>")

    lines.extend(["    </body>", "</opml>"])
    return "\n".join(lines)
