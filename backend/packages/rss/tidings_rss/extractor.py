"""
Full-text content extraction.

A readability-lite heuristic: strips boilerplate elements, picks the
main content region through a fixed fallback chain, and rewrites
relative URLs so the result can be rendered outside the original page.
"""

import asyncio
import re
from dataclasses import dataclass
from urllib.parse import urljoin

import httpx
from bs4 import BeautifulSoup, Comment, ParserRejectedMarkup, Tag

from .errors import ExtractionFailed, ExtractorNetworkError, InvalidHTML, NoContentFound
from .fetcher import DEFAULT_TIMEOUT, DEFAULT_USER_AGENT, HTML_ACCEPT, fetch
from .html import strip_html_tags

MIN_CONTENT_LENGTH = 100
EXCERPT_LENGTH = 200

# Removed together with their content
STRIPPED_TAGS = ("script", "style", "noscript")
STRIPPED_ELEMENTS = ("nav", "header", "footer", "aside", "iframe", "form")

BOILERPLATE_RE = re.compile(
    r"\b(ad|ads|advert|advertisement|social|share|comment|sidebar|nav|menu|footer|header)\b",
    re.IGNORECASE,
)

# Tried in order when neither <article> nor <main> holds enough content
CONTENT_PATTERNS = [
    re.compile(r"\bcontent\b", re.IGNORECASE),
    re.compile(r"\bpost\b", re.IGNORECASE),
    re.compile(r"\bentry\b", re.IGNORECASE),
    re.compile(r"\barticle\b", re.IGNORECASE),
]

ABSOLUTE_PREFIXES = ("data:", "http://", "https://", "//")
URL_ATTRIBUTES = ("src", "href")

_CHARSET_RE = re.compile(r"charset\s*=\s*[\"']?([\w.:-]+)", re.IGNORECASE)
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass
class ExtractedContent:
    """Result of a successful extraction."""

    title: str | None
    content: str
    text_content: str
    excerpt: str | None
    author: str | None


class ContentExtractor:
    """
    Extracts the main content of article pages.

    Only one extraction runs at a time per instance.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self._client = client
        self._user_agent = user_agent
        self._timeout = timeout
        self._lock = asyncio.Lock()

    async def extract_content(self, url: str) -> ExtractedContent:
        """
        Fetch an article page and extract its main content.

        Args:
            url: Absolute article URL.

        Returns:
            Extracted content.

        Raises:
            ContentExtractError: If the page cannot be fetched, decoded or
                yields no content.
        """
        async with self._lock:
            try:
                response = await fetch(
                    url,
                    accept=HTML_ACCEPT,
                    client=self._client,
                    user_agent=self._user_agent,
                    timeout=self._timeout,
                )
            except httpx.HTTPError as e:
                raise ExtractorNetworkError(str(e)) from e

            html = decode_html(response.content, response.headers.get("content-type"))
            return extract_content_from_html(html, str(response.url))


def decode_html(body: bytes, content_type: str | None) -> str:
    """
    Decode a response body.

    Tries the charset declared in the Content-Type header, then UTF-8,
    then Latin-1.

    Raises:
        InvalidHTML: If no encoding produces text.
    """
    encodings = ["utf-8", "latin-1"]
    match = _CHARSET_RE.search(content_type or "")
    if match:
        encodings.insert(0, match.group(1))

    for encoding in encodings:
        try:
            text = body.decode(encoding)
        except (LookupError, UnicodeDecodeError):
            continue
        if text.strip():
            return text

    raise InvalidHTML()


def extract_content_from_html(html: str, base_url: str) -> ExtractedContent:
    """
    Extract the main content from an HTML document.

    Args:
        html: Full HTML document.
        base_url: URL the document was loaded from.

    Returns:
        Extracted content.

    Raises:
        NoContentFound: If nothing is left after stripping boilerplate.
        ExtractionFailed: If the markup cannot be parsed at all.
    """
    soup = _parse(html)

    title = _extract_title(soup)
    author = _extract_author(soup)

    remove_unwanted_elements(soup)
    region = find_main_region(soup)
    if region is None or not region.decode_contents().strip():
        raise NoContentFound()

    _rewrite_urls(region, base_url)
    content = _cleanup(region)
    if not content:
        raise NoContentFound()

    text_content = strip_html_tags(content)

    return ExtractedContent(
        title=title,
        content=content,
        text_content=text_content,
        excerpt=generate_excerpt(text_content),
        author=author,
    )


def extract_main_content(html: str) -> str:
    """
    Return the inner HTML of the main content region of a document.

    Boilerplate is stripped first; URLs are left untouched. Returns an
    empty string when the document has no usable region.
    """
    soup = _parse(html)
    remove_unwanted_elements(soup)
    region = find_main_region(soup)
    if region is None:
        return ""
    return region.decode_contents().strip()


def _parse(html: str) -> BeautifulSoup:
    try:
        return BeautifulSoup(html, "lxml")
    except ParserRejectedMarkup as e:
        raise ExtractionFailed(str(e)) from e


def _attribute_text(tag: Tag, name: str) -> str:
    value = tag.get(name)
    if value is None:
        return ""
    if isinstance(value, list):
        return " ".join(value)
    return str(value)


def _matches(tag: Tag, pattern: re.Pattern[str]) -> bool:
    return bool(
        pattern.search(_attribute_text(tag, "class")) or pattern.search(_attribute_text(tag, "id"))
    )


def remove_unwanted_elements(soup: BeautifulSoup) -> None:
    """Strip scripts, comments, page chrome and boilerplate-classed elements in place."""
    for tag in soup.find_all([*STRIPPED_TAGS, *STRIPPED_ELEMENTS]):
        if not tag.decomposed:
            tag.decompose()

    for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
        comment.extract()

    for tag in soup.find_all(True):
        if tag.decomposed or tag.name in ("html", "body"):
            continue
        if _matches(tag, BOILERPLATE_RE):
            tag.decompose()


def find_main_region(soup: BeautifulSoup) -> Tag | None:
    """
    Locate the main content region.

    Candidates in order: <article>, <main>, the first element whose class
    or id looks like content, and finally <body>. The first candidate with
    more than MIN_CONTENT_LENGTH characters of trimmed markup wins.
    """
    candidates: list[Tag | None] = [soup.find("article"), soup.find("main")]
    for pattern in CONTENT_PATTERNS:
        candidates.append(
            soup.find(lambda tag, p=pattern: tag.name not in ("html", "body") and _matches(tag, p))
        )

    for candidate in candidates:
        if candidate is not None and len(candidate.decode_contents().strip()) > MIN_CONTENT_LENGTH:
            return candidate

    return soup.body


def resolve_url(url: str, base_url: str) -> str:
    """Resolve a possibly relative URL; absolute, protocol-relative and data URLs are kept."""
    if url.startswith(ABSOLUTE_PREFIXES):
        return url
    return urljoin(base_url, url)


def split_srcset(srcset: str) -> list[tuple[str, str]]:
    """
    Split a srcset value into (url, descriptor) pairs.

    A URL runs up to whitespace, so commas inside data URLs stay part of it.
    A URL ending in a comma has no descriptor.
    """
    candidates = []
    position = 0
    length = len(srcset)
    while position < length:
        while position < length and (srcset[position].isspace() or srcset[position] == ","):
            position += 1
        if position >= length:
            break

        end = position
        while end < length and not srcset[end].isspace():
            end += 1
        url = srcset[position:end]
        position = end

        if url.endswith(","):
            candidates.append((url.rstrip(","), ""))
            continue

        comma = srcset.find(",", position)
        if comma == -1:
            comma = length
        candidates.append((url, srcset[position:comma].strip()))
        position = comma + 1
    return candidates


def resolve_srcset(srcset: str, base_url: str) -> str:
    """Resolve each candidate of a srcset value, keeping width/density descriptors."""
    candidates = []
    for candidate_url, descriptor in split_srcset(srcset):
        candidate_url = resolve_url(candidate_url, base_url)
        candidates.append(f"{candidate_url} {descriptor}" if descriptor else candidate_url)
    return ", ".join(candidates)


def _rewrite_urls(root: Tag, base_url: str) -> None:
    for tag in [root, *root.find_all(True)]:
        for attribute in URL_ATTRIBUTES:
            value = tag.get(attribute)
            if isinstance(value, str) and value:
                tag[attribute] = resolve_url(value, base_url)
        srcset = tag.get("srcset")
        if isinstance(srcset, str) and srcset:
            tag["srcset"] = resolve_srcset(srcset, base_url)


def resolve_relative_urls(html: str, base_url: str) -> str:
    """Rewrite relative src, href and srcset attributes of an HTML fragment."""
    soup = BeautifulSoup(html, "html.parser")
    _rewrite_urls(soup, base_url)
    return str(soup)


def _cleanup(region: Tag) -> str:
    # Reversed so that containers emptied by their children are removed too
    for tag in reversed(region.find_all(["p", "div"])):
        if tag.decomposed:
            continue
        if not tag.get_text(strip=True) and tag.find(True) is None:
            tag.decompose()

    return _WHITESPACE_RE.sub(" ", region.decode_contents()).strip()


def _meta_content(soup: BeautifulSoup, attribute: str, value: str) -> str | None:
    pattern = re.compile(rf"^{re.escape(value)}$", re.IGNORECASE)
    tag = soup.find("meta", attrs={attribute: pattern})
    if tag is None:
        return None
    content = _attribute_text(tag, "content").strip()
    return content or None


def _extract_title(soup: BeautifulSoup) -> str | None:
    og_title = _meta_content(soup, "property", "og:title")
    if og_title:
        return og_title
    if soup.title is not None:
        title = soup.title.get_text(strip=True)
        return title or None
    return None


def _extract_author(soup: BeautifulSoup) -> str | None:
    return _meta_content(soup, "name", "author") or _meta_content(
        soup, "property", "article:author"
    )


def generate_excerpt(text: str, max_length: int = EXCERPT_LENGTH) -> str:
    """
    Build a short excerpt from plain text.

    Truncates at the last sentence end within the limit, else at the last
    word boundary with an ellipsis, else hard-cuts with an ellipsis.
    """
    cleaned = text.strip()
    if len(cleaned) <= max_length:
        return cleaned

    truncated = cleaned[:max_length]

    last_period = truncated.rfind(".")
    if last_period != -1:
        return truncated[: last_period + 1]

    last_space = truncated.rfind(" ")
    if last_space != -1:
        return truncated[:last_space] + "..."

    return truncated + "..."
