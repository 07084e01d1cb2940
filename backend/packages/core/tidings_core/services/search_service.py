"""
Article search.

Case-insensitive substring search over title, summary, content, feed
title and author. Matching happens in Python so content HTML can be
searched as plain text.
"""

from enum import Enum

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tidings_database.models import Article, Feed
from tidings_rss import strip_html_tags

SNIPPET_CONTEXT_LENGTH = 50
SNIPPET_FALLBACK_LENGTH = 100


class SearchScope(str, Enum):
    ALL = "all"
    FEED = "feed"
    FOLDER = "folder"


def matches(article: Article, query: str, feed_title: str | None = None) -> bool:
    """
    Check whether an article matches a query.

    An empty query matches everything.
    """
    if not query:
        return True

    needle = query.lower()
    fields = [article.title, article.summary, feed_title, article.author]
    if article.content_html:
        fields.append(strip_html_tags(article.content_html))

    return any(value and needle in value.lower() for value in fields)


def extract_snippet(text: str, query: str, context_length: int = SNIPPET_CONTEXT_LENGTH) -> str:
    """
    Cut the text around the first occurrence of the query.

    Ellipses mark truncated ends. Without a match the first 100
    characters are returned.
    """
    index = text.lower().find(query.lower())
    if index == -1:
        return text[:SNIPPET_FALLBACK_LENGTH]

    start = max(0, index - context_length)
    end = min(len(text), index + len(query) + context_length)

    snippet = text[start:end]
    if start > 0:
        snippet = "..." + snippet
    if end < len(text):
        snippet = snippet + "..."
    return snippet


def find_match_snippet(article: Article, query: str) -> str | None:
    """
    Snippet showing where an article matched.

    Title matches return the whole title; summary and content matches
    return a snippet. Feed title and author matches have no snippet.
    """
    if not query:
        return None

    needle = query.lower()
    if needle in article.title.lower():
        return article.title
    if article.summary and needle in article.summary.lower():
        return extract_snippet(article.summary, query)
    if article.content_html:
        plain = strip_html_tags(article.content_html)
        if needle in plain.lower():
            return extract_snippet(plain, query)
    return None


def find_match_ranges(text: str, query: str) -> list[tuple[int, int]]:
    """Non-overlapping (start, end) offsets of every case-insensitive match."""
    if not query:
        return []

    haystack = text.lower()
    needle = query.lower()
    ranges = []
    start = haystack.find(needle)
    while start != -1:
        end = start + len(needle)
        ranges.append((start, end))
        start = haystack.find(needle, end)
    return ranges


class SearchService:
    """Searches stored articles."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def search(
        self,
        query: str,
        scope: SearchScope = SearchScope.ALL,
        scope_id: str | None = None,
    ) -> list[Article]:
        """
        Find matching articles, newest first.

        Args:
            query: Search text.
            scope: Restrict the search to one feed or folder.
            scope_id: Feed or folder id for the restricted scopes.
        """
        stmt = select(Article, Feed.title).join(Feed, Feed.id == Article.feed_id)
        if scope == SearchScope.FEED and scope_id is not None:
            stmt = stmt.where(Article.feed_id == scope_id)
        elif scope == SearchScope.FOLDER and scope_id is not None:
            stmt = stmt.where(Feed.folder_id == scope_id)
        stmt = stmt.order_by(Article.published_at.desc().nulls_last())

        result = await self.session.execute(stmt)
        return [
            article
            for article, feed_title in result.all()
            if matches(article, query, feed_title=feed_title)
        ]
