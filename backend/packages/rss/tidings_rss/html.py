"""
HTML text helpers.
"""

import re

from bs4 import BeautifulSoup

_WHITESPACE_RE = re.compile(r"\s+")


def collapse_whitespace(text: str) -> str:
    """Collapse runs of whitespace into single spaces and trim."""
    return _WHITESPACE_RE.sub(" ", text).strip()


def strip_html_tags(html: str | None) -> str:
    """
    Strip markup from an HTML fragment and return plain text.

    Entities are decoded and whitespace runs collapsed.
    """
    if not html:
        return ""
    if "<" not in html and "&" not in html:
        return collapse_whitespace(html)
    return collapse_whitespace(BeautifulSoup(html, "lxml").get_text(" "))
