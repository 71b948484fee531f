"""
Text and URL normalization utilities for extraction.

These functions standardize scraped values into consistent formats.
"""

import re
from typing import Optional
from urllib.parse import urljoin, urlparse

# "by Jane", "Composed by Jane", "BY: Jane"
AUTHOR_PREFIX_RE = re.compile(r'^(composed\s+by|by)\b[\s:]*', re.IGNORECASE)


def clean_text(text: Optional[str]) -> str:
    """
    Collapse whitespace runs and strip.

    Examples:
        "  Neon\\n   Pulse " -> "Neon Pulse"
        None -> ""
    """
    if not text:
        return ""
    return ' '.join(text.split())


def truncate(text: Optional[str], limit: int) -> str:
    """Cut text to at most ``limit`` characters."""
    if not text:
        return ""
    return text[:limit]


def normalize_author(author: Optional[str]) -> str:
    """
    Strip a leading attribution prefix from an author string.

    Examples:
        by Jane Doe -> Jane Doe
        Composed by Jane Doe -> Jane Doe
        Jane Doe -> Jane Doe
    """
    author = clean_text(author)
    if not author:
        return ""
    return AUTHOR_PREFIX_RE.sub('', author).strip()


def absolutize_url(url: Optional[str], base_url: str) -> str:
    """
    Resolve a possibly relative URL against a base.

    Examples:
        /face/12 (base https://site.com/latest) -> https://site.com/face/12
        https://cdn.site.com/a.png -> unchanged
        "" -> ""
    """
    url = (url or '').strip()
    if not url:
        return ""
    if url.startswith('//'):
        scheme = urlparse(base_url).scheme or 'https'
        return f"{scheme}:{url}"
    return urljoin(base_url, url)


def strip_fragment(url: str) -> str:
    """Remove a trailing #fragment from a URL."""
    return url.split('#', 1)[0]
