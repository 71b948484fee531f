"""
Queryable snapshot of a rendered page.

The renderer serializes the live DOM after scripts have run and records the
layout size of every image as data attributes, so extraction can work on a
plain BeautifulSoup tree without a browser.
"""

from typing import List, Optional
from bs4 import BeautifulSoup, Tag

from .utils.normalizers import absolutize_url, clean_text

RENDERED_WIDTH_ATTR = 'data-rendered-width'
RENDERED_HEIGHT_ATTR = 'data-rendered-height'


def _parse_dimension(value) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(float(str(value).strip().rstrip('px')))
    except (TypeError, ValueError):
        return None


class RenderedDocument:
    """A rendered page: final URL, title and parsed DOM."""

    def __init__(self, html: str, url: str, title: str = "", status: Optional[int] = None):
        self.html = html
        self.url = url
        self.status = status
        self.soup = BeautifulSoup(html, 'html.parser')
        if not title and self.soup.title:
            title = self.soup.title.get_text(strip=True)
        self.title = title

    def __repr__(self):
        return f"<RenderedDocument {self.url} ({len(self.html)} chars)>"

    @property
    def content_length(self) -> int:
        return len(self.html)

    def select(self, selector: str) -> List[Tag]:
        return self.soup.select(selector)

    def select_one(self, selector: str) -> Optional[Tag]:
        return self.soup.select_one(selector)

    def absolute(self, url: Optional[str], base_url: Optional[str] = None) -> str:
        """Resolve a link against the page URL (or an explicit base)."""
        return absolutize_url(url, base_url or self.url)

    @staticmethod
    def text(element: Optional[Tag]) -> str:
        if element is None:
            return ""
        return clean_text(element.get_text(' '))

    @staticmethod
    def image_source(img: Tag) -> str:
        """Explicit src first, then lazy-load attributes."""
        for attr in ('src', 'data-src', 'data-lazy-src'):
            value = (img.get(attr) or '').strip()
            if value and not value.startswith('data:'):
                return value
        return ""

    @staticmethod
    def image_size(img: Tag) -> tuple:
        """
        Layout size of an image in CSS pixels.

        Uses the size recorded by the renderer, falling back to width/height
        attributes. Unknown dimensions come back as 0, like an image that
        never loaded.
        """
        width = _parse_dimension(img.get(RENDERED_WIDTH_ATTR))
        if width is None:
            width = _parse_dimension(img.get('width'))
        height = _parse_dimension(img.get(RENDERED_HEIGHT_ATTR))
        if height is None:
            height = _parse_dimension(img.get('height'))
        return (width or 0, height or 0)
