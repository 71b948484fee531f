"""
Discovery of additional listing pages.
"""

from typing import List, Optional
import logging

from .document import RenderedDocument
from .utils.normalizers import strip_fragment

logger = logging.getLogger(__name__)

MAX_PAGINATION_LINKS = 5

# Scanned in order; results keep first-seen order across selectors
PAGINATION_SELECTORS = [
    'a[href*="page"]',
    '.pagination a',
    'a.next',
    '.next a',
    '.page-numbers a',
    'a[href]',
]
HREF_MARKERS = ('page', 'latest')
TEXT_MARKERS = ('next', 'more')


class PaginationDiscoverer:
    """Finds links to further listing pages on a rendered page."""

    def __init__(self, max_links: int = MAX_PAGINATION_LINKS, selectors: Optional[List[str]] = None):
        self.max_links = max_links
        self.selectors = selectors or PAGINATION_SELECTORS

    @staticmethod
    def _looks_like_paging(href: str, text: str) -> bool:
        href_lower = href.lower()
        text_lower = text.lower()
        return (any(marker in href_lower for marker in HREF_MARKERS)
                or any(marker in text_lower for marker in TEXT_MARKERS))

    def discover(self, document: RenderedDocument) -> List[str]:
        """Return up to max_links unique absolute listing URLs."""
        own_url = strip_fragment(document.url)
        links = []
        seen = set()

        for selector in self.selectors:
            for anchor in document.select(selector):
                raw_href = (anchor.get('href') or '').strip()
                if not raw_href or raw_href.startswith(('#', 'javascript:', 'mailto:')):
                    continue
                if not self._looks_like_paging(raw_href, document.text(anchor)):
                    continue

                url = strip_fragment(document.absolute(raw_href))
                if url == own_url or url in seen:
                    continue
                seen.add(url)
                links.append(url)

        logger.info(f"Found {len(links)} pagination links on {document.url}")
        return links[:self.max_links]
