"""
Tests for pagination link discovery.
"""

from watchface_crawler.document import RenderedDocument
from watchface_crawler.pagination import PaginationDiscoverer

from helpers import SITE, LISTING_URL


def page(links_html, url=LISTING_URL):
    return RenderedDocument(f"<html><body><nav>{links_html}</nav></body></html>", url=url)


class TestPaginationDiscoverer:
    """Test discovery of further listing pages."""

    def test_caps_at_five_links(self):
        """Eight paging links yield only the first five."""
        links = ''.join(f'<a href="/latest?page={n}">{n}</a>' for n in range(2, 10))
        urls = PaginationDiscoverer().discover(page(links))

        assert len(urls) == 5
        assert urls[0] == f"{SITE}/latest?page=2"
        assert urls[-1] == f"{SITE}/latest?page=6"

    def test_duplicates_collapse(self):
        links = ('<a href="/latest?page=2">2</a>'
                 '<a href="/latest?page=2#top">again</a>'
                 f'<a href="{SITE}/latest?page=2">abs</a>')
        assert PaginationDiscoverer().discover(page(links)) == [f"{SITE}/latest?page=2"]

    def test_excludes_own_url_and_non_navigation_links(self):
        links = ('<a href="/latest">Latest</a>'
                 '<a href="#page-top">Top</a>'
                 '<a href="javascript:loadPage(2)">More</a>'
                 '<a href="mailto:pages@watchfacely.com">Mail</a>')
        assert PaginationDiscoverer().discover(page(links)) == []

    def test_matches_next_and_more_text(self):
        links = ('<a href="/browse/2">Next</a>'
                 '<a href="/browse/3">Load more</a>'
                 '<a href="/about">About</a>')
        urls = PaginationDiscoverer().discover(page(links))
        assert urls == [f"{SITE}/browse/2", f"{SITE}/browse/3"]

    def test_pagination_container(self):
        html = '<div class="pagination"><a href="/latest-2">2</a><a href="/faq">FAQ</a></div>'
        urls = PaginationDiscoverer().discover(page(html))
        assert urls == [f"{SITE}/latest-2"]

    def test_custom_limit(self):
        links = ''.join(f'<a href="/latest?page={n}">{n}</a>' for n in range(2, 6))
        assert len(PaginationDiscoverer(max_links=2).discover(page(links))) == 2

    def test_no_links(self):
        assert PaginationDiscoverer().discover(page("<span>nothing</span>")) == []
