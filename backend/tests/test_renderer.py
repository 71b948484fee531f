"""
Tests for the browser renderer, using a stand-in page object.
"""

import asyncio

import pytest

from watchface_crawler.crawlers.renderer import Renderer

from helpers import LISTING_URL


class FakeResponse:
    def __init__(self, status):
        self.status = status


class FakePage:
    """Minimal subset of the Playwright Page API used by the renderer."""

    def __init__(self, html, status=200, selector_found=True):
        self.html = html
        self.status = status
        self.selector_found = selector_found
        self.url = "about:blank"
        self.evaluated = []
        self.closed = False

    async def goto(self, url, wait_until=None, timeout=None):
        self.url = url
        return FakeResponse(self.status)

    async def wait_for_selector(self, selector, timeout=None):
        if not self.selector_found:
            raise TimeoutError(f"Timeout {timeout}ms exceeded waiting for {selector}")

    async def evaluate(self, script):
        self.evaluated.append(script)

    async def content(self):
        return self.html

    async def title(self):
        return "Latest Watch Faces"

    async def close(self):
        self.closed = True


def renderer_with(page):
    renderer = Renderer()
    renderer._page = page
    return renderer


class TestRenderer:
    """Test rendering, diagnostics and shutdown."""

    def test_render_returns_document(self):
        page = FakePage("<html><body><img src='/a.png' data-rendered-width='120' data-rendered-height='90'></body></html>")
        document = asyncio.run(renderer_with(page).render(LISTING_URL, wait_selector='img'))

        assert document.url == LISTING_URL
        assert document.title == "Latest Watch Faces"
        assert document.status == 200
        assert document.image_size(document.select_one('img')) == (120, 90)
        # Scroll, then image size recording
        assert len(page.evaluated) == 2

    def test_missing_ready_marker_is_not_fatal(self):
        page = FakePage("<html><body>late</body></html>", selector_found=False)
        document = asyncio.run(renderer_with(page).render(LISTING_URL, wait_selector='.text-block-2'))
        assert "late" in document.html

    def test_http_error_status_raises(self):
        page = FakePage("<html><body>Forbidden</body></html>", status=403)
        with pytest.raises(RuntimeError, match="HTTP 403"):
            asyncio.run(renderer_with(page).render(LISTING_URL))

    def test_diagnostics_reports_blocking(self):
        page = FakePage("<html><body>Checking your browser - Cloudflare</body></html>")
        page.url = LISTING_URL
        diagnostics = asyncio.run(renderer_with(page).diagnostics())

        assert diagnostics['title'] == "Latest Watch Faces"
        assert diagnostics['blocked_markers'] == ['cloudflare']
        assert diagnostics['content_length'] == len(page.html)

    def test_not_started(self):
        renderer = Renderer()
        assert asyncio.run(renderer.diagnostics()) == {}
        assert asyncio.run(renderer.snapshot(None)) is None

    def test_close_is_safe_to_repeat(self):
        page = FakePage("<html></html>")
        renderer = renderer_with(page)

        asyncio.run(renderer.close())
        asyncio.run(renderer.close())

        assert page.closed is True
        assert renderer.started is False
