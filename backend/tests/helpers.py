"""
Shared fakes and HTML builders for crawler tests.
"""

from watchface_crawler.base import CandidateRecord
from watchface_crawler.document import RenderedDocument


SITE = "https://www.watchfacely.com"
LISTING_URL = f"{SITE}/latest"


class FakeRenderer:
    """
    Stand-in for the Playwright renderer.

    Serves HTML from a url -> html mapping. A mapping value that is an
    exception (or a list of them, consumed per attempt) is raised instead.
    """

    def __init__(self, pages=None, fail_start=False, diagnostics=None):
        self.pages = dict(pages or {})
        self.fail_start = fail_start
        self._diagnostics = diagnostics
        self.rendered = []
        self.start_calls = 0
        self.close_calls = 0
        self.snapshots = []

    async def start(self):
        self.start_calls += 1
        if self.fail_start:
            raise RuntimeError("Chromium browser not found")

    async def render(self, url, wait_selector=None, wait_timeout_ms=15000):
        self.rendered.append(url)
        page = self.pages.get(url)
        if isinstance(page, list):
            page = page.pop(0) if len(page) > 1 else page[0]
        if page is None:
            raise RuntimeError(f"net::ERR_NAME_NOT_RESOLVED at {url}")
        if isinstance(page, BaseException):
            raise page
        return RenderedDocument(page, url=url)

    async def diagnostics(self):
        if isinstance(self._diagnostics, BaseException):
            raise self._diagnostics
        return self._diagnostics or {'title': 'Attention Required', 'content_length': 120,
                                     'blocked_markers': ['cloudflare']}

    async def snapshot(self, path_prefix):
        self.snapshots.append(path_prefix)
        return path_prefix.with_suffix('.html')

    async def close(self):
        self.close_calls += 1


class RecordingSleep:
    """Async sleep replacement that records requested delays."""

    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


def make_record(name="Neon Pulse", image_url=f"{SITE}/img/neon.png", original_id=None, **fields):
    record = CandidateRecord.build(
        name=name,
        image_url=image_url,
        source_url=LISTING_URL,
        original_id=original_id or f"watchface_{name.lower().replace(' ', '_')}",
        **fields
    )
    assert record is not None
    return record


def card(name, image, href, author=None, description=None):
    """Listing card markup."""
    parts = [f'<div class="card"><a href="{href}"><img src="{image}" width="200" height="200"></a>',
             f'<div class="text-block-2">{name}</div>']
    if author:
        parts.append(f'<div class="author_name">{author}</div>')
    if description:
        parts.append(f'<p>{description}</p>')
    parts.append('</div>')
    return ''.join(parts)


def listing_page(*cards, extra=""):
    return f"<html><head><title>Latest</title></head><body><section class='grid'>{''.join(cards)}</section>{extra}</body></html>"


def detail_page(name, author, image, description, apps=()):
    items = ''.join(f'<div class="app-item"><span>{app}</span></div>' for app in apps)
    return (
        "<html><body>"
        f'<h1 class="heading-3">{name}</h1>'
        f'<div class="author_name">{author}</div>'
        f'<img src="{image}">'
        f'<p>{description}</p>'
        f'<div class="apps-list">{items}</div>'
        "</body></html>"
    )


