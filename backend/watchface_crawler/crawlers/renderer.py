"""
Headless browser renderer.

Owns a single Playwright Chromium session for the whole run and renders one
URL at a time into a RenderedDocument. Includes the usual anti-detection
setup: realistic user agent, viewport and headers, and a hidden
navigator.webdriver flag.
"""

import asyncio
import os
from pathlib import Path
from typing import Optional, Dict
from playwright.async_api import async_playwright, Browser, BrowserContext, Page
import logging

from ..document import RenderedDocument, RENDERED_WIDTH_ATTR, RENDERED_HEIGHT_ATTR
from ..errors import InitializationError

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
    '(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36'
)
DEFAULT_VIEWPORT = {'width': 1366, 'height': 768}
DEFAULT_HEADERS = {'Accept-Language': 'en-US,en;q=0.9'}

# Strings that suggest we were served a block or challenge page
BLOCKED_MARKERS = ('blocked', '403', 'cloudflare')

HIDE_AUTOMATION_SCRIPT = """
    Object.defineProperty(navigator, 'webdriver', {
        get: () => undefined
    });
    Object.defineProperty(navigator, 'languages', {
        get: () => ['en-US', 'en']
    });
"""

# Record layout size of every image so extraction can filter thumbnails offline
RECORD_IMAGE_SIZES_SCRIPT = f"""
    () => {{
        document.querySelectorAll('img').forEach((img) => {{
            img.setAttribute('{RENDERED_WIDTH_ATTR}', String(img.width));
            img.setAttribute('{RENDERED_HEIGHT_ATTR}', String(img.height));
        }});
    }}
"""


class Renderer:
    """
    Playwright-backed page renderer.

    Usage:
        async with Renderer() as renderer:
            document = await renderer.render(url, wait_selector='img')
    """

    def __init__(
        self,
        headless: bool = True,
        navigation_timeout_ms: int = 30000,
        user_agent: str = DEFAULT_USER_AGENT,
        viewport: Optional[Dict[str, int]] = None,
        extra_headers: Optional[Dict[str, str]] = None,
        wait_until: str = 'networkidle',
    ):
        """
        Initialize the renderer.

        Args:
            headless: Run browser in headless mode
            navigation_timeout_ms: Cap on a single navigation
            user_agent: Browser user agent string
            viewport: Viewport size (defaults to 1366x768)
            extra_headers: Headers sent with every request
            wait_until: Playwright load state that ends navigation
        """
        self.headless = headless
        self.navigation_timeout_ms = navigation_timeout_ms
        self.user_agent = user_agent
        self.viewport = viewport or dict(DEFAULT_VIEWPORT)
        self.extra_headers = extra_headers or dict(DEFAULT_HEADERS)
        self.wait_until = wait_until
        self._playwright = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

    @property
    def started(self) -> bool:
        return self._page is not None

    async def start(self):
        """
        Launch the browser session.

        Raises:
            InitializationError: If Chromium cannot be launched
        """
        if self.started:
            return

        try:
            self._playwright = await async_playwright().start()

            chromium_path = self._playwright.chromium.executable_path
            if not chromium_path or not os.path.exists(chromium_path):
                raise RuntimeError("Chromium browser not found. Run: playwright install chromium")

            logger.debug("Launching Chromium browser...")
            self._browser = await self._playwright.chromium.launch(
                headless=self.headless,
                args=[
                    '--disable-blink-features=AutomationControlled',
                    '--no-sandbox',
                    '--disable-setuid-sandbox',
                    '--disable-dev-shm-usage',
                    '--disable-accelerated-2d-canvas',
                    '--no-first-run',
                    '--disable-gpu',
                ],
                handle_sigint=False,
                handle_sigterm=False,
                handle_sighup=False,
            )

            self._context = await self._browser.new_context(
                viewport=self.viewport,
                user_agent=self.user_agent,
                locale='en-US',
                extra_http_headers=self.extra_headers,
            )
            await self._context.add_init_script(HIDE_AUTOMATION_SCRIPT)
            self._page = await self._context.new_page()
            logger.info("Browser session initialized")

        except Exception as e:
            logger.error(f"Failed to initialize browser: {e}")
            await self.close()
            raise InitializationError(f"Browser session could not start: {e}") from e

    async def render(
        self,
        url: str,
        wait_selector: Optional[str] = None,
        wait_timeout_ms: int = 15000,
    ) -> RenderedDocument:
        """
        Navigate to a URL and return the rendered document.

        A missing readiness selector is not an error: whatever rendered
        within the wait is returned.

        Raises:
            Exception: On navigation failure or an HTTP error status
        """
        if not self.started:
            await self.start()

        page = self._page
        response = await page.goto(
            url,
            wait_until=self.wait_until,
            timeout=self.navigation_timeout_ms,
        )
        if response and response.status >= 400:
            raise RuntimeError(f"HTTP {response.status} for {url}")

        if wait_selector:
            try:
                await page.wait_for_selector(wait_selector, timeout=wait_timeout_ms)
            except Exception as e:
                logger.warning(f"Content marker {wait_selector!r} not found on {url}, continuing: {e}")

        # Light scroll to trigger lazy loading
        try:
            await page.evaluate("window.scrollTo(0, document.body.scrollHeight / 2)")
            await asyncio.sleep(0.2)
        except Exception:
            logger.debug("Scroll failed, continuing without it")

        await page.evaluate(RECORD_IMAGE_SIZES_SCRIPT)
        html = await page.content()
        title = await page.title()
        return RenderedDocument(
            html,
            url=page.url,
            title=title,
            status=response.status if response else None,
        )

    async def diagnostics(self) -> Dict[str, object]:
        """Describe whatever the page currently shows, for failure logs."""
        if not self.started:
            return {}
        content = await self._page.content()
        content_lower = content.lower()
        return {
            'url': self._page.url,
            'title': await self._page.title(),
            'content_length': len(content),
            'blocked_markers': [m for m in BLOCKED_MARKERS if m in content_lower],
        }

    async def snapshot(self, path_prefix: Path) -> Optional[Path]:
        """Write the current page as HTML and a PNG screenshot."""
        if not self.started:
            return None
        path_prefix.parent.mkdir(parents=True, exist_ok=True)
        html_path = path_prefix.with_suffix('.html')
        html_path.write_text(await self._page.content(), encoding='utf-8')
        await self._page.screenshot(path=str(path_prefix.with_suffix('.png')), full_page=True)
        return html_path

    async def close(self):
        """Close the browser session, bounded so shutdown never hangs."""
        cleanup_timeout = 2.0

        for name, closer in (
            ('page', self._page.close if self._page else None),
            ('context', self._context.close if self._context else None),
            ('browser', self._browser.close if self._browser else None),
            ('playwright', self._playwright.stop if self._playwright else None),
        ):
            if closer is None:
                continue
            try:
                await asyncio.wait_for(closer(), timeout=cleanup_timeout)
            except asyncio.TimeoutError:
                logger.warning(f"Closing {name} timed out, forcing cleanup")
            except Exception as e:
                logger.warning(f"Error closing {name}: {e}")

        was_started = self._browser is not None
        self._page = None
        self._context = None
        self._browser = None
        self._playwright = None
        if was_started:
            logger.info("Browser closed")

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
