"""
Retrying page fetcher.

Wraps a Renderer with linear backoff between attempts and best-effort
diagnostics once every attempt has failed.
"""

import asyncio
from datetime import datetime
from pathlib import Path
from typing import Optional, Dict, Any
import logging

from ..document import RenderedDocument
from ..errors import FetchError

logger = logging.getLogger(__name__)


class PageFetcher:
    """
    Fetches rendered pages through a Renderer, retrying on failure.

    Attempt N is followed by a sleep of N * retry_backoff_ms before the next
    attempt, so repeated failures back off progressively.
    """

    def __init__(
        self,
        renderer,
        ready_selector: Optional[str] = None,
        wait_timeout_ms: int = 15000,
        retry_backoff_ms: int = 3000,
        debug_dir: Optional[Path] = None,
        sleep=asyncio.sleep,
    ):
        """
        Initialize the fetcher.

        Args:
            renderer: Object with async render(), diagnostics() and snapshot()
            ready_selector: CSS selector signalling content is ready
            wait_timeout_ms: How long to wait for ready_selector
            retry_backoff_ms: Base delay between attempts
            debug_dir: Where to write page snapshots on failure (None disables)
            sleep: Coroutine used for backoff delays
        """
        self.renderer = renderer
        self.ready_selector = ready_selector
        self.wait_timeout_ms = wait_timeout_ms
        self.retry_backoff_ms = retry_backoff_ms
        self.debug_dir = debug_dir
        self._sleep = sleep

    def backoff_seconds(self, attempt: int) -> float:
        return attempt * self.retry_backoff_ms / 1000

    async def fetch(self, url: str, max_retries: int = 3) -> RenderedDocument:
        """
        Render a URL, retrying up to max_retries times.

        Raises:
            FetchError: When every attempt failed
        """
        max_retries = max(1, max_retries)
        last_error: Optional[BaseException] = None

        for attempt in range(1, max_retries + 1):
            try:
                logger.info(f"Scraping page: {url} (attempt {attempt})")
                return await self.renderer.render(
                    url,
                    wait_selector=self.ready_selector,
                    wait_timeout_ms=self.wait_timeout_ms,
                )
            except Exception as e:
                last_error = e
                logger.warning(f"Attempt {attempt}/{max_retries} failed for {url}: {e}")
                if attempt < max_retries:
                    await self._sleep(self.backoff_seconds(attempt))

        diagnostics = await self._collect_diagnostics(url)
        raise FetchError(url, max_retries, last_error, diagnostics) from last_error

    async def _collect_diagnostics(self, url: str) -> Dict[str, Any]:
        """Log what the page looks like after the final failure. Never raises."""
        diagnostics: Dict[str, Any] = {}
        try:
            diagnostics = await self.renderer.diagnostics() or {}
            logger.error(f"Page title: {diagnostics.get('title')!r}")
            logger.error(f"Page content length: {diagnostics.get('content_length')}")
            if diagnostics.get('blocked_markers'):
                logger.error(
                    f"Detected potential blocking or anti-bot protection "
                    f"({', '.join(diagnostics['blocked_markers'])})"
                )
        except Exception as e:
            logger.error(f"Could not get debug info for {url}: {e}")

        if self.debug_dir is not None:
            path = await self.capture(url, label='fetch-failure')
            if path:
                diagnostics['snapshot'] = str(path)
        return diagnostics

    async def capture(self, url: str, label: str) -> Optional[Path]:
        """Write a snapshot of the current page into debug_dir. Never raises."""
        if self.debug_dir is None:
            return None
        stamp = datetime.now().strftime('%Y%m%d-%H%M%S-%f')
        try:
            path = await self.renderer.snapshot(self.debug_dir / f"{label}-{stamp}")
            if path:
                logger.info(f"Saved debug snapshot for {url} to {path}")
            return path
        except Exception as e:
            logger.error(f"Could not save debug snapshot for {url}: {e}")
            return None
