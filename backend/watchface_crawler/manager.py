"""
Crawl run orchestration.

A run walks a fixed sequence of states: open the browser session and the
store, crawl the primary listing page, discover and crawl further listing
pages, enrich a few records from their detail pages, dedup, and reconcile
into storage. Only initialization and the primary page are fatal. Every
exit goes through cleanup exactly once.
"""

import asyncio
from enum import Enum
from pathlib import Path
from typing import List, Optional
import logging

from .base import CandidateRecord, RunConfig, ScrapeResult, Colors, utc_now
from .crawlers.fetcher import PageFetcher
from .crawlers.renderer import Renderer
from .dedup import dedup
from .enrichment import DetailEnricher
from .errors import InitializationError
from .extraction import ExtractionEngine
from .pagination import PaginationDiscoverer
from .reconcile import Reconciler

logger = logging.getLogger(__name__)

FACE_PATH_MARKER = "/face/"


class RunState(Enum):
    """Stages of a crawl run."""
    IDLE = "idle"
    INITIALIZING = "initializing"
    CRAWLING_PRIMARY = "crawling_primary"
    DISCOVERING_PAGES = "discovering_pages"
    CRAWLING_SECONDARY = "crawling_secondary"
    ENRICHING = "enriching"
    DEDUPLICATING = "deduplicating"
    RECONCILING = "reconciling"
    CLEANUP = "cleanup"
    SUCCESS = "success"
    FAILED = "failed"


class CrawlRun:
    """
    One end-to-end crawl.

    Usage:
        run = CrawlRun(config, store=WatchfaceStore(settings.database_url),
                       renderer=Renderer())
        result = await run.run()

    With store=None the run stops after dedup and nothing is persisted
    (used for dry runs); the collected records stay in run.records.
    """

    def __init__(
        self,
        config: RunConfig,
        store=None,
        renderer=None,
        debug_dir: Optional[Path] = None,
        wait_timeout_ms: int = 15000,
        sleep=asyncio.sleep,
    ):
        self.config = config
        self.store = store
        self.renderer = renderer or Renderer()
        self._sleep = sleep
        self.fetcher = PageFetcher(
            self.renderer,
            ready_selector=config.ready_selector,
            wait_timeout_ms=wait_timeout_ms,
            retry_backoff_ms=config.retry_backoff_ms,
            debug_dir=debug_dir if config.debug_capture_enabled else None,
            sleep=sleep,
        )
        self.engine = ExtractionEngine(selectors=config.selectors)
        self.discoverer = PaginationDiscoverer()
        self.enricher = DetailEnricher(
            self.fetcher,
            selectors=config.selectors,
            max_retries=config.detail_max_retries,
        )
        self.reconciler = Reconciler()

        self.state = RunState.IDLE
        self.history: List[RunState] = [RunState.IDLE]
        self.records: List[CandidateRecord] = []
        self.result = ScrapeResult(source=config.listing_url, started_at=utc_now())
        self._cleaned_up = False

    def _enter(self, state: RunState):
        self.state = state
        self.history.append(state)
        logger.debug(f"Run state -> {state.value}")

    def _record_error(self, stage: str, url: str, error: Exception):
        self.result.errors += 1
        self.result.error_details.append({'stage': stage, 'url': url, 'error': str(error)})

    async def _delay(self, delay_ms: int):
        if delay_ms > 0:
            await self._sleep(delay_ms / 1000)

    async def _initialize(self):
        self._enter(RunState.INITIALIZING)
        logger.info("Initializing scraper...")
        try:
            if self.store is not None:
                self.store.connect()
            await self.renderer.start()
        except InitializationError:
            raise
        except Exception as e:
            raise InitializationError(f"Initialization failed: {e}") from e

    async def _crawl_primary(self):
        self._enter(RunState.CRAWLING_PRIMARY)
        document = await self.fetcher.fetch(self.config.listing_url, self.config.max_retries)
        records = self.engine.extract(document, self.config.site_base_url)
        self.result.pages_crawled += 1

        if not records:
            logger.warning(
                "No watchfaces found - the website structure might have changed or be protected "
                f"(title: {document.title!r}, {document.content_length} chars)"
            )
            if self.config.debug_capture_enabled:
                await self.fetcher.capture(self.config.listing_url, label='empty-listing')

        self.records.extend(records)
        return document

    async def _crawl_secondary(self, urls: List[str]):
        self._enter(RunState.CRAWLING_SECONDARY)
        for url in urls[:max(0, self.config.max_pages - 1)]:
            await self._delay(self.config.inter_page_delay_ms)
            try:
                document = await self.fetcher.fetch(url, self.config.max_retries)
                records = self.engine.extract(document, self.config.site_base_url)
                self.records.extend(records)
                self.result.pages_crawled += 1
            except Exception as e:
                self._record_error('page', url, e)
                logger.error(f"Failed to scrape page {url}: {e}")

    async def _enrich(self):
        self._enter(RunState.ENRICHING)
        # One visit per detail URL, in first-seen order
        targets = []
        seen_urls = set()
        for record in self.records:
            url = record.download_url or ''
            if FACE_PATH_MARKER not in url or url in seen_urls:
                continue
            seen_urls.add(url)
            targets.append(record)
        targets = targets[:max(0, self.config.max_enrich_details)]
        logger.info(f"Found {len(targets)} individual face URLs for detailed scraping")

        for index, record in enumerate(targets):
            if index > 0:
                await self._delay(self.config.inter_detail_delay_ms)
            detail = await self.enricher.enrich(record)
            if detail is None:
                self._record_error('detail', record.download_url, RuntimeError("enrichment failed"))
                continue
            record.merge(detail)
            self.result.enriched += 1

    async def _cleanup(self):
        if self._cleaned_up:
            return
        self._cleaned_up = True
        self._enter(RunState.CLEANUP)
        try:
            await self.renderer.close()
        except Exception as e:
            logger.error(f"Error closing browser: {e}")
        if self.store is not None:
            try:
                self.store.close()
            except Exception as e:
                logger.error(f"Error closing database: {e}")

    async def run(self) -> ScrapeResult:
        """
        Execute the run.

        Raises:
            InitializationError: If the browser or store could not be opened
            FetchError: If the primary listing page could not be loaded
        """
        logger.info(f"Starting watchface scraping for {self.config.listing_url}")
        succeeded = False
        try:
            await self._initialize()

            primary = await self._crawl_primary()

            self._enter(RunState.DISCOVERING_PAGES)
            page_urls = self.discoverer.discover(primary)

            await self._crawl_secondary(page_urls)
            await self._enrich()

            self._enter(RunState.DEDUPLICATING)
            self.records = dedup(self.records)
            self.result.total = len(self.records)
            logger.info(f"Total unique watchfaces found: {len(self.records)}")

            if self.store is not None:
                self._enter(RunState.RECONCILING)
                counts = self.reconciler.reconcile(self.records, self.store)
                self.result.apply_counts(counts)
            succeeded = True

        except Exception as e:
            self._record_error('run', self.config.listing_url, e)
            logger.error(f"{Colors.red('Scraping failed')}: {e}")
            raise

        finally:
            await self._cleanup()
            self._enter(RunState.SUCCESS if succeeded else RunState.FAILED)
            self.result.completed_at = utc_now()

        duration = self.result.duration_seconds or 0
        logger.info(
            f"✅ Scraping completed in {duration:.1f}s: {Colors.green(f'{self.result.saved} new')}, "
            f"{Colors.blue(f'{self.result.updated} updated')}, {self.result.skipped} skipped"
        )
        return self.result


async def run(config: RunConfig, store=None, renderer=None, **kwargs) -> ScrapeResult:
    """
    Crawl and reconcile once.

    Args:
        config: Run configuration
        store: Storage collaborator (WatchfaceStore); None skips persistence
        renderer: Renderer to use (defaults to a new Playwright session)

    Returns:
        ScrapeResult with saved/updated/skipped counts
    """
    return await CrawlRun(config, store=store, renderer=renderer, **kwargs).run()
