"""
Watchface catalog crawler.

This package renders catalog pages with a headless browser, extracts
watchface records with fallback heuristics and reconciles them into
persistent storage:
- Renderer / PageFetcher: browser session and retrying navigation
- ExtractionEngine: name-anchored and image-anchored extraction strategies
- PaginationDiscoverer, DetailEnricher: further listing and detail pages
- dedup / Reconciler: duplicate collapsing and upsert into storage
"""

from .base import CandidateRecord, RecordMetadata, RunConfig, ScrapeResult, ReconcileCounts, SiteConfig
from .config import SITES, get_site_config
from .errors import CrawlerError, FetchError, ExtractionItemError, PersistenceError, InitializationError
from .manager import CrawlRun, RunState, run

__all__ = [
    'CandidateRecord',
    'RecordMetadata',
    'RunConfig',
    'ScrapeResult',
    'ReconcileCounts',
    'SiteConfig',
    'SITES',
    'get_site_config',
    'CrawlerError',
    'FetchError',
    'ExtractionItemError',
    'PersistenceError',
    'InitializationError',
    'CrawlRun',
    'RunState',
    'run',
]
