#!/usr/bin/env python3
"""
Command-line entry point for the watchface crawler.

Usage:
    cd backend
    python -m watchface_crawler.cli [options]

Examples:
    python -m watchface_crawler.cli                      # Crawl and save to the database
    python -m watchface_crawler.cli --dry-run            # Crawl and print records, no database
    python -m watchface_crawler.cli --dry-run --output scraped.json
    python -m watchface_crawler.cli --import-json scraped.json
    python -m watchface_crawler.cli --list               # List configured sites
"""

import asyncio
import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from service.config import settings
from service.database import WatchfaceStore
from service.logging_config import setup_logging

from .base import CandidateRecord, RunConfig, ReconcileCounts
from .config import get_site_config, get_site_summary
from .crawlers.renderer import Renderer
from .dedup import dedup
from .manager import CrawlRun
from .reconcile import Reconciler

logger = logging.getLogger('watchface_crawler.cli')


def build_run(args, store: Optional[WatchfaceStore]) -> CrawlRun:
    site = get_site_config(args.site)
    config = RunConfig.from_settings(settings, site)
    if args.max_pages is not None:
        config.max_pages = args.max_pages
    if args.max_details is not None:
        config.max_enrich_details = args.max_details
    if args.debug:
        config.debug_capture_enabled = True

    renderer = Renderer(
        headless=settings.headless,
        navigation_timeout_ms=settings.navigation_timeout_ms,
        user_agent=settings.user_agent,
    )
    return CrawlRun(
        config,
        store=store,
        renderer=renderer,
        debug_dir=settings.debug_dir,
        wait_timeout_ms=settings.content_wait_timeout_ms,
    )


def load_records(path: Path) -> List[Optional[CandidateRecord]]:
    """Read a JSON dump; entries that cannot form a record come back as None."""
    data = json.loads(path.read_text(encoding='utf-8'))
    if not isinstance(data, list):
        raise ValueError(f"{path} does not contain a JSON array")

    records: List[Optional[CandidateRecord]] = []
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            logger.warning(f"Entry {index} in {path} is not an object, skipping")
            records.append(None)
            continue
        try:
            records.append(CandidateRecord.from_dict(item))
        except Exception as e:
            logger.warning(f"Entry {index} in {path} could not be read, skipping: {e}")
            records.append(None)
    return records


def import_json(path: Path, store: WatchfaceStore) -> ReconcileCounts:
    """Reconcile a JSON dump of records into the store."""
    loaded = load_records(path)
    invalid = sum(1 for record in loaded if record is None)
    records = dedup([record for record in loaded if record is not None])
    logger.info(f"Loaded {len(loaded)} entries from {path}, {len(records)} unique")

    store.connect()
    try:
        counts = Reconciler().reconcile(records, store)
    finally:
        store.close()
    counts.skipped += invalid
    return counts


async def crawl(args) -> int:
    if args.dry_run:
        run = build_run(args, store=None)
        await run.run()
        payload = json.dumps([r.to_dict() for r in run.records], indent=2, ensure_ascii=False)
        if args.output:
            Path(args.output).write_text(payload, encoding='utf-8')
            logger.info(f"Wrote {len(run.records)} watchfaces to {args.output}")
        else:
            print(payload)
        return 0

    run = build_run(args, store=WatchfaceStore(settings.database_url))
    result = await run.run()
    print(json.dumps(result.to_dict(), indent=2))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description='Crawl watchfaces into the database')
    parser.add_argument('--site', default=settings.site_key, help='Site key to crawl')
    parser.add_argument('--list', action='store_true', help='List configured sites')
    parser.add_argument('--dry-run', action='store_true', help='Crawl without touching the database')
    parser.add_argument('--output', help='With --dry-run, write records to this JSON file')
    parser.add_argument('--import-json', metavar='FILE', help='Save a JSON dump of records to the database')
    parser.add_argument('--max-pages', type=int, help='Listing pages to crawl, including the first')
    parser.add_argument('--max-details', type=int, help='Detail pages to visit for enrichment')
    parser.add_argument('--debug', action='store_true', help='Save page snapshots on failure')
    args = parser.parse_args(argv)

    setup_logging(settings)

    if args.list:
        for site in get_site_summary():
            status = 'enabled' if site['enabled'] else 'disabled'
            print(f"{site['key']:<15} {site['name']:<20} {status:<9} {site['url']}")
        return 0

    try:
        if args.import_json:
            counts = import_json(Path(args.import_json), WatchfaceStore(settings.database_url))
            print(json.dumps(counts.to_dict(), indent=2))
            return 0
        return asyncio.run(crawl(args))
    except Exception as e:
        logger.error(f"Scraper failed: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
