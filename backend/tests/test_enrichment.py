"""
Tests for detail page enrichment.
"""

import asyncio

from watchface_crawler.crawlers.fetcher import PageFetcher
from watchface_crawler.document import RenderedDocument
from watchface_crawler.enrichment import DetailEnricher, leaf_texts

from helpers import SITE, FakeRenderer, make_record, detail_page

DETAIL_URL = f"{SITE}/face/4242"
ASSET_URL = "https://assets.watchfacely.com/watchfaces/ab12/4242/snapshot.png"

APPS = ["Facer", "WatchMaker", "Galaxy Watch", "Pixel Watch", "Fitbit", "Garmin",
        "Amazfit", "Huawei", "TicWatch", "Fossil", "Mobvoi", "Samsung Gear"]


def enricher_for(pages, sleeper):
    fetcher = PageFetcher(FakeRenderer(pages), sleep=sleeper)
    return DetailEnricher(fetcher, max_retries=1)


class TestParse:
    """Test parsing of a rendered detail page."""

    def test_parses_detail_fields(self, sleeper):
        html = detail_page("Neon Pulse Pro", "by Jane Doe", ASSET_URL, "Glowing hands", apps=APPS)
        record = enricher_for({}, sleeper).parse(RenderedDocument(html, url=DETAIL_URL))

        assert record.name == "Neon Pulse Pro"
        assert record.author == "Jane Doe"
        assert record.image_url == ASSET_URL
        assert record.description == "Glowing hands"
        assert record.download_url == DETAIL_URL
        assert record.compatibility == APPS
        assert record.tags == APPS[:10]
        assert record.metadata.face_id == "4242"
        assert record.metadata.original_id == "face_4242"

    def test_missing_sections_are_empty(self, sleeper):
        document = RenderedDocument("<html><body><div>Not found</div></body></html>", url=f"{SITE}/gone")
        record = enricher_for({}, sleeper).parse(document)

        assert record.name == ""
        assert record.image_url == ""
        assert record.compatibility == []
        assert record.metadata.original_id == ""

    def test_leaf_texts_dedup(self):
        document = RenderedDocument(
            '<div class="apps"><div><span>Facer</span></div><span>Facer</span><b> </b><i>Wear OS</i></div>',
            url=DETAIL_URL,
        )
        assert leaf_texts(document.select_one('.apps')) == ["Facer", "Wear OS"]


class TestEnrich:
    """Test enrichment against fetched detail pages."""

    def test_merge_keeps_listing_values_when_detail_is_empty(self, sleeper):
        candidate = make_record("Neon Pulse", description="From the listing", download_url=DETAIL_URL)
        html = detail_page("Neon Pulse Pro", "", ASSET_URL, "", apps=["Facer"])
        detail = asyncio.run(enricher_for({DETAIL_URL: html}, sleeper).enrich(candidate))

        candidate.merge(detail)

        assert candidate.name == "Neon Pulse Pro"
        assert candidate.image_url == ASSET_URL
        assert candidate.description == "From the listing"
        assert candidate.compatibility == ["Facer"]
        assert candidate.metadata.original_id == "face_4242"

    def test_fetch_failure_returns_none(self, sleeper):
        candidate = make_record(download_url=DETAIL_URL)
        enricher = enricher_for({DETAIL_URL: TimeoutError("timeout")}, sleeper)

        assert asyncio.run(enricher.enrich(candidate)) is None
        # A single attempt, no backoff
        assert enricher.fetcher.renderer.rendered == [DETAIL_URL]
        assert sleeper.calls == []
