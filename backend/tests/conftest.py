"""
Pytest configuration and fixtures for crawler tests.
"""

import pytest

from service.database import WatchfaceStore
from watchface_crawler.base import RunConfig
from watchface_crawler.config import get_site_config

from helpers import RecordingSleep


@pytest.fixture
def store():
    """A connected in-memory store, fresh for each test."""
    store = WatchfaceStore("sqlite:///:memory:")
    store.connect()
    try:
        yield store
    finally:
        store.close()


@pytest.fixture
def run_config():
    site = get_site_config('watchfacely')
    return RunConfig(
        listing_url=site.listing_url,
        site_base_url=site.base_url,
        ready_selector=site.ready_selector,
        selectors=dict(site.selectors),
    )


@pytest.fixture
def sleeper():
    return RecordingSleep()
