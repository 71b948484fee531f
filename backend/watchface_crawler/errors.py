"""Exceptions raised by the crawl pipeline."""

from typing import Dict, Optional, Any


class CrawlerError(Exception):
    """Base class for crawler failures."""


class FetchError(CrawlerError):
    """A page could not be loaded after all retry attempts."""

    def __init__(
        self,
        url: str,
        attempts: int,
        cause: Optional[BaseException] = None,
        diagnostics: Optional[Dict[str, Any]] = None
    ):
        self.url = url
        self.attempts = attempts
        self.cause = cause
        self.diagnostics = diagnostics or {}
        message = f"Failed to fetch {url} after {attempts} attempt(s)"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class ExtractionItemError(CrawlerError):
    """Extraction of a single item failed; siblings are unaffected."""

    def __init__(self, strategy: str, index: int, cause: BaseException):
        self.strategy = strategy
        self.index = index
        self.cause = cause
        super().__init__(f"{strategy} item {index}: {cause}")


class PersistenceError(CrawlerError):
    """A record could not be inserted or updated."""


class InitializationError(CrawlerError):
    """The browser session or storage connection could not be opened."""
