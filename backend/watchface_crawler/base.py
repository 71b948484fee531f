"""
Base data structures for the watchface crawler.

This module defines the records that flow through the crawl pipeline
(candidate records and their metadata), the per-run configuration and
the result object returned by a run.
"""

from typing import List, Dict, Optional, Any
from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging

from .identity import synthetic_id
from .utils.normalizers import truncate, clean_text

logger = logging.getLogger(__name__)

# Field limits applied when a record is constructed
NAME_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 500
AUTHOR_MAX_LENGTH = 100

DEFAULT_CATEGORY = "General"
FREE_PRICE = "Free"


def utc_now() -> datetime:
    """Return current UTC time (timezone-aware)."""
    return datetime.now(timezone.utc)


# ANSI color codes for terminal output
class Colors:
    """ANSI color codes for colorized logging."""
    RESET = '\033[0m'
    BOLD = '\033[1m'

    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    BLUE = '\033[94m'
    CYAN = '\033[96m'
    GRAY = '\033[90m'

    @staticmethod
    def green(text):
        return f"{Colors.GREEN}{text}{Colors.RESET}"

    @staticmethod
    def yellow(text):
        return f"{Colors.YELLOW}{text}{Colors.RESET}"

    @staticmethod
    def red(text):
        return f"{Colors.RED}{text}{Colors.RESET}"

    @staticmethod
    def blue(text):
        return f"{Colors.BLUE}{text}{Colors.RESET}"

    @staticmethod
    def cyan(text):
        return f"{Colors.CYAN}{text}{Colors.RESET}"

    @staticmethod
    def gray(text):
        return f"{Colors.GRAY}{text}{Colors.RESET}"

    @staticmethod
    def bold(text):
        return f"{Colors.BOLD}{text}{Colors.RESET}"


# Coercion of JSON dump values; anything unusable becomes empty
def _string(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return ""


def _number(value: Any, kind):
    if value is None or isinstance(value, bool):
        return None
    try:
        return kind(value)
    except (TypeError, ValueError, OverflowError):
        logger.debug(f"Ignoring non-numeric value: {value!r}")
        return None


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


@dataclass
class SiteConfig:
    """Configuration for a catalog source."""
    name: str                           # Full display name
    key: str                            # Registry key (e.g., 'watchfacely')
    listing_url: str                    # Primary listing page
    base_url: str                       # Site root for canonical detail URLs
    ready_selector: str = "img"         # Content readiness marker
    selectors: Dict[str, str] = field(default_factory=dict)  # CSS selectors
    enabled: bool = True


@dataclass
class RunConfig:
    """Options for a single crawl run."""
    listing_url: str
    site_base_url: str
    max_retries: int = 3
    max_pages: int = 3
    max_enrich_details: int = 5
    inter_page_delay_ms: int = 2000
    inter_detail_delay_ms: int = 2000
    debug_capture_enabled: bool = False
    detail_max_retries: int = 1
    retry_backoff_ms: int = 3000
    ready_selector: str = "img"
    selectors: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_settings(cls, settings, site: SiteConfig) -> 'RunConfig':
        """Build a run configuration from application settings and a site."""
        return cls(
            listing_url=site.listing_url,
            site_base_url=site.base_url,
            max_retries=settings.max_retries,
            max_pages=settings.max_pages,
            max_enrich_details=settings.max_enrich_details,
            inter_page_delay_ms=settings.inter_page_delay_ms,
            inter_detail_delay_ms=settings.inter_detail_delay_ms,
            debug_capture_enabled=settings.debug_capture_enabled,
            detail_max_retries=settings.detail_max_retries,
            retry_backoff_ms=settings.retry_backoff_ms,
            ready_selector=site.ready_selector,
            selectors=dict(site.selectors),
        )


@dataclass
class RecordMetadata:
    """Provenance and identity of a scraped record."""
    source_url: str
    original_id: str = ""
    face_id: Optional[str] = None
    scraped_at: datetime = field(default_factory=utc_now)


@dataclass
class CandidateRecord:
    """An extracted, not-yet-persisted catalog item."""
    name: str
    image_url: str
    metadata: RecordMetadata
    description: str = ""
    category: str = DEFAULT_CATEGORY
    download_url: str = ""
    price: str = FREE_PRICE
    author: str = ""
    rating: Optional[float] = None
    downloads: int = 0
    tags: List[str] = field(default_factory=list)
    compatibility: List[str] = field(default_factory=list)

    # Fields copied by merge(), in storage column order
    MERGE_FIELDS = (
        'name', 'description', 'category', 'image_url', 'download_url',
        'price', 'author', 'rating', 'downloads', 'tags', 'compatibility',
    )

    @classmethod
    def build(
        cls,
        name: Optional[str],
        image_url: Optional[str],
        source_url: str,
        description: Optional[str] = "",
        author: Optional[str] = "",
        download_url: Optional[str] = "",
        original_id: str = "",
        face_id: Optional[str] = None,
        **extra: Any
    ) -> Optional['CandidateRecord']:
        """
        Construct a record, applying field limits.

        Returns None when name or image_url is empty, so invalid records
        never leave the point of construction.
        """
        name = truncate(clean_text(name), NAME_MAX_LENGTH)
        image_url = (image_url or '').strip()
        if not name or not image_url:
            return None

        return cls(
            name=name,
            image_url=image_url,
            description=truncate(clean_text(description), DESCRIPTION_MAX_LENGTH),
            author=truncate(clean_text(author), AUTHOR_MAX_LENGTH),
            download_url=download_url or source_url,
            metadata=RecordMetadata(
                source_url=source_url,
                original_id=original_id,
                face_id=face_id,
            ),
            **extra
        )

    @property
    def dedup_key(self) -> tuple:
        return (self.name, self.image_url)

    def merge_fields(self) -> Dict[str, Any]:
        """
        Fields worth writing onto another record.

        Empty strings, empty lists and None are left out so a merge never
        blanks out a previously good value.
        """
        fields = {}
        for name in self.MERGE_FIELDS:
            value = getattr(self, name)
            if value is None or value == "" or value == []:
                continue
            if name == 'downloads' and not value:
                continue
            fields[name] = value
        return fields

    def merge(self, other: 'CandidateRecord') -> 'CandidateRecord':
        """Overwrite this record in place with the non-empty fields of another."""
        for name, value in other.merge_fields().items():
            setattr(self, name, list(value) if isinstance(value, list) else value)

        if other.metadata.face_id:
            self.metadata.face_id = other.metadata.face_id
        if other.metadata.original_id:
            self.metadata.original_id = other.metadata.original_id
        if other.metadata.source_url:
            self.metadata.source_url = other.metadata.source_url
        self.metadata.scraped_at = other.metadata.scraped_at
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'description': self.description,
            'category': self.category,
            'imageUrl': self.image_url,
            'downloadUrl': self.download_url,
            'price': self.price,
            'author': self.author,
            'rating': self.rating,
            'downloads': self.downloads,
            'tags': list(self.tags),
            'compatibility': list(self.compatibility),
            'metadata': {
                'sourceUrl': self.metadata.source_url,
                'originalId': self.metadata.original_id,
                'faceId': self.metadata.face_id,
                'scrapedAt': self.metadata.scraped_at.isoformat(),
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Optional['CandidateRecord']:
        """
        Rebuild a record from a JSON dump entry.

        Missing or mistyped optional values fall back to the record
        defaults. Returns None when the entry lacks a name or image.
        """
        meta = data.get('metadata')
        if not isinstance(meta, dict):
            meta = {}
        source_url = _string(meta.get('sourceUrl')) or _string(data.get('downloadUrl'))

        record = cls.build(
            name=_string(data.get('name')),
            image_url=_string(data.get('imageUrl')),
            source_url=source_url,
            description=_string(data.get('description')),
            author=_string(data.get('author')),
            download_url=_string(data.get('downloadUrl')),
            original_id=_string(meta.get('originalId')),
            face_id=_string(meta.get('faceId')) or None,
            category=_string(data.get('category')) or DEFAULT_CATEGORY,
            price=_string(data.get('price')) or FREE_PRICE,
            rating=_number(data.get('rating'), float),
            downloads=_number(data.get('downloads'), int) or 0,
            tags=_string_list(data.get('tags')),
            compatibility=_string_list(data.get('compatibility')),
        )
        if record and not record.metadata.original_id:
            record.metadata.original_id = synthetic_id(record.name, record.image_url)
        if record and meta.get('scrapedAt'):
            try:
                scraped_at = datetime.fromisoformat(meta['scrapedAt'])
                if scraped_at.tzinfo is None:
                    scraped_at = scraped_at.replace(tzinfo=timezone.utc)
                record.metadata.scraped_at = scraped_at
            except (TypeError, ValueError):
                logger.debug(f"Ignoring unparseable scrapedAt: {meta['scrapedAt']!r}")
        return record


@dataclass
class ReconcileCounts:
    """Outcome of persisting a batch of candidates."""
    saved: int = 0
    updated: int = 0
    skipped: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {'saved': self.saved, 'updated': self.updated, 'skipped': self.skipped}


@dataclass
class ScrapeResult:
    """Result of a crawl run."""
    source: str
    started_at: datetime
    completed_at: Optional[datetime] = None
    total: int = 0
    pages_crawled: int = 0
    enriched: int = 0
    saved: int = 0
    updated: int = 0
    skipped: int = 0
    errors: int = 0
    error_details: List[Dict] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.errors == 0

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.completed_at and self.started_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def apply_counts(self, counts: ReconcileCounts):
        self.saved = counts.saved
        self.updated = counts.updated
        self.skipped = counts.skipped

    @property
    def counts(self) -> ReconcileCounts:
        return ReconcileCounts(saved=self.saved, updated=self.updated, skipped=self.skipped)

    def to_dict(self) -> Dict:
        return {
            'source': self.source,
            'started_at': self.started_at.isoformat(),
            'completed_at': self.completed_at.isoformat() if self.completed_at else None,
            'duration_seconds': self.duration_seconds,
            'total': self.total,
            'pages_crawled': self.pages_crawled,
            'enriched': self.enriched,
            'saved': self.saved,
            'updated': self.updated,
            'skipped': self.skipped,
            'errors': self.errors,
            'error_details': self.error_details[:10],  # Limit error details
            'success': self.success,
        }
