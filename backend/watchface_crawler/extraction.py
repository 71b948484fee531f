"""
Heuristic extraction of catalog items from rendered listing pages.

The listing markup has no stable structure, so extraction is a list of
strategies tried in order. The first one that yields records wins and the
rest are not run:

- NameAnchorStrategy: start from the name marker elements and look around
  each one for its image, link, author and description.
- ImageAnchorStrategy: start from every sizeable image and look around it
  for a name, synthesizing one when nothing is found.
"""

from abc import ABC, abstractmethod
from typing import List, Dict, Optional
import logging

from bs4 import Tag

from .base import CandidateRecord
from .config import WATCHFACELY_SELECTORS
from .document import RenderedDocument
from .errors import ExtractionItemError
from .identity import resolve_identity
from .utils.normalizers import normalize_author

logger = logging.getLogger(__name__)

# Images narrower or shorter than this are treated as decoration
MIN_IMAGE_SIZE = 50
DECORATION_MARKERS = ('logo', 'icon')
MAX_HEADING_LENGTH = 100
PLACEHOLDER_NAME = "Watch Face {position}"


class ExtractionStrategy(ABC):
    """One way of turning a rendered listing page into candidate records."""

    name = "strategy"

    def __init__(self, selectors: Optional[Dict[str, str]] = None):
        self.selectors = {**WATCHFACELY_SELECTORS, **(selectors or {})}
        self._container_tags = [t.strip() for t in self.selectors['container'].split(',')]

    @abstractmethod
    def try_extract(self, document: RenderedDocument, site_base_url: str) -> List[CandidateRecord]:
        """Return every record this strategy can find (possibly none)."""

    def _container(self, element: Tag) -> Optional[Tag]:
        return element.find_parent(self._container_tags)

    def _detail_link(self, container: Optional[Tag], document: RenderedDocument) -> str:
        if container is None:
            return ""
        link = (container.select_one(self.selectors['detail_link'])
                or container.select_one(self.selectors['any_link']))
        if link is None:
            return ""
        return document.absolute(link.get('href'))

    @staticmethod
    def _image_url(img: Optional[Tag], document: RenderedDocument) -> str:
        if img is None:
            return ""
        return document.absolute(document.image_source(img))

    def _emit(
        self,
        document: RenderedDocument,
        site_base_url: str,
        name: str,
        image_url: str,
        detail_url: str,
        description: str = "",
        author: str = "",
    ) -> Optional[CandidateRecord]:
        """Build the record and attach its identity."""
        record = CandidateRecord.build(
            name=name,
            image_url=image_url,
            source_url=document.url,
            description=description,
            author=author,
            download_url=detail_url,
        )
        if record is None:
            return None

        face_id, original_id, canonical_url = resolve_identity(
            detail_url, record.image_url, site_base_url, record.name
        )
        record.metadata.face_id = face_id
        record.metadata.original_id = original_id
        if canonical_url:
            record.download_url = canonical_url
        return record

    def _collect(self, items, extract_item) -> List[CandidateRecord]:
        """Run extract_item over items, skipping the ones that fail."""
        results = []
        for index, item in enumerate(items):
            try:
                record = extract_item(index, item)
            except Exception as e:
                error = ExtractionItemError(self.name, index, e)
                logger.warning(f"Skipping malformed item: {error}")
                continue
            if record is not None:
                results.append(record)
        return results


class NameAnchorStrategy(ExtractionStrategy):
    """Anchor on name marker elements."""

    name = "name-anchor"

    def try_extract(self, document: RenderedDocument, site_base_url: str) -> List[CandidateRecord]:
        name_elements = document.select(self.selectors['name'])
        logger.debug(f"Found {len(name_elements)} name elements on {document.url}")
        if not name_elements:
            return []

        # Page order images for positional pairing
        page_images = document.select(self.selectors['image'])

        def extract_item(index: int, name_el: Tag) -> Optional[CandidateRecord]:
            name = document.text(name_el)
            if not name:
                return None

            image_url = detail_url = author = description = ""
            author_el = None
            container = self._container(name_el)
            if container is not None:
                image_url = self._image_url(container.select_one(self.selectors['image']), document)
                detail_url = self._detail_link(container, document)

                author_el = container.select_one(self.selectors['author'])
                if author_el is not None and author_el is not name_el:
                    author = normalize_author(document.text(author_el))

                for desc_el in container.select(self.selectors['description']):
                    if desc_el is name_el or desc_el is author_el:
                        continue
                    description = document.text(desc_el)
                    break

            if not image_url and index < len(page_images):
                image_url = self._image_url(page_images[index], document)

            return self._emit(
                document, site_base_url,
                name=name,
                image_url=image_url,
                detail_url=detail_url,
                description=description,
                author=author,
            )

        return self._collect(name_elements, extract_item)


class ImageAnchorStrategy(ExtractionStrategy):
    """Anchor on content-sized images."""

    name = "image-anchor"

    def _qualifies(self, img: Tag, document: RenderedDocument) -> bool:
        width, height = document.image_size(img)
        if width < MIN_IMAGE_SIZE or height < MIN_IMAGE_SIZE:
            return False
        src = document.image_source(img)
        if not src:
            return False
        src_lower = src.lower()
        return not any(marker in src_lower for marker in DECORATION_MARKERS)

    def _find_name(self, container: Optional[Tag], document: RenderedDocument) -> str:
        if container is None:
            return ""
        name = document.text(container.select_one(self.selectors['name']))
        if name:
            return name
        for el in container.select(self.selectors['heading']):
            text = document.text(el)
            if 0 < len(text) < MAX_HEADING_LENGTH:
                return text
        return ""

    def try_extract(self, document: RenderedDocument, site_base_url: str) -> List[CandidateRecord]:
        images = [img for img in document.select(self.selectors['image'])
                  if self._qualifies(img, document)]
        logger.debug(f"Found {len(images)} qualifying images on {document.url}")

        def extract_item(index: int, img: Tag) -> Optional[CandidateRecord]:
            container = self._container(img)
            name = self._find_name(container, document) or PLACEHOLDER_NAME.format(position=index + 1)
            return self._emit(
                document, site_base_url,
                name=name,
                image_url=self._image_url(img, document),
                detail_url=self._detail_link(container, document),
            )

        return self._collect(images, extract_item)


class ExtractionEngine:
    """
    Runs extraction strategies in order until one produces records.

    Exactly one strategy contributes the records for a page; later
    strategies only run when every earlier one came back empty.
    """

    def __init__(
        self,
        strategies: Optional[List[ExtractionStrategy]] = None,
        selectors: Optional[Dict[str, str]] = None
    ):
        self.strategies = strategies or [
            NameAnchorStrategy(selectors),
            ImageAnchorStrategy(selectors),
        ]
        self.last_strategy: Optional[str] = None

    def extract(self, document: RenderedDocument, site_base_url: str) -> List[CandidateRecord]:
        self.last_strategy = None
        for strategy in self.strategies:
            records = strategy.try_extract(document, site_base_url)
            if records:
                self.last_strategy = strategy.name
                logger.info(f"Extracted {len(records)} watchfaces from {document.url} ({strategy.name})")
                return records
            logger.info(f"No results from {strategy.name} strategy on {document.url}")
        return []
