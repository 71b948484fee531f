"""
Detail page enrichment.

The listing page only carries a thumbnail and a name. The detail page of a
watchface has the canonical name, author, full-size image, description and
the list of compatible apps.
"""

from typing import Dict, List, Optional
import logging

from bs4 import Tag

from .base import (
    CandidateRecord,
    RecordMetadata,
    NAME_MAX_LENGTH,
    DESCRIPTION_MAX_LENGTH,
    AUTHOR_MAX_LENGTH,
)
from .config import WATCHFACELY_SELECTORS
from .document import RenderedDocument
from .identity import FACE_ID_PREFIX, extract_face_id
from .utils.normalizers import normalize_author, truncate

logger = logging.getLogger(__name__)

MAX_TAGS = 10


def leaf_texts(section: Tag) -> List[str]:
    """Text of every element under section that has no child elements."""
    texts = []
    seen = set()
    for el in section.find_all(True):
        if el.find(True) is not None:
            continue
        text = RenderedDocument.text(el)
        if text and text not in seen:
            seen.add(text)
            texts.append(text)
    return texts


class DetailEnricher:
    """Visits detail pages to refine candidate records."""

    def __init__(
        self,
        fetcher,
        selectors: Optional[Dict[str, str]] = None,
        max_retries: int = 1,
    ):
        self.fetcher = fetcher
        self.selectors = {**WATCHFACELY_SELECTORS, **(selectors or {})}
        self.max_retries = max_retries

    def parse(self, document: RenderedDocument) -> CandidateRecord:
        """
        Pull detail fields out of a rendered detail page.

        The result may have empty fields; merging ignores those.
        """
        sel = self.selectors

        image_url = ""
        image_el = document.select_one(sel['detail_image'])
        if image_el is not None:
            image_url = document.absolute(document.image_source(image_el))

        compatibility: List[str] = []
        section = document.select_one(sel['compatibility'])
        if section is not None:
            compatibility = leaf_texts(section)

        face_id = extract_face_id(document.url)
        return CandidateRecord(
            name=truncate(document.text(document.select_one(sel['detail_name'])), NAME_MAX_LENGTH),
            image_url=image_url,
            description=truncate(
                document.text(document.select_one(sel['detail_description'])), DESCRIPTION_MAX_LENGTH
            ),
            author=truncate(
                normalize_author(document.text(document.select_one(sel['detail_author']))), AUTHOR_MAX_LENGTH
            ),
            download_url=document.url,
            tags=compatibility[:MAX_TAGS],
            compatibility=compatibility,
            metadata=RecordMetadata(
                source_url=document.url,
                original_id=f"{FACE_ID_PREFIX}{face_id}" if face_id else "",
                face_id=face_id,
            ),
        )

    async def enrich(self, candidate: CandidateRecord) -> Optional[CandidateRecord]:
        """
        Fetch and parse the candidate's detail page.

        Returns None on any failure; the candidate is then kept as extracted.
        """
        url = candidate.download_url
        try:
            logger.info(f"Scraping individual face: {url}")
            document = await self.fetcher.fetch(url, max_retries=self.max_retries)
            return self.parse(document)
        except Exception as e:
            logger.error(f"Failed to scrape individual face {url}: {e}")
            return None
