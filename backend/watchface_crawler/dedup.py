"""Collapsing of duplicate candidates collected across pages."""

from typing import List
import logging

from .base import CandidateRecord

logger = logging.getLogger(__name__)


def dedup(records: List[CandidateRecord]) -> List[CandidateRecord]:
    """
    Keep the first record for each (name, image_url) pair.

    Order of first appearance is preserved.
    """
    seen = set()
    unique = []
    for record in records:
        key = record.dedup_key
        if key in seen:
            continue
        seen.add(key)
        unique.append(record)

    dropped = len(records) - len(unique)
    if dropped:
        logger.info(f"Removed {dropped} duplicate(s), {len(unique)} unique watchfaces remain")
    return unique
