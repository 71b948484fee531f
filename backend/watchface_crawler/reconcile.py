"""
Reconciliation of candidate records into persistent storage.

Each candidate is either merged into the stored record it matches or
inserted as a new one. A failure on one record is counted and logged; the
rest of the batch still goes through.
"""

from typing import Any, Dict, List, Optional, Protocol
import logging

from .base import CandidateRecord, ReconcileCounts, Colors, utc_now

logger = logging.getLogger(__name__)


class RecordStore(Protocol):
    """Storage operations the reconciler relies on."""

    def find_existing(
        self,
        name: Optional[str] = None,
        image_url: Optional[str] = None,
        original_id: Optional[str] = None,
    ) -> Optional[Any]: ...

    def insert(self, record: CandidateRecord) -> Any: ...

    def update(self, existing: Any, fields: Dict[str, Any]) -> Any: ...


def update_fields(record: CandidateRecord) -> Dict[str, Any]:
    """Column values to merge into an existing stored record."""
    fields = record.merge_fields()
    meta = record.metadata
    if meta.source_url:
        fields['source_url'] = meta.source_url
    if meta.original_id:
        fields['original_id'] = meta.original_id
    if meta.face_id:
        fields['face_id'] = meta.face_id
    fields['scraped_at'] = utc_now()
    return fields


class Reconciler:
    """Upserts candidates into a RecordStore."""

    def reconcile(self, records: List[CandidateRecord], store: RecordStore) -> ReconcileCounts:
        counts = ReconcileCounts()
        logger.info(f"Saving {len(records)} watchfaces to database...")

        for record in records:
            # Extraction should never produce these, but don't rely on it
            if not record.name or not record.image_url:
                counts.skipped += 1
                logger.info(f"   {Colors.yellow('[SKIP]')} record missing name or image")
                continue

            try:
                existing = store.find_existing(
                    name=record.name,
                    image_url=record.image_url,
                    original_id=record.metadata.original_id or None,
                )
                if existing is not None:
                    store.update(existing, update_fields(record))
                    counts.updated += 1
                    logger.debug(f"   {Colors.blue('[UPD]')} {record.name}")
                else:
                    store.insert(record)
                    counts.saved += 1
                    logger.debug(f"   {Colors.green('[NEW]')} {record.name}")
            except Exception as e:
                counts.skipped += 1
                logger.error(f"   {Colors.red('[ERR]')} Error saving watchface {record.name}: {e}")

        logger.info(
            f"Database operation completed: {counts.saved} new, "
            f"{counts.updated} updated, {counts.skipped} skipped"
        )
        return counts


def reconcile(records: List[CandidateRecord], store: RecordStore) -> ReconcileCounts:
    return Reconciler().reconcile(records, store)
