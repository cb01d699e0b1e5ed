from __future__ import annotations

import logging
from typing import List, Optional

from .models import ClockifyConfig, ClockifyTimeEntry
from .schemas import ClockifyConfigRecord, ClockifyTimeEntryRecord
from .store import Store

logger = logging.getLogger(__name__)


class ClockifyStore:
    """Sync-tracking records and the singleton Clockify configuration."""

    def __init__(self, store: Store):
        self._store = store

    # ------------------------------------------------------------------
    # Tracking records
    # ------------------------------------------------------------------
    def insert_time_entry(self, time_entry_id: str, clockify_id: str) -> ClockifyTimeEntryRecord:
        with self._store.transaction() as store:
            row = ClockifyTimeEntry(time_entry_id=time_entry_id, clockify_id=clockify_id, deleted=False)
            store.session.add(row)
            store.session.flush()
            record = ClockifyTimeEntryRecord.model_validate(row)
        return record

    def get_time_entry(self, time_entry_id: str) -> Optional[ClockifyTimeEntryRecord]:
        with self._store.reading() as db:
            row = (
                db.query(ClockifyTimeEntry)
                .filter(ClockifyTimeEntry.time_entry_id == time_entry_id)
                .first()
            )
        if row is None:
            return None
        return ClockifyTimeEntryRecord.model_validate(row)

    def list_deleted(self) -> List[ClockifyTimeEntryRecord]:
        with self._store.reading() as db:
            rows = db.query(ClockifyTimeEntry).filter(ClockifyTimeEntry.deleted.is_(True)).all()
        return [ClockifyTimeEntryRecord.model_validate(row) for row in rows]

    def mark_deleted(self, time_entry_id: str) -> int:
        """Flag the tracking record of a deleted local entry. Returns the number of records flagged."""
        with self._store.transaction() as store:
            count = (
                store.session.query(ClockifyTimeEntry)
                .filter(ClockifyTimeEntry.time_entry_id == time_entry_id)
                .update({ClockifyTimeEntry.deleted: True}, synchronize_session=False)
            )
        if count:
            logger.debug("marked clockify tracking for %s as deleted", time_entry_id)
        return count

    def remove(self, tracking_id: str) -> None:
        with self._store.transaction() as store:
            store.session.query(ClockifyTimeEntry).filter(ClockifyTimeEntry.id == tracking_id).delete(
                synchronize_session=False
            )

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------
    def get_config(self) -> Optional[ClockifyConfigRecord]:
        with self._store.reading() as db:
            row = db.query(ClockifyConfig).first()
        if row is None:
            return None
        return ClockifyConfigRecord.model_validate(row)

    def set_config(self, config: ClockifyConfigRecord) -> ClockifyConfigRecord:
        with self._store.transaction() as store:
            store.session.query(ClockifyConfig).delete(synchronize_session=False)
            row = ClockifyConfig(api_key=config.api_key.strip(), workspace_id=config.workspace_id.strip())
            store.session.add(row)
            store.session.flush()
            saved = ClockifyConfigRecord.model_validate(row)
        return saved

    def delete_config(self) -> None:
        with self._store.transaction() as store:
            store.session.query(ClockifyConfig).delete(synchronize_session=False)


__all__ = ["ClockifyStore"]
