"""One-way push of local time entries to Clockify.

Each local entry gets at most one tracking record, written only after the
remote create succeeded. A failed request stops the run; tracking records of
entries uploaded before the failure stay committed.
"""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from .api_client import ClockifyApiClient, ClockifyCredentials
from .clockify_store import ClockifyStore
from .config import Settings, settings
from .errors import ClockifyApiError, EntryValidationError, NotConfiguredError, UnsupportedOperationError
from .schemas import ClockifyConfigRecord, TimeEntryRecord
from .store import Store, chronological, compose, started_between
from .utils import end_of_day, start_of_day

logger = logging.getLogger(__name__)

ACTION_CREATE = "create"
ACTION_UPDATE = "update"
ACTION_DELETE = "delete"

STATUS_OK = "ok"
STATUS_FAILED = "failed"
STATUS_UNSUPPORTED = "unsupported"


@dataclass(slots=True)
class SyncOutcome:
    time_entry_id: str
    action: str
    status: str
    clockify_id: Optional[str] = None
    detail: Optional[str] = None


@dataclass(slots=True)
class SyncReport:
    outcomes: List[SyncOutcome] = field(default_factory=list)
    aborted: bool = False

    def count(self, action: str, status: str = STATUS_OK) -> int:
        return sum(1 for outcome in self.outcomes if outcome.action == action and outcome.status == status)

    @property
    def failed(self) -> List[SyncOutcome]:
        return [outcome for outcome in self.outcomes if outcome.status == STATUS_FAILED]

    def extend(self, other: "SyncReport") -> None:
        self.outcomes.extend(other.outcomes)
        self.aborted = self.aborted or other.aborted


def get_config(tracking: ClockifyStore) -> Optional[ClockifyConfigRecord]:
    return tracking.get_config()


def set_config(tracking: ClockifyStore, api_key: str, workspace_id: str) -> ClockifyConfigRecord:
    if not (api_key or "").strip() or not (workspace_id or "").strip():
        raise EntryValidationError("API key and workspace ID are required")
    return tracking.set_config(ClockifyConfigRecord(api_key=api_key, workspace_id=workspace_id))


def delete_config(tracking: ClockifyStore) -> None:
    tracking.delete_config()


def resolve_credentials(tracking: ClockifyStore, base_settings: Settings = settings) -> ClockifyCredentials:
    """Stored configuration wins over ``TT_CLOCKIFY_*`` environment settings."""
    stored = tracking.get_config()
    if stored is not None:
        return ClockifyCredentials(api_key=stored.api_key, workspace_id=stored.workspace_id)
    if base_settings.clockify_api_key and base_settings.clockify_workspace_id:
        return ClockifyCredentials(
            api_key=base_settings.clockify_api_key,
            workspace_id=base_settings.clockify_workspace_id,
        )
    raise NotConfiguredError(
        "Clockify is not configured. Run `timetracker clockify config set API_KEY WORKSPACE_ID`."
    )


class ClockifySync:
    def __init__(self, store: Store, tracking: ClockifyStore, client: ClockifyApiClient):
        self.store = store
        self.tracking = tracking
        self.client = client

    def upload(self, entries: Iterable[TimeEntryRecord]) -> SyncReport:
        report = SyncReport()
        for entry in entries:
            outcome = self._sync_entry(entry)
            report.outcomes.append(outcome)
            if outcome.status == STATUS_FAILED:
                report.aborted = True
                logger.error("upload aborted at %s: %s", entry.id, outcome.detail)
                break
        return report

    def purge_deleted(self) -> SyncReport:
        """Remove the remote copies of entries deleted locally."""
        report = SyncReport()
        for record in self.tracking.list_deleted():
            outcome = self._delete_remote(record.time_entry_id, record.id, record.clockify_id)
            report.outcomes.append(outcome)
            if outcome.status == STATUS_FAILED:
                report.aborted = True
                logger.error("purge aborted at %s: %s", record.time_entry_id, outcome.detail)
                break
        return report

    def _sync_entry(self, entry: TimeEntryRecord) -> SyncOutcome:
        record = self.tracking.get_time_entry(entry.id)
        if record is None:
            return self._create_remote(entry)
        if record.deleted:
            return self._delete_remote(entry.id, record.id, record.clockify_id)
        try:
            self.client.update_time_entry(record.clockify_id, entry)
        except UnsupportedOperationError as exc:
            logger.warning("%s", exc)
            return SyncOutcome(entry.id, ACTION_UPDATE, STATUS_UNSUPPORTED, record.clockify_id, str(exc))
        return SyncOutcome(entry.id, ACTION_UPDATE, STATUS_OK, record.clockify_id)

    def _create_remote(self, entry: TimeEntryRecord) -> SyncOutcome:
        try:
            clockify_id = self.client.create_time_entry(entry)
        except ClockifyApiError as exc:
            return SyncOutcome(entry.id, ACTION_CREATE, STATUS_FAILED, detail=str(exc))
        self.tracking.insert_time_entry(entry.id, clockify_id)
        logger.info("uploaded %s as %s", entry.id, clockify_id)
        return SyncOutcome(entry.id, ACTION_CREATE, STATUS_OK, clockify_id)

    def _delete_remote(self, time_entry_id: str, tracking_id: str, clockify_id: str) -> SyncOutcome:
        try:
            self.client.delete_time_entry(clockify_id)
        except ClockifyApiError as exc:
            return SyncOutcome(time_entry_id, ACTION_DELETE, STATUS_FAILED, clockify_id, str(exc))
        self.tracking.remove(tracking_id)
        logger.info("deleted remote %s for %s", clockify_id, time_entry_id)
        return SyncOutcome(time_entry_id, ACTION_DELETE, STATUS_OK, clockify_id)


def upload_range(
    store: Store,
    start_day: dt.date,
    end_day: dt.date,
    client: Optional[ClockifyApiClient] = None,
) -> SyncReport:
    """Upload entries started in ``[start_day, end_day]``, then purge deleted ones."""
    tracking = ClockifyStore(store)
    if client is None:
        client = ClockifyApiClient(resolve_credentials(tracking))
    entries = store.get_time_entries(
        compose(started_between(start_of_day(start_day), end_of_day(end_day)), chronological())
    )
    sync = ClockifySync(store, tracking, client)
    report = sync.upload(entries)
    if not report.aborted:
        report.extend(sync.purge_deleted())
    return report


__all__ = [
    "ClockifySync",
    "SyncOutcome",
    "SyncReport",
    "get_config",
    "set_config",
    "delete_config",
    "resolve_credentials",
    "upload_range",
]
