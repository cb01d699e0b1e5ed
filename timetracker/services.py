from __future__ import annotations

import datetime as dt
import logging
from typing import List, Optional

from .clockify_store import ClockifyStore
from .editing import FieldChange, diff_entries, parse_edit_file
from .errors import EntryValidationError, NotFoundError
from .schemas import CurrentTimeEntryRecord, TimeEntryRecord
from .store import Store
from .utils import ensure_utc, normalize_label, now, start_of_minute

logger = logging.getLogger(__name__)


def _now() -> dt.datetime:
    return now()


def get_current_time_entry(store: Store) -> Optional[CurrentTimeEntryRecord]:
    return store.get_current_time_entry()


def start_time_entry(
    store: Store,
    project: Optional[str],
    task: Optional[str],
    at: Optional[dt.datetime] = None,
) -> CurrentTimeEntryRecord:
    """Start a new entry, stopping the running one at the current time first."""
    project_label = normalize_label(project)
    task_label = normalize_label(task)
    if not project_label or not task_label:
        raise EntryValidationError("Project and task are required")

    start = ensure_utc(at) if at is not None else start_of_minute(_now())
    entry = CurrentTimeEntryRecord(project=project_label, task=task_label, start=start)

    with store.transaction():
        current = store.get_current_time_entry()
        if current is not None:
            # A running entry may start in the future; it then ends where it began.
            stopped = stop_time_entry(store, current, max(_now(), current.start))
            logger.info("auto-stopped %s (%s - %s)", stopped.id, stopped.project, stopped.task)
        store.insert_current_time_entry(entry)

    logger.info("started %s (%s - %s) at %s", entry.id, entry.project, entry.task, entry.start.isoformat())
    return entry


def stop_time_entry(store: Store, current: CurrentTimeEntryRecord, at: dt.datetime) -> TimeEntryRecord:
    end = ensure_utc(at)
    if end < current.start:
        raise EntryValidationError("End time is before start time")

    entry = TimeEntryRecord(
        id=current.id,
        project=current.project,
        task=current.task,
        start=current.start,
        end=end,
    )
    with store.transaction():
        store.insert_time_entry(entry)
        store.delete_current_time_entry()
    return entry


def stop_current_time_entry(store: Store, at: Optional[dt.datetime] = None) -> Optional[TimeEntryRecord]:
    """Stop the running entry. Returns ``None`` when nothing is running."""
    current = store.get_current_time_entry()
    if current is None:
        return None
    entry = stop_time_entry(store, current, at if at is not None else _now())
    logger.info("stopped %s (%s - %s)", entry.id, entry.project, entry.task)
    return entry


def delete_time_entry(store: Store, tracking: ClockifyStore, entry_id: str) -> None:
    entry_id = (entry_id or "").strip()
    if not entry_id:
        raise EntryValidationError("An id is required")
    with store.transaction():
        store.delete_time_entry(entry_id)
        tracking.mark_deleted(entry_id)
    logger.info("deleted time entry %s", entry_id)


def delete_last_time_entry(store: Store, tracking: ClockifyStore) -> TimeEntryRecord:
    last = store.get_last_time_entry()
    delete_time_entry(store, tracking, last.id)
    return last


def get_time_entry(store: Store, entry_id: str) -> TimeEntryRecord:
    entry = store.get_time_entry(entry_id)
    if entry is None:
        raise NotFoundError(f"Time entry {entry_id} not found")
    return entry


def apply_edit(store: Store, original: TimeEntryRecord, edited_text: str) -> List[FieldChange]:
    """Replace ``original`` with the values from an edit file. Returns what changed."""
    edited = parse_edit_file(original, edited_text)
    changes = diff_entries(original, edited)
    if not changes:
        return []
    store.update_time_entry(edited)
    logger.info("edited %s: %s", original.id, ", ".join(change.field for change in changes))
    return changes


def get_projects(store: Store) -> List[str]:
    return store.get_projects()


def get_tasks(store: Store, project: str) -> List[str]:
    return store.get_tasks(project)
