"""Local persistence for current and finalized time entries.

All reads return pydantic records, mapped once here; callers never see ORM rows.
Writes go through ``Store.transaction()``: nested transactions join the outer
one, so a multi-step transition commits or rolls back as a unit.
"""

from __future__ import annotations

import datetime as dt
import logging
from contextlib import contextmanager
from typing import Callable, Generator, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from .config import settings
from .errors import NotFoundError, StorageError
from .models import CurrentTimeEntry, TimeEntry
from .schemas import CurrentTimeEntryRecord, TimeEntryRecord
from .utils import ensure_utc

logger = logging.getLogger(__name__)

TimeEntryPredicate = Callable[[Query], Query]


def started_between(start: dt.datetime, end: dt.datetime) -> TimeEntryPredicate:
    """Entries whose start lies in ``[start, end]``."""
    start_utc = ensure_utc(start)
    end_utc = ensure_utc(end)

    def _apply(query: Query) -> Query:
        return query.filter(TimeEntry.start >= start_utc, TimeEntry.start <= end_utc)

    return _apply


def started_after(start: dt.datetime) -> TimeEntryPredicate:
    start_utc = ensure_utc(start)
    return lambda query: query.filter(TimeEntry.start >= start_utc)


def started_before(end: dt.datetime) -> TimeEntryPredicate:
    end_utc = ensure_utc(end)
    return lambda query: query.filter(TimeEntry.start <= end_utc)


def for_project(project: str) -> TimeEntryPredicate:
    return lambda query: query.filter(TimeEntry.project == project)


def for_task(task: str) -> TimeEntryPredicate:
    return lambda query: query.filter(TimeEntry.task == task)


def chronological() -> TimeEntryPredicate:
    return lambda query: query.order_by(TimeEntry.start.asc())


def latest_first(limit: Optional[int] = None) -> TimeEntryPredicate:
    def _apply(query: Query) -> Query:
        query = query.order_by(TimeEntry.start.desc())
        if limit is not None:
            query = query.limit(limit)
        return query

    return _apply


def compose(*predicates: Optional[TimeEntryPredicate]) -> TimeEntryPredicate:
    def _apply(query: Query) -> Query:
        for predicate in predicates:
            if predicate is not None:
                query = predicate(query)
        return query

    return _apply


class Store:
    """CRUD over the ``time-entry`` and ``current-time-entry`` tables."""

    def __init__(self, session: Session):
        self.session = session
        self._in_transaction = False

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------
    @contextmanager
    def transaction(self) -> Generator["Store", None, None]:
        if self._in_transaction:
            yield self
            return
        self._in_transaction = True
        try:
            yield self
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error("transaction rolled back: %s", exc)
            raise StorageError(f"Database write failed: {exc}") from exc
        except Exception:
            self.session.rollback()
            raise
        finally:
            self._in_transaction = False

    @contextmanager
    def reading(self) -> Generator[Session, None, None]:
        try:
            yield self.session
        except SQLAlchemyError as exc:
            raise StorageError(f"Database read failed: {exc}") from exc

    # ------------------------------------------------------------------
    # Current time entry
    # ------------------------------------------------------------------
    def insert_current_time_entry(self, entry: CurrentTimeEntryRecord) -> str:
        with self.transaction():
            row = CurrentTimeEntry(
                id=entry.id,
                project=entry.project,
                task=entry.task,
                start=ensure_utc(entry.start),
            )
            self.session.add(row)
            self.session.flush()
        return entry.id

    def get_current_time_entry(self) -> Optional[CurrentTimeEntryRecord]:
        with self.reading() as db:
            row = db.query(CurrentTimeEntry).first()
        if row is None:
            return None
        return CurrentTimeEntryRecord.model_validate(row)

    def delete_current_time_entry(self) -> None:
        with self.transaction():
            self.session.query(CurrentTimeEntry).delete(synchronize_session=False)

    def count_current_time_entries(self) -> int:
        with self.reading() as db:
            return db.query(CurrentTimeEntry).count()

    # ------------------------------------------------------------------
    # Time entries
    # ------------------------------------------------------------------
    def insert_time_entry(self, entry: TimeEntryRecord) -> str:
        with self.transaction():
            self.session.add(
                TimeEntry(
                    id=entry.id,
                    project=entry.project,
                    task=entry.task,
                    start=ensure_utc(entry.start),
                    end=ensure_utc(entry.end),
                )
            )
            self.session.flush()
        return entry.id

    def get_time_entries(self, predicate: Optional[TimeEntryPredicate] = None) -> List[TimeEntryRecord]:
        with self.reading() as db:
            query = db.query(TimeEntry)
            if predicate is not None:
                query = predicate(query)
            rows = query.all()
        return [TimeEntryRecord.model_validate(row) for row in rows]

    def get_time_entry(self, entry_id: str) -> Optional[TimeEntryRecord]:
        with self.reading() as db:
            row = db.get(TimeEntry, entry_id)
        if row is None:
            return None
        return TimeEntryRecord.model_validate(row)

    def get_last_time_entry(self) -> TimeEntryRecord:
        entries = self.get_time_entries(latest_first(1))
        if not entries:
            raise NotFoundError("There are no time entries")
        return entries[0]

    def update_time_entry(self, entry: TimeEntryRecord) -> None:
        with self.transaction():
            row = self.session.get(TimeEntry, entry.id)
            if row is None:
                raise NotFoundError(f"Time entry {entry.id} not found")
            row.project = entry.project
            row.task = entry.task
            row.start = ensure_utc(entry.start)
            row.end = ensure_utc(entry.end)
            self.session.flush()

    def delete_time_entry(self, entry_id: str) -> None:
        with self.transaction():
            row = self.session.get(TimeEntry, entry_id)
            if row is None:
                raise NotFoundError(f"Time entry {entry_id} not found")
            self.session.delete(row)
            self.session.flush()

    # ------------------------------------------------------------------
    # Suggestions
    # ------------------------------------------------------------------
    def get_projects(self) -> List[str]:
        """Project labels from a bounded scan; duplicates are not removed."""
        with self.reading() as db:
            rows = db.query(TimeEntry.project).limit(settings.project_suggestions).all()
        return [row.project for row in rows]

    def get_tasks(self, project: str) -> List[str]:
        with self.reading() as db:
            rows = (
                db.query(TimeEntry.task)
                .filter(TimeEntry.project == project)
                .limit(settings.task_suggestions)
                .all()
            )
        return [row.task for row in rows]


__all__ = [
    "Store",
    "TimeEntryPredicate",
    "started_between",
    "started_after",
    "started_before",
    "for_project",
    "for_task",
    "chronological",
    "latest_first",
    "compose",
]
