from __future__ import annotations

import datetime as dt
from typing import Callable, Generator
from zoneinfo import ZoneInfo

import pytest

from timetracker.clockify_store import ClockifyStore
from timetracker.config import settings
from timetracker.database import open_store
from timetracker.models import new_id
from timetracker.schemas import TimeEntryRecord
from timetracker.store import Store

BERLIN = ZoneInfo("Europe/Berlin")


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    monkeypatch.setattr(settings, "timezone", "Europe/Berlin")
    monkeypatch.setattr(settings, "data_dir", tmp_path)
    monkeypatch.setattr(settings, "db_path", tmp_path / "timetracker.db")
    monkeypatch.setattr(settings, "clockify_api_key", None)
    monkeypatch.setattr(settings, "clockify_workspace_id", None)
    yield


@pytest.fixture()
def store() -> Generator[Store, None, None]:
    with open_store() as opened:
        yield opened


@pytest.fixture()
def tracking(store: Store) -> ClockifyStore:
    return ClockifyStore(store)


@pytest.fixture()
def sample_day() -> dt.date:
    return dt.date(2024, 1, 1)


def local(day: dt.date, hour: int, minute: int = 0) -> dt.datetime:
    return dt.datetime.combine(day, dt.time(hour, minute), tzinfo=BERLIN)


@pytest.fixture()
def add_entry(store: Store) -> Callable[..., TimeEntryRecord]:
    def _add(project: str, task: str, start: dt.datetime, end: dt.datetime) -> TimeEntryRecord:
        entry = TimeEntryRecord(id=new_id(), project=project, task=task, start=start, end=end)
        store.insert_time_entry(entry)
        return entry

    return _add
