from __future__ import annotations

import datetime as dt
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_serializer, model_validator

from .models import new_id
from .utils import from_db_datetime


def _serialize_datetime(value: dt.datetime) -> str:
    return from_db_datetime(value).strftime("%Y-%m-%dT%H:%M:%SZ")


class CurrentTimeEntryRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)
    id: str = Field(default_factory=new_id)
    project: str
    task: str
    start: dt.datetime

    # SQLite hands datetimes back without tzinfo; they were written as UTC.
    @field_validator("start", mode="after")
    @classmethod
    def _normalize_start(cls, value: dt.datetime) -> dt.datetime:
        return from_db_datetime(value)


class TimeEntryRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)
    id: str
    project: str
    task: str
    start: dt.datetime
    end: dt.datetime

    @field_validator("start", "end", mode="after")
    @classmethod
    def _normalize_times(cls, value: dt.datetime) -> dt.datetime:
        return from_db_datetime(value)

    @property
    def duration(self) -> dt.timedelta:
        return self.end - self.start


class ClockifyTimeEntryRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)
    id: str
    time_entry_id: str
    clockify_id: str
    deleted: bool = False


class ClockifyConfigRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)
    id: Optional[str] = None
    api_key: str
    workspace_id: str

    @model_validator(mode="after")
    def _require_values(self) -> "ClockifyConfigRecord":
        if not self.api_key.strip() or not self.workspace_id.strip():
            raise ValueError("API key and workspace ID are required")
        return self


class ClockifyTimeEntryPayload(BaseModel):
    start: dt.datetime
    end: dt.datetime
    description: str
    project_id: Optional[str] = None
    task_id: Optional[str] = None

    @classmethod
    def from_entry(
        cls,
        entry: TimeEntryRecord,
        project_id: Optional[str],
        task_id: Optional[str] = None,
    ) -> "ClockifyTimeEntryPayload":
        return cls(
            start=entry.start,
            end=entry.end,
            description=f"{entry.project} - {entry.task}",
            project_id=project_id,
            task_id=task_id,
        )

    @model_serializer(mode="plain", when_used="json")
    def _serialize(self) -> dict[str, Any]:
        return {
            "start": _serialize_datetime(self.start),
            "end": _serialize_datetime(self.end),
            "description": self.description,
            "projectId": self.project_id,
            "taskId": self.task_id,
        }


class ClockifyTimeEntryCreated(BaseModel):
    model_config = ConfigDict(extra="ignore")
    id: str


__all__ = [
    "CurrentTimeEntryRecord",
    "TimeEntryRecord",
    "ClockifyTimeEntryRecord",
    "ClockifyConfigRecord",
    "ClockifyTimeEntryPayload",
    "ClockifyTimeEntryCreated",
]
