"""Key-value text form of a time entry, used by the editor-based edit flow."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

from .errors import EntryValidationError
from .schemas import TimeEntryRecord
from .utils import ensure_utc, to_local

HEADER_LINES = (
    "# Modify this file to change the time entry",
    "# Don't change the ID line",
)

EDITABLE_FIELDS = ("project", "task", "start", "end")


@dataclass(slots=True)
class FieldChange:
    field: str
    old: Any
    new: Any


def render_edit_file(entry: TimeEntryRecord, tz: Optional[dt.tzinfo] = None) -> str:
    lines = [
        *HEADER_LINES,
        "",
        f"ID: {entry.id} # Don't change this line",
        f"Project: {entry.project}",
        f"Task: {entry.task}",
        f"Start: {to_local(entry.start, tz).isoformat()}",
        f"End: {to_local(entry.end, tz).isoformat()}",
    ]
    return "\n".join(lines) + "\n"


def _strip_comment(value: str) -> str:
    return value.split("#", 1)[0].strip()


def _find_value(lines: Sequence[str], prefix: str, *, allow_comment: bool = False) -> str:
    for line in lines:
        if line.startswith(prefix):
            value = line[len(prefix):]
            return _strip_comment(value) if allow_comment else value.strip()
    return ""


def _parse_time(raw: str, label: str) -> dt.datetime:
    try:
        parsed = dt.datetime.fromisoformat(raw)
    except ValueError as exc:
        raise EntryValidationError(f"Invalid {label} time: {raw!r}") from exc
    return ensure_utc(parsed)


def parse_edit_file(original: TimeEntryRecord, text: str) -> TimeEntryRecord:
    """Build the edited entry; empty values keep the original field."""
    lines = text.splitlines()

    new_id = _find_value(lines, "ID:", allow_comment=True) or original.id
    if new_id != original.id:
        raise EntryValidationError("Invalid file content, ID is not the same")

    project = _find_value(lines, "Project:") or original.project
    task = _find_value(lines, "Task:") or original.task

    start_raw = _find_value(lines, "Start:")
    start = _parse_time(start_raw, "start") if start_raw else original.start
    end_raw = _find_value(lines, "End:")
    end = _parse_time(end_raw, "end") if end_raw else original.end

    if end < start:
        raise EntryValidationError("End time is before start time")

    return original.model_copy(update={"project": project, "task": task, "start": start, "end": end})


def diff_entries(old: TimeEntryRecord, new: TimeEntryRecord) -> List[FieldChange]:
    changes: List[FieldChange] = []
    for field in EDITABLE_FIELDS:
        before = getattr(old, field)
        after = getattr(new, field)
        if before != after:
            changes.append(FieldChange(field=field, old=before, new=after))
    return changes


__all__ = ["FieldChange", "render_edit_file", "parse_edit_file", "diff_entries"]
