"""Aggregations over already-fetched time entries, used by ``list`` and ``report``."""

from __future__ import annotations

import datetime as dt
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from .schemas import TimeEntryRecord
from .utils import day_key

ZERO = dt.timedelta(0)


@dataclass(slots=True)
class DayTotal:
    day: str
    duration: dt.timedelta
    percentage: float
    entries: List[TimeEntryRecord] = field(default_factory=list)

    @property
    def weekday(self) -> str:
        return dt.date.fromisoformat(self.day).strftime("%A")


@dataclass(slots=True)
class ProjectTotal:
    project: str
    duration: dt.timedelta
    percentage: float
    daily_average_hours: float
    entries: List[TimeEntryRecord] = field(default_factory=list)


@dataclass(slots=True)
class ReportSummary:
    start_day: dt.date
    end_day: dt.date
    total: dt.timedelta
    project_count: int
    task_count: int
    entry_count: int
    working_days: int
    average_hours_per_day: float


@dataclass(slots=True)
class Report:
    summary: ReportSummary
    days: List[DayTotal]
    projects: List[ProjectTotal]


def entry_duration(entry: TimeEntryRecord) -> dt.timedelta:
    return entry.end - entry.start


def total_duration(entries: Iterable[TimeEntryRecord]) -> dt.timedelta:
    return sum((entry_duration(entry) for entry in entries), ZERO)


def group_entries_by_day(
    entries: Iterable[TimeEntryRecord], tz: Optional[dt.tzinfo] = None
) -> Dict[str, List[TimeEntryRecord]]:
    grouped: Dict[str, List[TimeEntryRecord]] = defaultdict(list)
    for entry in entries:
        grouped[day_key(entry.start, tz)].append(entry)
    return dict(grouped)


def group_entries_by_project(entries: Iterable[TimeEntryRecord]) -> Dict[str, List[TimeEntryRecord]]:
    grouped: Dict[str, List[TimeEntryRecord]] = defaultdict(list)
    for entry in entries:
        grouped[entry.project].append(entry)
    return dict(grouped)


def group_entries_by_task(entries: Iterable[TimeEntryRecord]) -> Dict[str, List[TimeEntryRecord]]:
    grouped: Dict[str, List[TimeEntryRecord]] = defaultdict(list)
    for entry in entries:
        grouped[entry.task].append(entry)
    return dict(grouped)


def hours_by_day(entries: Iterable[TimeEntryRecord], tz: Optional[dt.tzinfo] = None) -> Dict[str, dt.timedelta]:
    return {day: total_duration(items) for day, items in group_entries_by_day(entries, tz).items()}


def hours_by_project(entries: Iterable[TimeEntryRecord]) -> Dict[str, dt.timedelta]:
    return {project: total_duration(items) for project, items in group_entries_by_project(entries).items()}


def percentage_of_total(part: dt.timedelta, total: dt.timedelta) -> float:
    if total <= ZERO:
        return 0.0
    return part / total * 100


def count_working_days(start_day: dt.date, end_day: dt.date) -> int:
    """Weekdays in ``[start_day, end_day]``."""
    days = 0
    current = start_day
    while current <= end_day:
        if current.weekday() < 5:
            days += 1
        current += dt.timedelta(days=1)
    return days


def hours(value: dt.timedelta) -> float:
    return value.total_seconds() / 3600


def format_duration(value: dt.timedelta) -> str:
    total_minutes = int(value.total_seconds() // 60)
    hours_part, minutes = divmod(total_minutes, 60)
    if hours_part == 0 and minutes == 0:
        return "0h 0m"
    if hours_part == 0:
        return f"{minutes}m"
    if minutes == 0:
        return f"{hours_part}h"
    return f"{hours_part}h {minutes}m"


def build_report(
    entries: Sequence[TimeEntryRecord],
    start_day: dt.date,
    end_day: dt.date,
    tz: Optional[dt.tzinfo] = None,
) -> Report:
    ordered = sorted(entries, key=lambda entry: entry.start)
    total = total_duration(ordered)
    working_days = count_working_days(start_day, end_day)
    average_divisor = max(working_days, 1)

    days = [
        DayTotal(
            day=day,
            duration=total_duration(items),
            percentage=percentage_of_total(total_duration(items), total),
            entries=items,
        )
        for day, items in sorted(group_entries_by_day(ordered, tz).items())
    ]

    projects = [
        ProjectTotal(
            project=project,
            duration=total_duration(items),
            percentage=percentage_of_total(total_duration(items), total),
            daily_average_hours=hours(total_duration(items)) / average_divisor,
            entries=items,
        )
        for project, items in group_entries_by_project(ordered).items()
    ]
    projects.sort(key=lambda item: (-item.duration, item.project))

    summary = ReportSummary(
        start_day=start_day,
        end_day=end_day,
        total=total,
        project_count=len({entry.project for entry in ordered}),
        task_count=len({entry.task for entry in ordered}),
        entry_count=len(ordered),
        working_days=working_days,
        average_hours_per_day=hours(total) / average_divisor,
    )
    return Report(summary=summary, days=days, projects=projects)


__all__ = [
    "DayTotal",
    "ProjectTotal",
    "Report",
    "ReportSummary",
    "build_report",
    "count_working_days",
    "entry_duration",
    "format_duration",
    "group_entries_by_day",
    "group_entries_by_project",
    "group_entries_by_task",
    "hours",
    "hours_by_day",
    "hours_by_project",
    "percentage_of_total",
    "total_duration",
]
