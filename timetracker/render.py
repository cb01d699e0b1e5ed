from __future__ import annotations

import datetime as dt
from typing import Iterable, List, Optional, Sequence

from rich.console import Console, Group
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .editing import FieldChange
from .reporting import DayTotal, ProjectTotal, Report, entry_duration, format_duration, group_entries_by_task
from .schemas import CurrentTimeEntryRecord, TimeEntryRecord
from .sync import STATUS_FAILED, STATUS_UNSUPPORTED, SyncReport
from .utils import now, to_local

console = Console()

STAMP_FORMAT = "%b %d %H:%M:%S"


def _hours_minutes(value: dt.timedelta) -> str:
    total_minutes = int(value.total_seconds() // 60)
    hours, minutes = divmod(total_minutes, 60)
    return f"{hours}h {minutes:02d}m"


def _format_value(value: object) -> str:
    if isinstance(value, dt.datetime):
        return to_local(value).isoformat()
    return escape(str(value))


def render_status(current: CurrentTimeEntryRecord, raw: bool = False) -> None:
    if raw:
        console.print(f"{current.project} {current.task}", markup=False, highlight=False)
        return
    elapsed = now() - current.start
    console.print(f"[bold blue]Task:[/bold blue] {escape(current.project)}, {escape(current.task)}")
    console.print(f"[bold blue]Started at:[/bold blue] {to_local(current.start).strftime('%A, %d-%b-%y %H:%M:%S %Z')}")
    console.print(f"[bold blue]Duration:[/bold blue] {_hours_minutes(elapsed)}")


def entries_table(entries: Iterable[TimeEntryRecord], show_id: bool = False) -> Table:
    table = Table(show_header=True, header_style="bold", row_styles=["", "on grey11"])
    if show_id:
        table.add_column("ID", no_wrap=True)
    for column in ("Project", "Task", "Start", "End", "Duration"):
        table.add_column(column)
    for entry in entries:
        row = [
            escape(entry.project),
            escape(entry.task),
            to_local(entry.start).strftime(STAMP_FORMAT),
            to_local(entry.end).strftime(STAMP_FORMAT),
            _hours_minutes(entry_duration(entry)),
        ]
        if show_id:
            row.insert(0, entry.id)
        table.add_row(*row)
    return table


def edit_candidates_table(entries: Sequence[TimeEntryRecord]) -> Table:
    table = Table(show_header=True, header_style="bold")
    for column in ("#", "ID", "Project", "Task", "Start", "End"):
        table.add_column(column)
    for index, entry in enumerate(entries, start=1):
        table.add_row(
            str(index),
            entry.id,
            escape(entry.project),
            escape(entry.task),
            to_local(entry.start).strftime(STAMP_FORMAT),
            to_local(entry.end).strftime(STAMP_FORMAT),
        )
    return table


def render_changes(changes: List[FieldChange]) -> None:
    if not changes:
        console.print("[yellow]No changes[/yellow]")
        return
    for change in changes:
        console.print(
            f"[green]{change.field.capitalize()} changed from[/green] "
            f"[red]{_format_value(change.old)}[/red] [green]to[/green] [red]{_format_value(change.new)}[/red]"
        )


def _summary_panel(report: Report) -> Panel:
    summary = report.summary
    text = "\n".join(
        [
            f"Period: {summary.start_day.isoformat()} to {summary.end_day.isoformat()}",
            f"Total Hours: {format_duration(summary.total)}",
            f"Projects: {summary.project_count}",
            f"Tasks: {summary.task_count}",
            f"Entries: {summary.entry_count}",
            f"Working Days: {summary.working_days}",
            f"Avg. Working Hours: {summary.average_hours_per_day:.1f}h/day",
        ]
    )
    return Panel(text, title="Summary")


def _projects_panel(projects: Sequence[ProjectTotal]) -> Panel:
    table = Table(show_header=True, header_style="bold")
    for column in ("Project", "Hours", "Percentage", "Daily Avg."):
        table.add_column(column)
    for item in projects:
        table.add_row(
            escape(item.project),
            format_duration(item.duration),
            f"{item.percentage:.1f}%",
            f"{item.daily_average_hours:.1f}h",
        )
    return Panel(table, title="Hours by Project")


def _days_panel(days: Sequence[DayTotal]) -> Panel:
    table = Table(show_header=True, header_style="bold")
    for column in ("Day", "Weekday", "Hours", "Share"):
        table.add_column(column)
    for item in days:
        bar = "█" * int(item.percentage // 5)
        table.add_row(item.day, item.weekday, format_duration(item.duration), f"{bar} {int(item.percentage)}%")
    return Panel(table, title="Hours by Day")


def _entries_by_day_panels(days: Sequence[DayTotal]) -> List[Panel]:
    panels: List[Panel] = []
    for item in days:
        table = Table(show_header=True, header_style="bold")
        for column in ("Project", "Task", "Duration", "Start", "End"):
            table.add_column(column)
        for entry in item.entries:
            table.add_row(
                escape(entry.project),
                escape(entry.task),
                format_duration(entry_duration(entry)),
                to_local(entry.start).strftime("%H:%M"),
                to_local(entry.end).strftime("%H:%M"),
            )
        title = f"{item.day} ({item.weekday}) - Total: {format_duration(item.duration)}"
        panels.append(Panel(table, title=title))
    return panels


def _entries_by_project_panels(projects: Sequence[ProjectTotal]) -> List[Panel]:
    panels: List[Panel] = []
    for item in sorted(projects, key=lambda project: project.project):
        table = Table(show_header=True, header_style="bold")
        for column in ("Task", "Duration", "Start", "End", "Day"):
            table.add_column(column)
        for task, entries in sorted(group_entries_by_task(item.entries).items()):
            for entry in sorted(entries, key=lambda value: value.start):
                table.add_row(
                    escape(task),
                    format_duration(entry_duration(entry)),
                    to_local(entry.start).strftime("%m.%d. %H:%M"),
                    to_local(entry.end).strftime("%m.%d. %H:%M"),
                    to_local(entry.start).strftime("%a"),
                )
        panels.append(Panel(table, title=f"{escape(item.project)} - Total: {format_duration(item.duration)}"))
    return panels


def render_report(report: Report, title: str, single_day: bool = False) -> None:
    summary = report.summary
    console.rule(
        f"[bold]Time Report: {escape(title)} ({summary.start_day.isoformat()} - {summary.end_day.isoformat()})[/bold]"
    )
    parts = [_summary_panel(report), _projects_panel(report.projects)]
    if not single_day:
        parts.append(_days_panel(report.days))
        parts.extend(_entries_by_day_panels(report.days))
    parts.extend(_entries_by_project_panels(report.projects))
    console.print(Group(*parts))


def render_sync_report(report: SyncReport, label: Optional[str] = None) -> None:
    for outcome in report.outcomes:
        if outcome.status == STATUS_FAILED:
            console.print(f"[red]Failed to {outcome.action} {outcome.time_entry_id}: {escape(outcome.detail or '')}[/red]")
        elif outcome.status == STATUS_UNSUPPORTED:
            console.print(f"[yellow]Skipped {outcome.time_entry_id}: {escape(outcome.detail or '')}[/yellow]")
        else:
            console.print(f"[green]{outcome.action.capitalize()}d[/green] {outcome.time_entry_id} ({escape(outcome.clockify_id or '')})")
    if not report.outcomes:
        console.print(f"No time entries to upload{f' for {label}' if label else ''}")
    if report.aborted:
        console.print("[red]Upload aborted, remaining entries were not sent[/red]")
