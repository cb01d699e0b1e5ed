"""Command line interface for the time tracker."""

from __future__ import annotations

import datetime as dt
import logging
from contextlib import contextmanager
from typing import Generator, List, Optional

import click
import typer
from rich.markup import escape
from rich.prompt import IntPrompt

from . import services
from .clockify_store import ClockifyStore
from .config import settings
from .database import open_store
from .editing import render_edit_file
from .errors import EntryValidationError, TimeTrackerError
from .observability import setup_logging
from .reporting import build_report
from .render import (
    console,
    edit_candidates_table,
    entries_table,
    render_changes,
    render_report,
    render_status,
    render_sync_report,
)
from .store import (
    Store,
    chronological,
    compose,
    for_project,
    for_task,
    latest_first,
    started_after,
    started_before,
    started_between,
)
from .sync import delete_config, get_config, set_config, upload_range
from .utils import (
    end_of_day,
    last_week_range,
    parse_day,
    parse_timestamp,
    start_of_day,
    this_week_range,
    today_range,
    yesterday_range,
)

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="timetracker",
    help="Track time on projects and tasks from the terminal.",
    no_args_is_help=True,
)
clockify_app = typer.Typer(help="Upload time entries to Clockify.", no_args_is_help=True)
config_app = typer.Typer(help="Manage the stored Clockify credentials.", no_args_is_help=True)
clockify_app.add_typer(config_app, name="config")
app.add_typer(clockify_app, name="clockify")


@contextmanager
def reported_errors() -> Generator[None, None, None]:
    try:
        yield
    except TimeTrackerError as exc:
        logger.debug("command failed", exc_info=True)
        console.print(str(exc), style="red", markup=False, highlight=False)
        raise typer.Exit(1) from exc


def _timestamp_option(value: Optional[str], name: str) -> Optional[dt.datetime]:
    if value is None:
        return None
    try:
        return parse_timestamp(value)
    except ValueError as exc:
        raise EntryValidationError(f"Invalid --{name} value {value!r}, expected YYYY-MM-DD HH:MM:SS") from exc


def _day_option(value: Optional[str], name: str) -> Optional[dt.date]:
    if value is None:
        return None
    try:
        return parse_day(value)
    except ValueError as exc:
        raise EntryValidationError(f"Invalid --{name} value {value!r}, expected YYYY-MM-DD") from exc


# ----------------------------------------------------------------------
# Shell completion
# ----------------------------------------------------------------------
def complete_project(incomplete: str) -> List[str]:
    try:
        with open_store() as store:
            projects = services.get_projects(store)
    except TimeTrackerError:
        return []
    return sorted({project for project in projects if project.startswith(incomplete)})


def complete_task(ctx: typer.Context, incomplete: str) -> List[str]:
    project = ctx.params.get("project")
    if not project:
        return []
    try:
        with open_store() as store:
            tasks = services.get_tasks(store, project)
    except TimeTrackerError:
        return []
    return sorted({task for task in tasks if task.startswith(incomplete)})


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output to stderr"),
) -> None:
    setup_logging("DEBUG" if verbose else settings.log_level)


# ----------------------------------------------------------------------
# Tracking
# ----------------------------------------------------------------------
def start(
    project: str = typer.Argument(..., help="Project name", autocompletion=complete_project),
    task: str = typer.Argument(..., help="Task name", autocompletion=complete_task),
    from_: Optional[str] = typer.Option(None, "--from", help="Start time as 'YYYY-MM-DD HH:MM:SS'"),
) -> None:
    """Start tracking a task, stopping the running one first."""
    with reported_errors(), open_store() as store:
        at = _timestamp_option(from_, "from")
        previous = services.get_current_time_entry(store)
        entry = services.start_time_entry(store, project, task, at)
    if previous is not None:
        console.print(f"[yellow]Stopped previous task: {escape(previous.project)} - {escape(previous.task)}[/yellow]")
    console.print(f"[green]✓[/green] Started tracking: [bold]{escape(entry.project)} - {escape(entry.task)}[/bold]")


def stop(
    end: Optional[str] = typer.Option(None, "--end", help="End time as 'YYYY-MM-DD HH:MM:SS'"),
) -> None:
    """Stop the running task."""
    with reported_errors(), open_store() as store:
        at = _timestamp_option(end, "end")
        entry = services.stop_current_time_entry(store, at)
    if entry is None:
        console.print("[yellow]No running time entry[/yellow]")
        return
    console.print(f"[green]✓[/green] Stopped: [bold]{escape(entry.project)} - {escape(entry.task)}[/bold]")


def status(raw: bool = typer.Option(False, "--raw", help="Plain output without colors")) -> None:
    """Show the running task."""
    with reported_errors(), open_store() as store:
        current = services.get_current_time_entry(store)
    if current is None:
        if not raw:
            console.print("No running time entry")
        return
    render_status(current, raw)


# ----------------------------------------------------------------------
# Entries
# ----------------------------------------------------------------------
def list_entries(
    from_: Optional[str] = typer.Option(None, "--from", help="First day (YYYY-MM-DD)"),
    to: Optional[str] = typer.Option(None, "--to", help="Last day, inclusive (YYYY-MM-DD)"),
    today: bool = typer.Option(False, "--today", help="Only entries started today"),
    yesterday: bool = typer.Option(False, "--yesterday", help="Only entries started yesterday"),
    show_id: bool = typer.Option(False, "--id", help="Show entry ids"),
) -> None:
    """List finished time entries."""
    with reported_errors(), open_store() as store:
        first_day = _day_option(from_, "from")
        last_day = _day_option(to, "to")
        if today:
            first_day, last_day = today_range()
        elif yesterday:
            first_day, last_day = yesterday_range()
        predicate = compose(
            started_after(start_of_day(first_day)) if first_day else None,
            started_before(end_of_day(last_day)) if last_day else None,
            chronological(),
        )
        entries = store.get_time_entries(predicate)
    console.print(entries_table(entries, show_id=show_id))


def delete(
    entry_id: Optional[str] = typer.Argument(None, metavar="ID", help="Id of the entry to delete"),
    last: bool = typer.Option(False, "--last", help="Delete the most recent entry"),
) -> None:
    """Delete a finished time entry."""
    with reported_errors(), open_store() as store:
        tracking = ClockifyStore(store)
        if last:
            entry = services.delete_last_time_entry(store, tracking)
            deleted_id = entry.id
        else:
            if not entry_id:
                raise EntryValidationError("Give an ID or use --last")
            services.delete_time_entry(store, tracking, entry_id)
            deleted_id = entry_id
    console.print(f"[green]✓[/green] Deleted time entry {escape(deleted_id)}")


def _pick_entry(store: Store) -> str:
    candidates = store.get_time_entries(latest_first(settings.edit_candidates))
    if not candidates:
        raise EntryValidationError("There are no time entries to edit")
    console.print(edit_candidates_table(candidates))
    choice = IntPrompt.ask(
        "Select an entry",
        choices=[str(index) for index in range(1, len(candidates) + 1)],
        show_choices=False,
        console=console,
    )
    return candidates[choice - 1].id


def edit(entry_id: Optional[str] = typer.Argument(None, metavar="ID", help="Id of the entry to edit")) -> None:
    """Edit a finished time entry in $EDITOR."""
    with reported_errors(), open_store() as store:
        if not entry_id:
            entry_id = _pick_entry(store)
        original = services.get_time_entry(store, entry_id)
        edited_text = click.edit(render_edit_file(original), editor=settings.editor, extension=".txt")
        # None means the editor closed without saving.
        changes = services.apply_edit(store, original, edited_text) if edited_text is not None else []
    render_changes(changes)


# ----------------------------------------------------------------------
# Reporting
# ----------------------------------------------------------------------
def report(
    this_week: bool = typer.Option(False, "--this-week", "--tw", help="Monday until today (default)"),
    last_week: bool = typer.Option(False, "--last-week", "--lw", help="Previous Monday to Sunday"),
    today: bool = typer.Option(False, "--today", "--td", help="Only today"),
    project: Optional[str] = typer.Option(None, "--project", "-p", help="Only this project"),
    task: Optional[str] = typer.Option(None, "--task", "-t", help="Only this task"),
) -> None:
    """Summarize tracked time for a period."""
    if last_week:
        (first_day, last_day), title = last_week_range(), "Last Week"
    elif today:
        (first_day, last_day), title = today_range(), "Today"
    else:
        (first_day, last_day), title = this_week_range(), "This Week"
    if project:
        title += f" (Project: {project})"
    if task:
        title += f" (Task: {task})"

    with reported_errors(), open_store() as store:
        entries = store.get_time_entries(
            compose(
                started_between(start_of_day(first_day), end_of_day(last_day)),
                for_project(project) if project else None,
                for_task(task) if task else None,
                chronological(),
            )
        )
    if not entries:
        console.print("[yellow]No time entries found for the selected period[/yellow]")
        return
    render_report(build_report(entries, first_day, last_day), title, single_day=today)


# ----------------------------------------------------------------------
# Clockify
# ----------------------------------------------------------------------
@config_app.command("get")
def config_get() -> None:
    """Show the stored Clockify credentials."""
    with reported_errors(), open_store() as store:
        config = get_config(ClockifyStore(store))
    if config is None:
        console.print("[yellow]Clockify is not configured[/yellow]")
        return
    console.print(f"API key: {config.api_key}", markup=False, highlight=False)
    console.print(f"Workspace ID: {config.workspace_id}", markup=False, highlight=False)


@config_app.command("set")
def config_set(
    api_key: str = typer.Argument(..., metavar="API_KEY"),
    workspace_id: str = typer.Argument(..., metavar="WORKSPACE_ID"),
) -> None:
    """Store the Clockify API key and workspace id."""
    with reported_errors(), open_store() as store:
        set_config(ClockifyStore(store), api_key, workspace_id)
    console.print("[green]✓[/green] Clockify configuration saved")


@config_app.command("delete")
def config_delete() -> None:
    """Remove the stored Clockify credentials."""
    with reported_errors(), open_store() as store:
        delete_config(ClockifyStore(store))
    console.print("[green]✓[/green] Clockify configuration deleted")


def _upload(first_day: dt.date, last_day: dt.date, label: str) -> None:
    with reported_errors(), open_store() as store:
        result = upload_range(store, first_day, last_day)
    render_sync_report(result, label)
    if result.aborted:
        raise typer.Exit(1)


@clockify_app.command("upload-today")
def upload_today() -> None:
    """Upload today's time entries."""
    first_day, last_day = today_range()
    _upload(first_day, last_day, "today")


@clockify_app.command("upload-last-week")
def upload_last_week() -> None:
    """Upload last week's time entries."""
    first_day, last_day = last_week_range()
    _upload(first_day, last_day, "last week")


app.command("start")(start)
app.command("s", hidden=True)(start)
app.command("stop")(stop)
app.command("end", hidden=True)(stop)
app.command("e", hidden=True)(stop)
app.command("status")(status)
app.command("st", hidden=True)(status)
app.command("list")(list_entries)
app.command("l", hidden=True)(list_entries)
app.command("delete")(delete)
app.command("edit")(edit)
app.command("report")(report)
app.command("r", hidden=True)(report)
