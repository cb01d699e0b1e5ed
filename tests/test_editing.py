import pytest

from conftest import local
from timetracker.editing import diff_entries, parse_edit_file, render_edit_file
from timetracker.errors import EntryValidationError
from timetracker.schemas import TimeEntryRecord


@pytest.fixture()
def entry(sample_day) -> TimeEntryRecord:
    return TimeEntryRecord(
        id="0f5b7a52-8a55-4b0c-9d5e-2b1f4a7e9c10",
        project="Acme",
        task="Planning",
        start=local(sample_day, 9, 0),
        end=local(sample_day, 10, 30),
    )


def test_render_edit_file(entry):
    text = render_edit_file(entry)
    assert "ID: 0f5b7a52-8a55-4b0c-9d5e-2b1f4a7e9c10 # Don't change this line" in text
    assert "Project: Acme" in text
    assert "Start: 2024-01-01T09:00:00+01:00" in text
    assert "End: 2024-01-01T10:30:00+01:00" in text


def test_unchanged_file_has_no_diff(entry):
    edited = parse_edit_file(entry, render_edit_file(entry))
    assert diff_entries(entry, edited) == []


def test_seconds_survive_the_round_trip(entry):
    precise = entry.model_copy(update={"end": entry.end.replace(second=17)})
    edited = parse_edit_file(precise, render_edit_file(precise))
    assert diff_entries(precise, edited) == []


def test_changing_task_only_changes_task(entry):
    text = render_edit_file(entry).replace("Task: Planning", "Task: Review")
    edited = parse_edit_file(entry, text)

    changes = diff_entries(entry, edited)
    assert [(change.field, change.old, change.new) for change in changes] == [("task", "Planning", "Review")]


def test_changing_start_time(entry, sample_day):
    text = render_edit_file(entry).replace("T09:00:00", "T08:15:00")
    edited = parse_edit_file(entry, text)

    assert edited.start == local(sample_day, 8, 15)
    assert [change.field for change in diff_entries(entry, edited)] == ["start"]


def test_empty_value_keeps_original(entry):
    text = render_edit_file(entry).replace("Project: Acme", "Project: ")
    assert parse_edit_file(entry, text).project == "Acme"


def test_labels_may_contain_hash(entry):
    hashed = entry.model_copy(update={"project": "C# tooling"})
    edited = parse_edit_file(hashed, render_edit_file(hashed))
    assert edited.project == "C# tooling"


def test_changed_id_is_rejected(entry):
    text = render_edit_file(entry).replace(entry.id, "another-id")
    with pytest.raises(EntryValidationError, match="ID is not the same"):
        parse_edit_file(entry, text)


def test_end_before_start_is_rejected(entry):
    text = render_edit_file(entry).replace("T10:30:00", "T08:30:00")
    with pytest.raises(EntryValidationError):
        parse_edit_file(entry, text)


def test_unparsable_time_is_rejected(entry):
    text = render_edit_file(entry).replace("2024-01-01T09:00:00+01:00", "yesterday morning")
    with pytest.raises(EntryValidationError, match="Invalid start time"):
        parse_edit_file(entry, text)
