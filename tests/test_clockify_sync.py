from typing import Any

import pytest
import requests

from conftest import local
from timetracker import services
from timetracker.api_client import ClockifyApiClient, ClockifyCredentials
from timetracker.config import settings
from timetracker.errors import (
    ClockifyApiError,
    EntryValidationError,
    NotConfiguredError,
    UnsupportedOperationError,
)
from timetracker.schemas import ClockifyTimeEntryPayload, TimeEntryRecord
from timetracker.sync import (
    ACTION_CREATE,
    ACTION_DELETE,
    ACTION_UPDATE,
    STATUS_FAILED,
    STATUS_OK,
    STATUS_UNSUPPORTED,
    delete_config,
    get_config,
    resolve_credentials,
    set_config,
    upload_range,
)

BASE_URL = "https://clockify.test/api/v1"


class FakeResponse:
    def __init__(self, status_code: int, payload: Any = None, text: str = ""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("no json body")
        return self._payload


class FakeRequests:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls: list[tuple[str, str, dict]] = []

    def __call__(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture()
def fake_requests(monkeypatch):
    def _install(*responses) -> FakeRequests:
        fake = FakeRequests(*responses)
        monkeypatch.setattr("timetracker.api_client.requests.request", fake)
        return fake

    return _install


@pytest.fixture()
def client() -> ClockifyApiClient:
    return ClockifyApiClient(
        ClockifyCredentials(api_key="secret", workspace_id="ws-1"),
        base_url=BASE_URL,
        project_id="project-1",
    )


def test_payload_format(sample_day):
    entry = TimeEntryRecord(
        id="entry-1",
        project="Acme",
        task="Planning",
        start=local(sample_day, 9),
        end=local(sample_day, 10, 30),
    )
    payload = ClockifyTimeEntryPayload.from_entry(entry, "project-1")

    assert payload.model_dump(mode="json") == {
        "start": "2024-01-01T08:00:00Z",
        "end": "2024-01-01T09:30:00Z",
        "description": "Acme - Planning",
        "projectId": "project-1",
        "taskId": None,
    }


def test_upload_creates_remote_entries(store, tracking, add_entry, client, fake_requests, sample_day):
    first = add_entry("Acme", "Planning", local(sample_day, 9), local(sample_day, 10))
    second = add_entry("Acme", "Review", local(sample_day, 11), local(sample_day, 12))
    fake = fake_requests(FakeResponse(201, {"id": "remote-1"}), FakeResponse(201, {"id": "remote-2"}))

    report = upload_range(store, sample_day, sample_day, client)

    assert not report.aborted
    assert report.count(ACTION_CREATE) == 2
    assert tracking.get_time_entry(first.id).clockify_id == "remote-1"
    assert tracking.get_time_entry(second.id).clockify_id == "remote-2"

    method, url, kwargs = fake.calls[0]
    assert method == "POST"
    assert url == f"{BASE_URL}/workspaces/ws-1/time-entries"
    assert kwargs["headers"]["X-Api-Key"] == "secret"
    assert kwargs["timeout"] == settings.clockify_timeout
    assert kwargs["json"]["description"] == "Acme - Planning"
    assert kwargs["json"]["projectId"] == "project-1"


def test_failed_request_aborts_upload(store, tracking, add_entry, client, fake_requests, sample_day):
    first = add_entry("Acme", "Planning", local(sample_day, 9), local(sample_day, 10))
    second = add_entry("Acme", "Review", local(sample_day, 11), local(sample_day, 12))
    third = add_entry("Acme", "Support", local(sample_day, 13), local(sample_day, 14))
    fake = fake_requests(FakeResponse(201, {"id": "remote-1"}), FakeResponse(500, text="boom"))

    report = upload_range(store, sample_day, sample_day, client)

    assert report.aborted
    assert len(fake.calls) == 2
    assert [outcome.status for outcome in report.outcomes] == [STATUS_OK, STATUS_FAILED]
    assert "500" in report.failed[0].detail
    assert tracking.get_time_entry(first.id) is not None
    assert tracking.get_time_entry(second.id) is None
    assert tracking.get_time_entry(third.id) is None


def test_transport_error_is_reported(store, tracking, add_entry, client, fake_requests, sample_day):
    entry = add_entry("Acme", "Planning", local(sample_day, 9), local(sample_day, 10))
    fake_requests(requests.ConnectionError("unreachable"))

    report = upload_range(store, sample_day, sample_day, client)

    assert report.aborted
    assert report.outcomes[0].action == ACTION_CREATE
    assert "unreachable" in report.outcomes[0].detail
    assert tracking.get_time_entry(entry.id) is None


def test_uploaded_entry_reports_unsupported_update(store, tracking, add_entry, client, fake_requests, sample_day):
    entry = add_entry("Acme", "Planning", local(sample_day, 9), local(sample_day, 10))
    tracking.insert_time_entry(entry.id, "remote-1")
    fake = fake_requests()

    report = upload_range(store, sample_day, sample_day, client)

    assert fake.calls == []
    assert not report.aborted
    assert report.count(ACTION_UPDATE, STATUS_UNSUPPORTED) == 1
    assert report.outcomes[0].clockify_id == "remote-1"


def test_update_is_unsupported(client, sample_day):
    entry = TimeEntryRecord(
        id="entry-1",
        project="Acme",
        task="Planning",
        start=local(sample_day, 9),
        end=local(sample_day, 10),
    )
    with pytest.raises(UnsupportedOperationError):
        client.update_time_entry("remote-1", entry)


def test_locally_deleted_entries_are_purged(store, tracking, add_entry, client, fake_requests, sample_day):
    entry = add_entry("Acme", "Planning", local(sample_day, 9), local(sample_day, 10))
    tracking.insert_time_entry(entry.id, "remote-1")
    services.delete_time_entry(store, tracking, entry.id)
    fake = fake_requests(FakeResponse(204))

    report = upload_range(store, sample_day, sample_day, client)

    assert report.count(ACTION_DELETE) == 1
    assert fake.calls[0][0] == "DELETE"
    assert fake.calls[0][1] == f"{BASE_URL}/workspaces/ws-1/time-entries/remote-1"
    assert tracking.get_time_entry(entry.id) is None
    assert tracking.list_deleted() == []


def test_flagged_tracking_record_is_deleted_remotely(store, tracking, add_entry, client, fake_requests, sample_day):
    entry = add_entry("Acme", "Planning", local(sample_day, 9), local(sample_day, 10))
    tracking.insert_time_entry(entry.id, "remote-1")
    assert tracking.mark_deleted(entry.id) == 1
    fake = fake_requests(FakeResponse(200))

    report = upload_range(store, sample_day, sample_day, client)

    assert len(fake.calls) == 1
    assert report.outcomes[0].action == ACTION_DELETE
    assert report.outcomes[0].status == STATUS_OK
    assert tracking.get_time_entry(entry.id) is None


def test_unexpected_status_keeps_response(client, fake_requests, sample_day):
    entry = TimeEntryRecord(
        id="entry-1",
        project="Acme",
        task="Planning",
        start=local(sample_day, 9),
        end=local(sample_day, 10),
    )
    fake_requests(FakeResponse(400, text="bad request"))

    with pytest.raises(ClockifyApiError) as excinfo:
        client.create_time_entry(entry)
    assert excinfo.value.response.status_code == 400


def test_created_response_without_id_is_an_error(client, fake_requests, sample_day):
    entry = TimeEntryRecord(
        id="entry-1",
        project="Acme",
        task="Planning",
        start=local(sample_day, 9),
        end=local(sample_day, 10),
    )
    fake_requests(FakeResponse(201, {"name": "no id"}))

    with pytest.raises(ClockifyApiError):
        client.create_time_entry(entry)


def test_upload_without_credentials(store, sample_day):
    with pytest.raises(NotConfiguredError):
        upload_range(store, sample_day, sample_day)


def test_stored_config_wins_over_settings(tracking, monkeypatch):
    monkeypatch.setattr(settings, "clockify_api_key", "env-key")
    monkeypatch.setattr(settings, "clockify_workspace_id", "env-ws")
    assert resolve_credentials(tracking) == ClockifyCredentials(api_key="env-key", workspace_id="env-ws")

    set_config(tracking, "stored-key", "stored-ws")
    assert resolve_credentials(tracking) == ClockifyCredentials(api_key="stored-key", workspace_id="stored-ws")


def test_config_set_get_delete(tracking):
    assert get_config(tracking) is None

    set_config(tracking, "key-1", "ws-1")
    set_config(tracking, "key-2", "ws-2")
    config = get_config(tracking)
    assert (config.api_key, config.workspace_id) == ("key-2", "ws-2")

    delete_config(tracking)
    assert get_config(tracking) is None
    with pytest.raises(NotConfiguredError):
        resolve_credentials(tracking)


def test_config_requires_values(tracking):
    with pytest.raises(EntryValidationError):
        set_config(tracking, "", "ws-1")
    assert get_config(tracking) is None
