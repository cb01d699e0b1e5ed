"""HTTP client for the Clockify time-entry API."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional
from urllib.parse import urljoin

import requests

from .config import settings
from .errors import ClockifyApiError, UnsupportedOperationError
from .schemas import ClockifyTimeEntryCreated, ClockifyTimeEntryPayload, TimeEntryRecord

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ClockifyCredentials:
    """API key and workspace used for every request."""

    api_key: str
    workspace_id: str


class ClockifyApiClient:
    """Wraps the Clockify calls this tool needs."""

    def __init__(
        self,
        credentials: ClockifyCredentials,
        base_url: Optional[str] = None,
        project_id: Optional[str] = None,
        task_id: Optional[str] = None,
        timeout: Optional[int] = None,
    ) -> None:
        self.credentials = credentials
        self.base_url = (base_url or settings.clockify_base_url).rstrip("/") + "/"
        self.project_id = project_id if project_id is not None else settings.clockify_project_id
        self.task_id = task_id if task_id is not None else settings.clockify_task_id
        self.timeout = timeout if timeout is not None else settings.clockify_timeout

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _headers(self) -> dict[str, str]:
        return {
            "Accept": "application/json",
            "X-Api-Key": self.credentials.api_key,
        }

    def _time_entries_path(self, clockify_id: Optional[str] = None) -> str:
        path = f"workspaces/{self.credentials.workspace_id}/time-entries"
        if clockify_id:
            path = f"{path}/{clockify_id}"
        return path

    def _request(self, method: str, path: str, expected: Iterable[int], **kwargs) -> requests.Response:
        url = urljoin(self.base_url, path.lstrip("/"))
        kwargs.setdefault("timeout", self.timeout)
        headers = kwargs.setdefault("headers", {})
        headers.update(self._headers())
        logger.debug("%s %s", method, url)
        try:
            response = requests.request(method, url, **kwargs)
        except requests.RequestException as exc:
            raise ClockifyApiError(f"Clockify request failed: {exc}") from exc

        if response.status_code not in set(expected):
            raise ClockifyApiError(
                f"Clockify returned {response.status_code}: {response.text}",
                response=response,
            )
        return response

    # ------------------------------------------------------------------
    # Time entries
    # ------------------------------------------------------------------
    def create_time_entry(self, entry: TimeEntryRecord) -> str:
        """Upload ``entry`` and return the Clockify id of the new time entry."""
        payload = ClockifyTimeEntryPayload.from_entry(entry, self.project_id, self.task_id)
        response = self._request(
            "POST",
            self._time_entries_path(),
            expected=(201,),
            json=payload.model_dump(mode="json"),
        )
        try:
            created = ClockifyTimeEntryCreated.model_validate(response.json())
        except ValueError as exc:
            raise ClockifyApiError(f"Unexpected Clockify response: {response.text}", response=response) from exc
        return created.id

    def delete_time_entry(self, clockify_id: str) -> None:
        self._request("DELETE", self._time_entries_path(clockify_id), expected=(200, 204))

    def update_time_entry(self, clockify_id: str, entry: TimeEntryRecord) -> None:
        raise UnsupportedOperationError(
            f"Updating Clockify time entry {clockify_id} is not supported"
        )


__all__ = ["ClockifyApiClient", "ClockifyCredentials"]
