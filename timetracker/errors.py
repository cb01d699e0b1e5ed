"""Error hierarchy shared by the store, the state machine and the Clockify adapter."""

from __future__ import annotations

from typing import Optional

import requests


class TimeTrackerError(Exception):
    """Base class for every failure the CLI reports to the user."""


class StorageError(TimeTrackerError):
    """The local database could not be opened, read or written."""


class EntryValidationError(TimeTrackerError):
    """Input was rejected before anything was written."""


class NotFoundError(TimeTrackerError):
    """The requested record does not exist."""


class NotConfiguredError(TimeTrackerError):
    """Clockify credentials are missing."""


class UnsupportedOperationError(TimeTrackerError):
    """The remote service operation is not available in this client."""


class ClockifyApiError(TimeTrackerError):
    """A Clockify request failed at the transport level or returned an unexpected status."""

    def __init__(self, message: str, *, response: Optional[requests.Response] = None) -> None:
        super().__init__(message)
        self.response = response


__all__ = [
    "TimeTrackerError",
    "StorageError",
    "EntryValidationError",
    "NotFoundError",
    "NotConfiguredError",
    "UnsupportedOperationError",
    "ClockifyApiError",
]
