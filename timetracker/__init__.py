"""Terminal time tracking with optional Clockify upload."""

__version__ = "0.1.0"
