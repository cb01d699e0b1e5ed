"""Logging setup for the command line process.

Command output goes to stdout through rich; log records go to stderr so they
never mix with tables a user may pipe elsewhere.
"""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"


def setup_logging(level: str = "WARNING") -> None:
    """Configure the package logger; a repeated call replaces the previous handler."""
    logger = logging.getLogger("timetracker")
    for handler in list(logger.handlers):
        if getattr(handler, "_timetracker", False):
            logger.removeHandler(handler)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._timetracker = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
