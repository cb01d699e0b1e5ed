import logging

from timetracker.config import Settings
from timetracker.observability import setup_logging


def test_database_path_defaults_to_data_dir(tmp_path):
    configured = Settings(_env_file=None, data_dir=tmp_path, db_path=None)
    assert configured.database_path == tmp_path / "timetracker.db"

    explicit = Settings(_env_file=None, data_dir=tmp_path, db_path=tmp_path / "other.db")
    assert explicit.database_path == tmp_path / "other.db"


def test_blank_values_are_unset(tmp_path):
    configured = Settings(_env_file=None, data_dir=tmp_path, timezone=" ", clockify_api_key="")
    assert configured.timezone is None
    assert configured.clockify_api_key is None


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("TT_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("TT_CLOCKIFY_TIMEOUT", "3")
    configured = Settings(_env_file=None)
    assert configured.data_dir == tmp_path
    assert configured.clockify_timeout == 3


def test_setup_logging_replaces_handler():
    setup_logging("INFO")
    setup_logging("DEBUG")

    logger = logging.getLogger("timetracker")
    handlers = [handler for handler in logger.handlers if getattr(handler, "_timetracker", False)]
    assert len(handlers) == 1
    assert logger.level == logging.DEBUG
