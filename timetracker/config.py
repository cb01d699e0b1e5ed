from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from pydantic import computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_DATA_DIR = Path.home() / ".time-tracker"
DEFAULT_CLOCKIFY_PROJECT_ID = "65ba4da699f4432f69476fef"


class Settings(BaseSettings):
    """Runtime configuration, read from ``TT_*`` environment variables or a local ``.env``."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="TT_", case_sensitive=False, extra="ignore")

    data_dir: Path = DEFAULT_DATA_DIR
    db_path: Optional[Path] = None

    timezone: Optional[str] = None
    log_level: str = "WARNING"
    editor: str = os.getenv("EDITOR") or "vim"

    clockify_base_url: str = "https://api.clockify.me/api/v1"
    clockify_project_id: str = DEFAULT_CLOCKIFY_PROJECT_ID
    clockify_task_id: Optional[str] = None
    clockify_api_key: Optional[str] = None
    clockify_workspace_id: Optional[str] = None
    clockify_timeout: int = 15

    edit_candidates: int = 100
    project_suggestions: int = 100
    task_suggestions: int = 10

    @field_validator("timezone", "clockify_task_id", "clockify_api_key", "clockify_workspace_id", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("data_dir", "db_path", mode="after")
    @classmethod
    def _expand_path(cls, value: Optional[Path]) -> Optional[Path]:
        if value is None:
            return None
        return value.expanduser()

    @computed_field
    @property
    def database_path(self) -> Path:
        if self.db_path is not None:
            return self.db_path
        return self.data_dir / "timetracker.db"


settings = Settings()
