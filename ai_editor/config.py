"""Runtime settings for the editor project service, read from the environment."""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field

_PROJECT_ROOT = Path(__file__).resolve().parent.parent


class EditorSettings(BaseModel):
    """Settings for the stores, the autosave timers and thumbnail capture."""

    supabase_url: str | None = Field(None, description="Supabase project URL")
    supabase_key: str | None = Field(None, description="Supabase anon or service key")
    projects_table: str = Field("ai_editor_projects", description="Remote projects table")
    data_dir: Path = Field(_PROJECT_ROOT / "data", description="Local cache directory")
    dev_user_id: str | None = Field(
        None, description="Static user for development mode without Supabase"
    )
    autosave_interval: float = Field(30.0, gt=0, description="Seconds between interval saves")
    autosave_debounce: float = Field(2.0, gt=0, description="Quiet seconds before a change save")
    ffmpeg_path: str = Field("ffmpeg", description="ffmpeg executable for thumbnails")

    @property
    def cache_db_path(self) -> Path:
        return self.data_dir / "editor_cache.db"

    @property
    def fallback_path(self) -> Path:
        return self.data_dir / "editor_projects.json"

    @property
    def supabase_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)

    @classmethod
    def from_env(cls) -> EditorSettings:
        """Build settings from environment variables, keeping defaults for unset ones."""
        values: dict[str, object] = {
            "supabase_url": os.environ.get("SUPABASE_URL"),
            "supabase_key": os.environ.get("SUPABASE_KEY")
            or os.environ.get("SUPABASE_ANON_KEY"),
            "dev_user_id": os.environ.get("AI_EDITOR_DEV_USER_ID"),
        }
        optional = {
            "projects_table": "AI_EDITOR_PROJECTS_TABLE",
            "data_dir": "AI_EDITOR_DATA_DIR",
            "autosave_interval": "AI_EDITOR_AUTOSAVE_INTERVAL",
            "autosave_debounce": "AI_EDITOR_AUTOSAVE_DEBOUNCE",
            "ffmpeg_path": "FFMPEG_PATH",
        }
        for field_name, env_name in optional.items():
            value = os.environ.get(env_name)
            if value:
                values[field_name] = value
        return cls.model_validate(values)
