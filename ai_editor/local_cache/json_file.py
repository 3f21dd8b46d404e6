"""Flat JSON file fallback for cached projects.

The whole collection lives under a single key and is rewritten on every
change. Video blobs are too large for this medium and are not stored.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ..exceptions import CacheBackendError
from ..project_state import EditorProject
from .base import CacheBackend, VideoBlob

logger = logging.getLogger(__name__)

STORAGE_KEY = "ai_editor_projects"


class JsonFileCacheBackend(CacheBackend):
    backend_name = "json_file"
    supports_blobs = False

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = asyncio.Lock()

    def is_available(self) -> bool:
        return True

    def _load(self) -> list[dict[str, Any]]:
        if not self.path.exists():
            return []
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            # Bad JSON or non-UTF-8 bytes.
            return []
        if not isinstance(payload, dict):
            return []
        projects = payload.get(STORAGE_KEY)
        if not isinstance(projects, list):
            return []
        return [p for p in projects if isinstance(p, dict)]

    def _persist(self, projects: list[dict[str, Any]]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps({STORAGE_KEY: projects}, indent=2), encoding="utf-8")
        except OSError as exc:
            raise CacheBackendError(self.backend_name, str(exc)) from exc

    def _parse_all(self) -> list[EditorProject]:
        projects: list[EditorProject] = []
        for data in self._load():
            try:
                projects.append(EditorProject.from_payload(data))
            except ValidationError:
                continue
        return projects

    async def list_projects(self) -> list[EditorProject]:
        async with self._lock:
            return self._parse_all()

    async def get_project(self, project_id: str) -> EditorProject | None:
        async with self._lock:
            for project in self._parse_all():
                if project.id == project_id:
                    return project
            return None

    async def put_project(self, project: EditorProject) -> None:
        async with self._lock:
            projects = self._load()
            payload = project.to_payload()
            for idx, existing in enumerate(projects):
                if existing.get("id") == project.id:
                    projects[idx] = payload
                    break
            else:
                projects.append(payload)
            self._persist(projects)

    async def delete_project(self, project_id: str) -> None:
        async with self._lock:
            projects = self._load()
            remaining = [p for p in projects if p.get("id") != project_id]
            if len(remaining) != len(projects):
                self._persist(remaining)

    async def put_video_blob(self, project_id: str, blob: VideoBlob) -> None:
        return None

    async def get_video_blob(self, project_id: str) -> VideoBlob | None:
        return None

    async def delete_video_blob(self, project_id: str) -> None:
        return None
