"""Local project cache with transparent fallback between engines."""

from __future__ import annotations

import logging
from pathlib import Path

from ..exceptions import CacheBackendError
from ..project_state import EditorProject
from .base import CacheBackend, VideoBlob
from .json_file import JsonFileCacheBackend
from .sqlite import SqliteCacheBackend

logger = logging.getLogger(__name__)


class LocalProjectCache:
    """Best-effort cache of project documents and source videos.

    The preferred engine is probed once at construction. Project operations
    fall back to the secondary engine whenever the preferred one is missing
    or fails; video blob operations have no fallback and quietly do nothing.
    No method raises.
    """

    def __init__(self, preferred: CacheBackend | None, fallback: CacheBackend) -> None:
        if preferred is not None and not preferred.is_available():
            logger.warning(
                "[LOCAL] %s engine unavailable, using %s",
                preferred.backend_name,
                fallback.backend_name,
            )
            preferred = None
        self.preferred = preferred
        self.fallback = fallback

    @classmethod
    def open(cls, db_path: Path, fallback_path: Path) -> LocalProjectCache:
        return cls(SqliteCacheBackend(db_path), JsonFileCacheBackend(fallback_path))

    @property
    def blobs_enabled(self) -> bool:
        return self.preferred is not None and self.preferred.supports_blobs

    async def list_projects(self) -> list[EditorProject]:
        """Return cached projects, most recently updated first."""
        projects = await self._list()
        return sorted(projects, key=lambda p: p.updated_at, reverse=True)

    async def _list(self) -> list[EditorProject]:
        if self.preferred is not None:
            try:
                return await self.preferred.list_projects()
            except CacheBackendError as exc:
                logger.warning("[LOCAL] list failed, falling back: %s", exc)
        try:
            return await self.fallback.list_projects()
        except CacheBackendError as exc:
            logger.error("[LOCAL] fallback list failed: %s", exc)
            return []

    async def get_project(self, project_id: str) -> EditorProject | None:
        if self.preferred is not None:
            try:
                return await self.preferred.get_project(project_id)
            except CacheBackendError as exc:
                logger.warning("[LOCAL] get %s failed, falling back: %s", project_id, exc)
        try:
            return await self.fallback.get_project(project_id)
        except CacheBackendError as exc:
            logger.error("[LOCAL] fallback get %s failed: %s", project_id, exc)
            return None

    async def put_project(self, project: EditorProject, touch: bool = True) -> None:
        """Upsert the project, stamping its updated_at first.

        Pass touch=False to mirror a copy whose updated_at is already
        authoritative, such as a project just read from the remote store.
        """
        if touch:
            project.touch()
        if self.preferred is not None:
            try:
                await self.preferred.put_project(project)
                return
            except CacheBackendError as exc:
                logger.warning("[LOCAL] put %s failed, falling back: %s", project.id, exc)
        try:
            await self.fallback.put_project(project)
        except CacheBackendError as exc:
            logger.error("[LOCAL] fallback put %s failed: %s", project.id, exc)

    async def delete_project(self, project_id: str) -> None:
        if self.preferred is not None:
            try:
                await self.preferred.delete_project(project_id)
                return
            except CacheBackendError as exc:
                logger.warning("[LOCAL] delete %s failed, falling back: %s", project_id, exc)
        try:
            await self.fallback.delete_project(project_id)
        except CacheBackendError as exc:
            logger.error("[LOCAL] fallback delete %s failed: %s", project_id, exc)

    async def put_video_blob(self, project_id: str, blob: VideoBlob) -> None:
        if not self.blobs_enabled:
            return
        try:
            await self.preferred.put_video_blob(project_id, blob)
        except CacheBackendError as exc:
            logger.error("[LOCAL] failed to cache video for %s: %s", project_id, exc)

    async def get_video_blob(self, project_id: str) -> VideoBlob | None:
        if not self.blobs_enabled:
            return None
        try:
            return await self.preferred.get_video_blob(project_id)
        except CacheBackendError as exc:
            logger.warning("[LOCAL] failed to read cached video for %s: %s", project_id, exc)
            return None

    async def delete_video_blob(self, project_id: str) -> None:
        if not self.blobs_enabled:
            return
        try:
            await self.preferred.delete_video_blob(project_id)
        except CacheBackendError as exc:
            logger.warning("[LOCAL] failed to delete cached video for %s: %s", project_id, exc)
