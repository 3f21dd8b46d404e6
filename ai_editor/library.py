"""Project library: the editor's project manager over both stores."""

from __future__ import annotations

import logging
import mimetypes
import uuid
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel

from .local_cache import LocalProjectCache, VideoBlob
from .local_cache.base import DEFAULT_VIDEO_MIME_TYPE
from .project_state import EditorProject, create_new_project
from .remote import RemoteProjectStore
from .thumbnails import ThumbnailGenerator

logger = logging.getLogger(__name__)


class OpenedProject(BaseModel):
    """A project ready for the editor, with its cached source video if any."""

    project: EditorProject
    video: VideoBlob | None = None
    source: str = "remote"


class ProjectLibrary:
    """List, create, open, rename, duplicate and delete editor projects.

    The remote store is used whenever a user is signed in; the local cache
    serves signed-out sessions, keeps source videos, and is the fallback
    when the remote copy cannot be read.
    """

    def __init__(
        self,
        remote: RemoteProjectStore,
        local: LocalProjectCache,
        thumbnails: ThumbnailGenerator | None = None,
    ) -> None:
        self.remote = remote
        self.local = local
        self.thumbnails = thumbnails

    async def list_projects(self) -> list[EditorProject]:
        if await self.remote.is_user_authenticated():
            return await self.remote.list_projects()
        return await self.local.list_projects()

    async def create_from_video(self, video_path: Path) -> EditorProject:
        """Start a project from a source video file.

        The project is persisted right away with an empty layer set, and the
        raw video is cached locally so later sessions need not re-upload it.
        """
        video_path = Path(video_path)
        data = video_path.read_bytes()
        project = await self.remote.create_project()
        signed_in = project is not None
        if project is None:
            project = create_new_project()

        project.video_url = video_path.resolve().as_uri()
        if self.thumbnails is not None:
            thumbnail = await self.thumbnails.generate(str(video_path))
            if thumbnail:
                project.thumbnail = thumbnail

        if signed_in:
            await self.remote.save_project(project)
        await self.local.put_project(project.clone())

        mime_type, _ = mimetypes.guess_type(video_path.name)
        blob = VideoBlob(
            data=data,
            name=video_path.name,
            mime_type=mime_type or DEFAULT_VIDEO_MIME_TYPE,
        )
        await self.local.put_video_blob(project.id, blob)
        logger.info("[LIBRARY] created project %s from %s", project.id, video_path.name)
        return project

    async def open_project(self, project_id: str) -> OpenedProject | None:
        """Load a project, preferring the complete remote copy."""
        project = await self.remote.get_project(project_id)
        source = "remote"
        if project is not None:
            await self.local.put_project(project.clone(), touch=False)
        else:
            project = await self.local.get_project(project_id)
            source = "local"
        if project is None:
            return None
        video = await self.local.get_video_blob(project_id)
        return OpenedProject(project=project, video=video, source=source)

    async def rename_project(self, project_id: str, new_title: str) -> bool:
        if await self.remote.is_user_authenticated():
            return await self.remote.rename_project(project_id, new_title)
        project = await self.local.get_project(project_id)
        if project is None:
            return False
        project.title = new_title
        await self.local.put_project(project)
        return True

    async def duplicate_project(self, project_id: str) -> EditorProject | None:
        if await self.remote.is_user_authenticated():
            return await self.remote.duplicate_project(project_id)
        original = await self.local.get_project(project_id)
        if original is None:
            return None
        now = datetime.now(UTC)
        duplicate = original.model_copy(
            deep=True,
            update={
                "id": str(uuid.uuid4()),
                "title": f"{original.title} (Copy)",
                "created_at": now,
                "updated_at": now,
            },
        )
        await self.local.put_project(duplicate)
        return duplicate

    async def delete_project(self, project_id: str) -> bool:
        """Delete the remote row, the cached video and the cached document."""
        deleted = True
        if await self.remote.is_user_authenticated():
            deleted = await self.remote.delete_project(project_id)
        await self.local.delete_video_blob(project_id)
        await self.local.delete_project(project_id)
        return deleted

    async def cache_video(self, project_id: str, blob: VideoBlob) -> None:
        await self.local.put_video_blob(project_id, blob)

    async def cached_video(self, project_id: str) -> VideoBlob | None:
        return await self.local.get_video_blob(project_id)
