"""Abstract base class for local cache engines."""

from abc import ABC, abstractmethod

from pydantic import BaseModel, Field

from ..project_state import EditorProject

DEFAULT_VIDEO_NAME = "video.mp4"
DEFAULT_VIDEO_MIME_TYPE = "video/mp4"


class VideoBlob(BaseModel):
    """Raw source video cached for a project."""

    data: bytes = Field(..., description="Video file contents")
    name: str = Field(DEFAULT_VIDEO_NAME, description="Original file name")
    mime_type: str = Field(DEFAULT_VIDEO_MIME_TYPE, description="Video MIME type")


class CacheBackend(ABC):
    """Keyed storage for project documents and raw video blobs.

    Implementations raise CacheBackendError on engine failure. Projects and
    blobs are both keyed by project id.
    """

    backend_name: str = "base"
    supports_blobs: bool = True

    @abstractmethod
    def is_available(self) -> bool:
        """Probe whether the engine can be used at all."""
        ...

    @abstractmethod
    async def list_projects(self) -> list[EditorProject]:
        """Return every cached project, in no particular order."""
        ...

    @abstractmethod
    async def get_project(self, project_id: str) -> EditorProject | None:
        ...

    @abstractmethod
    async def put_project(self, project: EditorProject) -> None:
        """Insert or replace the project stored under project.id."""
        ...

    @abstractmethod
    async def delete_project(self, project_id: str) -> None:
        """Remove a project; unknown ids are ignored."""
        ...

    @abstractmethod
    async def put_video_blob(self, project_id: str, blob: VideoBlob) -> None:
        ...

    @abstractmethod
    async def get_video_blob(self, project_id: str) -> VideoBlob | None:
        ...

    @abstractmethod
    async def delete_video_blob(self, project_id: str) -> None:
        ...
