"""FastAPI entrypoint exposing the editor project library."""

from __future__ import annotations

from dotenv import load_dotenv

load_dotenv()

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel, Field
from supabase import AsyncClient, acreate_client

from .autosave import SAVED_STATUS_DELAY
from .config import EditorSettings
from .library import ProjectLibrary
from .local_cache import LocalProjectCache, VideoBlob
from .local_cache.base import DEFAULT_VIDEO_MIME_TYPE, DEFAULT_VIDEO_NAME
from .project_state import EditorProject
from .remote import (
    CurrentUser,
    MemoryProjectTable,
    ProjectTable,
    RemoteProjectStore,
    StaticUserResolver,
    SupabaseProjectTable,
    SupabaseUserResolver,
    UserResolver,
)
from .thumbnails import FfmpegThumbnailGenerator, ThumbnailGenerator

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class EditorServices:
    """Long-lived collaborators shared by every request."""

    def __init__(
        self,
        settings: EditorSettings,
        table: ProjectTable,
        local: LocalProjectCache,
        thumbnails: ThumbnailGenerator | None = None,
        supabase: AsyncClient | None = None,
    ) -> None:
        self.settings = settings
        self.table = table
        self.local = local
        self.thumbnails = thumbnails
        self.supabase = supabase

    def resolver_for(self, access_token: str | None) -> UserResolver:
        if self.supabase is not None:
            return SupabaseUserResolver(self.supabase, access_token)
        if self.settings.dev_user_id:
            return StaticUserResolver(CurrentUser(id=self.settings.dev_user_id))
        return StaticUserResolver(None)

    def library_for(self, access_token: str | None) -> ProjectLibrary:
        store = RemoteProjectStore(self.table, self.resolver_for(access_token))
        return ProjectLibrary(store, self.local, self.thumbnails)


async def create_services(settings: EditorSettings) -> EditorServices:
    """Wire the stores from settings; no Supabase means development mode."""
    client: AsyncClient | None = None
    table: ProjectTable
    if settings.supabase_configured:
        client = await acreate_client(settings.supabase_url, settings.supabase_key)
        table = SupabaseProjectTable(client, settings.projects_table)
    else:
        logger.warning("[API] Supabase not configured, using in-memory project table")
        table = MemoryProjectTable()
    local = LocalProjectCache.open(settings.cache_db_path, settings.fallback_path)
    thumbnails = FfmpegThumbnailGenerator(settings.ffmpeg_path)
    return EditorServices(settings, table, local, thumbnails, client)


_services: EditorServices | None = None


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    global _services
    _services = await create_services(EditorSettings.from_env())
    yield
    _services = None


app = FastAPI(title="AI Editor Projects API", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


class RenameRequest(BaseModel):
    title: str = Field(..., min_length=1, description="New project title")


def get_services() -> EditorServices:
    """Dependency to get the shared editor services."""
    if _services is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Editor services are not initialised",
        )
    return _services


def _bearer_token(request: Request) -> str | None:
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() == "bearer" and token:
        return token
    return None


async def get_library(
    request: Request, services: EditorServices = Depends(get_services)
) -> ProjectLibrary:
    """Dependency building a library scoped to the caller's session."""
    library = services.library_for(_bearer_token(request))
    if not await library.remote.is_user_authenticated():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not signed in")
    return library


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok"}


@app.get("/autosave-config")
async def autosave_config(services: EditorServices = Depends(get_services)) -> dict[str, float]:
    """Timer settings for editor clients running their own autosave loop."""
    return {
        "interval": services.settings.autosave_interval,
        "debounce": services.settings.autosave_debounce,
        "savedStatusDelay": SAVED_STATUS_DELAY,
    }


@app.get("/projects")
async def list_projects(library: ProjectLibrary = Depends(get_library)) -> dict[str, Any]:
    projects = await library.list_projects()
    return {"projects": [project.to_payload() for project in projects]}


@app.post("/projects", status_code=status.HTTP_201_CREATED)
async def create_project(library: ProjectLibrary = Depends(get_library)) -> dict[str, Any]:
    project = await library.remote.create_project()
    if project is None:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to create project")
    return {"project": project.to_payload()}


@app.get("/projects/{project_id}")
async def read_project(
    project_id: str, library: ProjectLibrary = Depends(get_library)
) -> dict[str, Any]:
    opened = await library.open_project(project_id)
    if opened is None:
        raise HTTPException(status_code=404, detail=f"Project not found: {project_id}")
    return {
        "project": opened.project.to_payload(),
        "source": opened.source,
        "hasCachedVideo": opened.video is not None,
    }


@app.put("/projects/{project_id}")
async def save_project(
    project_id: str,
    project: EditorProject,
    library: ProjectLibrary = Depends(get_library),
) -> dict[str, bool]:
    """Persist the full editor document (last write wins)."""
    if project.id != project_id:
        raise HTTPException(status_code=400, detail="Project id does not match the URL")
    if not await library.remote.save_project(project):
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to save project")
    await library.local.put_project(project)
    return {"saved": True}


@app.patch("/projects/{project_id}")
async def rename_project(
    project_id: str,
    body: RenameRequest,
    library: ProjectLibrary = Depends(get_library),
) -> dict[str, str]:
    title = body.title.strip()
    if not title:
        raise HTTPException(status_code=400, detail="Title must not be blank")
    if not await library.rename_project(project_id, title):
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to rename project")
    return {"status": "ok", "title": title}


@app.post("/projects/{project_id}/duplicate", status_code=status.HTTP_201_CREATED)
async def duplicate_project(
    project_id: str, library: ProjectLibrary = Depends(get_library)
) -> dict[str, Any]:
    duplicate = await library.duplicate_project(project_id)
    if duplicate is None:
        raise HTTPException(status_code=404, detail=f"Project not found: {project_id}")
    return {"project": duplicate.to_payload()}


@app.delete("/projects/{project_id}")
async def delete_project(
    project_id: str, library: ProjectLibrary = Depends(get_library)
) -> dict[str, str]:
    if not await library.delete_project(project_id):
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to delete project")
    return {"status": "ok"}


@app.put("/projects/{project_id}/video")
async def upload_video(
    project_id: str,
    request: Request,
    name: str = DEFAULT_VIDEO_NAME,
    library: ProjectLibrary = Depends(get_library),
) -> dict[str, str]:
    """Cache the raw source video for a project in the local store."""
    data = await request.body()
    if not data:
        raise HTTPException(status_code=400, detail="Empty upload body")
    mime_type = request.headers.get("Content-Type") or DEFAULT_VIDEO_MIME_TYPE
    await library.cache_video(project_id, VideoBlob(data=data, name=name, mime_type=mime_type))
    return {"status": "ok"}


@app.get("/projects/{project_id}/video")
async def read_video(
    project_id: str, library: ProjectLibrary = Depends(get_library)
) -> Response:
    blob = await library.cached_video(project_id)
    if blob is None:
        raise HTTPException(status_code=404, detail=f"No cached video for {project_id}")
    return Response(
        content=blob.data,
        media_type=blob.mime_type,
        headers={"Content-Disposition": f'inline; filename="{blob.name}"'},
    )
