"""SQLite-backed local cache: one versioned database with two keyed tables."""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from pathlib import Path
from typing import Callable, TypeVar

from pydantic import ValidationError

from ..exceptions import CacheBackendError
from ..project_state import EditorProject
from .base import DEFAULT_VIDEO_MIME_TYPE, DEFAULT_VIDEO_NAME, CacheBackend, VideoBlob

logger = logging.getLogger(__name__)

T = TypeVar("T")

DB_VERSION = 2

# Upgrades only ever add tables so previously cached projects survive.
_MIGRATIONS = {
    1: """
        CREATE TABLE IF NOT EXISTS projects (
            id TEXT PRIMARY KEY,
            document TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
    """,
    2: """
        CREATE TABLE IF NOT EXISTS video_files (
            project_id TEXT PRIMARY KEY,
            data BLOB,
            name TEXT,
            mime_type TEXT
        )
    """,
}


class SqliteCacheBackend(CacheBackend):
    """Preferred local engine; blocking calls run in a worker thread."""

    backend_name = "sqlite"
    supports_blobs = True

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self._initialized = False

    def _db(self) -> sqlite3.Connection:
        con = sqlite3.connect(self.db_path)
        con.row_factory = sqlite3.Row
        return con

    def _migrate(self, con: sqlite3.Connection) -> None:
        version = con.execute("PRAGMA user_version").fetchone()[0]
        for step in range(version + 1, DB_VERSION + 1):
            con.execute(_MIGRATIONS[step])
            con.execute(f"PRAGMA user_version = {step}")
        con.commit()

    def _init_db(self) -> None:
        if self._initialized:
            return
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        con = self._db()
        try:
            self._migrate(con)
        finally:
            con.close()
        self._initialized = True

    def is_available(self) -> bool:
        try:
            self._init_db()
        except (sqlite3.Error, OSError) as exc:
            logger.warning("[LOCAL] sqlite cache unavailable at %s: %s", self.db_path, exc)
            return False
        return True

    async def _run(self, operation: Callable[[sqlite3.Connection], T]) -> T:
        def work() -> T:
            self._init_db()
            con = self._db()
            try:
                result = operation(con)
                con.commit()
                return result
            finally:
                con.close()

        try:
            return await asyncio.to_thread(work)
        except (sqlite3.Error, OSError) as exc:
            raise CacheBackendError(self.backend_name, str(exc)) from exc

    def _parse(self, project_id: str, document: str) -> EditorProject | None:
        try:
            return EditorProject.model_validate_json(document)
        except ValidationError:
            logger.warning("[LOCAL] skipping unreadable cached project %s", project_id)
            return None

    async def list_projects(self) -> list[EditorProject]:
        rows = await self._run(
            lambda con: con.execute("SELECT id, document FROM projects").fetchall()
        )
        projects = [self._parse(row["id"], row["document"]) for row in rows]
        return [project for project in projects if project is not None]

    async def get_project(self, project_id: str) -> EditorProject | None:
        row = await self._run(
            lambda con: con.execute(
                "SELECT id, document FROM projects WHERE id = ?", (project_id,)
            ).fetchone()
        )
        if row is None:
            return None
        return self._parse(row["id"], row["document"])

    async def put_project(self, project: EditorProject) -> None:
        document = project.model_dump_json(by_alias=True)
        updated_at = project.updated_at.isoformat()
        await self._run(
            lambda con: con.execute(
                "INSERT OR REPLACE INTO projects (id, document, updated_at) VALUES (?, ?, ?)",
                (project.id, document, updated_at),
            )
        )

    async def delete_project(self, project_id: str) -> None:
        await self._run(
            lambda con: con.execute("DELETE FROM projects WHERE id = ?", (project_id,))
        )

    async def put_video_blob(self, project_id: str, blob: VideoBlob) -> None:
        await self._run(
            lambda con: con.execute(
                "INSERT OR REPLACE INTO video_files (project_id, data, name, mime_type) "
                "VALUES (?, ?, ?, ?)",
                (project_id, sqlite3.Binary(blob.data), blob.name, blob.mime_type),
            )
        )

    async def get_video_blob(self, project_id: str) -> VideoBlob | None:
        row = await self._run(
            lambda con: con.execute(
                "SELECT data, name, mime_type FROM video_files WHERE project_id = ?",
                (project_id,),
            ).fetchone()
        )
        if row is None or row["data"] is None:
            return None
        # Rows written without metadata are re-wrapped with the defaults.
        return VideoBlob(
            data=bytes(row["data"]),
            name=row["name"] or DEFAULT_VIDEO_NAME,
            mime_type=row["mime_type"] or DEFAULT_VIDEO_MIME_TYPE,
        )

    async def delete_video_blob(self, project_id: str) -> None:
        await self._run(
            lambda con: con.execute(
                "DELETE FROM video_files WHERE project_id = ?", (project_id,)
            )
        )
