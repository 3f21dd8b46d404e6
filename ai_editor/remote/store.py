"""Authoritative per-user project store backed by a remote table."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from typing import Callable, Literal

from pydantic import ValidationError

from ..exceptions import NotAuthenticatedError, ProjectStorageError
from ..project_state import EditorProject, create_new_project
from .auth import CurrentUser, UserResolver
from .tables import ProjectRow, ProjectTable

logger = logging.getLogger(__name__)

SaveStatus = Literal["idle", "saving", "saved", "error"]
StatusCallback = Callable[[SaveStatus], None]


def _notify(callback: StatusCallback | None, status: SaveStatus) -> None:
    if callback is not None:
        callback(status)


class RemoteProjectStore:
    """CRUD over the signed-in user's projects.

    Every method resolves the current user first and fails softly (False,
    None or an empty list) when there is none or when the table call fails;
    nothing is raised past this class.

    Saves are serialized per instance: while one write is in flight, further
    save requests replace a single pending snapshot, which is written once
    the in-flight write completes.
    """

    def __init__(self, table: ProjectTable, users: UserResolver) -> None:
        self.table = table
        self.users = users
        self.last_save_time: datetime | None = None
        self._save_in_progress = False
        self._pending_save: EditorProject | None = None

    @property
    def save_in_progress(self) -> bool:
        return self._save_in_progress

    async def _require_user(self, operation: str) -> CurrentUser:
        user = await self.users.get_current_user()
        if user is None:
            raise NotAuthenticatedError(operation)
        return user

    async def is_user_authenticated(self) -> bool:
        return await self.users.get_current_user() is not None

    def _to_projects(self, rows: list[ProjectRow]) -> list[EditorProject]:
        projects: list[EditorProject] = []
        for row in rows:
            try:
                projects.append(row.to_project())
            except ValidationError:
                logger.warning("[REMOTE] skipping unreadable project row %s", row.id)
        return projects

    async def list_projects(self) -> list[EditorProject]:
        """Return the user's projects, most recently updated first."""
        try:
            user = await self._require_user("list")
            rows = await self.table.select_for_user(user.id)
        except ProjectStorageError as exc:
            logger.warning("[REMOTE] error fetching projects: %s", exc)
            return []
        return self._to_projects(rows)

    async def get_project(self, project_id: str) -> EditorProject | None:
        try:
            user = await self._require_user("get")
            row = await self.table.select_one(project_id, user.id)
        except ProjectStorageError as exc:
            logger.warning("[REMOTE] error fetching project %s: %s", project_id, exc)
            return None
        if row is None:
            return None
        projects = self._to_projects([row])
        return projects[0] if projects else None

    async def create_project(self) -> EditorProject | None:
        """Create and insert an empty project owned by the current user."""
        try:
            user = await self._require_user("create")
            project = create_new_project()
            await self.table.insert(ProjectRow.from_project(project, user.id))
        except ProjectStorageError as exc:
            logger.error("[REMOTE] error creating project: %s", exc)
            return None
        logger.info("[REMOTE] created project %s", project.id)
        return project

    async def save_project(
        self,
        project: EditorProject,
        on_status_change: StatusCallback | None = None,
    ) -> bool:
        """Upsert the project, coalescing with any save already in flight.

        Returns True once the write succeeded or was queued behind the
        in-flight write, False when unauthenticated or the write failed.
        """
        # The slot is claimed before the first await so calls queue in call order.
        snapshot = project.clone()
        if self._save_in_progress:
            self._pending_save = snapshot
            logger.debug("[REMOTE] queued save of %s behind in-flight save", project.id)
            return True

        self._save_in_progress = True
        try:
            saved = await self._write(snapshot, on_status_change)
            while self._pending_save is not None:
                next_project, self._pending_save = self._pending_save, None
                saved = await self._write(next_project, on_status_change)
            return saved
        finally:
            self._save_in_progress = False

    async def _write(
        self,
        project: EditorProject,
        on_status_change: StatusCallback | None,
    ) -> bool:
        try:
            user = await self._require_user("save")
        except NotAuthenticatedError as exc:
            logger.error("[REMOTE] %s", exc)
            _notify(on_status_change, "error")
            return False

        row = ProjectRow.from_project(project, user.id)
        row.updated_at = datetime.now(UTC)
        _notify(on_status_change, "saving")
        try:
            await self.table.upsert(row)
        except ProjectStorageError as exc:
            logger.error("[REMOTE] error saving project %s: %s", project.id, exc)
            _notify(on_status_change, "error")
            return False
        self.last_save_time = row.updated_at
        _notify(on_status_change, "saved")
        return True

    async def delete_project(self, project_id: str) -> bool:
        try:
            user = await self._require_user("delete")
            await self.table.delete(project_id, user.id)
        except ProjectStorageError as exc:
            logger.error("[REMOTE] error deleting project %s: %s", project_id, exc)
            return False
        logger.info("[REMOTE] deleted project %s", project_id)
        return True

    async def duplicate_project(self, project_id: str) -> EditorProject | None:
        """Copy a project, with every layer, under a new id and title."""
        try:
            user = await self._require_user("duplicate")
            source_row = await self.table.select_one(project_id, user.id)
            if source_row is None:
                return None
            source = source_row.to_project()
            now = datetime.now(UTC)
            duplicate = source.model_copy(
                deep=True,
                update={
                    "id": str(uuid.uuid4()),
                    "title": f"{source.title} (Copy)",
                    "created_at": now,
                    "updated_at": now,
                },
            )
            await self.table.insert(ProjectRow.from_project(duplicate, user.id))
        except (ProjectStorageError, ValidationError) as exc:
            logger.error("[REMOTE] error duplicating project %s: %s", project_id, exc)
            return None
        logger.info("[REMOTE] duplicated project %s as %s", project_id, duplicate.id)
        return duplicate

    async def rename_project(self, project_id: str, new_title: str) -> bool:
        try:
            user = await self._require_user("rename")
            await self.table.update_title(project_id, user.id, new_title)
        except ProjectStorageError as exc:
            logger.error("[REMOTE] error renaming project %s: %s", project_id, exc)
            return False
        return True
