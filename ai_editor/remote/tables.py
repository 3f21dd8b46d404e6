"""Gateways to the remote ``ai_editor_projects`` table."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from typing import Any

import httpx
from postgrest.exceptions import APIError
from pydantic import BaseModel, Field, ValidationError, field_validator
from supabase import AsyncClient

from ..exceptions import RemoteStoreError
from ..project_state import EditorProject

logger = logging.getLogger(__name__)


class ProjectRow(BaseModel):
    """One row per project; the document lives in editor_state."""

    id: str
    user_id: str
    title: str
    thumbnail: str | None = None
    editor_state: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("editor_state", mode="before")
    @classmethod
    def _null_state_is_empty(cls, value: Any) -> Any:
        return {} if value is None else value

    @classmethod
    def from_project(cls, project: EditorProject, user_id: str) -> ProjectRow:
        return cls(
            id=project.id,
            user_id=user_id,
            title=project.title,
            thumbnail=project.thumbnail,
            editor_state=project.editor_state(),
            created_at=project.created_at,
            updated_at=project.updated_at,
        )

    def to_project(self) -> EditorProject:
        return EditorProject.from_row(self.model_dump())

    def to_record(self) -> dict[str, Any]:
        """JSON-ready dict; unset timestamps are left to the database.

        A cleared thumbnail is sent as null so an upsert clears the column.
        """
        record = self.model_dump(mode="json")
        for column in ("created_at", "updated_at"):
            if record[column] is None:
                del record[column]
        return record


class ProjectTable(ABC):
    """Row-level access to the projects table, scoped by owning user.

    Implementations raise RemoteStoreError on failure.
    """

    @abstractmethod
    async def select_for_user(self, user_id: str) -> list[ProjectRow]:
        """Return the user's rows, most recently updated first."""
        ...

    @abstractmethod
    async def select_one(self, project_id: str, user_id: str) -> ProjectRow | None:
        ...

    @abstractmethod
    async def insert(self, row: ProjectRow) -> None:
        ...

    @abstractmethod
    async def upsert(self, row: ProjectRow) -> None:
        ...

    @abstractmethod
    async def update_title(self, project_id: str, user_id: str, title: str) -> None:
        ...

    @abstractmethod
    async def delete(self, project_id: str, user_id: str) -> None:
        """Delete a row; deleting an unknown id is not an error."""
        ...


class SupabaseProjectTable(ProjectTable):
    """Projects table on Supabase (PostgREST) through the async client."""

    def __init__(self, client: AsyncClient, table_name: str = "ai_editor_projects") -> None:
        self.client = client
        self.table_name = table_name

    async def _execute(self, operation: str, query: Any) -> list[dict[str, Any]]:
        try:
            response = await query.execute()
        except APIError as exc:
            raise RemoteStoreError(operation, exc.code, exc.message) from exc
        except httpx.HTTPError as exc:
            raise RemoteStoreError(operation, details=str(exc)) from exc
        return response.data or []

    @staticmethod
    def _parse_rows(data: list[dict[str, Any]]) -> list[ProjectRow]:
        rows: list[ProjectRow] = []
        for item in data:
            try:
                rows.append(ProjectRow.model_validate(item))
            except ValidationError as exc:
                row_id = item.get("id") if isinstance(item, dict) else None
                logger.warning("[REMOTE] skipping unreadable row %s: %s", row_id, exc)
        return rows

    async def select_for_user(self, user_id: str) -> list[ProjectRow]:
        query = (
            self.client.table(self.table_name)
            .select("*")
            .eq("user_id", user_id)
            .order("updated_at", desc=True)
        )
        data = await self._execute("select", query)
        return self._parse_rows(data)

    async def select_one(self, project_id: str, user_id: str) -> ProjectRow | None:
        query = (
            self.client.table(self.table_name)
            .select("*")
            .eq("id", project_id)
            .eq("user_id", user_id)
            .limit(1)
        )
        data = await self._execute("select", query)
        rows = self._parse_rows(data)
        return rows[0] if rows else None

    async def insert(self, row: ProjectRow) -> None:
        await self._execute("insert", self.client.table(self.table_name).insert(row.to_record()))

    async def upsert(self, row: ProjectRow) -> None:
        await self._execute("upsert", self.client.table(self.table_name).upsert(row.to_record()))

    async def update_title(self, project_id: str, user_id: str, title: str) -> None:
        query = (
            self.client.table(self.table_name)
            .update({"title": title})
            .eq("id", project_id)
            .eq("user_id", user_id)
        )
        await self._execute("update", query)

    async def delete(self, project_id: str, user_id: str) -> None:
        query = (
            self.client.table(self.table_name)
            .delete()
            .eq("id", project_id)
            .eq("user_id", user_id)
        )
        await self._execute("delete", query)


class MemoryProjectTable(ProjectTable):
    """In-memory projects table for development mode and tests.

    A production deployment uses SupabaseProjectTable instead.
    """

    def __init__(self) -> None:
        self.rows: dict[str, ProjectRow] = {}
        self._lock = asyncio.Lock()

    async def select_for_user(self, user_id: str) -> list[ProjectRow]:
        async with self._lock:
            rows = [row.model_copy(deep=True) for row in self.rows.values() if row.user_id == user_id]
        epoch = datetime.min.replace(tzinfo=UTC)
        return sorted(rows, key=lambda r: r.updated_at or epoch, reverse=True)

    async def select_one(self, project_id: str, user_id: str) -> ProjectRow | None:
        async with self._lock:
            row = self.rows.get(project_id)
            if row is None or row.user_id != user_id:
                return None
            return row.model_copy(deep=True)

    async def insert(self, row: ProjectRow) -> None:
        async with self._lock:
            if row.id in self.rows:
                raise RemoteStoreError("insert", "23505", f"duplicate key {row.id}")
            self.rows[row.id] = self._stamped(row, None)

    async def upsert(self, row: ProjectRow) -> None:
        async with self._lock:
            existing = self.rows.get(row.id)
            if existing is not None and existing.user_id != row.user_id:
                raise RemoteStoreError("upsert", "42501", "row belongs to another user")
            self.rows[row.id] = self._stamped(row, existing)

    async def update_title(self, project_id: str, user_id: str, title: str) -> None:
        async with self._lock:
            row = self.rows.get(project_id)
            if row is not None and row.user_id == user_id:
                row.title = title

    async def delete(self, project_id: str, user_id: str) -> None:
        async with self._lock:
            row = self.rows.get(project_id)
            if row is not None and row.user_id == user_id:
                del self.rows[project_id]

    def _stamped(self, row: ProjectRow, existing: ProjectRow | None) -> ProjectRow:
        """Fill timestamps the way the database defaults would."""
        now = datetime.now(UTC)
        stored = row.model_copy(deep=True)
        if stored.created_at is None:
            stored.created_at = existing.created_at if existing else now
        if stored.updated_at is None:
            stored.updated_at = now
        return stored
