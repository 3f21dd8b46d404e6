"""Change- and interval-driven autosave for the project open in the editor."""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime

from .project_state import EditorProject
from .remote.store import RemoteProjectStore, SaveStatus, StatusCallback

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 30.0
DEFAULT_DEBOUNCE = 2.0
SAVED_STATUS_DELAY = 0.5

_STATUS_LABELS: dict[str, str] = {
    "saving": "Saving...",
    "saved": "Saved",
    "error": "Save failed",
}


def status_label(status: SaveStatus) -> str | None:
    """Text for the save indicator; idle renders nothing."""
    return _STATUS_LABELS.get(status)


class AutoSaveCoordinator:
    """Decide when the open project is written to the remote store.

    Two timers feed one save primitive: a debounce timer re-armed on every
    change, and a fixed interval timer. The save primitive compares the
    project fingerprint with the last saved one and skips clean documents,
    so a quiet interval tick never reaches the network. A failed save keeps
    the old baseline and the next tick retries.

    The coordinator reads the project but never mutates it. Timers are
    asyncio tasks, so set_project() and trigger_save() must be called with a
    running event loop. Call close() (or use ``async with``) when the editor
    view goes away.
    """

    def __init__(
        self,
        store: RemoteProjectStore,
        *,
        interval: float = DEFAULT_INTERVAL,
        debounce: float = DEFAULT_DEBOUNCE,
        saved_delay: float = SAVED_STATUS_DELAY,
        enabled: bool = True,
        on_status_change: StatusCallback | None = None,
    ) -> None:
        self.store = store
        self.interval = interval
        self.debounce = debounce
        self.saved_delay = saved_delay
        self.enabled = enabled
        self.on_status_change = on_status_change

        self._project: EditorProject | None = None
        self._baseline = ""
        self._status: SaveStatus = "idle"
        self._last_saved: datetime | None = None
        self._debounce_task: asyncio.Task | None = None
        self._interval_task: asyncio.Task | None = None
        self._status_task: asyncio.Task | None = None
        self._save_tasks: set[asyncio.Task] = set()
        self._issued = 0
        self._baseline_issue = 0
        self._retry_pending = False
        self._closed = False

    @property
    def status(self) -> SaveStatus:
        return self._status

    @property
    def last_saved(self) -> datetime | None:
        return self._last_saved

    @property
    def baseline(self) -> str:
        """Fingerprint of the last successfully saved content."""
        return self._baseline

    @property
    def project(self) -> EditorProject | None:
        return self._project

    async def __aenter__(self) -> AutoSaveCoordinator:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def set_project(self, project: EditorProject | None) -> None:
        """Watch a project document; call again whenever it changes.

        The first document (and any document with a new id) only seeds the
        baseline. Later calls arm the debounce timer when the content
        differs from the baseline.
        """
        if self._closed:
            return
        previous = self._project
        self._project = project
        if project is None:
            self._cancel(self._debounce_task)
            self._cancel(self._interval_task)
            self._debounce_task = self._interval_task = None
            return
        if previous is None or previous.id != project.id or not self._baseline:
            self._cancel(self._debounce_task)
            self._debounce_task = None
            self._baseline = project.fingerprint()
            self._baseline_issue = self._issued
            self._retry_pending = False
        elif project.fingerprint() != self._baseline:
            self.trigger_save()
        self._ensure_interval()

    def notify_change(self) -> None:
        """Signal an in-place edit of the watched project."""
        if self._project is not None:
            self.set_project(self._project)

    def trigger_save(self) -> None:
        """(Re)arm the debounce timer."""
        if not self.enabled or self._closed:
            return
        self._cancel(self._debounce_task)
        self._debounce_task = asyncio.create_task(self._debounced_save())

    async def save_now(self) -> bool:
        """Save the watched project unless it matches the last saved content.

        Returns True when the project is saved (or already clean), False when
        disabled, detached or the save failed.
        """
        project = self._project
        if project is None or not self.enabled:
            return False

        fingerprint = project.fingerprint()
        if fingerprint == self._baseline and not self._retry_pending:
            return True

        self._retry_pending = False
        self._issued += 1
        issued = self._issued
        snapshot = project.clone()
        saved = await self.store.save_project(snapshot, self._on_store_status)
        if saved:
            # A save that finishes after a newer one must not roll the baseline back.
            if issued > self._baseline_issue:
                self._baseline = fingerprint
                self._baseline_issue = issued
            self._last_saved = datetime.now(UTC)
            self._schedule_saved_status()
        else:
            logger.warning("[AUTOSAVE] save of %s failed, will retry on next tick", project.id)
        return saved

    async def close(self) -> None:
        """Stop both timers and wait for saves that were already issued."""
        self._closed = True
        timers = [t for t in (self._debounce_task, self._interval_task, self._status_task) if t]
        for task in timers:
            task.cancel()
        self._debounce_task = self._interval_task = self._status_task = None
        if timers:
            await asyncio.gather(*timers, return_exceptions=True)
        if self._save_tasks:
            await asyncio.gather(*list(self._save_tasks), return_exceptions=True)

    def _ensure_interval(self) -> None:
        if not self.enabled or self._interval_task is not None:
            return
        self._interval_task = asyncio.create_task(self._run_interval())

    async def _debounced_save(self) -> None:
        await asyncio.sleep(self.debounce)
        self._debounce_task = None
        self._spawn_save()

    async def _run_interval(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            self._spawn_save()

    def _spawn_save(self) -> None:
        # Issued saves live outside the timer tasks so re-arming a timer
        # never cancels a write in flight.
        task = asyncio.create_task(self.save_now())
        self._save_tasks.add(task)
        task.add_done_callback(self._save_tasks.discard)

    def _on_store_status(self, status: SaveStatus) -> None:
        if status == "saved":
            # Shown after saved_delay so "saving" is visible on fast networks.
            return
        if status == "error":
            # Covers a queued write that failed after save_now already returned.
            self._retry_pending = True
            self._cancel(self._status_task)
            self._status_task = None
        self._set_status(status)

    def _schedule_saved_status(self) -> None:
        if self._closed:
            return
        self._cancel(self._status_task)
        self._status_task = asyncio.create_task(self._mark_saved_later())

    async def _mark_saved_later(self) -> None:
        await asyncio.sleep(self.saved_delay)
        self._status_task = None
        self._set_status("saved")

    def _set_status(self, status: SaveStatus) -> None:
        self._status = status
        if self.on_status_change is not None:
            self.on_status_change(status)

    @staticmethod
    def _cancel(task: asyncio.Task | None) -> None:
        if task is not None and not task.done():
            task.cancel()
