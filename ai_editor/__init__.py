"""Persistence and autosave for the AI video editor's projects."""

from .autosave import AutoSaveCoordinator, status_label
from .library import OpenedProject, ProjectLibrary
from .local_cache import LocalProjectCache, VideoBlob
from .project_state import EditorProject, create_new_project
from .remote import RemoteProjectStore

__all__ = [
    "AutoSaveCoordinator",
    "status_label",
    "OpenedProject",
    "ProjectLibrary",
    "LocalProjectCache",
    "VideoBlob",
    "EditorProject",
    "create_new_project",
    "RemoteProjectStore",
]
