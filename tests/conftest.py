"""Pytest configuration and shared fixtures for editor project tests."""

import asyncio
from datetime import UTC, datetime
from pathlib import Path

import pytest

from ai_editor.exceptions import RemoteStoreError
from ai_editor.local_cache import LocalProjectCache
from ai_editor.project_state import (
    Adjustments,
    AudioLayer,
    CaptionLayer,
    DrawingLayer,
    DrawingStroke,
    EditorProject,
    EffectLayer,
    Position,
    Size,
    TextOverlay,
    VideoClip,
    VideoOverlay,
)
from ai_editor.remote import (
    CurrentUser,
    MemoryProjectTable,
    ProjectRow,
    RemoteProjectStore,
    StaticUserResolver,
)


class RecordingProjectTable(MemoryProjectTable):
    """Memory table that records upserts and can stall or reject them."""

    def __init__(self) -> None:
        super().__init__()
        self.upserts: list[ProjectRow] = []
        self.upsert_times: list[float] = []
        self.failures_left = 0
        self.gate: asyncio.Event | None = None

    async def upsert(self, row: ProjectRow) -> None:
        self.upserts.append(row.model_copy(deep=True))
        self.upsert_times.append(asyncio.get_running_loop().time())
        if self.gate is not None:
            await self.gate.wait()
        if self.failures_left > 0:
            self.failures_left -= 1
            raise RemoteStoreError("upsert", 500, "simulated write rejection")
        await super().upsert(row)


# ============================================================================
# Identity and store fixtures
# ============================================================================


@pytest.fixture
def user() -> CurrentUser:
    return CurrentUser(id="user-1", email="editor@example.com")


@pytest.fixture
def table() -> RecordingProjectTable:
    return RecordingProjectTable()


@pytest.fixture
def remote_store(table: RecordingProjectTable, user: CurrentUser) -> RemoteProjectStore:
    """Remote store with a signed-in user."""
    return RemoteProjectStore(table, StaticUserResolver(user))


@pytest.fixture
def signed_out_store(table: RecordingProjectTable) -> RemoteProjectStore:
    """Remote store without a session."""
    return RemoteProjectStore(table, StaticUserResolver(None))


@pytest.fixture
def local_cache(tmp_path: Path) -> LocalProjectCache:
    """Local cache on a real sqlite file with the JSON fallback beside it."""
    return LocalProjectCache.open(tmp_path / "cache.db", tmp_path / "projects.json")


# ============================================================================
# Document fixtures
# ============================================================================


@pytest.fixture
def sample_project() -> EditorProject:
    """A project with one record in every layer."""
    created = datetime(2020, 10, 1, 9, 30, tzinfo=UTC)
    return EditorProject(
        id="project-001",
        title="Beach Trip",
        created_at=created,
        updated_at=created,
        thumbnail="data:image/jpeg;base64,AAAA",
        video_url="https://cdn.example.com/videos/beach.mp4",
        video_duration=42.5,
        video_dimensions=Size(width=1080, height=1920),
        video_clips=[
            VideoClip(id="clip-1", url="https://cdn.example.com/videos/beach.mp4",
                      duration=42.5, in_point=2.0, out_point=30.0),
        ],
        text_overlays=[
            TextOverlay(id="text-1", text="Summer!", start_time=0, end_time=4),
            TextOverlay(id="text-2", text="Day one", start_time=2, end_time=6),
        ],
        audio_layers=[
            AudioLayer(id="audio-1", name="Waves", file_url="https://cdn.example.com/waves.mp3",
                       end_time=30, fade_in=1.5, waveform_data=[0.1, 0.4, 0.2]),
        ],
        effect_layers=[
            EffectLayer(id="fx-1", effect_id="glitch", name="Glitch", category="retro",
                        start_time=1, end_time=3),
        ],
        caption_layers=[CaptionLayer(id="cap-1", text="hello there", start_time=0, end_time=2)],
        drawing_layers=[
            DrawingLayer(
                id="draw-1",
                strokes=[DrawingStroke(id="s-1", points=[Position(x=0.1, y=0.2), Position(x=0.3, y=0.4)])],
                end_time=5,
            ),
        ],
        video_overlays=[
            VideoOverlay(id="ov-1", url="https://cdn.example.com/pip.mp4", duration=5,
                         size=Size(width=320, height=180), start_time=3, end_time=8),
        ],
        adjustments=Adjustments(brightness=10, contrast=-5),
        selected_aspect_ratio="9:16",
        background_blur=4,
        video_position=Position(x=0.1, y=-0.2),
    )
