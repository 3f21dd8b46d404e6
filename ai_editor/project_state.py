"""Editor project document model for the mobile video editor."""

from __future__ import annotations

import hashlib
import json
import uuid
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# Stored as separate columns on the remote row, never inside the document.
COLUMN_FIELDS = frozenset({"id", "title", "thumbnail", "created_at", "updated_at"})


def _layer_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(UTC)


class EditorModel(BaseModel):
    """Base model serializing to the editor's camelCase document format."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Position(EditorModel):
    x: float = 0
    y: float = 0


class Size(EditorModel):
    width: float
    height: float


class Animation(EditorModel):
    id: str
    type: str
    duration: float


class VideoClip(EditorModel):
    """A trimmed source clip on the main track."""

    id: str = Field(default_factory=_layer_id)
    url: str
    duration: float
    start_time: float = 0
    in_point: float = 0
    out_point: float
    volume: float = 1.0
    speed: float = 1.0
    ai_enhanced: bool = False
    animation_in: Animation | None = None
    animation_out: Animation | None = None


class TextOverlay(EditorModel):
    """A styled text element shown between start_time and end_time."""

    id: str = Field(default_factory=_layer_id)
    text: str
    position: Position = Field(default_factory=lambda: Position(x=0.5, y=0.5))
    font_size: float = 24
    text_color: str = "#ffffff"
    font_family: str = "Roboto"
    alignment: str = "center"
    has_background: bool = False
    background_color: str = "#000000"
    background_opacity: float = 0.5
    start_time: float = 0
    end_time: float = 5
    opacity: float = 1
    stroke_enabled: bool = False
    stroke_color: str = "#000000"
    stroke_width: float = 0
    glow_enabled: bool = False
    glow_color: str = "#ffffff"
    glow_intensity: float = 0
    shadow_enabled: bool = False
    shadow_color: str = "#000000"
    letter_spacing: float = 0
    curve_amount: float = 0
    animation: str = "none"
    bubble_style: str = "none"
    rotation: float = 0
    scale: float = 1
    scale_x: float = 1
    scale_y: float = 1


class AudioLayer(EditorModel):
    id: str = Field(default_factory=_layer_id)
    name: str
    file_url: str
    volume: float = 1.0
    start_time: float = 0
    end_time: float
    fade_in: float = 0
    fade_out: float = 0
    waveform_data: list[float] = Field(default_factory=list)


class EffectLayer(EditorModel):
    id: str = Field(default_factory=_layer_id)
    effect_id: str
    name: str
    category: str
    intensity: float = 0.7
    start_time: float = 0
    end_time: float


class CaptionLayer(EditorModel):
    id: str = Field(default_factory=_layer_id)
    text: str
    start_time: float
    end_time: float


class DrawingStroke(EditorModel):
    id: str = Field(default_factory=_layer_id)
    points: list[Position] = Field(default_factory=list)
    color: str = "#ffffff"
    size: float = 4
    tool: str = "pen"


class DrawingLayer(EditorModel):
    id: str = Field(default_factory=_layer_id)
    strokes: list[DrawingStroke] = Field(default_factory=list)
    start_time: float = 0
    end_time: float


class VideoOverlay(EditorModel):
    """A picture-in-picture video placed over the main track."""

    id: str = Field(default_factory=_layer_id)
    url: str
    duration: float
    position: Position = Field(default_factory=Position)
    size: Size
    scale: float = 1
    start_time: float = 0
    end_time: float
    volume: float = 1.0
    opacity: float = 1


class Adjustments(EditorModel):
    """Global color and tone parameters; zero means untouched."""

    brightness: float = 0
    contrast: float = 0
    saturation: float = 0
    exposure: float = 0
    sharpen: float = 0
    highlight: float = 0
    shadow: float = 0
    temp: float = 0
    hue: float = 0


class EditorProject(EditorModel):
    """Complete serializable state of one editing session.

    Layer lists keep playback/composition order. Time windows of different
    layers may overlap freely.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    title: str = "Untitled Project"
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
    thumbnail: str | None = None

    # Source video
    video_url: str | None = None
    video_duration: float = 0
    video_dimensions: Size | None = None

    # Layers
    video_clips: list[VideoClip] = Field(default_factory=list)
    text_overlays: list[TextOverlay] = Field(default_factory=list)
    audio_layers: list[AudioLayer] = Field(default_factory=list)
    effect_layers: list[EffectLayer] = Field(default_factory=list)
    caption_layers: list[CaptionLayer] = Field(default_factory=list)
    drawing_layers: list[DrawingLayer] = Field(default_factory=list)
    video_overlays: list[VideoOverlay] = Field(default_factory=list)

    adjustments: Adjustments = Field(default_factory=Adjustments)

    # Background
    selected_aspect_ratio: str = "original"
    background_color: str = "#000000"
    background_blur: float = 0
    background_image: str | None = None
    video_position: Position = Field(default_factory=Position)

    @field_validator("created_at", "updated_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    def touch(self) -> None:
        """Update the updated_at timestamp without ever moving it backwards."""
        now = _utcnow()
        if now > self.updated_at:
            self.updated_at = now

    def clone(self) -> EditorProject:
        """Create a deep copy of this project."""
        return self.model_copy(deep=True)

    def editor_state(self) -> dict[str, Any]:
        """Return the persisted document: everything but the column fields."""
        return self.model_dump(mode="json", by_alias=True, exclude=set(COLUMN_FIELDS))

    def fingerprint(self) -> str:
        """Hash of the editor state, used to detect no-op saves."""
        canonical = json.dumps(self.editor_state(), sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()

    def to_payload(self) -> dict[str, Any]:
        """Convert to the camelCase JSON document used by the editor."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> EditorProject:
        return cls.model_validate(dict(payload))

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> EditorProject:
        """Rebuild a project from a remote row.

        The row's columns win over anything stored inside ``editor_state``.
        """
        document = dict(row.get("editor_state") or {})
        document["id"] = row["id"]
        document["title"] = row["title"]
        document["thumbnail"] = row.get("thumbnail")
        if row.get("created_at") is not None:
            document["createdAt"] = row["created_at"]
        if row.get("updated_at") is not None:
            document["updatedAt"] = row["updated_at"]
        return cls.model_validate(document)


def create_new_project(
    now: datetime | None = None, project_id: str | None = None
) -> EditorProject:
    """Create an empty project titled after the creation date."""
    now = now or _utcnow()
    return EditorProject(
        id=project_id or str(uuid.uuid4()),
        title=f"Project {now:%b} {now.day}, {now.year}",
        created_at=now,
        updated_at=now,
    )
