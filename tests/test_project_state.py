"""Tests for the editor project document model."""

from datetime import UTC, datetime, timedelta

import pytest
from pydantic import ValidationError

from ai_editor.project_state import (
    COLUMN_FIELDS,
    EditorProject,
    TextOverlay,
    create_new_project,
)


class TestCreateNewProject:
    """Tests for create_new_project."""

    def test_empty_layers_and_zero_adjustments(self):
        """Test a new project starts with nothing on the timeline."""
        project = create_new_project()
        assert project.video_clips == []
        assert project.text_overlays == []
        assert project.audio_layers == []
        assert project.effect_layers == []
        assert project.caption_layers == []
        assert project.drawing_layers == []
        assert project.video_overlays == []
        assert all(value == 0 for value in project.adjustments.model_dump().values())
        assert project.selected_aspect_ratio == "original"
        assert project.background_color == "#000000"
        assert project.thumbnail is None

    def test_title_and_timestamps(self):
        """Test the title is derived from the creation date."""
        now = datetime(2026, 10, 8, 15, 0, tzinfo=UTC)
        project = create_new_project(now=now, project_id="abc")
        assert project.id == "abc"
        assert project.title == "Project Oct 8, 2026"
        assert project.created_at == now
        assert project.updated_at == now

    def test_ids_are_unique(self):
        assert create_new_project().id != create_new_project().id


class TestSerialization:
    """Tests for camelCase payloads."""

    def test_payload_uses_camel_case(self, sample_project):
        payload = sample_project.to_payload()
        assert "textOverlays" in payload
        assert "selectedAspectRatio" in payload
        assert payload["videoClips"][0]["inPoint"] == 2.0
        assert payload["textOverlays"][0]["fontFamily"] == "Roboto"
        assert payload["audioLayers"][0]["waveformData"] == [0.1, 0.4, 0.2]

    def test_from_payload_round_trip(self, sample_project):
        restored = EditorProject.from_payload(sample_project.to_payload())
        assert restored == sample_project

    def test_accepts_snake_case_too(self):
        overlay = TextOverlay(text="Hi", start_time=1, end_time=2)
        assert overlay.start_time == 1
        overlay = TextOverlay.model_validate({"text": "Hi", "startTime": 1, "endTime": 2})
        assert overlay.end_time == 2

    def test_layer_order_preserved(self, sample_project):
        restored = EditorProject.from_payload(sample_project.to_payload())
        assert [t.id for t in restored.text_overlays] == ["text-1", "text-2"]

    def test_overlapping_windows_are_legal(self):
        """Test overlapping layer windows are accepted as-is."""
        project = EditorProject(
            text_overlays=[
                TextOverlay(text="a", start_time=0, end_time=5),
                TextOverlay(text="b", start_time=1, end_time=4),
            ]
        )
        assert len(project.text_overlays) == 2

    def test_missing_required_layer_field(self):
        with pytest.raises(ValidationError):
            EditorProject.from_payload({"captionLayers": [{"text": "no window"}]})

    def test_naive_timestamps_are_utc(self):
        project = EditorProject(created_at=datetime(2026, 1, 1), updated_at=datetime(2026, 1, 1))
        assert project.created_at.tzinfo is UTC
        assert project.updated_at.tzinfo is UTC


class TestEditorState:
    """Tests for the persisted document subset."""

    def test_excludes_column_fields(self, sample_project):
        state = sample_project.editor_state()
        for field in ("id", "title", "thumbnail", "createdAt", "updatedAt"):
            assert field not in state
        assert state["videoUrl"] == sample_project.video_url
        assert state["adjustments"]["brightness"] == 10

    def test_column_fields_constant(self):
        assert COLUMN_FIELDS == {"id", "title", "thumbnail", "created_at", "updated_at"}

    def test_from_row_prefers_columns(self, sample_project):
        state = sample_project.editor_state()
        state["title"] = "stale title"
        row = {
            "id": "row-id",
            "title": "Column Title",
            "thumbnail": None,
            "editor_state": state,
            "created_at": "2026-10-01T09:30:00+00:00",
            "updated_at": "2026-10-02T09:30:00+00:00",
        }
        project = EditorProject.from_row(row)
        assert project.id == "row-id"
        assert project.title == "Column Title"
        assert project.thumbnail is None
        assert project.updated_at == datetime(2026, 10, 2, 9, 30, tzinfo=UTC)
        assert project.text_overlays == sample_project.text_overlays


class TestFingerprint:
    """Tests for change-detection fingerprints."""

    def test_stable_for_unchanged_document(self, sample_project):
        assert sample_project.fingerprint() == sample_project.fingerprint()
        assert sample_project.fingerprint() == sample_project.clone().fingerprint()

    def test_text_overlay_change(self, sample_project):
        before = sample_project.fingerprint()
        sample_project.text_overlays[0].text = "Winter!"
        assert sample_project.fingerprint() != before

    def test_clip_change(self, sample_project):
        before = sample_project.fingerprint()
        sample_project.video_clips[0].in_point = 3.0
        assert sample_project.fingerprint() != before

    def test_adjustments_change(self, sample_project):
        before = sample_project.fingerprint()
        sample_project.adjustments.hue = 12
        assert sample_project.fingerprint() != before

    def test_drawing_point_change(self, sample_project):
        before = sample_project.fingerprint()
        sample_project.drawing_layers[0].strokes[0].points[0].x = 0.9
        assert sample_project.fingerprint() != before

    def test_layer_reorder_changes_fingerprint(self, sample_project):
        before = sample_project.fingerprint()
        sample_project.text_overlays.reverse()
        assert sample_project.fingerprint() != before

    def test_thumbnail_is_ignored(self, sample_project):
        before = sample_project.fingerprint()
        sample_project.thumbnail = "data:image/jpeg;base64,BBBB"
        assert sample_project.fingerprint() == before

    def test_timestamps_are_ignored(self, sample_project):
        before = sample_project.fingerprint()
        sample_project.touch()
        assert sample_project.fingerprint() == before


class TestTouch:
    """Tests for updated_at stamping."""

    def test_touch_moves_forward(self, sample_project):
        before = sample_project.updated_at
        sample_project.touch()
        assert sample_project.updated_at > before

    def test_touch_never_moves_backwards(self, sample_project):
        future = datetime.now(UTC) + timedelta(days=1)
        sample_project.updated_at = future
        sample_project.touch()
        assert sample_project.updated_at == future

    def test_clone_is_independent(self, sample_project):
        copy = sample_project.clone()
        copy.text_overlays[0].text = "changed"
        assert sample_project.text_overlays[0].text == "Summer!"
