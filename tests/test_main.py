"""Tests for the HTTP API."""

import pytest
from fastapi.testclient import TestClient

from ai_editor.config import EditorSettings
from ai_editor.local_cache import LocalProjectCache
from ai_editor.main import EditorServices, app, get_services
from ai_editor.remote import MemoryProjectTable


def _services(tmp_path, dev_user_id="user-1") -> EditorServices:
    settings = EditorSettings(dev_user_id=dev_user_id, data_dir=tmp_path, autosave_interval=15)
    local = LocalProjectCache.open(settings.cache_db_path, settings.fallback_path)
    return EditorServices(settings, MemoryProjectTable(), local)


@pytest.fixture
def services(tmp_path) -> EditorServices:
    return _services(tmp_path)


@pytest.fixture
def client(services):
    app.dependency_overrides[get_services] = lambda: services
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestServiceState:
    """Tests for health and service availability."""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_services_not_initialised(self):
        response = TestClient(app).get("/projects")
        assert response.status_code == 503

    def test_signed_out(self, tmp_path):
        signed_out = _services(tmp_path, dev_user_id=None)
        app.dependency_overrides[get_services] = lambda: signed_out
        try:
            response = TestClient(app).get("/projects")
        finally:
            app.dependency_overrides.clear()
        assert response.status_code == 401

    def test_autosave_config(self, client):
        assert client.get("/autosave-config").json() == {
            "interval": 15.0,
            "debounce": 2.0,
            "savedStatusDelay": 0.5,
        }


class TestProjectEndpoints:
    """Tests for the project CRUD routes."""

    def test_create_save_and_read(self, client, services):
        created = client.post("/projects")
        assert created.status_code == 201
        project = created.json()["project"]
        assert project["title"].startswith("Project ")

        project["textOverlays"] = [{"text": "Hello", "startTime": 0, "endTime": 3}]
        saved = client.put(f"/projects/{project['id']}", json=project)
        assert saved.status_code == 200
        assert saved.json() == {"saved": True}

        read = client.get(f"/projects/{project['id']}")
        assert read.status_code == 200
        body = read.json()
        assert body["source"] == "remote"
        assert body["hasCachedVideo"] is False
        assert body["project"]["textOverlays"][0]["text"] == "Hello"
        assert body["project"]["textOverlays"][0]["fontFamily"] == "Roboto"

        row = services.table.rows[project["id"]]
        assert row.user_id == "user-1"
        assert "title" not in row.editor_state

    def test_list(self, client):
        first = client.post("/projects").json()["project"]
        second = client.post("/projects").json()["project"]
        client.put(f"/projects/{first['id']}", json=first)

        ids = [p["id"] for p in client.get("/projects").json()["projects"]]
        assert ids == [first["id"], second["id"]]

    def test_save_id_mismatch(self, client):
        project = client.post("/projects").json()["project"]
        response = client.put("/projects/other-id", json=project)
        assert response.status_code == 400

    def test_save_invalid_document(self, client):
        project = client.post("/projects").json()["project"]
        project["captionLayers"] = [{"text": "missing window"}]
        response = client.put(f"/projects/{project['id']}", json=project)
        assert response.status_code == 422

    def test_read_missing(self, client):
        assert client.get("/projects/missing").status_code == 404

    def test_rename(self, client, services):
        project = client.post("/projects").json()["project"]
        response = client.patch(f"/projects/{project['id']}", json={"title": "  Road Trip  "})
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "title": "Road Trip"}
        assert services.table.rows[project["id"]].title == "Road Trip"

    def test_rename_blank(self, client):
        project = client.post("/projects").json()["project"]
        assert client.patch(f"/projects/{project['id']}", json={"title": ""}).status_code == 422
        assert client.patch(f"/projects/{project['id']}", json={"title": "   "}).status_code == 400

    def test_duplicate(self, client):
        project = client.post("/projects").json()["project"]
        response = client.post(f"/projects/{project['id']}/duplicate")
        assert response.status_code == 201
        copy = response.json()["project"]
        assert copy["id"] != project["id"]
        assert copy["title"] == f"{project['title']} (Copy)"

    def test_duplicate_missing(self, client):
        assert client.post("/projects/missing/duplicate").status_code == 404

    def test_delete(self, client, services):
        project = client.post("/projects").json()["project"]
        client.put(
            f"/projects/{project['id']}/video",
            content=b"video-bytes",
            headers={"Content-Type": "video/mp4"},
        )

        response = client.delete(f"/projects/{project['id']}")
        assert response.status_code == 200
        assert project["id"] not in services.table.rows
        assert client.get(f"/projects/{project['id']}").status_code == 404
        assert client.get(f"/projects/{project['id']}/video").status_code == 404
        # Deleting again is still ok.
        assert client.delete(f"/projects/{project['id']}").status_code == 200


class TestVideoEndpoints:
    """Tests for the cached source video routes."""

    def test_upload_and_download(self, client):
        project = client.post("/projects").json()["project"]
        upload = client.put(
            f"/projects/{project['id']}/video",
            params={"name": "clip.webm"},
            content=b"webm-bytes",
            headers={"Content-Type": "video/webm"},
        )
        assert upload.status_code == 200

        download = client.get(f"/projects/{project['id']}/video")
        assert download.status_code == 200
        assert download.content == b"webm-bytes"
        assert download.headers["content-type"] == "video/webm"
        assert 'filename="clip.webm"' in download.headers["content-disposition"]
        assert client.get(f"/projects/{project['id']}").json()["hasCachedVideo"] is True

    def test_empty_upload(self, client):
        response = client.put("/projects/p1/video", content=b"")
        assert response.status_code == 400

    def test_missing_video(self, client):
        assert client.get("/projects/p1/video").status_code == 404
