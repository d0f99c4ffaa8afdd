"""Integration tests for the HTTP API."""

import io
import json
import zipfile

import pytest
from fastapi.testclient import TestClient

from carouselai.core.dependencies import get_workspace
from carouselai.main import app
from carouselai.services.ai.client_handle import ClientHandle
from carouselai.services.workspace import Workspace
from tests.fixtures.generation import FakeGenerationClient, make_png

API = "/api/v1"


@pytest.fixture
def client(workspace):
    """Test client bound to the fixture workspace."""
    app.dependency_overrides[get_workspace] = lambda: workspace
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestHealth:
    """Test service metadata endpoints."""

    def test_health(self, client):
        response = client.get(f"{API}/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["components"] == {"generation_client": "configured", "renderer": "configured"}

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert "version" in response.json()


class TestSlidesAPI:
    """Test slide collection editing over HTTP."""

    def test_list_slides_camel_case(self, client):
        response = client.get(f"{API}/slides")

        assert response.status_code == 200
        data = response.json()
        assert data["activeSlideId"] == "s1"
        assert [s["id"] for s in data["slides"]] == ["s1", "s2", "s3"]
        assert data["slides"][1]["imagePrompt"] == "a lighthouse at dusk"

    def test_add_slide_after_active(self, client, workspace):
        response = client.post(f"{API}/slides", json={})

        assert response.status_code == 201
        slide = response.json()
        assert slide["content"] == "New slide content..."
        assert workspace.store.ids()[1] == slide["id"]
        assert workspace.active_slide_id == slide["id"]

    def test_update_slide(self, client, workspace):
        response = client.patch(f"{API}/slides/s2", json={"content": "Edited", "imageScale": 60})

        assert response.status_code == 200
        assert response.json()["imageScale"] == 60
        assert workspace.store.get("s2").content == "Edited"
        assert workspace.store.get("s2").image_prompt == "a lighthouse at dusk"

    def test_update_unknown_slide(self, client):
        response = client.patch(f"{API}/slides/missing", json={"content": "x"})

        assert response.status_code == 404
        assert "missing" in response.json()["detail"]

    def test_reorder_and_delete(self, client):
        response = client.post(f"{API}/slides/reorder", json={"slideIds": ["s3", "s2", "s1"]})
        assert [s["id"] for s in response.json()["slides"]] == ["s3", "s2", "s1"]

        response = client.delete(f"{API}/slides/s2")
        assert response.status_code == 200
        assert [s["id"] for s in response.json()["slides"]] == ["s3", "s1"]

    def test_reorder_must_list_every_slide(self, client):
        response = client.post(f"{API}/slides/reorder", json={"slideIds": ["s1"]})

        assert response.status_code == 422

    def test_activate_slide(self, client, workspace, fake_renderer):
        response = client.post(f"{API}/slides/s3/activate")

        assert response.status_code == 200
        assert workspace.active_slide_id == "s3"
        assert fake_renderer.active_slide_id == "s3"

    def test_renderer_follows_added_and_deleted_slides(self, client, workspace, fake_renderer):
        slide_id = client.post(f"{API}/slides", json={}).json()["id"]
        assert fake_renderer.active_slide_id == slide_id

        client.delete(f"{API}/slides/{slide_id}")
        assert workspace.active_slide_id == "s1"
        assert fake_renderer.active_slide_id == "s1"

    def test_renderer_follows_imported_project(self, client, fake_renderer):
        client.post(f"{API}/projects/import", content=json.dumps({"slides": [{"id": "x", "content": "Imported"}]}))

        assert fake_renderer.active_slide_id == "x"


class TestGenerationAPI:
    """Test generation endpoints against the scripted backend."""

    def test_generate_carousel(self, client, fake_client):
        response = client.post(f"{API}/generation/carousel", data={"topic": "Remote work", "count": "3"})

        assert response.status_code == 200
        assert [s["content"] for s in response.json()["slides"]] == ["one", "two", "three"]
        assert fake_client.models_called("text")

    def test_generate_carousel_requires_topic(self, client):
        response = client.post(f"{API}/generation/carousel", data={"topic": ""})

        assert response.status_code == 422

    def test_unsupported_document(self, client):
        response = client.post(
            f"{API}/generation/carousel",
            data={"topic": "x"},
            files={"document": ("deck.pptx", b"data", "application/octet-stream")},
        )

        assert response.status_code == 422
        assert "Unsupported file type" in response.json()["detail"]

    def test_generate_slide_image(self, client):
        response = client.post(f"{API}/generation/slides/s2/image", json={})

        assert response.status_code == 200
        data = response.json()
        assert data["discarded"] is False
        assert data["slide"]["showImage"] is True
        assert data["slide"]["imageUrl"].startswith("data:image/png;base64,")

    def test_attach_upload_without_style(self, client, fake_client):
        response = client.post(
            f"{API}/generation/slides/s1/stylize",
            files={"file": ("photo.png", make_png(10, 10), "image/png")},
            data={"style_prompt": ""},
        )

        assert response.status_code == 200
        assert response.json()["slide"]["imageUrl"].startswith("data:image/png;base64,")
        assert fake_client.calls == []

    def test_batch_images(self, client):
        response = client.post(f"{API}/generation/batch/images", json={"slideIds": ["s1", "s2"]})

        assert response.status_code == 200
        data = response.json()
        assert data["statuses"] == {"s1": "succeeded", "s2": "succeeded"}
        assert data["running"] is False

    def test_task_statuses(self, client):
        client.post(f"{API}/generation/slides/s2/image", json={})

        response = client.get(f"{API}/generation/tasks")

        assert response.status_code == 200
        assert response.json()["statuses"]["s2"]["image"] == "succeeded"


class TestExportAPI:
    """Test export downloads."""

    def test_export_carousel_zip(self, client):
        response = client.post(f"{API}/export/carousel")

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/zip"
        assert response.headers["x-captured-slides"] == "3"
        with zipfile.ZipFile(io.BytesIO(response.content)) as archive:
            assert archive.namelist() == ["slide-1.png", "slide-2.png", "slide-3.png"]

    def test_export_without_renderer(self, fast_settings, client_handle):
        ws = Workspace(fast_settings, client_handle=client_handle)
        app.dependency_overrides[get_workspace] = lambda: ws
        try:
            response = TestClient(app).post(f"{API}/export/slide")
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 503


class TestSettingsAPI:
    """Test API key and workspace settings."""

    def test_set_api_key_is_masked(self, fast_settings):
        handle = ClientHandle(factory=lambda key: FakeGenerationClient())
        ws = Workspace(fast_settings, client_handle=handle)
        app.dependency_overrides[get_workspace] = lambda: ws
        try:
            client = TestClient(app)
            assert client.get(f"{API}/settings/api-key").json() == {"configured": False, "masked_key": ""}

            response = client.put(f"{API}/settings/api-key", json={"apiKey": "AIzaSyExampleKey1234"})
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 200
        assert response.json() == {"configured": True, "masked_key": "AIza****1234"}

    def test_style_change_converts_slides(self, client, workspace):
        response = client.patch(f"{API}/settings/workspace", json={"style": "STORYTELLER", "theme": "DARK"})

        assert response.status_code == 200
        data = response.json()
        assert data["style"] == "STORYTELLER"
        assert data["settings"]["theme"] == "DARK"
        assert all(s.image_scale == 45 for s in workspace.store.snapshot())


class TestProjectsAPI:
    """Test project snapshot export and import."""

    def test_current_project(self, client):
        response = client.get(f"{API}/projects/current")

        assert response.status_code == 200
        assert [s["id"] for s in response.json()["slides"]] == ["s1", "s2", "s3"]

    def test_import_project(self, client, workspace):
        body = json.dumps({"slides": [{"id": "x", "content": "Imported"}], "theme": "DARK"})

        response = client.post(f"{API}/projects/import", content=body)

        assert response.status_code == 200
        assert response.json()["activeSlideId"] == "x"
        assert workspace.store.ids() == ["x"]

    def test_import_rejects_missing_slides(self, client):
        response = client.post(f"{API}/projects/import", content='{"name": "broken"}')

        assert response.status_code == 422
