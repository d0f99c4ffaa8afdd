"""
Tests for project snapshot export and import.
"""
import json

import pytest

from carouselai.core.exceptions import ValidationError
from carouselai.domain.schemas.project import FontStyle
from carouselai.domain.schemas.slide import AspectRatio, CarouselStyle, SlideType, Theme
from carouselai.services.persistence import project_io
from carouselai.services.workspace import Workspace


class TestProjectIO:
    """Test snapshot serialization."""

    def test_export_uses_camel_case(self, workspace):
        workspace.update_settings(theme="DARK", accent_color="#FF0000", project_name="Launch")

        data = json.loads(project_io.dumps(project_io.export_project(workspace)))

        assert data["name"] == "Launch"
        assert data["theme"] == "DARK"
        assert data["accentColor"] == "#FF0000"
        assert [s["id"] for s in data["slides"]] == ["s1", "s2", "s3"]
        assert data["slides"][1]["imagePrompt"] == "a lighthouse at dusk"

    def test_round_trip_restores_workspace(self, workspace, fast_settings, client_handle):
        workspace.update_settings(style="STORYTELLER", aspect_ratio="4/5", font_style="SERIF")
        raw = project_io.dumps(project_io.export_project(workspace))

        restored = Workspace(fast_settings, client_handle=client_handle)
        restored.restore(project_io.loads(raw))

        assert restored.store.snapshot() == workspace.store.snapshot()
        assert restored.style == CarouselStyle.STORYTELLER
        assert restored.aspect_ratio == AspectRatio.PORTRAIT
        assert restored.project_settings.font_style == FontStyle.SERIF
        assert restored.project_id == workspace.project_id
        assert restored.active_slide_id == "s1"

    def test_missing_slides_rejected(self):
        with pytest.raises(ValidationError, match="missing slides"):
            project_io.loads('{"theme": "DARK"}')

    def test_invalid_json_rejected(self):
        with pytest.raises(ValidationError):
            project_io.loads("{not json")

    def test_minimal_file_keeps_current_settings(self, workspace):
        workspace.update_settings(theme="DARK", accent_color="#00FF00")
        raw = json.dumps({
            "slides": [
                {"id": "a", "type": "COVER", "content": "Hello", "showImage": True, "imageScale": 40},
                {"id": "b", "content": "World", "unknownField": 1},
            ],
            "accentColor": "#123456",
        })

        workspace.restore(project_io.loads(raw))

        assert workspace.store.ids() == ["a", "b"]
        assert workspace.store.get("a").type == SlideType.COVER
        assert workspace.store.get("a").image_scale == 40
        assert workspace.project_settings.theme == Theme.DARK
        assert workspace.project_settings.accent_color == "#123456"
        assert workspace.active_slide_id == "a"

    def test_invalid_slide_field_rejected(self):
        with pytest.raises(ValidationError):
            project_io.loads(json.dumps({"slides": [{"id": "a", "type": "POSTER"}]}))

    @pytest.mark.asyncio
    async def test_save_and_load_file(self, workspace, tmp_path):
        path = str(tmp_path / "carousel.json")

        await project_io.save(project_io.export_project(workspace), path)
        project = await project_io.load(path)

        assert [s.id for s in project.slides] == ["s1", "s2", "s3"]
