"""
Tests for generation orchestration against a concurrently edited store.
"""
import asyncio

import pytest

from carouselai.core.exceptions import NotFoundError, RequestError, ValidationError
from carouselai.domain.schemas.slide import CarouselStyle
from carouselai.services.ai.imaging import to_data_uri
from carouselai.services.slides.orchestrator import ALL_SLIDES
from carouselai.services.slides.tracker import TaskKind, TaskStatus
from tests.fixtures.generation import IMAGE_TIERS, carousel_json, make_png


async def started(task: asyncio.Task) -> asyncio.Task:
    """Let ``task`` run until it blocks on the backend."""
    await asyncio.sleep(0.01)
    assert not task.done()
    return task


class TestSlideImages:
    """Test per-slide image generation."""

    @pytest.mark.asyncio
    async def test_generate_image_attaches_result(self, workspace, fake_client):
        slide = await workspace.orchestrator.generate_slide_image("s2")

        assert slide.show_image is True
        assert slide.image_url.startswith("data:image/png;base64,")
        assert slide.image_scale == 50
        call = fake_client.calls[0]
        assert call["prompt"].endswith("a lighthouse at dusk")
        assert call["aspect_ratio"] == "1:1"
        assert workspace.tracker.status("s2", TaskKind.IMAGE) == TaskStatus.SUCCEEDED

    @pytest.mark.asyncio
    async def test_unknown_slide(self, workspace):
        with pytest.raises(NotFoundError):
            await workspace.orchestrator.generate_slide_image("missing")

    @pytest.mark.asyncio
    async def test_failure_marks_task_failed(self, workspace, fake_client):
        fake_client.image_outcomes[IMAGE_TIERS[0]] = RequestError("server error", status=500)

        with pytest.raises(RequestError):
            await workspace.orchestrator.generate_slide_image("s2")

        assert workspace.tracker.status("s2", TaskKind.IMAGE) == TaskStatus.FAILED
        assert workspace.store.get("s2").image_url is None

    @pytest.mark.asyncio
    async def test_result_for_deleted_slide_is_discarded(self, workspace, fake_client):
        fake_client.gate = asyncio.Event()
        task = await started(asyncio.create_task(workspace.orchestrator.generate_slide_image("s2")))

        workspace.delete_slide("s2")
        fake_client.gate.set()

        assert await task is None
        assert workspace.store.ids() == ["s1", "s3"]

    @pytest.mark.asyncio
    async def test_edits_made_while_generating_survive(self, workspace, fake_client):
        fake_client.gate = asyncio.Event()
        task = await started(asyncio.create_task(workspace.orchestrator.generate_slide_image("s2")))

        workspace.store.update("s2", content="edited meanwhile")
        workspace.store.reorder(["s2", "s1", "s3"])
        fake_client.gate.set()
        await task

        slide = workspace.store.get("s2")
        assert slide.content == "edited meanwhile"
        assert slide.image_url is not None
        assert workspace.store.ids() == ["s2", "s1", "s3"]

    @pytest.mark.asyncio
    async def test_overlapping_generations_last_to_finish_wins(self, workspace, fake_client):
        first_image, second_image = make_png(8, 8, "red"), make_png(8, 8, "blue")
        fake_client.image_for = lambda prompt: first_image if prompt.endswith("harbor") else second_image
        fake_client.delay_for = lambda prompt: 0.02 if prompt.endswith("harbor") else 0.06

        first = asyncio.create_task(workspace.orchestrator.generate_slide_image("s2", "harbor"))
        second = asyncio.create_task(workspace.orchestrator.generate_slide_image("s2", "mountains"))
        await asyncio.gather(first, second)

        assert workspace.store.get("s2").image_url == to_data_uri(second_image)
        assert workspace.tracker.status("s2", TaskKind.IMAGE) == TaskStatus.SUCCEEDED

    @pytest.mark.asyncio
    async def test_cancelled_generation_does_not_stay_running(self, workspace, fake_client):
        fake_client.gate = asyncio.Event()
        task = await started(asyncio.create_task(workspace.orchestrator.generate_slide_image("s2")))

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert workspace.tracker.status("s2", TaskKind.IMAGE) == TaskStatus.FAILED
        assert workspace.store.get("s2").image_url is None
        await asyncio.sleep(0.1)
        assert workspace.tracker.status("s2", TaskKind.IMAGE) == TaskStatus.IDLE

    @pytest.mark.asyncio
    async def test_style_read_at_completion(self, workspace, fake_client):
        fake_client.gate = asyncio.Event()
        task = await started(asyncio.create_task(workspace.orchestrator.generate_slide_image("s3")))

        workspace.set_style(CarouselStyle.STORYTELLER)
        fake_client.gate.set()
        slide = await task

        assert slide.overlay_image is True
        assert slide.image_scale == 45

    @pytest.mark.asyncio
    async def test_background_uses_square_ratio_and_slide_text(self, workspace, fake_client):
        slide = await workspace.orchestrator.generate_background_image("s1")

        assert slide.show_background_image is True
        assert slide.background_image_url.startswith("data:image/png")
        call = fake_client.calls[0]
        assert call["aspect_ratio"] == "1:1"
        assert "Why nobody tells you this" in call["prompt"]
        assert "# Why" not in call["prompt"]

    @pytest.mark.asyncio
    async def test_edit_detects_source_ratio(self, workspace, fake_client):
        workspace.store.update("s2", image_url=to_data_uri(make_png(40, 30)), show_image=True)
        before = workspace.store.get("s2")

        slide = await workspace.orchestrator.edit_slide_image("s2", "add snow")

        call = fake_client.calls[0]
        assert call["op"] == "edit"
        assert call["aspect_ratio"] == "4:3"
        assert call["mime_type"] == "image/png"
        assert slide.image_url != before.image_url
        assert slide.image_scale == before.image_scale

    @pytest.mark.asyncio
    async def test_edit_requires_image(self, workspace):
        with pytest.raises(ValidationError):
            await workspace.orchestrator.edit_slide_image("s1", "add snow")

    @pytest.mark.asyncio
    async def test_stylize_upload(self, workspace, fake_client):
        upload = make_png(30, 40)

        slide = await workspace.orchestrator.stylize_upload("s1", upload, "image/png", "oil painting")

        assert slide.show_image is True
        assert fake_client.calls[0]["aspect_ratio"] == "3:4"
        assert workspace.tracker.status("s1", TaskKind.STYLIZE) == TaskStatus.SUCCEEDED

    def test_attach_upload_as_is(self, workspace):
        upload = make_png(8, 8)

        slide = workspace.orchestrator.attach_upload("s1", upload, "image/png")

        assert slide.image_url == to_data_uri(upload, "image/png")

    def test_attach_rejects_non_image(self, workspace):
        with pytest.raises(ValidationError):
            workspace.orchestrator.attach_upload("s1", b"not an image", "image/png")


class TestRefinement:
    """Test text refinement reconciliation."""

    @pytest.mark.asyncio
    async def test_refine_slide_keeps_assets(self, workspace, fake_client):
        workspace.store.update("s2", image_url="data:image/png;base64,AA==", show_image=True)
        fake_client.default_text = '{"type": "CONTENT", "content": "Sharper point", "needsImage": true}'

        slide = await workspace.orchestrator.refine_slide("s2", "sharper")

        assert slide.id == "s2"
        assert slide.content == "Sharper point"
        assert slide.image_url == "data:image/png;base64,AA=="

    @pytest.mark.asyncio
    async def test_refine_all_writes_by_id_after_reorder_and_delete(self, workspace, fake_client):
        fake_client.default_text = carousel_json("A", "B", "C")
        fake_client.gate = asyncio.Event()
        task = await started(asyncio.create_task(workspace.orchestrator.refine_all("tighter")))

        workspace.store.reorder(["s3", "s1", "s2"])
        workspace.delete_slide("s2")
        added = workspace.new_slide(after_id="s3")
        fake_client.gate.set()
        updated = await task

        assert [s.id for s in updated] == ["s1", "s3"]
        assert workspace.store.ids() == ["s3", added.id, "s1"]
        assert workspace.store.get("s1").content == "A"
        assert workspace.store.get("s3").content == "C"
        assert workspace.store.get(added.id).content == "New slide content..."

    @pytest.mark.asyncio
    async def test_refine_all_tracked_as_carousel_task(self, workspace):
        await workspace.orchestrator.refine_all("tighter")

        assert workspace.tracker.status(ALL_SLIDES, TaskKind.REFINE) == TaskStatus.SUCCEEDED


class TestCarouselGeneration:
    """Test whole-carousel operations."""

    @pytest.mark.asyncio
    async def test_generate_replaces_slides(self, workspace):
        slides = await workspace.orchestrator.generate_carousel("Remote work", count=3)

        assert [s.content for s in slides] == ["one", "two", "three"]
        assert workspace.store.ids() == [s.id for s in slides]
        assert workspace.active_slide_id == slides[0].id

    @pytest.mark.asyncio
    async def test_topic_or_document_required(self, workspace):
        with pytest.raises(ValidationError):
            await workspace.orchestrator.generate_carousel("   ")

    @pytest.mark.asyncio
    async def test_empty_result_keeps_existing_slides(self, workspace, fake_client):
        fake_client.default_text = '{"slides": []}'

        with pytest.raises(ValidationError):
            await workspace.orchestrator.generate_carousel("Remote work")

        assert workspace.store.ids() == ["s1", "s2", "s3"]

    @pytest.mark.asyncio
    async def test_batch_members_settle_independently(self, workspace, fake_client):
        fake_client.delay_for = lambda prompt: 0.03 if "lighthouse" in prompt else 0

        batch = await workspace.orchestrator.batch_generate_images(["s1", "ghost", "s2"])

        assert batch.statuses["s1"] == TaskStatus.SUCCEEDED
        assert batch.statuses["s2"] == TaskStatus.SUCCEEDED
        assert batch.statuses["ghost"] == TaskStatus.FAILED
        assert workspace.store.get("s1").image_url is not None
        assert workspace.store.get("s2").image_url is not None

    def test_convert_style(self, workspace):
        workspace.set_style(CarouselStyle.STORYTELLER)

        assert all(s.image_scale == 45 and s.overlay_image is True for s in workspace.store.snapshot())

        workspace.set_style(CarouselStyle.APPLE_NOTES)

        assert all(s.image_scale == 50 and s.overlay_image is None for s in workspace.store.snapshot())
