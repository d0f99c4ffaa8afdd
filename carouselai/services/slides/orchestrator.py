"""
Generation orchestration against the shared slide store.

Each operation captures the target slide id and its prompt inputs when it
starts, awaits the backend through the task tracker, and writes its result
back by id against whatever the store holds at completion time. Work whose
slide was deleted meanwhile is dropped.
"""
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

import structlog

from carouselai.core.exceptions import ValidationError
from carouselai.domain.schemas.slide import AspectRatio, CarouselStyle, SlideRecord
from carouselai.services.ai.content_service import ContentService
from carouselai.services.ai.documents import UploadedDocument
from carouselai.services.ai.imaging import api_aspect_ratio, detect_api_ratio, parse_data_uri, to_data_uri
from carouselai.services.ai.prompts import background_prompt
from carouselai.services.slides.store import SlideStore
from carouselai.services.slides.tracker import BatchRun, TaskKind, TaskTracker

logger = structlog.get_logger(__name__)

# Tracker key for operations spanning the whole carousel
ALL_SLIDES = "*"

BACKGROUND_ASPECT_RATIO = "1:1"


@dataclass
class GenerationContext:
    """Workspace choices that shape a generation request."""
    style: CarouselStyle = CarouselStyle.TWITTER
    image_aspect_ratio: AspectRatio = AspectRatio.SQUARE
    image_style: str = ""
    image_model: Optional[str] = None
    text_model: Optional[str] = None


def convert_slide_style(slide: SlideRecord, style: CarouselStyle) -> SlideRecord:
    """Reset style-specific layout properties for ``style``."""
    is_storyteller = style == CarouselStyle.STORYTELLER
    return slide.model_copy(
        update={
            "overlay_image": True if is_storyteller else None,
            "image_scale": 45 if is_storyteller else 50,
        }
    )


class GenerationOrchestrator:
    """Runs per-slide and carousel-wide generation work."""

    def __init__(
        self,
        store: SlideStore,
        tracker: TaskTracker,
        content: ContentService,
        context: Callable[[], GenerationContext],
    ):
        self.store = store
        self.tracker = tracker
        self.content = content
        self.context = context

    def _current_style(self) -> CarouselStyle:
        return self.context().style

    async def generate_slide_image(self, slide_id: str, prompt: Optional[str] = None) -> Optional[SlideRecord]:
        """Generate the foreground image of a slide."""
        slide = self.store.require(slide_id)
        prompt = prompt or slide.default_image_prompt()
        ctx = self.context()
        aspect_ratio = api_aspect_ratio(ctx.image_aspect_ratio)

        async def operation() -> Optional[SlideRecord]:
            image = await self.content.generate_image(prompt, aspect_ratio, ctx.image_style, ctx.image_model)
            return self.store.replace(slide_id, lambda s: s.with_image(image.data_uri, self._current_style()))

        return await self.tracker.run(slide_id, TaskKind.IMAGE, operation)

    async def generate_background_image(self, slide_id: str, prompt: Optional[str] = None) -> Optional[SlideRecord]:
        """Generate a square atmospheric background behind the slide text."""
        slide = self.store.require(slide_id)
        prompt = (prompt or "").strip() or background_prompt(slide.content)
        ctx = self.context()

        async def operation() -> Optional[SlideRecord]:
            image = await self.content.generate_image(
                prompt, BACKGROUND_ASPECT_RATIO, ctx.image_style, ctx.image_model
            )
            return self.store.replace(slide_id, lambda s: s.with_background(image.data_uri))

        return await self.tracker.run(slide_id, TaskKind.BACKGROUND, operation)

    def attach_upload(self, slide_id: str, image: bytes, mime_type: str) -> Optional[SlideRecord]:
        """Use an uploaded image as-is."""
        self.store.require(slide_id)
        detect_api_ratio(image)
        data_uri = to_data_uri(image, mime_type)
        return self.store.replace(slide_id, lambda s: s.with_image(data_uri, self._current_style()))

    async def stylize_upload(
        self,
        slide_id: str,
        image: bytes,
        mime_type: str,
        style_prompt: str,
    ) -> Optional[SlideRecord]:
        """Restyle an uploaded image and attach it to the slide."""
        if not style_prompt.strip():
            raise ValidationError("Style prompt must not be empty", field="style_prompt")
        self.store.require(slide_id)
        aspect_ratio = detect_api_ratio(image)
        ctx = self.context()

        async def operation() -> Optional[SlideRecord]:
            result = await self.content.stylize_image(image, mime_type, style_prompt, aspect_ratio, ctx.image_model)
            return self.store.replace(slide_id, lambda s: s.with_image(result.data_uri, self._current_style()))

        return await self.tracker.run(slide_id, TaskKind.STYLIZE, operation)

    async def edit_slide_image(self, slide_id: str, edit_prompt: str) -> Optional[SlideRecord]:
        """Edit the slide's current image in place."""
        if not edit_prompt.strip():
            raise ValidationError("Edit prompt must not be empty", field="edit_prompt")
        slide = self.store.require(slide_id)
        if not slide.image_url:
            raise ValidationError("Slide has no image to edit", field="image_url")

        mime_type, image = parse_data_uri(slide.image_url)
        aspect_ratio = detect_api_ratio(image)
        ctx = self.context()

        async def operation() -> Optional[SlideRecord]:
            result = await self.content.edit_image(image, mime_type, edit_prompt, aspect_ratio, ctx.image_model)
            return self.store.replace(slide_id, lambda s: s.model_copy(update={"image_url": result.data_uri}))

        return await self.tracker.run(slide_id, TaskKind.EDIT, operation)

    async def refine_slide(self, slide_id: str, feedback: str) -> Optional[SlideRecord]:
        """Apply text feedback to one slide."""
        slide = self.store.require(slide_id)
        position = self.store.index_of(slide_id)
        ctx = self.context()

        async def operation() -> Optional[SlideRecord]:
            refined = await self.content.refine_slide(slide, feedback, position, ctx.text_model)
            return self.store.replace(slide_id, refined.merge_into)

        return await self.tracker.run(slide_id, TaskKind.REFINE, operation)

    async def refine_all(self, feedback: str) -> List[SlideRecord]:
        """Apply text feedback to every slide.

        Refinements are paired with the ids captured at start and written back
        per id, so slides added, removed or reordered meanwhile stay intact.
        """
        slides = self.store.snapshot()
        if not slides:
            raise ValidationError("There are no slides to refine")
        ids = [slide.id for slide in slides]
        ctx = self.context()

        async def operation() -> List[SlideRecord]:
            refined = await self.content.refine_carousel(slides, feedback, ctx.text_model)
            if len(refined) != len(ids):
                logger.warning("refinement_count_mismatch", expected=len(ids), received=len(refined))

            updated: List[SlideRecord] = []
            for slide_id, patch in zip(ids, refined):
                record = self.store.replace(slide_id, patch.merge_into)
                if record is not None:
                    updated.append(record)
            return updated

        return await self.tracker.run(ALL_SLIDES, TaskKind.REFINE, operation)

    async def generate_carousel(
        self,
        topic: str,
        count: Optional[int] = None,
        document: Optional[UploadedDocument] = None,
    ) -> Tuple[SlideRecord, ...]:
        """Replace the collection with a freshly generated carousel."""
        if not topic.strip() and document is None:
            raise ValidationError("A topic or a document is required", field="topic")
        ctx = self.context()

        slides = await self.content.generate_carousel(topic, count, document, ctx.text_model)
        if not slides:
            raise ValidationError("The model returned no slides")
        return self.store.reset(slides)

    async def batch_generate_images(self, slide_ids: List[str]) -> BatchRun:
        """Generate images for several slides concurrently.

        Each member reconciles on its own; a failure only marks that member.
        """
        if not slide_ids:
            raise ValidationError("No slides selected", field="slide_ids")
        ctx = self.context()
        aspect_ratio = api_aspect_ratio(ctx.image_aspect_ratio)

        async def member(slide_id: str) -> Optional[SlideRecord]:
            slide = self.store.require(slide_id)
            image = await self.content.generate_image(
                slide.default_image_prompt(), aspect_ratio, ctx.image_style, ctx.image_model
            )
            return self.store.replace(slide_id, lambda s: s.with_image(image.data_uri, self._current_style()))

        return await self.tracker.run_batch(slide_ids, TaskKind.IMAGE, member)

    def convert_style(self, style: CarouselStyle) -> Tuple[SlideRecord, ...]:
        """Adjust every slide's layout properties for ``style``."""
        style = CarouselStyle(style)
        return self.store.apply(lambda slides: [convert_slide_style(s, style) for s in slides])
