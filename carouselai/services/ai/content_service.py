"""
Carousel content generation over the generative backend.

Text calls walk the text tiers under ``UnconditionalChain``; image calls walk
the image tiers under ``PermissionGatedFallback``. The backend client is
fetched from the handle once per operation.
"""
import json
from typing import List, Optional, Sequence

import pydantic
import structlog

from carouselai.core.config import Settings, settings as default_settings
from carouselai.core.exceptions import InvalidResponseError
from carouselai.domain.schemas.generation import (
    GENERATED_CAROUSEL_SCHEMA,
    GENERATED_SLIDE_SCHEMA,
    GeneratedCarousel,
    GeneratedImage,
    GeneratedSlide,
)
from carouselai.domain.schemas.slide import SlideRecord
from carouselai.services.ai import prompts
from carouselai.services.ai.client_handle import ClientHandle
from carouselai.services.ai.documents import UploadedDocument, build_input_parts, effective_topic
from carouselai.services.ai.fallback import (
    FallbackPolicy,
    PermissionGatedFallback,
    UnconditionalChain,
    run_with_fallback,
)

logger = structlog.get_logger(__name__)


def parse_carousel(text: Optional[str], model: str) -> GeneratedCarousel:
    try:
        return GeneratedCarousel.model_validate(json.loads(text or "{}"))
    except (json.JSONDecodeError, pydantic.ValidationError) as e:
        raise InvalidResponseError(f"Malformed carousel JSON: {e}", model=model) from e


def parse_slide(text: Optional[str], model: str) -> GeneratedSlide:
    try:
        return GeneratedSlide.model_validate(json.loads(text or "{}"))
    except (json.JSONDecodeError, pydantic.ValidationError) as e:
        raise InvalidResponseError(f"Malformed slide JSON: {e}", model=model) from e


class ContentService:
    """Generates and refines carousel text and slide imagery."""

    def __init__(
        self,
        client_handle: ClientHandle,
        settings: Optional[Settings] = None,
        text_policy: Optional[FallbackPolicy] = None,
        image_policy: Optional[FallbackPolicy] = None,
    ):
        self.client_handle = client_handle
        self.settings = settings or default_settings
        self.text_policy = text_policy or UnconditionalChain()
        self.image_policy = image_policy or PermissionGatedFallback()

    @property
    def text_tiers(self) -> List[str]:
        return list(self.settings.TEXT_MODEL_TIERS)

    @property
    def image_tiers(self) -> List[str]:
        return list(self.settings.IMAGE_MODEL_TIERS)

    async def generate_carousel(
        self,
        topic: str,
        count: Optional[int] = None,
        document: Optional[UploadedDocument] = None,
        start_model: Optional[str] = None,
    ) -> List[SlideRecord]:
        """Generate a fresh AIDA-structured carousel."""
        count = count or self.settings.DEFAULT_SLIDE_COUNT
        topic_text = effective_topic(topic, document)
        prompt = prompts.carousel_prompt(topic_text, count, has_document=document is not None)
        parts = build_input_parts(topic_text, document)
        client = self.client_handle.current()

        async def call(model: str) -> GeneratedCarousel:
            result = await client.generate_text(
                prompt,
                model,
                response_schema=GENERATED_CAROUSEL_SCHEMA,
                parts=parts or None,
            )
            return parse_carousel(result.text, model)

        carousel, model = await run_with_fallback(self.text_tiers, self.text_policy, call, start=start_model)
        slides = [generated.to_record() for generated in carousel.slides]

        logger.info(
            "carousel_generated",
            model=model,
            requested=count,
            received=len(slides),
            has_document=document is not None,
            input_parts=len(parts),
        )
        return slides

    async def refine_carousel(
        self,
        slides: Sequence[SlideRecord],
        feedback: str,
        start_model: Optional[str] = None,
    ) -> List[GeneratedSlide]:
        """Refine every slide; result ``i`` corresponds to ``slides[i]``."""
        prompt = prompts.refine_carousel_prompt(slides, feedback)
        client = self.client_handle.current()

        async def call(model: str) -> GeneratedCarousel:
            result = await client.generate_text(prompt, model, response_schema=GENERATED_CAROUSEL_SCHEMA)
            return parse_carousel(result.text, model)

        carousel, model = await run_with_fallback(self.text_tiers, self.text_policy, call, start=start_model)
        logger.info("carousel_refined", model=model, slides=len(slides), received=len(carousel.slides))
        return list(carousel.slides)

    async def refine_slide(
        self,
        slide: SlideRecord,
        feedback: str,
        position: int = 0,
        start_model: Optional[str] = None,
    ) -> GeneratedSlide:
        """Refine a single slide."""
        prompt = prompts.refine_slide_prompt(slide, feedback, position)
        client = self.client_handle.current()

        async def call(model: str) -> GeneratedSlide:
            result = await client.generate_text(prompt, model, response_schema=GENERATED_SLIDE_SCHEMA)
            return parse_slide(result.text, model)

        refined, model = await run_with_fallback(self.text_tiers, self.text_policy, call, start=start_model)
        logger.info("slide_refined", model=model, slide_id=slide.id)
        return refined

    async def generate_image(
        self,
        prompt: str,
        aspect_ratio: str,
        style: Optional[str] = None,
        start_model: Optional[str] = None,
    ) -> GeneratedImage:
        """Generate an image; ``aspect_ratio`` is in API notation ("4:5")."""
        full_prompt = prompts.styled_image_prompt(prompt, style, self.settings.DEFAULT_IMAGE_STYLE)
        client = self.client_handle.current()

        async def call(model: str) -> GeneratedImage:
            return await client.generate_image(full_prompt, aspect_ratio, model)

        image, _ = await run_with_fallback(self.image_tiers, self.image_policy, call, start=start_model)
        return image

    async def stylize_image(
        self,
        image: bytes,
        mime_type: str,
        style_prompt: str,
        aspect_ratio: str,
        start_model: Optional[str] = None,
    ) -> GeneratedImage:
        """Apply an artistic style to an uploaded image."""
        return await self._transform(
            image, mime_type, prompts.stylize_instruction(style_prompt), aspect_ratio, start_model
        )

    async def edit_image(
        self,
        image: bytes,
        mime_type: str,
        edit_prompt: str,
        aspect_ratio: str,
        start_model: Optional[str] = None,
    ) -> GeneratedImage:
        """Apply edit instructions to an existing image."""
        return await self._transform(
            image, mime_type, prompts.edit_instruction(edit_prompt), aspect_ratio, start_model
        )

    async def _transform(
        self,
        image: bytes,
        mime_type: str,
        instruction: str,
        aspect_ratio: str,
        start_model: Optional[str],
    ) -> GeneratedImage:
        client = self.client_handle.current()

        async def call(model: str) -> GeneratedImage:
            return await client.edit_image(image, mime_type, instruction, aspect_ratio, model)

        result, _ = await run_with_fallback(self.image_tiers, self.image_policy, call, start=start_model)
        return result
