"""
Schemas for generative backend results.

The backend answers with loosely shaped JSON and multimodal envelopes; these
models are what the rest of the system sees after validation at the client
boundary.
"""
import base64
from dataclasses import dataclass
from typing import List, Optional

from pydantic import BaseModel, Field

from carouselai.domain.schemas.slide import SlideRecord, SlideType


@dataclass
class TextResult:
    """Text returned by a text-generation call."""
    text: str
    model: str
    latency_ms: int = 0


@dataclass
class GeneratedImage:
    """Raw image bytes returned by an image-generation call."""
    data: bytes
    mime_type: str
    model: str
    latency_ms: int = 0

    @property
    def data_uri(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"


class GeneratedSlide(BaseModel):
    """One slide as produced by the text model."""
    type: Optional[str] = None
    content: Optional[str] = None
    needs_image: Optional[bool] = Field(default=None, alias="needsImage")
    suggested_image_prompt: Optional[str] = Field(default=None, alias="suggestedImagePrompt")

    model_config = {"populate_by_name": True, "extra": "ignore"}

    def slide_type(self, fallback: SlideType = SlideType.CONTENT) -> SlideType:
        try:
            return SlideType((self.type or "").upper())
        except ValueError:
            return fallback

    def to_record(self) -> SlideRecord:
        """Build a brand-new slide from a generated one."""
        return SlideRecord(
            type=self.slide_type(),
            content=self.content or "",
            show_image=bool(self.needs_image),
            image_prompt=self.suggested_image_prompt or None,
            image_scale=50,
            overlay_image=True,
        )

    def merge_into(self, original: SlideRecord) -> SlideRecord:
        """Apply a refinement onto an existing slide, keeping its identity and assets."""
        return original.model_copy(
            update={
                "type": self.slide_type(original.type) if self.type else original.type,
                "content": self.content or original.content,
                "show_image": original.show_image if self.needs_image is None else self.needs_image,
                "image_prompt": self.suggested_image_prompt or original.image_prompt,
            }
        )


class GeneratedCarousel(BaseModel):
    """Envelope for multi-slide text responses."""
    slides: List[GeneratedSlide] = Field(default_factory=list)


GENERATED_SLIDE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "type": {"type": "STRING"},
        "content": {"type": "STRING"},
        "needsImage": {"type": "BOOLEAN"},
        "suggestedImagePrompt": {"type": "STRING"},
    },
    "required": ["type", "content", "needsImage", "suggestedImagePrompt"],
}

GENERATED_CAROUSEL_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "slides": {"type": "ARRAY", "items": GENERATED_SLIDE_SCHEMA},
    },
}
