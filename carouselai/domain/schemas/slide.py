"""
Slide and carousel schemas.

Slides are immutable records: every change produces a new record through
``model_copy(update=...)`` so a copy captured by a long-running task can never
be mutated in place behind the store's back.
"""
import uuid
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class SlideType(str, Enum):
    """Role of a slide within the carousel narrative."""
    COVER = "COVER"
    CONTENT = "CONTENT"
    CTA = "CTA"


class CarouselStyle(str, Enum):
    """Visual template family used by the renderer."""
    TWITTER = "TWITTER"
    APPLE_NOTES = "APPLE_NOTES"
    STORYTELLER = "STORYTELLER"


class AspectRatio(str, Enum):
    """Slide aspect ratios supported by the editor."""
    SQUARE = "1/1"
    PORTRAIT = "4/5"
    STORY = "9/16"
    LANDSCAPE = "16/9"


class Theme(str, Enum):
    LIGHT = "LIGHT"
    DARK = "DARK"


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class Profile(CamelModel):
    """Author identity shown on slides."""
    name: str = ""
    handle: str = ""
    avatar_url: str = "https://picsum.photos/200/200"


class SlideRecord(CamelModel):
    """One slide of the carousel, identified by a stable ``id``."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    type: SlideType = SlideType.CONTENT
    content: str = ""
    image_prompt: Optional[str] = None
    image_url: Optional[str] = None
    show_image: bool = False
    image_scale: Optional[int] = Field(default=None, ge=10, le=90)
    overlay_image: Optional[bool] = None
    image_offset_y: Optional[int] = Field(default=None, ge=0, le=100)
    gradient_height: Optional[int] = Field(default=None, ge=0, le=100)
    show_background_image: bool = False
    background_image_url: Optional[str] = None

    def with_image(self, image_url: str, style: CarouselStyle) -> "SlideRecord":
        """Attach a generated or uploaded foreground image."""
        is_storyteller = style == CarouselStyle.STORYTELLER
        return self.model_copy(
            update={
                "show_image": True,
                "image_url": image_url,
                "image_scale": self.image_scale or (45 if is_storyteller else 50),
                "overlay_image": True if is_storyteller else None,
            }
        )

    def with_background(self, image_url: str) -> "SlideRecord":
        return self.model_copy(
            update={"show_background_image": True, "background_image_url": image_url}
        )

    def default_image_prompt(self) -> str:
        """Prompt used when the slide has no explicit image prompt."""
        return self.image_prompt or f"An abstract representation of: {self.content[:50]}"
