"""
Project snapshot schemas for save/restore of a whole workspace.
"""
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import Field

from carouselai.domain.schemas.slide import (
    AspectRatio,
    CamelModel,
    CarouselStyle,
    Profile,
    SlideRecord,
    Theme,
)


class FontStyle(str, Enum):
    MODERN = "MODERN"
    SERIF = "SERIF"
    TECH = "TECH"
    CLASSIC = "CLASSIC"


class ProjectSettings(CamelModel):
    """Global display settings of a workspace."""
    theme: Theme = Theme.LIGHT
    accent_color: str = "#3B82F6"
    show_accent: bool = True
    show_slide_numbers: bool = True
    show_verified_badge: bool = True
    header_scale: float = 1.0
    font_style: FontStyle = FontStyle.MODERN
    font_scale: float = 1.0
    global_image_style: str = ""
    layout_settings: Dict[str, Any] = Field(default_factory=dict)


class CarouselProject(CamelModel):
    """Self-describing snapshot of a workspace.

    Only ``slides`` is mandatory; settings missing from older files are left
    as ``None`` so the importer can keep the workspace's current value.
    """
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: Optional[str] = None
    style: Optional[CarouselStyle] = None
    aspect_ratio: Optional[AspectRatio] = None
    profile: Optional[Profile] = None
    slides: List[SlideRecord]

    theme: Optional[Theme] = None
    accent_color: Optional[str] = None
    show_accent: Optional[bool] = None
    show_slide_numbers: Optional[bool] = None
    show_verified_badge: Optional[bool] = None
    header_scale: Optional[float] = None
    font_style: Optional[FontStyle] = None
    font_scale: Optional[float] = None
    global_image_style: Optional[str] = None
    layout_settings: Optional[Dict[str, Any]] = None

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def settings_overrides(self) -> Dict[str, Any]:
        """Settings present in the snapshot, keyed by field name."""
        return {
            name: getattr(self, name)
            for name in ProjectSettings.model_fields
            if getattr(self, name) is not None
        }
