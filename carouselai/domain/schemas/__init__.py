"""
Domain schemas for the CarouselAI application.
"""

from .generation import *
from .project import *
from .slide import *

__all__ = [
    # Slide schemas
    "AspectRatio",
    "CarouselStyle",
    "Profile",
    "SlideRecord",
    "SlideType",
    "Theme",

    # Project schemas
    "CarouselProject",
    "FontStyle",
    "ProjectSettings",

    # Generation schemas
    "GeneratedCarousel",
    "GeneratedImage",
    "GeneratedSlide",
    "TextResult",
]
