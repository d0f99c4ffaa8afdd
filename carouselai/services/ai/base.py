"""
Base generation client interface and abstract classes.
"""
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Optional

from carouselai.domain.schemas.generation import GeneratedImage, TextResult


class AIProvider(str, Enum):
    """Available generative backends."""
    GOOGLE = "google"


class GenerationClientBase(ABC):
    """Capability interface over an external generative backend.

    Implementations perform one network call per method, keep no local state
    between calls, and raise ``RequestError`` (or one of its subclasses) on
    failure. Callers may retry any method safely.
    """

    def __init__(self, api_key: str, **kwargs):
        self.api_key = api_key
        self.provider = AIProvider.GOOGLE

    @abstractmethod
    async def generate_text(
        self,
        prompt: str,
        model: str,
        *,
        response_schema: Optional[Dict[str, Any]] = None,
        parts: Optional[List[Dict[str, Any]]] = None,
    ) -> TextResult:
        """Generate text (optionally JSON constrained by ``response_schema``).

        ``parts`` carries extra multimodal inputs (inline documents, video
        references) sent ahead of the prompt.
        """
        pass

    @abstractmethod
    async def generate_image(
        self,
        prompt: str,
        aspect_ratio: str,
        model: str,
    ) -> GeneratedImage:
        """Generate an image from a text prompt."""
        pass

    @abstractmethod
    async def edit_image(
        self,
        image: bytes,
        mime_type: str,
        instruction: str,
        aspect_ratio: str,
        model: str,
    ) -> GeneratedImage:
        """Transform an existing image according to ``instruction``."""
        pass
