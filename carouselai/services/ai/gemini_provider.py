"""
Google Gemini provider implementation.
"""
import time
from typing import Any, Dict, List, Optional

import structlog
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from carouselai.core.exceptions import (
    AuthorizationError,
    InvalidResponseError,
    RateLimitError,
    RequestError,
)
from carouselai.domain.schemas.generation import GeneratedImage, TextResult
from carouselai.services.ai.base import AIProvider, GenerationClientBase

logger = structlog.get_logger(__name__)

# Models that accept the 2K image size option
HIGH_RESOLUTION_IMAGE_MODELS = {"gemini-3-pro-image-preview"}


def classify_error(error: Exception, model: Optional[str] = None) -> RequestError:
    """Map a backend exception onto the request error taxonomy."""
    if isinstance(error, RequestError):
        return error

    code = getattr(error, "code", None)
    status = getattr(error, "status", None)
    message = getattr(error, "message", None) or str(error)

    if code == 403 or status == "PERMISSION_DENIED" or "403" in message:
        return AuthorizationError(message, status=code or status, model=model)
    if code == 429 or status == "RESOURCE_EXHAUSTED":
        return RateLimitError(message, status=code or status, model=model)
    return RequestError(message, status=code or status, model=model)


def extract_image(response: Any, model: str) -> GeneratedImage:
    """Return the first inline image of the first candidate."""
    candidates = getattr(response, "candidates", None) or []
    if candidates:
        content = getattr(candidates[0], "content", None)
        for part in getattr(content, "parts", None) or []:
            inline = getattr(part, "inline_data", None)
            if inline is not None and getattr(inline, "data", None):
                return GeneratedImage(
                    data=inline.data,
                    mime_type=getattr(inline, "mime_type", None) or "image/png",
                    model=model,
                )
    raise InvalidResponseError("No image data returned from API", model=model)


class GeminiProvider(GenerationClientBase):
    """Gemini text and image generation over the async google-genai client."""

    def __init__(self, api_key: str, client: Optional[genai.Client] = None):
        super().__init__(api_key)
        self.provider = AIProvider.GOOGLE
        self.client = client or genai.Client(api_key=api_key)

    async def _call(self, model: str, contents: Any, config: types.GenerateContentConfig) -> Any:
        try:
            return await self.client.aio.models.generate_content(
                model=model,
                contents=contents,
                config=config,
            )
        except genai_errors.APIError as e:
            error = classify_error(e, model)
            logger.error(
                "gemini_request_failed",
                model=model,
                status=error.status,
                error_type=type(error).__name__,
                error=error.message,
            )
            raise error from e
        except Exception as e:
            logger.error("gemini_transport_error", model=model, error=str(e))
            raise RequestError(str(e), model=model) from e

    def _image_config(self, model: str, aspect_ratio: str) -> types.GenerateContentConfig:
        if model in HIGH_RESOLUTION_IMAGE_MODELS:
            image_config = types.ImageConfig(aspect_ratio=aspect_ratio, image_size="2K")
        else:
            image_config = types.ImageConfig(aspect_ratio=aspect_ratio)
        return types.GenerateContentConfig(image_config=image_config)

    async def generate_text(
        self,
        prompt: str,
        model: str,
        *,
        response_schema: Optional[Dict[str, Any]] = None,
        parts: Optional[List[Dict[str, Any]]] = None,
    ) -> TextResult:
        """Generate text using Gemini."""
        start_time = time.time()

        if parts:
            contents: Any = types.Content(
                role="user",
                parts=[types.Part.model_validate(p) for p in parts] + [types.Part.from_text(text=prompt)],
            )
        else:
            contents = prompt

        config = types.GenerateContentConfig()
        if response_schema is not None:
            config = types.GenerateContentConfig(
                response_mime_type="application/json",
                response_schema=response_schema,
            )

        response = await self._call(model, contents, config)
        latency_ms = int((time.time() - start_time) * 1000)

        text = getattr(response, "text", None)
        if text is None:
            raise InvalidResponseError("Empty text response", model=model)

        logger.info("gemini_text_complete", model=model, latency_ms=latency_ms, chars=len(text))
        return TextResult(text=text, model=model, latency_ms=latency_ms)

    async def generate_image(self, prompt: str, aspect_ratio: str, model: str) -> GeneratedImage:
        """Generate an image from a prompt."""
        start_time = time.time()
        response = await self._call(
            model,
            types.Content(role="user", parts=[types.Part.from_text(text=prompt)]),
            self._image_config(model, aspect_ratio),
        )
        image = extract_image(response, model)
        image.latency_ms = int((time.time() - start_time) * 1000)

        logger.info(
            "gemini_image_complete",
            model=model,
            aspect_ratio=aspect_ratio,
            latency_ms=image.latency_ms,
            size_bytes=len(image.data),
        )
        return image

    async def edit_image(
        self,
        image: bytes,
        mime_type: str,
        instruction: str,
        aspect_ratio: str,
        model: str,
    ) -> GeneratedImage:
        """Image-to-image transformation."""
        start_time = time.time()
        response = await self._call(
            model,
            types.Content(
                role="user",
                parts=[
                    types.Part.from_bytes(data=image, mime_type=mime_type),
                    types.Part.from_text(text=instruction),
                ],
            ),
            self._image_config(model, aspect_ratio),
        )
        result = extract_image(response, model)
        result.latency_ms = int((time.time() - start_time) * 1000)

        logger.info("gemini_image_edit_complete", model=model, latency_ms=result.latency_ms)
        return result
