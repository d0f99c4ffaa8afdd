"""
Tests for the Gemini provider adapter.
"""
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from google.genai import errors as genai_errors
from google.genai import types

from carouselai.core.exceptions import (
    AuthorizationError,
    InvalidResponseError,
    RateLimitError,
    RequestError,
)
from carouselai.services.ai.gemini_provider import GeminiProvider, classify_error, extract_image


def image_response(data=b"image-bytes", mime_type="image/jpeg"):
    return SimpleNamespace(candidates=[
        SimpleNamespace(content=SimpleNamespace(parts=[
            SimpleNamespace(inline_data=None, text="Here is your image"),
            SimpleNamespace(inline_data=SimpleNamespace(data=data, mime_type=mime_type)),
        ]))
    ])


def api_error(code, status, message="denied"):
    return genai_errors.ClientError(code, {"error": {"code": code, "message": message, "status": status}})


@pytest.fixture
def mock_client():
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock()
    return client


@pytest.fixture
def provider(mock_client):
    return GeminiProvider("test-key", client=mock_client)


class TestClassifyError:
    """Test mapping backend errors to the request error taxonomy."""

    def test_permission_denied(self):
        error = classify_error(api_error(403, "PERMISSION_DENIED"), "model-a")

        assert isinstance(error, AuthorizationError)
        assert error.model == "model-a"

    def test_rate_limited(self):
        error = classify_error(api_error(429, "RESOURCE_EXHAUSTED", "quota"), "model-a")

        assert isinstance(error, RateLimitError)

    def test_other_failure(self):
        error = classify_error(RuntimeError("connection reset"), "model-a")

        assert type(error) is RequestError
        assert not error.is_authorization


class TestExtractImage:
    """Test pulling inline image data from responses."""

    def test_first_inline_image(self):
        image = extract_image(image_response(), "model-a")

        assert image.data == b"image-bytes"
        assert image.mime_type == "image/jpeg"

    def test_missing_image(self):
        response = SimpleNamespace(candidates=[
            SimpleNamespace(content=SimpleNamespace(parts=[SimpleNamespace(inline_data=None)]))
        ])

        with pytest.raises(InvalidResponseError):
            extract_image(response, "model-a")

    def test_no_candidates(self):
        with pytest.raises(InvalidResponseError):
            extract_image(SimpleNamespace(candidates=None), "model-a")


class TestGeminiProvider:
    """Test requests sent through the async client."""

    @pytest.mark.asyncio
    async def test_generate_text_with_schema(self, provider, mock_client):
        mock_client.aio.models.generate_content.return_value = SimpleNamespace(text='{"slides": []}')

        result = await provider.generate_text("prompt", "text-model", response_schema={"type": "OBJECT"})

        assert result.text == '{"slides": []}'
        assert result.model == "text-model"
        kwargs = mock_client.aio.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "text-model"
        assert kwargs["contents"] == "prompt"
        assert kwargs["config"].response_mime_type == "application/json"

    @pytest.mark.asyncio
    async def test_generate_text_with_parts(self, provider, mock_client):
        mock_client.aio.models.generate_content.return_value = SimpleNamespace(text="{}")

        await provider.generate_text(
            "prompt",
            "text-model",
            parts=[{"file_data": {"file_uri": "https://youtu.be/abcdefghijk"}}],
        )

        contents = mock_client.aio.models.generate_content.call_args.kwargs["contents"]
        assert isinstance(contents, types.Content)
        assert contents.parts[0].file_data.file_uri == "https://youtu.be/abcdefghijk"
        assert contents.parts[-1].text == "prompt"

    @pytest.mark.asyncio
    async def test_empty_text_response(self, provider, mock_client):
        mock_client.aio.models.generate_content.return_value = SimpleNamespace(text=None)

        with pytest.raises(InvalidResponseError):
            await provider.generate_text("prompt", "text-model")

    @pytest.mark.asyncio
    async def test_pro_image_model_requests_2k(self, provider, mock_client):
        mock_client.aio.models.generate_content.return_value = image_response()

        image = await provider.generate_image("a cat", "4:5", "gemini-3-pro-image-preview")

        assert image.data == b"image-bytes"
        config = mock_client.aio.models.generate_content.call_args.kwargs["config"]
        assert config.image_config.aspect_ratio == "4:5"
        assert config.image_config.image_size == "2K"

    @pytest.mark.asyncio
    async def test_flash_image_model_default_size(self, provider, mock_client):
        mock_client.aio.models.generate_content.return_value = image_response()

        await provider.generate_image("a cat", "1:1", "gemini-2.5-flash-image")

        config = mock_client.aio.models.generate_content.call_args.kwargs["config"]
        assert config.image_config.aspect_ratio == "1:1"
        assert config.image_config.image_size is None

    @pytest.mark.asyncio
    async def test_edit_sends_image_then_instruction(self, provider, mock_client):
        mock_client.aio.models.generate_content.return_value = image_response()

        await provider.edit_image(b"source", "image/png", "make it blue", "1:1", "gemini-2.5-flash-image")

        contents = mock_client.aio.models.generate_content.call_args.kwargs["contents"]
        assert contents.parts[0].inline_data.data == b"source"
        assert contents.parts[0].inline_data.mime_type == "image/png"
        assert contents.parts[1].text == "make it blue"

    @pytest.mark.asyncio
    async def test_api_error_is_classified(self, provider, mock_client):
        mock_client.aio.models.generate_content.side_effect = api_error(403, "PERMISSION_DENIED")

        with pytest.raises(AuthorizationError):
            await provider.generate_image("a cat", "1:1", "gemini-3-pro-image-preview")

    @pytest.mark.asyncio
    async def test_transport_error_wrapped(self, provider, mock_client):
        mock_client.aio.models.generate_content.side_effect = ConnectionError("reset")

        with pytest.raises(RequestError):
            await provider.generate_text("prompt", "text-model")
