"""
Reconfigurable handle to the generative backend client.
"""
from typing import Callable, Optional

import structlog

from carouselai.core.exceptions import ConfigurationError
from carouselai.services.ai.base import GenerationClientBase
from carouselai.services.ai.gemini_provider import GeminiProvider

logger = structlog.get_logger(__name__)

ClientFactory = Callable[[str], GenerationClientBase]


def mask_key(api_key: Optional[str]) -> str:
    """Show only the first and last four characters of a key."""
    if not api_key:
        return ""
    if len(api_key) <= 8:
        return "****"
    return f"{api_key[:4]}****{api_key[-4:]}"


class ClientHandle:
    """Owns the live client; swapping the key swaps the reference.

    Operations fetch ``current()`` once when they start, so a call already in
    flight finishes with the client it began with.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        factory: Optional[ClientFactory] = None,
        client: Optional[GenerationClientBase] = None,
    ):
        self._factory: ClientFactory = factory or GeminiProvider
        self._api_key = api_key
        self._client = client
        if self._client is None and api_key:
            self._client = self._factory(api_key)

    def current(self) -> GenerationClientBase:
        if self._client is None:
            raise ConfigurationError("Gemini API key is not configured")
        return self._client

    def reconfigure(self, api_key: str) -> None:
        """Build a client for ``api_key`` and make it current."""
        api_key = api_key.strip()
        if not api_key:
            raise ConfigurationError("API key must not be empty")
        self._client = self._factory(api_key)
        self._api_key = api_key
        logger.info("generation_client_reconfigured", key=self.masked_key())

    def has_key(self) -> bool:
        return self._client is not None

    def masked_key(self) -> str:
        return mask_key(self._api_key)
