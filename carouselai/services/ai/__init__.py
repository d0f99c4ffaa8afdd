"""
Generative backend services for CarouselAI.
"""
from .base import AIProvider, GenerationClientBase
from .client_handle import ClientHandle, mask_key
from .content_service import ContentService
from .documents import UploadedDocument, load_document, process_document
from .fallback import (
    FallbackPolicy,
    PermissionGatedFallback,
    UnconditionalChain,
    is_authorization_failure,
    run_with_fallback,
)
from .gemini_provider import GeminiProvider, classify_error

__all__ = [
    # Base classes
    "AIProvider",
    "GenerationClientBase",
    # Backend
    "ClientHandle",
    "GeminiProvider",
    "classify_error",
    "mask_key",
    # Fallback
    "FallbackPolicy",
    "PermissionGatedFallback",
    "UnconditionalChain",
    "is_authorization_failure",
    "run_with_fallback",
    # Core services
    "ContentService",
    "UploadedDocument",
    "load_document",
    "process_document",
]
