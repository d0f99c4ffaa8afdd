"""
Custom exceptions for the application.
"""
from typing import Any, Dict, Optional


class CarouselAIException(Exception):
    """Base exception for all CarouselAI exceptions."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class RequestError(CarouselAIException):
    """Generative backend request failed (network or backend error)."""

    def __init__(
        self,
        message: str,
        status: Optional[int | str] = None,
        model: Optional[str] = None,
        status_code: int = 502,
    ):
        self.status = status
        self.model = model
        details: Dict[str, Any] = {}
        if status is not None:
            details["backend_status"] = status
        if model:
            details["model"] = model
        super().__init__(message, status_code=status_code, details=details)

    @property
    def is_authorization(self) -> bool:
        return False


class AuthorizationError(RequestError):
    """Backend refused the request for the selected model (HTTP 403)."""

    def __init__(self, message: str = "Permission denied", status: Optional[int | str] = 403, model: Optional[str] = None):
        super().__init__(message, status=status, model=model, status_code=403)

    @property
    def is_authorization(self) -> bool:
        return True


class RateLimitError(RequestError):
    """Backend rate limit exceeded."""

    def __init__(self, message: str = "Rate limit exceeded", status: Optional[int | str] = 429, model: Optional[str] = None):
        super().__init__(message, status=status, model=model, status_code=429)


class InvalidResponseError(RequestError):
    """Backend answered but the payload did not match the expected shape."""


class NotFoundError(CarouselAIException):
    """Resource not found exception."""

    def __init__(self, resource: str, resource_id: Any):
        self.resource = resource
        self.resource_id = resource_id
        message = f"{resource} with ID {resource_id} not found"
        super().__init__(message, status_code=404)


class ValidationError(CarouselAIException):
    """Validation error exception."""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, status_code=422, details=details)


class CaptureError(CarouselAIException):
    """Renderer failed to produce a snapshot."""

    def __init__(self, message: str = "Could not generate image", slide_id: Optional[str] = None):
        details = {"slide_id": slide_id} if slide_id else {}
        super().__init__(message, status_code=500, details=details)


class AssetTimeoutError(CarouselAIException):
    """Visual assets did not settle before the wait ceiling.

    Raised internally to describe a degraded capture; the capture itself
    still proceeds.
    """

    def __init__(self, pending: int, timeout: float):
        self.pending = pending
        self.timeout = timeout
        super().__init__(
            f"{pending} asset(s) still loading after {timeout}s",
            status_code=200,
            details={"pending_assets": pending},
        )


class ExportInProgressError(CarouselAIException):
    """An export is already running for this workspace."""

    def __init__(self, message: str = "An export is already in progress"):
        super().__init__(message, status_code=409)


class ConfigurationError(CarouselAIException):
    """Required configuration (API key, renderer) is missing."""

    def __init__(self, message: str):
        super().__init__(message, status_code=503)
