"""
structlog setup and helpers for building structured event fields.

Development renders colored console lines; every other environment emits one
JSON object per event. Request-scoped fields (``request_id``) arrive through
``structlog.contextvars``.
"""
import logging
import sys
from typing import Any, Dict, List, Optional

import structlog

from carouselai.core.config import settings


def _processors(development: bool) -> List[Any]:
    processors: List[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if development:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    else:
        processors += [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    return processors


def setup_logging() -> None:
    level = logging.DEBUG if settings.DEBUG else logging.INFO
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    structlog.configure(
        processors=_processors(settings.is_development),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: Optional[str] = None) -> structlog.BoundLogger:
    return structlog.get_logger(name)


def log_request_details(
    request_id: str,
    method: str,
    path: str,
    client_ip: Optional[str] = None,
) -> Dict[str, Any]:
    """Fields for the per-request access event."""
    context = {"request_id": request_id, "method": method, "path": path}
    if client_ip:
        context["client_ip"] = client_ip
    return context


def log_error_details(error: Exception, slide_id: Optional[str] = None, **kwargs: Any) -> Dict[str, Any]:
    """Fields describing a failure, tagged with the slide it concerned."""
    context = {"error_type": type(error).__name__, "error_message": str(error), **kwargs}
    if slide_id:
        context["slide_id"] = slide_id
    return context


def log_performance_metrics(operation: str, duration_ms: float, success: bool = True, **kwargs: Any) -> Dict[str, Any]:
    return {
        "operation": operation,
        "duration_ms": round(duration_ms, 2),
        "success": success,
        **kwargs,
    }
