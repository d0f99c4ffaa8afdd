"""
Health check endpoints.
"""
from typing import Any, Dict

from fastapi import APIRouter, Depends

from carouselai.core.config import settings
from carouselai.core.dependencies import get_workspace
from carouselai.services.workspace import Workspace

router = APIRouter()


@router.get("/health")
async def health_check(workspace: Workspace = Depends(get_workspace)) -> Dict[str, Any]:
    """
    Basic health check endpoint.

    Returns:
        Health status with component readiness
    """
    return {
        "status": "healthy",
        "service": "carouselai-api",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "components": {
            "generation_client": "configured" if workspace.client_handle.has_key() else "missing_api_key",
            "renderer": "configured" if workspace.renderer is not None else "disabled",
        },
    }
