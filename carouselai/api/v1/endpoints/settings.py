"""
Workspace settings endpoints: API key and display settings.
"""
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import Field

from carouselai.core.dependencies import get_workspace
from carouselai.domain.schemas.project import FontStyle
from carouselai.domain.schemas.slide import AspectRatio, CamelModel, CarouselStyle, Profile, Theme
from carouselai.services.workspace import Workspace

router = APIRouter()


class ApiKeyRequest(CamelModel):
    api_key: str = Field(..., min_length=1)


class WorkspaceSettingsUpdate(CamelModel):
    """Partial update of workspace settings."""
    project_name: Optional[str] = None
    style: Optional[CarouselStyle] = None
    aspect_ratio: Optional[AspectRatio] = None
    image_aspect_ratio: Optional[AspectRatio] = None
    profile: Optional[Profile] = None
    image_model: Optional[str] = None
    text_model: Optional[str] = None
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


def api_key_status(workspace: Workspace) -> Dict[str, Any]:
    return {
        "configured": workspace.client_handle.has_key(),
        "masked_key": workspace.client_handle.masked_key(),
    }


def workspace_settings(workspace: Workspace) -> Dict[str, Any]:
    return {
        "project_name": workspace.project_name,
        "style": workspace.style.value,
        "aspect_ratio": workspace.aspect_ratio.value,
        "image_aspect_ratio": workspace.image_aspect_ratio.value if workspace.image_aspect_ratio else None,
        "profile": workspace.profile.model_dump(by_alias=True),
        "image_model": workspace.image_model,
        "text_model": workspace.text_model,
        "settings": workspace.project_settings.model_dump(mode="json", by_alias=True),
    }


@router.get("/api-key")
async def get_api_key(workspace: Workspace = Depends(get_workspace)) -> Dict[str, Any]:
    """Whether a key is configured, and its masked form."""
    return api_key_status(workspace)


@router.put("/api-key")
async def set_api_key(request: ApiKeyRequest, workspace: Workspace = Depends(get_workspace)) -> Dict[str, Any]:
    """Swap the backend key; calls already running keep the previous client."""
    workspace.set_api_key(request.api_key)
    return api_key_status(workspace)


@router.get("/workspace")
async def get_workspace_settings(workspace: Workspace = Depends(get_workspace)) -> Dict[str, Any]:
    return workspace_settings(workspace)


@router.patch("/workspace")
async def update_workspace_settings(
    request: WorkspaceSettingsUpdate,
    workspace: Workspace = Depends(get_workspace),
) -> Dict[str, Any]:
    """Update display and generation settings; a style change converts every slide."""
    workspace.update_settings(**request.model_dump(exclude_unset=True))
    return workspace_settings(workspace)
