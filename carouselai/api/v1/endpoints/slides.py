"""API endpoints for editing the slide collection."""

from typing import List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import Field

from carouselai.core.dependencies import get_workspace
from carouselai.domain.schemas.slide import CamelModel, SlideRecord, SlideType
from carouselai.services.workspace import Workspace

router = APIRouter()


class SlideListResponse(CamelModel):
    """Ordered slides plus the active slide."""
    slides: List[SlideRecord]
    active_slide_id: Optional[str] = None


class SlideCreateRequest(CamelModel):
    """Request model for adding a slide."""
    after_id: Optional[str] = Field(None, description="Insert after this slide (default: active slide)")
    type: Optional[SlideType] = None
    content: Optional[str] = None
    image_prompt: Optional[str] = None


class SlideUpdateRequest(CamelModel):
    """User edits of a slide's text and display attributes."""
    type: Optional[SlideType] = None
    content: Optional[str] = None
    image_prompt: Optional[str] = None
    image_url: Optional[str] = None
    show_image: Optional[bool] = None
    image_scale: Optional[int] = Field(None, ge=10, le=90)
    overlay_image: Optional[bool] = None
    image_offset_y: Optional[int] = Field(None, ge=0, le=100)
    gradient_height: Optional[int] = Field(None, ge=0, le=100)
    show_background_image: Optional[bool] = None
    background_image_url: Optional[str] = None


class ReorderRequest(CamelModel):
    slide_ids: List[str]


def slide_list(workspace: Workspace) -> SlideListResponse:
    return SlideListResponse(slides=list(workspace.store.snapshot()), active_slide_id=workspace.active_slide_id)


@router.get("", response_model=SlideListResponse)
async def list_slides(workspace: Workspace = Depends(get_workspace)) -> SlideListResponse:
    """List slides in display order."""
    return slide_list(workspace)


@router.post("", response_model=SlideRecord, status_code=status.HTTP_201_CREATED)
async def add_slide(
    request: SlideCreateRequest,
    workspace: Workspace = Depends(get_workspace),
) -> SlideRecord:
    """Insert a new slide and make it active."""
    slide = workspace.new_slide(
        after_id=request.after_id,
        type=request.type,
        content=request.content,
        image_prompt=request.image_prompt,
    )
    await workspace.sync_renderer()
    return slide


@router.post("/reorder", response_model=SlideListResponse)
async def reorder_slides(
    request: ReorderRequest,
    workspace: Workspace = Depends(get_workspace),
) -> SlideListResponse:
    """Reorder the carousel to the given id order."""
    workspace.store.reorder(request.slide_ids)
    return slide_list(workspace)


@router.patch("/{slide_id}", response_model=SlideRecord)
async def update_slide(
    slide_id: str,
    request: SlideUpdateRequest,
    workspace: Workspace = Depends(get_workspace),
) -> SlideRecord:
    """Apply user edits to one slide."""
    return workspace.store.update(slide_id, **request.model_dump(exclude_unset=True))


@router.delete("/{slide_id}", response_model=SlideListResponse)
async def delete_slide(
    slide_id: str,
    workspace: Workspace = Depends(get_workspace),
) -> SlideListResponse:
    """Delete a slide; pending generation results for it are discarded."""
    workspace.delete_slide(slide_id)
    await workspace.sync_renderer()
    return slide_list(workspace)


@router.post("/{slide_id}/activate", response_model=SlideRecord)
async def activate_slide(
    slide_id: str,
    workspace: Workspace = Depends(get_workspace),
) -> SlideRecord:
    """Make a slide the active (previewed) slide."""
    return await workspace.activate(slide_id)
