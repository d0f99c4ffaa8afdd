"""
Generation endpoints: carousel text, slide images and refinement.
"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from pydantic import Field

from carouselai.api.v1.endpoints.slides import SlideListResponse, slide_list
from carouselai.core.dependencies import get_orchestrator, get_workspace
from carouselai.core.exceptions import ValidationError
from carouselai.domain.schemas.slide import CamelModel, SlideRecord
from carouselai.services.ai.documents import process_document
from carouselai.services.slides.orchestrator import GenerationOrchestrator
from carouselai.services.workspace import Workspace

router = APIRouter()


class ImageRequest(CamelModel):
    """Optional prompt override for image generation."""
    prompt: Optional[str] = None


class EditRequest(CamelModel):
    prompt: str = Field(..., min_length=1)


class RefineRequest(CamelModel):
    feedback: str = Field(..., min_length=1)


class BatchImageRequest(CamelModel):
    slide_ids: List[str] = Field(..., min_length=1)


class SlideResultResponse(CamelModel):
    """Result of a per-slide operation.

    ``discarded`` is set when the slide was deleted while the request ran.
    """
    slide: Optional[SlideRecord] = None
    discarded: bool = False


def slide_result(slide: Optional[SlideRecord]) -> SlideResultResponse:
    return SlideResultResponse(slide=slide, discarded=slide is None)


@router.post("/carousel", response_model=SlideListResponse)
async def generate_carousel(
    topic: str = Form(""),
    count: Optional[int] = Form(None, ge=3, le=20),
    document: Optional[UploadFile] = File(None),
    workspace: Workspace = Depends(get_workspace),
) -> SlideListResponse:
    """Generate a new carousel from a topic, optional document and video links."""
    uploaded = None
    if document is not None and document.filename:
        uploaded = process_document(document.filename, await document.read())

    await workspace.orchestrator.generate_carousel(topic, count, uploaded)
    await workspace.sync_renderer()
    return slide_list(workspace)


@router.post("/slides/{slide_id}/image", response_model=SlideResultResponse)
async def generate_slide_image(
    slide_id: str,
    request: ImageRequest,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> SlideResultResponse:
    """Generate the slide's foreground image."""
    return slide_result(await orchestrator.generate_slide_image(slide_id, request.prompt))


@router.post("/slides/{slide_id}/background", response_model=SlideResultResponse)
async def generate_background_image(
    slide_id: str,
    request: ImageRequest,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> SlideResultResponse:
    """Generate an atmospheric background for the slide."""
    return slide_result(await orchestrator.generate_background_image(slide_id, request.prompt))


@router.post("/slides/{slide_id}/edit", response_model=SlideResultResponse)
async def edit_slide_image(
    slide_id: str,
    request: EditRequest,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> SlideResultResponse:
    """Edit the slide's current image with instructions."""
    return slide_result(await orchestrator.edit_slide_image(slide_id, request.prompt))


@router.post("/slides/{slide_id}/stylize", response_model=SlideResultResponse)
async def stylize_upload(
    slide_id: str,
    file: UploadFile = File(...),
    style_prompt: str = Form(""),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> SlideResultResponse:
    """Attach an uploaded image, restyled when a style prompt is given."""
    data = await file.read()
    if not data:
        raise ValidationError("Uploaded image is empty", field="file")
    mime_type = file.content_type or "image/png"

    if not style_prompt.strip():
        return slide_result(orchestrator.attach_upload(slide_id, data, mime_type))
    return slide_result(await orchestrator.stylize_upload(slide_id, data, mime_type, style_prompt))


@router.post("/slides/{slide_id}/refine", response_model=SlideResultResponse)
async def refine_slide(
    slide_id: str,
    request: RefineRequest,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> SlideResultResponse:
    """Apply text feedback to one slide."""
    return slide_result(await orchestrator.refine_slide(slide_id, request.feedback))


@router.post("/refine", response_model=SlideListResponse)
async def refine_all(
    request: RefineRequest,
    workspace: Workspace = Depends(get_workspace),
) -> SlideListResponse:
    """Apply text feedback to every slide."""
    await workspace.orchestrator.refine_all(request.feedback)
    return slide_list(workspace)


@router.post("/batch/images")
async def batch_generate_images(
    request: BatchImageRequest,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> Dict[str, Any]:
    """Generate images for several slides; failures only mark their member."""
    batch = await orchestrator.batch_generate_images(request.slide_ids)
    return batch.to_dict()


@router.get("/tasks")
async def task_statuses(workspace: Workspace = Depends(get_workspace)) -> Dict[str, Any]:
    """Running and recently finished tasks per slide."""
    return {
        "statuses": workspace.tracker.statuses(),
        "batches": [batch.to_dict() for batch in workspace.tracker.batches()],
    }
