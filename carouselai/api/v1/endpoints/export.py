"""
Export endpoints: single-slide PNG and full-carousel ZIP.
"""
from fastapi import APIRouter, Depends
from fastapi.responses import Response

from carouselai.core.dependencies import get_workspace
from carouselai.services.export.export_coordinator import ExportResult
from carouselai.services.workspace import Workspace

router = APIRouter()


def download_response(result: ExportResult) -> Response:
    headers = {
        "Content-Disposition": f'attachment; filename="{result.filename}"',
        "X-Captured-Slides": str(len(result.entries)),
    }
    if result.skipped:
        headers["X-Skipped-Slides"] = ",".join(result.skipped)
    return Response(content=result.data, media_type=result.mime_type, headers=headers)


@router.post("/slide")
async def export_active_slide(workspace: Workspace = Depends(get_workspace)) -> Response:
    """Download the active slide as ``slide-<n>.png``."""
    result = await workspace.export_coordinator.export_active_slide()
    return download_response(result)


@router.post("/carousel")
async def export_carousel(workspace: Workspace = Depends(get_workspace)) -> Response:
    """Download every slide, in display order, as one ZIP archive."""
    result = await workspace.export_coordinator.export_carousel()
    return download_response(result)
