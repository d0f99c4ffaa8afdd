"""
Project snapshot endpoints.
"""
from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from carouselai.api.v1.endpoints.slides import SlideListResponse, slide_list
from carouselai.core.dependencies import get_workspace
from carouselai.services.persistence import project_io
from carouselai.services.workspace import Workspace

router = APIRouter()


@router.get("/current")
async def current_project(workspace: Workspace = Depends(get_workspace)) -> Response:
    """Snapshot of the workspace as camelCase JSON."""
    project = project_io.export_project(workspace)
    return Response(content=project_io.dumps(project), media_type="application/json")


@router.post("/import", response_model=SlideListResponse)
async def import_project(request: Request, workspace: Workspace = Depends(get_workspace)) -> SlideListResponse:
    """Replace the workspace with a project snapshot sent as the request body."""
    project = project_io.loads(await request.body())
    workspace.restore(project)
    await workspace.sync_renderer()
    return slide_list(workspace)
