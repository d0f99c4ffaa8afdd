"""
Dependency injection for FastAPI.
"""
from typing import Optional

from fastapi import Depends

from carouselai.core.config import settings
from carouselai.services.workspace import Workspace
from carouselai.services.slides.orchestrator import GenerationOrchestrator

_workspace: Optional[Workspace] = None


def get_workspace() -> Workspace:
    """
    Get the process-wide editor workspace.

    Returns:
        The workspace, created on first use
    """
    global _workspace
    if _workspace is None:
        _workspace = Workspace(settings)
    return _workspace


def set_workspace(workspace: Optional[Workspace]) -> None:
    """Install (or clear) the process-wide workspace."""
    global _workspace
    _workspace = workspace


def get_orchestrator(workspace: Workspace = Depends(get_workspace)) -> GenerationOrchestrator:
    return workspace.orchestrator
