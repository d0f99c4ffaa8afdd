"""
API v1 router configuration.
"""
from fastapi import APIRouter

from carouselai.api.v1.endpoints import export, generation, health, projects, settings, slides

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(health.router, tags=["health"])
api_router.include_router(slides.router, prefix="/slides", tags=["slides"])
api_router.include_router(generation.router, prefix="/generation", tags=["generation"])
api_router.include_router(export.router, prefix="/export", tags=["export"])
api_router.include_router(projects.router, prefix="/projects", tags=["projects"])
api_router.include_router(settings.router, prefix="/settings", tags=["settings"])
