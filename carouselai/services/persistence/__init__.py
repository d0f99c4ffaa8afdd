"""
Project persistence for CarouselAI.
"""
from .project_io import dumps, export_project, load, loads, save

__all__ = [
    "dumps",
    "export_project",
    "load",
    "loads",
    "save",
]
