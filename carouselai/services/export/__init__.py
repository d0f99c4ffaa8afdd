"""
Export module for CarouselAI.

Provides slide capture, carousel ZIP export and archive packaging.
"""

from .capture import CapturePipeline, CaptureResult, CaptureState, background_color, export_height
from .export_coordinator import ArchiveEntry, ExportCoordinator, ExportResult
from .packager import ZipArchivePackager

__all__ = [
    # Capture
    "CapturePipeline",
    "CaptureResult",
    "CaptureState",
    "background_color",
    "export_height",

    # Export
    "ArchiveEntry",
    "ExportCoordinator",
    "ExportResult",
    "ZipArchivePackager",
]
