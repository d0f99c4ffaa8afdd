"""Slide state and generation orchestration package.

The store holds the shared slide collection, the tracker reports per-slide
task status, and the orchestrator runs generation work against both.
"""

from .orchestrator import GenerationContext, GenerationOrchestrator
from .store import SlideStore
from .tracker import BatchRun, TaskKind, TaskRecord, TaskStatus, TaskTracker

__all__ = [
    "BatchRun",
    "GenerationContext",
    "GenerationOrchestrator",
    "SlideStore",
    "TaskKind",
    "TaskRecord",
    "TaskStatus",
    "TaskTracker",
]
