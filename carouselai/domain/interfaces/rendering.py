"""
Rendering and packaging collaborator interfaces used by the export pipeline.
"""
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple


class IVisualAsset(ABC):
    """A visual asset (image) inside the active rendered view."""

    @abstractmethod
    def is_settled(self) -> bool:
        """True once the asset finished loading, successfully or not."""
        pass

    @abstractmethod
    async def wait_settled(self) -> None:
        """Resolve when the asset finished loading, successfully or not."""
        pass


class IRenderer(ABC):
    """Renders exactly one active slide at a time."""

    @property
    @abstractmethod
    def active_slide_id(self) -> Optional[str]:
        """Slide currently shown in the capturable view."""
        pass

    @abstractmethod
    async def set_active_slide(self, slide_id: str) -> None:
        """Make ``slide_id`` the active rendered slide."""
        pass

    @abstractmethod
    async def visual_assets(self) -> List[IVisualAsset]:
        """Enumerate visual assets of the active view."""
        pass

    @abstractmethod
    async def snapshot(self, width: int, height: int, background: str) -> bytes:
        """Produce PNG bytes of the active view with an explicit background fill."""
        pass


class IArchivePackager(ABC):
    """Turns named blobs into downloadable artifacts."""

    @abstractmethod
    async def package(self, entries: Sequence[Tuple[str, bytes]]) -> bytes:
        """Package ordered (name, data) pairs into one archive."""
        pass

    @abstractmethod
    async def write_download(self, path: str, data: bytes) -> str:
        """Persist a single downloadable file and return its path."""
        pass
