"""
Export coordinator: single-slide PNG and full-carousel ZIP export.

The renderer shows exactly one slide at a time, so a carousel export walks the
display order strictly one slide after another: activate, let the render
settle, capture. Slides that fail to capture are skipped; the workspace's
active slide is shown again afterwards, also when the export fails.
"""
import asyncio
import os
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

from carouselai.core.config import Settings, settings as default_settings
from carouselai.core.exceptions import CaptureError, ExportInProgressError
from carouselai.core.logging import get_logger, log_error_details, log_performance_metrics
from carouselai.domain.interfaces.rendering import IArchivePackager, IRenderer
from carouselai.domain.schemas.slide import AspectRatio, SlideRecord, Theme
from carouselai.services.export.capture import CapturePipeline

logger = get_logger(__name__)

PNG_MIME_TYPE = "image/png"
ZIP_MIME_TYPE = "application/zip"


@dataclass
class ArchiveEntry:
    """One captured slide inside an export."""
    slide_id: str
    filename: str
    data: bytes


@dataclass
class ExportResult:
    """Result of an export operation."""
    filename: str
    mime_type: str
    data: bytes
    entries: List[ArchiveEntry] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    elapsed_ms: float = 0.0
    file_path: Optional[str] = None

    @property
    def file_size(self) -> int:
        return len(self.data)


def slide_filename(position: int) -> str:
    """Archive name for the slide at 0-based display ``position``."""
    return f"slide-{position + 1}.png"


class ExportCoordinator:
    """Coordinates capture and packaging for one workspace.

    ``active`` returns the slide the user is on; the renderer is brought to it
    before a single-slide capture and back to it after a carousel export.
    """

    def __init__(
        self,
        renderer: IRenderer,
        packager: IArchivePackager,
        slides: Callable[[], Sequence[SlideRecord]],
        display: Callable[[], Tuple[AspectRatio, Theme]],
        active: Optional[Callable[[], Optional[str]]] = None,
        settings: Optional[Settings] = None,
        capture: Optional[CapturePipeline] = None,
        output_dir: Optional[str] = None,
    ):
        settings = settings or default_settings
        self.renderer = renderer
        self.packager = packager
        self.slides = slides
        self.display = display
        self.active = active or (lambda: renderer.active_slide_id)
        self.capture = capture or CapturePipeline(renderer, settings)
        self.render_settle_delay = settings.RENDER_SETTLE_DELAY_SECONDS
        self.archive_name = settings.EXPORT_ARCHIVE_NAME
        self.output_dir = output_dir
        self._exporting = False

    @property
    def is_exporting(self) -> bool:
        return self._exporting

    def _begin(self) -> None:
        if self._exporting:
            raise ExportInProgressError()
        self._exporting = True

    def _active_id(self, ids: Sequence[str]) -> Optional[str]:
        """The workspace's active slide if it still exists, else the first slide."""
        slide_id = self.active()
        if slide_id in ids:
            return slide_id
        return ids[0] if ids else None

    async def _show(self, slide_id: str) -> None:
        await self.renderer.set_active_slide(slide_id)
        await asyncio.sleep(self.render_settle_delay)

    async def export_active_slide(self) -> ExportResult:
        """Capture the active slide as ``slide-<n>.png``."""
        self._begin()
        start_time = time.time()
        try:
            ids = [slide.id for slide in self.slides()]
            slide_id = self._active_id(ids)
            if slide_id is None:
                raise CaptureError("There is no slide to export")
            position = ids.index(slide_id)
            if self.renderer.active_slide_id != slide_id:
                await self._show(slide_id)

            aspect_ratio, theme = self.display()
            data = await self.capture.capture_image(aspect_ratio, theme)
            if data is None:
                raise CaptureError(slide_id=slide_id)

            filename = slide_filename(position)
            result = ExportResult(
                filename=filename,
                mime_type=PNG_MIME_TYPE,
                data=data,
                entries=[ArchiveEntry(slide_id=slide_id, filename=filename, data=data)],
            )
            return await self._finish(result, start_time, "export_slide")
        finally:
            self._exporting = False

    async def export_carousel(self) -> ExportResult:
        """Capture every slide in display order and package one ZIP."""
        self._begin()
        start_time = time.time()
        try:
            order = [slide.id for slide in self.slides()]
            aspect_ratio, theme = self.display()
            entries: List[ArchiveEntry] = []
            skipped: List[str] = []

            try:
                for position, slide_id in enumerate(order):
                    await self._show(slide_id)

                    data = await self.capture.capture_image(aspect_ratio, theme)
                    if data is None:
                        skipped.append(slide_id)
                        logger.warning("export_slide_skipped", slide_id=slide_id, position=position + 1)
                        continue
                    entries.append(ArchiveEntry(slide_id=slide_id, filename=slide_filename(position), data=data))
            finally:
                await self._restore_active()

            if not entries:
                raise CaptureError("No slide could be captured")

            archive = await self.packager.package([(entry.filename, entry.data) for entry in entries])
            result = ExportResult(
                filename=self.archive_name,
                mime_type=ZIP_MIME_TYPE,
                data=archive,
                entries=entries,
                skipped=skipped,
            )
            return await self._finish(result, start_time, "export_carousel")
        finally:
            self._exporting = False

    async def _restore_active(self) -> None:
        # Resolved against the store as it is now; slides may have changed meanwhile
        slide_id = self._active_id([slide.id for slide in self.slides()])
        if slide_id is None:
            return
        try:
            await self.renderer.set_active_slide(slide_id)
        except Exception as e:
            logger.warning("export_restore_failed", **log_error_details(e, slide_id=slide_id))

    async def _finish(self, result: ExportResult, start_time: float, operation: str) -> ExportResult:
        if self.output_dir:
            result.file_path = await self.packager.write_download(
                os.path.join(self.output_dir, result.filename), result.data
            )
        result.elapsed_ms = (time.time() - start_time) * 1000
        logger.info(
            "export_complete",
            **log_performance_metrics(
                operation,
                result.elapsed_ms,
                filename=result.filename,
                captured=len(result.entries),
                skipped=len(result.skipped),
            ),
        )
        return result
