"""
Capture pipeline: raster snapshot of the renderer's active slide.

A capture first waits for the active view's visual assets to settle, bounded
by a ceiling, then asks the renderer for a PNG with an explicit background
fill. Assets still loading at the ceiling produce a degraded capture, not a
failure; a renderer error fails the capture and yields no image.
"""
import asyncio
import math
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from carouselai.core.config import Settings, settings as default_settings
from carouselai.core.exceptions import AssetTimeoutError
from carouselai.core.logging import get_logger, log_error_details
from carouselai.domain.interfaces.rendering import IRenderer
from carouselai.domain.schemas.slide import AspectRatio, Theme

logger = get_logger(__name__)

BACKGROUND_COLORS = {
    Theme.DARK: "#0a0a0a",
    Theme.LIGHT: "#FFFFFF",
}


class CaptureState(Enum):
    """Capture pipeline states."""
    IDLE = "idle"
    WAITING_FOR_ASSETS = "waiting_for_assets"
    CAPTURING = "capturing"
    DONE = "done"
    FAILED = "failed"


@dataclass
class CaptureResult:
    """Outcome of one capture."""
    state: CaptureState
    slide_id: Optional[str] = None
    data: Optional[bytes] = None
    width: int = 0
    height: int = 0
    elapsed_ms: float = 0.0
    timed_out_assets: int = 0
    error: Optional[str] = None

    @property
    def degraded(self) -> bool:
        return self.timed_out_assets > 0


def export_height(aspect_ratio: AspectRatio, width: int) -> int:
    """Raster height for ``width`` at ``aspect_ratio``, rounded half up."""
    w, h = (int(part) for part in AspectRatio(aspect_ratio).value.split("/"))
    return int(math.floor(width * h / w + 0.5))


def background_color(theme: Theme) -> str:
    return BACKGROUND_COLORS[Theme(theme)]


class CapturePipeline:
    """Drives one renderer through asset wait and snapshot."""

    def __init__(
        self,
        renderer: IRenderer,
        settings: Optional[Settings] = None,
        asset_timeout: Optional[float] = None,
    ):
        settings = settings or default_settings
        self.renderer = renderer
        self.width = settings.PREVIEW_WIDTH
        self.asset_timeout = settings.ASSET_WAIT_TIMEOUT_SECONDS if asset_timeout is None else asset_timeout
        self.state = CaptureState.IDLE

    async def capture(self, aspect_ratio: AspectRatio, theme: Theme) -> CaptureResult:
        """Capture the active slide."""
        start_time = time.time()
        slide_id = self.renderer.active_slide_id
        height = export_height(aspect_ratio, self.width)
        result = CaptureResult(state=CaptureState.IDLE, slide_id=slide_id, width=self.width, height=height)

        try:
            self.state = CaptureState.WAITING_FOR_ASSETS
            result.timed_out_assets = await self._wait_for_assets()

            self.state = CaptureState.CAPTURING
            result.data = await self.renderer.snapshot(self.width, height, background_color(theme))
            self.state = CaptureState.DONE
        except Exception as e:
            self.state = CaptureState.FAILED
            result.error = str(e)
            logger.error("capture_failed", **log_error_details(e, slide_id=slide_id))
        finally:
            result.state = self.state
            result.elapsed_ms = (time.time() - start_time) * 1000

        if result.state == CaptureState.DONE:
            logger.debug(
                "capture_complete",
                slide_id=slide_id,
                width=self.width,
                height=height,
                elapsed_ms=round(result.elapsed_ms, 2),
                degraded=result.degraded,
            )
        return result

    async def capture_image(self, aspect_ratio: AspectRatio, theme: Theme) -> Optional[bytes]:
        """PNG bytes of the active slide, or ``None`` when the capture failed."""
        result = await self.capture(aspect_ratio, theme)
        return result.data if result.state == CaptureState.DONE else None

    async def _wait_for_assets(self) -> int:
        """Wait until every asset settles or the ceiling passes.

        Returns the number of assets still pending at the ceiling.
        """
        assets = await self.renderer.visual_assets()
        pending = [asset for asset in assets if not asset.is_settled()]
        if not pending:
            return 0

        waiters = [asyncio.ensure_future(asset.wait_settled()) for asset in pending]
        done, not_done = await asyncio.wait(waiters, timeout=self.asset_timeout)

        for waiter in done:
            # A failed load still counts as settled.
            if waiter.exception() is not None:
                logger.debug("asset_load_failed", error=str(waiter.exception()))
        for waiter in not_done:
            waiter.cancel()

        if not_done:
            timeout = AssetTimeoutError(len(not_done), self.asset_timeout)
            logger.warning(
                "capture_degraded",
                slide_id=self.renderer.active_slide_id,
                pending_assets=timeout.pending,
                timeout=timeout.timeout,
                reason=timeout.message,
            )
        return len(not_done)
