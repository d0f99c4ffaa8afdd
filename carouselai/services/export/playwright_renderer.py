"""
Headless Chromium renderer adapter.

The rendered page owns layout and theming. It loads the current project from
the API, exposes ``window.setActiveSlide(id)`` and draws the active slide
into the capture element.
"""
from typing import List, Optional

from playwright.async_api import Browser, ElementHandle, Page, Playwright, async_playwright

from carouselai.core.config import Settings, settings as default_settings
from carouselai.core.exceptions import ConfigurationError
from carouselai.core.logging import get_logger
from carouselai.domain.interfaces.rendering import IRenderer, IVisualAsset

logger = get_logger(__name__)

WAIT_FOR_IMAGE_JS = """
img => img.complete ? true : new Promise(resolve => {
    img.addEventListener('load', () => resolve(true), { once: true });
    img.addEventListener('error', () => resolve(false), { once: true });
})
"""


class PlaywrightImageAsset(IVisualAsset):
    """An ``<img>`` inside the capture element."""

    def __init__(self, handle: ElementHandle, complete: bool):
        self.handle = handle
        self._settled = complete

    def is_settled(self) -> bool:
        return self._settled

    async def wait_settled(self) -> None:
        await self.handle.evaluate(WAIT_FOR_IMAGE_JS)
        self._settled = True


class PlaywrightRenderer(IRenderer):
    """Drives the editor preview page in headless Chromium."""

    def __init__(
        self,
        url: Optional[str] = None,
        selector: Optional[str] = None,
        settings: Optional[Settings] = None,
    ):
        settings = settings or default_settings
        self.url = url or settings.RENDERER_URL
        self.selector = selector or settings.RENDERER_SELECTOR
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._page: Optional[Page] = None
        self._active_slide_id: Optional[str] = None

    @property
    def active_slide_id(self) -> Optional[str]:
        return self._active_slide_id

    @property
    def page(self) -> Page:
        if self._page is None:
            raise ConfigurationError("Renderer is not started")
        return self._page

    async def start(self) -> None:
        if not self.url:
            raise ConfigurationError("RENDERER_URL is not configured")
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(headless=True)
        self._page = await self._browser.new_page()
        await self._page.goto(self.url)
        await self._page.wait_for_selector(self.selector)
        logger.info("renderer_started", url=self.url)

    async def close(self) -> None:
        if self._browser is not None:
            await self._browser.close()
        if self._playwright is not None:
            await self._playwright.stop()
        self._page = None
        self._browser = None
        self._playwright = None
        logger.info("renderer_closed")

    async def set_active_slide(self, slide_id: str) -> None:
        await self.page.evaluate("id => window.setActiveSlide(id)", slide_id)
        self._active_slide_id = slide_id

    async def visual_assets(self) -> List[IVisualAsset]:
        handles = await self.page.query_selector_all(f"{self.selector} img")
        assets: List[IVisualAsset] = []
        for handle in handles:
            complete = await handle.evaluate("img => img.complete")
            assets.append(PlaywrightImageAsset(handle, bool(complete)))
        return assets

    async def snapshot(self, width: int, height: int, background: str) -> bytes:
        await self.page.set_viewport_size({"width": width, "height": height})
        element = await self.page.wait_for_selector(self.selector)
        await element.evaluate(
            "(el, [w, h, bg]) => { el.style.width = w + 'px'; el.style.height = h + 'px'; "
            "el.style.backgroundColor = bg; }",
            [width, height, background],
        )
        return await element.screenshot(type="png")
