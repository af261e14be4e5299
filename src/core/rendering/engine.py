"""
Browser Engine
==============

Playwright-based screenshot generation from HTML content.
Owns the single shared Chromium instance of the process and renders each
request in its own isolated page.
"""

from typing import Optional, Dict, Any, List
from enum import Enum
import asyncio
import io

from playwright.async_api import (
    async_playwright,
    Browser,
    Page,
    Playwright,
    TimeoutError as PlaywrightTimeoutError,
)
from PIL import Image  # type: ignore

from src.config.logging import get_logger
from src.config.settings import Settings
from src.core.errors import EngineLaunchError, RenderTimeoutError
from src.models.schemas import ImageFormat, RenderOptions, RenderRequest

logger = get_logger(__name__)


# Flags for containerized, sandboxless execution
CONTAINER_LAUNCH_ARGS: List[str] = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--no-first-run",
    "--disable-extensions",
    "--disable-default-apps",
    "--disable-web-security",
    "--disable-features=VizDisplayCompositor",
    "--disable-background-timer-throttling",
    "--disable-renderer-backgrounding",
    "--disable-backgrounding-occluded-windows",
    "--disable-ipc-flooding-protection",
    "--enable-features=NetworkService,NetworkServiceInProcess",
    "--force-color-profile=srgb",
    "--metrics-recording-only",
    "--use-mock-keychain",
]

# Fallback used when the full flag set fails to launch
MINIMAL_LAUNCH_ARGS: List[str] = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
]


class EngineState(str, Enum):
    """Browser handle lifecycle."""

    UNINITIALIZED = "uninitialized"
    LAUNCHING = "launching"
    READY = "ready"
    FAILED = "failed"
    CLOSED = "closed"


def transcode_to_webp(png_bytes: bytes) -> bytes:
    """Re-encode a PNG screenshot as WebP."""
    with Image.open(io.BytesIO(png_bytes)) as image:
        output = io.BytesIO()
        image.save(output, format="WEBP")
        return output.getvalue()


class BrowserEngine:
    """Lazily launched, shared headless Chromium instance."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.state = EngineState.UNINITIALIZED
        self.render_count = 0
        self.launch_count = 0
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._launch_task: Optional["asyncio.Task[Browser]"] = None
        self.logger: Any = logger.bind(component="browser_engine")  # structlog.BoundLoggerBase

    @property
    def is_ready(self) -> bool:
        return (
            self.state is EngineState.READY
            and self._browser is not None
            and self._browser.is_connected()
        )

    async def ensure_ready(self) -> Browser:
        """
        Return the shared browser, launching it if needed.

        Concurrent callers share one in-flight launch attempt.

        Raises:
            EngineLaunchError: If the browser cannot be started
        """
        if self.is_ready:
            return self._browser  # type: ignore[return-value]

        if self.state is EngineState.CLOSED:
            raise EngineLaunchError("Browser engine is closed")

        if self._launch_task is None or self._launch_task.done():
            self._launch_task = asyncio.create_task(self._launch())

        # A cancelled caller must not cancel the launch the others are waiting on
        return await asyncio.shield(self._launch_task)

    async def _launch(self) -> Browser:
        self.state = EngineState.LAUNCHING
        self._browser = None

        try:
            if self._playwright is None:
                self._playwright = await async_playwright().start()

            executable_path = self.settings.browser_executable_path
            if executable_path:
                self.logger.info("Using custom browser executable", path=executable_path)

            try:
                browser = await self._launch_browser(CONTAINER_LAUNCH_ARGS, executable_path)
            except Exception as e:
                self.logger.error("Failed to launch browser", error=str(e))
                self.logger.info("Retrying browser launch with minimal configuration")
                browser = await self._launch_browser(MINIMAL_LAUNCH_ARGS, None)
                self.logger.info("Browser launched with minimal configuration")

        except Exception as e:
            self.state = EngineState.FAILED
            self.logger.error("Browser launch failed after fallback", error=str(e))
            raise EngineLaunchError(f"Browser launch failed: {e}") from e

        browser.on("disconnected", self._on_disconnected)
        self._browser = browser
        self.launch_count += 1
        self.state = EngineState.READY
        self.logger.info("Browser initialized", launch_count=self.launch_count)
        return browser

    async def _launch_browser(self, args: List[str], executable_path: Optional[str]) -> Browser:
        assert self._playwright is not None
        launch_options: Dict[str, Any] = {
            "headless": self.settings.browser_headless,
            "args": list(args),
            "timeout": self.settings.browser_launch_timeout * 1000,
        }
        if executable_path:
            launch_options["executable_path"] = executable_path

        return await self._playwright.chromium.launch(**launch_options)

    def _on_disconnected(self, browser: Browser) -> None:
        if browser is not self._browser:
            return
        self._browser = None
        if self.state is EngineState.READY:
            self.state = EngineState.UNINITIALIZED
            self.logger.warning("Browser disconnected, will relaunch on next request")

    async def render(self, request: RenderRequest) -> bytes:
        """
        Render HTML to image bytes in a fresh page.

        Args:
            request: Markup and resolved options

        Returns:
            Encoded image bytes in the requested format

        Raises:
            EngineLaunchError: If the browser cannot be started
            RenderTimeoutError: If loading or capture exceeds ``timeout_ms``
        """
        browser = await self.ensure_ready()
        options = request.options
        self.render_count += 1

        page_timeout = self.settings.browser_launch_timeout
        try:
            page = await asyncio.wait_for(
                browser.new_page(
                    viewport={"width": options.width, "height": options.height},
                    device_scale_factor=options.device_scale_factor,
                ),
                timeout=page_timeout,
            )
        except asyncio.TimeoutError as e:
            # Chromium may still finish creating the context; it is reclaimed on close()
            self.logger.warning(
                "Page creation timed out, browser context may be orphaned",
                timeout_s=page_timeout,
            )
            raise RenderTimeoutError(
                f"Page creation timed out after {page_timeout}s", cause=e
            ) from e

        try:
            try:
                await page.set_content(
                    request.html, wait_until="networkidle", timeout=options.timeout_ms
                )
                image_bytes = await page.screenshot(**self._screenshot_options(options))
            except PlaywrightTimeoutError as e:
                raise RenderTimeoutError(
                    f"Render timed out after {options.timeout_ms}ms", cause=e
                ) from e

            if options.format is ImageFormat.WEBP:
                image_bytes = await asyncio.to_thread(transcode_to_webp, image_bytes)

            self.logger.debug(
                "Screenshot captured",
                format=options.format.value,
                size=len(image_bytes),
                width=options.width,
                height=options.height,
            )
            return image_bytes

        finally:
            await self._close_page(page)

    def _screenshot_options(self, options: RenderOptions) -> Dict[str, Any]:
        screenshot_options: Dict[str, Any] = {
            "type": "jpeg" if options.format is ImageFormat.JPEG else "png",
            "full_page": options.full_page,
            "timeout": options.timeout_ms,
        }
        if options.format is ImageFormat.JPEG:
            screenshot_options["quality"] = options.quality
        return screenshot_options

    async def _close_page(self, page: Page) -> None:
        try:
            await asyncio.wait_for(page.close(), timeout=self.settings.browser_close_timeout)
        except Exception as e:
            self.logger.warning("Failed to close page", error=str(e))

    async def close(self) -> None:
        """Close the browser and stop Playwright. Never raises."""
        self.state = EngineState.CLOSED
        timeout = self.settings.browser_close_timeout

        if self._launch_task is not None and not self._launch_task.done():
            self._launch_task.cancel()
            await asyncio.gather(self._launch_task, return_exceptions=True)
        self._launch_task = None

        browser, self._browser = self._browser, None
        if browser is not None:
            try:
                await asyncio.wait_for(browser.close(), timeout=timeout)
                self.logger.info("Browser closed")
            except Exception as e:
                self.logger.error("Error closing browser", error=str(e))

        playwright, self._playwright = self._playwright, None
        if playwright is not None:
            try:
                await asyncio.wait_for(playwright.stop(), timeout=timeout)
            except Exception as e:
                self.logger.error("Error stopping playwright", error=str(e))
