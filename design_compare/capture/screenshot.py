"""Screenshot capture — renders a URL at a fixed viewport to a PNG using Playwright."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from playwright.async_api import Browser, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError

logger = logging.getLogger(__name__)

SELECTOR_TIMEOUT_MS = 10_000


class CaptureError(Exception):
    """Raised when a page cannot be rendered to a screenshot."""


@dataclass
class CaptureOptions:
    url: str
    output_path: Path
    width: int
    height: int
    wait_for_selector: Optional[str] = None
    delay: Optional[int] = None  # settle time in ms after load


class ScreenshotCapture:
    """Owns one Chromium instance for a run of sequential captures.

    The browser is launched on the first capture and released by ``close()``;
    use the instance as an async context manager so release also happens on
    error paths::

        async with ScreenshotCapture() as capture:
            await capture.capture(options)
    """

    def __init__(self, headless: bool = True):
        self.headless = headless
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self.capture_count = 0

    async def __aenter__(self) -> "ScreenshotCapture":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def is_open(self) -> bool:
        return self._browser is not None

    async def _ensure_browser(self) -> Browser:
        if self._browser is None:
            logger.debug("Launching Chromium (headless=%s)...", self.headless)
            self._playwright = await async_playwright().start()
            try:
                self._browser = await self._playwright.chromium.launch(headless=self.headless)
            except Exception:
                await self._playwright.stop()
                self._playwright = None
                raise
        return self._browser

    async def capture(
        self,
        options: CaptureOptions | str,
        output_path: str | Path | None = None,
        width: int | None = None,
        height: int | None = None,
        wait_for_selector: Optional[str] = None,
        delay: Optional[int] = None,
    ) -> Path:
        """Render ``options.url`` and write a viewport PNG to ``options.output_path``.

        Accepts a CaptureOptions or the same fields as arguments.
        """
        if not isinstance(options, CaptureOptions):
            if output_path is None or width is None or height is None:
                raise TypeError("capture() needs output_path, width and height when given a URL")
            options = CaptureOptions(
                url=options,
                output_path=Path(output_path),
                width=width,
                height=height,
                wait_for_selector=wait_for_selector,
                delay=delay,
            )
        out = Path(options.output_path)

        browser = await self._ensure_browser()
        page = await browser.new_page(viewport={"width": options.width, "height": options.height})
        try:
            logger.debug("Navigating to %s (%dx%d)", options.url, options.width, options.height)
            try:
                await page.goto(options.url, wait_until="networkidle")
            except PlaywrightError as e:
                raise CaptureError(f"Navigation to {options.url} failed: {e}") from e

            if options.wait_for_selector:
                try:
                    await page.wait_for_selector(options.wait_for_selector, timeout=SELECTOR_TIMEOUT_MS)
                except PlaywrightError as e:
                    raise CaptureError(
                        f"Selector '{options.wait_for_selector}' not found on {options.url} "
                        f"within {SELECTOR_TIMEOUT_MS}ms"
                    ) from e

            if options.delay:
                await page.wait_for_timeout(options.delay)

            try:
                out.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise CaptureError(f"Cannot create output directory {out.parent}: {e}") from e

            try:
                await page.screenshot(path=str(out), full_page=False)
            except PlaywrightError as e:
                raise CaptureError(f"Screenshot of {options.url} failed: {e}") from e
        finally:
            await page.close()

        self.capture_count += 1
        logger.info("Captured %s -> %s", options.url, out)
        return out

    async def close(self) -> None:
        """Release the browser. Safe to call more than once."""
        browser, self._browser = self._browser, None
        pw, self._playwright = self._playwright, None
        try:
            if browser is not None:
                logger.debug("Closing browser after %d capture(s)", self.capture_count)
                await browser.close()
        finally:
            if pw is not None:
                await pw.stop()
