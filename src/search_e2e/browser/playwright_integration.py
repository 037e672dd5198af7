"""Playwright browser lifecycle management.

This module provides the PlaywrightManager class which starts Playwright and
launches browsers, contexts and pages for a scenario, including branded
channels (Chrome, Edge), video recording and tracing.

CRITICAL: Every scenario must end with cleanup(), or browser processes outlive the run.
"""

from playwright.async_api import (
    async_playwright,
    Browser,
    BrowserContext,
    Page,
    Playwright,
)
from typing import Any, Dict, List, Optional
import logging

from ..models.harness_models import BrowserKind

logger = logging.getLogger(__name__)

DEFAULT_LAUNCH_ARGS = ["--enable-logging=stderr", "--v=1"]
FULL_WINDOW_ARGS = ["--start-maximized", "--start-fullscreen", "--kiosk"]


class PlaywrightManager:
    """Own the Playwright driver and every browser a scenario launches.

    Every launched browser, context and page is tracked so cleanup() can close
    them in order. Browsers are not shared between calls; each scenario gets
    fresh instances.

    CRITICAL: Call cleanup() (or use the manager with ``async with``) even when
    provisioning fails half way; partially launched browsers are tracked too.
    """

    def __init__(self):
        """Create an idle manager; nothing starts until initialize()."""
        self.playwright: Optional[Playwright] = None
        self.browsers: List[Browser] = []
        self.contexts: List[BrowserContext] = []
        self.pages: List[Page] = []
        self._initialized = False

    async def __aenter__(self):
        """Start the driver."""
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Close everything this manager launched."""
        await self.cleanup()

    async def initialize(self) -> None:
        """Start Playwright.

        Raises:
            RuntimeError: If initialization fails
        """
        if self._initialized:
            return

        try:
            self.playwright = await async_playwright().start()
            self._initialized = True
            logger.info("Playwright initialized successfully")
        except Exception as e:
            logger.error(f"Failed to initialize Playwright: {e}")
            raise RuntimeError(f"Playwright initialization failed: {e}")

    async def launch_browser(
        self,
        kind: BrowserKind = BrowserKind.CHROMIUM,
        headless: bool = True,
        slow_mo: int = 0,
        args: Optional[List[str]] = None,
        **options: Any,
    ) -> Browser:
        """Launch a browser.

        Chrome and Edge launch through the chromium engine with their branded
        channel; Firefox and WebKit use their own engines.

        Args:
            kind: Browser to launch
            headless: Launch without a visible window
            slow_mo: Delay between operations in milliseconds
            args: Command-line switches (defaults to verbose logging switches)
            **options: Additional launch options

        Returns:
            Browser instance

        Raises:
            RuntimeError: If the browser fails to launch
        """
        if not self._initialized:
            await self.initialize()

        launch_options: Dict[str, Any] = {
            "headless": headless,
            "slow_mo": slow_mo,
            "args": list(args) if args is not None else list(DEFAULT_LAUNCH_ARGS),
        }
        if kind.channel:
            launch_options["channel"] = kind.channel
        launch_options.update(options)

        try:
            browser_launcher = getattr(self.playwright, kind.engine)
            browser = await browser_launcher.launch(**launch_options)

            self.browsers.append(browser)
            logger.info(f"Launched {kind.value} browser (headless={headless})")

            return browser
        except Exception as e:
            logger.error(f"Failed to launch {kind.value} browser: {e}")
            raise RuntimeError(f"Browser launch failed: {e}")

    async def create_context(
        self,
        browser: Browser,
        viewport: Optional[Dict[str, int]] = None,
        record_video_dir: Optional[str] = None,
        **options: Any,
    ) -> BrowserContext:
        """Create a fresh context (cookies, storage, video) on ``browser``.

        Args:
            browser: Browser that owns the context
            viewport: ``{"width": ..., "height": ...}``; None leaves the window unconstrained
            record_video_dir: Directory for video recordings (sized to the viewport)
            **options: Additional context options

        Returns:
            Browser context

        Raises:
            RuntimeError: If context creation fails
        """
        try:
            context_options: Dict[str, Any] = {}

            if viewport:
                context_options["viewport"] = dict(viewport)
            else:
                context_options["no_viewport"] = True

            if record_video_dir:
                context_options["record_video_dir"] = record_video_dir
                if viewport:
                    context_options["record_video_size"] = dict(viewport)

            context_options.update(options)

            context = await browser.new_context(**context_options)
            self.contexts.append(context)

            logger.debug(f"Created browser context #{len(self.contexts)}")
            return context
        except Exception as e:
            logger.error(f"Failed to create browser context: {e}")
            raise RuntimeError(f"Context creation failed: {e}")

    async def create_page(self, context: BrowserContext) -> Page:
        """Open a page in ``context`` and track it for cleanup.

        Raises:
            RuntimeError: If page creation fails
        """
        try:
            page = await context.new_page()
            self.pages.append(page)

            logger.debug(f"Created page #{len(self.pages)}")
            return page
        except Exception as e:
            logger.error(f"Failed to create page: {e}")
            raise RuntimeError(f"Page creation failed: {e}")

    async def start_tracing(self, context: BrowserContext) -> None:
        """Start tracing with screenshots, snapshots and sources.

        Raises:
            RuntimeError: If tracing cannot start
        """
        try:
            await context.tracing.start(screenshots=True, snapshots=True, sources=True)
            logger.debug("Tracing started")
        except Exception as e:
            logger.error(f"Failed to start tracing: {e}")
            raise RuntimeError(f"Tracing start failed: {e}")

    async def stop_tracing(self, context: BrowserContext, path: str) -> None:
        """Stop tracing and write the trace archive.

        Args:
            context: Context being traced
            path: Destination ``.zip`` path

        Raises:
            RuntimeError: If the trace cannot be written
        """
        try:
            await context.tracing.stop(path=path)
            logger.debug(f"Trace saved to {path}")
        except Exception as e:
            logger.error(f"Failed to stop tracing: {e}")
            raise RuntimeError(f"Tracing stop failed: {e}")

    async def cleanup(self) -> None:
        """Close pages, then contexts, then browsers, then the driver.

        Keeps going past individual failures and reports them together.

        Raises:
            RuntimeError: If any resource failed to close
        """
        errors = []

        for page in self.pages:
            try:
                if not page.is_closed():
                    await page.close()
            except Exception as e:
                errors.append(f"Failed to close page: {e}")
        self.pages.clear()

        for context in self.contexts:
            try:
                await context.close()
            except Exception as e:
                errors.append(f"Failed to close context: {e}")
        self.contexts.clear()

        for browser in self.browsers:
            try:
                await browser.close()
            except Exception as e:
                errors.append(f"Failed to close browser: {e}")
        self.browsers.clear()

        if self.playwright:
            try:
                await self.playwright.stop()
                logger.info("Playwright stopped successfully")
            except Exception as e:
                errors.append(f"Failed to stop Playwright: {e}")
            self.playwright = None

        self._initialized = False

        if errors:
            error_msg = "; ".join(errors)
            logger.warning(f"Cleanup completed with errors: {error_msg}")
            raise RuntimeError(f"Cleanup errors: {error_msg}")

        logger.info("Cleanup completed successfully")
