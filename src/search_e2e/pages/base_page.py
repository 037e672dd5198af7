"""Shared page object behaviour."""

import logging
from typing import Any

from playwright.async_api import Error as PlaywrightError

logger = logging.getLogger(__name__)


class BasePage:
    """Wrap a Playwright page for one browser target."""

    def __init__(self, page: Any, label: str = ""):
        self.page = page
        self.label = label

    @property
    def url(self) -> str:
        return self.page.url

    async def content(self) -> str:
        return await self.page.content()

    def locator(self, selector: str) -> Any:
        return self.page.locator(selector)

    async def goto(self, url: str, wait_until: str = "networkidle", timeout_ms: int = 30000) -> None:
        await self.page.goto(url, wait_until=wait_until, timeout=timeout_ms)

    async def wait_for_network_idle(self, timeout_ms: int = 30000) -> None:
        await self.page.wait_for_load_state("networkidle", timeout=timeout_ms)

    async def try_wait_for_load_state(self, state: str, timeout_ms: int) -> bool:
        """Wait for a load state; a timeout is reported, not raised."""
        try:
            await self.page.wait_for_load_state(state, timeout=timeout_ms)
            return True
        except PlaywrightError as e:
            logger.debug(f"[{self.label}] wait for '{state}' did not complete: {e}")
            return False

    async def try_wait_for_selector(self, selector: str, timeout_ms: int) -> bool:
        try:
            await self.page.wait_for_selector(selector, timeout=timeout_ms)
            return True
        except PlaywrightError:
            return False

    async def scroll_into_view(self, locator: Any) -> None:
        try:
            await locator.scroll_into_view_if_needed()
        except PlaywrightError as e:
            logger.debug(f"[{self.label}] scroll into view failed: {e}")
