"""Site-level chrome such as cookie banners."""

import logging
from typing import Any

from playwright.async_api import Error as PlaywrightError

logger = logging.getLogger(__name__)

COOKIE_SELECTORS = [
    "button:has-text('Accept all')",
    "button:has-text('Accept cookies')",
    "button:has-text('Accept')",
    "button:has-text('I accept')",
    "button[aria-label*='accept']",
    "#ccc-recommended-settings",
    ".cc-btn.cc-allow",
    ".cc-window button",
    "#onetrust-accept-btn-handler",
]

COOKIE_CLICK_TIMEOUT_MS = 2000
COOKIE_SETTLE_MS = 400


async def dismiss_cookie_banner(page: Any, label: str) -> bool:
    """
    Accept the cookie banner if one is showing.

    Args:
        page: Playwright page
        label: Browser label for log lines

    Returns:
        True if a banner button was clicked
    """
    for selector in COOKIE_SELECTORS:
        try:
            button = page.locator(selector)
            if await button.count() == 0 or not await button.first.is_visible():
                continue
            await button.first.click(timeout=COOKIE_CLICK_TIMEOUT_MS)
            await page.wait_for_timeout(COOKIE_SETTLE_MS)
        except PlaywrightError as e:
            logger.debug(f"[Cookies:{label}] '{selector}' not usable: {e}")
            continue

        logger.info(f"[Cookies:{label}] Dismissed cookie banner via '{selector}'")
        return True

    return False
