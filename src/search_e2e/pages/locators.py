"""Ordered locator strategies.

A page usually offers several ways to find the same control. Strategies are
tried in order and the first one that yields something wins; a Playwright
error inside a strategy just means "no match here".
"""

import logging
from typing import Any, Awaitable, Callable, Iterable, Optional

from playwright.async_api import Error as PlaywrightError

logger = logging.getLogger(__name__)

Candidate = Callable[[], Awaitable[Optional[Any]]]

VISIBLE_TIMEOUT_MS = 1500


async def first_successful(candidates: Iterable[Candidate]) -> Optional[Any]:
    """
    Evaluate candidate strategies in order.

    Args:
        candidates: Zero-argument coroutine functions returning a match or None

    Returns:
        The first non-None result, or None when every candidate misses
    """
    for candidate in candidates:
        try:
            result = await candidate()
        except PlaywrightError as e:
            logger.debug(f"Locator strategy failed: {e}")
            continue
        if result is not None:
            return result
    return None


async def first_visible(locator: Any, timeout_ms: int = VISIBLE_TIMEOUT_MS) -> Optional[Any]:
    """Return the first element of ``locator`` that becomes visible, else None."""
    if locator is None:
        return None

    count = await locator.count()
    for index in range(count):
        candidate = locator.nth(index)
        try:
            await candidate.wait_for(state="visible", timeout=timeout_ms)
            return candidate
        except PlaywrightError:
            continue
    return None


def visible_in(page: Any, selector: str, timeout_ms: int = VISIBLE_TIMEOUT_MS) -> Candidate:
    """Candidate strategy: first visible match of a CSS selector."""

    async def strategy():
        return await first_visible(page.locator(selector), timeout_ms)

    return strategy


async def first_visible_of(
    page: Any, selectors: Iterable[str], timeout_ms: int = VISIBLE_TIMEOUT_MS
) -> Optional[Any]:
    """First visible element across a list of selectors."""
    return await first_successful(visible_in(page, s, timeout_ms) for s in selectors)
