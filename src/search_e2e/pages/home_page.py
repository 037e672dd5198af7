"""Home page object: locating and using the site search box."""

import logging
from typing import Any, Optional

from playwright.async_api import Error as PlaywrightError

from .base_page import BasePage
from .locators import first_successful, first_visible, first_visible_of

logger = logging.getLogger(__name__)

PRIMARY_SEARCH_SELECTORS = [
    "form[action*='search'] input[name='query']",
    "#search-query-carousel-40618",
    "input[name='query']",
]

HERO_SEARCH_SELECTORS = [
    "form[action*='search'] input[name='query']",
    "form[action*='search'] input.search-field",
    "#search-query-carousel-40618",
    "input[name='query']",
]

SEARCH_REGION_SELECTORS = [
    "form[role='search']",
    "[role='search']",
    "header .search",
    "#search",
    ".search-panel",
    "[data-component*='search']",
    ".nhsuk-header__search",
]

SEARCH_INPUT_SELECTORS = [
    "input[name='query']",
    "input[type='search']",
    "input[name='s']",
    "input[name='search']",
    "input[name='keys']",
    "input[name='q']",
    "input[name*='query']",
    "input[name*='keyword']",
    "input[id='search']",
    "input[id*='search']",
    "input[id*='Search']",
    "input[id*='query']",
    "input[class*='search']",
    "input[aria-label*='search']",
    "input[placeholder*='Search']",
    "input[placeholder*='search']",
    "form[role='search'] input",
    "[role='search'] input",
]

SEARCH_TOGGLE_SELECTORS = [
    "button[aria-label*='search']",
    "button[aria-controls*='search']",
    "button.search-toggle",
    ".search-toggle",
    ".nhsuk-header__search-toggle",
    "[data-action='toggle-search']",
]

SEARCH_SUBMIT_SELECTORS = [
    "button[type='submit']",
    "input[type='submit']",
    "button:has-text('Search')",
    "button.search-submit",
    ".search-submit",
    ".search-button",
    "button[aria-label*='search']",
]

# Plain CSS only: these are checked with Element.matches() in the page
FOCUSABLE_SEARCH_INPUTS = ["#search-query-carousel-40618"] + SEARCH_INPUT_SELECTORS
FOCUSABLE_SEARCH_TOGGLES = SEARCH_TOGGLE_SELECTORS + ["button[class*='search']"]

FOCUSED_MATCHES_JS = """
({selectors, exclude}) => {
    const el = document.activeElement;
    if (!el || el === document.body) return false;
    if (exclude) {
        const described = [el.textContent, el.getAttribute('aria-label'), el.id, String(el.className)]
            .join(' ').toLowerCase();
        if (described.includes(exclude)) return false;
    }
    return selectors.some(sel => { try { return el.matches(sel); } catch (e) { return false; } });
}
"""

REGION_INPUTS = "input, input[type='search'], input[type='text']"
HERO_READY_TIMEOUT_MS = 10000
TOGGLE_CLICK_TIMEOUT_MS = 2000
TOGGLE_SETTLE_MS = 300
MAX_KEYBOARD_TABS = 80
TAB_SETTLE_MS = 120
SUBMIT_CLICK_TIMEOUT_MS = 5000


class HomePage(BasePage):
    """
    Site home page.

    PATTERN: Accessible roles first, then known hero selectors, then search
    regions, then generic input selectors, finally header toggles that
    reveal a hidden input.
    """

    async def ensure_search_ready(self) -> None:
        """Wait for the hero search box if the site renders one."""
        for selector in PRIMARY_SEARCH_SELECTORS:
            try:
                await self.locator(selector).first.wait_for(
                    state="visible", timeout=HERO_READY_TIMEOUT_MS
                )
                return
            except PlaywrightError:
                continue

    async def find_search_input(self) -> Optional[Any]:
        """
        Locate the visible search input.

        Returns:
            Locator for the input, or None if the page has no usable search box
        """
        await self.page.wait_for_load_state("domcontentloaded")
        await self.ensure_search_ready()

        async def by_searchbox_role():
            return await first_visible(self.page.get_by_role("searchbox"))

        async def by_search_region_role():
            return await first_visible(self.page.get_by_role("search").locator(REGION_INPUTS))

        async def by_hero():
            return await first_visible_of(self.page, HERO_SEARCH_SELECTORS)

        async def by_region():
            return await first_successful(
                self._region_input(selector) for selector in SEARCH_REGION_SELECTORS
            )

        async def by_input():
            return await first_visible_of(self.page, SEARCH_INPUT_SELECTORS)

        found = await first_successful(
            [by_searchbox_role, by_search_region_role, by_hero, by_region, by_input]
        )
        if found is not None:
            return found

        return await self._reveal_via_toggle()

    def _region_input(self, region_selector: str):
        async def strategy():
            return await first_visible(self.locator(region_selector).locator(REGION_INPUTS))

        return strategy

    async def _reveal_via_toggle(self) -> Optional[Any]:
        for selector in SEARCH_TOGGLE_SELECTORS:
            toggle = self.locator(selector)
            if await toggle.count() == 0:
                continue
            try:
                await toggle.first.click(timeout=TOGGLE_CLICK_TIMEOUT_MS)
                await self.page.wait_for_timeout(TOGGLE_SETTLE_MS)
            except PlaywrightError as e:
                logger.debug(f"[{self.label}] search toggle '{selector}' not clickable: {e}")

            found = await first_visible_of(self.page, SEARCH_INPUT_SELECTORS)
            if found is not None:
                return found
        return None

    async def submit_search(self, term: str) -> Any:
        """
        Type a term into the search box and press Enter without waiting.

        Returns:
            The search input locator

        Raises:
            RuntimeError: If no search input can be found
        """
        search_input = await self.find_search_input()
        if search_input is None:
            raise RuntimeError("Search input not found on page")

        await search_input.fill(term)
        await search_input.press("Enter")
        return search_input

    async def search(self, term: str) -> None:
        """
        Type a term into the search box, submit it and wait for the network.

        Raises:
            RuntimeError: If no search input can be found
        """
        await self.submit_search(term)
        await self.wait_for_network_idle()
        logger.info(f"[{self.label}] Searched for '{term}'")

    async def _focus_matches(self, selectors, exclude: str = "") -> bool:
        try:
            return bool(
                await self.page.evaluate(FOCUSED_MATCHES_JS, {"selectors": selectors, "exclude": exclude})
            )
        except PlaywrightError as e:
            logger.debug(f"[{self.label}] focused element check failed: {e}")
            return False

    async def focus_search_by_keyboard(self, max_tabs: int = MAX_KEYBOARD_TABS) -> bool:
        """
        Tab through the page until a search input has focus.

        A focused search toggle is activated with Enter to reveal its input;
        toggles describing themselves as a "guide" are tabbed past.

        Returns:
            True if keyboard focus reached a search input
        """
        await self.ensure_search_ready()
        try:
            await self.locator("body").first.click(timeout=TOGGLE_CLICK_TIMEOUT_MS)
        except PlaywrightError as e:
            logger.debug(f"[{self.label}] could not click page body: {e}")

        for presses in range(1, max_tabs + 1):
            await self.page.keyboard.press("Tab")
            await self.page.wait_for_timeout(TAB_SETTLE_MS)

            if await self._focus_matches(FOCUSABLE_SEARCH_INPUTS):
                logger.info(f"[{self.label}] Focus reached the search field after {presses} tab presses")
                return True

            if await self._focus_matches(FOCUSABLE_SEARCH_TOGGLES, exclude="guide"):
                logger.info(f"[{self.label}] Search toggle focused; pressing Enter to reveal the input")
                await self.page.keyboard.press("Enter")
                await self.page.wait_for_timeout(TOGGLE_SETTLE_MS)
                if await self._focus_matches(FOCUSABLE_SEARCH_INPUTS):
                    return True

        logger.info(f"[{self.label}] Search field not reached after {max_tabs} tab presses")
        return False

    async def focus_search_by_mouse(self) -> bool:
        """Click the search input, focusing it directly if the click fails."""
        search_input = await self.find_search_input()
        if search_input is None:
            return False
        try:
            await search_input.click(timeout=TOGGLE_CLICK_TIMEOUT_MS)
        except PlaywrightError as e:
            logger.debug(f"[{self.label}] search input click failed, focusing instead: {e}")
            await search_input.focus()
        return True

    async def find_submit_button(self) -> Optional[Any]:
        """First control matching a known submit selector, visible or not."""

        def present(selector: str):
            async def strategy():
                matches = self.locator(selector)
                return matches.first if await matches.count() > 0 else None

            return strategy

        return await first_successful(present(selector) for selector in SEARCH_SUBMIT_SELECTORS)

    async def click_submit(self, search_input: Any) -> bool:
        """
        Submit with the mouse, pressing Enter in ``search_input`` when no
        submit control can be clicked.

        Returns:
            True if a submit control was clicked
        """
        button = await self.find_submit_button()
        if button is not None:
            try:
                await button.click(timeout=SUBMIT_CLICK_TIMEOUT_MS)
                return True
            except PlaywrightError as e:
                logger.debug(f"[{self.label}] submit click failed, pressing Enter: {e}")

        await search_input.press("Enter")
        return False
