"""Search results page object."""

import logging
from typing import Any, List, Optional

from playwright.async_api import Error as PlaywrightError

from ..models.search_models import PaginationResult
from .base_page import BasePage

logger = logging.getLogger(__name__)

RESULTS_CONTAINER = "main, .search-results, #search-results, [class*='result']"
RESULT_ITEMS = ".search-result, .result-item, article"

NO_RESULTS_SELECTORS = [
    ".no-results",
    "#no-results",
    ".nhsuk-search__no-results",
    ".nhsuk-search__results--none",
    "text=/No results/i",
    "text=/did not match any documents/i",
]

RESULT_CARD_SELECTORS = [
    ".result-item",
    ".search-result",
    "article",
    "li.search-result",
    ".result-card",
]

RESULT_TITLE_SELECTORS = [
    ".result-item h2",
    ".result-item a",
    ".search-result h2",
    "article h2",
    "article a",
    "#page-results .result-item h2",
]

PAGINATION_SELECTORS = {
    "next": [
        "a[rel='next']",
        "button[rel='next']",
        "a:has-text('Next')",
        "button:has-text('Next')",
        "[aria-label*='next']",
    ],
    "previous": [
        "a[rel='prev']",
        "button[rel='prev']",
        "a:has-text('Previous')",
        "button:has-text('Previous')",
        "[aria-label*='previous']",
    ],
}
PAGINATION_SELECTORS["prev"] = PAGINATION_SELECTORS["previous"]

SORT_DROPDOWN_SELECTORS = [
    "select[name*='sort']",
    "select[id*='sort']",
    ".search-sort select",
    "form select[data-sort]",
    "select[data-drupal-selector*='sort']",
]

SETTLE_MS = 1000
WAIT_MS = 5000
NETWORK_IDLE_MS = 7000
CARD_VISIBLE_MS = 2000
PAGINATION_CLICK_MS = 4000
SORT_CLICK_MS = 3000
SELECT_OPTION_MS = 2500


def sort_option_selectors(label: str) -> List[str]:
    lowered = label.lower()
    return [
        f"button:has-text('{label}')",
        f"a:has-text('{label}')",
        f"[role='menuitem']:has-text('{label}')",
        f"label:has-text('{label}')",
        f"button[data-sort*='{lowered}']",
        f"[data-sort-option*='{lowered}']",
    ]


class SearchResultsPage(BasePage):
    """Inspect and drive the results of a site search."""

    async def has_results(self) -> bool:
        """
        Heuristic check that the page shows search results.

        GOTCHA: The page may still be navigating after submit, so reading the
        content is retried once and falls back to the URL.
        """
        await self.try_wait_for_load_state("domcontentloaded", WAIT_MS)
        await self.try_wait_for_selector(RESULTS_CONTAINER, WAIT_MS)

        try:
            content = await self.content()
        except PlaywrightError:
            await self.page.wait_for_timeout(SETTLE_MS)
            try:
                content = await self.content()
            except PlaywrightError as e:
                logger.debug(f"[{self.label}] content unavailable, judging by URL: {e}")
                return "search" in self.url or "?" in self.url

        if "results" in content.lower():
            return True
        if await self.locator("main a").count() > 0:
            return True
        return await self.locator(".search-result, [class*='result']").count() > 0

    async def has_no_results_message(self, expected_text: Optional[str] = None) -> bool:
        """True if a visible empty-state message contains ``expected_text``."""
        for selector in NO_RESULTS_SELECTORS:
            try:
                locator = self.locator(selector)
                if await locator.count() == 0:
                    continue
                element = locator.first
                if not await element.is_visible():
                    continue
                text = (await element.inner_text() or "").strip()
            except PlaywrightError:
                continue

            if not expected_text or expected_text.lower() in text.lower():
                return True
        return False

    async def get_first_result_signature(self) -> str:
        """``title|snippet`` of the first visible result, or an empty string."""
        for selector in RESULT_CARD_SELECTORS:
            card = self.locator(selector).first
            try:
                await card.wait_for(state="visible", timeout=CARD_VISIBLE_MS)
                title = await card.locator("h1, h2, h3, a").first.inner_text()
                snippet = await card.inner_text()
                return f"{title}|{snippet}".strip()
            except PlaywrightError:
                continue
        return ""

    async def get_result_titles(self, max_items: int = 10) -> List[str]:
        for selector in RESULT_TITLE_SELECTORS:
            locator = self.locator(selector)
            count = await locator.count()
            if count == 0:
                continue

            titles = []
            for index in range(min(count, max_items)):
                try:
                    text = await locator.nth(index).inner_text()
                except PlaywrightError:
                    continue
                if text and text.strip():
                    titles.append(text.strip())

            if titles:
                return titles
        return []

    async def navigate_pagination(self, direction: str) -> PaginationResult:
        """
        Click the next/previous pagination control.

        Args:
            direction: ``next``, ``previous`` or ``prev``

        Returns:
            PaginationResult; ``clicked`` stays False if no control worked
        """
        selectors = PAGINATION_SELECTORS.get((direction or "").strip().lower(), [])
        result = PaginationResult(before_signature=await self.get_first_result_signature())
        before_url = self.url

        for selector in selectors:
            try:
                control = self.locator(selector).first
                if await control.count() == 0:
                    continue
                if not await control.is_enabled():
                    continue

                await self.scroll_into_view(control)
                await control.click(timeout=PAGINATION_CLICK_MS)
            except PlaywrightError as e:
                logger.debug(f"[{self.label}] pagination via '{selector}' failed: {e}")
                continue

            await self.wait_for_results_to_stabilize()
            result.clicked = True
            result.after_signature = await self.get_first_result_signature()
            result.url_changed = before_url.lower() != self.url.lower()
            result.signature_changed = (
                result.before_signature.lower() != result.after_signature.lower()
            )
            return result

        return result

    async def wait_for_results_to_stabilize(self) -> None:
        """Best-effort wait for network idle and rendered result items."""
        await self.try_wait_for_load_state("networkidle", NETWORK_IDLE_MS)
        await self.try_wait_for_selector(RESULT_ITEMS, WAIT_MS)

    async def apply_sort_option(self, label: str) -> bool:
        """
        Choose a sort order by its visible label.

        Dropdowns are tried first, then clickable sort controls.

        Returns:
            True if a sort control was applied
        """
        if not label or not label.strip():
            return False
        label = label.strip()

        for selector in SORT_DROPDOWN_SELECTORS:
            dropdown = self.locator(selector)
            if await dropdown.count() == 0:
                continue
            if await self._select_dropdown_option(dropdown.first, label):
                await self.wait_for_results_to_stabilize()
                return True

        for selector in sort_option_selectors(label):
            control = self.locator(selector)
            if await control.count() == 0:
                continue
            try:
                await self.scroll_into_view(control.first)
                await control.first.click(timeout=SORT_CLICK_MS)
            except PlaywrightError as e:
                logger.debug(f"[{self.label}] sort control '{selector}' failed: {e}")
                continue
            await self.wait_for_results_to_stabilize()
            return True

        return False

    async def _select_dropdown_option(self, dropdown: Any, label: str) -> bool:
        # Label matching in select_option is case-sensitive
        for candidate in (label, label.lower(), label.upper()):
            try:
                await dropdown.select_option(label=candidate, timeout=SELECT_OPTION_MS)
                return True
            except PlaywrightError:
                continue

        options = dropdown.locator("option")
        for index in range(await options.count()):
            option = options.nth(index)
            try:
                text = ((await option.inner_text()) or "").strip()
                value = await option.get_attribute("value")
            except PlaywrightError:
                continue

            if not text or label.lower() not in text.lower():
                continue
            try:
                await dropdown.select_option(
                    value=value if value and value.strip() else text, timeout=SELECT_OPTION_MS
                )
                return True
            except PlaywrightError:
                continue

        return False
