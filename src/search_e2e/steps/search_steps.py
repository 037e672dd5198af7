"""Functional search steps: navigation, search, pagination, sorting and
data-driven cases.

Every per-browser step fans out through the scenario's coordinator, so a
failure on one browser is reported alongside the others instead of hiding
them.
"""

import logging
from typing import Dict, List, Optional

from ..data.dataset_loader import load_search_cases
from ..models.harness_models import RunTarget
from ..models.search_models import SearchCaseExecutionResult, SearchDataCase
from ..pages.home_page import HomePage
from ..pages.search_results_page import SearchResultsPage
from ..pages.site_interaction import dismiss_cookie_banner
from .context import StepContext, expect

logger = logging.getLogger(__name__)

HOMEPAGE_LOADED = "homepage_loaded"
SEARCH_TERM = "search_term"
SEARCH_EXECUTED = "search_executed"
PAGINATION_CHANGED = "pagination_changed"
SORT_CHANGED = "sort_changed"
SORT_BEFORE = "sort_before"
SORT_AFTER = "sort_after"

KEYBOARD_FOCUS = "keyboard_focus_on_search"
MOUSE_FOCUS = "mouse_focus_on_search"
SUBMIT_CLICKED = "submit_clicked"

DATASET_CASES = "dataset_cases"
DATASET_SOURCE = "dataset_source"
DATASET_RESULTS = "dataset_results"

NAVIGATION_TIMEOUT_MS = 15000
NETWORK_IDLE_TIMEOUT_MS = 10000


class SearchSteps:
    """Steps that drive the site search on every browser of a scenario."""

    def __init__(self, ctx: StepContext):
        self.ctx = ctx

    @property
    def base_url(self) -> str:
        return self.ctx.config.base_url

    async def open_homepage(self) -> None:
        """Navigate every browser to the configured base URL."""

        async def action(target: RunTarget):
            page = target.handle
            await page.goto(
                self.base_url, wait_until="networkidle", timeout=self.ctx.config.timeout_ms
            )
            expect(
                page.url.lower().startswith(self.base_url.lower().rstrip("/")),
                f"Current URL should match the base URL ({target.label}). Actual: {page.url}",
            )
            self.ctx.remember(HOMEPAGE_LOADED, target.label, True)
            self.ctx.log(target.label, "info", f"Verified page loaded at: {page.url}")

        await self.ctx.coordinator.run_across_targets(action)

    async def accept_cookies(self) -> None:
        async def action(target: RunTarget):
            if not await dismiss_cookie_banner(target.handle, target.label):
                self.ctx.log(target.label, "info", "No cookie prompt found")

        await self.ctx.coordinator.run_across_targets(action)

    async def search_for(self, term: str) -> None:
        """Submit ``term`` through the site search box."""

        async def action(target: RunTarget):
            await dismiss_cookie_banner(target.handle, target.label)
            expect(
                self.ctx.has(HOMEPAGE_LOADED, target.label),
                f"Home page should be loaded before searching ({target.label})",
            )
            await HomePage(target.handle, target.label).search(term)
            self.ctx.remember(SEARCH_TERM, target.label, term)
            self.ctx.remember(SEARCH_EXECUTED, target.label, True)
            self.ctx.log(target.label, "info", f"Search executed for term: {term}")

        await self.ctx.coordinator.run_across_targets(action)

    async def results_are_returned(self) -> None:
        async def action(target: RunTarget):
            expect(
                self.ctx.has(SEARCH_EXECUTED, target.label),
                f"Search should be executed before checking results ({target.label})",
            )
            has_results = await SearchResultsPage(target.handle, target.label).has_results()
            expect(has_results, f"No search results were detected on the page ({target.label}).")

        await self.ctx.coordinator.run_across_targets(action)

    async def navigate_to_search_with_keyboard(self) -> None:
        """
        Tab to the search field; fall back to focusing it directly when
        tabbing never gets there.
        """

        async def action(target: RunTarget):
            await dismiss_cookie_banner(target.handle, target.label)
            home = HomePage(target.handle, target.label)
            if not await home.focus_search_by_keyboard():
                search_input = await home.find_search_input()
                expect(
                    search_input is not None,
                    f"Could not navigate to search field using keyboard ({target.label})",
                )
                await home.scroll_into_view(search_input)
                await search_input.focus()
                self.ctx.log(target.label, "info", "Search field focused directly after tabbing failed")
            self.ctx.remember(KEYBOARD_FOCUS, target.label, True)

        await self.ctx.coordinator.run_across_targets(action)

    async def search_with_enter_key(self, term: str) -> None:
        async def action(target: RunTarget):
            page = target.handle
            await dismiss_cookie_banner(page, target.label)
            home = HomePage(page, target.label)
            search_input = await home.find_search_input()
            expect(search_input is not None, f"Search input not found ({target.label})")

            await search_input.focus()
            await search_input.fill(term)
            value = await search_input.input_value()
            expect(
                value == term,
                f"Search input should contain the search term ({target.label}). Actual: '{value}'",
            )

            await page.keyboard.press("Enter")
            if not await home.try_wait_for_load_state("domcontentloaded", NAVIGATION_TIMEOUT_MS):
                self.ctx.log(target.label, "warning", "Navigation wait timed out, continuing anyway")
            await home.try_wait_for_load_state("networkidle", NETWORK_IDLE_TIMEOUT_MS)

            self.ctx.remember(SEARCH_TERM, target.label, term)
            self.ctx.remember(SEARCH_EXECUTED, target.label, True)
            self.ctx.log(target.label, "info", f"Submitted search using Enter key: {term}")

        await self.ctx.coordinator.run_across_targets(action)

    async def navigate_to_search_with_mouse(self) -> None:
        async def action(target: RunTarget):
            await dismiss_cookie_banner(target.handle, target.label)
            focused = await HomePage(target.handle, target.label).focus_search_by_mouse()
            expect(
                focused,
                f"Search input not found on page for mouse navigation ({target.label})",
            )
            self.ctx.remember(MOUSE_FOCUS, target.label, True)

        await self.ctx.coordinator.run_across_targets(action)

    async def search_with_mouse(self, term: str) -> None:
        """Fill the search box and click its submit control (Enter if none)."""

        async def action(target: RunTarget):
            await dismiss_cookie_banner(target.handle, target.label)
            home = HomePage(target.handle, target.label)
            search_input = await home.find_search_input()
            expect(search_input is not None, f"Search input not found for mouse submit ({target.label})")

            await search_input.fill(term)
            clicked = await home.click_submit(search_input)
            await home.try_wait_for_load_state("networkidle", NETWORK_IDLE_TIMEOUT_MS)

            self.ctx.remember(SEARCH_TERM, target.label, term)
            self.ctx.remember(SEARCH_EXECUTED, target.label, True)
            self.ctx.remember(SUBMIT_CLICKED, target.label, clicked)
            how = "clicking submit" if clicked else "pressing Enter (no clickable submit control)"
            self.ctx.log(target.label, "info", f"Submitted search term via mouse by {how}: {term}")

        await self.ctx.coordinator.run_across_targets(action)

    async def results_match_entered_term(self) -> None:
        async def action(target: RunTarget):
            term = self.ctx.recall(SEARCH_TERM, target.label)
            expect(term is not None, f"Search term not found in context for validation ({target.label})")
            has_results = await SearchResultsPage(target.handle, target.label).has_results()
            expect(has_results, f"Expected results to be present for '{term}' ({target.label})")
            self.ctx.log(target.label, "pass", f"Results shown for entered term: {term}")

        await self.ctx.coordinator.run_across_targets(action)

    async def search_controls_interactable(self) -> None:
        """
        The search input is enabled with a non-empty bounding box, and any
        submit control is enabled.
        """

        async def action(target: RunTarget):
            home = HomePage(target.handle, target.label)
            search_input = await home.find_search_input()
            expect(search_input is not None, f"No search input found on page ({target.label})")
            expect(await search_input.is_enabled(), f"Search input appears disabled for {target.label}")

            box = await search_input.bounding_box()
            expect(box is not None, f"Search input bounding box could not be determined for {target.label}")
            expect(
                box["width"] > 0 and box["height"] > 0,
                f"Search input appears not visible or has zero size for {target.label}",
            )

            button = await home.find_submit_button()
            if button is None:
                self.ctx.log(target.label, "info", "No submit control; search submits with Enter")
            else:
                expect(await button.is_enabled(), f"Search submit control is disabled for {target.label}")

        await self.ctx.coordinator.run_across_targets(action)

    async def no_results_message_displayed(self, expected_text: Optional[str] = None) -> None:
        async def action(target: RunTarget):
            results = SearchResultsPage(target.handle, target.label)
            shown = await results.has_no_results_message(expected_text)
            expect(shown, f"Expected a no-results message on {target.label}.")

        await self.ctx.coordinator.run_across_targets(action)

    async def go_to_results_page(self, direction: str) -> None:
        """Click next/previous and require the visible results to change."""

        async def action(target: RunTarget):
            results = SearchResultsPage(target.handle, target.label)
            outcome = await results.navigate_pagination(direction)
            expect(
                outcome.clicked,
                f"Could not locate a '{direction}' pagination control on {target.label}.",
            )
            expect(
                outcome.changed,
                f"Pagination on {target.label} did not change the visible results.",
            )
            self.ctx.remember(PAGINATION_CHANGED, target.label, outcome.changed)

        await self.ctx.coordinator.run_across_targets(action)

    def page_indicator_updated(self) -> None:
        def check(target: RunTarget):
            expect(
                bool(self.ctx.recall(PAGINATION_CHANGED, target.label)),
                f"Pagination verification state missing or false for {target.label}.",
            )

        self.ctx.coordinator.run_across_targets_sync(check)

    async def sort_results_by(self, option: str) -> None:
        """Apply a sort option and record the result order before and after."""

        async def action(target: RunTarget):
            results = SearchResultsPage(target.handle, target.label)
            before = await results.get_result_titles()
            applied = await results.apply_sort_option(option)
            expect(applied, f"Sort control '{option}' not found on {target.label}.")
            after = await results.get_result_titles()

            changed = len(after) > 0 if not before else before != after
            self.ctx.remember(SORT_CHANGED, target.label, changed)
            self.ctx.remember(SORT_BEFORE, target.label, before)
            self.ctx.remember(SORT_AFTER, target.label, after)

        await self.ctx.coordinator.run_across_targets(action)

    def results_order_changed(self) -> None:
        def check(target: RunTarget):
            expect(
                bool(self.ctx.recall(SORT_CHANGED, target.label)),
                f"Sorting did not change the results order on {target.label}.",
            )

        self.ctx.coordinator.run_across_targets_sync(check)

    def load_dataset(self, key: str, path: str) -> List[SearchDataCase]:
        """Load a dataset into the scenario state; an empty dataset fails the step."""
        cases = load_search_cases(key, path)
        expect(len(cases) > 0, f"Dataset '{key}' from '{path}' returned no rows.")
        self.ctx.state[DATASET_CASES] = cases
        self.ctx.state[DATASET_SOURCE] = path
        return cases

    async def execute_dataset_cases(self) -> Dict[str, List[SearchCaseExecutionResult]]:
        """
        Run every loaded case on every browser.

        Each case starts from the homepage. Results are grouped by browser
        label and checked later by ``dataset_expectations_satisfied``.

        Returns:
            Mapping of browser label to per-case results
        """
        expect(DATASET_CASES in self.ctx.state, "Search dataset was not loaded.")
        cases: List[SearchDataCase] = self.ctx.state[DATASET_CASES]
        result_map: Dict[str, List[SearchCaseExecutionResult]] = {}

        for case in cases:

            async def action(target: RunTarget, case: SearchDataCase = case):
                result = await self._execute_case(target, case)
                result_map.setdefault(target.label, []).append(result)

            await self.ctx.coordinator.run_across_targets(action)

        self.ctx.state[DATASET_RESULTS] = result_map
        return result_map

    async def _execute_case(
        self, target: RunTarget, case: SearchDataCase
    ) -> SearchCaseExecutionResult:
        page = target.handle
        await page.goto(self.base_url, wait_until="networkidle", timeout=self.ctx.config.timeout_ms)
        await dismiss_cookie_banner(page, target.label)
        await HomePage(page, target.label).search(case.term)

        results = SearchResultsPage(page, target.label)
        await results.wait_for_results_to_stabilize()
        has_results = await results.has_results()

        result = SearchCaseExecutionResult(
            term=case.term,
            expect_results=case.expect_results,
            expected_message=case.expected_message,
            actual_results=has_results,
        )

        if case.expect_results:
            result.passed = has_results
            if not has_results:
                result.notes = "Expected results but none were detected."
        else:
            message_shown = await results.has_no_results_message(case.expected_message)
            result.message_displayed = message_shown
            result.passed = not has_results and message_shown
            if has_results:
                result.notes = "Dataset expected zero results but items were returned."
            elif not message_shown:
                result.notes = "Empty state message missing."

        logger.info(
            f"[{target.label}] Case '{case.term}': {'passed' if result.passed else 'failed'}"
        )
        return result

    def dataset_expectations_satisfied(self) -> None:
        """Fail with one line per case that did not meet its expectation."""
        expect(DATASET_RESULTS in self.ctx.state, "Data-driven results were not captured.")
        result_map: Dict[str, List[SearchCaseExecutionResult]] = self.ctx.state[DATASET_RESULTS]

        failures = []
        for label, results in result_map.items():
            for result in results:
                if result.passed:
                    continue
                expected = "results" if result.expect_results else "no results"
                note = f" Notes: {result.notes}" if result.notes else ""
                failures.append(f"[{label}] Term='{result.term}' expected {expected}.{note}")

        if failures:
            raise AssertionError("Data-driven validations failed:\n" + "\n".join(failures))

    def stays_on_homepage(self) -> None:
        def check(target: RunTarget):
            url = target.handle.url
            expect(
                url.lower().startswith(self.base_url.lower()),
                f"Expected to remain on homepage ({target.label}). Actual: {url}",
            )

        self.ctx.coordinator.run_across_targets_sync(check)

    def cross_browser_enabled(self) -> None:
        run_context = self.ctx.run_context
        browser_count = len(run_context.identities) or len(run_context.pages)
        expect(
            browser_count > 1,
            "Cross-browser scenario expects multiple browsers. "
            "Enable multi-browser mode with E2E_MULTIBROWSER=1.",
        )
