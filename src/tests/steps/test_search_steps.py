"""Tests for the functional search steps across browsers."""

import json
from types import SimpleNamespace

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from search_e2e.harness.errors import AggregateStepFailure
from search_e2e.models.harness_models import BrowserKind
from search_e2e.models.search_models import PaginationResult, SearchCaseExecutionResult
from search_e2e.steps.context import StepContext
from search_e2e.steps.search_steps import (
    DATASET_RESULTS,
    HOMEPAGE_LOADED,
    KEYBOARD_FOCUS,
    MOUSE_FOCUS,
    PAGINATION_CHANGED,
    SEARCH_EXECUTED,
    SEARCH_TERM,
    SORT_CHANGED,
    SUBMIT_CLICKED,
    SearchSteps,
)

LABELS = ["chrome", "firefox", "msedge"]


def results_page(has_results=True, message=True, titles=None, pagination=None, sorted_ok=True):
    page = MagicMock()
    page.has_results = AsyncMock(return_value=has_results)
    page.has_no_results_message = AsyncMock(return_value=message)
    page.get_result_titles = AsyncMock(side_effect=list(titles or [[], []]))
    page.navigate_pagination = AsyncMock(return_value=pagination or PaginationResult())
    page.apply_sort_option = AsyncMock(return_value=sorted_ok)
    page.wait_for_results_to_stabilize = AsyncMock()
    return page


@pytest.fixture
def ctx(config, three_browsers):
    return StepContext(config, three_browsers, scenario_name="Search")


@pytest.fixture
def steps(ctx):
    return SearchSteps(ctx)


@pytest.fixture
def page_objects():
    """Patch the page objects the steps build; results pages are chosen per label."""
    home = MagicMock()
    home.search = AsyncMock()
    by_label = {label: results_page() for label in LABELS}

    with patch("search_e2e.steps.search_steps.HomePage", return_value=home) as home_cls, patch(
        "search_e2e.steps.search_steps.SearchResultsPage",
        side_effect=lambda page, label: by_label[label],
    ), patch(
        "search_e2e.steps.search_steps.dismiss_cookie_banner", new=AsyncMock(return_value=False)
    ) as dismiss:
        yield SimpleNamespace(home=home, home_cls=home_cls, results=by_label, dismiss=dismiss)


def mark_homepage_loaded(ctx):
    for label in LABELS:
        ctx.remember(HOMEPAGE_LOADED, label, True)


class TestOpenHomepage:
    @pytest.mark.asyncio
    async def test_navigates_every_browser(self, steps, ctx, config):
        await steps.open_homepage()

        for page in ctx.run_context.pages:
            page.goto.assert_awaited_once_with(config.base_url, wait_until="networkidle", timeout=5000)
        assert all(ctx.has(HOMEPAGE_LOADED, label) for label in LABELS)

    @pytest.mark.asyncio
    async def test_url_mismatch_fails_only_that_browser(self, steps, ctx):
        ctx.run_context.pages[1].url = "https://elsewhere.example.test/"

        with pytest.raises(AggregateStepFailure) as exc_info:
            await steps.open_homepage()

        assert exc_info.value.failed_labels == ["firefox"]
        assert "Actual: https://elsewhere.example.test/" in str(exc_info.value)
        assert ctx.has(HOMEPAGE_LOADED, "chrome")
        assert ctx.has(HOMEPAGE_LOADED, "msedge")

    @pytest.mark.asyncio
    async def test_url_comparison_ignores_case_and_trailing_path(self, steps, ctx):
        ctx.run_context.pages[0].url = "HTTPS://SEARCH.EXAMPLE.TEST/home"

        await steps.open_homepage()


class TestSearch:
    @pytest.mark.asyncio
    async def test_requires_homepage(self, steps, page_objects):
        with pytest.raises(AggregateStepFailure) as exc_info:
            await steps.search_for("parking")

        assert exc_info.value.failed_labels == LABELS
        assert "Home page should be loaded before searching (chrome)" in str(exc_info.value)
        page_objects.home.search.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_searches_on_every_browser(self, steps, ctx, page_objects):
        mark_homepage_loaded(ctx)

        await steps.search_for("parking")

        assert page_objects.home.search.await_count == 3
        assert [c.args[1] for c in page_objects.home_cls.call_args_list] == LABELS
        assert ctx.recall(SEARCH_TERM, "msedge") == "parking"
        assert page_objects.dismiss.await_count == 3

    @pytest.mark.asyncio
    async def test_results_checked_per_browser(self, steps, ctx, page_objects):
        mark_homepage_loaded(ctx)
        await steps.search_for("parking")
        page_objects.results["firefox"].has_results.return_value = False

        with pytest.raises(AggregateStepFailure) as exc_info:
            await steps.results_are_returned()

        assert str(exc_info.value) == (
            "One or more browsers failed:\n"
            "[firefox] AssertionError: No search results were detected on the page (firefox)."
        )

    @pytest.mark.asyncio
    async def test_results_require_search(self, steps, page_objects):
        with pytest.raises(AggregateStepFailure, match="Search should be executed"):
            await steps.results_are_returned()

    @pytest.mark.asyncio
    async def test_no_results_message(self, steps, page_objects):
        page_objects.results["msedge"].has_no_results_message.return_value = False

        with pytest.raises(AggregateStepFailure) as exc_info:
            await steps.no_results_message_displayed("No results found")

        assert exc_info.value.failed_labels == ["msedge"]
        page_objects.results["chrome"].has_no_results_message.assert_awaited_once_with("No results found")


@pytest.fixture
def search_box(page_objects, fake_element):
    """One search input shared by every browser's home page."""
    element = fake_element()
    page_objects.home.find_search_input = AsyncMock(return_value=element)
    page_objects.home.try_wait_for_load_state = AsyncMock(return_value=True)
    page_objects.home.scroll_into_view = AsyncMock()
    return element


class TestKeyboardSearch:
    @pytest.mark.asyncio
    async def test_tab_navigation_reaches_search(self, steps, ctx, page_objects, search_box):
        page_objects.home.focus_search_by_keyboard = AsyncMock(return_value=True)

        await steps.navigate_to_search_with_keyboard()

        assert all(ctx.recall(KEYBOARD_FOCUS, label) for label in LABELS)
        search_box.focus.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_direct_focus_when_tabbing_fails(self, steps, ctx, page_objects, search_box):
        page_objects.home.focus_search_by_keyboard = AsyncMock(return_value=False)

        await steps.navigate_to_search_with_keyboard()

        assert search_box.focus.await_count == 3
        assert ctx.recall(KEYBOARD_FOCUS, "firefox") is True

    @pytest.mark.asyncio
    async def test_no_search_field_for_keyboard(self, steps, page_objects, search_box):
        page_objects.home.focus_search_by_keyboard = AsyncMock(return_value=False)
        page_objects.home.find_search_input.return_value = None

        with pytest.raises(AggregateStepFailure) as exc_info:
            await steps.navigate_to_search_with_keyboard()

        assert exc_info.value.failed_labels == LABELS
        assert "Could not navigate to search field using keyboard (msedge)" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_enter_key_submits_typed_term(self, steps, ctx, page_objects, search_box):
        await steps.search_with_enter_key("parking")

        search_box.fill.assert_awaited_with("parking")
        for page in ctx.run_context.pages:
            page.keyboard.press.assert_awaited_once_with("Enter")
        assert ctx.recall(SEARCH_TERM, "chrome") == "parking"
        assert ctx.recall(SEARCH_EXECUTED, "msedge") is True

    @pytest.mark.asyncio
    async def test_enter_key_requires_term_in_input(self, steps, ctx, page_objects, search_box):
        search_box.fill.side_effect = None

        with pytest.raises(AggregateStepFailure, match="Search input should contain the search term"):
            await steps.search_with_enter_key("parking")

        for page in ctx.run_context.pages:
            page.keyboard.press.assert_not_awaited()
        assert not ctx.has(SEARCH_EXECUTED, "chrome")

    @pytest.mark.asyncio
    async def test_slow_navigation_only_warns(self, steps, ctx, page_objects, search_box):
        page_objects.home.try_wait_for_load_state.return_value = False

        await steps.search_with_enter_key("parking")

        assert ctx.recall(SEARCH_EXECUTED, "firefox") is True


class TestMouseSearch:
    @pytest.mark.asyncio
    async def test_click_navigation(self, steps, ctx, page_objects):
        page_objects.home.focus_search_by_mouse = AsyncMock(return_value=True)

        await steps.navigate_to_search_with_mouse()

        assert all(ctx.recall(MOUSE_FOCUS, label) for label in LABELS)

    @pytest.mark.asyncio
    async def test_click_navigation_without_input(self, steps, page_objects):
        page_objects.home.focus_search_by_mouse = AsyncMock(return_value=False)

        with pytest.raises(AggregateStepFailure, match="Search input not found on page for mouse navigation"):
            await steps.navigate_to_search_with_mouse()

    @pytest.mark.asyncio
    async def test_mouse_submit_records_click(self, steps, ctx, page_objects, search_box):
        page_objects.home.click_submit = AsyncMock(side_effect=[True, False, True])

        await steps.search_with_mouse("parking")

        search_box.fill.assert_awaited_with("parking")
        assert [ctx.recall(SUBMIT_CLICKED, label) for label in LABELS] == [True, False, True]
        assert ctx.recall(SEARCH_TERM, "firefox") == "parking"

    @pytest.mark.asyncio
    async def test_results_match_entered_term(self, steps, ctx, page_objects):
        for label in LABELS:
            ctx.remember(SEARCH_TERM, label, "parking")
        page_objects.results["chrome"].has_results.return_value = False

        with pytest.raises(AggregateStepFailure) as exc_info:
            await steps.results_match_entered_term()

        assert exc_info.value.failed_labels == ["chrome"]
        assert "Expected results to be present for 'parking' (chrome)" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_results_need_a_term(self, steps, page_objects):
        with pytest.raises(AggregateStepFailure, match="Search term not found in context"):
            await steps.results_match_entered_term()


class TestSearchControls:
    @pytest.mark.asyncio
    async def test_enabled_visible_input_and_submit(self, steps, page_objects, search_box, fake_element):
        page_objects.home.find_submit_button = AsyncMock(return_value=fake_element())

        await steps.search_controls_interactable()

    @pytest.mark.asyncio
    async def test_no_submit_control_is_allowed(self, steps, page_objects, search_box):
        page_objects.home.find_submit_button = AsyncMock(return_value=None)

        await steps.search_controls_interactable()

    @pytest.mark.asyncio
    async def test_zero_size_input(self, steps, page_objects, search_box):
        search_box.box = {"x": 0, "y": 0, "width": 0, "height": 0}
        page_objects.home.find_submit_button = AsyncMock(return_value=None)

        with pytest.raises(AggregateStepFailure, match="zero size for chrome"):
            await steps.search_controls_interactable()

    @pytest.mark.asyncio
    async def test_disabled_input(self, steps, page_objects, search_box):
        search_box.enabled = False

        with pytest.raises(AggregateStepFailure, match="Search input appears disabled for firefox"):
            await steps.search_controls_interactable()

    @pytest.mark.asyncio
    async def test_disabled_submit(self, steps, page_objects, search_box, fake_element):
        page_objects.home.find_submit_button = AsyncMock(return_value=fake_element(enabled=False))

        with pytest.raises(AggregateStepFailure, match="Search submit control is disabled"):
            await steps.search_controls_interactable()


class TestPagination:
    @pytest.mark.asyncio
    async def test_changed_results_update_indicator(self, steps, ctx, page_objects):
        for label in LABELS:
            page_objects.results[label].navigate_pagination.return_value = PaginationResult(
                clicked=True, signature_changed=True
            )

        await steps.go_to_results_page("next")
        steps.page_indicator_updated()

        assert ctx.recall(PAGINATION_CHANGED, "firefox") is True

    @pytest.mark.asyncio
    async def test_missing_control(self, steps, page_objects):
        with pytest.raises(AggregateStepFailure, match="Could not locate a 'next' pagination control"):
            await steps.go_to_results_page("next")

    @pytest.mark.asyncio
    async def test_unchanged_results(self, steps, page_objects):
        for label in LABELS:
            page_objects.results[label].navigate_pagination.return_value = PaginationResult(clicked=True)

        with pytest.raises(AggregateStepFailure, match="did not change the visible results"):
            await steps.go_to_results_page("previous")

    def test_indicator_without_pagination(self, steps):
        with pytest.raises(AggregateStepFailure, match="Pagination verification state missing"):
            steps.page_indicator_updated()


class TestSorting:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "before,after,changed",
        [
            (["a", "b"], ["b", "a"], True),
            ([], ["a"], True),
            ([], [], False),
            (["a", "b"], ["a", "b"], False),
        ],
    )
    async def test_order_change_detection(self, steps, ctx, page_objects, before, after, changed):
        for label in LABELS:
            page_objects.results[label].get_result_titles.side_effect = [before, after]

        await steps.sort_results_by("Newest")

        assert ctx.recall(SORT_CHANGED, "chrome") is changed

    @pytest.mark.asyncio
    async def test_unchanged_order_fails_assertion(self, steps, page_objects):
        for label in LABELS:
            page_objects.results[label].get_result_titles.side_effect = [["a"], ["a"]]
        await steps.sort_results_by("Newest")

        with pytest.raises(AggregateStepFailure, match="Sorting did not change the results order"):
            steps.results_order_changed()

    @pytest.mark.asyncio
    async def test_missing_sort_control(self, steps, page_objects):
        page_objects.results["chrome"].apply_sort_option.return_value = False

        with pytest.raises(AggregateStepFailure, match="Sort control 'Newest' not found on chrome"):
            await steps.sort_results_by("Newest")


class TestDataDriven:
    @pytest.fixture
    def dataset(self, tmp_path):
        path = tmp_path / "search_cases.json"
        path.write_text(
            json.dumps(
                {
                    "CoreSearch": [
                        {"term": "parking", "expectResults": True},
                        {"term": "zzqxv", "expectResults": False, "expectedMessage": "No results"},
                    ],
                    "Empty": [],
                }
            ),
            encoding="utf-8",
        )
        return str(path)

    def test_empty_dataset_fails(self, steps, dataset):
        with pytest.raises(AssertionError, match="Dataset 'Empty' from '.*' returned no rows."):
            steps.load_dataset("Empty", dataset)

    @pytest.mark.asyncio
    async def test_execute_requires_dataset(self, steps):
        with pytest.raises(AssertionError, match="Search dataset was not loaded."):
            await steps.execute_dataset_cases()

    @pytest.mark.asyncio
    async def test_cases_run_on_every_browser(self, steps, ctx, dataset, page_objects):
        steps.load_dataset("CoreSearch", dataset)
        page_objects.results["chrome"].has_results.side_effect = [True, False]
        page_objects.results["firefox"].has_results.side_effect = [False, False]
        page_objects.results["msedge"].has_results.side_effect = [True, True]
        page_objects.results["firefox"].has_no_results_message.return_value = False

        result_map = await steps.execute_dataset_cases()

        assert list(result_map) == LABELS
        assert [r.term for r in result_map["chrome"]] == ["parking", "zzqxv"]
        assert all(r.passed for r in result_map["chrome"])
        assert result_map["firefox"][0].notes == "Expected results but none were detected."
        assert result_map["firefox"][1].notes == "Empty state message missing."
        assert result_map["msedge"][1].notes == "Dataset expected zero results but items were returned."
        assert ctx.state[DATASET_RESULTS] is result_map
        # every case starts from the homepage on every browser
        for page in ctx.run_context.pages:
            assert page.goto.await_count == 2

    def test_expectations_report_every_failure(self, steps, ctx):
        ctx.state[DATASET_RESULTS] = {
            "chrome": [SearchCaseExecutionResult(term="parking", expect_results=True, passed=True)],
            "firefox": [
                SearchCaseExecutionResult(
                    term="parking",
                    expect_results=True,
                    notes="Expected results but none were detected.",
                )
            ],
            "msedge": [SearchCaseExecutionResult(term="zzqxv", expect_results=False)],
        }

        with pytest.raises(AssertionError) as exc_info:
            steps.dataset_expectations_satisfied()

        assert str(exc_info.value) == (
            "Data-driven validations failed:\n"
            "[firefox] Term='parking' expected results. Notes: Expected results but none were detected.\n"
            "[msedge] Term='zzqxv' expected no results."
        )

    def test_expectations_without_results(self, steps):
        with pytest.raises(AssertionError, match="Data-driven results were not captured."):
            steps.dataset_expectations_satisfied()


class TestNavigationChecks:
    def test_stays_on_homepage(self, steps, ctx):
        steps.stays_on_homepage()

        ctx.run_context.pages[0].url = "https://other.example.test/"
        with pytest.raises(AggregateStepFailure) as exc_info:
            steps.stays_on_homepage()
        assert exc_info.value.failed_labels == ["chrome"]

    def test_cross_browser_enabled(self, steps):
        steps.cross_browser_enabled()

    def test_cross_browser_disabled(self, config, make_run_context):
        steps = SearchSteps(StepContext(config, make_run_context([BrowserKind.CHROMIUM])))

        with pytest.raises(AssertionError, match="E2E_MULTIBROWSER=1"):
            steps.cross_browser_enabled()
