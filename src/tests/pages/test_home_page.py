"""Tests for search box discovery and submission on the home page."""

import pytest
from unittest.mock import call
from playwright.async_api import Error as PlaywrightError

from search_e2e.pages.home_page import FOCUSABLE_SEARCH_INPUTS, REGION_INPUTS, HomePage


class TestFindSearchInput:
    @pytest.mark.asyncio
    async def test_searchbox_role_first(self, make_dom_page, fake_element, fake_locator):
        searchbox = fake_element()
        page = make_dom_page(
            {"input[name='query']": fake_locator(fake_element())},
            roles={"searchbox": fake_locator(searchbox)},
        )

        assert await HomePage(page, "chrome").find_search_input() is searchbox
        page.wait_for_load_state.assert_awaited_with("domcontentloaded")

    @pytest.mark.asyncio
    async def test_hidden_searchbox_falls_back_to_hero(self, make_dom_page, fake_element, fake_locator):
        hero = fake_element()
        page = make_dom_page(
            {"input[name='query']": fake_locator(hero)},
            roles={"searchbox": fake_locator(fake_element(visible=False))},
        )

        assert await HomePage(page, "chrome").find_search_input() is hero

    @pytest.mark.asyncio
    async def test_input_inside_search_region(self, make_dom_page, fake_element, fake_locator):
        region_input = fake_element()
        region = fake_element(children={REGION_INPUTS: fake_locator(region_input)})
        page = make_dom_page({"#search": fake_locator(region)})

        assert await HomePage(page, "firefox").find_search_input() is region_input

    @pytest.mark.asyncio
    async def test_generic_input_selector(self, make_dom_page, fake_element, fake_locator):
        generic = fake_element()
        page = make_dom_page({"input[placeholder*='Search']": fake_locator(generic)})

        assert await HomePage(page, "msedge").find_search_input() is generic

    @pytest.mark.asyncio
    async def test_header_toggle_reveals_input(self, make_dom_page, fake_element, fake_locator):
        hidden_input = fake_element(visible=False)
        toggle = fake_element()
        toggle.click.side_effect = lambda **kwargs: setattr(hidden_input, "visible", True)
        page = make_dom_page(
            {
                ".search-toggle": fake_locator(toggle),
                "input[type='search']": fake_locator(hidden_input),
            }
        )

        found = await HomePage(page, "chrome").find_search_input()

        assert found is hidden_input
        toggle.click.assert_awaited_once_with(timeout=2000)

    @pytest.mark.asyncio
    async def test_no_search_box(self, make_dom_page):
        assert await HomePage(make_dom_page(), "chrome").find_search_input() is None


class TestSearch:
    @pytest.mark.asyncio
    async def test_fills_and_submits(self, make_dom_page, fake_element, fake_locator):
        search_input = fake_element()
        page = make_dom_page(roles={"searchbox": fake_locator(search_input)})

        await HomePage(page, "chrome").search("parking")

        search_input.fill.assert_awaited_once_with("parking")
        search_input.press.assert_awaited_once_with("Enter")
        page.wait_for_load_state.assert_awaited_with("networkidle", timeout=30000)

    @pytest.mark.asyncio
    async def test_missing_input_raises(self, make_dom_page):
        with pytest.raises(RuntimeError, match="Search input not found on page"):
            await HomePage(make_dom_page(), "chrome").search("parking")

    @pytest.mark.asyncio
    async def test_submit_search_does_not_wait_for_network(self, make_dom_page, fake_element, fake_locator):
        search_input = fake_element()
        page = make_dom_page(roles={"searchbox": fake_locator(search_input)})

        returned = await HomePage(page, "chrome").submit_search("parking")

        assert returned is search_input
        search_input.press.assert_awaited_once_with("Enter")
        assert call("networkidle", timeout=30000) not in page.wait_for_load_state.await_args_list


def tab_through(page, sequence):
    """Make each Tab press focus the next entry of ``sequence``.

    Entries are "input", "toggle", "guide" or anything else; Enter on a
    focused toggle moves focus into the revealed input.
    """
    state = {"index": -1, "revealed": False}

    def focused():
        if state["revealed"]:
            return "input"
        index = state["index"]
        return sequence[index] if 0 <= index < len(sequence) else "body"

    def press(key):
        if key == "Tab":
            state["index"] += 1
        elif key == "Enter" and focused() == "toggle":
            state["revealed"] = True

    def evaluate(script, arg):
        if arg["selectors"] is FOCUSABLE_SEARCH_INPUTS:
            return focused() == "input"
        return focused() == "toggle"

    page.keyboard.press.side_effect = press
    page.evaluate.side_effect = evaluate


class TestKeyboardNavigation:
    @pytest.mark.asyncio
    async def test_tabs_until_search_input_focused(self, make_dom_page):
        page = make_dom_page()
        tab_through(page, ["link", "link", "input"])

        assert await HomePage(page, "chrome").focus_search_by_keyboard() is True
        assert page.keyboard.press.await_args_list == [call("Tab")] * 3

    @pytest.mark.asyncio
    async def test_enter_on_toggle_reveals_input(self, make_dom_page):
        page = make_dom_page()
        tab_through(page, ["link", "toggle"])

        assert await HomePage(page, "firefox").focus_search_by_keyboard() is True
        assert page.keyboard.press.await_args_list == [call("Tab"), call("Tab"), call("Enter")]

    @pytest.mark.asyncio
    async def test_guide_button_is_tabbed_past(self, make_dom_page):
        page = make_dom_page()
        tab_through(page, ["guide", "guide"])

        assert await HomePage(page, "msedge").focus_search_by_keyboard(max_tabs=5) is False
        assert page.keyboard.press.await_args_list == [call("Tab")] * 5


class TestMouseInteraction:
    @pytest.mark.asyncio
    async def test_click_focuses_search_input(self, make_dom_page, fake_element, fake_locator):
        search_input = fake_element()
        page = make_dom_page(roles={"searchbox": fake_locator(search_input)})

        assert await HomePage(page, "chrome").focus_search_by_mouse() is True
        search_input.click.assert_awaited_once_with(timeout=2000)
        search_input.focus.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_click_falls_back_to_focus(self, make_dom_page, fake_element, fake_locator):
        search_input = fake_element()
        search_input.click.side_effect = PlaywrightError("element is not visible")
        page = make_dom_page(roles={"searchbox": fake_locator(search_input)})

        assert await HomePage(page, "chrome").focus_search_by_mouse() is True
        search_input.focus.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_no_input_to_click(self, make_dom_page):
        assert await HomePage(make_dom_page(), "chrome").focus_search_by_mouse() is False

    @pytest.mark.asyncio
    async def test_submit_button_clicked(self, make_dom_page, fake_element, fake_locator):
        button = fake_element(text="Search")
        search_input = fake_element()
        page = make_dom_page({"input[type='submit']": fake_locator(button)})

        clicked = await HomePage(page, "chrome").click_submit(search_input)

        assert clicked is True
        button.click.assert_awaited_once_with(timeout=5000)
        search_input.press.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_enter_when_no_submit_button(self, make_dom_page, fake_element):
        search_input = fake_element()

        clicked = await HomePage(make_dom_page(), "chrome").click_submit(search_input)

        assert clicked is False
        search_input.press.assert_awaited_once_with("Enter")

    @pytest.mark.asyncio
    async def test_enter_when_submit_click_fails(self, make_dom_page, fake_element, fake_locator):
        button = fake_element()
        button.click.side_effect = PlaywrightError("Timeout 5000ms exceeded.")
        search_input = fake_element()
        page = make_dom_page({"button[type='submit']": fake_locator(button)})

        assert await HomePage(page, "chrome").click_submit(search_input) is False
        search_input.press.assert_awaited_once_with("Enter")
