"""Tests for ordered locator strategies."""

import pytest
from playwright.async_api import Error as PlaywrightError

from search_e2e.pages.locators import first_successful, first_visible, first_visible_of


def returning(value):
    async def strategy():
        return value

    return strategy


def raising(message):
    async def strategy():
        raise PlaywrightError(message)

    return strategy


class TestFirstSuccessful:
    @pytest.mark.asyncio
    async def test_first_non_none_wins(self):
        result = await first_successful([returning(None), returning("second"), returning("third")])

        assert result == "second"

    @pytest.mark.asyncio
    async def test_playwright_errors_are_misses(self):
        result = await first_successful([raising("strict mode violation"), returning("found")])

        assert result == "found"

    @pytest.mark.asyncio
    async def test_all_miss(self):
        assert await first_successful([returning(None), raising("timeout")]) is None

    @pytest.mark.asyncio
    async def test_other_errors_propagate(self):
        async def broken():
            raise ValueError("bug")

        with pytest.raises(ValueError):
            await first_successful([broken, returning("never")])


class TestFirstVisible:
    @pytest.mark.asyncio
    async def test_skips_hidden_matches(self, fake_element, fake_locator):
        hidden = fake_element(visible=False)
        shown = fake_element(text="shown")

        assert await first_visible(fake_locator(hidden, shown)) is shown

    @pytest.mark.asyncio
    async def test_none_when_nothing_visible(self, fake_element, fake_locator):
        assert await first_visible(fake_locator(fake_element(visible=False))) is None
        assert await first_visible(fake_locator()) is None
        assert await first_visible(None) is None

    @pytest.mark.asyncio
    async def test_first_visible_of_selectors_in_order(self, make_dom_page, fake_element, fake_locator):
        preferred = fake_element(text="preferred")
        page = make_dom_page(
            {
                "#missing": fake_locator(),
                "#preferred": fake_locator(preferred),
                "#fallback": fake_locator(fake_element(text="fallback")),
            }
        )

        result = await first_visible_of(page, ["#missing", "#preferred", "#fallback"])

        assert result is preferred
