"""Tests for RunContext bookkeeping."""

import pytest
from unittest.mock import MagicMock

from search_e2e.harness.run_context import RunContext
from search_e2e.models.harness_models import BrowserIdentity, BrowserKind


class TestAddTarget:
    def test_first_target_sets_single_fields(self):
        run_context = RunContext()
        browser, context, page = MagicMock(), MagicMock(), MagicMock()

        run_context.add_target(BrowserIdentity(kind=BrowserKind.CHROME, index=0), browser, context, page)

        assert run_context.browser is browser
        assert run_context.context is context
        assert run_context.page is page

    def test_later_targets_keep_single_fields(self, three_browsers):
        assert three_browsers.page is three_browsers.pages[0]
        assert three_browsers.context is three_browsers.contexts[0]
        assert len(three_browsers.identities) == 3


class TestReplacePage:
    def test_replace_updates_index(self, three_browsers):
        new_page = MagicMock()

        three_browsers.replace_page(1, new_page)

        assert three_browsers.pages[1] is new_page
        assert three_browsers.page is three_browsers.pages[0]

    def test_replace_index_zero_updates_single_page(self, three_browsers):
        new_page = MagicMock()

        three_browsers.replace_page(0, new_page)

        assert three_browsers.page is new_page

    def test_replace_beyond_end_pads_list(self):
        run_context = RunContext()
        new_page = MagicMock()

        run_context.replace_page(2, new_page)

        assert len(run_context.pages) == 3
        assert run_context.pages[2] is new_page

    def test_negative_index_rejected(self):
        with pytest.raises(ValueError):
            RunContext().replace_page(-1, MagicMock())


class TestContextAt:
    def test_returns_indexed_context(self, three_browsers):
        assert three_browsers.context_at(2) is three_browsers.contexts[2]

    def test_falls_back_to_single_context_for_index_zero(self):
        run_context = RunContext()
        run_context.context = MagicMock()

        assert run_context.context_at(0) is run_context.context
        assert run_context.context_at(1) is None


def test_clear_resets_everything(three_browsers):
    three_browsers.clear()

    assert three_browsers.pages == []
    assert three_browsers.contexts == []
    assert three_browsers.identities == []
    assert three_browsers.page is None
