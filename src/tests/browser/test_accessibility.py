"""Tests for Accessibility Testing.

This module contains tests for the AccessibilityTester class which performs
WCAG compliance audits using axe-core.
"""

import json

import pytest
from unittest.mock import AsyncMock
from playwright.async_api import Page

from search_e2e.browser.accessibility_tester import AccessibilityTester
from search_e2e.models.quality_models import AccessibilityIssue


@pytest.fixture
def tester():
    """Create an AccessibilityTester instance."""
    return AccessibilityTester()


@pytest.fixture
def mock_page():
    """Create a mock Page instance."""
    page = AsyncMock(spec=Page)
    page.add_script_tag = AsyncMock()
    page.wait_for_function = AsyncMock()
    page.evaluate = AsyncMock()
    return page


@pytest.fixture
def sample_axe_violation():
    """Create a sample axe-core violation."""
    return {
        "id": "color-contrast",
        "impact": "serious",
        "description": "Elements must have sufficient color contrast",
        "help": "Ensure text has sufficient contrast",
        "helpUrl": "https://dequeuniversity.com/rules/axe/4.7/color-contrast",
        "tags": ["wcag2aa", "wcag143"],
        "nodes": [
            {
                "target": ["#search-button"],
                "html": '<button id="search-button">Search</button>',
                "failureSummary": "Fix the following: Element has insufficient color contrast",
            }
        ],
    }


def violation(rule_id, tags, impact="moderate", targets=("#test",)):
    return {
        "id": rule_id,
        "impact": impact,
        "description": "Test",
        "help": "Help",
        "helpUrl": "http://example.com",
        "tags": tags,
        "nodes": [{"target": [t], "html": "<div>"} for t in targets],
    }


class TestAxeInjection:
    """Tests for axe-core library injection."""

    @pytest.mark.asyncio
    async def test_inject_axe_success(self, tester, mock_page):
        """Test axe-core is loaded from the CDN when missing."""
        mock_page.evaluate = AsyncMock(return_value=False)

        await tester.inject_axe(mock_page)

        mock_page.add_script_tag.assert_called_once_with(url=tester.AXE_CORE_CDN)
        mock_page.wait_for_function.assert_called_once()

    @pytest.mark.asyncio
    async def test_inject_axe_already_present(self, tester, mock_page):
        """Test that axe-core is not injected twice into the same document."""
        mock_page.evaluate = AsyncMock(return_value=True)

        await tester.inject_axe(mock_page)

        mock_page.add_script_tag.assert_not_called()

    @pytest.mark.asyncio
    async def test_inject_axe_falls_back_to_local_copy(self, mock_page):
        """Test the local axe.min.js is used when the CDN fails."""
        tester = AccessibilityTester(local_axe_path="vendor/axe.min.js")
        mock_page.evaluate = AsyncMock(return_value=False)
        mock_page.add_script_tag = AsyncMock(side_effect=[Exception("offline"), None])

        await tester.inject_axe(mock_page)

        assert mock_page.add_script_tag.call_args.kwargs == {"path": "vendor/axe.min.js"}

    @pytest.mark.asyncio
    async def test_inject_axe_script_tag_failure(self, tester, mock_page):
        """Test axe-core injection when script tag fails."""
        mock_page.evaluate = AsyncMock(return_value=False)
        mock_page.add_script_tag = AsyncMock(side_effect=Exception("Script load failed"))

        with pytest.raises(RuntimeError, match="Failed to inject axe-core"):
            await tester.inject_axe(mock_page)


class TestAccessibilityAudit:
    """Tests for running accessibility audits."""

    @pytest.mark.asyncio
    async def test_run_audit_success(self, tester, mock_page, sample_axe_violation):
        """Test successful accessibility audit."""
        mock_page.evaluate = AsyncMock(side_effect=[True, {"violations": [sample_axe_violation]}])

        issues = await tester.run_audit(mock_page, wcag_level="AA")

        assert len(issues) == 1
        assert isinstance(issues[0], AccessibilityIssue)
        assert issues[0].rule_id == "color-contrast"
        assert issues[0].impact == "serious"
        assert issues[0].selector == "#search-button"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "level,best_practices,expected",
        [
            ("A", False, ["wcag2a"]),
            ("AA", True, ["wcag2a", "wcag2aa", "best-practice"]),
            ("AAA", False, ["wcag2a", "wcag2aa", "wcag2aaa"]),
        ],
    )
    async def test_run_audit_tags(self, tester, mock_page, level, best_practices, expected):
        """Test the WCAG level selects the axe-core tags."""
        mock_page.evaluate = AsyncMock(side_effect=[True, {"violations": []}])

        await tester.run_audit(mock_page, wcag_level=level, include_best_practices=best_practices)

        tags = mock_page.evaluate.call_args_list[1][0][1]
        assert tags == expected

    @pytest.mark.asyncio
    async def test_run_audit_no_violations(self, tester, mock_page):
        """Test audit with no violations."""
        mock_page.evaluate = AsyncMock(side_effect=[True, {"violations": []}])

        assert await tester.run_audit(mock_page) == []

    @pytest.mark.asyncio
    async def test_run_audit_failure(self, tester, mock_page):
        """Test audit failure handling."""
        mock_page.evaluate = AsyncMock(side_effect=[True, Exception("Audit failed")])

        with pytest.raises(RuntimeError, match="Accessibility audit failed"):
            await tester.run_audit(mock_page)


class TestViolationParsing:
    """Tests for parsing axe-core violations."""

    @pytest.mark.parametrize(
        "tags,level",
        [(["wcag2aaa"], "AAA"), (["wcag2a", "wcag2aa"], "AA"), (["wcag2a"], "A"), (["best-practice"], "A")],
    )
    def test_wcag_level_detection(self, tester, tags, level):
        """Test WCAG level detection from tags."""
        issues = tester._parse_violations([violation("rule", tags)])

        assert issues[0].wcag_level == level

    def test_one_issue_per_node(self, tester):
        """Test parsing violation with multiple nodes."""
        issues = tester._parse_violations(
            [violation("label", ["wcag2a"], "critical", targets=("#input1", "#input2"))]
        )

        assert [i.selector for i in issues] == ["#input1", "#input2"]
        assert [i.id for i in issues] == ["label_0", "label_1"]

    def test_wcag_criteria_only_wcag_tags(self, tester):
        """Test extracting WCAG criteria from tags."""
        issues = tester._parse_violations([violation("rule", ["wcag2a", "wcag111", "section508"])])

        assert issues[0].wcag_criteria == ["wcag2a", "wcag111"]

    def test_missing_impact_defaults_to_moderate(self, tester):
        """Test violations without an impact are treated as moderate."""
        raw = violation("rule", ["wcag2a"])
        raw["impact"] = None

        assert tester._parse_violations([raw])[0].impact == "moderate"


class TestReporting:
    """Tests for filtering and JSON reports."""

    def test_filter_by_impact(self, tester):
        """Test minimum impact filtering."""
        issues = tester._parse_violations(
            [
                violation("minor-rule", ["wcag2a"], "minor"),
                violation("serious-rule", ["wcag2a"], "serious"),
                violation("critical-rule", ["wcag2a"], "critical"),
            ]
        )

        filtered = tester.filter_by_impact(issues, min_impact="serious")

        assert [i.rule_id for i in filtered] == ["serious-rule", "critical-rule"]

    def test_write_report(self, tester, tmp_path, sample_axe_violation):
        """Test the JSON report lists every violation."""
        issues = tester._parse_violations([sample_axe_violation])
        path = tmp_path / "accessibility-reports" / "search_chrome_axe_report.json"

        tester.write_report(issues, path, url="https://search.example.test/")

        payload = json.loads(path.read_text(encoding="utf-8"))
        assert payload["url"] == "https://search.example.test/"
        assert payload["violations_count"] == 1
        assert payload["by_impact"] == "1 serious"
        assert payload["violations"][0]["rule_id"] == "color-contrast"
