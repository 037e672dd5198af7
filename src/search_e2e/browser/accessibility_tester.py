"""Accessibility testing using axe-core for WCAG compliance audits.

This module provides the AccessibilityTester class for running axe-core
audits inside a page and turning violations into AccessibilityIssue records
that the quality steps persist as per-browser JSON reports.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional
from playwright.async_api import Page

from ..models.quality_models import AccessibilityIssue

logger = logging.getLogger(__name__)


class AccessibilityTester:
    """Run accessibility audits using axe-core library.

    PATTERN: Use evaluate() to run JavaScript libraries in browser context.
    GOTCHA: Navigation discards injected scripts, so presence is checked on
    every audit rather than cached per page.
    """

    # Axe-core CDN URL
    AXE_CORE_CDN = "https://cdnjs.cloudflare.com/ajax/libs/axe-core/4.7.2/axe.min.js"

    # WCAG level to axe-core tag mapping
    WCAG_TAG_MAPPING = {
        "A": ["wcag2a"],
        "AA": ["wcag2a", "wcag2aa"],
        "AAA": ["wcag2a", "wcag2aa", "wcag2aaa"],
    }

    def __init__(self, local_axe_path: Optional[str] = None):
        """Initialize the accessibility tester.

        Args:
            local_axe_path: Local copy of axe.min.js used when the CDN is unreachable
        """
        self.local_axe_path = local_axe_path

    async def inject_axe(self, page: Page) -> None:
        """Inject axe-core into the page unless it is already present.

        Raises:
            RuntimeError: If axe-core cannot be loaded
        """
        try:
            if await page.evaluate("() => typeof window.axe !== 'undefined'"):
                logger.debug("axe-core already present on page")
                return

            try:
                await page.add_script_tag(url=self.AXE_CORE_CDN)
            except Exception as e:
                if not self.local_axe_path:
                    raise
                logger.warning(f"axe-core CDN unavailable ({e}); using {self.local_axe_path}")
                await page.add_script_tag(path=self.local_axe_path)

            await page.wait_for_function("() => typeof window.axe !== 'undefined'", timeout=5000)
            logger.info("axe-core library injected successfully")

        except Exception as e:
            logger.error(f"Failed to inject axe-core: {e}")
            raise RuntimeError(f"Failed to inject axe-core: {e}")

    async def run_audit(
        self,
        page: Page,
        wcag_level: Literal["A", "AA", "AAA"] = "AA",
        include_best_practices: bool = True,
    ) -> List[AccessibilityIssue]:
        """Run accessibility audit on the page.

        Args:
            page: Playwright page instance
            wcag_level: WCAG conformance level (A, AA, or AAA)
            include_best_practices: Include best practice rules

        Returns:
            One issue per violating element

        Raises:
            RuntimeError: If axe-core cannot be injected or run
        """
        await self.inject_axe(page)

        tags = self.WCAG_TAG_MAPPING.get(wcag_level, ["wcag2a", "wcag2aa"]).copy()
        if include_best_practices:
            tags.append("best-practice")

        logger.info(f"Running accessibility audit with WCAG level {wcag_level} (tags: {tags})")

        try:
            results = await page.evaluate(
                """
                (tags) => axe.run(document, {
                    runOnly: { type: 'tag', values: tags }
                })
                """,
                tags,
            )
        except Exception as e:
            logger.error(f"Accessibility audit failed: {e}")
            raise RuntimeError(f"Accessibility audit failed: {e}")

        issues = self._parse_violations((results or {}).get("violations", []))

        logger.info(
            f"Accessibility audit completed: {len(issues)} issues found "
            f"({self._count_by_impact(issues)})"
        )
        return issues

    def _parse_violations(self, violations: List[Dict[str, Any]]) -> List[AccessibilityIssue]:
        """Parse axe-core violations into AccessibilityIssue objects."""
        issues = []

        for violation in violations:
            rule_id = violation.get("id", "unknown")
            impact = violation.get("impact") or "moderate"
            tags = violation.get("tags", [])
            help_url = violation.get("helpUrl", "")

            wcag_criteria = [tag for tag in tags if tag.startswith("wcag")]

            if any(tag.endswith("aaa") for tag in wcag_criteria):
                issue_level = "AAA"
            elif any(tag.endswith("aa") for tag in wcag_criteria):
                issue_level = "AA"
            else:
                issue_level = "A"

            for idx, node in enumerate(violation.get("nodes", [])):
                target = node.get("target", [])
                issues.append(
                    AccessibilityIssue(
                        id=f"{rule_id}_{idx}",
                        impact=impact,
                        rule_id=rule_id,
                        description=violation.get("description", ""),
                        help_text=f"{violation.get('help', '')}. More info: {help_url}",
                        selector=str(target[0]) if target else "unknown",
                        html=node.get("html", ""),
                        wcag_criteria=wcag_criteria,
                        wcag_level=issue_level,
                    )
                )

        return issues

    def _count_by_impact(self, issues: List[AccessibilityIssue]) -> str:
        """Count issues by impact level for logging."""
        counts = {"critical": 0, "serious": 0, "moderate": 0, "minor": 0}

        for issue in issues:
            if issue.impact in counts:
                counts[issue.impact] += 1

        parts = [f"{count} {level}" for level, count in counts.items() if count > 0]
        return ", ".join(parts) if parts else "no issues"

    def filter_by_impact(
        self,
        issues: List[AccessibilityIssue],
        min_impact: Literal["minor", "moderate", "serious", "critical"] = "moderate",
    ) -> List[AccessibilityIssue]:
        """Filter issues by minimum impact level."""
        impact_order = {"minor": 0, "moderate": 1, "serious": 2, "critical": 3}
        min_level = impact_order.get(min_impact, 1)

        return [issue for issue in issues if impact_order.get(issue.impact, 0) >= min_level]

    def write_report(self, issues: List[AccessibilityIssue], path: Path, url: str = "") -> Path:
        """Write audit results as JSON.

        Args:
            issues: Audit issues
            path: Destination file
            url: Audited page URL

        Returns:
            Written path
        """
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "url": url,
            "violations_count": len(issues),
            "by_impact": self._count_by_impact(issues),
            "violations": [issue.model_dump() for issue in issues],
        }
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        logger.debug(f"Accessibility report written to {path}")
        return path
