"""Accessibility, colour contrast and performance steps."""

import json
import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

from ..browser.accessibility_tester import AccessibilityTester
from ..browser.contrast_analyzer import LARGE_TEXT_RATIO, NORMAL_TEXT_RATIO, ContrastAnalyzer
from ..browser.performance_monitor import PerformanceMonitor
from ..models.harness_models import RunTarget
from ..models.quality_models import (
    ContrastCheck,
    ContrastReport,
    InteractivityMetrics,
    PageLoadMetrics,
    ResourceMetrics,
)
from ..models.report_models import ArtifactOutcome
from ..pages.home_page import HomePage
from ..reporting.artifacts import ArtifactCapture, artifact_name
from .context import StepContext, expect
from .search_steps import SEARCH_TERM

logger = logging.getLogger(__name__)

CONTRAST_RESULTS = "contrast_results"
PAGE_LOAD_METRICS = "page_load_metrics"
SEARCH_RESPONSE_SECONDS = "search_response_seconds"
INTERACTIVITY_METRICS = "interactivity_metrics"
RESOURCE_METRICS = "resource_metrics"

CONTRAST_MIN_PASS_RATE = 80.0
CONTRAST_GOOD_PASS_RATE = 95.0
MAX_REPORTED_ISSUES = 10

HEADING_TAGS = {"h1", "h2", "h3", "h4", "h5", "h6"}
RULE = "=" * 71


class QualitySteps:
    """
    Non-functional checks run on every browser of a scenario.

    Measurement steps store their numbers per browser; the assertion steps
    that follow compare those numbers with the thresholds.
    """

    def __init__(
        self,
        ctx: StepContext,
        accessibility: Optional[AccessibilityTester] = None,
        contrast: Optional[ContrastAnalyzer] = None,
        performance: Optional[PerformanceMonitor] = None,
    ):
        self.ctx = ctx
        self.accessibility = accessibility or AccessibilityTester()
        self.contrast = contrast or ContrastAnalyzer()
        self.performance = performance or PerformanceMonitor()

    def _run_dir(self) -> Path:
        return Path(self.ctx.run_context.results_dir or self.ctx.config.results_dir)

    def _skipped(self, enabled: bool, check: str) -> bool:
        if not enabled:
            logger.info(f"{check} checks disabled by configuration; step skipped")
        return not enabled

    def _attach(self, label: str, outcome: ArtifactOutcome, display_name: str) -> None:
        if not outcome.succeeded:
            self.ctx.log(label, "warning", f"Could not write {display_name}: {outcome.error}")
            return
        if self.ctx.report is not None:
            self.ctx.report.set_current(self.ctx.scenario_name, label, self.ctx.current_step)
            self.ctx.report.attach_file(outcome.path, display_name)

    def _report_stem(self, kind: str, label: str, fallback: str) -> str:
        term = self.ctx.recall(SEARCH_TERM, label) or fallback
        return artifact_name(f"{kind}_{term}", label)

    # Accessibility

    async def meets_accessibility_requirements(self) -> None:
        """
        Run an axe-core audit on every browser and save a JSON report each.

        The report lists every violation; only those at or above
        ``accessibility_min_impact`` fail the browser.
        """
        if self._skipped(self.ctx.config.accessibility_enabled, "Accessibility"):
            return
        min_impact = self.ctx.config.accessibility_min_impact

        async def action(target: RunTarget):
            page = target.handle
            issues = await self.accessibility.run_audit(page)
            failing = self.accessibility.filter_by_impact(issues, min_impact)

            file_name = f"{artifact_name(self.ctx.scenario_name, target.label, 'axe_report')}.json"
            report_path = self.accessibility.write_report(
                issues, self._run_dir() / "accessibility-reports" / file_name, url=page.url
            )
            if self.ctx.report is not None:
                self.ctx.report.set_current(self.ctx.scenario_name, target.label, self.ctx.current_step)
                self.ctx.report.attach_file(report_path, f"Axe Results ({target.label})")

            if failing:
                message = (
                    f"Accessibility violations detected: {len(failing)} ({target.label}). "
                    f"See report: {file_name}"
                )
                self.ctx.log(target.label, "warning", message)
                raise AssertionError(message)

            if issues:
                self.ctx.log(
                    target.label,
                    "pass",
                    f"No axe violations at '{min_impact}' impact or above ({target.label}); "
                    f"{len(issues)} lower-impact violations in {file_name}",
                )
            else:
                self.ctx.log(target.label, "pass", f"No axe violations detected ({target.label})")

        await self.ctx.coordinator.run_across_targets(action)

    # Contrast

    async def analyze_contrast(self) -> None:
        if self._skipped(self.ctx.config.contrast_enabled, "Contrast"):
            return

        async def action(target: RunTarget):
            report = await self.contrast.analyze(target.handle)
            self.ctx.remember(CONTRAST_RESULTS, target.label, report)
            self.ctx.log(
                target.label,
                "info",
                f"Contrast analysis: {report.total} elements, "
                f"{len(report.failures)} below WCAG AA ({report.pass_rate:.1f}% pass rate)",
            )

        await self.ctx.coordinator.run_across_targets(action)

    def contrast_meets_wcag_aa(self) -> None:
        """
        Require at least an 80% contrast pass rate on every browser.

        A page with no analyzable text only logs a warning.
        """
        if self._skipped(self.ctx.config.contrast_enabled, "Contrast"):
            return

        def check(target: RunTarget):
            report: Optional[ContrastReport] = self.ctx.recall(CONTRAST_RESULTS, target.label)
            expect(report is not None, f"Contrast results not found for {target.label}")

            if report.total == 0:
                self.ctx.log(
                    target.label, "warning", "No elements analyzed - contrast validation skipped"
                )
                return

            rate = report.pass_rate
            if rate >= CONTRAST_GOOD_PASS_RATE:
                self.ctx.log(target.label, "pass", f"{rate:.1f}% of elements meet WCAG 2.1 AA")
            elif rate >= CONTRAST_MIN_PASS_RATE:
                self.ctx.log(
                    target.label, "warning", f"{rate:.1f}% pass rate - some contrast improvements needed"
                )
            else:
                self.ctx.log(
                    target.label, "error", f"{rate:.1f}% pass rate - significant contrast issues detected"
                )

            expect(
                rate >= CONTRAST_MIN_PASS_RATE,
                f"Contrast pass rate {rate:.1f}% is below acceptable threshold "
                f"({CONTRAST_MIN_PASS_RATE:.0f}%) for {target.label}",
            )

        self.ctx.coordinator.run_across_targets_sync(check)

    def _contrast_category(
        self,
        category: str,
        selects: Callable[[ContrastCheck], bool],
        minimum: Optional[float] = None,
    ) -> None:
        """
        Apply the pass-rate threshold to one group of analyzed elements.

        Args:
            category: Group name for messages
            selects: Picks the group's checks from the stored report
            minimum: Ratio every element must reach; each element's own
                WCAG requirement when None
        """
        if self._skipped(self.ctx.config.contrast_enabled, "Contrast"):
            return

        def check(target: RunTarget):
            report: Optional[ContrastReport] = self.ctx.recall(CONTRAST_RESULTS, target.label)
            expect(report is not None, f"Contrast results not found for {target.label}")

            checks = [c for c in report.checks if selects(c)]
            if not checks:
                self.ctx.log(target.label, "warning", f"No {category} analyzed ({target.label})")
                return

            failures = [c for c in checks if c.ratio < (minimum or c.required_ratio)]
            rate = (len(checks) - len(failures)) * 100.0 / len(checks)
            standard = f"{minimum}:1" if minimum else "WCAG 2.1 AA"
            self.ctx.log(
                target.label,
                "pass" if not failures else "warning",
                f"{category.capitalize()}: {len(checks)} checked, {len(failures)} below {standard}",
            )
            worst = ", ".join(f"{c.selector} ({c.ratio}:1)" for c in failures[:3])
            expect(
                rate >= CONTRAST_MIN_PASS_RATE,
                f"{category.capitalize()} contrast pass rate {rate:.1f}% is below "
                f"{CONTRAST_MIN_PASS_RATE:.0f}% for {target.label}: {worst}",
            )

        self.ctx.coordinator.run_across_targets_sync(check)

    def normal_text_contrast_at_least(self, ratio: float = NORMAL_TEXT_RATIO) -> None:
        self._contrast_category("normal text", lambda c: not c.large_text, ratio)

    def large_text_contrast_at_least(self, ratio: float = LARGE_TEXT_RATIO) -> None:
        self._contrast_category("large text", lambda c: c.large_text, ratio)

    def interactive_contrast_sufficient(self) -> None:
        self._contrast_category("interactive elements", lambda c: c.interactive)

    def result_headings_contrast_sufficient(self) -> None:
        self._contrast_category("result headings", lambda c: c.tag in HEADING_TAGS)

    def result_descriptions_contrast_sufficient(self) -> None:
        self._contrast_category("result descriptions", lambda c: c.tag == "p")

    def navigation_links_contrast_sufficient(self) -> None:
        self._contrast_category("navigation links", lambda c: c.tag == "a" and c.in_navigation)

    async def results_page_meets_contrast(self) -> None:
        """Analyze the results page again and hold it to the overall pass rate."""
        await self.analyze_contrast()
        self.contrast_meets_wcag_aa()

    async def log_contrast_results(self) -> None:
        """Write a JSON report and a text summary of each browser's analysis."""
        if self._skipped(self.ctx.config.contrast_enabled, "Contrast"):
            return
        artifacts = ArtifactCapture(self._run_dir())
        config = self.ctx.config

        async def action(target: RunTarget):
            report: Optional[ContrastReport] = self.ctx.recall(CONTRAST_RESULTS, target.label)
            if report is None:
                self.ctx.log(target.label, "info", "No contrast analysis to log")
                return

            term = self.ctx.recall(SEARCH_TERM, target.label) or "homepage"
            failures = report.failures
            payload = {
                "timestamp": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
                "browser": target.label,
                "environment": config.environment_name,
                "base_url": config.base_url,
                "url": report.url,
                "search_term": term,
                "total_elements": report.total,
                "passed_elements": report.total - len(failures),
                "failed_elements": len(failures),
                "pass_rate": round(report.pass_rate, 2),
                "standard": "WCAG 2.1 Level AA",
                "requirements": {
                    "normal_text": f"{NORMAL_TEXT_RATIO}:1",
                    "large_text": f"{LARGE_TEXT_RATIO}:1",
                },
                "issues": [c.model_dump(mode="json") for c in failures[:MAX_REPORTED_ISSUES]],
            }
            stem = self._report_stem("Contrast", target.label, "homepage")
            json_outcome = await artifacts.write_report(
                "contrast-reports", f"{stem}.json", json.dumps(payload, indent=2)
            )
            self._attach(target.label, json_outcome, f"Contrast Report JSON ({target.label})")

            summary = render_contrast_summary(report, target.label, term, config.environment_name)
            text_outcome = await artifacts.write_report("contrast-reports", f"{stem}.txt", summary)
            self._attach(target.label, text_outcome, f"Contrast Summary ({target.label})")

        await self.ctx.coordinator.run_across_targets(action)

    # Performance

    async def measure_page_load(self) -> None:
        """Collect navigation timing of the page each browser has loaded."""
        if self._skipped(self.ctx.config.performance_enabled, "Performance"):
            return

        async def action(target: RunTarget):
            metrics = await self.performance.collect_metrics(target.handle)
            self.ctx.remember(PAGE_LOAD_METRICS, target.label, metrics)
            self.ctx.log(
                target.label,
                "info",
                f"Page load: {metrics.load_seconds:.3f}s, "
                f"DOM content loaded: {metrics.dom_content_loaded_ms / 1000:.3f}s, "
                f"resources: {metrics.total_requests}, size: {metrics.total_size_kb:.2f} KB",
            )

        await self.ctx.coordinator.run_across_targets(action)

    def page_load_within(self, seconds: Optional[float] = None) -> None:
        if self._skipped(self.ctx.config.performance_enabled, "Performance"):
            return
        limit = seconds if seconds is not None else self.ctx.config.max_page_load_seconds

        def check(target: RunTarget):
            metrics: Optional[PageLoadMetrics] = self.ctx.recall(PAGE_LOAD_METRICS, target.label)
            expect(metrics is not None, f"Page load time not measured for {target.label}")

            load = metrics.load_seconds
            if load <= limit:
                self.ctx.log(target.label, "pass", f"Page load: {load:.3f}s (target: <{limit}s)")
            else:
                self.ctx.log(target.label, "warning", f"Page load: {load:.3f}s exceeds target ({limit}s)")
            expect(
                load <= limit,
                f"Page load time {load:.3f}s exceeds the limit of {limit}s for {target.label}",
            )

        self.ctx.coordinator.run_across_targets_sync(check)

    async def measure_search_response(self, term: str) -> None:
        """Time a search from submit until the network settles."""
        if self._skipped(self.ctx.config.performance_enabled, "Performance"):
            return
        idle_timeout = self.ctx.config.network_idle_timeout_ms

        async def action(target: RunTarget):
            start = time.monotonic()
            await HomePage(target.handle, target.label).submit_search(term)
            submitted = time.monotonic() - start
            settled = await self.performance.time_network_idle(target.handle, idle_timeout)
            elapsed = submitted + settled

            self.ctx.remember(SEARCH_RESPONSE_SECONDS, target.label, elapsed)
            self.ctx.remember(SEARCH_TERM, target.label, term)
            self.ctx.log(target.label, "info", f"Search response time: {elapsed:.3f}s")

        await self.ctx.coordinator.run_across_targets(action)

    def search_response_within(self, seconds: Optional[float] = None) -> None:
        if self._skipped(self.ctx.config.performance_enabled, "Performance"):
            return
        limit = seconds if seconds is not None else self.ctx.config.max_search_response_seconds

        def check(target: RunTarget):
            elapsed = self.ctx.recall(SEARCH_RESPONSE_SECONDS, target.label)
            expect(elapsed is not None, f"Search response time not measured for {target.label}")

            if elapsed <= limit:
                self.ctx.log(target.label, "pass", f"Search response: {elapsed:.3f}s (target: <{limit}s)")
            else:
                self.ctx.log(
                    target.label, "warning", f"Search response: {elapsed:.3f}s exceeds target ({limit}s)"
                )
            expect(
                elapsed <= limit,
                f"Search response time {elapsed:.3f}s exceeds the limit of {limit}s for {target.label}",
            )

        self.ctx.coordinator.run_across_targets_sync(check)

    async def results_page_load_within(self, seconds: Optional[float] = None) -> None:
        """
        Measure time to interactive of the results page.

        Exceeding the limit is logged as a warning; it does not fail the
        browser.
        """
        if self._skipped(self.ctx.config.performance_enabled, "Performance"):
            return
        limit = seconds if seconds is not None else self.ctx.config.max_time_to_interactive_seconds

        async def action(target: RunTarget):
            metrics = await self.performance.collect_interactivity(target.handle)
            self.ctx.remember(INTERACTIVITY_METRICS, target.label, metrics)
            tti = metrics.time_to_interactive_seconds
            self.ctx.log(
                target.label,
                "info",
                f"Time to Interactive: {tti:.3f}s, DOM Complete: {metrics.dom_complete_seconds:.3f}s",
            )
            if tti <= limit:
                self.ctx.log(target.label, "pass", f"Results page interactive within {limit}s")
            else:
                self.ctx.log(
                    target.label,
                    "warning",
                    f"Results page took {tti:.3f}s to become interactive (target: <{limit}s)",
                )

        await self.ctx.coordinator.run_across_targets(action)

    async def resource_loading_metrics(self) -> None:
        """Summarize resource timing; slow resources are warnings."""
        if self._skipped(self.ctx.config.performance_enabled, "Performance"):
            return
        slow_ms = self.ctx.config.slow_resource_ms

        async def action(target: RunTarget):
            metrics = await self.performance.collect_resource_metrics(target.handle, slow_ms)
            self.ctx.remember(RESOURCE_METRICS, target.label, metrics)
            self.ctx.log(
                target.label,
                "info",
                f"Resources: {metrics.total_resources}, size: {metrics.total_size_kb:.2f} KB, "
                f"slow (>{slow_ms:.0f}ms): {metrics.slow_resource_count}",
            )
            if metrics.slow_resource_count:
                slowest = ", ".join(
                    f"{r.name} ({r.duration_ms:.0f}ms)" for r in metrics.slow_resources
                )
                self.ctx.log(
                    target.label,
                    "warning",
                    f"{metrics.slow_resource_count} resources loaded slowly: {slowest}",
                )
            else:
                self.ctx.log(target.label, "pass", "All resources loaded efficiently")

        await self.ctx.coordinator.run_across_targets(action)

    async def log_performance_metrics(self) -> None:
        """Write every measured number and its target to a JSON report and a summary."""
        if self._skipped(self.ctx.config.performance_enabled, "Performance"):
            return
        artifacts = ArtifactCapture(self._run_dir())
        config = self.ctx.config

        async def action(target: RunTarget):
            label = target.label
            page_load: Optional[PageLoadMetrics] = self.ctx.recall(PAGE_LOAD_METRICS, label)
            interactivity: Optional[InteractivityMetrics] = self.ctx.recall(INTERACTIVITY_METRICS, label)
            resources: Optional[ResourceMetrics] = self.ctx.recall(RESOURCE_METRICS, label)
            term = self.ctx.recall(SEARCH_TERM, label) or "N/A"

            measured = {
                "page_load_seconds": page_load.load_seconds if page_load else None,
                "search_response_seconds": self.ctx.recall(SEARCH_RESPONSE_SECONDS, label),
                "time_to_interactive_seconds": (
                    interactivity.time_to_interactive_seconds if interactivity else None
                ),
            }
            targets = {
                "page_load_seconds": config.max_page_load_seconds,
                "search_response_seconds": config.max_search_response_seconds,
                "time_to_interactive_seconds": config.max_time_to_interactive_seconds,
            }
            payload = {
                "timestamp": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
                "browser": label,
                "environment": config.environment_name,
                "base_url": config.base_url,
                "scenario": self.ctx.scenario_name,
                "search_term": term,
                "metrics": measured,
                "targets": targets,
                "resources": resources.model_dump(mode="json") if resources else None,
            }
            stem = self._report_stem("Performance", label, "unknown")
            json_outcome = await artifacts.write_report(
                "performance-reports", f"{stem}.json", json.dumps(payload, indent=2)
            )
            self._attach(label, json_outcome, f"Performance Report JSON ({label})")

            summary = render_performance_summary(measured, targets, label, term, config.environment_name)
            text_outcome = await artifacts.write_report("performance-reports", f"{stem}.txt", summary)
            self._attach(label, text_outcome, f"Performance Summary ({label})")

        await self.ctx.coordinator.run_across_targets(action)


def render_contrast_summary(report: ContrastReport, label: str, page: str, environment: str) -> str:
    failures = report.failures
    rate = report.pass_rate
    if rate >= CONTRAST_GOOD_PASS_RATE:
        status = "EXCELLENT"
    elif rate >= CONTRAST_MIN_PASS_RATE:
        status = "ACCEPTABLE"
    else:
        status = "NEEDS IMPROVEMENT"

    lines: List[str] = [
        RULE,
        "WCAG 2.1 AA CONTRAST ANALYSIS REPORT",
        RULE,
        f"Date/Time: {datetime.now():%d/%m/%Y %H:%M:%S}",
        f"Browser: {label}",
        f"Page: {page}",
        f"Environment: {environment}",
        RULE,
        "",
        "CONTRAST ANALYSIS RESULTS:",
        f"  Total Elements Analyzed: {report.total}",
        f"  Passed: {report.total - len(failures)}",
        f"  Failed: {len(failures)}",
        f"  Pass Rate: {rate:.2f}%",
        "",
        "WCAG 2.1 AA REQUIREMENTS:",
        f"  Normal Text (< 18px): {NORMAL_TEXT_RATIO}:1 minimum",
        f"  Large Text (>= 18px, or 14px bold): {LARGE_TEXT_RATIO}:1 minimum",
        "",
        "COMPLIANCE STATUS:",
        f"  {status} (target: >= {CONTRAST_GOOD_PASS_RATE:.0f}%)",
    ]
    if failures:
        lines += ["", "TOP CONTRAST ISSUES:"]
        lines += [
            f"  {c.selector}: {c.ratio}:1 (needs {c.required_ratio}:1) '{c.text}'"
            for c in failures[:MAX_REPORTED_ISSUES]
        ]
    lines.append(RULE)
    return "\n".join(lines) + "\n"


def render_performance_summary(measured, targets, label: str, term: str, environment: str) -> str:
    names = {
        "page_load_seconds": "Page Load Time",
        "search_response_seconds": "Search Response",
        "time_to_interactive_seconds": "Time to Interactive",
    }
    lines = [
        RULE,
        "PERFORMANCE TEST SUMMARY",
        RULE,
        f"Date/Time: {datetime.now():%d/%m/%Y %H:%M:%S}",
        f"Browser: {label}",
        f"Search Term: {term}",
        f"Environment: {environment}",
        RULE,
        "",
        "PERFORMANCE METRICS:",
    ]
    for key, name in names.items():
        value = measured[key]
        if value is None:
            lines.append(f"  {name + ':':<21}not measured (target: <{targets[key]}s)")
            continue
        verdict = "PASS" if value <= targets[key] else "FAIL"
        lines.append(f"  {name + ':':<21}{value:.3f}s (target: <{targets[key]}s) {verdict}")
    lines.append(RULE)
    return "\n".join(lines) + "\n"
