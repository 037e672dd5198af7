"""Page load and search response timing.

This module provides the PerformanceMonitor class, which reads the
Navigation Timing, Paint Timing and Resource Timing APIs from a loaded page
and times how long a search takes for the network to settle.
"""

import time
import logging
from typing import Any, Dict, Optional

from playwright.async_api import Page

from ..models.quality_models import (
    InteractivityMetrics,
    PageLoadMetrics,
    ResourceMetrics,
    SlowResource,
)

logger = logging.getLogger(__name__)

NAVIGATION_TIMING_JS = """
() => {
    const nav = performance.getEntriesByType('navigation')[0];
    const paint = performance.getEntriesByType('paint');
    const fcp = paint.find(entry => entry.name === 'first-contentful-paint');
    const resources = performance.getEntriesByType('resource');
    const totalSize = resources.reduce((sum, r) => sum + (r.transferSize || 0), 0);

    return {
        ttfb: nav ? nav.responseStart - nav.requestStart : 0,
        dom_content_loaded: nav ? nav.domContentLoadedEventEnd - nav.fetchStart : 0,
        load_complete: nav && nav.loadEventEnd > 0 ? nav.loadEventEnd - nav.fetchStart : 0,
        fcp: fcp ? fcp.startTime : 0,
        total_requests: resources.length,
        total_size_kb: totalSize / 1024
    };
}
"""

INTERACTIVITY_JS = """
() => {
    const nav = performance.getEntriesByType('navigation')[0];
    const timing = performance.timing;
    const since = (end) => nav ? nav[end] - nav.fetchStart : timing[end] - timing.fetchStart;
    return {
        interactive: since('domInteractive'),
        complete: since('domComplete')
    };
}
"""

RESOURCE_TIMING_JS = """
(slowMs) => {
    const resources = performance.getEntriesByType('resource');
    const byType = {};
    for (const r of resources) {
        const type = r.initiatorType || 'other';
        byType[type] = (byType[type] || 0) + 1;
    }
    const slow = resources
        .filter(r => r.duration > slowMs)
        .sort((a, b) => b.duration - a.duration)
        .map(r => ({ name: r.name, duration_ms: r.duration, size_bytes: r.transferSize || 0 }));
    return {
        total: resources.length,
        total_size: resources.reduce((sum, r) => sum + (r.transferSize || 0), 0),
        by_type: byType,
        slow: slow
    };
}
"""

MAX_SLOW_RESOURCES = 5

# Load times above this are treated as bogus Performance API data
MAX_PLAUSIBLE_LOAD_MS = 300000


class PerformanceMonitor:
    """Collect navigation timing for the current page.

    PATTERN: Use the Performance API via page.evaluate() so the numbers
    reflect what the browser itself measured.
    """

    async def collect_metrics(
        self, page: Page, wall_clock_seconds: Optional[float] = None
    ) -> PageLoadMetrics:
        """Collect load metrics from a page that has finished navigating.

        Args:
            page: Playwright page instance
            wall_clock_seconds: Externally measured navigation duration

        Returns:
            PageLoadMetrics for the page

        Raises:
            RuntimeError: If the page cannot be queried
        """
        try:
            await page.wait_for_load_state("load", timeout=30000)
            timing: Dict[str, Any] = await page.evaluate(NAVIGATION_TIMING_JS) or {}
        except Exception as e:
            logger.error(f"Failed to collect performance metrics: {e}")
            raise RuntimeError(f"Performance collection failed: {e}")

        load_complete = float(timing.get("load_complete", 0) or 0)
        if load_complete < 0 or load_complete > MAX_PLAUSIBLE_LOAD_MS:
            logger.warning(f"Discarding implausible load time {load_complete:.0f}ms")
            load_complete = 0.0

        metrics = PageLoadMetrics(
            url=page.url,
            ttfb_ms=max(float(timing.get("ttfb", 0) or 0), 0.0),
            dom_content_loaded_ms=max(float(timing.get("dom_content_loaded", 0) or 0), 0.0),
            load_complete_ms=load_complete,
            first_contentful_paint_ms=float(timing.get("fcp", 0) or 0),
            total_requests=int(timing.get("total_requests", 0) or 0),
            total_size_kb=float(timing.get("total_size_kb", 0) or 0),
            wall_clock_seconds=wall_clock_seconds,
        )

        logger.info(
            f"Metrics collected - load: {metrics.load_seconds:.3f}s, "
            f"TTFB: {metrics.ttfb_ms:.0f}ms, requests: {metrics.total_requests}, "
            f"size: {metrics.total_size_kb:.2f} KB"
        )
        return metrics

    async def time_network_idle(self, page: Page, timeout_ms: int = 10000) -> float:
        """Seconds until the page's network goes idle.

        Raises:
            RuntimeError: If the page does not settle within the timeout
        """
        start = time.monotonic()
        try:
            await page.wait_for_load_state("networkidle", timeout=timeout_ms)
        except Exception as e:
            logger.error(f"Network idle wait failed: {e}")
            raise RuntimeError(f"Network idle wait failed: {e}")
        elapsed = time.monotonic() - start
        logger.debug(f"Network idle after {elapsed:.3f}s")
        return elapsed

    async def collect_interactivity(self, page: Page) -> InteractivityMetrics:
        """Time to interactive and DOM complete of the current page.

        Raises:
            RuntimeError: If the page cannot be queried
        """
        try:
            timing: Dict[str, Any] = await page.evaluate(INTERACTIVITY_JS) or {}
        except Exception as e:
            logger.error(f"Failed to collect interactivity timing: {e}")
            raise RuntimeError(f"Interactivity collection failed: {e}")

        return InteractivityMetrics(
            url=page.url,
            time_to_interactive_seconds=max(float(timing.get("interactive", 0) or 0), 0.0) / 1000.0,
            dom_complete_seconds=max(float(timing.get("complete", 0) or 0), 0.0) / 1000.0,
        )

    async def collect_resource_metrics(self, page: Page, slow_ms: float = 1000.0) -> ResourceMetrics:
        """Summarize Resource Timing entries, keeping the slowest few over ``slow_ms``.

        Raises:
            RuntimeError: If the page cannot be queried
        """
        try:
            raw: Dict[str, Any] = await page.evaluate(RESOURCE_TIMING_JS, slow_ms) or {}
        except Exception as e:
            logger.error(f"Failed to collect resource timing: {e}")
            raise RuntimeError(f"Resource timing collection failed: {e}")

        slow = raw.get("slow") or []
        metrics = ResourceMetrics(
            url=page.url,
            total_resources=int(raw.get("total", 0) or 0),
            total_size_kb=float(raw.get("total_size", 0) or 0) / 1024,
            count_by_type={str(k): int(v) for k, v in (raw.get("by_type") or {}).items()},
            slow_resources=[SlowResource(**entry) for entry in slow[:MAX_SLOW_RESOURCES]],
            slow_resource_count=len(slow),
        )
        logger.debug(
            f"Resource timing - {metrics.total_resources} resources, "
            f"{metrics.slow_resource_count} over {slow_ms:.0f}ms"
        )
        return metrics
