"""WCAG 2.1 colour contrast analysis.

Computed styles are collected in the page; luminance and contrast ratios are
calculated here so the maths is testable without a browser.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple
from playwright.async_api import Page

from ..models.quality_models import ContrastCheck, ContrastReport

logger = logging.getLogger(__name__)

# WCAG 2.1 AA minimums
NORMAL_TEXT_RATIO = 4.5
LARGE_TEXT_RATIO = 3.0
LARGE_TEXT_PX = 18.0
LARGE_BOLD_TEXT_PX = 14.0
BOLD_WEIGHT = 700

TEXT_SELECTOR = "p, h1, h2, h3, h4, h5, h6, span, a, button, label, li, td, th"

_RGB_PATTERN = re.compile(r"rgba?\(\s*([\d.]+)[,\s]+([\d.]+)[,\s]+([\d.]+)(?:[,\s/]+([\d.]+%?))?\s*\)")

# Returns computed colours with transparent backgrounds resolved to the
# nearest opaque ancestor (white when none).
COLLECT_STYLES_JS = """
({selector, limit}) => {
    const isTransparent = (c) => !c || c === 'transparent' || /rgba\\([^)]*,\\s*0\\)$/.test(c);
    const results = [];
    for (const el of document.querySelectorAll(selector)) {
        if (results.length >= limit) break;
        const text = (el.textContent || '').trim();
        if (!text) continue;
        const style = window.getComputedStyle(el);
        if (style.visibility === 'hidden' || style.display === 'none') continue;

        let background = style.backgroundColor;
        let parent = el.parentElement;
        while (isTransparent(background) && parent) {
            background = window.getComputedStyle(parent).backgroundColor;
            parent = parent.parentElement;
        }
        if (isTransparent(background)) background = 'rgb(255, 255, 255)';

        const tag = el.tagName.toLowerCase();
        results.push({
            selector: tag + (el.id ? '#' + el.id : ''),
            text: text.substring(0, 50),
            color: style.color,
            background: background,
            fontSize: parseFloat(style.fontSize) || 16,
            fontWeight: parseInt(style.fontWeight, 10) || 400,
            interactive: ['a', 'button', 'input', 'select', 'textarea'].includes(tag),
            navigation: !!el.closest('nav, header, .navigation'),
        });
    }
    return results;
}
"""


def parse_rgb(color: str) -> Optional[Tuple[float, float, float]]:
    """Parse a computed ``rgb()``/``rgba()`` colour.

    Returns:
        (r, g, b) in 0-255, or None if unparseable
    """
    match = _RGB_PATTERN.search(color or "")
    if not match:
        return None
    return float(match.group(1)), float(match.group(2)), float(match.group(3))


def relative_luminance(rgb: Tuple[float, float, float]) -> float:
    """WCAG relative luminance of an sRGB colour."""

    def channel(value: float) -> float:
        c = value / 255.0
        return c / 12.92 if c <= 0.03928 else ((c + 0.055) / 1.055) ** 2.4

    r, g, b = rgb
    return 0.2126 * channel(r) + 0.7152 * channel(g) + 0.0722 * channel(b)


def contrast_ratio(foreground: Tuple[float, float, float], background: Tuple[float, float, float]) -> float:
    """Contrast ratio between two colours (1.0 to 21.0)."""
    lighter, darker = sorted(
        (relative_luminance(foreground), relative_luminance(background)), reverse=True
    )
    return (lighter + 0.05) / (darker + 0.05)


def required_ratio(font_size_px: float, bold: bool) -> float:
    """Minimum AA ratio for text.

    Large text is at least 18px, or 14px when bold. Text inside links and
    buttons follows the same rule.
    """
    if font_size_px >= LARGE_TEXT_PX or (bold and font_size_px >= LARGE_BOLD_TEXT_PX):
        return LARGE_TEXT_RATIO
    return NORMAL_TEXT_RATIO


class ContrastAnalyzer:
    """Evaluate text contrast of the current page against WCAG 2.1 AA."""

    def __init__(self, selector: str = TEXT_SELECTOR, max_elements: int = 500):
        self.selector = selector
        self.max_elements = max_elements

    async def analyze(self, page: Page) -> ContrastReport:
        """
        Analyze contrast of visible text elements.

        Args:
            page: Playwright page

        Returns:
            ContrastReport with one check per parseable element

        Raises:
            RuntimeError: If style collection fails
        """
        try:
            await page.wait_for_load_state("domcontentloaded", timeout=30000)
            raw = await page.evaluate(
                COLLECT_STYLES_JS, {"selector": self.selector, "limit": self.max_elements}
            )
        except Exception as e:
            logger.error(f"Contrast style collection failed: {e}")
            raise RuntimeError(f"Contrast analysis failed: {e}")

        report = ContrastReport(url=page.url, checks=self.evaluate(raw or []))
        logger.info(
            f"Contrast analysis complete: {report.total} elements, "
            f"{len(report.failures)} failures ({report.pass_rate:.2f}% pass rate)"
        )
        return report

    def evaluate(self, elements: List[Dict[str, Any]]) -> List[ContrastCheck]:
        """Turn collected style records into contrast checks.

        Records with unparseable colours are skipped.
        """
        checks = []
        for element in elements:
            foreground = parse_rgb(element.get("color", ""))
            background = parse_rgb(element.get("background", ""))
            if foreground is None or background is None:
                logger.debug(f"Skipping element with unparseable colours: {element.get('selector')}")
                continue

            font_size = float(element.get("fontSize", 16))
            bold = int(element.get("fontWeight", 400)) >= BOLD_WEIGHT
            interactive = bool(element.get("interactive", False))
            navigation = bool(element.get("navigation", False))

            checks.append(
                ContrastCheck(
                    selector=element.get("selector", "unknown"),
                    text=element.get("text", ""),
                    foreground=element.get("color", ""),
                    background=element.get("background", ""),
                    font_size_px=font_size,
                    bold=bold,
                    interactive=interactive,
                    in_navigation=navigation,
                    ratio=round(contrast_ratio(foreground, background), 2),
                    required_ratio=required_ratio(font_size, bold),
                )
            )
        return checks
