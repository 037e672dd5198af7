"""Accessibility, colour contrast and performance models.

These models carry the per-browser results of the quality checks run by the
step libraries: axe-core violations, WCAG contrast checks and page timing.
"""

from pydantic import BaseModel, Field
from typing import Dict, List, Literal, Optional
from datetime import datetime


class AccessibilityIssue(BaseModel):
    """Accessibility violation details."""

    id: str = Field(description="Issue identifier")
    impact: Literal["minor", "moderate", "serious", "critical"] = Field(
        description="Impact level"
    )
    rule_id: str = Field(description="axe-core rule ID")
    description: str = Field(description="Issue description")
    help_text: str = Field(description="How to fix")

    # Location
    selector: str = Field(description="Element selector")
    html: str = Field(description="Element HTML")

    # WCAG info
    wcag_criteria: List[str] = Field(default_factory=list, description="WCAG criteria")
    wcag_level: Literal["A", "AA", "AAA"] = Field(description="WCAG level")


class ContrastCheck(BaseModel):
    """Contrast evaluation of one text element."""

    selector: str = Field(description="Element selector or tag")
    text: str = Field(default="", description="Truncated element text")
    foreground: str = Field(description="Foreground colour (rgb)")
    background: str = Field(description="Background colour (rgb)")
    font_size_px: float = Field(default=16.0)
    bold: bool = Field(default=False)
    interactive: bool = Field(default=False, description="Link, button or input")
    in_navigation: bool = Field(default=False, description="Inside nav, header or .navigation")
    ratio: float = Field(description="Contrast ratio")
    required_ratio: float = Field(description="Minimum ratio for this element")

    @property
    def tag(self) -> str:
        return self.selector.split("#", 1)[0]

    @property
    def large_text(self) -> bool:
        return self.required_ratio < 4.5

    @property
    def passed(self) -> bool:
        return self.ratio >= self.required_ratio


class ContrastReport(BaseModel):
    """Contrast analysis of a page."""

    url: str = Field(description="Page URL")
    checks: List[ContrastCheck] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=datetime.now)

    @property
    def total(self) -> int:
        return len(self.checks)

    @property
    def failures(self) -> List[ContrastCheck]:
        return [check for check in self.checks if not check.passed]

    @property
    def pass_rate(self) -> float:
        if not self.checks:
            return 100.0
        return (self.total - len(self.failures)) * 100.0 / self.total


class PageLoadMetrics(BaseModel):
    """Navigation timing of a page load."""

    url: str = Field(description="Page URL")
    ttfb_ms: float = Field(default=0.0, description="Time to first byte")
    dom_content_loaded_ms: float = Field(default=0.0)
    load_complete_ms: float = Field(default=0.0)
    first_contentful_paint_ms: float = Field(default=0.0)
    total_requests: int = Field(default=0)
    total_size_kb: float = Field(default=0.0)
    wall_clock_seconds: Optional[float] = Field(
        default=None, description="Measured time around the navigation"
    )
    timestamp: datetime = Field(default_factory=datetime.now)

    @property
    def load_seconds(self) -> float:
        """Best available page load duration in seconds."""
        if self.load_complete_ms > 0:
            return self.load_complete_ms / 1000.0
        if self.wall_clock_seconds is not None:
            return self.wall_clock_seconds
        return self.dom_content_loaded_ms / 1000.0


class InteractivityMetrics(BaseModel):
    """How soon a loaded page became usable."""

    url: str = Field(description="Page URL")
    time_to_interactive_seconds: float = Field(default=0.0, description="fetchStart to domInteractive")
    dom_complete_seconds: float = Field(default=0.0, description="fetchStart to domComplete")
    timestamp: datetime = Field(default_factory=datetime.now)


class SlowResource(BaseModel):
    name: str
    duration_ms: float
    size_bytes: int = 0


class ResourceMetrics(BaseModel):
    """Resource Timing summary of a page."""

    url: str = Field(description="Page URL")
    total_resources: int = Field(default=0)
    total_size_kb: float = Field(default=0.0)
    count_by_type: Dict[str, int] = Field(default_factory=dict, description="Resources per initiator type")
    slow_resources: List[SlowResource] = Field(
        default_factory=list, description="Slowest resources over the threshold (at most five)"
    )
    slow_resource_count: int = Field(default=0)
    timestamp: datetime = Field(default_factory=datetime.now)
