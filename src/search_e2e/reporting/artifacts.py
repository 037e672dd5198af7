"""Best-effort capture of screenshots, page source, traces, videos and logs.

Every method returns an ArtifactOutcome; capture failures, including failures
to create the artifact folder, are logged and reported in the outcome so they
can never fail a scenario.
"""

import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

from ..harness.results import capture_safely
from ..models.report_models import ArtifactOutcome

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f()]')
_WHITESPACE = re.compile(r"\s+")
MAX_FILE_NAME = 150
MAX_NAME_PREFIX = 80
MAX_LABEL = 24

CaptureRunner = Callable[[str, Callable[[], Awaitable[Optional[str]]]], Awaitable[ArtifactOutcome]]


def safe_file_name(text: str, limit: int = MAX_FILE_NAME) -> str:
    """Turn free text (scenario, step, label) into a file name fragment."""
    cleaned = _UNSAFE_CHARS.sub("", text or "").strip()
    cleaned = _WHITESPACE.sub("_", cleaned)
    return cleaned[:limit] or "unnamed"


def timestamp() -> str:
    return datetime.now().strftime("%Y%m%d_%H%M%S_%f")[:-3]


def artifact_name(prefix: str, label: str, suffix: str = "") -> str:
    """
    File name stem ``<prefix>_<label>[_<suffix>]_<timestamp>``.

    Only the free-text prefix is shortened, so two browsers never share a
    name however long the scenario or step text is.
    """
    parts = [safe_file_name(prefix, MAX_NAME_PREFIX), safe_file_name(label, MAX_LABEL)]
    if suffix:
        parts.append(suffix)
    parts.append(timestamp())
    return "_".join(parts)


class ArtifactCapture:
    """Write artifacts into the standard folders of a run directory.

    Args:
        run_dir: Run directory holding the artifact folders
        runner: Awaitable wrapper turning a capture into an ArtifactOutcome
            (defaults to ``capture_safely``)
    """

    def __init__(self, run_dir, runner: Optional[CaptureRunner] = None):
        self.run_dir = Path(run_dir)
        self.runner = runner or capture_safely

    def path_for(self, folder: str, name: str, suffix: str) -> Path:
        directory = self.run_dir / folder
        directory.mkdir(parents=True, exist_ok=True)
        return directory / f"{safe_file_name(name)}{suffix}"

    async def screenshot(self, page: Any, name: str) -> ArtifactOutcome:
        """Full-page PNG screenshot under ``screenshots/``."""

        async def capture():
            path = self.path_for("screenshots", name, ".png")
            await page.screenshot(path=str(path), full_page=True)
            return str(path)

        return await self.runner(f"screenshot:{name}", capture)

    async def page_source(self, page: Any, name: str) -> ArtifactOutcome:
        """Current DOM as HTML under ``evidence/``."""

        async def capture():
            path = self.path_for("evidence", name, ".html")
            path.write_text(await page.content(), encoding="utf-8")
            return str(path)

        return await self.runner(f"page_source:{name}", capture)

    async def stop_trace(self, context: Any, name: str) -> ArtifactOutcome:
        """Stop tracing and save the archive under ``traces/``."""

        async def capture():
            path = self.path_for("traces", name, ".zip")
            await context.tracing.stop(path=str(path))
            return str(path)

        return await self.runner(f"trace:{name}", capture)

    async def save_video(self, page: Any, name: str) -> ArtifactOutcome:
        """Close the page and save its recording under ``videos/``.

        GOTCHA: Playwright only finalizes a video once its page is closed.
        """
        video = getattr(page, "video", None)
        if video is None:
            logger.debug(f"No video recorded for {name}")
            return ArtifactOutcome(name=f"video:{name}", succeeded=False, error="no video recorded")

        async def capture():
            path = self.path_for("videos", name, ".webm")
            if not page.is_closed():
                await page.close()
            await video.save_as(str(path))
            return str(path)

        return await self.runner(f"video:{name}", capture)

    async def write_log(self, name: str, text: str) -> ArtifactOutcome:
        """Plain-text log under ``logs/``."""

        async def capture():
            path = self.path_for("logs", name, ".log")
            path.write_text(text, encoding="utf-8")
            return str(path)

        return await self.runner(f"log:{name}", capture)

    async def write_report(self, folder: str, file_name: str, text: str) -> ArtifactOutcome:
        """Text or JSON report under ``<folder>/``, keeping ``file_name`` as given."""

        async def capture():
            directory = self.run_dir / folder
            directory.mkdir(parents=True, exist_ok=True)
            path = directory / file_name
            path.write_text(text, encoding="utf-8")
            return str(path)

        return await self.runner(f"report:{file_name}", capture)


def build_scenario_log(
    scenario: str,
    label: str,
    passed: bool,
    environment: str,
    base_url: str,
    error: str = "",
) -> str:
    """Text log written per browser at scenario end."""
    rule = "=" * 79
    lines = [
        rule,
        "TEST FAILURE LOG" if not passed else "TEST SUCCESS LOG",
        rule,
        f"Scenario: {scenario}",
        f"Browser: {label}",
        f"Status: {'PASSED' if passed else 'FAILED'}",
        f"Timestamp: {datetime.now().strftime('%d/%m/%Y %H:%M:%S')}",
        f"Test Environment: {environment}",
        f"Base URL: {base_url}",
        rule,
        "",
    ]
    if not passed:
        lines.extend(["ERROR DETAILS:", "-" * 78, error, "-" * 78, ""])
    return "\n".join(lines)
