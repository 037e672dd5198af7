"""Hierarchical HTML test report.

A ReportSession owns the report tree for one run: a test per scenario, a node
per browser under it, and a node per step under each browser. Nodes are keyed
by tuples ``(scenario,)``, ``(scenario, label)`` and
``(scenario, label, step)``. Logging targets the current node.

Reporting never fails a test: calls before ``open()`` or without a current
node are ignored, and write failures are logged.
"""

import html
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from ..models.report_models import ReportEntry, ReportLevel

logger = logging.getLogger(__name__)

NodeKey = Tuple[str, ...]

ARTIFACT_DIRS = {
    "screenshots": "Screenshots",
    "videos": "Videos",
    "traces": "Playwright traces",
    "logs": "Logs",
    "accessibility-reports": "Accessibility reports",
    "contrast-reports": "Contrast reports",
    "performance-reports": "Performance reports",
    "evidence": "Evidence",
}

REPORT_FILE = "report.html"
INDEX_FILE = "index.html"

_LEVEL_RANK = {
    ReportLevel.INFO: 0,
    ReportLevel.PASS: 1,
    ReportLevel.WARNING: 2,
    ReportLevel.ERROR: 3,
}


class ReportNode:
    """A test, browser or step node in the report tree."""

    def __init__(self, name: str, key: NodeKey):
        self.name = name
        self.key = key
        self.entries: List[ReportEntry] = []
        self.children: List["ReportNode"] = []
        self.created_at = datetime.now()

    @property
    def status(self) -> ReportLevel:
        """Worst level among this node's entries and its children."""
        levels = [entry.level for entry in self.entries]
        levels.extend(child.status for child in self.children)
        if not levels:
            return ReportLevel.INFO
        return max(levels, key=lambda level: _LEVEL_RANK[level])


class ReportSession:
    """
    Report tree with an explicit open/flush/close lifecycle.

    PATTERN: One session per run, passed to hooks and steps
    GOTCHA: Creating an existing node just makes it current again
    """

    def __init__(self, title: str = "Test Execution Report", system_info: Optional[Dict[str, str]] = None):
        self.title = title
        self.system_info: Dict[str, str] = dict(system_info or {})
        self.run_dir: Optional[Path] = None
        self.tests: List[ReportNode] = []
        self.nodes: Dict[NodeKey, ReportNode] = {}
        self.current: Optional[ReportNode] = None

    @property
    def is_open(self) -> bool:
        return self.run_dir is not None

    @property
    def report_path(self) -> Optional[Path]:
        return self.run_dir / REPORT_FILE if self.run_dir else None

    def open(self, run_dir) -> None:
        """Start the session and create the artifact folders under ``run_dir``."""
        self.run_dir = Path(run_dir)
        for folder in ARTIFACT_DIRS:
            try:
                (self.run_dir / folder).mkdir(parents=True, exist_ok=True)
            except OSError as e:
                logger.warning(f"Could not create artifact folder '{folder}': {e}")
        logger.info(f"Report session opened: {self.run_dir}")

    def close(self) -> None:
        """End the session and drop the report tree."""
        self.tests = []
        self.nodes = {}
        self.current = None
        self.run_dir = None
        logger.debug("Report session closed")

    # Tree building

    def create_test(self, name: str) -> Optional[NodeKey]:
        """Create (or reuse) the top-level test for a scenario."""
        if not self.is_open:
            return None
        name = name.strip() or "Unnamed Test"
        key = (name,)
        node = self.nodes.get(key)
        if node is None:
            node = ReportNode(name, key)
            self.nodes[key] = node
            self.tests.append(node)
        self.current = node
        return key

    def create_node(self, scenario: str, label: str) -> Optional[NodeKey]:
        """Create (or reuse) a browser node under a scenario."""
        if not self.is_open:
            return None
        parent_key = self.create_test(scenario)
        return self._child(parent_key, label.strip() or "node")

    def create_step_node(self, scenario: str, label: str, step: str) -> Optional[NodeKey]:
        """Create (or reuse) a step node under a browser node."""
        if not self.is_open:
            return None
        parent_key = self.create_node(scenario, label)
        return self._child(parent_key, step.strip() or "node")

    def _child(self, parent_key: NodeKey, name: str) -> NodeKey:
        key = parent_key + (name,)
        node = self.nodes.get(key)
        if node is None:
            node = ReportNode(name, key)
            self.nodes[key] = node
            self.nodes[parent_key].children.append(node)
        self.current = node
        return key

    def set_current(self, *key: str) -> None:
        """Make the node at ``key`` current.

        Falls back to the deepest existing ancestor; clears the current node
        when nothing matches.
        """
        for depth in range(len(key), 0, -1):
            node = self.nodes.get(tuple(key[:depth]))
            if node is not None:
                self.current = node
                return
        self.current = None

    # Logging

    def _log(self, level: ReportLevel, message: str, link: Optional[str] = None) -> None:
        if not self.is_open or self.current is None:
            return
        self.current.entries.append(ReportEntry(level=level, message=message, link=link))

    def log_info(self, message: str) -> None:
        self._log(ReportLevel.INFO, message)

    def log_pass(self, message: str) -> None:
        self._log(ReportLevel.PASS, message)

    def log_warning(self, message: str) -> None:
        self._log(ReportLevel.WARNING, message)

    def log_error(self, message: str) -> None:
        self._log(ReportLevel.ERROR, message)

    def attach_file(self, path, display_name: str) -> bool:
        """Link an existing artifact from the current node.

        Returns:
            True if the link was added
        """
        if not self.is_open or self.current is None:
            return False
        file_path = Path(path)
        if not file_path.exists():
            logger.debug(f"Not attaching missing file: {file_path}")
            return False

        relative = Path(os.path.relpath(file_path, self.run_dir)).as_posix()
        self._log(ReportLevel.INFO, f"Artifact: {display_name}", link=relative)
        return True

    # Rendering

    def render_html(self) -> str:
        """Render the report tree as a standalone HTML document."""
        tests_html = "\n".join(self._render_node(test, 1) for test in self.tests)
        info_rows = "\n".join(
            f"<tr><th>{html.escape(k)}</th><td>{html.escape(str(v))}</td></tr>"
            for k, v in self.system_info.items()
        )
        passed = sum(1 for test in self.tests if test.status != ReportLevel.ERROR)

        return f"""<!DOCTYPE html>
<html lang="en-GB">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{html.escape(self.title)}</title>
    {self._generate_styles()}
</head>
<body>
    <div class="header">
        <h1>{html.escape(self.title)}</h1>
        <div class="meta">Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}</div>
        <div class="meta">Tests: {len(self.tests)} | Passed: {passed} | Failed: {len(self.tests) - passed}</div>
    </div>
    <table class="system-info">
{info_rows}
    </table>
{tests_html}
</body>
</html>"""

    def _render_node(self, node: ReportNode, depth: int) -> str:
        heading = min(depth + 1, 6)
        entries = "\n".join(self._render_entry(entry) for entry in node.entries)
        children = "\n".join(self._render_node(child, depth + 1) for child in node.children)
        return f"""<div class="node depth-{depth} status-{node.status.value}">
    <h{heading}>{html.escape(node.name)} <span class="badge">{node.status.value.upper()}</span></h{heading}>
    <ul class="entries">
{entries}
    </ul>
{children}
</div>"""

    def _render_entry(self, entry: ReportEntry) -> str:
        stamp = entry.timestamp.strftime("%H:%M:%S")
        text = html.escape(entry.message).replace("\n", "<br>")
        if entry.link:
            text = f'<a href="{html.escape(entry.link)}" target="_blank">{text}</a>'
        return f'        <li class="entry level-{entry.level.value}"><span class="time">{stamp}</span> {text}</li>'

    def _generate_styles(self) -> str:
        return """<style>
        body { font-family: Arial, Helvetica, sans-serif; margin: 20px; color: #212b32; }
        .header { background: #005eb8; color: #fff; padding: 16px; border-radius: 6px; }
        .meta { opacity: 0.9; font-size: 0.9em; }
        .system-info { margin: 16px 0; border-collapse: collapse; }
        .system-info th { text-align: left; padding-right: 12px; }
        .node { border-left: 4px solid #005eb8; margin: 10px 0 10px 12px; padding-left: 10px; }
        .status-error { border-left-color: #d5281b; }
        .status-warning { border-left-color: #ffb81c; }
        .status-pass { border-left-color: #007f3b; }
        .badge { font-size: 0.7em; padding: 2px 6px; border-radius: 4px; background: #e8edee; }
        .entries { list-style: none; padding-left: 0; }
        .level-error { color: #d5281b; }
        .level-warning { color: #8a5a00; }
        .level-pass { color: #007f3b; }
        .time { color: #768692; font-size: 0.85em; }
        a { color: #005eb8; }
    </style>"""

    def render_index(self) -> str:
        """Render the artifact index linking every file in the run folders."""
        sections = []
        for folder, title in ARTIFACT_DIRS.items():
            folder_path = self.run_dir / folder
            if not folder_path.is_dir():
                continue
            files = sorted(p for p in folder_path.iterdir() if p.is_file())
            if not files:
                continue
            items = "\n".join(
                f'        <li><a href="{html.escape(folder)}/{html.escape(p.name)}" target="_blank">{html.escape(p.name)}</a></li>'
                for p in files
            )
            sections.append(f"""<div class="section">
    <h2>{html.escape(title)}</h2>
    <ul>
{items}
    </ul>
</div>""")

        return f"""<!DOCTYPE html>
<html lang="en-GB">
<head>
    <meta charset="UTF-8">
    <title>Test Execution Artifacts</title>
    {self._generate_styles()}
</head>
<body>
    <div class="header">
        <h1>Test Execution Artifacts</h1>
        <div class="meta">Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}</div>
    </div>
    <div class="section">
        <h2>Primary report</h2>
        <ul><li><a href="{REPORT_FILE}" target="_blank">{REPORT_FILE}</a></li></ul>
    </div>
{chr(10).join(sections)}
</body>
</html>"""

    def flush(self) -> Optional[Path]:
        """Write ``report.html`` and the artifact ``index.html``.

        Returns:
            Report path, or None if the session is closed or writing failed
        """
        if not self.is_open:
            return None
        try:
            self.report_path.write_text(self.render_html(), encoding="utf-8")
            (self.run_dir / INDEX_FILE).write_text(self.render_index(), encoding="utf-8")
        except OSError as e:
            logger.warning(f"Could not write report: {e}")
            return None

        logger.info(f"Report written: {self.report_path}")
        return self.report_path
