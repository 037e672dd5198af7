"""Historical storage of test run results.

Each run is saved as JSON under a ``YYYY-MM`` folder, appended as a row to a
CSV history, and summarised as text. Trend reports aggregate recent runs.
"""

import csv
import json
import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from ..models.report_models import TestRunResults

logger = logging.getLogger(__name__)

CSV_FILE = "TestResults.csv"
CSV_HEADER = [
    "RunId",
    "ExecutionDate",
    "ExecutionTime",
    "Environment",
    "Browser",
    "TotalTests",
    "Passed",
    "Failed",
    "Skipped",
    "Duration",
    "PassRate",
    "Status",
]

RULE = "=" * 79


class ResultsStorage:
    """
    Persist run results for historical tracking.

    PATTERN: JSON for machines, CSV for spreadsheets, text for people
    """

    def __init__(self, base_dir="TestResultsHistory"):
        self.base_dir = Path(base_dir)

    def save_run(self, results: TestRunResults) -> Path:
        """
        Save a run as JSON, CSV row and text summary.

        Args:
            results: Completed run results

        Returns:
            Path of the JSON file
        """
        month_dir = self.base_dir / results.execution_time.strftime("%Y-%m")
        month_dir.mkdir(parents=True, exist_ok=True)

        json_path = month_dir / f"TestRun_{results.run_id}.json"
        json_path.write_text(results.model_dump_json(indent=2), encoding="utf-8")

        self._append_csv(results)
        self._write_summary(results)

        logger.info(f"Test results saved to: {json_path}")
        return json_path

    def _append_csv(self, results: TestRunResults) -> None:
        csv_path = self.base_dir / CSV_FILE
        is_new = not csv_path.exists()

        with open(csv_path, "a", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            if is_new:
                writer.writerow(CSV_HEADER)
            writer.writerow(
                [
                    results.run_id,
                    results.execution_time.strftime("%d/%m/%Y"),
                    results.execution_time.strftime("%H:%M:%S"),
                    results.environment,
                    results.browser,
                    results.total_tests,
                    results.passed_tests,
                    results.failed_tests,
                    results.skipped_tests,
                    f"{results.duration_seconds:.2f}",
                    f"{results.pass_rate:.2f}",
                    results.status,
                ]
            )

    def _write_summary(self, results: TestRunResults) -> Path:
        summary_dir = self.base_dir / "Summaries"
        summary_dir.mkdir(parents=True, exist_ok=True)
        summary_path = summary_dir / f"Summary_{results.run_id}.txt"
        summary_path.write_text(format_summary(results), encoding="utf-8")
        return summary_path

    def _run_files(self) -> List[Path]:
        if not self.base_dir.exists():
            return []
        return sorted(self.base_dir.glob("*/TestRun_*.json"))

    def _load(self, path: Path) -> Optional[TestRunResults]:
        try:
            return TestRunResults.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            logger.warning(f"Skipping unreadable results file {path}: {e}")
            return None

    def load_latest(self) -> Optional[TestRunResults]:
        """Most recently executed run, or None when there is no history."""
        history = self.get_history(days_back=None)
        return history[0] if history else None

    def get_history(self, days_back: Optional[int] = 30) -> List[TestRunResults]:
        """
        Runs executed within the last ``days_back`` days, newest first.

        Args:
            days_back: Look-back window in days (None for all history)
        """
        cutoff = datetime.now() - timedelta(days=days_back) if days_back is not None else None
        runs = []
        for path in self._run_files():
            result = self._load(path)
            if result is None:
                continue
            if cutoff is not None and result.execution_time < cutoff:
                continue
            runs.append(result)

        runs.sort(key=lambda r: r.execution_time, reverse=True)
        return runs

    def generate_trend_report(self, days_back: int = 30) -> Optional[Path]:
        """
        Write a text trend report over recent runs.

        Returns:
            Report path, or None when there is no history
        """
        history = self.get_history(days_back)
        if not history:
            logger.info("No run history; trend report skipped")
            return None

        count = len(history)
        lines = [
            RULE,
            "TEST EXECUTION TREND REPORT",
            RULE,
            f"Report Date: {datetime.now().strftime('%d/%m/%Y %H:%M:%S')}",
            f"Period: Last {days_back} days",
            f"Total Runs: {count}",
            RULE,
            "",
            "SUMMARY STATISTICS:",
            f"  Average Pass Rate: {sum(r.pass_rate for r in history) / count:.2f}%",
            f"  Average Duration: {sum(r.duration_seconds for r in history) / count:.2f}s",
            f"  Total Tests Executed: {sum(r.total_tests for r in history)}",
            f"  Total Passed: {sum(r.passed_tests for r in history)}",
            f"  Total Failed: {sum(r.failed_tests for r in history)}",
            "",
            "RECENT RUNS:",
            "-" * 78,
            f"{'Date':<12} {'Time':<10} {'Tests':<7} {'Pass':<5} {'Fail':<5} {'Pass%':<7} {'Duration':<10}",
            "-" * 78,
        ]
        for run in history[:20]:
            lines.append(
                f"{run.execution_time.strftime('%d/%m/%Y'):<12} "
                f"{run.execution_time.strftime('%H:%M:%S'):<10} "
                f"{run.total_tests:<7} {run.passed_tests:<5} {run.failed_tests:<5} "
                f"{run.pass_rate:<7.1f} {run.duration_seconds:.2f}s"
            )
        lines.append(RULE)

        self.base_dir.mkdir(parents=True, exist_ok=True)
        report_path = self.base_dir / f"TrendReport_{datetime.now().strftime('%Y%m%d')}.txt"
        report_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        logger.info(f"Trend report generated: {report_path}")
        return report_path


def format_summary(results: TestRunResults) -> str:
    """Human-readable run summary."""
    lines = [
        RULE,
        "TEST EXECUTION SUMMARY",
        RULE,
        f"Run ID: {results.run_id}",
        f"Execution Date: {results.execution_time.strftime('%d/%m/%Y')}",
        f"Execution Time: {results.execution_time.strftime('%H:%M:%S')}",
        f"Duration: {results.duration_seconds:.2f} seconds",
        f"Environment: {results.environment}",
        f"Browser: {results.browser}",
        RULE,
        "",
        "TEST RESULTS:",
        f"  Total Tests: {results.total_tests}",
        f"  Passed: {results.passed_tests}",
        f"  Failed: {results.failed_tests}",
        f"  Skipped: {results.skipped_tests}",
        f"  Pass Rate: {results.pass_rate:.2f}%",
        f"  Overall Status: {results.status}",
        "",
        "SCENARIO RESULTS:",
        "-" * 78,
    ]
    for scenario in results.scenarios:
        status = "PASS" if scenario.passed else "FAIL"
        lines.append(f"{status} | {scenario.name} | {scenario.duration_seconds:.2f}s")
        if not scenario.passed:
            lines.append(f"     Error: {scenario.error_message}")
    lines.extend(
        [
            "-" * 78,
            "",
            f"Artifacts Location: {results.artifacts_path}",
            f"Report Location: {results.report_path}",
            RULE,
        ]
    )
    return "\n".join(lines) + "\n"
