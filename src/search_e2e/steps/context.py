"""State shared by the step libraries during one scenario."""

import logging
from typing import Any, Dict, Optional

from ..config.harness_config import HarnessConfig
from ..harness.coordinator import FanOutCoordinator
from ..harness.executor import TargetExecutor
from ..harness.recovery import RetryNavigationRecovery
from ..harness.run_context import RunContext
from ..reporting.report_session import ReportSession

logger = logging.getLogger(__name__)

_LOG_METHODS = {
    "info": logger.info,
    "pass": logger.info,
    "warning": logger.warning,
    "error": logger.error,
}


def expect(condition: bool, message: str) -> None:
    """Fail the current target with ``message`` unless ``condition`` holds."""
    if not condition:
        raise AssertionError(message)


class StepContext:
    """
    Everything a step needs: configuration, the scenario's browsers, the
    report and a per-scenario state bag.

    Per-browser values are stored under ``(key, label)`` so a later
    assertion step can read what an earlier action step observed on the
    same browser.
    """

    def __init__(
        self,
        config: HarnessConfig,
        run_context: RunContext,
        report: Optional[ReportSession] = None,
        state: Optional[Dict[Any, Any]] = None,
        scenario_name: str = "",
    ):
        self.config = config
        self.run_context = run_context
        self.report = report
        self.state = state if state is not None else {}
        self.scenario_name = scenario_name
        self.current_step = ""

        navigation = RetryNavigationRecovery(
            base_url=config.base_url,
            delay_ms=config.recovery_delay_ms,
            navigation_timeout_ms=config.timeout_ms,
            network_idle_timeout_ms=config.network_idle_timeout_ms,
        )
        self.coordinator = FanOutCoordinator(
            run_context, TargetExecutor(run_context, navigation=navigation)
        )

    def remember(self, key: str, label: str, value: Any) -> None:
        self.state[(key, label)] = value

    def recall(self, key: str, label: str, default: Any = None) -> Any:
        return self.state.get((key, label), default)

    def has(self, key: str, label: str) -> bool:
        return (key, label) in self.state

    def log(self, label: str, level: str, message: str) -> None:
        """Write a report entry on this browser's node for the current step."""
        _LOG_METHODS.get(level, logger.info)(f"[{label}] {message}")

        if self.report is None:
            return
        self.report.set_current(self.scenario_name, label, self.current_step)
        getattr(self.report, f"log_{level}")(message)
