"""Step, scenario and run result accumulation."""

import getpass
import logging
import platform
import time
from datetime import datetime
from typing import Awaitable, Callable, Dict, List, Optional

from ..models.report_models import (
    ArtifactOutcome,
    ScenarioResult,
    StepResult,
    TestRunResults,
)

logger = logging.getLogger(__name__)


class ScenarioResultAggregator:
    """
    Accumulate step results for the scenario currently running.

    Lifecycle: begin_scenario, then begin_step/complete_step per step, then
    end_scenario. The scenario hooks run every artifact capture through
    capture_artifact, so a failing screenshot or trace is recorded in
    ``artifacts`` and can never change the verdict.
    """

    def __init__(self):
        self.scenario_name: str = ""
        self.tags: List[str] = []
        self.browser: str = ""
        self.steps: List[StepResult] = []
        self._scenario_start: Optional[float] = None
        self._step_start: Optional[float] = None
        self._step_text: str = ""
        self.artifacts: List[ArtifactOutcome] = []

    def begin_scenario(self, name: str, tags: Optional[List[str]] = None, browser: str = "") -> None:
        """Reset timers and clear the step list."""
        self.scenario_name = name
        self.tags = list(tags or [])
        self.browser = browser
        self.steps = []
        self._scenario_start = time.monotonic()
        self._step_start = None
        self._step_text = ""
        self.artifacts = []
        logger.debug(f"Scenario started: {name}")

    def begin_step(self, text: str) -> None:
        """Stamp the start of a step."""
        self._step_text = text
        self._step_start = time.monotonic()

    @property
    def current_step(self) -> str:
        return self._step_text

    def step_elapsed_seconds(self) -> float:
        if self._step_start is None:
            return 0.0
        return time.monotonic() - self._step_start

    def record_step(self, step_result: StepResult) -> None:
        """Append a step result in execution order."""
        self.steps.append(step_result)

    def complete_step(self, error: Optional[BaseException] = None) -> StepResult:
        """
        Finish the current step.

        Args:
            error: Failure raised by the step, if any

        Returns:
            The recorded StepResult
        """
        result = StepResult(
            text=self._step_text or "Unknown Step",
            passed=error is None,
            duration_seconds=self.step_elapsed_seconds(),
            error_message=str(error) if error is not None else None,
        )
        self.record_step(result)
        self._step_start = None
        return result

    def end_scenario(self, test_error: Optional[BaseException] = None) -> ScenarioResult:
        """
        Finalize the scenario.

        Args:
            test_error: Failure that ended the scenario, if any

        Returns:
            ScenarioResult with a copy of the recorded steps
        """
        duration = 0.0
        if self._scenario_start is not None:
            duration = time.monotonic() - self._scenario_start

        result = ScenarioResult(
            name=self.scenario_name,
            passed=test_error is None,
            duration_seconds=duration,
            browser=self.browser or "Unknown",
            error_message=str(test_error) if test_error is not None else None,
            tags=list(self.tags),
            steps=[step.model_copy() for step in self.steps],
        )
        logger.info(
            f"Scenario {'passed' if result.passed else 'failed'}: {result.name} "
            f"({len(result.steps)} steps, {duration:.2f}s)"
        )
        return result

    async def capture_artifact(
        self, name: str, capture: Callable[[], Awaitable[Optional[str]]]
    ) -> ArtifactOutcome:
        """
        Run a best-effort artifact capture.

        Args:
            name: Artifact name for logs
            capture: Coroutine factory returning the written path (or None)

        Returns:
            ArtifactOutcome; failures are logged, never raised
        """
        outcome = await capture_safely(name, capture)
        self.artifacts.append(outcome)
        return outcome


class TestRunRecorder:
    """Collect scenario results for a whole run."""

    __test__ = False

    def __init__(self, run_id: str, environment: str = "local", browser: str = ""):
        self.run_id = run_id
        self.environment = environment
        self.browser = browser
        self.started_at = datetime.now()
        self._start = time.monotonic()
        self.scenarios: List[ScenarioResult] = []

    def record(self, scenario: ScenarioResult) -> None:
        self.scenarios.append(scenario)

    def build_results(
        self,
        artifacts_path: str = "",
        report_path: str = "",
        system_info: Optional[Dict[str, str]] = None,
    ) -> TestRunResults:
        """
        Build the run summary.

        Args:
            artifacts_path: Run directory
            report_path: Generated HTML report
            system_info: Extra system entries (merged over defaults)

        Returns:
            TestRunResults with totals, pass rate and status
        """
        total = len(self.scenarios)
        passed = sum(1 for s in self.scenarios if s.passed)
        failed = total - passed

        info = default_system_info()
        info.update(system_info or {})

        return TestRunResults(
            run_id=self.run_id,
            execution_time=self.started_at,
            environment=self.environment.upper(),
            browser=self.browser,
            total_tests=total,
            passed_tests=passed,
            failed_tests=failed,
            skipped_tests=0,
            duration_seconds=time.monotonic() - self._start,
            pass_rate=(passed * 100.0 / total) if total else 0.0,
            status="SUCCESS" if failed == 0 else "FAILURE",
            artifacts_path=artifacts_path,
            report_path=report_path,
            scenarios=list(self.scenarios),
            system_info=info,
        )


def default_system_info() -> Dict[str, str]:
    """Host details recorded with every run."""
    try:
        user = getpass.getuser()
    except (KeyError, OSError):
        user = "unknown"

    return {
        "OS": platform.platform(),
        "MachineName": platform.node(),
        "User": user,
        "PythonVersion": platform.python_version(),
    }


async def capture_safely(
    name: str, capture: Callable[[], Awaitable[Optional[str]]]
) -> ArtifactOutcome:
    """Await an artifact capture, turning any failure into a failed outcome."""
    try:
        path = await capture()
    except Exception as e:
        logger.warning(f"Artifact capture failed for {name}: {e}")
        return ArtifactOutcome(name=name, succeeded=False, error=str(e))

    return ArtifactOutcome(name=name, succeeded=True, path=path)
