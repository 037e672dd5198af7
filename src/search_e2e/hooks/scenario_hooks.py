"""Scenario lifecycle: provisioning, step bookkeeping, artifacts and run
summary.

``ScenarioHooks`` holds the run-wide pieces (report, recorder, storage);
``ScenarioRunner`` drives one scenario through them.
"""

import inspect
import logging
from pathlib import Path
from typing import Any, Callable, List, Optional

from ..browser.provisioner import ScenarioBrowserProvisioner
from ..config.harness_config import HarnessConfig
from ..harness.results import ScenarioResultAggregator, TestRunRecorder
from ..harness.run_context import RunContext
from ..harness.target_resolver import resolve_targets
from ..models.report_models import ArtifactOutcome, ScenarioResult, StepResult, TestRunResults
from ..reporting.artifacts import ArtifactCapture, artifact_name, build_scenario_log
from ..reporting.report_session import ReportSession
from ..reporting.results_storage import ResultsStorage, format_summary
from ..steps.context import StepContext
from ..steps.quality_steps import QualitySteps
from ..steps.search_steps import SearchSteps

logger = logging.getLogger(__name__)

TREND_DAYS = 30


class ScenarioHooks:
    """
    Before/after hooks for scenarios, steps and the whole run.

    PATTERN: Hooks never let artifact or report problems change a verdict;
    only step errors decide whether a scenario passed.
    """

    def __init__(
        self,
        config: HarnessConfig,
        report: ReportSession,
        recorder: TestRunRecorder,
        provisioner: Optional[ScenarioBrowserProvisioner] = None,
        storage: Optional[ResultsStorage] = None,
        run_dir: Optional[str] = None,
    ):
        self.config = config
        self.report = report
        self.recorder = recorder
        self.provisioner = provisioner or ScenarioBrowserProvisioner(config)
        self.storage = storage or ResultsStorage(config.history_dir)
        self.run_dir = Path(run_dir) if run_dir else Path(config.results_dir) / recorder.run_id
        self.aggregator = ScenarioResultAggregator()
        self.artifacts = ArtifactCapture(self.run_dir, runner=self.aggregator.capture_artifact)
        self.ctx: Optional[StepContext] = None

    @property
    def run_context(self) -> Optional[RunContext]:
        return self.ctx.run_context if self.ctx is not None else None

    def _attach(self, outcome: ArtifactOutcome, display_name: str) -> None:
        if outcome.succeeded and outcome.path:
            self.report.attach_file(outcome.path, display_name)

    async def before_scenario(self, name: str, tags: Optional[List[str]] = None) -> StepContext:
        """
        Provision browsers and open the scenario's report nodes.

        Raises:
            RuntimeError: If the browsers cannot be provisioned (the scenario
                is recorded as failed first)
        """
        if not self.report.is_open:
            self.report.open(self.run_dir)

        browsers = self.config.browsers_to_run()
        self.aggregator.begin_scenario(name, tags, browser=", ".join(b.value for b in browsers))
        self.report.create_test(name)
        self.report.log_info(
            f"Browsers: {', '.join(b.value for b in browsers)}, "
            f"Environment: {self.config.environment_name}"
        )

        try:
            run_context = await self.provisioner.provision(browsers, run_dir=str(self.run_dir))
        except RuntimeError as e:
            logger.error(f"Browser provisioning failed for '{name}': {e}")
            self.report.log_error(f"Browser provisioning failed: {e}")
            self.recorder.record(self.aggregator.end_scenario(e))
            raise

        window = (
            "full window"
            if self.config.use_full_window
            else f"{self.config.viewport_width}x{self.config.viewport_height}"
        )
        for identity in run_context.identities:
            self.report.create_node(name, identity.label)
            self.report.log_info(f"Started browser node: {identity.label} ({window})")

        self.ctx = StepContext(self.config, run_context, self.report, scenario_name=name)
        logger.info(f"Scenario started: {name}")
        return self.ctx

    def before_step(self, text: str) -> None:
        self.aggregator.begin_step(text)
        if self.ctx is None:
            return
        self.ctx.current_step = text
        for target in resolve_targets(self.ctx.run_context):
            self.report.create_step_node(self.ctx.scenario_name, target.label, text)
            self.report.log_info(text)

    async def after_step(self, error: Optional[BaseException] = None) -> StepResult:
        """
        Record the step and log its verdict on every browser node.

        A failed step also captures a screenshot and the page source per
        browser.
        """
        step = self.aggregator.complete_step(error)
        if self.ctx is None:
            return step

        duration_ms = step.duration_seconds * 1000
        scenario = self.ctx.scenario_name
        for target in resolve_targets(self.ctx.run_context):
            self.report.set_current(scenario, target.label, step.text)
            base_name = artifact_name(f"{scenario}_{step.text}", target.label)

            if error is not None:
                self.report.log_error(f"FAILED (Duration: {duration_ms:.0f}ms)\n{error}")
                log_text = f"{step.text}\nStatus: FAILED\nDurationMs: {duration_ms:.0f}\n\n{error!r}"
            else:
                self.report.log_pass(f"PASSED (Duration: {duration_ms:.0f}ms)")
                log_text = f"{step.text}\nStatus: PASSED\nDurationMs: {duration_ms:.0f}"

            outcome = await self.artifacts.write_log(base_name, log_text)
            self._attach(outcome, f"Step log ({target.label})")

            if error is not None:
                page = target.handle
                shot = await self.artifacts.screenshot(page, f"{base_name}_failure")
                self._attach(shot, f"Failure screenshot ({target.label})")
                source = await self.artifacts.page_source(page, f"{base_name}_source")
                self._attach(source, f"Page source ({target.label})")

        return step

    async def after_scenario(self, error: Optional[BaseException] = None) -> ScenarioResult:
        """
        Finish the scenario: record the result, capture per-browser
        artifacts and tear the browsers down.

        Returns:
            The recorded ScenarioResult
        """
        result = self.aggregator.end_scenario(error)
        self.recorder.record(result)

        if self.ctx is None:
            return result

        run_context = self.ctx.run_context
        try:
            for target in resolve_targets(run_context):
                await self._capture_scenario_artifacts(run_context, target.label, target.index, result)
        finally:
            await self.provisioner.teardown(run_context)
            self.ctx = None

        return result

    async def _capture_scenario_artifacts(
        self, run_context: RunContext, label: str, index: int, result: ScenarioResult
    ) -> None:
        page = run_context.pages[index] if index < len(run_context.pages) else run_context.page
        context = run_context.context_at(index)
        base_name = artifact_name(result.name, label)
        failed = not result.passed

        self.report.set_current(result.name, label)

        if self.config.record_trace and context is not None:
            trace = await self.artifacts.stop_trace(context, base_name)
            self._attach(trace, f"{'Playwright' if failed else 'Execution'} Trace ({label})")

        if page is not None:
            shot = await self.artifacts.screenshot(page, f"{base_name}_final")
            self._attach(shot, f"Final {'Screenshot' if failed else 'State Screenshot'} ({label})")
            if failed or self.config.attach_artifacts_on_success:
                source = await self.artifacts.page_source(page, f"{base_name}_source")
                self._attach(source, f"Page Source ({label})")

        log_text = build_scenario_log(
            result.name,
            label,
            passed=not failed,
            environment=self.config.environment_name,
            base_url=self.config.base_url,
            error=result.error_message or "",
        )
        log = await self.artifacts.write_log(base_name, log_text)

        if failed:
            self.report.log_error(f"[{label}] Scenario Failed")
            self.report.log_error(f"Error Details: {result.error_message}")
            self._attach(log, f"Error Log ({label})")
        else:
            self.report.log_pass(f"Scenario passed successfully on {label}")
            self._attach(log, f"Execution Log ({label})")

        if page is not None and self.config.record_video:
            video = await self.artifacts.save_video(page, base_name)
            self._attach(video, f"Video Recording ({label})")

    def after_run(self) -> Optional[TestRunResults]:
        """
        Flush the report, persist the run and write the trend report.

        Returns:
            TestRunResults, or None if the results could not be saved
        """
        report_path = self.report.flush()
        results = self.recorder.build_results(
            artifacts_path=str(self.run_dir),
            report_path=str(report_path or ""),
            system_info={
                "BaseUrl": self.config.base_url,
                "Headless": str(self.config.headless),
            },
        )
        self.report.close()

        try:
            self.storage.save_run(results)
            self.storage.generate_trend_report(TREND_DAYS)
        except OSError as e:
            logger.error(f"Error saving test results: {e}")
            return None

        logger.info("\n" + format_summary(results))
        return results


class ScenarioRunner:
    """
    Run one scenario's steps in order.

    Example:
        >>> async with ScenarioRunner(hooks, "Search returns results") as scenario:
        ...     await scenario.step("I open the homepage", scenario.search.open_homepage)
        ...     await scenario.step("I search for 'parking'", scenario.search.search_for, "parking")

    A failing step raises, so later steps never run; leaving the block
    finishes the scenario with that error.
    """

    def __init__(self, hooks: ScenarioHooks, name: str, tags: Optional[List[str]] = None):
        self.hooks = hooks
        self.name = name
        self.tags = tags
        self.ctx: Optional[StepContext] = None
        self.search: Optional[SearchSteps] = None
        self.quality: Optional[QualitySteps] = None
        self.result: Optional[ScenarioResult] = None

    async def __aenter__(self):
        self.ctx = await self.hooks.before_scenario(self.name, self.tags)
        self.search = SearchSteps(self.ctx)
        self.quality = QualitySteps(self.ctx)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.result = await self.hooks.after_scenario(exc_val)
        return False

    async def step(self, text: str, action: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """
        Run one named step.

        Args:
            text: Step description for the report
            action: Step callable (sync or async)

        Returns:
            Whatever the step returned

        Raises:
            Exception: The step's own failure, after it has been recorded
        """
        self.hooks.before_step(text)
        try:
            value = action(*args, **kwargs)
            if inspect.isawaitable(value):
                value = await value
        except Exception as e:
            await self.hooks.after_step(e)
            raise

        await self.hooks.after_step()
        return value
