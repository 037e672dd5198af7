"""Fan a step out across every browser of a scenario."""

import logging
from typing import Any, Callable, List, Optional

from ..models.harness_models import ExecutionOutcome, RunTarget
from .errors import AggregateStepFailure, NoTargetsError
from .executor import TargetAction, TargetExecutor
from .run_context import RunContext
from .target_resolver import resolve_targets

logger = logging.getLogger(__name__)


class FanOutCoordinator:
    """
    Run one step's action against all targets and aggregate the verdict.

    Targets run sequentially in resolver order. A failing target never stops
    the remaining targets; the step fails afterwards with one labelled entry
    per failing browser.
    """

    def __init__(self, run_context: RunContext, executor: Optional[TargetExecutor] = None):
        self.run_context = run_context
        self.executor = executor or TargetExecutor(run_context)

    def _targets(self) -> List[RunTarget]:
        targets = resolve_targets(self.run_context)
        if not targets:
            logger.error("No pages initialized for this scenario")
            raise NoTargetsError()
        return targets

    async def run_across_targets(self, action: TargetAction) -> List[ExecutionOutcome]:
        """
        Run an async action on every target with recovery.

        Args:
            action: Async callable receiving a RunTarget

        Returns:
            One outcome per target, all passing

        Raises:
            NoTargetsError: If the run context has no pages (action never runs)
            AggregateStepFailure: If any target failed
        """
        outcomes: List[ExecutionOutcome] = []
        for target in self._targets():
            outcome = await self.executor.run(target, action)
            if not outcome.passed:
                logger.error(outcome.describe())
            outcomes.append(outcome)

        return self._verdict(outcomes)

    def run_across_targets_sync(self, action: Callable[[RunTarget], Any]) -> List[ExecutionOutcome]:
        """
        Run a synchronous action on every target.

        Used for assertions over state already collected by earlier steps, so
        no recovery is attempted.

        Raises:
            NoTargetsError: If the run context has no pages
            AggregateStepFailure: If any target failed
        """
        outcomes: List[ExecutionOutcome] = []
        for target in self._targets():
            try:
                action(target)
                outcomes.append(ExecutionOutcome(target=target))
            except Exception as e:
                outcome = ExecutionOutcome(target=target, error=e)
                logger.error(outcome.describe())
                outcomes.append(outcome)

        return self._verdict(outcomes)

    def _verdict(self, outcomes: List[ExecutionOutcome]) -> List[ExecutionOutcome]:
        if any(not outcome.passed for outcome in outcomes):
            raise AggregateStepFailure(outcomes)
        logger.debug(f"Step passed on {len(outcomes)} browser(s)")
        return outcomes
