"""Per-target action execution with one-shot recovery."""

import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from ..models.harness_models import ExecutionOutcome, RecoveryStrategy, RunTarget
from .recovery import (
    BaseRecovery,
    RecreatePageRecovery,
    RetryNavigationRecovery,
    classify_error,
    summarize_error,
)
from .run_context import RunContext

logger = logging.getLogger(__name__)

TargetAction = Callable[[RunTarget], Awaitable[Any]]


class TargetExecutor:
    """
    Run an action against one target, repairing it at most once.

    PATTERN: attempt, classify, recover, retry once
    CRITICAL: A failure of the retried action is never recovered again; the
    caller sees the original error with the retry failure as its cause.
    """

    def __init__(
        self,
        run_context: RunContext,
        recreate: Optional[BaseRecovery] = None,
        navigation: Optional[BaseRecovery] = None,
    ):
        """
        Initialize executor.

        Args:
            run_context: Scenario run context (mutated by page recreation)
            recreate: Strategy for closed pages
            navigation: Strategy for transient navigation errors
        """
        self.run_context = run_context
        self.strategies: Dict[RecoveryStrategy, BaseRecovery] = {
            RecoveryStrategy.RECREATE_PAGE: recreate or RecreatePageRecovery(),
            RecoveryStrategy.RETRY_NAVIGATION: navigation
            or RetryNavigationRecovery(
                base_url=run_context.base_url,
                navigation_timeout_ms=run_context.navigation_timeout_ms,
            ),
        }

    async def run(self, target: RunTarget, action: TargetAction) -> ExecutionOutcome:
        """
        Execute ``action`` against ``target``.

        Action failures are captured in the outcome, never raised.

        Args:
            target: Target to act on
            action: Async callable receiving the target

        Returns:
            ExecutionOutcome with the final error (if any) and recovery record
        """
        try:
            await action(target)
            return ExecutionOutcome(target=target)
        except Exception as error:
            original = error

        strategy = classify_error(original)
        if strategy is None:
            logger.debug(f"[{target.label}] Action failed, not recoverable: {summarize_error(original)}")
            return ExecutionOutcome(target=target, error=original)

        logger.warning(
            f"[Recovery:{target.label}] {summarize_error(original)} -> trying {strategy.value}"
        )
        attempt = await self.strategies[strategy].recover(self.run_context, target, original)

        if not attempt.succeeded:
            logger.warning(
                f"[Recovery:{target.label}] {strategy.value} did not succeed "
                f"({attempt.detail}); keeping original error"
            )
            return ExecutionOutcome(target=target, error=original, recovery=attempt)

        try:
            await action(target)
        except Exception as retry_error:
            logger.warning(
                f"[Recovery:{target.label}] Retried action failed after {strategy.value}: "
                f"{summarize_error(retry_error)}"
            )
            original.__cause__ = retry_error
            return ExecutionOutcome(
                target=target, error=original, recovery=attempt, retry_error=retry_error
            )

        logger.info(f"[Recovery:{target.label}] Action succeeded after {strategy.value}")
        return ExecutionOutcome(target=target, recovery=attempt)

    async def execute_with_recovery(self, target: RunTarget, action: TargetAction) -> None:
        """
        Execute ``action`` against ``target``, raising on final failure.

        Raises:
            Exception: The original action error, when recovery was not
                possible or the retried action failed too
        """
        outcome = await self.run(target, action)
        if outcome.error is not None:
            raise outcome.error
