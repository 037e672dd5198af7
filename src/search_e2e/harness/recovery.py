"""Recovery strategies for transient target failures.

Two one-shot repairs are supported: recreating a page whose browsing context
is still alive, and re-navigating an existing page to the base URL after a
network or protocol hiccup. Strategies never raise; they report the result
as a RecoveryAttempt and leave the decision to the executor.
"""

import asyncio
import logging
from typing import Optional

from ..models.harness_models import RecoveryAttempt, RecoveryStrategy, RunTarget
from .run_context import RunContext

logger = logging.getLogger(__name__)

TARGET_CLOSED_PATTERNS = (
    "target page, context or browser has been closed",
    "browser has been closed",
    "page has been closed",
    "context has been closed",
)

TRANSIENT_NAVIGATION_PATTERNS = (
    "net::err_empty_response",
    "net::err_connection_reset",
    "navigation timeout",
    "protocol error",
)


def classify_error(error: BaseException) -> Optional[RecoveryStrategy]:
    """
    Pick the recovery strategy for an action failure.

    Matching is on the error message, case-insensitive.

    Args:
        error: Failure raised by an action

    Returns:
        Strategy to apply, or None if the error is not recoverable
    """
    message = str(error).lower()

    if any(pattern in message for pattern in TARGET_CLOSED_PATTERNS):
        return RecoveryStrategy.RECREATE_PAGE
    if any(pattern in message for pattern in TRANSIENT_NAVIGATION_PATTERNS):
        return RecoveryStrategy.RETRY_NAVIGATION
    return None


def summarize_error(error: BaseException) -> str:
    """One-line summary used in logs and recovery records."""
    text = str(error).strip().splitlines()
    first = text[0] if text else ""
    return f"{type(error).__name__}: {first}"


class BaseRecovery:
    """Common record-keeping for recovery strategies."""

    strategy: RecoveryStrategy

    async def recover(
        self, run_context: RunContext, target: RunTarget, error: BaseException
    ) -> RecoveryAttempt:
        raise NotImplementedError

    def _attempt(
        self, target: RunTarget, error: BaseException, succeeded: bool, detail: str
    ) -> RecoveryAttempt:
        return RecoveryAttempt(
            target_label=target.label,
            target_index=target.index,
            triggering_error=summarize_error(error),
            strategy=self.strategy,
            succeeded=succeeded,
            detail=detail,
        )


class RecreatePageRecovery(BaseRecovery):
    """Open a new page in the target's browsing context."""

    strategy = RecoveryStrategy.RECREATE_PAGE

    async def recover(
        self, run_context: RunContext, target: RunTarget, error: BaseException
    ) -> RecoveryAttempt:
        """
        Replace a closed page.

        On success the run context's page list and ``target.handle`` both
        point at the new page; label and index are untouched.

        Args:
            run_context: Scenario run context
            target: Target whose page was closed
            error: Triggering failure

        Returns:
            Recovery attempt record
        """
        context = run_context.context_at(target.index)
        if context is None:
            logger.warning(f"[Recovery:{target.label}] No browsing context at index {target.index}")
            return self._attempt(target, error, False, "browsing context unavailable")

        try:
            new_page = await context.new_page()
        except Exception as e:
            logger.warning(f"[Recovery:{target.label}] Page recreation failed: {e}")
            return self._attempt(target, error, False, f"new_page failed: {summarize_error(e)}")

        run_context.replace_page(target.index, new_page)
        target.handle = new_page
        logger.info(f"[Recovery:{target.label}] Page recreated at index {target.index}")
        return self._attempt(target, error, True, "page recreated")


class RetryNavigationRecovery(BaseRecovery):
    """Re-navigate the existing page to the base URL after a short delay."""

    strategy = RecoveryStrategy.RETRY_NAVIGATION

    def __init__(
        self,
        base_url: str = "",
        delay_ms: int = 750,
        navigation_timeout_ms: int = 30000,
        network_idle_timeout_ms: int = 10000,
    ):
        """
        Initialize navigation retry.

        Args:
            base_url: URL to return to (falls back to the run context's base URL)
            delay_ms: Pause before navigating
            navigation_timeout_ms: Timeout for the DOM-content-loaded wait
            network_idle_timeout_ms: Timeout for the network-idle wait
        """
        self.base_url = base_url
        self.delay_ms = delay_ms
        self.navigation_timeout_ms = navigation_timeout_ms
        self.network_idle_timeout_ms = network_idle_timeout_ms

    async def recover(
        self, run_context: RunContext, target: RunTarget, error: BaseException
    ) -> RecoveryAttempt:
        """Wait, navigate to the base URL and wait for network idle."""
        url = self.base_url or run_context.base_url
        page = target.handle

        try:
            await asyncio.sleep(self.delay_ms / 1000)
            await page.goto(url, wait_until="domcontentloaded", timeout=self.navigation_timeout_ms)
            await page.wait_for_load_state("networkidle", timeout=self.network_idle_timeout_ms)
        except Exception as e:
            logger.warning(f"[Recovery:{target.label}] Navigation retry failed: {e}")
            return self._attempt(target, error, False, f"navigation failed: {summarize_error(e)}")

        logger.info(f"[Recovery:{target.label}] Re-navigated to {url}")
        return self._attempt(target, error, True, f"re-navigated to {url}")

