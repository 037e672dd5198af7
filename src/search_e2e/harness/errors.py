"""Harness error taxonomy.

Harness errors subclass AssertionError so a failing step surfaces as a test
failure rather than a test error.
"""

from typing import List, Optional

from ..models.harness_models import ExecutionOutcome


class HarnessError(AssertionError):
    """Base class for harness failures."""


class NoTargetsError(HarnessError):
    """Raised when a step runs against a scenario with no pages."""

    def __init__(self, message: str = "No pages initialized for this scenario"):
        super().__init__(message)


class AggregateStepFailure(HarnessError):
    """One or more targets failed a fanned-out step.

    Carries every outcome of the step, passing or not, so callers can tell
    which browsers succeeded.
    """

    HEADER = "One or more browsers failed:"

    def __init__(self, outcomes: List[ExecutionOutcome], message: Optional[str] = None):
        self.outcomes = list(outcomes)
        if message is None:
            message = self.HEADER + "\n" + "\n".join(o.describe() for o in self.failures)
        super().__init__(message)

    @property
    def failures(self) -> List[ExecutionOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.passed]

    @property
    def failed_labels(self) -> List[str]:
        return [outcome.target.label for outcome in self.failures]
