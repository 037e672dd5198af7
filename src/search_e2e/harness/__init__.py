"""Multi-browser scenario execution harness."""

from .errors import HarnessError, NoTargetsError, AggregateStepFailure
from .run_context import RunContext
from .target_resolver import resolve_targets
from .recovery import (
    BaseRecovery,
    RecreatePageRecovery,
    RetryNavigationRecovery,
    classify_error,
)
from .executor import TargetExecutor
from .coordinator import FanOutCoordinator
from .results import ScenarioResultAggregator, TestRunRecorder

__all__ = [
    "HarnessError",
    "NoTargetsError",
    "AggregateStepFailure",
    "RunContext",
    "resolve_targets",
    "BaseRecovery",
    "RecreatePageRecovery",
    "RetryNavigationRecovery",
    "classify_error",
    "TargetExecutor",
    "FanOutCoordinator",
    "ScenarioResultAggregator",
    "TestRunRecorder",
]
