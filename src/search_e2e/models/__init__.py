"""Models package for the search E2E harness."""

from .harness_models import (
    BrowserKind,
    BrowserIdentity,
    RunTarget,
    RecoveryStrategy,
    RecoveryAttempt,
    ExecutionOutcome,
)
from .report_models import (
    StepResult,
    ScenarioResult,
    TestRunResults,
    ReportLevel,
    ReportEntry,
    ArtifactOutcome,
)
from .search_models import (
    SearchDataCase,
    SearchCaseExecutionResult,
    PaginationResult,
)
from .quality_models import (
    AccessibilityIssue,
    ContrastCheck,
    ContrastReport,
    PageLoadMetrics,
    InteractivityMetrics,
    ResourceMetrics,
    SlowResource,
)

__all__ = [
    # Harness models
    "BrowserKind",
    "BrowserIdentity",
    "RunTarget",
    "RecoveryStrategy",
    "RecoveryAttempt",
    "ExecutionOutcome",
    # Report models
    "StepResult",
    "ScenarioResult",
    "TestRunResults",
    "ReportLevel",
    "ReportEntry",
    "ArtifactOutcome",
    # Search models
    "SearchDataCase",
    "SearchCaseExecutionResult",
    "PaginationResult",
    # Quality models
    "AccessibilityIssue",
    "ContrastCheck",
    "ContrastReport",
    "PageLoadMetrics",
    "InteractivityMetrics",
    "ResourceMetrics",
    "SlowResource",
]
