"""Result and reporting data models.

Step, scenario and run results accumulate during a test run and are handed
to the report session and the results storage once a scenario completes.
"""

from pydantic import BaseModel, Field
from typing import Dict, List, Optional, Literal
from enum import Enum
from datetime import datetime


class StepResult(BaseModel):
    """Outcome of a single scenario step."""

    text: str = Field(description="Step text")
    passed: bool = Field(description="Whether the step passed")
    duration_seconds: float = Field(default=0.0, description="Step duration")
    error_message: Optional[str] = Field(default=None, description="Failure message")


class ScenarioResult(BaseModel):
    """Outcome of a complete scenario."""

    name: str = Field(description="Scenario name")
    passed: bool = Field(description="Whether the scenario passed")
    duration_seconds: float = Field(default=0.0, description="Scenario duration")
    browser: str = Field(default="Unknown", description="Browsers the scenario ran on")
    error_message: Optional[str] = Field(default=None, description="Failure message")
    tags: List[str] = Field(default_factory=list, description="Scenario tags")
    steps: List[StepResult] = Field(default_factory=list, description="Ordered step results")


class TestRunResults(BaseModel):
    """A complete test run with all results and metadata."""

    __test__ = False

    run_id: str = Field(description="Run identifier")
    execution_time: datetime = Field(default_factory=datetime.now)
    environment: str = Field(default="LOCAL", description="Environment name")
    browser: str = Field(default="", description="Browsers used in the run")

    total_tests: int = Field(default=0)
    passed_tests: int = Field(default=0)
    failed_tests: int = Field(default=0)
    skipped_tests: int = Field(default=0)

    duration_seconds: float = Field(default=0.0)
    pass_rate: float = Field(default=0.0, description="Pass rate percentage")
    status: Literal["SUCCESS", "FAILURE"] = Field(default="SUCCESS")

    artifacts_path: str = Field(default="")
    report_path: str = Field(default="")
    scenarios: List[ScenarioResult] = Field(default_factory=list)
    system_info: Dict[str, str] = Field(default_factory=dict)


class ReportLevel(str, Enum):
    """Severity of a report entry."""

    INFO = "info"
    PASS = "pass"
    WARNING = "warning"
    ERROR = "error"


class ReportEntry(BaseModel):
    """A single log line attached to a report node."""

    level: ReportLevel
    message: str
    timestamp: datetime = Field(default_factory=datetime.now)
    link: Optional[str] = Field(default=None, description="Relative artifact link")


class ArtifactOutcome(BaseModel):
    """Result of a best-effort artifact capture."""

    name: str = Field(description="Artifact name")
    succeeded: bool = Field(description="Whether capture succeeded")
    path: Optional[str] = Field(default=None, description="Written artifact path")
    error: Optional[str] = Field(default=None, description="Capture failure reason")
