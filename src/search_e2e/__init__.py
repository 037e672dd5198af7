"""Cross-browser Playwright harness for site search end-to-end tests."""

from .config import HarnessConfig, configure_logging, load_config
from .hooks import ScenarioHooks, ScenarioRunner
from .steps import QualitySteps, SearchSteps, StepContext

__version__ = "0.1.0"

__all__ = [
    "HarnessConfig",
    "configure_logging",
    "load_config",
    "ScenarioHooks",
    "ScenarioRunner",
    "QualitySteps",
    "SearchSteps",
    "StepContext",
]
