"""Step libraries for search scenarios."""

from .context import StepContext, expect
from .search_steps import SearchSteps
from .quality_steps import QualitySteps

__all__ = ["StepContext", "expect", "SearchSteps", "QualitySteps"]
