"""Configuration for the search E2E harness."""

from .harness_config import HarnessConfig, load_config
from .logging_config import configure_logging

__all__ = ["HarnessConfig", "load_config", "configure_logging"]
