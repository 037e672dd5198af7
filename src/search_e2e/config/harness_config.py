"""Harness configuration with environment variable loading.

Values resolve, highest priority first, from explicit environment variables
(a ``.env`` file is loaded on import), the active environment's section of an
optional JSON settings file, the settings file's base values, and finally
the model defaults.
"""

import os
import json
import logging
from pathlib import Path
from typing import Any, ClassVar, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, Field
from dotenv import load_dotenv

from ..models.harness_models import BrowserKind

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://www.northumbria.nhs.uk/"


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: str) -> List[str]:
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


class HarnessConfig(BaseModel):
    """Configuration for a cross-browser search test run."""

    # Field name -> environment variable that overrides it
    ENV_VARS: ClassVar[Dict[str, str]] = {
        "environment_name": "E2E_ENVIRONMENT",
        "base_url": "E2E_BASE_URL",
        "browser": "E2E_BROWSER",
        "browsers": "E2E_BROWSERS",
        "multibrowser_enabled": "E2E_MULTIBROWSER",
        "headless": "E2E_HEADLESS",
        "timeout_ms": "E2E_TIMEOUT_MS",
        "network_idle_timeout_ms": "E2E_NETWORK_IDLE_TIMEOUT_MS",
        "slow_mo": "E2E_SLOW_MO",
        "viewport_width": "E2E_VIEWPORT_WIDTH",
        "viewport_height": "E2E_VIEWPORT_HEIGHT",
        "use_full_window": "E2E_FULL_WINDOW",
        "record_video": "E2E_RECORD_VIDEO",
        "record_trace": "E2E_RECORD_TRACE",
        "results_dir": "E2E_RESULTS_DIR",
        "history_dir": "E2E_HISTORY_DIR",
        "accessibility_enabled": "E2E_ACCESSIBILITY_ENABLED",
        "contrast_enabled": "E2E_CONTRAST_ENABLED",
        "performance_enabled": "E2E_PERFORMANCE_ENABLED",
        "max_page_load_seconds": "E2E_MAX_PAGE_LOAD_SECONDS",
        "max_search_response_seconds": "E2E_MAX_SEARCH_RESPONSE_SECONDS",
        "max_time_to_interactive_seconds": "E2E_MAX_TIME_TO_INTERACTIVE_SECONDS",
        "accessibility_min_impact": "E2E_ACCESSIBILITY_MIN_IMPACT",
    }

    # Core environment
    environment_name: str = Field(
        default_factory=lambda: os.getenv("E2E_ENVIRONMENT", "local"),
        description="Active environment name",
    )
    base_url: str = Field(
        default_factory=lambda: os.getenv("E2E_BASE_URL", DEFAULT_BASE_URL),
        description="Site under test",
    )
    browser: str = Field(
        default_factory=lambda: os.getenv("E2E_BROWSER", "chromium"),
        description="Browser for single-browser runs",
    )
    browsers: List[str] = Field(
        default_factory=lambda: _env_list("E2E_BROWSERS", "chrome,firefox,msedge"),
        description="Browsers for multi-browser runs",
    )
    multibrowser_enabled: bool = Field(
        default_factory=lambda: _env_bool("E2E_MULTIBROWSER", False),
        description="Run every scenario on all configured browsers",
    )
    headless: bool = Field(
        default_factory=lambda: _env_bool("E2E_HEADLESS", True),
        description="Launch browsers headless",
    )

    # Timeouts (milliseconds)
    timeout_ms: int = Field(
        default_factory=lambda: int(os.getenv("E2E_TIMEOUT_MS", "30000")),
        description="Navigation timeout",
    )
    network_idle_timeout_ms: int = Field(
        default_factory=lambda: int(os.getenv("E2E_NETWORK_IDLE_TIMEOUT_MS", "10000")),
        description="Network idle wait timeout",
    )
    recovery_delay_ms: int = Field(default=750, description="Delay before navigation retry")

    # Playwright
    slow_mo: int = Field(default_factory=lambda: int(os.getenv("E2E_SLOW_MO", "0")))
    viewport_width: int = Field(default_factory=lambda: int(os.getenv("E2E_VIEWPORT_WIDTH", "1920")))
    viewport_height: int = Field(default_factory=lambda: int(os.getenv("E2E_VIEWPORT_HEIGHT", "1080")))
    use_full_window: bool = Field(default_factory=lambda: _env_bool("E2E_FULL_WINDOW", False))
    record_video: bool = Field(default_factory=lambda: _env_bool("E2E_RECORD_VIDEO", True))
    record_trace: bool = Field(default_factory=lambda: _env_bool("E2E_RECORD_TRACE", True))

    # Output locations
    results_dir: str = Field(
        default_factory=lambda: os.getenv("E2E_RESULTS_DIR", "TestResults"),
        description="Root directory for per-run artifacts",
    )
    history_dir: str = Field(
        default_factory=lambda: os.getenv("E2E_HISTORY_DIR", "TestResultsHistory"),
        description="Directory for run history (JSON, CSV, summaries)",
    )
    report_title: str = Field(default="Site Search - Test Execution Report")
    attach_artifacts_on_success: bool = Field(default=False)

    # Feature flags
    accessibility_enabled: bool = Field(default_factory=lambda: _env_bool("E2E_ACCESSIBILITY_ENABLED", True))
    contrast_enabled: bool = Field(default_factory=lambda: _env_bool("E2E_CONTRAST_ENABLED", True))
    performance_enabled: bool = Field(default_factory=lambda: _env_bool("E2E_PERFORMANCE_ENABLED", True))

    # Performance thresholds
    max_page_load_seconds: float = Field(
        default_factory=lambda: float(os.getenv("E2E_MAX_PAGE_LOAD_SECONDS", "3.0"))
    )
    max_search_response_seconds: float = Field(
        default_factory=lambda: float(os.getenv("E2E_MAX_SEARCH_RESPONSE_SECONDS", "2.0"))
    )
    max_time_to_interactive_seconds: float = Field(
        default_factory=lambda: float(os.getenv("E2E_MAX_TIME_TO_INTERACTIVE_SECONDS", "5.0"))
    )
    slow_resource_ms: float = Field(default=1000.0, description="Resources slower than this are reported")

    # Lowest axe-core impact that fails the accessibility step
    accessibility_min_impact: Literal["minor", "moderate", "serious", "critical"] = Field(
        default_factory=lambda: os.getenv("E2E_ACCESSIBILITY_MIN_IMPACT", "minor")
    )

    def browsers_to_run(self) -> List[BrowserKind]:
        """Browsers to provision for each scenario.

        Multi-browser runs use the configured list; single-browser runs use
        ``PLAYWRIGHT_BROWSER`` when set, else ``browser``.
        """
        if self.multibrowser_enabled and self.browsers:
            return [BrowserKind.parse(name) for name in self.browsers]
        return [BrowserKind.parse(os.getenv("PLAYWRIGHT_BROWSER") or self.browser)]


def load_config(
    settings_path: Optional[Union[str, Path]] = None,
    environment: Optional[str] = None,
) -> HarnessConfig:
    """Build the run configuration.

    Args:
        settings_path: Optional JSON settings file. Top-level keys are field
            names; ``Environments`` maps environment names to overrides and
            ``ActiveEnvironment`` names the default environment.
        environment: Environment to activate (overrides env var and file)

    Returns:
        Resolved HarnessConfig

    Raises:
        FileNotFoundError: If settings_path is given but does not exist
        ValueError: If the settings file is not a JSON object
    """
    settings: Dict[str, Any] = {}
    if settings_path is not None:
        path = Path(settings_path)
        if not path.exists():
            raise FileNotFoundError(f"Settings file not found: {path}")
        settings = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(settings, dict):
            raise ValueError(f"Settings file must contain a JSON object: {path}")

    environments = settings.pop("Environments", {}) or {}
    active = settings.pop("ActiveEnvironment", None)
    environment = environment or os.getenv("E2E_ENVIRONMENT") or active or "local"

    values = {key: value for key, value in settings.items() if key in HarnessConfig.model_fields}
    section = environments.get(environment)
    if section:
        values.update({k: v for k, v in section.items() if k in HarnessConfig.model_fields})
    elif environments:
        logger.warning(f"Environment '{environment}' not found in settings; using base values")

    # Explicit environment variables win over file values
    for field_name, env_var in HarnessConfig.ENV_VARS.items():
        if os.getenv(env_var) is not None:
            values.pop(field_name, None)

    values["environment_name"] = environment
    config = HarnessConfig(**values)
    logger.info(
        f"Loaded configuration for environment '{config.environment_name}' "
        f"(base_url={config.base_url}, browsers={[b.value for b in config.browsers_to_run()]})"
    )
    return config
