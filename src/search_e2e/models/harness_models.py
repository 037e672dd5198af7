"""Harness data models for multi-browser scenario execution.

This module defines the Pydantic models shared by the target resolver, the
per-target executor, the recovery strategies and the fan-out coordinator:
browser identities, run targets, recovery attempts and execution outcomes.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Optional
from enum import Enum
from datetime import datetime


class BrowserKind(str, Enum):
    """Browsers the harness can provision."""

    CHROMIUM = "chromium"
    CHROME = "chrome"
    MSEDGE = "msedge"
    FIREFOX = "firefox"
    WEBKIT = "webkit"

    @property
    def engine(self) -> str:
        """Playwright browser type used to launch this browser."""
        if self is BrowserKind.FIREFOX:
            return "firefox"
        if self is BrowserKind.WEBKIT:
            return "webkit"
        return "chromium"

    @property
    def channel(self) -> Optional[str]:
        """Branded channel for chromium-based browsers, if any."""
        if self in (BrowserKind.CHROME, BrowserKind.MSEDGE):
            return self.value
        return None

    @classmethod
    def parse(cls, name: str) -> "BrowserKind":
        """Parse a configured browser name (case-insensitive).

        Unknown names fall back to chromium.
        """
        normalized = (name or "").strip().lower()
        aliases = {"edge": "msedge", "googlechrome": "chrome", "ff": "firefox"}
        normalized = aliases.get(normalized, normalized)
        try:
            return cls(normalized)
        except ValueError:
            return cls.CHROMIUM


class BrowserIdentity(BaseModel):
    """Explicit identity of a provisioned browser."""

    model_config = ConfigDict(frozen=True)

    kind: BrowserKind = Field(description="Browser kind")
    index: int = Field(ge=0, description="Position in the scenario's browser list")

    @property
    def label(self) -> str:
        """Report/diagnostic label derived from the browser kind."""
        return self.kind.value.replace(" ", "_")


class RunTarget(BaseModel):
    """One browser/page pair participating in a scenario.

    Only the handle may change during a scenario (page recreation); label
    and index stay fixed.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    handle: Any = Field(description="Opaque page reference")
    label: str = Field(frozen=True, description="Stable browser label")
    index: int = Field(frozen=True, ge=0, description="Index in the run context")


class RecoveryStrategy(str, Enum):
    """Recovery policies for transient target failures."""

    RECREATE_PAGE = "recreate_page"
    RETRY_NAVIGATION = "retry_navigation"


class RecoveryAttempt(BaseModel):
    """Record of a single recovery attempt (logged, not persisted)."""

    target_label: str = Field(description="Label of the recovered target")
    target_index: int = Field(description="Index of the recovered target")
    triggering_error: str = Field(description="Summary of the error that triggered recovery")
    strategy: RecoveryStrategy = Field(description="Strategy used")
    succeeded: bool = Field(description="Whether the repair itself succeeded")
    detail: Optional[str] = Field(default=None, description="Diagnostic detail")
    attempted_at: datetime = Field(default_factory=datetime.now)


class ExecutionOutcome(BaseModel):
    """Result of running one action against one target."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    target: RunTarget
    error: Optional[Exception] = Field(default=None, description="Final failure, if any")
    recovery: Optional[RecoveryAttempt] = Field(
        default=None, description="Recovery attempted during this execution"
    )
    retry_error: Optional[Exception] = Field(
        default=None, description="Failure of the retried action after recovery"
    )

    @property
    def passed(self) -> bool:
        return self.error is None

    def describe(self) -> str:
        """Format the failure as a labelled aggregate entry.

        Returns an empty string when the execution passed.
        """
        if self.error is None:
            return ""

        entry = f"[{self.target.label}] {type(self.error).__name__}: {_error_text(self.error)}"
        if self.recovery is not None and self.recovery.succeeded and self.retry_error is not None:
            entry += (
                f" (recovered via {self.recovery.strategy.value}; retried action failed: "
                f"{type(self.retry_error).__name__}: {_error_text(self.retry_error)})"
            )
        return entry


def _error_text(error: BaseException) -> str:
    return str(error).strip()
