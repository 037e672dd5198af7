"""Scenario and run lifecycle hooks."""

from .scenario_hooks import ScenarioHooks, ScenarioRunner

__all__ = ["ScenarioHooks", "ScenarioRunner"]
