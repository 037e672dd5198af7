"""Browser automation for the search E2E harness."""

from .playwright_integration import PlaywrightManager
from .provisioner import ScenarioBrowserProvisioner
from .accessibility_tester import AccessibilityTester
from .contrast_analyzer import ContrastAnalyzer
from .performance_monitor import PerformanceMonitor

__all__ = [
    "PlaywrightManager",
    "ScenarioBrowserProvisioner",
    "AccessibilityTester",
    "ContrastAnalyzer",
    "PerformanceMonitor",
]
