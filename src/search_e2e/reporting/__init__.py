"""Reporting: HTML report session, artifacts and run history."""

from .report_session import ReportSession, ReportNode
from .artifacts import ArtifactCapture, artifact_name, safe_file_name
from .results_storage import ResultsStorage, format_summary

__all__ = [
    "ReportSession",
    "ReportNode",
    "ArtifactCapture",
    "artifact_name",
    "safe_file_name",
    "ResultsStorage",
    "format_summary",
]
