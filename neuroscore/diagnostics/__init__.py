"""Diagnostics collection for the scoring pipeline.

Tracks errors, warnings, and quality metrics for each batch of
score rows.
"""

from neuroscore.diagnostics.collector import DiagnosticsCollector
from neuroscore.diagnostics.models import (
    BatchDiagnostic,
    DiagnosticError,
    DiagnosticWarning,
    ProcessingStatus,
    QualityMetrics,
)

__all__ = [
    "BatchDiagnostic",
    "DiagnosticsCollector",
    "DiagnosticError",
    "DiagnosticWarning",
    "ProcessingStatus",
    "QualityMetrics",
]
