"""Data models for batch diagnostics.

Tracks processing status, errors, warnings, and quality metrics
for one batch of score rows through the pipeline.
"""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

Stage = Literal["ingestion", "conversion", "aggregation"]


class ProcessingStatus(str, Enum):
    """Status of batch processing."""

    SUCCESS = "success"  # All rows scored, no warnings
    PARTIAL = "partial"  # Output produced, but with missing scores or empty filters
    FAILED = "failed"  # Processing aborted with errors


class DiagnosticError(BaseModel):
    """An error that occurred during processing."""

    stage: Stage
    code: str  # Error code like "UNSUPPORTED_SCALE_TYPE"
    message: str
    test: str | None = None
    scale: str | None = None
    details: dict | None = None


class DiagnosticWarning(BaseModel):
    """A warning that occurred during processing."""

    stage: Stage
    code: str  # Warning code like "MISSING_SCORE"
    message: str
    test: str | None = None
    scale: str | None = None
    details: dict | None = None


class QualityMetrics(BaseModel):
    """Quality metrics for a processed batch."""

    completeness: float = Field(ge=0.0, le=1.0)  # Fraction of retained rows with a score
    missing_scales: list[str] = Field(default_factory=list)
    rows_total: int = 0
    rows_retained: int = 0
    rows_scored: int = 0


class BatchDiagnostic(BaseModel):
    """Diagnostics for one batch of score rows."""

    batch_id: str
    patient_id: str | None = None
    reference_version: str | None = None
    status: ProcessingStatus
    errors: list[DiagnosticError] = Field(default_factory=list)
    warnings: list[DiagnosticWarning] = Field(default_factory=list)
    quality: QualityMetrics | None = None
