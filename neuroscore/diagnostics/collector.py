"""Collector for batch diagnostics.

Collects errors, warnings, and quality metrics throughout the pipeline
and produces a complete diagnostic report for each batch.
"""

from neuroscore.core.models import ScoreRecord
from neuroscore.diagnostics.models import (
    BatchDiagnostic,
    DiagnosticError,
    DiagnosticWarning,
    ProcessingStatus,
    QualityMetrics,
    Stage,
)


class DiagnosticsCollector:
    """Collects diagnostics throughout the processing pipeline.

    Tracks errors, warnings, and quality metrics for a batch and
    produces a structured diagnostic report.
    """

    def __init__(
        self,
        batch_id: str = "batch",
        patient_id: str | None = None,
        reference_version: str | None = None,
    ) -> None:
        """Initialize the collector for a batch.

        Args:
            batch_id: Identifier for the batch (e.g., the input file name).
            patient_id: Optional patient the batch belongs to.
            reference_version: Version of the reference data used.
        """
        self.batch_id = batch_id
        self.patient_id = patient_id
        self.reference_version = reference_version

        self._errors: list[DiagnosticError] = []
        self._warnings: list[DiagnosticWarning] = []
        self._quality: QualityMetrics | None = None

    @property
    def errors(self) -> list[DiagnosticError]:
        return list(self._errors)

    @property
    def warnings(self) -> list[DiagnosticWarning]:
        return list(self._warnings)

    def add_error(
        self,
        stage: Stage,
        code: str,
        message: str,
        test: str | None = None,
        scale: str | None = None,
        details: dict | None = None,
    ) -> None:
        """Add an error to the diagnostics.

        Args:
            stage: Processing stage where the error occurred.
            code: Error code (e.g., "UNSUPPORTED_SCALE_TYPE").
            message: Human-readable error message.
            test: Optional test the error relates to.
            scale: Optional scale the error relates to.
            details: Optional additional details.
        """
        self._errors.append(
            DiagnosticError(
                stage=stage,
                code=code,
                message=message,
                test=test,
                scale=scale,
                details=details,
            )
        )

    def add_warning(
        self,
        stage: Stage,
        code: str,
        message: str,
        test: str | None = None,
        scale: str | None = None,
        details: dict | None = None,
    ) -> None:
        """Add a warning to the diagnostics.

        Args:
            stage: Processing stage where the warning occurred.
            code: Warning code (e.g., "MISSING_SCORE").
            message: Human-readable warning message.
            test: Optional test the warning relates to.
            scale: Optional scale the warning relates to.
            details: Optional additional details.
        """
        self._warnings.append(
            DiagnosticWarning(
                stage=stage,
                code=code,
                message=message,
                test=test,
                scale=scale,
                details=details,
            )
        )

    def collect_from_records(
        self,
        records: list[ScoreRecord],
        rows_total: int,
    ) -> None:
        """Set quality metrics from the assembled records.

        Args:
            records: The records retained after filtering.
            rows_total: Number of input rows before filtering.
        """
        scored = [r for r in records if not r.is_missing]
        missing = sorted({r.test_scale.scale for r in records if r.is_missing})

        self._quality = QualityMetrics(
            completeness=len(scored) / len(records) if records else 1.0,
            missing_scales=missing,
            rows_total=rows_total,
            rows_retained=len(records),
            rows_scored=len(scored),
        )

    def finalize(self) -> BatchDiagnostic:
        """Finalize and return the complete diagnostic report.

        Computes final status based on collected errors and warnings.

        Returns:
            Complete BatchDiagnostic for the batch.
        """
        if self._errors:
            status = ProcessingStatus.FAILED
        elif self._warnings:
            status = ProcessingStatus.PARTIAL
        else:
            status = ProcessingStatus.SUCCESS

        return BatchDiagnostic(
            batch_id=self.batch_id,
            patient_id=self.patient_id,
            reference_version=self.reference_version,
            status=status,
            errors=list(self._errors),
            warnings=list(self._warnings),
            quality=self._quality,
        )
