"""Pipeline orchestration."""

from neuroscore.pipeline.orchestrator import (
    DomainNotFoundError,
    PatientDataset,
    Pipeline,
    PipelineConfig,
)

__all__ = ["DomainNotFoundError", "PatientDataset", "Pipeline", "PipelineConfig"]
