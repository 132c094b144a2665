"""Pipeline for score processing.

Loads reference data, applies demographic norms, builds score records
and aggregates them into the per-patient dataset consumed by report
rendering.
"""

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from neuroscore.aggregation import DomainAggregator
from neuroscore.core.models import (
    VALIDITY_TEST_TYPES,
    AggregateLevel,
    AggregateSummary,
    ScoreRecord,
)
from neuroscore.diagnostics import BatchDiagnostic, DiagnosticsCollector
from neuroscore.ingestion import RecordBuilder
from neuroscore.interpretation.notes import score_type_note
from neuroscore.registry import ReferenceData, load_reference
from neuroscore.scoring.norms import apply_norms

logger = logging.getLogger(__name__)


class DomainNotFoundError(Exception):
    """Raised when a pheno key has no domain configuration."""

    pass


class PipelineConfig(BaseModel):
    """Configuration for the scoring pipeline."""

    reference_path: Path | None = None
    domains: list[str] = Field(default_factory=list)
    scales: list[str] = Field(default_factory=list)
    pheno: str | None = None
    age: float | None = None
    include_flags: bool = True
    batch_id: str = "batch"


class PatientDataset(BaseModel):
    """Scored records and their aggregates for one run."""

    pheno: str | None = None
    title: str | None = None
    records: list[ScoreRecord] = Field(default_factory=list)
    narrow_summaries: list[AggregateSummary] = Field(default_factory=list)
    subdomain_summaries: list[AggregateSummary] = Field(default_factory=list)
    domain_summaries: list[AggregateSummary] = Field(default_factory=list)
    flag_summaries: dict[AggregateLevel, list[AggregateSummary]] = Field(default_factory=dict)
    score_note: str
    diagnostics: BatchDiagnostic

    @property
    def neurocog(self) -> list[ScoreRecord]:
        """Records from performance-based tests."""
        return [r for r in self.records if r.hierarchy.test_type == "npsych_test"]

    @property
    def neurobehav(self) -> list[ScoreRecord]:
        """Records from rating scales."""
        return [r for r in self.records if r.hierarchy.test_type == "rating_scale"]

    @property
    def validity(self) -> list[ScoreRecord]:
        """Records from performance and symptom validity measures."""
        return [r for r in self.records if r.hierarchy.test_type in VALIDITY_TEST_TYPES]

    def summaries(self, level: AggregateLevel | str) -> list[AggregateSummary]:
        """Get the summaries for one level."""
        level = AggregateLevel(level)
        if level == AggregateLevel.DOMAIN:
            return self.domain_summaries
        if level == AggregateLevel.SUBDOMAIN:
            return self.subdomain_summaries
        if level == AggregateLevel.NARROW:
            return self.narrow_summaries
        return self.flag_summaries.get(level, [])

    def aggregate_rows(self) -> list[dict[str, Any]]:
        """All summaries as flat rows, hierarchy levels first."""
        rows = [s.to_row() for s in self.domain_summaries]
        rows.extend(s.to_row() for s in self.subdomain_summaries)
        rows.extend(s.to_row() for s in self.narrow_summaries)
        for level in sorted(self.flag_summaries, key=lambda lv: list(AggregateLevel).index(lv)):
            rows.extend(s.to_row() for s in self.flag_summaries[level])
        return rows


class Pipeline:
    """Runs score rows through norms, conversion, classification and aggregation."""

    def __init__(
        self,
        config: PipelineConfig | None = None,
        reference: ReferenceData | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            config: Pipeline configuration. Defaults to no filters.
            reference: Optional preloaded reference data. If not provided,
                loads it from config.reference_path or the packaged data.

        Raises:
            DomainNotFoundError: If config.pheno is not in the domain table.
        """
        self.config = config if config is not None else PipelineConfig()
        self.reference = (
            reference if reference is not None else load_reference(self.config.reference_path)
        )
        self.builder = RecordBuilder(self.reference)
        self.aggregator = DomainAggregator(self.builder.classifier)

        self.domain_spec = None
        self.domains = list(self.config.domains)
        self.scales = list(self.config.scales)
        if self.config.pheno:
            self.domain_spec = self.reference.get_domain_spec(self.config.pheno)
            if self.domain_spec is None:
                raise DomainNotFoundError(f"Unknown pheno: {self.config.pheno}")
            self.domains = self.domains or self.domain_spec.all_domains
            self.scales = self.scales or list(self.domain_spec.scales)

    def build_records(
        self,
        rows: Iterable[dict[str, Any]],
        collector: DiagnosticsCollector | None = None,
    ) -> list[ScoreRecord]:
        """Apply norms (when an age is configured) and build filtered records."""
        if self.config.age is not None:
            rows = apply_norms(rows, self.config.age, self.reference, collector)
        return self.builder.build(rows, self.domains, self.scales, collector)

    def aggregate(
        self,
        records: Iterable[ScoreRecord],
        level: AggregateLevel | str,
    ) -> list[AggregateSummary]:
        return self.aggregator.aggregate(records, level)

    def run(
        self,
        rows: Iterable[dict[str, Any]],
        collector: DiagnosticsCollector | None = None,
    ) -> PatientDataset:
        """Process a batch of score rows into a PatientDataset.

        Args:
            rows: Score rows as mappings.
            collector: Optional diagnostics collector. A new one is
                created when not provided.

        Returns:
            The dataset with records, summaries, score note and
            finalized diagnostics.
        """
        if collector is None:
            collector = DiagnosticsCollector(
                batch_id=self.config.batch_id,
                reference_version=self.reference.version,
            )

        records = self.build_records(rows, collector)
        summaries = self.aggregator.aggregate_all(
            records, self.config.include_flags, collector
        )

        patients = {r.patient_id for r in records if r.patient_id}
        if len(patients) == 1 and collector.patient_id is None:
            collector.patient_id = patients.pop()

        logger.info(
            "Scored %d records into %d domain summaries",
            len(records),
            len(summaries[AggregateLevel.DOMAIN]),
        )
        return PatientDataset(
            pheno=self.config.pheno,
            title=self.domain_spec.title if self.domain_spec else None,
            records=records,
            narrow_summaries=summaries.pop(AggregateLevel.NARROW),
            subdomain_summaries=summaries.pop(AggregateLevel.SUBDOMAIN),
            domain_summaries=summaries.pop(AggregateLevel.DOMAIN),
            flag_summaries=summaries,
            score_note=score_type_note(r.test_scale.scale_type for r in records),
            diagnostics=collector.finalize(),
        )

    def run_pheno(self, pheno: str, rows: Iterable[dict[str, Any]]) -> PatientDataset:
        """Run the rows through one report section's domain and scale filters."""
        config = self.config.model_copy(update={"pheno": pheno, "domains": [], "scales": []})
        return Pipeline(config, reference=self.reference).run(rows)

    def run_all_domains(self, rows: Iterable[dict[str, Any]]) -> dict[str, PatientDataset]:
        """Run every report section and keep those that have records.

        Returns:
            Datasets keyed by pheno, in domain table order.
        """
        rows = list(rows)
        datasets = {}
        for spec in self.reference.domains:
            dataset = self.run_pheno(spec.pheno, rows)
            if dataset.records:
                datasets[spec.pheno] = dataset
        return datasets
