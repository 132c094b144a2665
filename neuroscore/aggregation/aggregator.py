"""Domain aggregation in z-space.

Records are grouped per patient along one axis of the taxonomy
(domain, subdomain, narrow ability) or one flag axis (PASS process,
verbal/nonverbal, timed/untimed). Each group is summarized by the mean
of its z-scores; the percentile and range label are derived from that
mean, never averaged from the records' own percentiles or labels.
"""

import logging
from collections.abc import Iterable

import numpy as np

from neuroscore.core.models import (
    FLAG_LEVELS,
    HIERARCHY_LEVELS,
    AggregateLevel,
    AggregateSummary,
    ScoreRecord,
)
from neuroscore.diagnostics import DiagnosticsCollector
from neuroscore.interpretation.classifier import RangeClassifier
from neuroscore.scoring.conversion import z_to_percentile

logger = logging.getLogger(__name__)

GroupKey = tuple[str, ...]


class DomainAggregator:
    """Groups score records and summarizes each group."""

    def __init__(self, classifier: RangeClassifier | None = None) -> None:
        self.classifier = classifier if classifier is not None else RangeClassifier()

    def _group_key(self, record: ScoreRecord, level: AggregateLevel) -> GroupKey | None:
        """Build the grouping key for a record, or None if it has no value on the axis."""
        patient = record.patient_id or ""
        h = record.hierarchy
        if level == AggregateLevel.DOMAIN:
            return (patient, h.domain)
        if level == AggregateLevel.SUBDOMAIN:
            return (patient, h.domain, h.subdomain)
        if level == AggregateLevel.NARROW:
            return (patient, h.domain, h.subdomain, h.narrow)

        value = h.flag(level)
        return (patient, value) if value else None

    def _summarize(
        self,
        level: AggregateLevel,
        key: GroupKey,
        records: list[ScoreRecord],
    ) -> AggregateSummary | None:
        scored = [r for r in records if not r.is_missing]
        if not scored:
            return None

        zs = np.array([r.z for r in scored], dtype=float)
        percentiles = [r.percentile for r in scored]
        mean_z = float(np.mean(zs))
        sd_z = float(np.std(zs, ddof=1)) if len(zs) > 1 else None

        hierarchical = level in HIERARCHY_LEVELS
        return AggregateSummary(
            patient_id=records[0].patient_id,
            level=level,
            key=key[-1],
            domain=key[1] if hierarchical else None,
            subdomain=key[2] if level == AggregateLevel.NARROW else None,
            count=len(scored),
            missing=len(records) - len(scored),
            mean_z=mean_z,
            sd_z=sd_z,
            mean_percentile=z_to_percentile(mean_z),
            min_percentile=min(percentiles),
            max_percentile=max(percentiles),
            range=self.classifier.classify_z(mean_z),
        )

    def aggregate(
        self,
        records: Iterable[ScoreRecord],
        level: AggregateLevel | str,
        collector: DiagnosticsCollector | None = None,
    ) -> list[AggregateSummary]:
        """Summarize records grouped at one level.

        Args:
            records: Score records, in any order.
            level: Grouping axis.
            collector: Optional diagnostics collector; groups left out
                for lack of scored records are reported as EMPTY_GROUP.

        Returns:
            One summary per patient and group with at least one scored
            record, ordered by patient then group key.
        """
        level = AggregateLevel(level)
        groups: dict[GroupKey, list[ScoreRecord]] = {}
        for record in sorted(records, key=lambda r: r.sort_key):
            key = self._group_key(record, level)
            if key is not None:
                groups.setdefault(key, []).append(record)

        summaries = []
        for key in sorted(groups):
            summary = self._summarize(level, key, groups[key])
            if summary is None:
                logger.debug("Skipping %s group %s: no scored records", level.value, key)
                if collector:
                    collector.add_warning(
                        stage="aggregation",
                        code="EMPTY_GROUP",
                        message=f"No scored records for {level.value} {key[-1]!r}",
                        details={
                            "level": level.value,
                            "key": key[-1],
                            "patient_id": key[0] or None,
                        },
                    )
                continue
            summaries.append(summary)
        return summaries

    def aggregate_all(
        self,
        records: Iterable[ScoreRecord],
        include_flags: bool = True,
        collector: DiagnosticsCollector | None = None,
    ) -> dict[AggregateLevel, list[AggregateSummary]]:
        """Summarize records at every hierarchy level and, optionally, every flag axis."""
        records = list(records)
        levels = HIERARCHY_LEVELS + FLAG_LEVELS if include_flags else HIERARCHY_LEVELS
        return {level: self.aggregate(records, level, collector) for level in levels}


def aggregate(
    records: Iterable[ScoreRecord],
    level: AggregateLevel | str,
) -> list[AggregateSummary]:
    """Summarize records grouped at one level. See DomainAggregator.aggregate."""
    return DomainAggregator().aggregate(records, level)
