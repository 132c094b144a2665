"""Score record assembly.

Turns raw score rows into normalized, classified ScoreRecords:
rows are validated, completed from the reference lookup, filtered,
converted to z and percentile, labeled, and sorted into a stable order.
"""

import logging
from collections.abc import Collection, Iterable
from typing import Any

from neuroscore.core.models import HierarchyAssignment, ScaleType, ScoreRecord, TestScale
from neuroscore.diagnostics import DiagnosticsCollector
from neuroscore.ingestion.rows import RawRow, RowValidationError, parse_row
from neuroscore.interpretation.classifier import RangeClassifier
from neuroscore.registry.models import ReferenceData
from neuroscore.registry.reference import load_reference
from neuroscore.scoring.conversion import (
    InvalidScore,
    UnsupportedScaleType,
    is_missing,
    resolve_scale_type,
    to_z,
    z_to_percentile,
)

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("test", "scale_type", "domain", "subdomain", "narrow")


def _matches(value: str, allowed: Collection[str] | None) -> bool:
    """Whitelist check; an empty or absent filter allows everything."""
    return not allowed or value in allowed


class RecordBuilder:
    """Builds ScoreRecords from raw rows against one reference."""

    def __init__(
        self,
        reference: ReferenceData,
        classifier: RangeClassifier | None = None,
    ) -> None:
        self.reference = reference
        self.classifier = classifier if classifier is not None else RangeClassifier()

    def resolve(self, row: RawRow, row_index: int) -> RawRow:
        """Fill a row's missing metadata from the reference lookup.

        Values declared on the row take precedence over the reference.

        Raises:
            RowValidationError: If test, scale type or hierarchy fields
                are still missing after resolution.
        """
        entry = self.reference.find_scale(row.scale, row.test)
        if entry is not None:
            defaults = {
                "test": entry.test,
                "test_name": entry.test_name,
                "scale_type": entry.score_type,
                "domain": entry.domain,
                "subdomain": entry.subdomain,
                "narrow": entry.narrow,
                "pass_": entry.pass_,
                "verbal": entry.verbal,
                "timed": entry.timed,
                "test_type": entry.test_type,
            }
            update = {k: v for k, v in defaults.items() if getattr(row, k) is None}
            row = row.model_copy(update=update)

        missing = [name for name in REQUIRED_FIELDS if getattr(row, name) is None]
        if missing:
            raise RowValidationError(
                row_index,
                f"{row.scale!r} is missing {', '.join(missing)} "
                "and has no unique reference entry",
            )
        return row

    def to_record(
        self,
        row: RawRow,
        collector: DiagnosticsCollector | None = None,
    ) -> ScoreRecord:
        """Convert and classify one resolved row.

        A row with no native score but a reported percentile is scored
        on the percentile scale instead.

        Raises:
            UnsupportedScaleType: If the row's scale type has no conversion rule.
            InvalidScore: If the score can't exist on its scale.
        """
        score = row.score
        if is_missing(score) and not is_missing(row.percentile):
            logger.debug("%s %s scored from reported percentile", row.test, row.scale)
            if collector:
                collector.add_warning(
                    stage="conversion",
                    code="SCORE_FROM_PERCENTILE",
                    message=(
                        f"{row.test} {row.scale} has no {row.scale_type}; "
                        f"using reported percentile {row.percentile}"
                    ),
                    test=row.test,
                    scale=row.scale,
                    details={"declared_scale_type": row.scale_type},
                )
            scale_type = ScaleType.PERCENTILE
            score = row.percentile
        else:
            scale_type = resolve_scale_type(row.scale_type)

        test_scale = TestScale(
            test=row.test,
            test_name=row.test_name or row.test,
            scale=row.scale,
            scale_type=scale_type,
        )
        hierarchy = HierarchyAssignment(
            domain=row.domain,
            subdomain=row.subdomain,
            narrow=row.narrow,
            pass_=row.pass_,
            verbal=row.verbal,
            timed=row.timed,
            test_type=row.test_type or "npsych_test",
        )

        if is_missing(score):
            if collector:
                collector.add_warning(
                    stage="conversion",
                    code="MISSING_SCORE",
                    message=f"{row.test} {row.scale} has no score",
                    test=row.test,
                    scale=row.scale,
                )
            return ScoreRecord(
                patient_id=row.patient_id,
                test_scale=test_scale,
                hierarchy=hierarchy,
                score=None,
                raw_score=row.raw_score,
                reported_percentile=row.percentile,
            )

        z = to_z(score, scale_type)
        return ScoreRecord(
            patient_id=row.patient_id,
            test_scale=test_scale,
            hierarchy=hierarchy,
            score=score,
            raw_score=row.raw_score,
            reported_percentile=row.percentile,
            z=z,
            percentile=z_to_percentile(z),
            range=self.classifier.classify(score, scale_type),
        )

    def build(
        self,
        raw_rows: Iterable[dict[str, Any]],
        domain_filter: Collection[str] | None = None,
        scale_filter: Collection[str] | None = None,
        collector: DiagnosticsCollector | None = None,
    ) -> list[ScoreRecord]:
        """Build sorted ScoreRecords from raw rows.

        Args:
            raw_rows: Score rows as mappings.
            domain_filter: Domains to keep; empty or None keeps all.
            scale_filter: Scales to keep; empty or None keeps all.
            collector: Optional diagnostics collector.

        Returns:
            Records for the retained rows, in stable sort order.

        Raises:
            RowValidationError: If any row is malformed or incomplete.
            UnsupportedScaleType: If a retained row has an unsupported scale type.
            InvalidScore: If a retained row's score can't exist on its scale.
        """
        rows: list[RawRow] = []
        for index, raw in enumerate(raw_rows):
            try:
                rows.append(self.resolve(parse_row(raw, index), index))
            except RowValidationError as e:
                if collector:
                    collector.add_error(
                        stage="ingestion",
                        code="ROW_VALIDATION_ERROR",
                        message=str(e),
                        scale=raw.get("scale") if isinstance(raw, dict) else None,
                        details={"row_index": index},
                    )
                raise

        retained = [
            row
            for row in rows
            if _matches(row.domain, domain_filter) and _matches(row.scale, scale_filter)
        ]
        if rows and not retained and (domain_filter or scale_filter):
            logger.warning("No rows matched domains=%s scales=%s", domain_filter, scale_filter)
            if collector:
                collector.add_warning(
                    stage="ingestion",
                    code="EMPTY_FILTER_RESULT",
                    message="No rows matched the domain/scale filters",
                    details={
                        "domains": sorted(domain_filter or []),
                        "scales": sorted(scale_filter or []),
                    },
                )

        records = []
        for row in retained:
            try:
                records.append(self.to_record(row, collector))
            except UnsupportedScaleType as e:
                if collector:
                    collector.add_error(
                        stage="conversion",
                        code="UNSUPPORTED_SCALE_TYPE",
                        message=str(e),
                        test=row.test,
                        scale=row.scale,
                    )
                raise
            except InvalidScore as e:
                if collector:
                    collector.add_error(
                        stage="conversion",
                        code="INVALID_SCORE",
                        message=str(e),
                        test=row.test,
                        scale=row.scale,
                    )
                raise

        records.sort(key=lambda r: r.sort_key)
        logger.debug("Built %d records from %d rows", len(records), len(rows))

        if collector:
            collector.collect_from_records(records, rows_total=len(rows))
        return records


def build_records(
    raw_rows: Iterable[dict[str, Any]],
    domain_filter: Collection[str] | None = None,
    scale_filter: Collection[str] | None = None,
    reference: ReferenceData | None = None,
    collector: DiagnosticsCollector | None = None,
) -> list[ScoreRecord]:
    """Build sorted ScoreRecords from raw rows.

    Uses the packaged reference data when no reference is given.
    See RecordBuilder.build.
    """
    if reference is None:
        reference = load_reference()
    return RecordBuilder(reference).build(raw_rows, domain_filter, scale_filter, collector)
