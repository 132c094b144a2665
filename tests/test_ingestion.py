"""Tests for raw row validation and record assembly."""

import random

import pytest

from neuroscore.core.models import RangeLabel, ScaleType
from neuroscore.diagnostics import DiagnosticsCollector, ProcessingStatus
from neuroscore.ingestion import RowValidationError, build_records, parse_row
from neuroscore.registry import ReferenceData
from neuroscore.scoring import InvalidScore, UnsupportedScaleType


class TestParseRow:
    """Tests for RawRow parsing."""

    def test_aliases(self) -> None:
        row = parse_row({"scale": "Vocabulary", "type": "standard_score", "value": 119}, 0)
        assert row.score == 119
        assert row.scale_type == "standard_score"

    def test_blank_and_nan_are_none(self) -> None:
        row = parse_row({"scale": "Coding", "score": float("nan"), "domain": "  ", "narrow": ""}, 0)
        assert row.score is None
        assert row.domain is None
        assert row.narrow is None

    def test_nan_string_is_none(self) -> None:
        assert parse_row({"scale": "Coding", "score": "NaN"}, 0).score is None

    @pytest.mark.parametrize("field", ["score", "raw_score", "percentile"])
    @pytest.mark.parametrize("value", ["inf", "-inf", float("inf")])
    def test_infinite_number_rejected(self, field: str, value: object) -> None:
        with pytest.raises(RowValidationError, match="finite"):
            parse_row({"scale": "Coding", field: value}, 2)

    def test_numeric_patient_id(self) -> None:
        assert parse_row({"scale": "Coding", "patient_id": 1042}, 0).patient_id == "1042"
        assert parse_row({"scale": "Coding", "patient_id": 1042.0}, 0).patient_id == "1042"

    def test_pass_flag_key(self) -> None:
        assert parse_row({"scale": "Coding", "pass": "Attention"}, 0).pass_ == "Attention"

    def test_missing_scale(self) -> None:
        with pytest.raises(RowValidationError, match="Row 3"):
            parse_row({"test": "wais4", "score": 10}, 3)

    def test_non_numeric_score(self) -> None:
        with pytest.raises(RowValidationError) as exc_info:
            parse_row({"scale": "Coding", "score": "ten"}, 1)
        assert exc_info.value.row_index == 1


class TestBuildRecords:
    """Tests for build_records."""

    def test_concrete_verbal_scenario(self, verbal_rows: list[dict], reference: ReferenceData) -> None:
        """Test Vocabulary 119 and Similarities 127 as standard scores."""
        records = build_records(verbal_rows, reference=reference)
        by_scale = {r.test_scale.scale: r for r in records}

        vocabulary = by_scale["Vocabulary"]
        assert vocabulary.z == pytest.approx(1.2667, abs=1e-4)
        assert round(vocabulary.percentile) == 90
        assert vocabulary.range == RangeLabel.HIGH_AVERAGE

        similarities = by_scale["Similarities"]
        assert similarities.z == pytest.approx(1.8)
        assert round(similarities.percentile) == 96
        assert similarities.range == RangeLabel.ABOVE_AVERAGE

    def test_row_values_override_reference(self, verbal_rows: list[dict], reference: ReferenceData) -> None:
        """Test declared domain and type win; subdomain and narrow come from the reference."""
        records = build_records(verbal_rows, reference=reference)
        vocabulary = next(r for r in records if r.test_scale.scale == "Vocabulary")
        assert vocabulary.hierarchy.domain == "Verbal"
        assert vocabulary.hierarchy.subdomain == "Lexical Knowledge"
        assert vocabulary.hierarchy.narrow == "Vocabulary"
        assert vocabulary.test_scale.scale_type == ScaleType.STANDARD_SCORE
        assert vocabulary.test_scale.test == "wais4"
        assert vocabulary.test_scale.test_name == "WAIS-IV"

    def test_unknown_scale_without_hierarchy(self, reference: ReferenceData) -> None:
        rows = [{"test": "xyz", "scale": "Mystery", "score": 10, "scale_type": "scaled_score"}]
        with pytest.raises(RowValidationError, match="domain"):
            build_records(rows, reference=reference)

    def test_fully_declared_row_needs_no_reference_entry(self, reference: ReferenceData) -> None:
        rows = [
            {
                "test": "xyz",
                "scale": "Mystery",
                "score": 55,
                "scale_type": "t_score",
                "domain": "Memory",
                "subdomain": "Recall",
                "narrow": "Mystery Recall",
            }
        ]
        [record] = build_records(rows, reference=reference)
        assert record.test_scale.test_name == "xyz"
        assert record.range == RangeLabel.AVERAGE

    def test_domain_filter(self, patient_rows: list[dict], reference: ReferenceData) -> None:
        records = build_records(patient_rows, domain_filter=["Memory"], reference=reference)
        assert {r.hierarchy.domain for r in records} == {"Memory"}
        assert len(records) == 3

    def test_scale_filter(self, patient_rows: list[dict], reference: ReferenceData) -> None:
        records = build_records(
            patient_rows, scale_filter=["Vocabulary", "Block Design"], reference=reference
        )
        assert [r.test_scale.scale for r in records] == ["Vocabulary", "Block Design"]

    def test_empty_filter_result_warns(self, patient_rows: list[dict], reference: ReferenceData) -> None:
        collector = DiagnosticsCollector()
        records = build_records(
            patient_rows, domain_filter=["Motor"], reference=reference, collector=collector
        )
        assert records == []
        result = collector.finalize()
        assert [w.code for w in result.warnings] == ["EMPTY_FILTER_RESULT"]
        assert result.status == ProcessingStatus.PARTIAL

    def test_missing_score(self, patient_rows: list[dict], reference: ReferenceData) -> None:
        """Test a missing score yields a record without derived fields and a warning."""
        collector = DiagnosticsCollector()
        records = build_records(patient_rows, reference=reference, collector=collector)
        missing = [r for r in records if r.is_missing]
        assert [r.test_scale.scale for r in missing] == ["Logical Memory II"]
        assert missing[0].percentile is None
        assert missing[0].range is None

        result = collector.finalize()
        assert [w.code for w in result.warnings] == ["MISSING_SCORE"]
        assert result.quality.rows_total == len(patient_rows)
        assert result.quality.rows_scored == len(patient_rows) - 1
        assert result.quality.missing_scales == ["Logical Memory II"]

    def test_unsupported_scale_type(self, reference: ReferenceData) -> None:
        rows = [{"test": "wais4", "scale": "Reliable Digit Span", "score": 7}]
        collector = DiagnosticsCollector()
        with pytest.raises(UnsupportedScaleType):
            build_records(rows, reference=reference, collector=collector)
        assert collector.finalize().errors[0].code == "UNSUPPORTED_SCALE_TYPE"

    def test_unsupported_type_filtered_out(self, reference: ReferenceData) -> None:
        """Test an unsupported row outside the filter doesn't abort the batch."""
        rows = [
            {"test": "wais4", "scale": "Reliable Digit Span", "score": 7},
            {"test": "wais4", "scale": "Coding", "score": 10},
        ]
        records = build_records(rows, scale_filter=["Coding"], reference=reference)
        assert len(records) == 1

    def test_invalid_percentile(self, reference: ReferenceData) -> None:
        rows = [{"test": "acs", "scale": "Word Choice", "score": 120}]
        with pytest.raises(InvalidScore):
            build_records(rows, reference=reference)

    def test_reported_percentile_preserved(self, reference: ReferenceData) -> None:
        rows = [{"test": "wais4", "scale": "Coding", "score": 13, "percentile": 84, "raw_score": 71}]
        [record] = build_records(rows, reference=reference)
        assert record.reported_percentile == 84
        assert record.raw_score == 71
        assert record.percentile == pytest.approx(84.134, abs=1e-3)

    def test_percentile_only_row_is_scored(self, reference: ReferenceData) -> None:
        """Test a row with only a reported percentile is scored from it."""
        rows = [{"test": "wais4", "scale": "Coding", "percentile": 84}]
        collector = DiagnosticsCollector()
        [record] = build_records(rows, reference=reference, collector=collector)

        assert not record.is_missing
        assert record.test_scale.scale_type == ScaleType.PERCENTILE
        assert record.score == 84
        assert record.reported_percentile == 84
        assert record.z == pytest.approx(0.9945, abs=1e-4)
        assert record.percentile == pytest.approx(84.0)
        assert record.range == RangeLabel.HIGH_AVERAGE

        result = collector.finalize()
        assert [w.code for w in result.warnings] == ["SCORE_FROM_PERCENTILE"]
        assert result.warnings[0].details == {"declared_scale_type": "scaled_score"}
        assert result.quality.rows_scored == 1

    def test_native_score_wins_over_percentile(self, reference: ReferenceData) -> None:
        rows = [{"test": "wais4", "scale": "Coding", "score": 7, "percentile": 84}]
        [record] = build_records(rows, reference=reference)
        assert record.test_scale.scale_type == ScaleType.SCALED_SCORE
        assert record.range == RangeLabel.LOW_AVERAGE

    def test_percentile_only_row_out_of_range(self, reference: ReferenceData) -> None:
        rows = [{"test": "wais4", "scale": "Coding", "percentile": 140}]
        with pytest.raises(InvalidScore):
            build_records(rows, reference=reference)

    def test_order_independent(self, patient_rows: list[dict], reference: ReferenceData) -> None:
        shuffled = list(patient_rows)
        random.Random(7).shuffle(shuffled)
        assert build_records(shuffled, reference=reference) == build_records(
            patient_rows, reference=reference
        )

    def test_records_are_sorted(self, patient_rows: list[dict], reference: ReferenceData) -> None:
        records = build_records(patient_rows, reference=reference)
        keys = [r.sort_key for r in records]
        assert keys == sorted(keys)

    def test_uses_packaged_reference_by_default(self, verbal_rows: list[dict]) -> None:
        assert len(build_records(verbal_rows)) == 2
