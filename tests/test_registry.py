"""Tests for the reference registry."""

import json
import shutil
from pathlib import Path

import pytest

from neuroscore.registry import (
    ReferenceData,
    ReferenceNotFoundError,
    ReferenceRegistry,
    ReferenceValidationError,
    load_reference,
)


@pytest.fixture
def reference_copy(tmp_path: Path, reference_path: Path) -> Path:
    """Copy the packaged reference data into a writable directory."""
    dest = tmp_path / "reference"
    shutil.copytree(reference_path, dest)
    return dest


def _edit(path: Path, edit) -> None:
    with open(path) as f:
        data = json.load(f)
    edit(data)
    with open(path, "w") as f:
        json.dump(data, f)


class TestReferenceRegistry:
    """Tests for ReferenceRegistry loading and validation."""

    def test_load_packaged_reference(self, reference: ReferenceData) -> None:
        """Test the packaged reference data loads and validates."""
        assert reference.version == "1.0.0"
        assert len(reference.scales) > 40
        assert [d.pheno for d in reference.domains][:3] == ["iq", "academics", "verbal"]
        assert {n.norm_id for n in reference.norms} == {
            "rocft_copy",
            "rocft_recall",
            "pegboard_dominant",
            "pegboard_nondominant",
            "tmt_a",
            "tmt_b",
            "tmt_a_child",
            "tmt_b_child",
            "rocft_copy_child",
            "rocft_recall_child",
        }

    def test_load_is_cached_per_instance(self, reference_path: Path) -> None:
        registry = ReferenceRegistry(reference_path)
        assert registry.load() is registry.load()

    def test_load_reference_is_cached(self, reference_path: Path) -> None:
        assert load_reference(reference_path) is load_reference(str(reference_path))

    def test_missing_file(self, reference_copy: Path) -> None:
        (reference_copy / "norms.json").unlink()
        with pytest.raises(ReferenceNotFoundError, match="norms"):
            ReferenceRegistry(reference_copy).load()

    def test_invalid_json(self, reference_copy: Path) -> None:
        (reference_copy / "domains.json").write_text("{not json")
        with pytest.raises(ReferenceValidationError, match="Invalid JSON"):
            ReferenceRegistry(reference_copy).load()

    def test_schema_violation(self, reference_copy: Path) -> None:
        """Test a scale entry without a domain fails schema validation."""
        _edit(reference_copy / "scales.json", lambda d: d["scales"][0].pop("domain"))
        with pytest.raises(ReferenceValidationError, match="validation failed"):
            ReferenceRegistry(reference_copy).load()

    def test_age_band_norm_requires_bands(self, reference_copy: Path) -> None:
        def drop_bands(data: dict) -> None:
            for norm in data["norms"]:
                if norm["method"] == "age_bands":
                    norm.pop("bands")

        _edit(reference_copy / "norms.json", drop_bands)
        with pytest.raises(ReferenceValidationError):
            ReferenceRegistry(reference_copy).load()

    def test_duplicate_scale(self, reference_copy: Path) -> None:
        _edit(reference_copy / "scales.json", lambda d: d["scales"].append(d["scales"][0]))
        with pytest.raises(ReferenceValidationError, match="Duplicate"):
            ReferenceRegistry(reference_copy).load()


class TestReferenceData:
    """Tests for ReferenceData lookups."""

    def test_find_scale_by_test_and_scale(self, reference: ReferenceData) -> None:
        entry = reference.find_scale("Vocabulary", "wais4")
        assert entry is not None
        assert entry.domain == "Verbal/Language"
        assert entry.subdomain == "Lexical Knowledge"
        assert entry.narrow == "Vocabulary"

    def test_find_scale_by_unique_name(self, reference: ReferenceData) -> None:
        entry = reference.find_scale("Similarities")
        assert entry is not None
        assert entry.test == "wais4"

    def test_find_scale_unknown(self, reference: ReferenceData) -> None:
        assert reference.find_scale("Not A Scale") is None

    def test_flags_load_from_pass_key(self, reference: ReferenceData) -> None:
        entry = reference.find_scale("Block Design", "wais4")
        hierarchy = entry.to_hierarchy()
        assert hierarchy.pass_ == "Simultaneous"
        assert hierarchy.verbal == "Nonverbal"
        assert hierarchy.timed == "Timed"

    def test_pheno_for_domain_and_alias(self, reference: ReferenceData) -> None:
        assert reference.pheno_for_domain("Memory") == "memory"
        assert reference.pheno_for_domain("ADHD/Executive Function") == "adhd"
        assert reference.pheno_for_domain("Psychiatric Disorders") == "emotion"
        assert reference.pheno_for_domain("Performance Validity") == "validity"
        assert reference.pheno_for_domain("Astrology") is None

    def test_domain_spec(self, reference: ReferenceData) -> None:
        spec = reference.get_domain_spec("iq")
        assert spec.number == "01"
        assert spec.title == "General Cognitive Ability"
        assert "Full Scale (FSIQ)" in spec.scales

    def test_all_domains_puts_aliases_last(self, reference: ReferenceData) -> None:
        spec = reference.get_domain_spec("validity")
        assert spec.all_domains[0] == "Validity"
        assert "Effort/Validity" in spec.all_domains

    def test_find_norm(self, reference: ReferenceData) -> None:
        norm = reference.find_norm("tmt", "TMT, Part A")
        assert norm.norm_id == "tmt_a"
        assert norm.direction == "lower_is_better"
        assert len(norm.bands) == 15

    @pytest.mark.parametrize(
        "age,norm_id",
        [(45, "tmt_a"), (16, "tmt_a"), (10, "tmt_a_child"), (15.5, "tmt_a_child"), (4, "tmt_a_child")],
    )
    def test_find_norm_by_age(self, reference: ReferenceData, age: float, norm_id: str) -> None:
        assert reference.find_norm("tmt", "TMT, Part A", age=age).norm_id == norm_id

    def test_find_norm_uncovered_age(self, reference: ReferenceData) -> None:
        assert reference.find_norm("tmt", "TMT, Part A", age=2) is None
        assert [n.norm_id for n in reference.find_norms("rocft", "ROCFT Copy")] == [
            "rocft_copy",
            "rocft_copy_child",
        ]
