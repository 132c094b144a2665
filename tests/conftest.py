"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest

from neuroscore.registry import DEFAULT_REFERENCE_PATH, ReferenceData, load_reference


@pytest.fixture
def reference_path() -> Path:
    """Return the packaged reference data directory."""
    return DEFAULT_REFERENCE_PATH


@pytest.fixture
def reference(reference_path: Path) -> ReferenceData:
    """Return the packaged reference data."""
    return load_reference(reference_path)


@pytest.fixture
def verbal_rows() -> list[dict]:
    """Vocabulary and Similarities rows reported as standard scores."""
    return [
        {"scale": "Vocabulary", "type": "standard_score", "value": 119, "domain": "Verbal"},
        {"scale": "Similarities", "type": "standard_score", "value": 127, "domain": "Verbal"},
    ]


@pytest.fixture
def patient_rows() -> list[dict]:
    """A small multi-domain battery for one patient."""
    return [
        {"patient_id": "p001", "test": "wais4", "scale": "Vocabulary", "score": 12},
        {"patient_id": "p001", "test": "wais4", "scale": "Similarities", "score": 14},
        {"patient_id": "p001", "test": "wais4", "scale": "Information", "score": 9},
        {"patient_id": "p001", "test": "wais4", "scale": "Block Design", "score": 8},
        {"patient_id": "p001", "test": "wais4", "scale": "Matrix Reasoning", "score": 11},
        {"patient_id": "p001", "test": "cvlt2", "scale": "Trials 1-5 Free Recall", "score": 42},
        {"patient_id": "p001", "test": "cvlt2", "scale": "Long-Delay Free Recall", "score": -1.0},
        {"patient_id": "p001", "test": "wms4", "scale": "Logical Memory II", "score": None},
        {"patient_id": "p001", "test": "wais4", "scale": "Full Scale (FSIQ)", "score": 104},
        {"patient_id": "p001", "test": "caars_self", "scale": "Hyperactivity/Restlessness", "score": 66},
        {"patient_id": "p001", "test": "acs", "scale": "Word Choice", "score": 50},
    ]
