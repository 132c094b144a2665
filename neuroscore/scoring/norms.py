"""Demographically adjusted norms for raw test scores.

Some instruments export only raw scores (seconds to completion, points
copied). Their norms predict a mean and SD for the patient's age, either
from a polynomial in age or from an age-band table. The raw score is
expressed as z against that prediction and reported as a T-score.
"""

import logging
from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel

from neuroscore.core.models import ScaleType
from neuroscore.diagnostics import DiagnosticsCollector
from neuroscore.registry.models import NormSpec, ReferenceData
from neuroscore.scoring.conversion import MissingScore, from_z, is_missing, z_to_percentile

logger = logging.getLogger(__name__)


class NormNotFoundError(Exception):
    """Raised when no norm table exists for a norm ID."""

    pass


class AgeOutOfRange(Exception):
    """Raised when the patient's age is outside a norm's sample."""

    def __init__(self, norm_id: str, age: float, age_min: float, age_max: float) -> None:
        self.norm_id = norm_id
        self.age = age
        super().__init__(
            f"Age {age} is outside the {norm_id} norms ({age_min}-{age_max})"
        )


class NormScore(BaseModel):
    """A raw score expressed against age-adjusted norms."""

    norm_id: str
    age: float
    raw_score: float
    predicted_mean: float
    predicted_sd: float
    z: float
    t_score: float
    percentile: float


def _polynomial(coefficients: list[float], x: float) -> float:
    """Evaluate c0 + c1*x + c2*x^2 + ..."""
    return sum(c * x**power for power, c in enumerate(coefficients))


class NormEngine:
    """Scores raw test results against the norm tables in the reference."""

    def __init__(self, reference: ReferenceData) -> None:
        self.reference = reference

    def get(self, norm_id: str) -> NormSpec:
        spec = self.reference.get_norm(norm_id)
        if spec is None:
            raise NormNotFoundError(f"No norms for: {norm_id}")
        return spec

    def select(self, test: str, scale: str, age: float) -> NormSpec:
        """Pick the norms for a test scale whose age range covers the age.

        Raises:
            NormNotFoundError: If the test scale has no norms.
            AgeOutOfRange: If no age group covers the age.
        """
        specs = self.reference.find_norms(test, scale)
        if not specs:
            raise NormNotFoundError(f"No norms for: {test} / {scale}")
        for spec in specs:
            if spec.covers(age):
                return spec
        raise AgeOutOfRange(
            ", ".join(spec.norm_id for spec in specs),
            age,
            min(spec.age_min for spec in specs),
            max(spec.age_max for spec in specs),
        )

    def predict(self, spec: NormSpec, age: float) -> tuple[float, float]:
        """Predict the normative (mean, sd) for an age.

        Raises:
            AgeOutOfRange: If the age is outside the norm's range or,
                for age-band norms, falls in no band.
        """
        if not spec.covers(age):
            raise AgeOutOfRange(spec.norm_id, age, spec.age_min, spec.age_max)

        if spec.method == "polynomial":
            mean = _polynomial(spec.mean_coefficients, age)
            sd = _polynomial(spec.sd_coefficients, age)
        else:
            # Bands are whole years; fractional ages use the completed year
            year = int(age)
            for band in spec.bands:
                if band.age_min <= year <= band.age_max:
                    mean, sd = band.mean, band.sd
                    break
            else:
                raise AgeOutOfRange(spec.norm_id, age, spec.age_min, spec.age_max)

        if sd <= 0:
            raise AgeOutOfRange(spec.norm_id, age, spec.age_min, spec.age_max)
        return mean, sd

    def score(self, norm_id: str, age: float, raw_score: float | None) -> NormScore:
        """Convert a raw score to z, T and percentile for a patient's age.

        Args:
            norm_id: The norm table ID (e.g., 'tmt_a').
            age: Patient age in years.
            raw_score: The raw test score.

        Returns:
            NormScore with the predicted mean/SD and derived scores.

        Raises:
            NormNotFoundError: If the norm ID is unknown.
            AgeOutOfRange: If the age is outside the norms.
            MissingScore: If the raw score is missing.
        """
        spec = self.get(norm_id)
        if is_missing(raw_score):
            raise MissingScore(f"Cannot score a missing raw score against {norm_id}")

        mean, sd = self.predict(spec, age)
        if spec.direction == "lower_is_better":
            z = (mean - raw_score) / sd
        else:
            z = (raw_score - mean) / sd

        return NormScore(
            norm_id=norm_id,
            age=age,
            raw_score=raw_score,
            predicted_mean=mean,
            predicted_sd=sd,
            z=z,
            t_score=from_z(z, ScaleType.T_SCORE),
            percentile=z_to_percentile(z),
        )


def apply_norms(
    rows: Iterable[dict[str, Any]],
    age: float,
    reference: ReferenceData,
    collector: DiagnosticsCollector | None = None,
) -> list[dict[str, Any]]:
    """Fill T-scores for rows that carry only a raw score.

    A row is scored when its (test, scale) has norms, it has a raw score
    and it has no native score. The norms whose age range covers the
    patient are used. When none does, the row passes through without a
    score and an AGE_OUT_OF_RANGE warning is recorded, so it ends up as
    a missing record rather than failing the batch. Other rows pass
    through unchanged.

    Args:
        rows: Raw score rows.
        age: Patient age in years.
        reference: Reference data holding the norm tables.
        collector: Optional diagnostics collector.

    Returns:
        New row dicts; the input rows are not modified.
    """
    engine = NormEngine(reference)
    result = []
    for row in rows:
        row = dict(row)
        test, scale = row.get("test", ""), row.get("scale", "")
        score = row.get("score", row.get("value"))
        if (
            reference.find_norms(test, scale)
            and is_missing(score)
            and not is_missing(row.get("raw_score"))
        ):
            try:
                spec = engine.select(test, scale, age)
                normed = engine.score(spec.norm_id, age, float(row["raw_score"]))
            except AgeOutOfRange as e:
                logger.warning("Leaving %s %s unscored: %s", test, scale, e)
                if collector:
                    collector.add_warning(
                        stage="conversion",
                        code="AGE_OUT_OF_RANGE",
                        message=str(e),
                        test=test,
                        scale=scale,
                        details={"age": age, "norm_id": e.norm_id},
                    )
                result.append(row)
                continue

            for alias in ("value", "type", "score_type"):
                row.pop(alias, None)
            row["score"] = normed.t_score
            row["scale_type"] = ScaleType.T_SCORE.value
            logger.debug(
                "Normed %s raw=%s age=%s -> T=%.1f",
                spec.norm_id,
                normed.raw_score,
                age,
                normed.t_score,
            )
        result.append(row)
    return result
