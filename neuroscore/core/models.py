"""Core models for normalized scores and their aggregates.

These are the row-level and aggregate-level output contract consumed
by report rendering, tables and figures.
"""

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ScaleType(str, Enum):
    """Native score metric reported by an instrument."""

    STANDARD_SCORE = "standard_score"
    T_SCORE = "t_score"
    SCALED_SCORE = "scaled_score"
    Z_SCORE = "z_score"
    PERCENTILE = "percentile"


class RangeLabel(str, Enum):
    """Descriptive performance range, declared lowest to highest."""

    EXCEPTIONALLY_LOW = "Exceptionally Low"
    BELOW_AVERAGE = "Below Average"
    LOW_AVERAGE = "Low Average"
    AVERAGE = "Average"
    HIGH_AVERAGE = "High Average"
    ABOVE_AVERAGE = "Above Average"
    EXCEPTIONALLY_HIGH = "Exceptionally High"

    @property
    def rank(self) -> int:
        """Ordinal position, 0 for Exceptionally Low through 6."""
        return list(RangeLabel).index(self)


class AggregateLevel(str, Enum):
    """Grouping axis for aggregate summaries."""

    DOMAIN = "domain"
    SUBDOMAIN = "subdomain"
    NARROW = "narrow"
    PASS = "pass"
    VERBAL = "verbal"
    TIMED = "timed"


HIERARCHY_LEVELS = (AggregateLevel.DOMAIN, AggregateLevel.SUBDOMAIN, AggregateLevel.NARROW)
FLAG_LEVELS = (AggregateLevel.PASS, AggregateLevel.VERBAL, AggregateLevel.TIMED)

TestType = Literal[
    "npsych_test",
    "rating_scale",
    "performance_validity",
    "symptom_validity",
    "validity_indicator",
]

VALIDITY_TEST_TYPES = ("performance_validity", "symptom_validity", "validity_indicator")


class TestScale(BaseModel):
    """A measurable construct reported by a specific instrument."""

    test: str
    test_name: str
    scale: str
    scale_type: ScaleType

    model_config = ConfigDict(frozen=True)


class HierarchyAssignment(BaseModel):
    """Placement of a test scale in the reporting taxonomy."""

    domain: str
    subdomain: str
    narrow: str
    pass_: str | None = Field(default=None, alias="pass")
    verbal: str | None = None
    timed: str | None = None
    test_type: TestType = "npsych_test"

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def flag(self, level: AggregateLevel) -> str | None:
        """Get the flag value for a flag axis."""
        if level == AggregateLevel.PASS:
            return self.pass_
        if level == AggregateLevel.VERBAL:
            return self.verbal
        if level == AggregateLevel.TIMED:
            return self.timed
        raise ValueError(f"Not a flag level: {level.value}")


class ScoreRecord(BaseModel):
    """One observed measurement for one patient on one test scale.

    The derived fields (z, percentile, range) are all present when the
    score is present and all absent when it is missing.
    """

    patient_id: str | None = None
    test_scale: TestScale
    hierarchy: HierarchyAssignment
    score: float | None
    raw_score: float | None = None
    reported_percentile: float | None = None
    z: float | None = None
    percentile: float | None = None
    range: RangeLabel | None = None

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def check_derived_fields(self) -> "ScoreRecord":
        """Ensure derived fields are consistent with the score."""
        present = [v is not None for v in (self.z, self.percentile, self.range)]
        if any(present) and not all(present):
            raise ValueError("z, percentile and range must be derived together")
        if all(present) != (self.score is not None):
            raise ValueError("Derived fields must be present exactly when the score is present")
        return self

    @property
    def is_missing(self) -> bool:
        """Whether the record has no usable score."""
        return self.z is None

    @property
    def sort_key(self) -> tuple:
        """Stable ordering key for reproducible output.

        Covers every field to_row() emits, so distinct records never tie.
        """

        def optional(value: Any) -> tuple:
            return (0, "") if value is None else (1, value)

        return (
            self.patient_id or "",
            self.hierarchy.domain,
            self.hierarchy.subdomain,
            self.hierarchy.narrow,
            self.test_scale.scale,
            self.test_scale.test,
            self.test_scale.test_name,
            self.test_scale.scale_type.value,
            optional(self.score),
            optional(self.raw_score),
            optional(self.reported_percentile),
            optional(self.hierarchy.pass_),
            optional(self.hierarchy.verbal),
            optional(self.hierarchy.timed),
            self.hierarchy.test_type,
        )

    def to_row(self) -> dict[str, Any]:
        """Flatten to the row shape used by downstream renderers."""
        row: dict[str, Any] = {"patient_id": self.patient_id}
        row.update(self.test_scale.model_dump(mode="json"))
        row.update(self.hierarchy.model_dump(mode="json", by_alias=True))
        row.update(
            {
                "score": self.score,
                "raw_score": self.raw_score,
                "reported_percentile": self.reported_percentile,
                "z": self.z,
                "percentile": self.percentile,
                "range": self.range.value if self.range else None,
            }
        )
        return row


class AggregateSummary(BaseModel):
    """Rollup of the records sharing one grouping key for one patient."""

    patient_id: str | None = None
    level: AggregateLevel
    key: str
    domain: str | None = None
    subdomain: str | None = None
    count: int = Field(ge=1)
    missing: int = 0
    mean_z: float
    sd_z: float | None = None
    mean_percentile: float
    min_percentile: float
    max_percentile: float
    range: RangeLabel

    model_config = ConfigDict(frozen=True)

    def to_row(self) -> dict[str, Any]:
        """Flatten to a plain dict."""
        return self.model_dump(mode="json")
