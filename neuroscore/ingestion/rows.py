"""Raw score row schema.

Rows arrive from instrument exports as loosely typed mappings: blank
cells, NaN from spreadsheets, numeric patient IDs. RawRow normalizes
them before reference resolution.
"""

import math
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from neuroscore.core.models import TestType


class RowValidationError(Exception):
    """Raised when a score row is malformed or incomplete."""

    def __init__(self, row_index: int, message: str) -> None:
        self.row_index = row_index
        super().__init__(f"Row {row_index}: {message}")


class RawRow(BaseModel):
    """One score row as supplied by the caller."""

    patient_id: str | None = None
    test: str | None = None
    test_name: str | None = None
    scale: str
    score: float | None = Field(default=None, validation_alias=AliasChoices("score", "value"))
    scale_type: str | None = Field(
        default=None,
        validation_alias=AliasChoices("scale_type", "type", "score_type"),
    )
    raw_score: float | None = None
    percentile: float | None = None
    domain: str | None = None
    subdomain: str | None = None
    narrow: str | None = None
    pass_: str | None = Field(default=None, validation_alias=AliasChoices("pass", "pass_"))
    verbal: str | None = None
    timed: str | None = None
    test_type: TestType | None = None

    model_config = ConfigDict(extra="ignore", frozen=True)

    @field_validator("*", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        """Treat empty cells and NaN as absent."""
        if value is None:
            return None
        if isinstance(value, float) and math.isnan(value):
            return None
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("score", "raw_score", "percentile")
    @classmethod
    def finite_or_none(cls, value: float | None) -> float | None:
        """Parsed 'nan' is absent; infinities are malformed."""
        if value is None or math.isnan(value):
            return None
        if math.isinf(value):
            raise ValueError("must be a finite number")
        return value

    @field_validator("patient_id", "test", "test_name", "scale", mode="before")
    @classmethod
    def identifier_to_str(cls, value: Any) -> Any:
        """Accept numeric identifiers (e.g., patient 1042 from a CSV)."""
        if isinstance(value, float) and math.isnan(value):
            return None
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(int(value)) if float(value).is_integer() else str(value)
        return value


def parse_row(row: dict[str, Any], row_index: int) -> RawRow:
    """Validate one mapping as a RawRow.

    Raises:
        RowValidationError: If the mapping doesn't fit the row schema.
    """
    try:
        return RawRow.model_validate(row)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'row'}: {err['msg']}" for err in e.errors()
        )
        raise RowValidationError(row_index, problems) from e
