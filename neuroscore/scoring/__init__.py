"""Score conversion and demographic norms."""

from neuroscore.scoring.conversion import (
    PERCENTILE_CEILING,
    PERCENTILE_FLOOR,
    SCALE_PARAMETERS,
    InvalidScore,
    MissingScore,
    UnsupportedScaleType,
    from_z,
    is_missing,
    percentile_to_z,
    resolve_scale_type,
    to_z,
    z_to_percentile,
)
from neuroscore.scoring.norms import (
    AgeOutOfRange,
    NormEngine,
    NormNotFoundError,
    NormScore,
    apply_norms,
)

__all__ = [
    "AgeOutOfRange",
    "InvalidScore",
    "MissingScore",
    "NormEngine",
    "NormNotFoundError",
    "NormScore",
    "PERCENTILE_CEILING",
    "PERCENTILE_FLOOR",
    "SCALE_PARAMETERS",
    "UnsupportedScaleType",
    "apply_norms",
    "from_z",
    "is_missing",
    "percentile_to_z",
    "resolve_scale_type",
    "to_z",
    "z_to_percentile",
]
