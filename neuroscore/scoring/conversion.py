"""Scale conversion between native score metrics and the z-score.

Every supported metric is a linear transform of z except percentile,
which maps through the standard normal distribution.
"""

import math

from scipy.stats import norm

from neuroscore.core.models import ScaleType

# (mean, sd) of each linear metric
SCALE_PARAMETERS: dict[ScaleType, tuple[float, float]] = {
    ScaleType.STANDARD_SCORE: (100.0, 15.0),
    ScaleType.T_SCORE: (50.0, 10.0),
    ScaleType.SCALED_SCORE: (10.0, 3.0),
    ScaleType.Z_SCORE: (0.0, 1.0),
}

# Reported "<1" and ">99" percentiles are clamped so z stays finite
PERCENTILE_FLOOR = 0.1
PERCENTILE_CEILING = 99.9


class UnsupportedScaleType(Exception):
    """Raised when a score's declared scale type has no conversion rule."""

    def __init__(self, scale_type: object) -> None:
        self.scale_type = scale_type
        super().__init__(f"Unsupported scale type: {scale_type!r}")


class MissingScore(Exception):
    """Raised when a missing score is classified or normed."""

    pass


class InvalidScore(Exception):
    """Raised when a score value cannot exist on its declared scale."""

    pass


def is_missing(value: float | None) -> bool:
    """Check whether a score value is absent (None or NaN)."""
    return value is None or (isinstance(value, float) and math.isnan(value))


def resolve_scale_type(scale_type: ScaleType | str) -> ScaleType:
    """Resolve a declared scale type to a supported ScaleType.

    Args:
        scale_type: A ScaleType or its string value (e.g., 't_score').

    Returns:
        The matching ScaleType.

    Raises:
        UnsupportedScaleType: If the type has no conversion rule.
    """
    if isinstance(scale_type, ScaleType):
        return scale_type
    try:
        return ScaleType(str(scale_type).strip().lower())
    except ValueError as e:
        raise UnsupportedScaleType(scale_type) from e


def to_z(value: float | None, scale_type: ScaleType | str) -> float | None:
    """Convert a native score to a z-score.

    Args:
        value: The score on its native scale. None or NaN means missing.
        scale_type: The native scale of the score.

    Returns:
        The z-score, or None if the value is missing.

    Raises:
        UnsupportedScaleType: If the scale type is not supported.
        InvalidScore: If a percentile lies outside 0-100.
    """
    scale = resolve_scale_type(scale_type)
    if is_missing(value):
        return None

    if scale == ScaleType.PERCENTILE:
        return percentile_to_z(value)

    mean, sd = SCALE_PARAMETERS[scale]
    return (value - mean) / sd


def from_z(z: float | None, scale_type: ScaleType | str) -> float | None:
    """Express a z-score on another scale."""
    scale = resolve_scale_type(scale_type)
    if is_missing(z):
        return None

    if scale == ScaleType.PERCENTILE:
        return z_to_percentile(z)

    mean, sd = SCALE_PARAMETERS[scale]
    return mean + z * sd


def z_to_percentile(z: float | None) -> float | None:
    """Convert a z-score to a percentile (0-100) via the normal CDF."""
    if is_missing(z):
        return None
    return float(norm.cdf(z) * 100.0)


def percentile_to_z(percentile: float | None) -> float | None:
    """Convert a percentile (0-100) to a z-score via the inverse normal CDF.

    Raises:
        InvalidScore: If the percentile is outside 0-100.
    """
    if is_missing(percentile):
        return None
    if not 0.0 <= percentile <= 100.0:
        raise InvalidScore(f"Percentile {percentile} out of range [0, 100]")

    clamped = min(max(percentile, PERCENTILE_FLOOR), PERCENTILE_CEILING)
    return float(norm.ppf(clamped / 100.0))
