"""Range classifier for descriptive performance labels.

Classifies scores on their native scale using the published
scale-specific cut tables. Scores are never converted to z and
reclassified, since the native tables are not symmetric in
percentile terms.
"""

from neuroscore.core.models import RangeLabel, ScaleType
from neuroscore.scoring.conversion import MissingScore, is_missing, resolve_scale_type


# Values are rounded to this many decimals before comparison so that
# floating-point means land on the intended side of a boundary.
BOUNDARY_PRECISION = 9

# Lower bound of each band, highest band first. A value belongs to the
# first band whose lower bound it reaches.
CUT_TABLES: dict[ScaleType, list[tuple[float, RangeLabel]]] = {
    ScaleType.STANDARD_SCORE: [
        (130, RangeLabel.EXCEPTIONALLY_HIGH),
        (120, RangeLabel.ABOVE_AVERAGE),
        (110, RangeLabel.HIGH_AVERAGE),
        (90, RangeLabel.AVERAGE),
        (80, RangeLabel.LOW_AVERAGE),
        (70, RangeLabel.BELOW_AVERAGE),
    ],
    ScaleType.T_SCORE: [
        (70, RangeLabel.EXCEPTIONALLY_HIGH),
        (63, RangeLabel.ABOVE_AVERAGE),
        (57, RangeLabel.HIGH_AVERAGE),
        (44, RangeLabel.AVERAGE),
        (37, RangeLabel.LOW_AVERAGE),
        (30, RangeLabel.BELOW_AVERAGE),
    ],
    ScaleType.SCALED_SCORE: [
        (16, RangeLabel.EXCEPTIONALLY_HIGH),
        (14, RangeLabel.ABOVE_AVERAGE),
        (12, RangeLabel.HIGH_AVERAGE),
        (9, RangeLabel.AVERAGE),
        (7, RangeLabel.LOW_AVERAGE),
        (4, RangeLabel.BELOW_AVERAGE),
    ],
    ScaleType.Z_SCORE: [
        (2.0, RangeLabel.EXCEPTIONALLY_HIGH),
        (1.3, RangeLabel.ABOVE_AVERAGE),
        (0.7, RangeLabel.HIGH_AVERAGE),
        (-0.7, RangeLabel.AVERAGE),
        (-1.3, RangeLabel.LOW_AVERAGE),
        (-2.0, RangeLabel.BELOW_AVERAGE),
    ],
    ScaleType.PERCENTILE: [
        (98, RangeLabel.EXCEPTIONALLY_HIGH),
        (91, RangeLabel.ABOVE_AVERAGE),
        (75, RangeLabel.HIGH_AVERAGE),
        (25, RangeLabel.AVERAGE),
        (9, RangeLabel.LOW_AVERAGE),
        (2, RangeLabel.BELOW_AVERAGE),
    ],
}


class RangeClassifier:
    """Maps native scores to one of the seven ordinal range labels.

    The cut tables are fixed reference data; the classifier holds no
    state and can be shared freely.
    """

    def classify(self, value: float | None, scale_type: ScaleType | str) -> RangeLabel:
        """Classify a score on its native scale.

        Args:
            value: The score on its native scale.
            scale_type: The native scale of the score.

        Returns:
            The RangeLabel whose band contains the value.

        Raises:
            MissingScore: If the value is None or NaN.
            UnsupportedScaleType: If the scale type has no cut table.
        """
        scale = resolve_scale_type(scale_type)
        if is_missing(value):
            raise MissingScore(f"Cannot classify a missing {scale.value} value")

        value = round(float(value), BOUNDARY_PRECISION)
        for lower_bound, label in CUT_TABLES[scale]:
            if value >= lower_bound:
                return label
        return RangeLabel.EXCEPTIONALLY_LOW

    def classify_z(self, z: float | None) -> RangeLabel:
        """Classify a value in z-space."""
        return self.classify(z, ScaleType.Z_SCORE)

    def get_bands(self, scale_type: ScaleType | str) -> list[tuple[float | None, RangeLabel]]:
        """List (lower_bound, label) bands for a scale, lowest band first.

        The lowest band has no lower bound.
        """
        scale = resolve_scale_type(scale_type)
        bands: list[tuple[float | None, RangeLabel]] = [(None, RangeLabel.EXCEPTIONALLY_LOW)]
        bands.extend(reversed(CUT_TABLES[scale]))
        return bands
