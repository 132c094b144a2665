"""Table footnotes describing the score metrics present in a dataset."""

from collections.abc import Iterable

from neuroscore.core.models import ScaleType

SCORE_TYPE_NOTES: dict[ScaleType, str] = {
    ScaleType.STANDARD_SCORE: "Standard score: Mean = 100 [50th‰], SD ± 15 [16th‰, 84th‰]",
    ScaleType.SCALED_SCORE: "Scaled score: Mean = 10 [50th‰], SD ± 3 [16th‰, 84th‰]",
    ScaleType.T_SCORE: "T score: Mean = 50 [50th‰], SD ± 10 [16th‰, 84th‰]",
    ScaleType.Z_SCORE: "z-score: Mean = 0 [50th‰], SD ± 1 [16th‰, 84th‰]",
    ScaleType.PERCENTILE: (
        "Percentile rank: Percentage of normative sample scoring at or below this level"
    ),
}


def score_type_note(
    scale_types: Iterable[ScaleType],
    default: str | None = None,
) -> str:
    """Build the source note for a table from the scale types it shows.

    Args:
        scale_types: Scale types present in the table (duplicates allowed).
        default: Note to use when no scale types are present.

    Returns:
        The notes for the present types joined with "; ", in the fixed
        order of SCORE_TYPE_NOTES. Falls back to `default`, then to the
        standard score note.
    """
    present = set(scale_types)
    notes = [note for scale, note in SCORE_TYPE_NOTES.items() if scale in present]
    if notes:
        return "; ".join(notes)
    if default is not None:
        return default
    return SCORE_TYPE_NOTES[ScaleType.STANDARD_SCORE]
