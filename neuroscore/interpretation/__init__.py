"""Interpretation layer for range labels and table notes."""

from neuroscore.interpretation.classifier import CUT_TABLES, MissingScore, RangeClassifier
from neuroscore.interpretation.notes import SCORE_TYPE_NOTES, score_type_note

__all__ = [
    "CUT_TABLES",
    "MissingScore",
    "RangeClassifier",
    "SCORE_TYPE_NOTES",
    "score_type_note",
]
