"""neuroscore: Score normalization and domain aggregation for neuropsychological reports."""

__version__ = "0.1.0"
