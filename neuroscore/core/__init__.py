"""Core shared models for neuroscore.

Contains the score, hierarchy and aggregate models shared by the
conversion, classification, aggregation and pipeline layers.
"""

from neuroscore.core.models import (
    FLAG_LEVELS,
    HIERARCHY_LEVELS,
    VALIDITY_TEST_TYPES,
    AggregateLevel,
    AggregateSummary,
    HierarchyAssignment,
    RangeLabel,
    ScaleType,
    ScoreRecord,
    TestScale,
    TestType,
)

__all__ = [
    "AggregateLevel",
    "AggregateSummary",
    "FLAG_LEVELS",
    "HIERARCHY_LEVELS",
    "HierarchyAssignment",
    "RangeLabel",
    "ScaleType",
    "ScoreRecord",
    "TestScale",
    "TestType",
    "VALIDITY_TEST_TYPES",
]
