"""Aggregation of score records over the cognitive taxonomy."""

from neuroscore.aggregation.aggregator import DomainAggregator, aggregate

__all__ = ["DomainAggregator", "aggregate"]
