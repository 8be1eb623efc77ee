"""Holder aggregation and concentration calculation module."""

from .aggregator import HolderAggregator
from .hhi import HHIEngine, classify_concentration

__all__ = ["HolderAggregator", "HHIEngine", "classify_concentration"]
