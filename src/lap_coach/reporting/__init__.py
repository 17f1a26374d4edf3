"""Lap performance aggregation and recommendations."""

from lap_coach.reporting.aggregator import PerformanceAggregator
from lap_coach.reporting.models import (
    ImprovementTypeAnalysis,
    InputAnalysis,
    PerformanceSummary,
    SegmentConsistency,
)
from lap_coach.reporting.recommendations import build_recommendations

__all__ = [
    "ImprovementTypeAnalysis",
    "InputAnalysis",
    "PerformanceAggregator",
    "PerformanceSummary",
    "SegmentConsistency",
    "build_recommendations",
]
