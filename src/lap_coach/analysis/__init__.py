"""Real-time comparison against a reference lap."""

from lap_coach.analysis.comparison import RealTimeComparisonEngine
from lap_coach.analysis.models import (
    ComparisonResult,
    ImprovementArea,
    ImprovementType,
    SessionComparisonMetrics,
    SessionComparisonStats,
)

__all__ = [
    "ComparisonResult",
    "ImprovementArea",
    "ImprovementType",
    "RealTimeComparisonEngine",
    "SessionComparisonMetrics",
    "SessionComparisonStats",
]
