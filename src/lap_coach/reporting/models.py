"""Reporting data models."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass

from lap_coach.analysis.models import ImprovementType


@dataclass(frozen=True)
class InputAnalysis:
    """Summary of one driver-input channel's deltas, in percentage points."""

    average_delta: float = 0.0
    max_deficit: float = 0.0
    max_excess: float = 0.0
    problematic_sections: int = 0


@dataclass(frozen=True)
class ImprovementTypeAnalysis:
    """All improvement areas of one category rolled up."""

    category: ImprovementType
    frequency: int
    average_severity: float
    max_severity: float
    total_potential_gain: float
    affected_sections: int
    """Number of distinct distance ranges flagged."""


@dataclass(frozen=True)
class SegmentConsistency:
    """Spread of time deltas within one track segment."""

    segment_id: str
    sample_count: int
    mean_delta: float
    std_delta: float
    consistent: bool


@dataclass(frozen=True)
class PerformanceSummary:
    """Aggregated view of one lap's comparison results.

    ``improvement_areas`` is sorted by ``total_potential_gain`` descending.
    """

    total_comparisons: int = 0
    average_time_delta: float = 0.0
    max_time_delta: float = 0.0
    min_time_delta: float = 0.0
    total_time_lost: float = 0.0
    total_time_gained: float = 0.0
    average_speed_delta: float = 0.0
    max_speed_deficit: float = 0.0
    max_speed_advantage: float = 0.0
    throttle: InputAnalysis = InputAnalysis()
    brake: InputAnalysis = InputAnalysis()
    steering: InputAnalysis = InputAnalysis()
    improvement_areas: tuple[ImprovementTypeAnalysis, ...] = ()
    segment_consistency: tuple[SegmentConsistency, ...] = ()
    consistency_score: float = 0.0
    consistent_sections: int = 0
    inconsistent_sections: int = 0
    recommendations: tuple[str, ...] = ()

    @classmethod
    def empty(cls) -> PerformanceSummary:
        return cls()

    def to_dict(self) -> dict:
        """Return a JSON-serializable dict (recursive via :func:`dataclasses.asdict`)."""
        return dataclasses.asdict(self)
