"""Data models for reference-lap comparison."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from lap_coach.telemetry.models import ReferenceLap
from lap_coach.track.models import TrackSegment


class ImprovementType(str, Enum):
    BRAKING_POINT = "braking_point"
    BRAKING_PRESSURE = "braking_pressure"
    THROTTLE_APPLICATION = "throttle_application"
    THROTTLE_MODULATION = "throttle_modulation"
    CORNERING_LINE = "cornering_line"
    STEERING_SMOOTHING = "steering_smoothing"
    GEAR_TIMING = "gear_timing"
    CORNER_SPEED = "corner_speed"
    CORNER_EXIT = "corner_exit"
    CONSISTENCY = "consistency"

    @property
    def label(self) -> str:
        """Title-cased name for user-facing text, e.g. ``'Corner Speed'``."""
        return self.value.replace("_", " ").title()


@dataclass(frozen=True)
class ImprovementArea:
    """One suggested improvement attached to a comparison result."""

    category: ImprovementType
    severity: float
    """Severity score [0, 100]."""

    potential_gain: float
    """Estimated lap-time gain in seconds."""

    distance_range: tuple[float, float]
    """(start, end) distance in metres the suggestion applies to."""

    message: str


@dataclass(frozen=True)
class ComparisonResult:
    """Live sample compared against its nearest reference sample.

    Input deltas (throttle, brake, steering) are percentage points: the
    difference of the [0, 1] pedal fractions scaled by 100.  Positive
    ``time_delta`` means the driver is behind the reference.
    """

    distance: float
    reference_distance: float
    time_delta: float
    speed_delta: float
    throttle_delta: float
    brake_delta: float
    steering_delta: float
    lateral_g_delta: float = 0.0
    longitudinal_g_delta: float = 0.0
    segment: TrackSegment | None = None
    confidence: float = 100.0
    low_confidence: bool = False
    improvement_areas: tuple[ImprovementArea, ...] = ()


@dataclass
class SessionComparisonStats:
    """Lap-over-lap statistics for one comparison session."""

    laps_completed: int = 0
    best_lap_delta: float = 0.0
    worst_lap_delta: float = 0.0
    average_lap_delta: float = 0.0
    improvement_trend: float = 0.0
    """Overall average minus recent average; positive means getting faster."""

    total_potential_gain: float = 0.0
    lap_deltas: list[float] = field(default_factory=list)
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def record_lap(self, lap_delta: float, recent_laps: int = 3) -> None:
        self.lap_deltas.append(lap_delta)
        self.laps_completed += 1
        if self.laps_completed == 1:
            self.best_lap_delta = lap_delta
            self.worst_lap_delta = lap_delta
        else:
            self.best_lap_delta = min(self.best_lap_delta, lap_delta)
            self.worst_lap_delta = max(self.worst_lap_delta, lap_delta)
        self.average_lap_delta = sum(self.lap_deltas) / len(self.lap_deltas)

        recent = self.lap_deltas[-recent_laps:]
        self.improvement_trend = self.average_lap_delta - sum(recent) / len(recent)


@dataclass
class SessionComparisonMetrics:
    """Running comparison metrics, owned and mutated by the comparison engine.

    Consumers only ever see deep copies of this object.
    """

    reference_lap: ReferenceLap | None = None
    current_lap_delta: float = 0.0
    segment_deltas: dict[int, float] = field(default_factory=dict)
    best_segment_deltas: dict[int, float] = field(default_factory=dict)
    worst_segment_deltas: dict[int, float] = field(default_factory=dict)
    consistency_rating: float = 0.0
    performance_rating: float = 0.0
    theoretical_best_lap_time: float = 0.0
    active_improvements: list[ImprovementArea] = field(default_factory=list)
    historical_improvements: list[ImprovementArea] = field(default_factory=list)
    problematic_segments: list[TrackSegment] = field(default_factory=list)
    strong_segments: list[TrackSegment] = field(default_factory=list)
    session_stats: SessionComparisonStats = field(default_factory=SessionComparisonStats)
    samples_compared: int = 0

    def calculate_consistency_rating(self, std_scale: float = 2.0) -> float:
        """Return 0-100 consistency from the spread of per-segment average deltas."""
        deltas = list(self.segment_deltas.values())
        if len(deltas) < 2:
            return 100.0
        mean = sum(deltas) / len(deltas)
        std = math.sqrt(sum((d - mean) ** 2 for d in deltas) / len(deltas))
        return max(0.0, (std_scale - std) / std_scale) * 100.0

    def calculate_performance_rating(self) -> float:
        """Return 0-100 rating: 100 means matching the reference lap time."""
        if self.reference_lap is None or self.reference_lap.lap_time <= 0:
            return 0.0
        ref_time = self.reference_lap.lap_time
        rating = (ref_time - sum(self.segment_deltas.values())) / ref_time * 100.0
        return max(0.0, min(100.0, rating))

    def top_improvements(self, count: int = 3) -> list[ImprovementArea]:
        """Return the *count* active improvements with the largest potential gain."""
        ranked = sorted(self.active_improvements, key=lambda a: a.potential_gain, reverse=True)
        return ranked[:count]
