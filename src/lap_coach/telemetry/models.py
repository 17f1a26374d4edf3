"""Telemetry data models."""

from __future__ import annotations

import bisect
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone


class ReferenceLapError(ValueError):
    """Raised when a reference lap is missing or has no usable samples."""


@dataclass(frozen=True)
class TelemetrySample:
    """A single timestamped telemetry sample.

    Pedal inputs are fractions, speed is km/h and distance is metres from
    the start/finish line.
    """

    timestamp: float
    """Capture time in seconds (monotonic or session-relative)."""

    distance: float
    """Distance from the start/finish line in metres."""

    speed: float
    """Vehicle speed in km/h."""

    throttle: float
    """Throttle pedal position [0.0, 1.0]."""

    brake: float
    """Brake pedal position [0.0, 1.0]."""

    steering: float
    """Normalised steering input [-1.0, 1.0]."""

    lateral_g: float
    """Lateral G-force (g). Positive = left-hand turn."""

    longitudinal_g: float
    """Longitudinal G-force (g). Positive = acceleration forward."""

    lap_number: int
    """Current lap number."""

    lap_time: float
    """Elapsed time in the current lap, seconds."""

    track_name: str = ""
    vehicle_name: str = ""

    track_condition: str = "dry"
    """Free-form surface condition label, compared case-insensitively."""

    is_valid_lap: bool = True
    """False once the lap has been invalidated (track limits, cuts)."""

    def is_finite(self) -> bool:
        """Return True if all float channels are finite (no NaN/Inf)."""
        floats = (
            self.timestamp,
            self.distance,
            self.speed,
            self.throttle,
            self.brake,
            self.steering,
            self.lateral_g,
            self.longitudinal_g,
            self.lap_time,
        )
        return all(math.isfinite(f) for f in floats)


@dataclass(frozen=True)
class LapPerformance:
    """Extreme and average channel values over one lap."""

    max_speed: float
    min_speed: float
    average_speed: float
    max_lateral_g: float
    max_longitudinal_g: float
    min_longitudinal_g: float
    max_throttle: float
    max_brake: float
    max_steering: float


@dataclass(frozen=True)
class ReferenceLap:
    """A recorded lap used as the comparison baseline.

    Build one with :meth:`from_samples`; the constructor does not reorder or
    validate the samples.
    """

    samples: tuple[TelemetrySample, ...]
    track_name: str
    vehicle_name: str
    lap_time: float
    lap_number: int = 0
    is_valid: bool = True
    recorded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    # Quality gate used by quality_issues()
    MIN_SAMPLES = 100
    MAX_LAP_TIME_S = 600.0
    MIN_SPEED_RANGE = 50.0

    @classmethod
    def from_samples(
        cls,
        samples,
        lap_time: float | None = None,
        recorded_at: datetime | None = None,
    ) -> ReferenceLap:
        """Build a reference lap from *samples* (any iterable of TelemetrySample).

        Track, vehicle and lap number are taken from the first sample; the lap
        time defaults to the last sample's ``lap_time``.

        Raises:
            ReferenceLapError: If *samples* is ``None`` or empty, or if any
                sample or the lap time is NaN or infinite.
        """
        if samples is None:
            raise ReferenceLapError("Reference lap samples must not be None")
        samples = tuple(samples)
        if not samples:
            raise ReferenceLapError("Reference lap has no samples")
        bad = sum(1 for s in samples if not s.is_finite())
        if bad:
            raise ReferenceLapError(f"Reference lap has {bad} non-finite sample(s)")
        if lap_time is not None and not math.isfinite(lap_time):
            raise ReferenceLapError(f"Reference lap time must be finite, got {lap_time}")

        first = samples[0]
        return cls(
            samples=samples,
            track_name=first.track_name,
            vehicle_name=first.vehicle_name,
            lap_time=samples[-1].lap_time if lap_time is None else lap_time,
            lap_number=first.lap_number,
            is_valid=all(s.is_valid_lap for s in samples),
            recorded_at=recorded_at or datetime.now(timezone.utc),
        )

    def performance(self) -> LapPerformance:
        """Return extreme/average channel values; all zeros for an empty lap."""
        if not self.samples:
            return LapPerformance(0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0)
        speeds = [s.speed for s in self.samples]
        lon = [s.longitudinal_g for s in self.samples]
        return LapPerformance(
            max_speed=max(speeds),
            min_speed=min(speeds),
            average_speed=sum(speeds) / len(speeds),
            max_lateral_g=max(abs(s.lateral_g) for s in self.samples),
            max_longitudinal_g=max(lon),
            min_longitudinal_g=min(lon),
            max_throttle=max(s.throttle for s in self.samples),
            max_brake=max(s.brake for s in self.samples),
            max_steering=max(abs(s.steering) for s in self.samples),
        )

    def quality_issues(self) -> list[str]:
        """Return human-readable reasons this lap is a poor reference (empty = OK)."""
        issues: list[str] = []
        if len(self.samples) < self.MIN_SAMPLES:
            issues.append(f"only {len(self.samples)} samples (need {self.MIN_SAMPLES})")
        if not 0.0 < self.lap_time <= self.MAX_LAP_TIME_S:
            issues.append(f"lap time {self.lap_time:.3f}s out of range")
        if not self.is_valid:
            issues.append("lap was invalidated")
        if self.samples:
            perf = self.performance()
            if perf.max_speed - perf.min_speed < self.MIN_SPEED_RANGE:
                issues.append("speed range too narrow")
        return issues

    def sector_times(self, boundaries: list[float]) -> list[float]:
        """Split the lap time at the given distances (metres, ascending).

        The elapsed time at a boundary is taken from the first sample at or
        past that distance. Returns ``len(boundaries) + 1`` sector times.
        """
        ordered = sorted(self.samples, key=lambda s: s.distance)
        distances = [s.distance for s in ordered]

        marks = [0.0]
        for boundary in boundaries:
            idx = bisect.bisect_left(distances, boundary)
            if idx >= len(ordered):
                marks.append(self.lap_time)
            else:
                marks.append(ordered[idx].lap_time)
        marks.append(self.lap_time)
        return [max(0.0, b - a) for a, b in zip(marks, marks[1:])]
