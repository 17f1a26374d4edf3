"""Telemetry samples and reference laps.

Public API
----------
TelemetrySample     - single timestamped telemetry sample
ReferenceLap        - recorded baseline lap
LapPerformance      - per-lap channel extremes
ReferenceLapError   - raised on a missing or empty reference lap
"""

from lap_coach.telemetry.models import (
    LapPerformance,
    ReferenceLap,
    ReferenceLapError,
    TelemetrySample,
)

__all__ = [
    "LapPerformance",
    "ReferenceLap",
    "ReferenceLapError",
    "TelemetrySample",
]
