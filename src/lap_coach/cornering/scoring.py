"""Phase statistics and corner performance scoring."""

from __future__ import annotations

from collections.abc import Sequence

from lap_coach.config import CorneringConfig
from lap_coach.cornering.models import CornerPhase, CornerPhaseAnalysis
from lap_coach.telemetry.models import TelemetrySample


def smoothness(values: Sequence[float]) -> float:
    """Mean absolute change between consecutive values; 0.0 for fewer than 2."""
    if len(values) < 2:
        return 0.0
    return sum(abs(b - a) for a, b in zip(values, values[1:])) / (len(values) - 1)


def analyze_phase(phase: CornerPhase, samples: Sequence[TelemetrySample]) -> CornerPhaseAnalysis:
    """Summarise *samples* belonging to one corner phase."""
    if not samples:
        return CornerPhaseAnalysis(phase=phase)

    n = len(samples)
    speeds = [s.speed for s in samples]
    lat = [abs(s.lateral_g) for s in samples]
    throttle = [s.throttle for s in samples]
    brake = [s.brake for s in samples]

    return CornerPhaseAnalysis(
        phase=phase,
        sample_count=n,
        duration=samples[-1].timestamp - samples[0].timestamp,
        average_speed=sum(speeds) / n,
        max_speed=max(speeds),
        average_lateral_g=sum(lat) / n,
        max_lateral_g=max(lat),
        average_throttle=sum(throttle) / n,
        max_throttle=max(throttle),
        average_brake=sum(brake) / n,
        max_brake=max(brake),
        steering_smoothness=smoothness([s.steering for s in samples]),
        throttle_smoothness=smoothness(throttle),
        brake_smoothness=smoothness(brake),
    )


def score_corner(
    entry: CornerPhaseAnalysis,
    exit: CornerPhaseAnalysis,
    entry_speed: float,
    exit_speed: float,
    max_lateral_g: float,
    config: CorneringConfig | None = None,
) -> float:
    """Return a 0-100 score for a finished corner.

    Starts at 100, subtracts penalties for heavy entry braking, rough exit
    throttle, a low exit speed and excessive lateral G, and adds a bonus for
    each phase with smooth steering.  Rules that need a phase are skipped when
    that phase has no samples.
    """
    cfg = config or CorneringConfig()
    score = 100.0

    if entry.max_brake > cfg.heavy_entry_brake:
        score -= cfg.heavy_entry_brake_penalty
    if exit.throttle_smoothness > cfg.rough_exit_throttle:
        score -= cfg.rough_exit_throttle_penalty
    if entry.sample_count and exit.sample_count and exit_speed < cfg.exit_speed_ratio * entry_speed:
        score -= cfg.low_exit_speed_penalty
    if max_lateral_g > cfg.excessive_lateral_g:
        score -= cfg.excessive_lateral_g_penalty

    for phase in (entry, exit):
        if phase.sample_count and phase.steering_smoothness < cfg.smooth_steering:
            score += cfg.smooth_steering_bonus

    return max(0.0, min(100.0, score))
