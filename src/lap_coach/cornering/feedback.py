"""Rule-based coaching feedback for the cornering engine."""

from __future__ import annotations

from collections.abc import Sequence

from lap_coach.config import CorneringConfig
from lap_coach.cornering.models import (
    CoachingFeedback,
    Corner,
    CornerPhase,
    CornerState,
    FeedbackCategory,
    FeedbackPriority,
    FeedbackType,
)
from lap_coach.telemetry.models import TelemetrySample


def _max_step(values: Sequence[float]) -> float:
    return max((abs(b - a) for a, b in zip(values, values[1:])), default=0.0)


def _mean_step(values: Sequence[float]) -> float:
    if len(values) < 2:
        return 0.0
    return sum(abs(b - a) for a, b in zip(values, values[1:])) / (len(values) - 1)


def realtime_feedback(
    recent: Sequence[TelemetrySample],
    state: CornerState,
    timestamp: float,
    config: CorneringConfig | None = None,
) -> list[CoachingFeedback]:
    """Feedback for the current moment in a corner.

    *recent* is the trailing sample window (oldest first); input heuristics
    only run once it holds ``feedback_min_samples``.  The phase rules read
    *state*, which is the live classification while in a corner and the
    strongest state of the corner just left otherwise.
    """
    cfg = config or CorneringConfig()
    out: list[CoachingFeedback] = []

    def add(priority, category, message, kind) -> None:
        out.append(CoachingFeedback(priority, category, message, kind, timestamp))

    window = list(recent)[-cfg.feedback_window:]
    if len(window) >= cfg.feedback_min_samples:
        if max(s.brake for s in window) > cfg.harsh_brake:
            add(
                FeedbackPriority.HIGH,
                FeedbackCategory.BRAKING,
                "Harsh braking detected - try to brake more gradually",
                FeedbackType.WARNING,
            )
        if _max_step([s.steering for s in window]) > cfg.abrupt_steering_delta:
            add(
                FeedbackPriority.MEDIUM,
                FeedbackCategory.STEERING,
                "Steering inputs are too abrupt - try to be smoother",
                FeedbackType.SUGGESTION,
            )
        throttle = [s.throttle for s in window]
        if (
            _max_step(throttle) > cfg.sudden_throttle_delta
            or _mean_step(throttle) > cfg.sudden_throttle_delta
        ):
            add(
                FeedbackPriority.MEDIUM,
                FeedbackCategory.THROTTLE,
                "Throttle application is too sudden - try to be more progressive",
                FeedbackType.SUGGESTION,
            )

    phase = state.phase
    if phase is CornerPhase.ENTRY and state.lateral_g > cfg.entry_overload_lateral_g:
        add(
            FeedbackPriority.HIGH,
            FeedbackCategory.CORNERING,
            "Too much lateral G on entry - brake earlier or turn in more gradually",
            FeedbackType.WARNING,
        )
    elif phase is CornerPhase.APEX and state.speed > cfg.apex_overspeed:
        add(
            FeedbackPriority.MEDIUM,
            FeedbackCategory.CORNERING,
            "Apex speed seems high - try braking earlier",
            FeedbackType.SUGGESTION,
        )
    elif phase is CornerPhase.EXIT:
        add(
            FeedbackPriority.LOW,
            FeedbackCategory.CORNERING,
            "Focus on smooth throttle application for corner exit",
            FeedbackType.TIP,
        )

    return out


def corner_feedback(
    corner: Corner, timestamp: float, config: CorneringConfig | None = None
) -> list[CoachingFeedback]:
    """Feedback summarising a just-finalized corner."""
    cfg = config or CorneringConfig()
    out: list[CoachingFeedback] = []

    if corner.entry.max_brake > cfg.heavy_entry_brake:
        out.append(
            CoachingFeedback(
                FeedbackPriority.MEDIUM,
                FeedbackCategory.BRAKING,
                "Heavy braking in corner entry - try braking earlier and lighter",
                FeedbackType.SUGGESTION,
                timestamp,
            )
        )
    if corner.exit.throttle_smoothness > cfg.rough_exit_throttle:
        out.append(
            CoachingFeedback(
                FeedbackPriority.MEDIUM,
                FeedbackCategory.THROTTLE,
                "Throttle application could be smoother on corner exit",
                FeedbackType.SUGGESTION,
                timestamp,
            )
        )
    if (
        corner.entry.sample_count
        and corner.exit.sample_count
        and corner.exit_speed < cfg.exit_speed_ratio * corner.entry_speed
    ):
        out.append(
            CoachingFeedback(
                FeedbackPriority.HIGH,
                FeedbackCategory.CORNERING,
                "Low exit speed - try carrying more minimum speed through the corner",
                FeedbackType.WARNING,
                timestamp,
            )
        )
    return out
