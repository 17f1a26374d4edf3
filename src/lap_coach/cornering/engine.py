"""CorneringAnalysisEngine: corner phases and completed corners from a sample window."""

from __future__ import annotations

import logging
from collections import deque

from lap_coach.config import CorneringConfig
from lap_coach.cornering.feedback import corner_feedback, realtime_feedback
from lap_coach.cornering.models import (
    Corner,
    CornerDirection,
    CorneringAnalysisResult,
    CornerPhase,
    CornerState,
)
from lap_coach.cornering.scoring import analyze_phase, score_corner
from lap_coach.hotpath.events import CORNER_COMPLETED, EventBus
from lap_coach.telemetry.models import TelemetrySample

_logger = logging.getLogger(__name__)


class CorneringAnalysisEngine:
    """Classifies corner phases per sample and finalizes each completed corner once.

    Samples are kept in a bounded FIFO buffer.  A corner ends when the mean
    absolute lateral G of the most recent ``completion_window`` samples drops
    below ``completion_ratio`` times the mean of the window before it.  The
    high-G span since the previous finalization then becomes one
    :class:`Corner`, and the finalization mark moves past it.

    Parameters
    ----------
    config:
        Thresholds; defaults to :class:`CorneringConfig`.
    bus:
        Optional :class:`EventBus`; finalized corners go out on
        ``CORNER_COMPLETED``.
    """

    def __init__(self, config: CorneringConfig | None = None, bus: EventBus | None = None) -> None:
        self.config = config or CorneringConfig()
        self._bus = bus
        self._buffer: deque[TelemetrySample] = deque(maxlen=self.config.buffer_capacity)
        self._sample_count = 0  # samples ever buffered
        self._mark = 0          # sample_count at the last finalization
        self._sticky: CornerState | None = None
        self._corners: list[Corner] = []

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def process_sample(self, sample: TelemetrySample) -> CorneringAnalysisResult:
        """Buffer *sample* and return the current cornering picture."""
        if not sample.is_finite():
            _logger.debug("Skipping non-finite sample at t=%s", sample.timestamp)
            return self._result_from_sticky(sample)

        self._buffer.append(sample)
        self._sample_count += 1

        if len(self._buffer) < self.config.min_buffered_samples:
            return CorneringAnalysisResult(
                is_in_corner=False,
                phase=CornerPhase.UNKNOWN,
                direction=CornerDirection.STRAIGHT,
                lateral_g=abs(sample.lateral_g),
                speed=sample.speed,
                timestamp=sample.timestamp,
            )

        state = self.classify(sample)
        sticky = self._sticky
        if state.is_in_corner and (
            sticky is None or not sticky.is_in_corner or state.lateral_g > sticky.lateral_g
        ):
            self._sticky = sticky = state

        if state.is_in_corner:
            active = state
        elif sticky is not None and sticky.is_in_corner:
            active = sticky
        else:
            active = None

        feedback = []
        if active is not None:
            in_corner, phase, direction = True, active.phase, active.direction
            feedback.extend(realtime_feedback(self._buffer, active, sample.timestamp, self.config))
        else:
            in_corner, phase, direction = False, CornerPhase.UNKNOWN, CornerDirection.STRAIGHT

        completed = self._check_completion()
        if completed is not None:
            feedback.extend(corner_feedback(completed, sample.timestamp, self.config))

        return CorneringAnalysisResult(
            is_in_corner=in_corner,
            phase=phase,
            direction=direction,
            lateral_g=state.lateral_g,
            speed=sample.speed,
            timestamp=sample.timestamp,
            completed_corner=completed,
            feedback=tuple(feedback),
        )

    def classify(self, sample: TelemetrySample) -> CornerState:
        """Classify a single sample without touching engine state."""
        cfg = self.config
        g = sample.lateral_g
        abs_g = abs(g)
        in_corner = abs_g > cfg.entry_lateral_g and sample.speed > cfg.min_corner_speed

        if g > cfg.entry_lateral_g:
            direction = CornerDirection.LEFT
        elif g < -cfg.entry_lateral_g:
            direction = CornerDirection.RIGHT
        else:
            direction = CornerDirection.STRAIGHT

        if not in_corner:
            phase = CornerPhase.UNKNOWN
        elif abs_g > cfg.apex_lateral_g:
            phase = CornerPhase.APEX
        elif sample.brake > cfg.entry_brake or sample.speed < cfg.entry_speed:
            phase = CornerPhase.ENTRY
        else:
            phase = CornerPhase.EXIT

        return CornerState(
            is_in_corner=in_corner,
            direction=direction,
            phase=phase,
            lateral_g=abs_g,
            speed=sample.speed,
        )

    @property
    def completed_corners(self) -> list[Corner]:
        return list(self._corners)

    @property
    def buffered_samples(self) -> int:
        return len(self._buffer)

    def reset(self) -> None:
        """Drop all buffered samples, sticky state and corner history."""
        self._buffer.clear()
        self._sample_count = 0
        self._mark = 0
        self._sticky = None
        self._corners = []

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _result_from_sticky(self, sample: TelemetrySample) -> CorneringAnalysisResult:
        sticky = self._sticky
        if sticky is not None and sticky.is_in_corner:
            return CorneringAnalysisResult(
                is_in_corner=True,
                phase=sticky.phase,
                direction=sticky.direction,
                lateral_g=sticky.lateral_g,
                speed=sticky.speed,
                timestamp=sample.timestamp,
            )
        return CorneringAnalysisResult(
            is_in_corner=False,
            phase=CornerPhase.UNKNOWN,
            direction=CornerDirection.STRAIGHT,
            lateral_g=0.0,
            speed=0.0,
            timestamp=sample.timestamp,
        )

    def _since_mark(self) -> list[TelemetrySample]:
        """Buffered samples that arrived after the last finalization."""
        first_index = self._sample_count - len(self._buffer)
        skip = max(0, self._mark - first_index)
        return list(self._buffer)[skip:]

    def _check_completion(self) -> Corner | None:
        cfg = self.config
        w = cfg.completion_window
        if self._sample_count - self._mark < 2 * w:
            return None

        tail = list(self._buffer)[-2 * w:]
        earlier = sum(abs(s.lateral_g) for s in tail[:w]) / w
        recent = sum(abs(s.lateral_g) for s in tail[w:]) / w
        if not (earlier > cfg.entry_lateral_g and recent < cfg.completion_ratio * earlier):
            return None

        window = self._since_mark()
        high = [i for i, s in enumerate(window) if abs(s.lateral_g) > cfg.entry_lateral_g]
        self._mark = self._sample_count
        self._sticky = None

        span = window[high[0]:high[-1] + 1] if high else []
        if len(span) < cfg.min_corner_samples:
            _logger.debug("Discarding corner window of %d samples", len(span))
            return None

        corner = self._finalize(span)
        self._corners.append(corner)
        _logger.debug(
            "Corner %d finalized: %s, max %.2fg, score %.0f",
            corner.number,
            corner.direction.value,
            corner.max_lateral_g,
            corner.performance_score,
        )
        if self._bus is not None:
            self._bus.publish(CORNER_COMPLETED, corner)
        return corner

    def _finalize(self, span: list[TelemetrySample]) -> Corner:
        apex_idx = max(range(len(span)), key=lambda i: abs(span[i].lateral_g))
        apex = span[apex_idx]
        entry_samples = span[:apex_idx]
        exit_samples = span[apex_idx + 1:]

        entry = analyze_phase(CornerPhase.ENTRY, entry_samples)
        exit = analyze_phase(CornerPhase.EXIT, exit_samples)
        entry_speed = entry_samples[0].speed if entry_samples else 0.0
        exit_speed = exit_samples[-1].speed if exit_samples else 0.0
        max_g = abs(apex.lateral_g)

        return Corner(
            number=len(self._corners) + 1,
            start_time=span[0].timestamp,
            end_time=span[-1].timestamp,
            start_distance=span[0].distance,
            end_distance=span[-1].distance,
            apex_distance=apex.distance,
            direction=CornerDirection.LEFT if apex.lateral_g > 0 else CornerDirection.RIGHT,
            entry_speed=entry_speed,
            apex_speed=apex.speed,
            exit_speed=exit_speed,
            max_lateral_g=max_g,
            duration=span[-1].timestamp - span[0].timestamp,
            entry=entry,
            exit=exit,
            performance_score=score_corner(entry, exit, entry_speed, exit_speed, max_g, self.config),
            samples=tuple(span),
        )
