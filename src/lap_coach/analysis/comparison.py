"""RealTimeComparisonEngine: live samples against a reference lap, by distance."""

from __future__ import annotations

import bisect
import copy
import logging
import math

from lap_coach.analysis.models import (
    ComparisonResult,
    ImprovementArea,
    ImprovementType,
    SessionComparisonMetrics,
)
from lap_coach.config import ComparisonConfig
from lap_coach.hotpath.events import COMPARISON_PRODUCED, METRICS_UPDATED, EventBus
from lap_coach.telemetry.models import ReferenceLap, ReferenceLapError, TelemetrySample
from lap_coach.track.models import TrackLayout, TrackLayoutError

_logger = logging.getLogger(__name__)


class RealTimeComparisonEngine:
    """Aligns each live sample to the nearest reference sample by track distance.

    Every matched sample yields a :class:`ComparisonResult`, is appended to the
    current lap's result list and folded into the running
    :class:`SessionComparisonMetrics`.  Call :meth:`complete_lap` at the lap
    boundary to roll the lap into session statistics.

    Parameters
    ----------
    config:
        Thresholds; defaults to :class:`ComparisonConfig`.
    bus:
        Optional :class:`EventBus`; results go out on ``COMPARISON_PRODUCED``
        and metric snapshots on ``METRICS_UPDATED``.
    """

    def __init__(self, config: ComparisonConfig | None = None, bus: EventBus | None = None) -> None:
        self.config = config or ComparisonConfig()
        self._bus = bus
        self._reference: ReferenceLap | None = None
        self._layout: TrackLayout | None = None
        self._ref_samples: list[TelemetrySample] = []
        self._ref_distances: list[float] = []
        self._metrics = SessionComparisonMetrics()
        self._lap_results: list[ComparisonResult] = []

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def set_reference_lap(self, lap: ReferenceLap, layout: TrackLayout | None = None) -> None:
        """Install *lap* as the baseline and reset all session metrics.

        Raises:
            ReferenceLapError: If *lap* is None, has no samples, or carries a
                NaN or infinite value.
            TrackLayoutError: If *layout* is given but is not a TrackLayout.
        """
        if lap is None:
            raise ReferenceLapError("Reference lap must not be None")
        if not lap.samples:
            raise ReferenceLapError("Reference lap has no samples")
        if not math.isfinite(lap.lap_time) or not all(s.is_finite() for s in lap.samples):
            raise ReferenceLapError("Reference lap contains non-finite values")
        if layout is not None and not isinstance(layout, TrackLayout):
            raise TrackLayoutError(f"Expected TrackLayout, got {type(layout).__name__}")

        ordered = sorted(lap.samples, key=lambda s: s.distance)
        self._reference = lap
        self._layout = layout
        self._ref_samples = ordered
        self._ref_distances = [s.distance for s in ordered]
        self._metrics = SessionComparisonMetrics(reference_lap=lap)
        self._lap_results = []
        _logger.info(
            "Reference lap set: %s / %s, %.3fs, %d samples",
            lap.track_name,
            lap.vehicle_name,
            lap.lap_time,
            len(ordered),
        )

    def process_sample(self, sample: TelemetrySample) -> ComparisonResult | None:
        """Compare *sample* against the reference.

        Returns None when no reference is set, the sample has non-finite
        channels, or no reference sample lies within ``distance_tolerance``.
        """
        if self._reference is None:
            return None
        if not sample.is_finite():
            _logger.debug("Skipping non-finite sample at t=%s", sample.timestamp)
            return None

        ref = self._nearest_reference(sample.distance)
        gap = abs(ref.distance - sample.distance)
        if gap > self.config.distance_tolerance:
            return None

        speed_delta = sample.speed - ref.speed
        throttle_delta = (sample.throttle - ref.throttle) * 100.0
        brake_delta = (sample.brake - ref.brake) * 100.0
        steering_delta = (sample.steering - ref.steering) * 100.0

        confidence = self._confidence(sample, ref, gap)
        areas = self._improvements(
            sample, ref, speed_delta, throttle_delta, brake_delta, steering_delta
        )
        result = ComparisonResult(
            distance=sample.distance,
            reference_distance=ref.distance,
            time_delta=sample.lap_time - ref.lap_time,
            speed_delta=speed_delta,
            throttle_delta=throttle_delta,
            brake_delta=brake_delta,
            steering_delta=steering_delta,
            lateral_g_delta=sample.lateral_g - ref.lateral_g,
            longitudinal_g_delta=sample.longitudinal_g - ref.longitudinal_g,
            segment=self._layout.segment_at(sample.distance) if self._layout else None,
            confidence=confidence,
            low_confidence=confidence < self.config.minimum_confidence,
            improvement_areas=tuple(areas),
        )

        self._lap_results.append(result)
        self._update_metrics(result)
        self._publish(COMPARISON_PRODUCED, result)
        self._publish_metrics()
        return result

    def complete_lap(self, lap_time: float) -> float | None:
        """Roll the current lap into session statistics and start a new lap.

        Returns:
            The lap delta versus the reference (positive = slower), or None if
            no reference lap is set.
        """
        if self._reference is None:
            return None

        metrics = self._metrics
        lap_delta = lap_time - self._reference.lap_time
        stats = metrics.session_stats
        stats.record_lap(lap_delta, self.config.trend_window)
        stats.total_potential_gain += sum(
            area.potential_gain for r in self._lap_results for area in r.improvement_areas
        )

        by_segment: dict[int, list[float]] = {}
        for r in self._lap_results:
            if r.segment is not None:
                by_segment.setdefault(r.segment.number, []).append(r.time_delta)

        metrics.segment_deltas = {num: sum(d) / len(d) for num, d in sorted(by_segment.items())}
        for num, avg in metrics.segment_deltas.items():
            best = metrics.best_segment_deltas.get(num)
            worst = metrics.worst_segment_deltas.get(num)
            metrics.best_segment_deltas[num] = avg if best is None else min(best, avg)
            metrics.worst_segment_deltas[num] = avg if worst is None else max(worst, avg)

        metrics.current_lap_delta = lap_delta
        metrics.consistency_rating = metrics.calculate_consistency_rating()
        metrics.performance_rating = metrics.calculate_performance_rating()
        metrics.theoretical_best_lap_time = self._reference.lap_time + sum(
            metrics.best_segment_deltas.values()
        )
        metrics.historical_improvements.extend(metrics.active_improvements)
        metrics.active_improvements = []
        self._lap_results = []

        _logger.info(
            "Lap %d complete: %.3fs (delta %+.3fs, consistency %.1f)",
            stats.laps_completed,
            lap_time,
            lap_delta,
            metrics.consistency_rating,
        )
        self._publish_metrics()
        return lap_delta

    @property
    def reference_lap(self) -> ReferenceLap | None:
        return self._reference

    @property
    def layout(self) -> TrackLayout | None:
        return self._layout

    @property
    def metrics(self) -> SessionComparisonMetrics:
        """Deep copy of the running metrics."""
        return self._snapshot()

    @property
    def current_lap_comparisons(self) -> list[ComparisonResult]:
        """Copy of the results recorded since the last lap completion."""
        return list(self._lap_results)

    def top_improvements(self, count: int = 3) -> list[ImprovementArea]:
        return self._metrics.top_improvements(count)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _nearest_reference(self, distance: float) -> TelemetrySample:
        """Binary-search the closest reference sample; ties go to the earlier one."""
        idx = bisect.bisect_left(self._ref_distances, distance)
        if idx == 0:
            return self._ref_samples[0]
        if idx >= len(self._ref_samples):
            return self._ref_samples[-1]
        before = self._ref_samples[idx - 1]
        after = self._ref_samples[idx]
        if after.distance - distance < distance - before.distance:
            return after
        return before

    def _confidence(self, sample: TelemetrySample, ref: TelemetrySample, gap: float) -> float:
        cfg = self.config
        confidence = 100.0 - (gap / cfg.distance_tolerance) * cfg.distance_penalty
        if abs(sample.speed - ref.speed) > cfg.speed_mismatch_kmh:
            confidence -= cfg.speed_mismatch_penalty
        if sample.track_condition.casefold() != ref.track_condition.casefold():
            confidence -= cfg.condition_mismatch_penalty
        return max(0.0, min(100.0, confidence))

    def _improvements(
        self,
        sample: TelemetrySample,
        ref: TelemetrySample,
        speed_delta: float,
        throttle_delta: float,
        brake_delta: float,
        steering_delta: float,
    ) -> list[ImprovementArea]:
        cfg = self.config
        d = sample.distance
        areas: list[ImprovementArea] = []

        if ref.speed > 0:
            deficit_pct = -speed_delta / ref.speed * 100.0
            if deficit_pct > cfg.corner_speed_deficit_pct:
                areas.append(
                    ImprovementArea(
                        category=ImprovementType.CORNER_SPEED,
                        severity=min(100.0, deficit_pct),
                        potential_gain=self._estimate_gain(deficit_pct, cfg.corner_speed_impact),
                        distance_range=(d - cfg.corner_speed_range, d + cfg.corner_speed_range),
                        message=f"Carry {-speed_delta:.1f} km/h more speed through this section",
                    )
                )

        if brake_delta > cfg.brake_excess_pct:
            areas.append(
                ImprovementArea(
                    category=ImprovementType.BRAKING_PRESSURE,
                    severity=min(100.0, brake_delta),
                    potential_gain=self._estimate_gain(brake_delta, cfg.brake_pressure_impact),
                    distance_range=(d - cfg.brake_pressure_range, d + cfg.brake_pressure_range),
                    message=f"Reduce braking pressure by {brake_delta:.1f}%",
                )
            )

        if -throttle_delta > cfg.throttle_deficit_pct:
            areas.append(
                ImprovementArea(
                    category=ImprovementType.THROTTLE_APPLICATION,
                    severity=min(100.0, -throttle_delta),
                    potential_gain=self._estimate_gain(-throttle_delta, cfg.throttle_impact),
                    distance_range=(d - cfg.throttle_range, d + cfg.throttle_range),
                    message=f"Apply {-throttle_delta:.1f}% more throttle",
                )
            )

        if abs(steering_delta) > cfg.steering_excess_pct:
            areas.append(
                ImprovementArea(
                    category=ImprovementType.STEERING_SMOOTHING,
                    severity=min(100.0, abs(steering_delta)),
                    potential_gain=self._estimate_gain(abs(steering_delta), cfg.steering_impact),
                    distance_range=(d - cfg.steering_range, d + cfg.steering_range),
                    message="Smooth steering inputs for better stability",
                )
            )

        return areas

    def _estimate_gain(self, magnitude: float, impact: float) -> float:
        return (magnitude / 100.0) * (impact / 100.0) * self.config.max_gain_per_area

    def _update_metrics(self, result: ComparisonResult) -> None:
        metrics = self._metrics
        metrics.samples_compared += 1
        metrics.current_lap_delta = result.time_delta

        horizon = result.distance - self.config.active_improvement_window
        metrics.active_improvements = [
            a for a in metrics.active_improvements + list(result.improvement_areas)
            if a.distance_range[1] >= horizon
        ]

        seg = result.segment
        if seg is None:
            return
        threshold = self.config.segment_delta_threshold
        if result.time_delta > threshold:
            if all(s.id != seg.id for s in metrics.problematic_segments):
                metrics.problematic_segments.append(seg)
        elif result.time_delta < -threshold:
            if all(s.id != seg.id for s in metrics.strong_segments):
                metrics.strong_segments.append(seg)

    def _snapshot(self) -> SessionComparisonMetrics:
        # The reference lap is frozen, so the copy may share it.
        memo = {id(self._reference): self._reference} if self._reference is not None else {}
        return copy.deepcopy(self._metrics, memo)

    def _publish(self, topic: str, payload) -> None:
        if self._bus is not None:
            self._bus.publish(topic, payload)

    def _publish_metrics(self) -> None:
        if self._bus is not None and self._bus.has_subscribers(METRICS_UPDATED):
            self._bus.publish(METRICS_UPDATED, self._snapshot())
