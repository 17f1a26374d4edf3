"""PerformanceAggregator: batch summary of one lap's comparison results."""

from __future__ import annotations

import math

from lap_coach.analysis.models import ComparisonResult, ImprovementType
from lap_coach.config import AggregatorConfig
from lap_coach.reporting.models import (
    ImprovementTypeAnalysis,
    InputAnalysis,
    PerformanceSummary,
    SegmentConsistency,
)
from lap_coach.reporting.recommendations import build_recommendations


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _std(values: list[float]) -> float:
    mean = _mean(values)
    return math.sqrt(sum((v - mean) ** 2 for v in values) / len(values))


class PerformanceAggregator:
    """Turn a list of :class:`ComparisonResult` into a :class:`PerformanceSummary`.

    Pure and deterministic: the same input always yields an equal summary, and
    the input list is never modified.
    """

    def __init__(self, config: AggregatorConfig | None = None) -> None:
        self.config = config or AggregatorConfig()

    def analyze(self, comparisons: list[ComparisonResult] | None) -> PerformanceSummary:
        """Summarise *comparisons*; ``None`` or an empty list gives a zeroed summary."""
        if not comparisons:
            return PerformanceSummary.empty()

        cfg = self.config
        times = [c.time_delta for c in comparisons]
        speeds = [c.speed_delta for c in comparisons]

        throttle = self._input_analysis(
            [c.throttle_delta for c in comparisons], cfg.throttle_problem_pct
        )
        brake = self._input_analysis([c.brake_delta for c in comparisons], cfg.brake_problem_pct)
        steering = self._input_analysis(
            [c.steering_delta for c in comparisons], cfg.steering_problem_pct
        )

        improvements = self._improvement_rollup(comparisons)
        segments = self._segment_consistency(comparisons)
        evaluated = [s for s in segments if s.sample_count >= cfg.consistency_min_samples]
        score = _mean(
            [max(0.0, 1.0 - s.std_delta / cfg.consistency_std_scale) * 100.0 for s in evaluated]
        )
        avg_time = _mean(times)
        avg_speed = _mean(speeds)

        return PerformanceSummary(
            total_comparisons=len(comparisons),
            average_time_delta=avg_time,
            max_time_delta=max(times),
            min_time_delta=min(times),
            total_time_lost=sum(t for t in times if t > 0),
            total_time_gained=sum(-t for t in times if t < 0),
            average_speed_delta=avg_speed,
            max_speed_deficit=min((s for s in speeds if s < 0), default=0.0),
            max_speed_advantage=max((s for s in speeds if s > 0), default=0.0),
            throttle=throttle,
            brake=brake,
            steering=steering,
            improvement_areas=improvements,
            segment_consistency=segments,
            consistency_score=score,
            consistent_sections=sum(1 for s in segments if s.consistent),
            inconsistent_sections=sum(1 for s in segments if not s.consistent),
            recommendations=tuple(
                build_recommendations(
                    avg_time,
                    avg_speed,
                    throttle,
                    brake,
                    steering,
                    improvements,
                    score,
                    len(evaluated),
                    cfg,
                )
            ),
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _input_analysis(deltas: list[float], threshold: float) -> InputAnalysis:
        return InputAnalysis(
            average_delta=_mean(deltas),
            max_deficit=min((d for d in deltas if d < 0), default=0.0),
            max_excess=max((d for d in deltas if d > 0), default=0.0),
            problematic_sections=sum(1 for d in deltas if abs(d) > threshold),
        )

    @staticmethod
    def _improvement_rollup(
        comparisons: list[ComparisonResult],
    ) -> tuple[ImprovementTypeAnalysis, ...]:
        grouped: dict[ImprovementType, list] = {}
        for c in comparisons:
            for area in c.improvement_areas:
                grouped.setdefault(area.category, []).append(area)

        rollup = [
            ImprovementTypeAnalysis(
                category=category,
                frequency=len(areas),
                average_severity=_mean([a.severity for a in areas]),
                max_severity=max(a.severity for a in areas),
                total_potential_gain=sum(a.potential_gain for a in areas),
                affected_sections=len({a.distance_range for a in areas}),
            )
            for category, areas in grouped.items()
        ]
        # stable: ties keep first-seen order
        rollup.sort(key=lambda r: r.total_potential_gain, reverse=True)
        return tuple(rollup)

    def _segment_consistency(
        self, comparisons: list[ComparisonResult]
    ) -> tuple[SegmentConsistency, ...]:
        cfg = self.config
        grouped: dict[str, list[float]] = {}
        for c in comparisons:
            if c.segment is not None:
                grouped.setdefault(c.segment.id, []).append(c.time_delta)

        out = []
        for segment_id, deltas in grouped.items():
            std = _std(deltas)
            out.append(
                SegmentConsistency(
                    segment_id=segment_id,
                    sample_count=len(deltas),
                    mean_delta=_mean(deltas),
                    std_delta=std,
                    consistent=len(deltas) >= cfg.consistency_min_samples
                    and std <= cfg.consistency_max_std,
                )
            )
        return tuple(out)
