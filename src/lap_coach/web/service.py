"""AnalysisService: converts API payloads and runs the aggregator for the Web API."""

from __future__ import annotations

from lap_coach.analysis.models import ComparisonResult, ImprovementArea
from lap_coach.config import AggregatorConfig
from lap_coach.reporting.aggregator import PerformanceAggregator
from lap_coach.reporting.models import PerformanceSummary
from lap_coach.track.models import TrackSegment
from lap_coach.web.schemas import AnalyzeRequest, ComparisonIn


def to_comparison(payload: ComparisonIn) -> ComparisonResult:
    """Build a :class:`ComparisonResult` from its API representation."""
    segment = None
    if payload.segment is not None:
        s = payload.segment
        segment = TrackSegment(
            id=s.id, number=s.number, start=s.start, length=s.length, segment_type=s.segment_type
        )
    return ComparisonResult(
        distance=payload.distance,
        reference_distance=(
            payload.distance if payload.reference_distance is None else payload.reference_distance
        ),
        time_delta=payload.time_delta,
        speed_delta=payload.speed_delta,
        throttle_delta=payload.throttle_delta,
        brake_delta=payload.brake_delta,
        steering_delta=payload.steering_delta,
        lateral_g_delta=payload.lateral_g_delta,
        longitudinal_g_delta=payload.longitudinal_g_delta,
        segment=segment,
        confidence=payload.confidence,
        improvement_areas=tuple(
            ImprovementArea(
                category=a.category,
                severity=a.severity,
                potential_gain=a.potential_gain,
                distance_range=tuple(a.distance_range),
                message=a.message,
            )
            for a in payload.improvement_areas
        ),
    )


class AnalysisService:
    """Runs :class:`PerformanceAggregator` over the comparisons of a request.

    Parameters
    ----------
    config:
        Aggregator thresholds; defaults to :class:`AggregatorConfig`.
    """

    def __init__(self, config: AggregatorConfig | None = None) -> None:
        self._aggregator = PerformanceAggregator(config)

    def summarise(self, req: AnalyzeRequest) -> PerformanceSummary:
        """Return the summary for *req*.

        Raises
        ------
        ValueError
            If a segment id is reused with different boundaries.
        """
        comparisons = [to_comparison(c) for c in req.comparisons]

        seen: dict[str, TrackSegment] = {}
        for c in comparisons:
            if c.segment is None:
                continue
            prior = seen.setdefault(c.segment.id, c.segment)
            if (prior.start, prior.length) != (c.segment.start, c.segment.length):
                raise ValueError(f"Segment {c.segment.id!r} has conflicting boundaries")

        return self._aggregator.analyze(comparisons)
