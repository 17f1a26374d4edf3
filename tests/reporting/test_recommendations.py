"""Tests for build_recommendations."""

from __future__ import annotations

from lap_coach.analysis.models import ImprovementType
from lap_coach.config import AggregatorConfig
from lap_coach.reporting.models import ImprovementTypeAnalysis, InputAnalysis
from lap_coach.reporting.recommendations import build_recommendations


def _rollup(category: ImprovementType, gain: float) -> ImprovementTypeAnalysis:
    return ImprovementTypeAnalysis(category, 1, 50.0, 50.0, gain, 1)


def _build(**kwargs) -> list[str]:
    defaults = dict(
        average_time_delta=0.0,
        average_speed_delta=0.0,
        throttle=InputAnalysis(),
        brake=InputAnalysis(),
        steering=InputAnalysis(),
        improvements=(),
        consistency_score=100.0,
        segments_evaluated=1,
    )
    defaults.update(kwargs)
    return build_recommendations(**defaults)


def test_nothing_to_recommend():
    assert _build() == []


def test_brake_and_steering_channels():
    recs = _build(
        brake=InputAnalysis(problematic_sections=6),
        steering=InputAnalysis(problematic_sections=9),
    )
    assert recs == [
        "Work on braking technique - consider brake point optimization",
        "Improve steering smoothness - avoid excessive steering inputs",
    ]


def test_exactly_at_limit_is_not_reported():
    assert _build(throttle=InputAnalysis(problematic_sections=5)) == []


def test_only_top_three_improvements():
    improvements = tuple(
        _rollup(t, g)
        for t, g in [
            (ImprovementType.CORNER_SPEED, 0.4),
            (ImprovementType.CORNER_EXIT, 0.3),
            (ImprovementType.GEAR_TIMING, 0.2),
            (ImprovementType.CONSISTENCY, 0.1),
        ]
    )
    recs = _build(improvements=improvements)
    assert recs == [
        "Priority improvement: Corner Speed - potential gain 0.40s",
        "Priority improvement: Corner Exit - potential gain 0.30s",
        "Priority improvement: Gear Timing - potential gain 0.20s",
    ]


def test_consistency_message():
    assert _build(consistency_score=62.5) == ["Focus on consistency - current score 62.5%"]


def test_consistency_skipped_without_evaluated_segments():
    assert _build(consistency_score=0.0, segments_evaluated=0) == []


def test_thresholds_from_config():
    cfg = AggregatorConfig(slow_lap_delta=0.1, speed_deficit_kmh=-1.0)
    recs = _build(average_time_delta=0.2, average_speed_delta=-2.0, config=cfg)
    assert recs == [
        "Focus on reducing lap time - currently 0.20s slower than reference",
        "Work on carrying more speed - average deficit of 2.0 km/h",
    ]
