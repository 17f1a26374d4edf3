"""Tests for CorneringAnalysisEngine."""

from __future__ import annotations

import math

import pytest

from lap_coach.config import CorneringConfig
from lap_coach.cornering.engine import CorneringAnalysisEngine
from lap_coach.cornering.models import (
    CornerDirection,
    CornerPhase,
    FeedbackCategory,
    FeedbackPriority,
    FeedbackType,
)
from lap_coach.hotpath.events import CORNER_COMPLETED, EventBus
from lap_coach.telemetry.models import TelemetrySample


def _make_sample(**kwargs) -> TelemetrySample:
    defaults = dict(
        timestamp=0.0,
        distance=0.0,
        speed=120.0,
        throttle=0.5,
        brake=0.0,
        steering=0.0,
        lateral_g=0.0,
        longitudinal_g=0.0,
        lap_number=1,
        lap_time=0.0,
    )
    defaults.update(kwargs)
    return TelemetrySample(**defaults)


def _straight(n: int, start: int = 0) -> list[TelemetrySample]:
    return [_make_sample(timestamp=(start + i) * 0.01, distance=float(start + i)) for i in range(n)]


def _corner_run(
    sign: float = 1.0,
    peak: float = 0.8,
    before: int = 20,
    length: int = 60,
    after: int = 250,
) -> list[TelemetrySample]:
    """Straight, a half-sine lateral-G corner, then straight again."""
    samples = _straight(before)
    for k in range(length):
        i = before + k
        samples.append(
            _make_sample(
                timestamp=i * 0.01,
                distance=float(i),
                speed=120.0 - k * 0.7,
                lateral_g=sign * peak * math.sin(math.pi * k / length),
            )
        )
    samples.extend(_straight(after, start=before + length))
    return samples


def _warm(engine: CorneringAnalysisEngine, n: int = 10) -> None:
    for s in _straight(n):
        engine.process_sample(s)


# ---------------------------------------------------------------------------
# Per-sample classification
# ---------------------------------------------------------------------------


def test_insufficient_buffer_is_not_in_corner():
    engine = CorneringAnalysisEngine()
    for i in range(9):
        result = engine.process_sample(_make_sample(timestamp=i * 0.01, lateral_g=0.9))
        assert result.is_in_corner is False
        assert result.phase is CornerPhase.UNKNOWN
        assert result.direction is CornerDirection.STRAIGHT


def test_straight_line_is_not_in_corner():
    engine = CorneringAnalysisEngine()
    results = [engine.process_sample(s) for s in _straight(30)]
    assert all(not r.is_in_corner for r in results)


def test_slow_speed_is_not_in_corner():
    engine = CorneringAnalysisEngine()
    _warm(engine)
    result = engine.process_sample(_make_sample(speed=15.0, lateral_g=0.5))
    assert result.is_in_corner is False


@pytest.mark.parametrize(
    "lateral_g, direction",
    [(0.4, CornerDirection.LEFT), (-0.4, CornerDirection.RIGHT)],
)
def test_direction_follows_lateral_g_sign(lateral_g, direction):
    engine = CorneringAnalysisEngine()
    _warm(engine)
    result = engine.process_sample(_make_sample(lateral_g=lateral_g))
    assert result.is_in_corner is True
    assert result.direction is direction


@pytest.mark.parametrize(
    "kwargs, phase",
    [
        (dict(lateral_g=0.7), CornerPhase.APEX),
        (dict(lateral_g=0.7, brake=0.8, speed=60.0), CornerPhase.APEX),
        (dict(lateral_g=0.4, brake=0.5), CornerPhase.ENTRY),
        (dict(lateral_g=0.4, speed=80.0), CornerPhase.ENTRY),
        (dict(lateral_g=-0.4, speed=120.0), CornerPhase.EXIT),
    ],
)
def test_phase_classification(kwargs, phase):
    engine = CorneringAnalysisEngine()
    _warm(engine)
    assert engine.process_sample(_make_sample(**kwargs)).phase is phase


def test_classify_does_not_buffer():
    engine = CorneringAnalysisEngine()
    state = engine.classify(_make_sample(lateral_g=0.7))
    assert state.is_in_corner is True
    assert state.lateral_g == pytest.approx(0.7)
    assert engine.buffered_samples == 0


def test_sticky_state_reported_after_leaving_corner():
    engine = CorneringAnalysisEngine()
    _warm(engine)
    engine.process_sample(_make_sample(lateral_g=-0.5))
    result = engine.process_sample(_make_sample(lateral_g=0.0))

    assert result.is_in_corner is True
    assert result.direction is CornerDirection.RIGHT
    assert result.phase is CornerPhase.EXIT


def test_sticky_state_not_replaced_on_equal_lateral_g():
    engine = CorneringAnalysisEngine()
    _warm(engine)
    engine.process_sample(_make_sample(lateral_g=0.5))             # EXIT
    engine.process_sample(_make_sample(lateral_g=0.5, brake=0.5))  # ENTRY, same |g|
    result = engine.process_sample(_make_sample())

    assert result.phase is CornerPhase.EXIT


def test_sticky_state_replaced_on_higher_lateral_g():
    engine = CorneringAnalysisEngine()
    _warm(engine)
    engine.process_sample(_make_sample(lateral_g=0.5))
    engine.process_sample(_make_sample(lateral_g=0.55, brake=0.5))
    result = engine.process_sample(_make_sample())

    assert result.phase is CornerPhase.ENTRY


def test_buffer_never_exceeds_capacity():
    engine = CorneringAnalysisEngine()
    for s in _straight(650):
        engine.process_sample(s)
    assert engine.buffered_samples == 500


def test_non_finite_sample_is_not_buffered():
    engine = CorneringAnalysisEngine()
    _warm(engine)
    result = engine.process_sample(_make_sample(lateral_g=math.nan))
    assert engine.buffered_samples == 10
    assert result.is_in_corner is False


# ---------------------------------------------------------------------------
# Corner finalization
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "sign, direction",
    [(1.0, CornerDirection.LEFT), (-1.0, CornerDirection.RIGHT)],
)
def test_synthetic_corner_finalized_exactly_once(sign, direction):
    engine = CorneringAnalysisEngine()
    results = [engine.process_sample(s) for s in _corner_run(sign=sign)]

    completed = [r.completed_corner for r in results if r.completed_corner is not None]
    assert len(completed) == 1
    corner = completed[0]
    assert corner.number == 1
    assert corner.direction is direction
    assert corner.max_lateral_g == pytest.approx(0.8)
    assert corner.apex_distance == pytest.approx(50.0)
    assert engine.completed_corners == [corner]


def test_finalized_corner_phases_do_not_overlap():
    engine = CorneringAnalysisEngine()
    for s in _corner_run():
        engine.process_sample(s)
    corner = engine.completed_corners[0]

    apex_index = [s.distance for s in corner.samples].index(corner.apex_distance)
    assert corner.entry.sample_count == apex_index
    assert corner.exit.sample_count == len(corner.samples) - apex_index - 1
    assert corner.start_distance < corner.apex_distance < corner.end_distance
    assert corner.duration == pytest.approx(corner.end_time - corner.start_time)
    assert 0.0 <= corner.performance_score <= 100.0


def test_finalized_corner_only_spans_high_g_samples():
    engine = CorneringAnalysisEngine()
    for s in _corner_run():
        engine.process_sample(s)
    corner = engine.completed_corners[0]

    assert all(abs(s.lateral_g) > 0.1 for s in (corner.samples[0], corner.samples[-1]))
    assert len(corner.samples) >= 20


def test_two_corners_finalized_separately():
    engine = CorneringAnalysisEngine()
    first = _corner_run(sign=1.0, after=150)
    second = [
        _make_sample(
            timestamp=s.timestamp + 10.0,
            distance=s.distance + 1000.0,
            speed=s.speed,
            lateral_g=s.lateral_g,
        )
        for s in _corner_run(sign=-1.0)
    ]
    for s in first + second:
        engine.process_sample(s)

    corners = engine.completed_corners
    assert [c.direction for c in corners] == [CornerDirection.LEFT, CornerDirection.RIGHT]
    assert [c.number for c in corners] == [1, 2]


def test_short_high_g_window_is_discarded():
    engine = CorneringAnalysisEngine()
    for s in _corner_run(length=15, before=30):
        engine.process_sample(s)
    assert engine.completed_corners == []


def test_corner_published_on_bus():
    bus = EventBus()
    received = []
    bus.subscribe(CORNER_COMPLETED, received.append)
    engine = CorneringAnalysisEngine(bus=bus)
    for s in _corner_run():
        engine.process_sample(s)
    assert received == engine.completed_corners


def test_low_exit_speed_feedback_on_completion():
    engine = CorneringAnalysisEngine()
    results = [engine.process_sample(s) for s in _corner_run()]
    done = next(r for r in results if r.completed_corner is not None)

    messages = [f.message for f in done.feedback]
    assert "Low exit speed - try carrying more minimum speed through the corner" in messages


def test_reset_clears_state():
    engine = CorneringAnalysisEngine()
    for s in _corner_run():
        engine.process_sample(s)
    engine.reset()
    assert engine.buffered_samples == 0
    assert engine.completed_corners == []


def test_config_rejects_buffer_smaller_than_two_windows():
    with pytest.raises(ValueError):
        CorneringConfig(buffer_capacity=80, completion_window=50)


# ---------------------------------------------------------------------------
# Realtime feedback
# ---------------------------------------------------------------------------


def test_harsh_braking_feedback_in_corner():
    engine = CorneringAnalysisEngine()
    _warm(engine)
    result = None
    for _ in range(4):
        result = engine.process_sample(_make_sample(lateral_g=0.4, brake=0.8, speed=90.0))

    harsh = [f for f in result.feedback if f.category is FeedbackCategory.BRAKING]
    assert len(harsh) == 1
    assert harsh[0].priority is FeedbackPriority.HIGH
    assert harsh[0].feedback_type is FeedbackType.WARNING


def test_exit_phase_tip():
    engine = CorneringAnalysisEngine()
    _warm(engine)
    result = engine.process_sample(_make_sample(lateral_g=0.4, timestamp=3.0))

    tips = [f for f in result.feedback if f.feedback_type is FeedbackType.TIP]
    assert [f.message for f in tips] == ["Focus on smooth throttle application for corner exit"]
    assert tips[0].timestamp == 3.0


def test_no_feedback_on_straight():
    engine = CorneringAnalysisEngine()
    results = [engine.process_sample(s) for s in _straight(40)]
    assert all(r.feedback == () for r in results)


def test_sticky_apex_rules_use_sticky_speed():
    engine = CorneringAnalysisEngine()
    _warm(engine)
    engine.process_sample(_make_sample(lateral_g=0.7, speed=160.0))
    result = engine.process_sample(_make_sample(lateral_g=0.0, speed=140.0))

    assert result.phase is CornerPhase.APEX
    assert [f.message for f in result.feedback] == ["Apex speed seems high - try braking earlier"]


def test_sticky_apex_below_overspeed_gives_no_phase_feedback():
    engine = CorneringAnalysisEngine()
    _warm(engine)
    engine.process_sample(_make_sample(lateral_g=0.7, speed=140.0))
    result = engine.process_sample(_make_sample(lateral_g=0.0, speed=170.0))

    assert result.phase is CornerPhase.APEX
    assert result.feedback == ()


def test_single_spike_keeps_sticky_state_until_a_corner_completes():
    engine = CorneringAnalysisEngine()
    _warm(engine)
    engine.process_sample(_make_sample(lateral_g=0.5))
    results = [engine.process_sample(s) for s in _straight(120, start=20)]

    assert all(r.is_in_corner for r in results)
    assert all(r.completed_corner is None for r in results)
    assert engine.completed_corners == []
