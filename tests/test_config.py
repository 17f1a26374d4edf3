"""Tests for threshold configuration and environment overrides."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from lap_coach.config import (
    AggregatorConfig,
    ComparisonConfig,
    CorneringConfig,
    Settings,
    load_settings,
)


def test_defaults():
    settings = load_settings(env_file=None)
    assert settings == Settings()
    assert settings.comparison.distance_tolerance == 10.0
    assert settings.comparison.minimum_confidence == 50.0
    assert settings.cornering.buffer_capacity == 500
    assert settings.cornering.completion_window == 50
    assert settings.aggregator.throttle_problem_pct == 15.0


def test_env_overrides_are_typed(monkeypatch):
    monkeypatch.setenv("LAP_COACH_COMPARISON_DISTANCE_TOLERANCE", "12.5")
    monkeypatch.setenv("LAP_COACH_CORNERING_COMPLETION_WINDOW", "40")
    monkeypatch.setenv("LAP_COACH_AGGREGATOR_CONSISTENCY_MAX_STD", "0.2")
    monkeypatch.setenv("UNRELATED", "x")

    settings = load_settings(env_file=None)

    assert settings.comparison.distance_tolerance == 12.5
    assert settings.cornering.completion_window == 40
    assert isinstance(settings.cornering.completion_window, int)
    assert settings.aggregator.consistency_max_std == 0.2


def test_section_prefix_does_not_leak(monkeypatch):
    monkeypatch.setenv("LAP_COACH_CORNERING_DISTANCE_TOLERANCE", "99")
    assert load_settings(env_file=None).comparison.distance_tolerance == 10.0


def test_env_file_is_read(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("LAP_COACH_COMPARISON_MINIMUM_CONFIDENCE=65\n")
    assert load_settings(env_file=str(env_file)).comparison.minimum_confidence == 65.0


def test_environment_wins_over_env_file(tmp_path, monkeypatch):
    env_file = tmp_path / ".env"
    env_file.write_text("LAP_COACH_AGGREGATOR_SLOW_LAP_DELTA=0.8\n")
    monkeypatch.setenv("LAP_COACH_AGGREGATOR_SLOW_LAP_DELTA", "0.3")
    assert load_settings(env_file=str(env_file)).aggregator.slow_lap_delta == 0.3


def test_unparsable_override_raises(monkeypatch):
    monkeypatch.setenv("LAP_COACH_CORNERING_BUFFER_CAPACITY", "lots")
    with pytest.raises(ValidationError, match="buffer_capacity"):
        load_settings(env_file=None)


def test_override_still_validated(monkeypatch):
    monkeypatch.setenv("LAP_COACH_CORNERING_BUFFER_CAPACITY", "60")
    with pytest.raises(ValueError):
        load_settings(env_file=None)


@pytest.mark.parametrize(
    "factory",
    [
        lambda: ComparisonConfig(distance_tolerance=0.0),
        lambda: ComparisonConfig(minimum_confidence=120.0),
        lambda: CorneringConfig(completion_ratio=1.5),
        lambda: CorneringConfig(min_corner_samples=0),
        lambda: AggregatorConfig(consistency_min_samples=1),
        lambda: AggregatorConfig(consistency_std_scale=0.0),
    ],
)
def test_invalid_configs_rejected(factory):
    with pytest.raises(ValueError):
        factory()
