"""Threshold configuration for the coaching engines.

Every heuristic threshold used by the comparison, cornering and aggregation
code lives here as a named settings field.  Each section reads ``.env`` and
the process environment through pydantic-settings, so any field can be
overridden with a ``LAP_COACH_<SECTION>_<FIELD>`` variable, e.g.
``LAP_COACH_COMPARISON_DISTANCE_TOLERANCE=12.5``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PREFIX = "LAP_COACH"


def _section(name: str) -> SettingsConfigDict:
    return SettingsConfigDict(
        env_prefix=f"{ENV_PREFIX}_{name}_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class ComparisonConfig(BaseSettings):
    """Thresholds for :class:`~lap_coach.analysis.comparison.RealTimeComparisonEngine`."""

    model_config = _section("COMPARISON")

    distance_tolerance: float = Field(10.0, gt=0)  # m: max live/reference distance gap
    minimum_confidence: float = Field(50.0, ge=0, le=100)  # below is flagged low_confidence
    distance_penalty: float = 20.0         # confidence lost at a full tolerance gap
    speed_mismatch_kmh: float = 20.0
    speed_mismatch_penalty: float = 10.0
    condition_mismatch_penalty: float = 15.0

    corner_speed_deficit_pct: float = 5.0  # % of reference speed
    brake_excess_pct: float = 10.0         # percentage points
    throttle_deficit_pct: float = 10.0     # percentage points
    steering_excess_pct: float = 15.0      # percentage points

    max_gain_per_area: float = 0.1         # s: gain at 100 % magnitude and impact
    corner_speed_impact: float = 100.0
    brake_pressure_impact: float = 50.0
    throttle_impact: float = 75.0
    steering_impact: float = 25.0
    corner_speed_range: float = 50.0       # m either side of the sample
    brake_pressure_range: float = 30.0
    throttle_range: float = 30.0
    steering_range: float = 20.0

    active_improvement_window: float = 1000.0  # m behind the car before pruning
    segment_delta_threshold: float = 0.1       # s: problematic / strong segment
    trend_window: int = Field(3, gt=0)         # laps in the "recent" average


class CorneringConfig(BaseSettings):
    """Thresholds for :class:`~lap_coach.cornering.engine.CorneringAnalysisEngine`."""

    model_config = _section("CORNERING")

    buffer_capacity: int = 500
    min_buffered_samples: int = Field(10, gt=0)

    # Per-sample classification
    min_corner_speed: float = 20.0      # km/h
    entry_lateral_g: float = 0.1        # also the left/right direction threshold
    apex_lateral_g: float = 0.6
    entry_brake: float = 0.3
    entry_speed: float = 100.0          # km/h

    # Completion detection
    completion_window: int = Field(50, gt=0)  # samples per averaging window
    completion_ratio: float = Field(0.7, gt=0, le=1)  # recent mean below ratio * earlier
    min_corner_samples: int = Field(20, ge=1)

    # Realtime feedback
    feedback_window: int = 10
    feedback_min_samples: int = 4
    harsh_brake: float = 0.5
    abrupt_steering_delta: float = 0.15
    sudden_throttle_delta: float = 0.3
    entry_overload_lateral_g: float = 0.8
    apex_overspeed: float = 150.0       # km/h

    # Corner scoring
    heavy_entry_brake: float = 0.9
    heavy_entry_brake_penalty: float = 15.0
    rough_exit_throttle: float = 0.1
    rough_exit_throttle_penalty: float = 10.0
    exit_speed_ratio: float = 0.8
    low_exit_speed_penalty: float = 20.0
    excessive_lateral_g: float = 1.2
    excessive_lateral_g_penalty: float = 10.0
    smooth_steering: float = 0.05
    smooth_steering_bonus: float = 5.0

    @model_validator(mode="after")
    def _buffer_holds_two_windows(self) -> CorneringConfig:
        if self.buffer_capacity < 2 * self.completion_window:
            raise ValueError(
                f"buffer_capacity ({self.buffer_capacity}) must hold two completion "
                f"windows ({2 * self.completion_window})"
            )
        return self


class AggregatorConfig(BaseSettings):
    """Thresholds for :class:`~lap_coach.reporting.aggregator.PerformanceAggregator`."""

    model_config = _section("AGGREGATOR")

    throttle_problem_pct: float = 15.0
    brake_problem_pct: float = 20.0
    steering_problem_pct: float = 25.0

    consistency_min_samples: int = Field(3, ge=2)
    consistency_max_std: float = 0.1                 # s
    consistency_std_scale: float = Field(2.0, gt=0)  # s of std that scores zero

    slow_lap_delta: float = 0.5         # s
    speed_deficit_kmh: float = -5.0
    problematic_section_limit: int = 5
    priority_improvements: int = 3
    consistency_target: float = 70.0


class Settings(BaseModel):
    """All engine configuration in one place."""

    comparison: ComparisonConfig = Field(default_factory=ComparisonConfig)
    cornering: CorneringConfig = Field(default_factory=CorneringConfig)
    aggregator: AggregatorConfig = Field(default_factory=AggregatorConfig)


def load_settings(env_file: str | None = ".env") -> Settings:
    """Build :class:`Settings` from defaults, *env_file* and the environment.

    Args:
        env_file: Dotenv file to read; ``None`` reads the process
            environment only.

    Raises:
        pydantic.ValidationError: If an override cannot be parsed or is
            out of range.
    """
    return Settings(
        comparison=ComparisonConfig(_env_file=env_file),
        cornering=CorneringConfig(_env_file=env_file),
        aggregator=AggregatorConfig(_env_file=env_file),
    )
