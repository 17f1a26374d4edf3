"""Cornering analysis data models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from lap_coach.telemetry.models import TelemetrySample


class CornerDirection(str, Enum):
    STRAIGHT = "straight"
    LEFT = "left"
    RIGHT = "right"


class CornerPhase(str, Enum):
    UNKNOWN = "unknown"
    ENTRY = "entry"
    APEX = "apex"
    EXIT = "exit"


class FeedbackPriority(int, Enum):
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4


class FeedbackCategory(str, Enum):
    GENERAL = "general"
    CORNERING = "cornering"
    BRAKING = "braking"
    THROTTLE = "throttle"
    STEERING = "steering"
    SAFETY = "safety"


class FeedbackType(str, Enum):
    TIP = "tip"
    SUGGESTION = "suggestion"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class CornerState:
    """Classification of a single sample."""

    is_in_corner: bool
    direction: CornerDirection
    phase: CornerPhase
    lateral_g: float
    """Absolute lateral G."""

    speed: float


@dataclass(frozen=True)
class CornerPhaseAnalysis:
    """Statistics over the samples of one corner phase.

    Smoothness values are the mean absolute change between consecutive
    samples; lower is smoother.  An empty phase is all zeros.
    """

    phase: CornerPhase
    sample_count: int = 0
    duration: float = 0.0
    average_speed: float = 0.0
    max_speed: float = 0.0
    average_lateral_g: float = 0.0
    max_lateral_g: float = 0.0
    average_throttle: float = 0.0
    max_throttle: float = 0.0
    average_brake: float = 0.0
    max_brake: float = 0.0
    steering_smoothness: float = 0.0
    throttle_smoothness: float = 0.0
    brake_smoothness: float = 0.0


@dataclass(frozen=True)
class Corner:
    """A completed corner, finalized once from its high-G sample window.

    The entry phase covers samples before the apex and the exit phase the
    samples after it; the apex sample belongs to neither.
    """

    number: int
    """Sequential corner number for this engine (1-based)."""

    start_time: float
    end_time: float
    start_distance: float
    end_distance: float
    apex_distance: float
    direction: CornerDirection
    entry_speed: float
    apex_speed: float
    exit_speed: float
    max_lateral_g: float
    duration: float
    entry: CornerPhaseAnalysis
    exit: CornerPhaseAnalysis
    performance_score: float
    samples: tuple[TelemetrySample, ...] = ()


@dataclass(frozen=True)
class CoachingFeedback:
    """One coaching message produced by the cornering engine."""

    priority: FeedbackPriority
    category: FeedbackCategory
    message: str
    feedback_type: FeedbackType
    timestamp: float


@dataclass(frozen=True)
class CorneringAnalysisResult:
    """Per-sample output of the cornering engine."""

    is_in_corner: bool
    phase: CornerPhase
    direction: CornerDirection
    lateral_g: float
    speed: float
    timestamp: float
    completed_corner: Corner | None = None
    feedback: tuple[CoachingFeedback, ...] = ()
