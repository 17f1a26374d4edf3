"""Corner phase detection, corner finalization and coaching feedback."""

from lap_coach.cornering.engine import CorneringAnalysisEngine
from lap_coach.cornering.models import (
    CoachingFeedback,
    Corner,
    CornerDirection,
    CorneringAnalysisResult,
    CornerPhase,
    CornerPhaseAnalysis,
    CornerState,
    FeedbackCategory,
    FeedbackPriority,
    FeedbackType,
)
from lap_coach.cornering.scoring import analyze_phase, score_corner

__all__ = [
    "CoachingFeedback",
    "Corner",
    "CornerDirection",
    "CornerPhase",
    "CornerPhaseAnalysis",
    "CornerState",
    "CorneringAnalysisEngine",
    "CorneringAnalysisResult",
    "FeedbackCategory",
    "FeedbackPriority",
    "FeedbackType",
    "analyze_phase",
    "score_corner",
]
