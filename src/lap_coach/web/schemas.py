"""Pydantic request/response schemas for the Web API."""

from __future__ import annotations

from pydantic import BaseModel, Field

from lap_coach.analysis.models import ImprovementType
from lap_coach.track.models import SegmentType


class HealthResponse(BaseModel):
    status: str
    version: str


class SegmentIn(BaseModel):
    id: str
    number: int
    start: float
    length: float = Field(gt=0)
    segment_type: SegmentType = SegmentType.STRAIGHT


class ImprovementAreaIn(BaseModel):
    category: ImprovementType
    severity: float = Field(ge=0, le=100)
    potential_gain: float = 0.0
    distance_range: tuple[float, float]
    message: str = ""


class ComparisonIn(BaseModel):
    distance: float
    reference_distance: float | None = None
    time_delta: float
    speed_delta: float = 0.0
    throttle_delta: float = 0.0
    brake_delta: float = 0.0
    steering_delta: float = 0.0
    lateral_g_delta: float = 0.0
    longitudinal_g_delta: float = 0.0
    segment: SegmentIn | None = None
    confidence: float = Field(default=100.0, ge=0, le=100)
    improvement_areas: list[ImprovementAreaIn] = []


class AnalyzeRequest(BaseModel):
    comparisons: list[ComparisonIn]


class InputAnalysisOut(BaseModel):
    average_delta: float
    max_deficit: float
    max_excess: float
    problematic_sections: int


class ImprovementTypeOut(BaseModel):
    category: ImprovementType
    frequency: int
    average_severity: float
    max_severity: float
    total_potential_gain: float
    affected_sections: int


class SegmentConsistencyOut(BaseModel):
    segment_id: str
    sample_count: int
    mean_delta: float
    std_delta: float
    consistent: bool


class SummaryResponse(BaseModel):
    total_comparisons: int
    average_time_delta: float
    max_time_delta: float
    min_time_delta: float
    total_time_lost: float
    total_time_gained: float
    average_speed_delta: float
    max_speed_deficit: float
    max_speed_advantage: float
    throttle: InputAnalysisOut
    brake: InputAnalysisOut
    steering: InputAnalysisOut
    improvement_areas: list[ImprovementTypeOut]
    segment_consistency: list[SegmentConsistencyOut]
    consistency_score: float
    consistent_sections: int
    inconsistent_sections: int
    recommendations: list[str]
