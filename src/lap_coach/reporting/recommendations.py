"""Template recommendations for a :class:`PerformanceSummary`."""

from __future__ import annotations

from lap_coach.config import AggregatorConfig
from lap_coach.reporting.models import InputAnalysis, ImprovementTypeAnalysis


def build_recommendations(
    average_time_delta: float,
    average_speed_delta: float,
    throttle: InputAnalysis,
    brake: InputAnalysis,
    steering: InputAnalysis,
    improvements: tuple[ImprovementTypeAnalysis, ...],
    consistency_score: float,
    segments_evaluated: int,
    config: AggregatorConfig | None = None,
) -> list[str]:
    """Return recommendation strings in a fixed order.

    *improvements* must already be ranked; the first ``priority_improvements``
    entries become priority recommendations.
    """
    cfg = config or AggregatorConfig()
    recs: list[str] = []

    if average_time_delta > cfg.slow_lap_delta:
        recs.append(
            f"Focus on reducing lap time - currently {average_time_delta:.2f}s slower than reference"
        )
    if average_speed_delta < cfg.speed_deficit_kmh:
        recs.append(
            f"Work on carrying more speed - average deficit of {abs(average_speed_delta):.1f} km/h"
        )

    limit = cfg.problematic_section_limit
    if throttle.problematic_sections > limit:
        recs.append(
            "Focus on throttle application - multiple sections with suboptimal throttle usage"
        )
    if brake.problematic_sections > limit:
        recs.append("Work on braking technique - consider brake point optimization")
    if steering.problematic_sections > limit:
        recs.append("Improve steering smoothness - avoid excessive steering inputs")

    for item in improvements[: cfg.priority_improvements]:
        recs.append(
            f"Priority improvement: {item.category.label} - "
            f"potential gain {item.total_potential_gain:.2f}s"
        )

    if segments_evaluated and consistency_score < cfg.consistency_target:
        recs.append(f"Focus on consistency - current score {consistency_score:.1f}%")

    return recs
