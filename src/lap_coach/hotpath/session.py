"""CoachingSession: feeds each sample to both engines and handles lap boundaries."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from lap_coach.analysis.comparison import RealTimeComparisonEngine
from lap_coach.analysis.models import ComparisonResult
from lap_coach.config import Settings
from lap_coach.cornering.engine import CorneringAnalysisEngine
from lap_coach.cornering.models import CoachingFeedback, CorneringAnalysisResult
from lap_coach.hotpath.events import COACHING_FEEDBACK, LAP_COMPLETED, EventBus
from lap_coach.hotpath.rules import FeedbackGate
from lap_coach.reporting.aggregator import PerformanceAggregator
from lap_coach.reporting.models import PerformanceSummary
from lap_coach.telemetry.models import TelemetrySample

_logger = logging.getLogger(__name__)


@dataclass
class LapSummary:
    """Published on ``LAP_COMPLETED`` when a lap boundary is crossed."""

    lap_number: int
    lap_time: float
    lap_delta: float | None
    """Versus the reference lap; None when no reference is set."""

    summary: PerformanceSummary


@dataclass
class SessionTick:
    """Everything produced while processing one sample."""

    comparison: ComparisonResult | None
    cornering: CorneringAnalysisResult
    feedback: list[CoachingFeedback] = field(default_factory=list)
    """Feedback that passed the gate and was published."""

    lap_summary: LapSummary | None = None


class CoachingSession:
    """Runs the comparison and cornering engines side by side on one sample stream.

    When a sample's lap number is higher than the previous sample's, the
    previous lap is closed first: the comparison engine completes it and the
    aggregator summarises its comparison results.

    Parameters
    ----------
    comparison:
        A :class:`RealTimeComparisonEngine` (reference lap set by the caller).
    cornering:
        A :class:`CorneringAnalysisEngine`.
    aggregator:
        A :class:`PerformanceAggregator`; a default one is created if omitted.
    bus:
        :class:`EventBus` for ``COACHING_FEEDBACK`` and ``LAP_COMPLETED``.
    feedback_gate:
        A :class:`FeedbackGate`; a default one is created if omitted.
    stream:
        Optional :class:`~lap_coach.hotpath.event_stream.TelemetryEventStream`
        driven by :meth:`start`, :meth:`stop` and :meth:`tick`.
    """

    def __init__(
        self,
        comparison: RealTimeComparisonEngine,
        cornering: CorneringAnalysisEngine,
        aggregator: PerformanceAggregator | None = None,
        bus: EventBus | None = None,
        feedback_gate: FeedbackGate | None = None,
        stream=None,
    ) -> None:
        self._comparison = comparison
        self._cornering = cornering
        self._aggregator = aggregator or PerformanceAggregator()
        self._bus = bus or EventBus()
        self._gate = feedback_gate or FeedbackGate()
        self._stream = stream
        self._lap_number: int | None = None
        self._last_lap_time: float | None = None

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        bus: EventBus | None = None,
        stream=None,
    ) -> CoachingSession:
        """Build a session whose engines share *bus* and use *settings* thresholds."""
        settings = settings or Settings()
        bus = bus or EventBus()
        return cls(
            RealTimeComparisonEngine(settings.comparison, bus=bus),
            CorneringAnalysisEngine(settings.cornering, bus=bus),
            PerformanceAggregator(settings.aggregator),
            bus=bus,
            stream=stream,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def bus(self) -> EventBus:
        return self._bus

    @property
    def comparison(self) -> RealTimeComparisonEngine:
        return self._comparison

    @property
    def cornering(self) -> CorneringAnalysisEngine:
        return self._cornering

    def process(self, sample: TelemetrySample) -> SessionTick:
        """Process one sample through both engines."""
        lap_summary = None
        if (
            self._lap_number is not None
            and sample.lap_number > self._lap_number
            and self._last_lap_time is not None
        ):
            lap_summary = self.finish_lap(self._last_lap_time)
        self._lap_number = sample.lap_number

        comparison = self._comparison.process_sample(sample)
        cornering = self._cornering.process_sample(sample)

        feedback = self._gate.filter(list(cornering.feedback))
        for item in feedback:
            self._bus.publish(COACHING_FEEDBACK, item)

        if sample.is_finite():
            self._last_lap_time = sample.lap_time

        return SessionTick(
            comparison=comparison,
            cornering=cornering,
            feedback=feedback,
            lap_summary=lap_summary,
        )

    def finish_lap(self, lap_time: float) -> LapSummary:
        """Close the current lap, aggregate its comparisons and publish the summary."""
        comparisons = self._comparison.current_lap_comparisons
        lap_delta = self._comparison.complete_lap(lap_time)
        summary = self._aggregator.analyze(comparisons)
        lap = LapSummary(
            lap_number=self._lap_number if self._lap_number is not None else 0,
            lap_time=lap_time,
            lap_delta=lap_delta,
            summary=summary,
        )
        self._last_lap_time = None
        _logger.info(
            "Lap %d summarised from %d comparisons", lap.lap_number, summary.total_comparisons
        )
        self._bus.publish(LAP_COMPLETED, lap)
        return lap

    def start(self) -> None:
        """Start the underlying telemetry stream."""
        if self._stream is None:
            raise RuntimeError("CoachingSession has no stream to start")
        self._stream.start()

    def stop(self) -> None:
        """Stop the underlying telemetry stream."""
        if self._stream is not None:
            self._stream.stop()

    def tick(self, timeout: float = 0.0) -> SessionTick | None:
        """Process one queued event; return None if the queue is empty."""
        if self._stream is None:
            return None
        event = self._stream.get_event(timeout=timeout)
        if event is None:
            return None
        return self.process(event.sample)
