"""Hot-path rules: cooldown tracking and per-category feedback gating."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field

from lap_coach.cornering.models import CoachingFeedback, FeedbackCategory, FeedbackPriority

DEFAULT_CATEGORY_COOLDOWNS: dict[FeedbackCategory, float] = {
    FeedbackCategory.BRAKING: 8.0,
    FeedbackCategory.CORNERING: 12.0,
    FeedbackCategory.THROTTLE: 6.0,
    FeedbackCategory.STEERING: 6.0,
    FeedbackCategory.SAFETY: 2.0,
}


@dataclass
class CooldownTracker:
    """Prevents a rule from firing more than once per *cooldown_s* seconds."""

    cooldown_s: float
    time_fn: Callable[[], float] = field(default=time.monotonic, repr=False)
    _last_fire: float | None = field(default=None, init=False, repr=False)

    def can_fire(self) -> bool:
        """Return True if enough time has passed since the last fire."""
        if self._last_fire is None:
            return True
        return (self.time_fn() - self._last_fire) >= self.cooldown_s

    def mark_fired(self) -> None:
        """Record that the rule just fired."""
        self._last_fire = self.time_fn()


class FeedbackGate:
    """Throttles coaching feedback so the driver is not flooded.

    Each :class:`FeedbackCategory` has its own :class:`CooldownTracker`.
    ``CRITICAL`` feedback always passes.  Within one :meth:`filter` call at
    most one item per category gets through, the highest priority first.

    Parameters
    ----------
    cooldowns:
        Seconds per category; missing categories use *default_cooldown_s*.
    default_cooldown_s:
        Cooldown for categories not listed in *cooldowns*.
    time_fn:
        Clock used by the trackers (injectable for tests).
    """

    def __init__(
        self,
        cooldowns: dict[FeedbackCategory, float] | None = None,
        default_cooldown_s: float = 10.0,
        time_fn: Callable[[], float] = time.monotonic,
    ) -> None:
        self._cooldowns = dict(DEFAULT_CATEGORY_COOLDOWNS if cooldowns is None else cooldowns)
        self._default = default_cooldown_s
        self._time_fn = time_fn
        self._trackers: dict[FeedbackCategory, CooldownTracker] = {}

    def filter(self, feedback: list[CoachingFeedback]) -> list[CoachingFeedback]:
        """Return the items of *feedback* allowed through right now."""
        passed: list[CoachingFeedback] = []
        ranked = sorted(feedback, key=lambda f: f.priority, reverse=True)
        for item in ranked:
            if item.priority is FeedbackPriority.CRITICAL:
                passed.append(item)
                continue
            tracker = self._tracker(item.category)
            if tracker.can_fire():
                tracker.mark_fired()
                passed.append(item)
        return passed

    def reset(self) -> None:
        self._trackers.clear()

    def _tracker(self, category: FeedbackCategory) -> CooldownTracker:
        tracker = self._trackers.get(category)
        if tracker is None:
            cooldown = self._cooldowns.get(category, self._default)
            tracker = CooldownTracker(cooldown, time_fn=self._time_fn)
            self._trackers[category] = tracker
        return tracker
