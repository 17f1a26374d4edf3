"""Track layout data structures."""

from __future__ import annotations

import bisect
from dataclasses import dataclass, field
from enum import Enum


class TrackLayoutError(ValueError):
    """Raised when a track layout is empty, unsorted or has overlapping segments."""


class SegmentType(str, Enum):
    STRAIGHT = "straight"
    LEFT_TURN = "left_turn"
    RIGHT_TURN = "right_turn"
    CHICANE = "chicane"
    BRAKING_ZONE = "braking_zone"
    ACCELERATION_ZONE = "acceleration_zone"
    HAIRPIN = "hairpin"
    FAST_CORNER = "fast_corner"
    SLOW_CORNER = "slow_corner"
    COMPLEX_CORNER = "complex_corner"


_CORNER_TYPES = frozenset(
    {
        SegmentType.LEFT_TURN,
        SegmentType.RIGHT_TURN,
        SegmentType.CHICANE,
        SegmentType.HAIRPIN,
        SegmentType.FAST_CORNER,
        SegmentType.SLOW_CORNER,
        SegmentType.COMPLEX_CORNER,
    }
)


@dataclass(frozen=True)
class TrackSegment:
    """A contiguous stretch of track.

    A segment covers the half-open distance range ``[start, start + length)``.
    """

    id: str
    """Stable identifier, used to group comparisons across laps."""

    number: int
    """Sequential segment number (1-based) in driving order."""

    start: float
    """Distance from start/finish in metres."""

    length: float
    """Segment length in metres. Must be > 0."""

    segment_type: SegmentType = SegmentType.STRAIGHT

    @property
    def end(self) -> float:
        return self.start + self.length

    def contains(self, distance: float) -> bool:
        return self.start <= distance < self.end

    def is_corner(self) -> bool:
        return self.segment_type in _CORNER_TYPES

    def is_braking_zone(self) -> bool:
        return self.segment_type is SegmentType.BRAKING_ZONE


@dataclass(frozen=True)
class TrackLayout:
    """Ordered, non-overlapping segments of one track.

    Raises:
        TrackLayoutError: On construction, if there are no segments, a segment
            has a non-positive length, or segments are unsorted or overlap.
    """

    track_name: str
    segments: tuple[TrackSegment, ...]
    _starts: tuple[float, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        segments = tuple(self.segments)
        if not segments:
            raise TrackLayoutError(f"Track layout {self.track_name!r} has no segments")

        for seg in segments:
            if not seg.length > 0:
                raise TrackLayoutError(f"Segment {seg.id!r} has non-positive length {seg.length}")

        for prev, nxt in zip(segments, segments[1:]):
            if nxt.start <= prev.start or nxt.number <= prev.number:
                raise TrackLayoutError(
                    f"Segments {prev.id!r} and {nxt.id!r} are not in driving order"
                )
            if nxt.start < prev.end:
                raise TrackLayoutError(f"Segments {prev.id!r} and {nxt.id!r} overlap")

        object.__setattr__(self, "segments", segments)
        object.__setattr__(self, "_starts", tuple(s.start for s in segments))

    @property
    def total_length(self) -> float:
        return self.segments[-1].end

    def segment_at(self, distance: float) -> TrackSegment | None:
        """Return the segment containing *distance*, or None if it falls in a gap."""
        idx = bisect.bisect_right(self._starts, distance) - 1
        if idx < 0:
            return None
        seg = self.segments[idx]
        return seg if seg.contains(distance) else None

    def corner_segments(self) -> list[TrackSegment]:
        return [s for s in self.segments if s.is_corner()]

    def braking_zone_segments(self) -> list[TrackSegment]:
        return [s for s in self.segments if s.is_braking_zone()]
