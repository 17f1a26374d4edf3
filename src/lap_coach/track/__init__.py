"""Track segments and layouts."""

from lap_coach.track.models import SegmentType, TrackLayout, TrackLayoutError, TrackSegment

__all__ = ["SegmentType", "TrackLayout", "TrackLayoutError", "TrackSegment"]
