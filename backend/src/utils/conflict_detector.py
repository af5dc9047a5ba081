"""
Overlap detection shared by settings guards and booking validation.

Intervals are half-open: an interval ending at 10:00 does not conflict with one
starting at 10:00. Any object with integer ``start`` and ``end`` attributes
(TimeInterval, OccupiedInterval, BookingRequest) can be compared.
"""

from typing import Iterable, Optional, Protocol, Sequence, Tuple, TypeVar


class HasSpan(Protocol):
    start: int
    end: int


SpanT = TypeVar("SpanT", bound=HasSpan)


def overlaps(a: HasSpan, b: HasSpan) -> bool:
    """Check if two intervals overlap."""
    return a.start < b.end and b.start < a.end


def find_internal_overlap(intervals: Iterable[SpanT]) -> Optional[Tuple[SpanT, SpanT]]:
    """
    Find the first pair of colliding intervals.

    Sorts by start and scans adjacent pairs, which is enough to find a collision
    if any exists.

    Returns:
        The first (earlier, later) colliding pair, or None if all are disjoint
    """
    ordered = sorted(intervals, key=lambda interval: (interval.start, interval.end))
    for current, following in zip(ordered, ordered[1:]):
        if overlaps(current, following):
            return current, following
    return None


def has_internal_overlap(intervals: Iterable[HasSpan]) -> bool:
    """Check if any two intervals in the collection overlap."""
    return find_internal_overlap(intervals) is not None


def overlaps_any(candidate: HasSpan, others: Sequence[HasSpan]) -> bool:
    """Check if candidate overlaps at least one interval in others."""
    return any(overlaps(candidate, other) for other in others)
