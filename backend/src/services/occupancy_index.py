"""
Occupancy index over non-cancelled appointments.

Groups occupied intervals by date and filters generated slots against them:
first slots overlapping an appointment are removed, then a date that has
reached its daily appointment ceiling loses all remaining slots.
"""

from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, Iterator, List, Tuple

from shared_types.availability import BookingPolicy, OccupiedInterval, Slot
from utils.conflict_detector import overlaps_any


class OccupancyIndex:
    """Read-only view of booked time, keyed by date."""

    def __init__(self, occupied: Iterable[OccupiedInterval] = ()):
        by_date: Dict[date, List[OccupiedInterval]] = defaultdict(list)
        for interval in occupied:
            by_date[interval.date].append(interval)
        self._by_date: Dict[date, Tuple[OccupiedInterval, ...]] = {
            occupied_date: tuple(sorted(intervals, key=lambda i: (i.start, i.end)))
            for occupied_date, intervals in by_date.items()
        }

    @classmethod
    def empty(cls) -> "OccupancyIndex":
        return cls(())

    def intervals_on(self, target_date: date) -> Tuple[OccupiedInterval, ...]:
        """Occupied intervals on a date, ordered by start."""
        return self._by_date.get(target_date, ())

    def booked_count(self, target_date: date) -> int:
        """Number of non-cancelled appointments on a date."""
        return len(self._by_date.get(target_date, ()))

    def is_full(self, target_date: date, policy: BookingPolicy) -> bool:
        return self.booked_count(target_date) >= policy.max_daily_appointments

    def filter_slots(self, slots: Iterable[Slot], policy: BookingPolicy) -> Iterator[Slot]:
        """
        Remove slots that are taken or on a fully booked date.

        Overlap removal runs before the capacity check so a conflicting slot is
        always dropped for the conflict, whether or not the cap is reached.
        """
        for slot in slots:
            if overlaps_any(slot, self.intervals_on(slot.date)):
                continue
            if self.is_full(slot.date, policy):
                continue
            yield slot

    def __len__(self) -> int:
        return sum(len(intervals) for intervals in self._by_date.values())
