"""
Unit tests for OccupancyIndex.
"""

from datetime import date, timedelta

from services.occupancy_index import OccupancyIndex
from services.slot_generator import SlotGenerator
from shared_types.availability import BookingPolicy, ExceptionSet, OccupiedInterval
from utils.datetime_utils import format_minutes, parse_time_string

MONDAY = date(2024, 6, 3)


def _occupied(day: date, start: str, end: str) -> OccupiedInterval:
    return OccupiedInterval(date=day, start=parse_time_string(start), end=parse_time_string(end))


class TestOccupancyIndex:
    """Test grouping and counting of occupied intervals."""

    def test_groups_by_date_and_sorts(self):
        later = _occupied(MONDAY, "14:00", "15:00")
        earlier = _occupied(MONDAY, "09:00", "10:00")
        other_day = _occupied(MONDAY + timedelta(days=1), "09:00", "10:00")

        index = OccupancyIndex([later, other_day, earlier])

        assert index.intervals_on(MONDAY) == (earlier, later)
        assert index.booked_count(MONDAY) == 2
        assert index.booked_count(MONDAY + timedelta(days=1)) == 1
        assert len(index) == 3

    def test_empty_index(self):
        index = OccupancyIndex.empty()
        assert index.intervals_on(MONDAY) == ()
        assert index.booked_count(MONDAY) == 0
        assert len(index) == 0

    def test_is_full(self):
        policy = BookingPolicy(max_daily_appointments=2)
        index = OccupancyIndex([_occupied(MONDAY, "09:00", "10:00")])
        assert not index.is_full(MONDAY, policy)

        index = OccupancyIndex([_occupied(MONDAY, "09:00", "10:00"), _occupied(MONDAY, "11:30", "12:30")])
        assert index.is_full(MONDAY, policy)


class TestFilterSlots:
    """Test removal of taken slots and capacity enforcement."""

    def _slots(self, template, policy, start=MONDAY, end=MONDAY):
        return list(SlotGenerator.generate(template, ExceptionSet(), None, policy, start, end))

    def test_removes_only_overlapping_slots(self, monday_template, default_policy):
        index = OccupancyIndex([_occupied(MONDAY, "10:15", "11:15")])

        remaining = list(index.filter_slots(self._slots(monday_template, default_policy), default_policy))

        starts = [format_minutes(slot.start) for slot in remaining]
        assert starts == ["09:00", "11:30", "12:45", "14:00", "15:15"]

    def test_off_grid_appointment_removes_every_touched_slot(self, monday_template, default_policy):
        # 09:30-10:30 straddles the 09:00 and 10:15 slots
        index = OccupancyIndex([_occupied(MONDAY, "09:30", "10:30")])

        remaining = list(index.filter_slots(self._slots(monday_template, default_policy), default_policy))

        assert [format_minutes(slot.start) for slot in remaining] == ["11:30", "12:45", "14:00", "15:15"]

    def test_touching_appointment_keeps_neighbouring_slot(self, monday_template, default_policy):
        index = OccupancyIndex([_occupied(MONDAY, "10:00", "10:15")])

        remaining = list(index.filter_slots(self._slots(monday_template, default_policy), default_policy))

        assert len(remaining) == 6

    def test_full_day_loses_all_slots(self, monday_template):
        policy = BookingPolicy(max_daily_appointments=1)
        index = OccupancyIndex([_occupied(MONDAY, "09:00", "10:00")])

        remaining = list(index.filter_slots(self._slots(monday_template, policy), policy))

        assert remaining == []

    def test_capacity_is_per_date(self, monday_template):
        policy = BookingPolicy(max_daily_appointments=1)
        next_week = MONDAY + timedelta(days=7)
        index = OccupancyIndex([_occupied(MONDAY, "09:00", "10:00")])

        remaining = list(index.filter_slots(self._slots(monday_template, policy, MONDAY, next_week), policy))

        assert remaining
        assert {slot.date for slot in remaining} == {next_week}

    def test_never_returns_a_slot_overlapping_occupancy(self, monday_template, default_policy):
        occupied = [_occupied(MONDAY, "09:45", "10:20"), _occupied(MONDAY, "13:00", "13:05")]
        index = OccupancyIndex(occupied)

        remaining = list(index.filter_slots(self._slots(monday_template, default_policy), default_policy))

        for slot in remaining:
            assert all(not (slot.start < o.end and o.start < slot.end) for o in occupied)
