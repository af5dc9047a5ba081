"""
Unit tests for BookingValidator.

Each rejection reason is exercised on its own, then combinations check that
the first failing check in the documented order wins.
"""

import pytest
from datetime import date, timedelta

from services.booking_validator import BookingValidator
from services.occupancy_index import OccupancyIndex
from shared_types.availability import (
    BookingPolicy, DayRule, ExceptionSet, OccupiedInterval, ScheduleException, TimeInterval, VacationWindow,
    WeeklyTemplate,
)
from shared_types.booking import BookingRequest, RejectionReason
from shared_types.errors import MalformedExceptionError, MalformedTemplateError
from utils.datetime_utils import parse_time_string

TODAY = date(2024, 6, 1)
MONDAY = date(2024, 6, 3)


def _request(day: date, start: str, end: str) -> BookingRequest:
    return BookingRequest(date=day, start=parse_time_string(start), end=parse_time_string(end))


def _occupied(day: date, start: str, end: str) -> OccupiedInterval:
    return OccupiedInterval(date=day, start=parse_time_string(start), end=parse_time_string(end))


def _validate(request, template, policy, exceptions=None, vacation=None, occupancy=None, today=TODAY):
    return BookingValidator.validate(
        request,
        template,
        exceptions or ExceptionSet(),
        vacation,
        policy,
        occupancy or OccupancyIndex.empty(),
        today,
    )


class TestAcceptedBookings:
    """Test requests that pass every check."""

    def test_slot_on_grid_accepted(self, monday_template, default_policy):
        decision = _validate(_request(MONDAY, "10:15", "11:15"), monday_template, default_policy)

        assert decision.accepted
        assert decision.reason is None
        assert decision.appointment_status == "confirmed"

    def test_off_grid_request_inside_availability_accepted(self, monday_template, default_policy):
        decision = _validate(_request(MONDAY, "09:40", "10:40"), monday_template, default_policy)
        assert decision.accepted

    def test_pending_status_without_auto_confirm(self, monday_template):
        policy = BookingPolicy(auto_confirm_appointments=False)

        decision = _validate(_request(MONDAY, "09:00", "10:00"), monday_template, policy)

        assert decision.accepted
        assert decision.appointment_status == "pending"

    def test_booking_today_allowed(self, default_policy):
        template = WeeklyTemplate.from_rules(DayRule.from_intervals(d, [TimeInterval.from_strings("09:00", "17:00")]) for d in range(7))
        assert _validate(_request(TODAY, "09:00", "10:00"), template, default_policy).accepted

    def test_last_day_of_horizon_allowed(self):
        template = WeeklyTemplate.from_rules(DayRule.from_intervals(d, [TimeInterval.from_strings("09:00", "17:00")]) for d in range(7))
        policy = BookingPolicy(advance_booking_days=10)

        assert _validate(_request(TODAY + timedelta(days=10), "09:00", "10:00"), template, policy).accepted


class TestRejections:
    """Test each rejection reason in isolation."""

    def test_past_date_out_of_window(self, monday_template, default_policy):
        last_monday = MONDAY - timedelta(days=7)

        decision = _validate(_request(last_monday, "09:00", "10:00"), monday_template, default_policy)

        assert not decision.accepted
        assert decision.reason == RejectionReason.OUT_OF_WINDOW

    def test_beyond_horizon_out_of_window(self, monday_template):
        policy = BookingPolicy(advance_booking_days=1)

        decision = _validate(_request(MONDAY, "09:00", "10:00"), monday_template, policy)

        assert decision.reason == RejectionReason.OUT_OF_WINDOW

    def test_vacation_carries_message(self, monday_template, default_policy):
        vacation = VacationWindow(start=MONDAY, end=MONDAY + timedelta(days=6), message="Back on the 10th.")

        decision = _validate(_request(MONDAY, "09:00", "10:00"), monday_template, default_policy, vacation=vacation)

        assert decision.reason == RejectionReason.VACATION
        assert "Back on the 10th." in decision.message

    def test_duration_mismatch(self, monday_template, default_policy):
        decision = _validate(_request(MONDAY, "09:00", "09:45"), monday_template, default_policy)

        assert decision.reason == RejectionReason.DURATION_MISMATCH
        assert "60 minutes" in decision.message

    @pytest.mark.parametrize("start,end", [
        ("08:30", "09:30"),
        ("16:30", "17:30"),
        ("17:00", "18:00"),
    ])
    def test_outside_availability(self, monday_template, default_policy, start, end):
        decision = _validate(_request(MONDAY, start, end), monday_template, default_policy)
        assert decision.reason == RejectionReason.OUTSIDE_AVAILABILITY

    def test_unavailable_weekday(self, monday_template, default_policy):
        tuesday = MONDAY + timedelta(days=1)
        decision = _validate(_request(tuesday, "09:00", "10:00"), monday_template, default_policy)
        assert decision.reason == RejectionReason.OUTSIDE_AVAILABILITY

    def test_request_spanning_a_break(self, default_policy):
        template = WeeklyTemplate.from_rules([DayRule.from_intervals(0, [
            TimeInterval.from_strings("09:00", "12:00"),
            TimeInterval.from_strings("12:00", "13:00", is_break=True),
            TimeInterval.from_strings("13:00", "17:00"),
        ])] + [DayRule.unavailable(d) for d in range(1, 7)])

        decision = _validate(_request(MONDAY, "11:30", "12:30"), template, default_policy)

        assert decision.reason == RejectionReason.OUTSIDE_AVAILABILITY

    def test_full_day_block_exception(self, monday_template, default_policy):
        exceptions = ExceptionSet([ScheduleException(date=MONDAY, reason="Conference", full_day_block=True)])

        decision = _validate(_request(MONDAY, "09:00", "10:00"), monday_template, default_policy, exceptions)

        assert decision.reason == RejectionReason.OUTSIDE_AVAILABILITY

    def test_custom_exception_replaces_template(self, monday_template, default_policy):
        exceptions = ExceptionSet([ScheduleException(
            date=MONDAY, reason="Afternoon only", full_day_block=False,
            custom_intervals=(TimeInterval.from_strings("14:00", "16:00"),),
        )])

        morning = _validate(_request(MONDAY, "09:00", "10:00"), monday_template, default_policy, exceptions)
        afternoon = _validate(_request(MONDAY, "14:00", "15:00"), monday_template, default_policy, exceptions)

        assert morning.reason == RejectionReason.OUTSIDE_AVAILABILITY
        assert afternoon.accepted

    def test_conflict_with_existing_appointment(self, monday_template, default_policy):
        occupancy = OccupancyIndex([_occupied(MONDAY, "10:15", "11:15")])

        decision = _validate(_request(MONDAY, "10:15", "11:15"), monday_template, default_policy, occupancy=occupancy)

        assert decision.reason == RejectionReason.CONFLICT

    def test_partial_overlap_is_conflict(self, monday_template, default_policy):
        occupancy = OccupancyIndex([_occupied(MONDAY, "10:00", "11:00")])

        decision = _validate(_request(MONDAY, "10:30", "11:30"), monday_template, default_policy, occupancy=occupancy)

        assert decision.reason == RejectionReason.CONFLICT

    def test_adjacent_appointment_is_not_conflict(self, monday_template, default_policy):
        occupancy = OccupancyIndex([_occupied(MONDAY, "09:00", "10:00")])

        decision = _validate(_request(MONDAY, "10:00", "11:00"), monday_template, default_policy, occupancy=occupancy)

        assert decision.accepted

    def test_capacity_reached(self, monday_template):
        policy = BookingPolicy(max_daily_appointments=1)
        occupancy = OccupancyIndex([_occupied(MONDAY, "09:00", "10:00")])

        decision = _validate(_request(MONDAY, "14:00", "15:00"), monday_template, policy, occupancy=occupancy)

        assert decision.reason == RejectionReason.CAPACITY_REACHED

    def test_capacity_only_counts_requested_date(self, monday_template):
        policy = BookingPolicy(max_daily_appointments=1)
        occupancy = OccupancyIndex([_occupied(MONDAY, "09:00", "10:00")])

        decision = _validate(_request(MONDAY + timedelta(days=7), "09:00", "10:00"), monday_template, policy, occupancy=occupancy)

        assert decision.accepted


class TestCheckOrder:
    """Test that the first failing check decides the reason."""

    def test_out_of_window_beats_outside_availability(self, monday_template, default_policy):
        sunday_last_week = TODAY - timedelta(days=6)

        decision = _validate(_request(sunday_last_week, "03:00", "04:00"), monday_template, default_policy)

        assert decision.reason == RejectionReason.OUT_OF_WINDOW

    def test_vacation_beats_duration_mismatch(self, monday_template, default_policy):
        vacation = VacationWindow(start=MONDAY, end=MONDAY)

        decision = _validate(_request(MONDAY, "09:00", "09:30"), monday_template, default_policy, vacation=vacation)

        assert decision.reason == RejectionReason.VACATION

    def test_duration_mismatch_beats_outside_availability(self, monday_template, default_policy):
        decision = _validate(_request(MONDAY, "18:00", "18:30"), monday_template, default_policy)
        assert decision.reason == RejectionReason.DURATION_MISMATCH

    def test_outside_availability_beats_conflict(self, monday_template, default_policy):
        occupancy = OccupancyIndex([_occupied(MONDAY, "16:30", "17:30")])

        decision = _validate(_request(MONDAY, "16:30", "17:30"), monday_template, default_policy, occupancy=occupancy)

        assert decision.reason == RejectionReason.OUTSIDE_AVAILABILITY

    def test_conflict_beats_capacity(self, monday_template):
        policy = BookingPolicy(max_daily_appointments=1)
        occupancy = OccupancyIndex([_occupied(MONDAY, "09:00", "10:00")])

        decision = _validate(_request(MONDAY, "09:00", "10:00"), monday_template, policy, occupancy=occupancy)

        assert decision.reason == RejectionReason.CONFLICT

    def test_revalidation_is_stable(self, monday_template, default_policy):
        request = _request(MONDAY, "11:30", "12:30")
        first = _validate(request, monday_template, default_policy)
        second = _validate(request, monday_template, default_policy)
        assert first == second


class TestMalformedSettings:
    """Test that corrupt settings for the requested date raise instead of deciding."""

    def test_overlapping_day_rule_raises(self, default_policy):
        template = WeeklyTemplate.from_rules([DayRule.from_intervals(0, [
            TimeInterval.from_strings("09:00", "12:00"),
            TimeInterval.from_strings("11:00", "13:00"),
        ])] + [DayRule.unavailable(d) for d in range(1, 7)])

        with pytest.raises(MalformedTemplateError):
            _validate(_request(MONDAY, "09:00", "10:00"), template, default_policy)

    def test_ambiguous_exception_raises(self, monday_template, default_policy):
        exceptions = ExceptionSet([ScheduleException(
            date=MONDAY, reason="Both", full_day_block=True,
            custom_intervals=(TimeInterval.from_strings("09:00", "10:00"),),
        )])

        with pytest.raises(MalformedExceptionError):
            _validate(_request(MONDAY, "09:00", "10:00"), monday_template, default_policy, exceptions)
