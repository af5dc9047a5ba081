"""
Booking request validation.

Checks a requested (date, start, end) against the provider's settings and
current occupancy. Business rejections are returned as BookingDecision values;
only malformed settings raise.
"""

import logging
from datetime import date, timedelta
from typing import Optional

from services.occupancy_index import OccupancyIndex
from services.slot_generator import SlotGenerator
from shared_types.availability import BookingPolicy, ExceptionSet, VacationWindow, WeeklyTemplate
from shared_types.booking import BookingDecision, BookingRequest, RejectionReason
from utils.conflict_detector import overlaps_any
from utils.schedule_validators import guard_vacation_window, validate_day_rule, validate_exception

logger = logging.getLogger(__name__)


class BookingValidator:
    """
    Service class for booking validation.

    Checks run in a fixed order and the first failure wins:
    booking window, vacation, duration, availability, conflict, capacity.
    Safe to call again inside the transaction that inserts the appointment.
    """

    @staticmethod
    def _check_settings(
        request: BookingRequest,
        template: WeeklyTemplate,
        exceptions: ExceptionSet,
        vacation: Optional[VacationWindow],
    ) -> None:
        """Fail fast on settings for the requested date that bypassed the write guards."""
        if vacation is not None:
            guard_vacation_window(vacation)
        exception = exceptions.get(request.date)
        if exception is not None:
            validate_exception(exception)
        else:
            validate_day_rule(template.day_rule(request.date.weekday()))

    @staticmethod
    def validate(
        request: BookingRequest,
        template: WeeklyTemplate,
        exceptions: ExceptionSet,
        vacation: Optional[VacationWindow],
        policy: BookingPolicy,
        occupancy: OccupancyIndex,
        today: date,
    ) -> BookingDecision:
        """
        Validate a booking request.

        Args:
            request: Requested date and time window
            template: Weekly recurring availability
            exceptions: Date overrides (only the requested date is consulted)
            vacation: Optional vacation window
            policy: Booking policy
            occupancy: Non-cancelled appointments
            today: Current date in the practice timezone

        Returns:
            Accepted decision with the initial appointment status, or a
            rejection carrying the first failing reason

        Raises:
            MalformedScheduleError: If settings for the requested date are malformed
        """
        BookingValidator._check_settings(request, template, exceptions, vacation)

        last_bookable = today + timedelta(days=policy.advance_booking_days)
        if not today <= request.date <= last_bookable:
            return BookingDecision.reject(RejectionReason.OUT_OF_WINDOW)

        if vacation is not None and vacation.covers(request.date):
            return BookingDecision.reject(RejectionReason.VACATION, vacation.message)

        if request.duration_minutes != policy.session_duration_minutes:
            return BookingDecision.reject(
                RejectionReason.DURATION_MISMATCH,
                f"Sessions are {policy.session_duration_minutes} minutes long.",
            )

        _, open_intervals = SlotGenerator.open_intervals_for_date(request.date, template, exceptions, vacation)
        if not any(interval.contains(request.start, request.end) for interval in open_intervals):
            return BookingDecision.reject(RejectionReason.OUTSIDE_AVAILABILITY)

        if overlaps_any(request, occupancy.intervals_on(request.date)):
            return BookingDecision.reject(RejectionReason.CONFLICT)

        if occupancy.booked_count(request.date) >= policy.max_daily_appointments:
            return BookingDecision.reject(RejectionReason.CAPACITY_REACHED)

        return BookingDecision.accept(policy.auto_confirm_appointments)
