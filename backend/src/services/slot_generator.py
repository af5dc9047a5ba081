"""
Slot generation from a provider's availability settings.

Turns the weekly template, date exceptions, vacation window and booking policy
into an ordered sequence of bookable slots for a date range. Everything here is
a pure function of its arguments: nothing is read from the database and no
input is mutated, so results can be computed concurrently for many requests.
"""

import logging
from datetime import date, timedelta
from typing import Iterator, Optional, Tuple

from shared_types.availability import (
    BookingPolicy, ExceptionSet, Slot, SlotSource, TimeInterval, VacationWindow, WeeklyTemplate,
)
from shared_types.errors import MalformedExceptionError
from utils.datetime_utils import iter_dates
from utils.schedule_validators import guard_vacation_window, validate_day_rule, validate_exception_set

logger = logging.getLogger(__name__)


class SlotSequence:
    """
    Lazy, restartable sequence of slots.

    Slots are produced on iteration; iterating again reruns generation from the
    same inputs and yields the same slots.
    """

    def __init__(
        self,
        template: WeeklyTemplate,
        exceptions: ExceptionSet,
        vacation: Optional[VacationWindow],
        policy: BookingPolicy,
        range_start: date,
        range_end: date,
    ):
        self.template = template
        self.exceptions = exceptions
        self.vacation = vacation
        self.policy = policy
        self.range_start = range_start
        self.range_end = range_end

    def __iter__(self) -> Iterator[Slot]:
        for current_date in iter_dates(self.range_start, self.range_end):
            yield from SlotGenerator.slots_for_date(
                current_date, self.template, self.exceptions, self.vacation, self.policy
            )

    def __repr__(self) -> str:
        return f"SlotSequence({self.range_start.isoformat()}..{self.range_end.isoformat()})"


class SlotGenerator:
    """
    Service class for slot generation.

    Derives bookable windows from availability settings. Occupancy is not
    considered here; see OccupancyIndex.filter_slots.
    """

    @staticmethod
    def open_intervals_for_date(
        target_date: date,
        template: WeeklyTemplate,
        exceptions: ExceptionSet,
        vacation: Optional[VacationWindow],
    ) -> Tuple[Optional[SlotSource], Tuple[TimeInterval, ...]]:
        """
        Resolve the open intervals for one date.

        Vacation wins over everything, then a date exception (which replaces the
        weekly rule outright), then the weekday rule. Breaks are never open.

        Returns:
            (source, intervals) where source is None when the date is closed
        """
        if vacation is not None and vacation.covers(target_date):
            return None, ()

        exception = exceptions.get(target_date)
        if exception is not None:
            intervals = exception.open_intervals
            return (SlotSource.EXCEPTION if intervals else None), intervals

        intervals = template.day_rule(target_date.weekday()).open_intervals
        return (SlotSource.DAY_RULE if intervals else None), intervals

    @staticmethod
    def tile_interval(interval: TimeInterval, session_minutes: int, buffer_minutes: int) -> Iterator[Tuple[int, int]]:
        """
        Tile an open interval with sessions separated by a buffer.

        Yields (start, end) windows. A trailing remainder shorter than one
        session is dropped, giving floor((L + B) / (S + B)) windows.
        """
        cursor = interval.start
        while cursor + session_minutes <= interval.end:
            yield cursor, cursor + session_minutes
            cursor += session_minutes + buffer_minutes

    @staticmethod
    def slots_for_date(
        target_date: date,
        template: WeeklyTemplate,
        exceptions: ExceptionSet,
        vacation: Optional[VacationWindow],
        policy: BookingPolicy,
    ) -> Iterator[Slot]:
        """Generate the slots of a single date, ordered by start time."""
        source, intervals = SlotGenerator.open_intervals_for_date(target_date, template, exceptions, vacation)
        if source is None:
            return
        for interval in intervals:
            for start, end in SlotGenerator.tile_interval(
                interval, policy.session_duration_minutes, policy.buffer_minutes
            ):
                yield Slot(date=target_date, start=start, end=end, source=source)

    @staticmethod
    def check_inputs(
        template: WeeklyTemplate,
        exceptions: ExceptionSet,
        vacation: Optional[VacationWindow],
        policy: BookingPolicy,
        range_start: date,
        range_end: date,
    ) -> None:
        """
        Fail fast on invalid ranges and on settings that bypassed the write guards.

        Raises:
            ValueError: If the range is inverted or longer than the booking horizon
            MalformedTemplateError: If a weekday in range is missing or has overlapping intervals
            MalformedExceptionError: If an exception is malformed or dated outside the range
            MalformedVacationWindowError: If the vacation window is inverted
        """
        if range_end < range_start:
            raise ValueError(
                f"Range end {range_end.isoformat()} is before range start {range_start.isoformat()}"
            )
        range_days = (range_end - range_start).days + 1
        if range_days > policy.advance_booking_days + 1:
            raise ValueError(
                f"Range of {range_days} days exceeds the booking horizon of {policy.advance_booking_days} days"
            )

        if vacation is not None:
            guard_vacation_window(vacation)

        for exception in exceptions:
            if not range_start <= exception.date <= range_end:
                raise MalformedExceptionError(
                    f"Exception for {exception.date.isoformat()} is outside the requested range "
                    f"{range_start.isoformat()}..{range_end.isoformat()}",
                    date=exception.date,
                )
        validate_exception_set(exceptions)

        weekdays_in_range = {
            (range_start + timedelta(days=offset)).weekday() for offset in range(min(range_days, 7))
        }
        for weekday in sorted(weekdays_in_range):
            validate_day_rule(template.day_rule(weekday))

    @staticmethod
    def generate(
        template: WeeklyTemplate,
        exceptions: ExceptionSet,
        vacation: Optional[VacationWindow],
        policy: BookingPolicy,
        range_start: date,
        range_end: date,
    ) -> SlotSequence:
        """
        Generate candidate slots for every date in [range_start, range_end].

        Inputs are checked eagerly so malformed data fails here rather than
        midway through iteration.

        Args:
            template: Weekly recurring availability
            exceptions: Date overrides, all dated within the range
            vacation: Optional vacation window
            policy: Session, buffer and horizon settings
            range_start: First date to generate (inclusive)
            range_end: Last date to generate (inclusive)

        Returns:
            Restartable sequence of slots ordered by date then start time
        """
        SlotGenerator.check_inputs(template, exceptions, vacation, policy, range_start, range_end)
        logger.debug(
            f"Generating slots {range_start.isoformat()}..{range_end.isoformat()} "
            f"(session={policy.session_duration_minutes}, buffer={policy.buffer_minutes})"
        )
        return SlotSequence(template, exceptions, vacation, policy, range_start, range_end)
