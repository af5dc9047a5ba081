"""
Shared types for availability-related functionality.

This module contains the value objects the scheduling engine reads: the weekly
template, date exceptions, the vacation window and the booking policy, plus the
derived Slot and the OccupiedInterval input. All of them are immutable; the
engine never mutates its inputs.

Times are minutes since midnight in the practice timezone.
"""

from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum
from typing import Dict, Iterable, Iterator, Mapping, Optional, Tuple

from core.constants import (
    DEFAULT_ADVANCE_BOOKING_DAYS, DEFAULT_AUTO_CONFIRM_APPOINTMENTS, DEFAULT_BUFFER_MINUTES,
    DEFAULT_MAX_DAILY_APPOINTMENTS, DEFAULT_SESSION_DURATION_MINUTES,
    DEFAULT_WORKDAY_END, DEFAULT_WORKDAY_START, WORKDAYS,
)
from shared_types.errors import InvalidIntervalError, MalformedExceptionError, MalformedTemplateError
from utils.datetime_utils import MINUTES_PER_DAY, format_minutes, parse_time_string

WEEKDAY_NAMES = ('monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday')


@dataclass(frozen=True)
class TimeInterval:
    """
    A half-open wall-clock interval [start, end) within one day.

    ``is_break`` marks a break inside a day rule; breaks take part in overlap
    checks but never produce bookable slots.
    """
    start: int
    end: int
    is_break: bool = False

    def __post_init__(self) -> None:
        if not (0 <= self.start < MINUTES_PER_DAY and 0 <= self.end < MINUTES_PER_DAY):
            raise InvalidIntervalError(
                f"Interval {self.start}-{self.end} is outside a single day",
                first=self,
            )
        if self.start >= self.end:
            raise InvalidIntervalError(
                f"Interval start {format_minutes(self.start)} must be before end {format_minutes(self.end)}",
                first=self,
            )

    @classmethod
    def from_strings(cls, start: str, end: str, is_break: bool = False) -> "TimeInterval":
        """Build an interval from ``HH:MM`` strings."""
        return cls(parse_time_string(start), parse_time_string(end), is_break)

    @property
    def duration_minutes(self) -> int:
        return self.end - self.start

    def contains(self, start: int, end: int) -> bool:
        """Check if [start, end) lies entirely inside this interval."""
        return self.start <= start and end <= self.end

    def __str__(self) -> str:
        label = f"{format_minutes(self.start)}-{format_minutes(self.end)}"
        return f"{label} (break)" if self.is_break else label


def _sorted_intervals(intervals: Iterable[TimeInterval]) -> Tuple[TimeInterval, ...]:
    return tuple(sorted(intervals, key=lambda interval: (interval.start, interval.end)))


@dataclass(frozen=True)
class DayRule:
    """A weekday's recurring availability."""
    weekday: int
    is_available: bool
    intervals: Tuple[TimeInterval, ...] = ()

    @classmethod
    def unavailable(cls, weekday: int) -> "DayRule":
        return cls(weekday=weekday, is_available=False, intervals=())

    @classmethod
    def from_intervals(cls, weekday: int, intervals: Iterable[TimeInterval]) -> "DayRule":
        """Build a rule whose availability flag follows from having intervals."""
        ordered = _sorted_intervals(intervals)
        return cls(weekday=weekday, is_available=bool(ordered), intervals=ordered)

    @property
    def open_intervals(self) -> Tuple[TimeInterval, ...]:
        """Intervals that can be booked (breaks excluded)."""
        if not self.is_available:
            return ()
        return tuple(interval for interval in self.intervals if not interval.is_break)

    @property
    def weekday_name(self) -> str:
        return WEEKDAY_NAMES[self.weekday]


@dataclass(frozen=True)
class WeeklyTemplate:
    """Mapping from weekday (0=Monday ... 6=Sunday) to its DayRule."""
    rules: Mapping[int, DayRule] = field(default_factory=dict)

    @classmethod
    def from_rules(cls, rules: Iterable[DayRule]) -> "WeeklyTemplate":
        return cls(rules={rule.weekday: rule for rule in rules})

    @classmethod
    def default(cls) -> "WeeklyTemplate":
        """Monday-Friday office hours, weekend off."""
        workday = TimeInterval.from_strings(DEFAULT_WORKDAY_START, DEFAULT_WORKDAY_END)
        return cls.from_rules(
            DayRule.from_intervals(weekday, [workday]) if weekday in WORKDAYS
            else DayRule.unavailable(weekday)
            for weekday in range(7)
        )

    def day_rule(self, weekday: int) -> DayRule:
        try:
            return self.rules[weekday]
        except KeyError:
            raise MalformedTemplateError(
                f"Weekly template has no rule for {WEEKDAY_NAMES[weekday]}",
                weekday=weekday,
            )

    def copy_day_to_weekdays(self, source_weekday: int) -> "WeeklyTemplate":
        """Return a template where Monday-Friday all follow the source weekday's rule."""
        source = self.day_rule(source_weekday)
        rules: Dict[int, DayRule] = dict(self.rules)
        for weekday in WORKDAYS:
            if weekday != source_weekday:
                rules[weekday] = replace(source, weekday=weekday)
        return WeeklyTemplate(rules=rules)

    def __iter__(self) -> Iterator[DayRule]:
        for weekday in sorted(self.rules):
            yield self.rules[weekday]


@dataclass(frozen=True)
class ScheduleException:
    """
    A date-specific override of the weekly template.

    Either blocks the whole day or replaces the day's intervals with
    ``custom_intervals``; the two are never merged with the template.
    """
    date: date
    reason: str
    full_day_block: bool
    custom_intervals: Tuple[TimeInterval, ...] = ()

    @property
    def open_intervals(self) -> Tuple[TimeInterval, ...]:
        if self.full_day_block:
            return ()
        return tuple(interval for interval in _sorted_intervals(self.custom_intervals) if not interval.is_break)


class ExceptionSet:
    """Date-keyed collection of ScheduleExceptions, at most one per date."""

    def __init__(self, exceptions: Iterable[ScheduleException] = ()):
        by_date: Dict[date, ScheduleException] = {}
        for exception in exceptions:
            if exception.date in by_date:
                raise MalformedExceptionError(
                    f"More than one exception recorded for {exception.date.isoformat()}",
                    date=exception.date,
                )
            by_date[exception.date] = exception
        self._by_date = by_date

    def get(self, target_date: date) -> Optional[ScheduleException]:
        return self._by_date.get(target_date)

    def __iter__(self) -> Iterator[ScheduleException]:
        for exception_date in sorted(self._by_date):
            yield self._by_date[exception_date]

    def __len__(self) -> int:
        return len(self._by_date)

    def __contains__(self, target_date: object) -> bool:
        return target_date in self._by_date


@dataclass(frozen=True)
class VacationWindow:
    """Inclusive date range during which the provider accepts no bookings."""
    start: date
    end: date
    message: Optional[str] = None

    def covers(self, target_date: date) -> bool:
        return self.start <= target_date <= self.end


@dataclass(frozen=True)
class BookingPolicy:
    """Scalar booking parameters."""
    session_duration_minutes: int = DEFAULT_SESSION_DURATION_MINUTES
    buffer_minutes: int = DEFAULT_BUFFER_MINUTES
    max_daily_appointments: int = DEFAULT_MAX_DAILY_APPOINTMENTS
    advance_booking_days: int = DEFAULT_ADVANCE_BOOKING_DAYS
    auto_confirm_appointments: bool = DEFAULT_AUTO_CONFIRM_APPOINTMENTS

    def __post_init__(self) -> None:
        if self.session_duration_minutes <= 0:
            raise ValueError("session_duration_minutes must be positive")
        if self.buffer_minutes < 0:
            raise ValueError("buffer_minutes cannot be negative")
        if self.max_daily_appointments <= 0:
            raise ValueError("max_daily_appointments must be positive")
        if self.advance_booking_days <= 0:
            raise ValueError("advance_booking_days must be positive")


class SlotSource(str, Enum):
    """Where a slot's open interval came from."""
    DAY_RULE = "day_rule"
    EXCEPTION = "exception"


@dataclass(frozen=True)
class Slot:
    """A derived bookable window. Never persisted."""
    date: date
    start: int
    end: int
    source: SlotSource

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary format."""
        return {
            "date": self.date.isoformat(),
            "start_time": format_minutes(self.start),
            "end_time": format_minutes(self.end),
            "source": self.source.value,
        }


@dataclass(frozen=True)
class OccupiedInterval:
    """Time already consumed by a non-cancelled appointment."""
    date: date
    start: int
    end: int
