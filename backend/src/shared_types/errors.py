"""
Malformed-input errors raised by the scheduling engine and settings guards.

These represent data that violates schedule invariants (overlapping intervals,
inverted ranges, duplicate exceptions). They are raised, never returned:
expected business outcomes such as a taken slot are BookingDecision values.
"""

from datetime import date as date_type
from typing import Any, Optional


class MalformedScheduleError(ValueError):
    """Base class for schedule data that violates an engine invariant."""

    def __init__(
        self,
        message: str,
        *,
        weekday: Optional[int] = None,
        date: Optional[date_type] = None,
        first: Any = None,
        second: Any = None,
    ):
        self.message = message
        self.weekday = weekday
        self.date = date
        self.first = first
        self.second = second
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Describe the violation for API error responses."""
        result: dict[str, Any] = {"message": self.message}
        if self.weekday is not None:
            result["weekday"] = self.weekday
        if self.date is not None:
            result["date"] = self.date.isoformat()
        if self.first is not None:
            result["first"] = str(self.first)
        if self.second is not None:
            result["second"] = str(self.second)
        return result


class InvalidIntervalError(MalformedScheduleError):
    """A single interval whose start is not before its end, or lies outside one day."""


class MalformedTemplateError(MalformedScheduleError):
    """A weekly template with missing weekdays, inconsistent day rules or overlaps."""


class MalformedExceptionError(MalformedScheduleError):
    """A date exception that is ambiguous, overlapping or outside the queried range."""


class DuplicateExceptionError(MalformedExceptionError):
    """An exception already exists for the date and replacement was not requested."""


class MalformedVacationWindowError(MalformedScheduleError):
    """A vacation window whose start date is after its end date."""
