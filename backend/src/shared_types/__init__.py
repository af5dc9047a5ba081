"""
Shared type definitions for the practice scheduling backend.

This module contains dataclasses and types that are used across multiple services.
"""

from shared_types.availability import (
    BookingPolicy, DayRule, ExceptionSet, OccupiedInterval, ScheduleException,
    Slot, SlotSource, TimeInterval, VacationWindow, WeeklyTemplate,
)
from shared_types.booking import BookingDecision, BookingRequest, RejectionReason
from shared_types.errors import (
    DuplicateExceptionError, InvalidIntervalError, MalformedExceptionError,
    MalformedScheduleError, MalformedTemplateError, MalformedVacationWindowError,
)

__all__ = [
    "BookingPolicy",
    "DayRule",
    "ExceptionSet",
    "OccupiedInterval",
    "ScheduleException",
    "Slot",
    "SlotSource",
    "TimeInterval",
    "VacationWindow",
    "WeeklyTemplate",
    "BookingDecision",
    "BookingRequest",
    "RejectionReason",
    "DuplicateExceptionError",
    "InvalidIntervalError",
    "MalformedExceptionError",
    "MalformedScheduleError",
    "MalformedTemplateError",
    "MalformedVacationWindowError",
]
