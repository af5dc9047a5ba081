"""
Schedule invariant checks.

Used as guards before provider settings are written (so bad state is never
persisted) and by the slot engine when it meets legacy data that somehow
bypassed them.
"""

from typing import Optional

from shared_types.availability import (
    DayRule, ExceptionSet, ScheduleException, VacationWindow, WeeklyTemplate, WEEKDAY_NAMES,
)
from shared_types.errors import (
    DuplicateExceptionError, MalformedExceptionError, MalformedTemplateError, MalformedVacationWindowError,
)
from utils.conflict_detector import find_internal_overlap


def validate_day_rule(rule: DayRule) -> None:
    """
    Validate one weekday's rule.

    Raises:
        MalformedTemplateError: If the availability flag disagrees with the
            intervals, or two intervals overlap (the first colliding pair is reported)
    """
    day_name = WEEKDAY_NAMES[rule.weekday].capitalize()
    if not rule.is_available and rule.intervals:
        raise MalformedTemplateError(
            f"{day_name} is marked unavailable but has time intervals",
            weekday=rule.weekday,
        )
    if rule.is_available and not rule.intervals:
        raise MalformedTemplateError(
            f"Please add time intervals for {day_name}",
            weekday=rule.weekday,
        )

    collision = find_internal_overlap(rule.intervals)
    if collision:
        first, second = collision
        raise MalformedTemplateError(
            f"Time intervals overlap on {day_name}: {first} and {second}",
            weekday=rule.weekday,
            first=first,
            second=second,
        )


def guard_weekly_template(candidate: WeeklyTemplate) -> None:
    """
    Validate a weekly template before it is saved.

    All seven weekdays must be present; the whole save is rejected on the first
    offending weekday.

    Raises:
        MalformedTemplateError: On the first violation found
    """
    for weekday in range(7):
        if weekday not in candidate.rules:
            raise MalformedTemplateError(
                f"Weekly template is missing {WEEKDAY_NAMES[weekday].capitalize()}",
                weekday=weekday,
            )
        rule = candidate.rules[weekday]
        if rule.weekday != weekday:
            raise MalformedTemplateError(
                f"Rule stored under {WEEKDAY_NAMES[weekday]} is for {WEEKDAY_NAMES[rule.weekday]}",
                weekday=weekday,
            )
        validate_day_rule(rule)


def validate_exception(candidate: ScheduleException) -> None:
    """
    Validate a single date exception.

    Exactly one of ``full_day_block`` or non-empty ``custom_intervals`` must be
    meaningful, and custom intervals must not overlap.

    Raises:
        MalformedExceptionError: On the first violation found
    """
    if candidate.full_day_block and candidate.custom_intervals:
        raise MalformedExceptionError(
            "An exception cannot both block the full day and define custom intervals",
            date=candidate.date,
        )
    if not candidate.full_day_block and not candidate.custom_intervals:
        raise MalformedExceptionError(
            "An exception must either block the full day or define custom intervals",
            date=candidate.date,
        )

    collision = find_internal_overlap(candidate.custom_intervals)
    if collision:
        first, second = collision
        raise MalformedExceptionError(
            f"Custom intervals overlap on {candidate.date.isoformat()}: {first} and {second}",
            date=candidate.date,
            first=first,
            second=second,
        )


def guard_exception(
    candidate: ScheduleException,
    existing: Optional[ScheduleException] = None,
    replace: bool = False,
) -> None:
    """
    Validate an exception before it is added.

    Args:
        candidate: Exception to be saved
        existing: Exception already stored for the same date, if any
        replace: Whether the caller asked to overwrite an existing exception

    Raises:
        MalformedExceptionError: If the candidate violates an invariant
        DuplicateExceptionError: If an exception exists for the date and replace is False
    """
    if not candidate.reason or not candidate.reason.strip():
        raise MalformedExceptionError("Please provide a reason for the exception", date=candidate.date)

    validate_exception(candidate)

    if existing is not None and not replace:
        raise DuplicateExceptionError(
            f"An exception already exists for {candidate.date.isoformat()} ({existing.reason})",
            date=candidate.date,
        )


def validate_exception_set(exceptions: ExceptionSet) -> None:
    """Validate every exception in a set."""
    for exception in exceptions:
        validate_exception(exception)


def guard_vacation_window(candidate: VacationWindow) -> None:
    """
    Raises:
        MalformedVacationWindowError: If the window starts after it ends
    """
    if candidate.start > candidate.end:
        raise MalformedVacationWindowError(
            f"Vacation start {candidate.start.isoformat()} is after end {candidate.end.isoformat()}",
            date=candidate.start,
        )
