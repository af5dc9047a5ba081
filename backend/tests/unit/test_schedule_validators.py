"""
Unit tests for the schedule guards run before settings are written.
"""

import pytest
from datetime import date

from shared_types.availability import DayRule, ScheduleException, TimeInterval, VacationWindow, WeeklyTemplate
from shared_types.errors import (
    DuplicateExceptionError, MalformedExceptionError, MalformedTemplateError, MalformedVacationWindowError,
)
from utils.conflict_detector import has_internal_overlap
from utils.schedule_validators import guard_exception, guard_vacation_window, guard_weekly_template


def _iv(start: str, end: str, is_break: bool = False) -> TimeInterval:
    return TimeInterval.from_strings(start, end, is_break)


def _template_with(rule: DayRule) -> WeeklyTemplate:
    rules = {r.weekday: r for r in WeeklyTemplate.default()}
    rules[rule.weekday] = rule
    return WeeklyTemplate(rules=rules)


class TestGuardWeeklyTemplate:
    """Test weekly template validation."""

    def test_default_template_accepted(self):
        guard_weekly_template(WeeklyTemplate.default())

    def test_split_day_with_break_accepted(self):
        rule = DayRule.from_intervals(1, [_iv("09:00", "12:00"), _iv("12:00", "13:00", True), _iv("13:00", "17:00")])
        guard_weekly_template(_template_with(rule))

    def test_overlap_reports_weekday_and_pair(self):
        rule = DayRule.from_intervals(3, [_iv("09:00", "12:00"), _iv("11:30", "14:00")])

        with pytest.raises(MalformedTemplateError) as exc_info:
            guard_weekly_template(_template_with(rule))

        error = exc_info.value
        assert error.weekday == 3
        assert error.first == _iv("09:00", "12:00")
        assert error.second == _iv("11:30", "14:00")
        assert "Thursday" in error.message
        assert error.to_dict()["first"] == "09:00-12:00"

    def test_first_offending_weekday_reported(self):
        rules = {r.weekday: r for r in WeeklyTemplate.default()}
        rules[4] = DayRule.from_intervals(4, [_iv("09:00", "12:00"), _iv("10:00", "11:00")])
        rules[1] = DayRule.from_intervals(1, [_iv("09:00", "12:00"), _iv("10:00", "11:00")])

        with pytest.raises(MalformedTemplateError) as exc_info:
            guard_weekly_template(WeeklyTemplate(rules=rules))

        assert exc_info.value.weekday == 1

    def test_missing_weekday_rejected(self):
        template = WeeklyTemplate.from_rules(r for r in WeeklyTemplate.default() if r.weekday != 6)

        with pytest.raises(MalformedTemplateError) as exc_info:
            guard_weekly_template(template)

        assert exc_info.value.weekday == 6

    def test_unavailable_day_with_intervals_rejected(self):
        rule = DayRule(weekday=5, is_available=False, intervals=(_iv("09:00", "12:00"),))
        with pytest.raises(MalformedTemplateError):
            guard_weekly_template(_template_with(rule))

    def test_available_day_without_intervals_rejected(self):
        rule = DayRule(weekday=0, is_available=True, intervals=())
        with pytest.raises(MalformedTemplateError):
            guard_weekly_template(_template_with(rule))

    def test_rule_keyed_under_wrong_weekday_rejected(self):
        rules = {r.weekday: r for r in WeeklyTemplate.default()}
        rules[2] = DayRule.unavailable(5)
        with pytest.raises(MalformedTemplateError):
            guard_weekly_template(WeeklyTemplate(rules=rules))

    def test_accepted_templates_have_no_internal_overlap(self):
        candidates = [
            WeeklyTemplate.default(),
            _template_with(DayRule.from_intervals(0, [_iv("08:00", "10:00"), _iv("10:00", "12:00")])),
            _template_with(DayRule.from_intervals(0, [_iv("08:00", "10:00"), _iv("09:00", "12:00")])),
        ]
        for candidate in candidates:
            try:
                guard_weekly_template(candidate)
            except MalformedTemplateError:
                continue
            assert not any(has_internal_overlap(rule.intervals) for rule in candidate)


class TestGuardException:
    """Test date exception validation."""

    DAY = date(2024, 6, 3)

    def test_full_day_block_accepted(self):
        guard_exception(ScheduleException(date=self.DAY, reason="Sick leave", full_day_block=True))

    def test_custom_intervals_accepted(self):
        guard_exception(ScheduleException(
            date=self.DAY, reason="Short day", full_day_block=False,
            custom_intervals=(_iv("09:00", "10:00"), _iv("14:00", "15:00")),
        ))

    @pytest.mark.parametrize("reason", ["", "   "])
    def test_blank_reason_rejected(self, reason):
        with pytest.raises(MalformedExceptionError) as exc_info:
            guard_exception(ScheduleException(date=self.DAY, reason=reason, full_day_block=True))
        assert exc_info.value.date == self.DAY

    def test_both_block_and_intervals_rejected(self):
        with pytest.raises(MalformedExceptionError):
            guard_exception(ScheduleException(
                date=self.DAY, reason="Ambiguous", full_day_block=True,
                custom_intervals=(_iv("09:00", "10:00"),),
            ))

    def test_neither_block_nor_intervals_rejected(self):
        with pytest.raises(MalformedExceptionError):
            guard_exception(ScheduleException(date=self.DAY, reason="Empty", full_day_block=False))

    def test_overlapping_custom_intervals_rejected(self):
        with pytest.raises(MalformedExceptionError) as exc_info:
            guard_exception(ScheduleException(
                date=self.DAY, reason="Overlap", full_day_block=False,
                custom_intervals=(_iv("09:00", "11:00"), _iv("10:00", "12:00")),
            ))
        assert str(exc_info.value.first) == "09:00-11:00"
        assert str(exc_info.value.second) == "10:00-12:00"

    def test_duplicate_date_rejected_without_replace(self):
        existing = ScheduleException(date=self.DAY, reason="Conference", full_day_block=True)
        candidate = ScheduleException(date=self.DAY, reason="Training", full_day_block=True)

        with pytest.raises(DuplicateExceptionError):
            guard_exception(candidate, existing, replace=False)

    def test_duplicate_date_allowed_with_replace(self):
        existing = ScheduleException(date=self.DAY, reason="Conference", full_day_block=True)
        candidate = ScheduleException(date=self.DAY, reason="Training", full_day_block=True)

        guard_exception(candidate, existing, replace=True)

    def test_duplicate_is_a_malformed_exception(self):
        assert issubclass(DuplicateExceptionError, MalformedExceptionError)


class TestGuardVacationWindow:
    def test_valid_window(self):
        guard_vacation_window(VacationWindow(start=date(2024, 7, 1), end=date(2024, 7, 1)))

    def test_inverted_window_rejected(self):
        with pytest.raises(MalformedVacationWindowError) as exc_info:
            guard_vacation_window(VacationWindow(start=date(2024, 7, 10), end=date(2024, 7, 1)))
        assert exc_info.value.date == date(2024, 7, 10)
