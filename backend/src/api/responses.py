"""
Shared request and response models for API endpoints.

This module contains Pydantic models that are shared across multiple API
endpoints, plus the conversions between them and the scheduling engine's
types. Times are ``HH:MM`` strings on the wire and minutes since midnight
inside the engine.
"""

from datetime import date as date_type, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from core.constants import MAX_REASON_LENGTH
from models import Appointment, Provider
from models.provider import BookingPolicySettings, VacationSettings
from shared_types.availability import (
    DayRule, ExceptionSet, ScheduleException, Slot, TimeInterval, WeeklyTemplate, WEEKDAY_NAMES,
)
from shared_types.booking import BookingDecision
from utils.datetime_utils import ensure_practice_tz, format_minutes, time_to_minutes


class TimeIntervalModel(BaseModel):
    """Time interval on the wire."""
    start_time: str  # Format: "HH:MM"
    end_time: str    # Format: "HH:MM"
    is_break: bool = False

    def to_interval(self) -> TimeInterval:
        """
        Raises:
            ValueError: If a time is not HH:MM or start is not before end
        """
        return TimeInterval.from_strings(self.start_time, self.end_time, self.is_break)

    @classmethod
    def from_interval(cls, interval: TimeInterval) -> "TimeIntervalModel":
        return cls(
            start_time=format_minutes(interval.start),
            end_time=format_minutes(interval.end),
            is_break=interval.is_break,
        )


class DayScheduleModel(BaseModel):
    """One weekday of the weekly schedule."""
    is_available: bool = False
    intervals: List[TimeIntervalModel] = []

    def to_rule(self, weekday: int) -> DayRule:
        intervals = [interval.to_interval() for interval in self.intervals]
        return DayRule(
            weekday=weekday,
            is_available=self.is_available,
            intervals=tuple(sorted(intervals, key=lambda i: (i.start, i.end))),
        )

    @classmethod
    def from_rule(cls, rule: DayRule) -> "DayScheduleModel":
        return cls(
            is_available=rule.is_available,
            intervals=[TimeIntervalModel.from_interval(interval) for interval in rule.intervals],
        )


class WeeklyScheduleModel(BaseModel):
    """Weekly schedule keyed by lowercase weekday name."""
    monday: DayScheduleModel = Field(default_factory=DayScheduleModel)
    tuesday: DayScheduleModel = Field(default_factory=DayScheduleModel)
    wednesday: DayScheduleModel = Field(default_factory=DayScheduleModel)
    thursday: DayScheduleModel = Field(default_factory=DayScheduleModel)
    friday: DayScheduleModel = Field(default_factory=DayScheduleModel)
    saturday: DayScheduleModel = Field(default_factory=DayScheduleModel)
    sunday: DayScheduleModel = Field(default_factory=DayScheduleModel)

    def to_template(self) -> WeeklyTemplate:
        """
        Raises:
            ValueError: If any interval is malformed
        """
        return WeeklyTemplate.from_rules(
            getattr(self, day_name).to_rule(weekday) for weekday, day_name in enumerate(WEEKDAY_NAMES)
        )

    @classmethod
    def from_template(cls, template: WeeklyTemplate) -> "WeeklyScheduleModel":
        return cls(**{rule.weekday_name: DayScheduleModel.from_rule(rule) for rule in template})


class ExceptionModel(BaseModel):
    """Date exception on the wire."""
    date: date_type
    reason: str = Field(max_length=MAX_REASON_LENGTH)
    full_day_block: bool = False
    custom_intervals: List[TimeIntervalModel] = []

    def to_exception(self) -> ScheduleException:
        """
        Raises:
            ValueError: If any interval is malformed
        """
        return ScheduleException(
            date=self.date,
            reason=self.reason,
            full_day_block=self.full_day_block,
            custom_intervals=tuple(interval.to_interval() for interval in self.custom_intervals),
        )

    @classmethod
    def from_exception(cls, exception: ScheduleException) -> "ExceptionModel":
        return cls(
            date=exception.date,
            reason=exception.reason,
            full_day_block=exception.full_day_block,
            custom_intervals=[TimeIntervalModel.from_interval(i) for i in exception.custom_intervals],
        )


class AvailabilitySettingsResponse(BaseModel):
    """Response model for a provider's full availability settings."""
    provider_id: int
    weekly_schedule: WeeklyScheduleModel
    exceptions: List[ExceptionModel]
    vacation_settings: VacationSettings
    booking_policy: BookingPolicySettings


class ProviderResponse(BaseModel):
    """Response model for provider information."""
    id: int
    name: str
    email: Optional[str] = None
    is_active: bool
    created_at: datetime


class SlotResponse(BaseModel):
    """Response model for a bookable slot."""
    date: date_type
    start_time: str
    end_time: str
    source: str  # "day_rule" or "exception"


class SlotListResponse(BaseModel):
    """Response model for slot listing."""
    provider_id: int
    start_date: date_type
    end_date: date_type
    slots: List[SlotResponse]


class BookingDecisionResponse(BaseModel):
    """Response model for a booking validation result."""
    accepted: bool
    reason: Optional[str] = None
    message: str
    appointment_status: Optional[str] = None


class AppointmentResponse(BaseModel):
    """Response model for an appointment."""
    appointment_id: int
    provider_id: int
    date: date_type
    start_time: str
    end_time: str
    client_name: str
    client_email: Optional[str] = None
    notes: Optional[str] = None
    status: str
    canceled_at: Optional[datetime] = None


def provider_response(provider: Provider) -> ProviderResponse:
    return ProviderResponse(
        id=provider.id,
        name=provider.name,
        email=provider.email,
        is_active=provider.is_active,
        created_at=ensure_practice_tz(provider.created_at),
    )


def settings_response(
    provider: Provider,
    template: WeeklyTemplate,
    exceptions: ExceptionSet,
) -> AvailabilitySettingsResponse:
    settings = provider.get_validated_settings()
    return AvailabilitySettingsResponse(
        provider_id=provider.id,
        weekly_schedule=WeeklyScheduleModel.from_template(template),
        exceptions=[ExceptionModel.from_exception(exception) for exception in exceptions],
        vacation_settings=settings.vacation_settings,
        booking_policy=settings.booking_policy,
    )


def slot_response(slot: Slot) -> SlotResponse:
    return SlotResponse(**slot.to_dict())


def decision_response(decision: BookingDecision) -> BookingDecisionResponse:
    return BookingDecisionResponse(**decision.to_dict())


def appointment_response(appointment: Appointment) -> AppointmentResponse:
    return AppointmentResponse(
        appointment_id=appointment.id,
        provider_id=appointment.provider_id,
        date=appointment.date,
        start_time=format_minutes(time_to_minutes(appointment.start_time)),
        end_time=format_minutes(time_to_minutes(appointment.end_time)),
        client_name=appointment.client_name,
        client_email=appointment.client_email,
        notes=appointment.notes,
        status=appointment.status,
        canceled_at=ensure_practice_tz(appointment.canceled_at),
    )
