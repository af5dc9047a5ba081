"""
Provider model representing a bookable healthcare provider.

A provider owns a weekly availability template, date exceptions and
appointments. Scalar scheduling settings (booking policy, vacation) live in a
validated JSON settings column.
"""

from datetime import date, datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, model_validator
from sqlalchemy import JSON, Boolean, String, TIMESTAMP
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.constants import (
    DEFAULT_ADVANCE_BOOKING_DAYS, DEFAULT_AUTO_CONFIRM_APPOINTMENTS, DEFAULT_BUFFER_MINUTES,
    DEFAULT_MAX_DAILY_APPOINTMENTS, DEFAULT_SESSION_DURATION_MINUTES,
    MAX_ADVANCE_BOOKING_DAYS, MAX_BUFFER_MINUTES, MAX_DAILY_APPOINTMENTS_LIMIT, MAX_REASON_LENGTH,
    MAX_SESSION_DURATION_MINUTES, MAX_STRING_LENGTH, MIN_SESSION_DURATION_MINUTES,
)
from core.database import Base
from shared_types.availability import BookingPolicy, VacationWindow


# Settings schema validation models
class BookingPolicySettings(BaseModel):
    """Schema for booking policy settings."""
    session_duration_minutes: int = Field(default=DEFAULT_SESSION_DURATION_MINUTES, ge=MIN_SESSION_DURATION_MINUTES, le=MAX_SESSION_DURATION_MINUTES, description="Length of one appointment in minutes")
    buffer_minutes: int = Field(default=DEFAULT_BUFFER_MINUTES, ge=0, le=MAX_BUFFER_MINUTES, description="Idle time inserted after each appointment")
    max_daily_appointments: int = Field(default=DEFAULT_MAX_DAILY_APPOINTMENTS, ge=1, le=MAX_DAILY_APPOINTMENTS_LIMIT, description="Maximum number of non-cancelled appointments per day")
    advance_booking_days: int = Field(default=DEFAULT_ADVANCE_BOOKING_DAYS, ge=1, le=MAX_ADVANCE_BOOKING_DAYS, description="How many days ahead clients can book")
    auto_confirm_appointments: bool = Field(default=DEFAULT_AUTO_CONFIRM_APPOINTMENTS, description="If True, new bookings are confirmed immediately; otherwise they stay pending until the provider confirms them")

    def to_policy(self) -> BookingPolicy:
        return BookingPolicy(
            session_duration_minutes=self.session_duration_minutes,
            buffer_minutes=self.buffer_minutes,
            max_daily_appointments=self.max_daily_appointments,
            advance_booking_days=self.advance_booking_days,
            auto_confirm_appointments=self.auto_confirm_appointments,
        )


class VacationSettings(BaseModel):
    """Schema for vacation settings."""
    vacation_mode: bool = Field(default=False, description="Whether the vacation window is active")
    start_date: Optional[date] = Field(default=None)
    end_date: Optional[date] = Field(default=None)
    message: Optional[str] = Field(default=None, max_length=MAX_REASON_LENGTH, description="Shown to clients who try to book during the vacation")

    @model_validator(mode='after')
    def require_dates_when_active(self) -> "VacationSettings":
        """An active vacation needs both dates."""
        if self.vacation_mode and (self.start_date is None or self.end_date is None):
            raise ValueError("Vacation start and end dates are required when vacation mode is on")
        return self

    def to_window(self) -> Optional[VacationWindow]:
        """Return the active vacation window, or None when vacation mode is off."""
        if not self.vacation_mode or self.start_date is None or self.end_date is None:
            return None
        return VacationWindow(start=self.start_date, end=self.end_date, message=self.message)


class ProviderSettings(BaseModel):
    """Schema for all provider settings."""
    booking_policy: BookingPolicySettings = Field(default_factory=BookingPolicySettings)
    vacation_settings: VacationSettings = Field(default_factory=VacationSettings)


class Provider(Base):
    """
    Healthcare provider entity.

    Represents a practitioner whose time can be booked. Each provider has:
    - A weekly availability template (WeeklyAvailabilityInterval rows)
    - Date-specific availability exceptions
    - Appointments booked by clients
    - Booking policy and vacation settings in the settings column
    """

    __tablename__ = "providers"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    """Unique identifier for the provider."""

    name: Mapped[str] = mapped_column(String(MAX_STRING_LENGTH))
    """Display name of the provider."""

    email: Mapped[Optional[str]] = mapped_column(String(MAX_STRING_LENGTH), nullable=True, unique=True)
    """Contact email of the provider."""

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    """Inactive providers cannot be booked."""

    settings: Mapped[Dict[str, Any]] = mapped_column(JSON().with_variant(JSONB(), "postgresql"), nullable=False, default=dict)
    """
    JSON column containing provider settings with validated schema.

    Structure:
    {
        "booking_policy": {
            "session_duration_minutes": 60,
            "buffer_minutes": 15,
            "max_daily_appointments": 8,
            "advance_booking_days": 90,
            "auto_confirm_appointments": true
        },
        "vacation_settings": {
            "vacation_mode": false,
            "start_date": null,
            "end_date": null,
            "message": null
        }
    }
    """

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    """Timestamp when the provider was created."""

    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    """Timestamp when the provider was last updated."""

    # Relationships
    weekly_intervals = relationship("WeeklyAvailabilityInterval", back_populates="provider", cascade="all, delete-orphan")
    """Intervals of the weekly availability template."""

    availability_exceptions = relationship("AvailabilityException", back_populates="provider", cascade="all, delete-orphan")
    """Date-specific overrides of the weekly template."""

    appointments = relationship("Appointment", back_populates="provider", cascade="all, delete-orphan")
    """Appointments booked with this provider."""

    def get_validated_settings(self) -> ProviderSettings:
        """Get settings with schema validation."""
        return ProviderSettings.model_validate(self.settings or {})

    def set_validated_settings(self, settings: ProviderSettings):
        """Set settings with schema validation."""
        self.settings = settings.model_dump(mode="json")

    def __repr__(self) -> str:
        return f"<Provider(id={self.id}, name='{self.name}', is_active={self.is_active})>"
