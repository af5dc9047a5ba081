"""
Appointment model representing booked sessions with a provider.

Non-cancelled appointments make up the provider's occupancy: they remove
overlapping slots and count toward the daily appointment ceiling.
"""

from datetime import date as date_type, datetime, time
from typing import Optional
from sqlalchemy import Date, ForeignKey, Index, String, Time, TIMESTAMP, CheckConstraint, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.constants import APPOINTMENT_STATUS_CANCELLED, MAX_REASON_LENGTH, MAX_STRING_LENGTH
from core.database import Base
from shared_types.availability import OccupiedInterval
from utils.datetime_utils import time_to_minutes

_ACTIVE_SLOT_PREDICATE = text(f"status != '{APPOINTMENT_STATUS_CANCELLED}'")


class Appointment(Base):
    """
    Appointment entity representing a scheduled session with a provider.

    A partial unique index on (provider_id, date, start_time) over
    non-cancelled rows backs up the booking service's row lock: two
    concurrent bookings of the same slot cannot both commit.
    """

    __tablename__ = "appointments"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    """Unique identifier for the appointment."""

    provider_id: Mapped[int] = mapped_column(ForeignKey("providers.id", ondelete="CASCADE"))
    """Reference to the provider being booked."""

    date: Mapped[date_type] = mapped_column(Date)
    """Date of the appointment in practice-local time."""

    start_time: Mapped[time] = mapped_column(Time)
    """Start time of the appointment."""

    end_time: Mapped[time] = mapped_column(Time)
    """End time of the appointment."""

    client_name: Mapped[str] = mapped_column(String(MAX_STRING_LENGTH))
    """Name of the client who booked."""

    client_email: Mapped[Optional[str]] = mapped_column(String(MAX_STRING_LENGTH), nullable=True)
    """Optional contact email of the client."""

    notes: Mapped[Optional[str]] = mapped_column(String(MAX_REASON_LENGTH), nullable=True)
    """Optional client-provided notes about the appointment."""

    status: Mapped[str] = mapped_column(String(50))  # 'pending', 'confirmed', 'cancelled'
    """Current status of the appointment. Valid values: 'pending', 'confirmed', 'cancelled'."""

    canceled_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    """Timestamp when the appointment was cancelled (if applicable)."""

    created_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    """Timestamp when the appointment was created."""

    updated_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    """Timestamp when the appointment was last updated."""

    # Relationships
    provider = relationship("Provider", back_populates="appointments")
    """Relationship to the Provider entity."""

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'cancelled')",
            name='check_valid_appointment_status'
        ),
        CheckConstraint('start_time < end_time', name='check_appointment_time_range'),
        Index('idx_appointments_provider_date_status', 'provider_id', 'date', 'status'),
        Index(
            'uq_appointments_active_slot',
            'provider_id', 'date', 'start_time',
            unique=True,
            postgresql_where=_ACTIVE_SLOT_PREDICATE,
            sqlite_where=_ACTIVE_SLOT_PREDICATE,
        ),
    )

    @property
    def is_active(self) -> bool:
        """Check if the appointment still occupies its time."""
        return self.status != APPOINTMENT_STATUS_CANCELLED

    def to_occupied_interval(self) -> OccupiedInterval:
        """Convert to the engine's occupancy type."""
        return OccupiedInterval(
            date=self.date,
            start=time_to_minutes(self.start_time),
            end=time_to_minutes(self.end_time),
        )

    def __repr__(self) -> str:
        return f"<Appointment(id={self.id}, provider_id={self.provider_id}, date={self.date}, {self.start_time}-{self.end_time}, status='{self.status}')>"
