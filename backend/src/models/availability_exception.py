"""
Availability exception model representing date-specific schedule overrides.

An exception either blocks a whole date or replaces that date's weekly
intervals with its own custom intervals. Exceptions take precedence over the
weekly template; only the vacation window overrides them.
"""

from datetime import date as date_type, datetime, time
from typing import List, Optional

from sqlalchemy import Boolean, Date, ForeignKey, Index, String, Time, TIMESTAMP, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.constants import MAX_REASON_LENGTH
from core.database import Base
from shared_types.availability import ScheduleException, TimeInterval
from utils.datetime_utils import time_to_minutes


class AvailabilityException(Base):
    """
    Availability exception entity for one provider and date.

    At most one exception exists per provider and date; saving another one for
    the same date replaces it only when the caller asks for replacement.
    """

    __tablename__ = "availability_exceptions"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    """Unique identifier for the availability exception."""

    provider_id: Mapped[int] = mapped_column(ForeignKey("providers.id", ondelete="CASCADE"))
    """Reference to the provider."""

    date: Mapped[date_type] = mapped_column(Date)
    """Date the exception applies to."""

    reason: Mapped[str] = mapped_column(String(MAX_REASON_LENGTH))
    """Why the schedule differs on this date (e.g. conference, sick leave)."""

    full_day_block: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    """If True, the date has no availability and ``intervals`` is empty."""

    created_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    """Timestamp when the exception was created."""

    updated_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    """Timestamp when the exception was last updated."""

    # Relationships
    provider = relationship("Provider", back_populates="availability_exceptions")
    """Relationship to the Provider entity."""

    intervals: Mapped[List["AvailabilityExceptionInterval"]] = relationship(
        back_populates="exception",
        cascade="all, delete-orphan",
        order_by="AvailabilityExceptionInterval.start_time",
    )
    """Custom intervals that replace the weekly template on this date."""

    __table_args__ = (
        UniqueConstraint('provider_id', 'date', name='uq_availability_exceptions_provider_date'),
        Index('idx_availability_exceptions_provider_date', 'provider_id', 'date'),
    )

    def to_schedule_exception(self) -> ScheduleException:
        """Convert to the engine's exception type."""
        return ScheduleException(
            date=self.date,
            reason=self.reason,
            full_day_block=self.full_day_block,
            custom_intervals=tuple(interval.to_interval() for interval in self.intervals),
        )

    def __repr__(self) -> str:
        return f"<AvailabilityException(id={self.id}, provider_id={self.provider_id}, date={self.date}, full_day_block={self.full_day_block})>"


class AvailabilityExceptionInterval(Base):
    """One custom interval of an availability exception."""

    __tablename__ = "availability_exception_intervals"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    exception_id: Mapped[int] = mapped_column(ForeignKey("availability_exceptions.id", ondelete="CASCADE"))

    start_time: Mapped[time] = mapped_column(Time)

    end_time: Mapped[time] = mapped_column(Time)

    is_break: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    exception: Mapped[AvailabilityException] = relationship(back_populates="intervals")

    __table_args__ = (
        Index('idx_availability_exception_intervals_exception', 'exception_id'),
    )

    def to_interval(self) -> TimeInterval:
        return TimeInterval(time_to_minutes(self.start_time), time_to_minutes(self.end_time), self.is_break)

    def __repr__(self) -> str:
        return f"<AvailabilityExceptionInterval(exception_id={self.exception_id}, {self.start_time}-{self.end_time})>"
