"""
Weekly availability model for a provider's recurring schedule.

Each row is one interval on one day of the week. A day with no rows is
unavailable; rows flagged ``is_break`` mark breaks inside the working day.
"""

from datetime import time, datetime
from typing import Optional
from sqlalchemy import Boolean, Time, TIMESTAMP, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base
from shared_types.availability import TimeInterval, WEEKDAY_NAMES
from utils.datetime_utils import time_to_minutes


class WeeklyAvailabilityInterval(Base):
    """
    Model for storing provider availability intervals by day of week.

    Multiple records per day are allowed (e.g. a morning and an afternoon
    session, with a lunch break between). The non-overlap invariant is enforced
    by the settings guards before rows are written, not by the database.
    """

    __tablename__ = "weekly_availability_intervals"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    """Unique identifier for the interval."""

    provider_id: Mapped[int] = mapped_column(ForeignKey("providers.id", ondelete="CASCADE"))
    """Reference to the provider."""

    day_of_week: Mapped[int] = mapped_column()
    """Day of the week (0=Monday, 1=Tuesday, ..., 6=Sunday)."""

    start_time: Mapped[time] = mapped_column(Time)
    """Start time of the interval."""

    end_time: Mapped[time] = mapped_column(Time)
    """End time of the interval."""

    is_break: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    """Breaks are part of the template but never bookable."""

    created_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    """Timestamp when the interval was created."""

    updated_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    """Timestamp when the interval was last updated."""

    # Relationships
    provider = relationship("Provider", back_populates="weekly_intervals")
    """Relationship to the Provider entity."""

    __table_args__ = (
        CheckConstraint('day_of_week BETWEEN 0 AND 6', name='check_valid_day_of_week'),
        Index('idx_weekly_availability_provider_day', 'provider_id', 'day_of_week'),
    )

    @property
    def day_name(self) -> str:
        """Get the day name for display."""
        return WEEKDAY_NAMES[self.day_of_week].capitalize()

    def to_interval(self) -> TimeInterval:
        """Convert to the engine's interval type."""
        return TimeInterval(time_to_minutes(self.start_time), time_to_minutes(self.end_time), self.is_break)

    def __repr__(self) -> str:
        return f"<WeeklyAvailabilityInterval(provider_id={self.provider_id}, day={self.day_name}, {self.start_time}-{self.end_time}, is_break={self.is_break})>"
