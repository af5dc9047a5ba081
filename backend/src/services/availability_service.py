"""
Availability service for bookable slot listing.

Combines the provider's stored settings with current occupancy: candidate slots
come from SlotGenerator, then OccupancyIndex removes taken slots and dates at
capacity. The result is a hint for clients; BookingService re-validates every
booking.
"""

import logging
from datetime import date, timedelta
from typing import List, Optional, Tuple

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from services.availability_settings_service import AvailabilitySettingsService
from services.occupancy_index import OccupancyIndex
from services.slot_generator import SlotGenerator
from shared_types.availability import BookingPolicy, Slot
from utils.appointment_queries import occupied_intervals
from utils.datetime_utils import practice_today

logger = logging.getLogger(__name__)


class AvailabilityService:
    """
    Service class for availability operations.

    Contains the slot listing logic shared by the slots endpoint and by
    anything else that needs a provider's open times.
    """

    @staticmethod
    def clamp_to_booking_window(
        start_date: date,
        end_date: date,
        policy: BookingPolicy,
        today: date,
    ) -> Optional[Tuple[date, date]]:
        """
        Intersect a requested range with [today, today + advance_booking_days].

        Returns:
            The clamped (start, end), or None if nothing of the range is bookable
        """
        window_start = max(start_date, today)
        window_end = min(end_date, today + timedelta(days=policy.advance_booking_days))
        if window_start > window_end:
            return None
        return window_start, window_end

    @staticmethod
    def get_bookable_slots(
        db: Session,
        provider_id: int,
        start_date: date,
        end_date: date,
        today: Optional[date] = None,
    ) -> List[Slot]:
        """
        List bookable slots for a provider.

        Args:
            db: Database session
            provider_id: Provider ID
            start_date: First requested date (inclusive)
            end_date: Last requested date (inclusive)
            today: Current practice date; defaults to now in the practice timezone

        Returns:
            Free slots ordered by date and start time, limited to the booking window

        Raises:
            HTTPException: If the range is inverted or the provider is not found
        """
        if end_date < start_date:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="End date must not be before start date"
            )

        provider = AvailabilitySettingsService.get_provider(db, provider_id, active_only=True)
        today = today or practice_today()
        policy = provider.get_validated_settings().booking_policy.to_policy()

        clamped = AvailabilityService.clamp_to_booking_window(start_date, end_date, policy, today)
        if clamped is None:
            logger.debug(f"Range {start_date}..{end_date} is outside the booking window for provider {provider_id}")
            return []
        range_start, range_end = clamped

        schedule = AvailabilitySettingsService.load_schedule(db, provider, range_start, range_end)
        occupancy = OccupancyIndex(occupied_intervals(db, provider_id, range_start, range_end))

        candidates = SlotGenerator.generate(
            schedule.template,
            schedule.exceptions,
            schedule.vacation,
            schedule.policy,
            range_start,
            range_end,
        )
        return list(occupancy.filter_slots(candidates, schedule.policy))
