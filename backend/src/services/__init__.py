"""
Services package for shared business logic.

This package contains service classes that encapsulate business logic
shared across multiple API endpoints.
"""

from .slot_generator import SlotGenerator, SlotSequence
from .occupancy_index import OccupancyIndex
from .booking_validator import BookingValidator
from .availability_settings_service import AvailabilitySettingsService, ProviderSchedule
from .availability_service import AvailabilityService
from .booking_service import BookingService, BookingResult

__all__ = [
    "SlotGenerator",
    "SlotSequence",
    "OccupancyIndex",
    "BookingValidator",
    "AvailabilitySettingsService",
    "ProviderSchedule",
    "AvailabilityService",
    "BookingService",
    "BookingResult",
]
