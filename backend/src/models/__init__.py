# Package initialization
# Import all models to ensure relationships are properly established
from .provider import Provider, ProviderSettings, BookingPolicySettings, VacationSettings
from .weekly_availability import WeeklyAvailabilityInterval
from .availability_exception import AvailabilityException, AvailabilityExceptionInterval
from .appointment import Appointment

__all__ = [
    "Provider",
    "ProviderSettings",
    "BookingPolicySettings",
    "VacationSettings",
    "WeeklyAvailabilityInterval",
    "AvailabilityException",
    "AvailabilityExceptionInterval",
    "Appointment",
]
