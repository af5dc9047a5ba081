"""
Utility functions for consistent appointment queries.

Occupancy is always computed from non-cancelled appointments; these helpers
keep that filter in one place for slot listing and booking.
"""

from datetime import date
from typing import List

from sqlalchemy.orm import Session, Query

from core.constants import ACTIVE_APPOINTMENT_STATUSES
from models import Appointment
from shared_types.availability import OccupiedInterval


def filter_active_appointments(query: Query[Appointment]) -> Query[Appointment]:
    """Restrict an appointment query to pending and confirmed appointments."""
    return query.filter(Appointment.status.in_(ACTIVE_APPOINTMENT_STATUSES))


def occupied_intervals(db: Session, provider_id: int, start_date: date, end_date: date) -> List[OccupiedInterval]:
    """
    Get time occupied by a provider's non-cancelled appointments.

    Args:
        db: Database session
        provider_id: Provider ID
        start_date: First date (inclusive)
        end_date: Last date (inclusive)

    Returns:
        Occupied intervals ordered by date and start time
    """
    query = db.query(Appointment).filter(
        Appointment.provider_id == provider_id,
        Appointment.date >= start_date,
        Appointment.date <= end_date,
    )
    appointments = filter_active_appointments(query).order_by(Appointment.date, Appointment.start_time).all()
    return [appointment.to_occupied_interval() for appointment in appointments]


def active_appointments_on(db: Session, provider_id: int, target_date: date) -> List[Appointment]:
    """Get a provider's non-cancelled appointments on one date."""
    query = db.query(Appointment).filter(
        Appointment.provider_id == provider_id,
        Appointment.date == target_date,
    )
    return filter_active_appointments(query).order_by(Appointment.start_time).all()
