"""
Booking service for appointment creation and cancellation.

Booking is check-then-act: slot listings can be stale by the time a client
books. The insert therefore runs with the provider row locked (on SQLite the
whole database, see core.database), re-reads settings and occupancy, and
re-validates before writing. After the flush the day is checked once more for
overlap and capacity before committing. The partial unique index on active
(provider, date, start) slots backs this up; an integrity error is reported as
a conflict.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.constants import APPOINTMENT_STATUS_CANCELLED
from models import Appointment, Provider
from services.availability_settings_service import AvailabilitySettingsService
from services.booking_validator import BookingValidator
from services.occupancy_index import OccupancyIndex
from shared_types.booking import BookingDecision, BookingRequest, RejectionReason
from utils.appointment_queries import active_appointments_on, occupied_intervals
from utils.conflict_detector import overlaps_any
from utils.datetime_utils import minutes_to_time, practice_now, practice_today

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookingResult:
    """Decision for a booking attempt, with the appointment when accepted."""
    decision: BookingDecision
    appointment: Optional[Appointment] = None


class BookingService:
    """
    Service class for booking operations.

    Rejections are returned as decisions, not raised; only missing providers
    or appointments raise HTTPException.
    """

    @staticmethod
    def _evaluate(db: Session, provider: Provider, request: BookingRequest, today: date) -> BookingDecision:
        schedule = AvailabilitySettingsService.load_schedule(db, provider, request.date, request.date)
        occupancy = OccupancyIndex(occupied_intervals(db, provider.id, request.date, request.date))
        return BookingValidator.validate(
            request,
            schedule.template,
            schedule.exceptions,
            schedule.vacation,
            schedule.policy,
            occupancy,
            today,
        )

    @staticmethod
    def _recheck_inserted(db: Session, provider: Provider, appointment: Appointment) -> Optional[BookingDecision]:
        """
        Check the flushed appointment against the rest of its day.

        Returns:
            A CONFLICT or CAPACITY_REACHED rejection, or None if the day is consistent
        """
        others = [
            other for other in active_appointments_on(db, provider.id, appointment.date)
            if other.id != appointment.id
        ]
        if overlaps_any(
            appointment.to_occupied_interval(),
            [other.to_occupied_interval() for other in others],
        ):
            return BookingDecision.reject(RejectionReason.CONFLICT)

        max_daily = provider.get_validated_settings().booking_policy.max_daily_appointments
        if len(others) >= max_daily:
            return BookingDecision.reject(RejectionReason.CAPACITY_REACHED)
        return None

    @staticmethod
    def validate_booking(
        db: Session,
        provider_id: int,
        request: BookingRequest,
        today: Optional[date] = None,
    ) -> BookingDecision:
        """
        Dry-run validation of a booking request. Nothing is written.

        Raises:
            HTTPException: If provider not found
        """
        provider = AvailabilitySettingsService.get_provider(db, provider_id, active_only=True)
        return BookingService._evaluate(db, provider, request, today or practice_today())

    @staticmethod
    def book(
        db: Session,
        provider_id: int,
        request: BookingRequest,
        client_name: str,
        client_email: Optional[str] = None,
        notes: Optional[str] = None,
        today: Optional[date] = None,
    ) -> BookingResult:
        """
        Validate and insert an appointment atomically.

        Args:
            db: Database session
            provider_id: Provider ID
            request: Requested date and time window
            client_name: Name of the client booking
            client_email: Optional client email
            notes: Optional client notes
            today: Current practice date; defaults to now in the practice timezone

        Returns:
            BookingResult with the created appointment, or the rejection

        Raises:
            HTTPException: If provider not found
        """
        today = today or practice_today()
        try:
            # Lock the provider so concurrent bookings for it serialize here
            provider = AvailabilitySettingsService.get_provider(db, provider_id, for_update=True, active_only=True)

            decision = BookingService._evaluate(db, provider, request, today)
            if not decision.accepted:
                db.rollback()
                logger.info(
                    f"Booking rejected for provider {provider_id} at {request}: "
                    f"{decision.reason.value if decision.reason else 'unknown'}"
                )
                return BookingResult(decision=decision)

            appointment = Appointment(
                provider_id=provider_id,
                date=request.date,
                start_time=minutes_to_time(request.start),
                end_time=minutes_to_time(request.end),
                client_name=client_name,
                client_email=client_email,
                notes=notes,
                status=decision.appointment_status,
            )
            db.add(appointment)
            db.flush()

            clash = BookingService._recheck_inserted(db, provider, appointment)
            if clash is not None:
                db.rollback()
                logger.warning(
                    f"Booking for provider {provider_id} at {request} collided after insert: {clash.reason.value}"
                )
                return BookingResult(decision=clash)

            db.commit()
            db.refresh(appointment)

            logger.info(
                f"Created appointment {appointment.id} for provider {provider_id} at {request} "
                f"with status {appointment.status}"
            )
            return BookingResult(decision=decision, appointment=appointment)

        except HTTPException:
            raise
        except IntegrityError as e:
            logger.warning(f"Booking conflict for provider {provider_id} at {request}: {e}")
            db.rollback()
            return BookingResult(decision=BookingDecision.reject(RejectionReason.CONFLICT))

    @staticmethod
    def cancel(db: Session, provider_id: int, appointment_id: int) -> Appointment:
        """
        Cancel an appointment.

        Idempotent: cancelling an already cancelled appointment returns it unchanged.

        Raises:
            HTTPException: If appointment not found for this provider
        """
        appointment = db.query(Appointment).filter(
            Appointment.id == appointment_id,
            Appointment.provider_id == provider_id
        ).with_for_update().first()

        if not appointment:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Appointment not found"
            )

        if not appointment.is_active:
            logger.info(f"Appointment {appointment_id} already cancelled, returning success")
            return appointment

        appointment.status = APPOINTMENT_STATUS_CANCELLED
        appointment.canceled_at = practice_now()
        db.commit()
        db.refresh(appointment)

        logger.info(f"Cancelled appointment {appointment_id} for provider {provider_id}")
        return appointment
