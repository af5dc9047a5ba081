"""
Slot listing and booking API endpoints.

Slots are an optimistic listing: a slot shown here can be taken before the
client books it. Booking re-validates under a provider lock and answers with
the specific rejection reason when it fails.
"""

import logging
from datetime import date as date_type
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from api.responses import (
    AppointmentResponse, BookingDecisionResponse, SlotListResponse,
    appointment_response, decision_response, slot_response,
)
from core.constants import MAX_REASON_LENGTH, MAX_STRING_LENGTH
from core.database import get_db
from services import AvailabilityService, BookingService
from shared_types.booking import BookingDecision, BookingRequest, RejectionReason
from shared_types.errors import MalformedScheduleError
from utils.datetime_utils import parse_date_string, parse_time_string

logger = logging.getLogger(__name__)

router = APIRouter()

# Rejections the client can resolve by picking another slot on the same listing
_CONFLICT_REASONS = (RejectionReason.CONFLICT, RejectionReason.CAPACITY_REACHED)


class BookingRequestModel(BaseModel):
    """Request model for validating a booking."""
    date: date_type
    start_time: str  # Format: "HH:MM"
    end_time: str    # Format: "HH:MM"

    def to_request(self) -> BookingRequest:
        """
        Raises:
            ValueError: If a time is not HH:MM
        """
        return BookingRequest(
            date=self.date,
            start=parse_time_string(self.start_time),
            end=parse_time_string(self.end_time),
        )


class AppointmentCreateRequest(BookingRequestModel):
    """Request model for booking an appointment."""
    client_name: str = Field(min_length=1, max_length=MAX_STRING_LENGTH)
    client_email: Optional[str] = Field(default=None, max_length=MAX_STRING_LENGTH)
    notes: Optional[str] = Field(default=None, max_length=MAX_REASON_LENGTH)


def _parse_booking_request(request: BookingRequestModel) -> BookingRequest:
    try:
        return request.to_request()
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )


def _rejection_exception(decision: BookingDecision) -> HTTPException:
    status_code = (
        status.HTTP_409_CONFLICT if decision.reason in _CONFLICT_REASONS
        else status.HTTP_422_UNPROCESSABLE_ENTITY
    )
    return HTTPException(
        status_code=status_code,
        detail={
            "reason": decision.reason.value if decision.reason else None,
            "message": decision.message,
        }
    )


@router.get("/providers/{provider_id}/slots",
            summary="List bookable slots")
async def list_slots(
    provider_id: int,
    start_date: str = Query(..., description="First date (YYYY-MM-DD)"),
    end_date: str = Query(..., description="Last date (YYYY-MM-DD)"),
    db: Session = Depends(get_db)
) -> SlotListResponse:
    """
    List free slots between two dates.

    The range is clamped to the provider's booking window; slots taken by
    existing appointments and dates at their daily ceiling are left out.
    """
    try:
        try:
            range_start = parse_date_string(start_date)
            range_end = parse_date_string(end_date)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid date format (use YYYY-MM-DD)"
            )

        slots = AvailabilityService.get_bookable_slots(db, provider_id, range_start, range_end)
        return SlotListResponse(
            provider_id=provider_id,
            start_date=range_start,
            end_date=range_end,
            slots=[slot_response(slot) for slot in slots],
        )
    except HTTPException:
        raise
    except MalformedScheduleError:
        raise
    except Exception as e:
        logger.exception(f"Failed to list slots for provider {provider_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to list available slots"
        )


@router.post("/providers/{provider_id}/bookings/validate",
             summary="Validate a booking without creating it")
async def validate_booking(
    provider_id: int,
    request: BookingRequestModel,
    db: Session = Depends(get_db)
) -> BookingDecisionResponse:
    """Check whether a booking would be accepted, and why not if it would not."""
    try:
        decision = BookingService.validate_booking(db, provider_id, _parse_booking_request(request))
        return decision_response(decision)
    except HTTPException:
        raise
    except MalformedScheduleError:
        raise
    except Exception as e:
        logger.exception(f"Failed to validate booking for provider {provider_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to validate booking"
        )


@router.post("/providers/{provider_id}/bookings",
             summary="Book an appointment",
             status_code=status.HTTP_201_CREATED)
async def create_booking(
    provider_id: int,
    request: AppointmentCreateRequest,
    db: Session = Depends(get_db)
) -> AppointmentResponse:
    """
    Book an appointment.

    Responds 409 when the slot was just taken or the day is full, and 422 for
    other rejections, with the reason and a message in ``detail``.
    """
    try:
        result = BookingService.book(
            db,
            provider_id,
            _parse_booking_request(request),
            client_name=request.client_name.strip(),
            client_email=request.client_email,
            notes=request.notes,
        )
        if result.appointment is None:
            raise _rejection_exception(result.decision)
        return appointment_response(result.appointment)
    except HTTPException:
        raise
    except MalformedScheduleError:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.exception(f"Failed to book appointment for provider {provider_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to book appointment"
        )


@router.delete("/providers/{provider_id}/bookings/{appointment_id}",
               summary="Cancel an appointment")
async def cancel_booking(
    provider_id: int,
    appointment_id: int,
    db: Session = Depends(get_db)
) -> AppointmentResponse:
    """Cancel an appointment. Cancelling twice is not an error."""
    try:
        appointment = BookingService.cancel(db, provider_id, appointment_id)
        return appointment_response(appointment)
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.exception(f"Failed to cancel appointment {appointment_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to cancel appointment"
        )
