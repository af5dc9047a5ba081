"""
Availability settings API endpoints.

Provides provider schedule management:
- Weekly template read and replace, including copy-to-weekdays
- Date exceptions (add, replace, remove)
- Vacation window
- Booking policy

Every write is guarded: malformed schedules are rejected with a 400 naming
the offending weekday or date and interval pair, and nothing is saved.
"""

import logging
from datetime import date as date_type
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from api.responses import (
    AvailabilitySettingsResponse, ExceptionModel, WeeklyScheduleModel, settings_response,
)
from core.constants import MAX_REASON_LENGTH
from core.database import get_db
from models.provider import BookingPolicySettings, VacationSettings
from services import AvailabilitySettingsService
from shared_types.availability import VacationWindow
from utils.datetime_utils import parse_date_string
from utils.http_errors import schedule_error_to_http

logger = logging.getLogger(__name__)

router = APIRouter()


class VacationRequest(BaseModel):
    """Request model for setting a vacation window."""
    start_date: date_type
    end_date: date_type
    message: Optional[str] = Field(default=None, max_length=MAX_REASON_LENGTH)


@router.get("/providers/{provider_id}/availability",
            summary="Get provider's availability settings")
async def get_availability_settings(
    provider_id: int,
    db: Session = Depends(get_db)
) -> AvailabilitySettingsResponse:
    """Get the weekly schedule, exceptions, vacation and booking policy."""
    try:
        provider = AvailabilitySettingsService.get_provider(db, provider_id)
        template = AvailabilitySettingsService.load_weekly_template(db, provider_id)
        exceptions = AvailabilitySettingsService.load_exceptions(db, provider_id)
        return settings_response(provider, template, exceptions)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Failed to fetch availability settings for provider {provider_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch availability settings"
        )


@router.put("/providers/{provider_id}/availability/weekly",
            summary="Replace provider's weekly schedule")
async def update_weekly_schedule(
    provider_id: int,
    schedule_data: WeeklyScheduleModel,
    db: Session = Depends(get_db)
) -> WeeklyScheduleModel:
    """
    Replace the entire weekly schedule.

    Multiple intervals per day are supported; intervals flagged as breaks are
    kept but never offered as slots. Overlapping intervals are rejected.
    """
    try:
        try:
            candidate = schedule_data.to_template()
        except ValueError as e:
            raise schedule_error_to_http(e)

        saved = AvailabilitySettingsService.save_weekly_template(db, provider_id, candidate)
        return WeeklyScheduleModel.from_template(saved)
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.exception(f"Failed to update weekly schedule for provider {provider_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update weekly schedule"
        )


@router.post("/providers/{provider_id}/availability/weekly/copy/{weekday}",
             summary="Copy one weekday's schedule to Monday-Friday")
async def copy_weekday_schedule(
    provider_id: int,
    weekday: int,
    db: Session = Depends(get_db)
) -> WeeklyScheduleModel:
    """Copy the given weekday's (0=Monday ... 6=Sunday) rule onto every weekday."""
    try:
        saved = AvailabilitySettingsService.copy_day_to_weekdays(db, provider_id, weekday)
        return WeeklyScheduleModel.from_template(saved)
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.exception(f"Failed to copy weekday {weekday} for provider {provider_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to copy weekday schedule"
        )


@router.post("/providers/{provider_id}/availability/exceptions",
             summary="Add a date exception",
             status_code=status.HTTP_201_CREATED)
async def add_exception(
    provider_id: int,
    exception_data: ExceptionModel,
    replace: bool = Query(False, description="Overwrite an existing exception on the same date"),
    db: Session = Depends(get_db)
) -> ExceptionModel:
    """
    Add an exception that blocks a date or replaces its hours.

    An exception already on the same date is only overwritten when
    ``replace=true``; otherwise the request fails with 409.
    """
    try:
        try:
            candidate = exception_data.to_exception()
        except ValueError as e:
            raise schedule_error_to_http(e)

        saved = AvailabilitySettingsService.add_exception(db, provider_id, candidate, replace)
        return ExceptionModel.from_exception(saved)
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.exception(f"Failed to add exception for provider {provider_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to add exception"
        )


@router.delete("/providers/{provider_id}/availability/exceptions/{exception_date}",
               summary="Remove a date exception")
async def remove_exception(
    provider_id: int,
    exception_date: str,
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    """Remove the exception on a date, restoring the weekly schedule for it."""
    try:
        try:
            target_date = parse_date_string(exception_date)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid date format (use YYYY-MM-DD)"
            )

        AvailabilitySettingsService.remove_exception(db, provider_id, target_date)
        return {"success": True, "message": f"Exception on {target_date.isoformat()} removed"}
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.exception(f"Failed to remove exception for provider {provider_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to remove exception"
        )


@router.put("/providers/{provider_id}/availability/vacation",
            summary="Set provider's vacation window")
async def set_vacation(
    provider_id: int,
    vacation_data: VacationRequest,
    db: Session = Depends(get_db)
) -> VacationSettings:
    """Block all bookings between the two dates, inclusive."""
    try:
        window = VacationWindow(
            start=vacation_data.start_date,
            end=vacation_data.end_date,
            message=vacation_data.message,
        )
        return AvailabilitySettingsService.set_vacation(db, provider_id, window)
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.exception(f"Failed to set vacation for provider {provider_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to set vacation"
        )


@router.delete("/providers/{provider_id}/availability/vacation",
               summary="Clear provider's vacation window")
async def clear_vacation(
    provider_id: int,
    db: Session = Depends(get_db)
) -> VacationSettings:
    try:
        return AvailabilitySettingsService.clear_vacation(db, provider_id)
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.exception(f"Failed to clear vacation for provider {provider_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to clear vacation"
        )


@router.put("/providers/{provider_id}/availability/policy",
            summary="Update provider's booking policy")
async def update_booking_policy(
    provider_id: int,
    policy_data: BookingPolicySettings,
    db: Session = Depends(get_db)
) -> BookingPolicySettings:
    """Update session length, buffer, daily ceiling, booking horizon and auto-confirm."""
    try:
        return AvailabilitySettingsService.update_policy(db, provider_id, policy_data)
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.exception(f"Failed to update booking policy for provider {provider_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update booking policy"
        )
