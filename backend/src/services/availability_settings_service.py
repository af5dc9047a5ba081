"""
Availability settings service.

Reads a provider's weekly template, exceptions, vacation and booking policy
into the scheduling engine's types, and writes them back only after the
schedule guards accept the candidate. Rejected writes leave the stored
settings untouched.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models import (
    AvailabilityException, AvailabilityExceptionInterval, Provider, WeeklyAvailabilityInterval,
)
from models.provider import BookingPolicySettings, ProviderSettings, VacationSettings
from shared_types.availability import (
    BookingPolicy, DayRule, ExceptionSet, ScheduleException, TimeInterval, VacationWindow, WeeklyTemplate,
)
from shared_types.errors import MalformedScheduleError
from utils.datetime_utils import minutes_to_time
from utils.http_errors import schedule_error_to_http
from utils.schedule_validators import guard_exception, guard_vacation_window, guard_weekly_template

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderSchedule:
    """Everything the slot engine needs to know about one provider."""
    template: WeeklyTemplate
    exceptions: ExceptionSet
    vacation: Optional[VacationWindow]
    policy: BookingPolicy


class AvailabilitySettingsService:
    """
    Service class for provider availability settings.

    All writes go through the schedule guards first; reads return immutable
    engine types so callers never touch ORM rows.
    """

    @staticmethod
    def get_provider(
        db: Session,
        provider_id: int,
        for_update: bool = False,
        active_only: bool = False,
    ) -> Provider:
        """
        Get a provider by ID.

        Args:
            db: Database session
            provider_id: Provider ID
            for_update: Lock the provider row until the transaction ends
            active_only: Treat inactive providers as missing

        Raises:
            HTTPException: If provider not found
        """
        query = db.query(Provider).filter(Provider.id == provider_id)
        if active_only:
            query = query.filter(Provider.is_active == True)  # noqa: E712
        if for_update:
            query = query.with_for_update()
        provider = query.first()
        if not provider:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Provider not found"
            )
        return provider

    @staticmethod
    def create_provider(db: Session, name: str, email: Optional[str] = None) -> Provider:
        """
        Create a provider with the default weekly template and settings.

        Raises:
            HTTPException: If a provider with the same email already exists
        """
        try:
            provider = Provider(name=name, email=email, is_active=True)
            provider.set_validated_settings(ProviderSettings())
            db.add(provider)
            db.flush()

            AvailabilitySettingsService._write_weekly_template(db, provider.id, WeeklyTemplate.default())
            db.commit()
            db.refresh(provider)

            logger.info(f"Created provider {provider.id} with default availability")
            return provider
        except IntegrityError as e:
            logger.warning(f"Provider creation conflict: {e}")
            db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="A provider with this email already exists"
            )

    # Reads

    @staticmethod
    def load_weekly_template(db: Session, provider_id: int) -> WeeklyTemplate:
        """Load the provider's weekly template; weekdays without intervals are unavailable."""
        rows = db.query(WeeklyAvailabilityInterval).filter(
            WeeklyAvailabilityInterval.provider_id == provider_id
        ).order_by(
            WeeklyAvailabilityInterval.day_of_week,
            WeeklyAvailabilityInterval.start_time
        ).all()

        by_day: Dict[int, List[TimeInterval]] = defaultdict(list)
        for row in rows:
            by_day[row.day_of_week].append(row.to_interval())

        return WeeklyTemplate.from_rules(
            DayRule.from_intervals(weekday, by_day.get(weekday, ())) for weekday in range(7)
        )

    @staticmethod
    def load_exceptions(
        db: Session,
        provider_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> ExceptionSet:
        """Load the provider's exceptions, optionally restricted to [start_date, end_date]."""
        query = db.query(AvailabilityException).filter(AvailabilityException.provider_id == provider_id)
        if start_date is not None:
            query = query.filter(AvailabilityException.date >= start_date)
        if end_date is not None:
            query = query.filter(AvailabilityException.date <= end_date)
        rows = query.order_by(AvailabilityException.date).all()
        return ExceptionSet(row.to_schedule_exception() for row in rows)

    @staticmethod
    def load_schedule(db: Session, provider: Provider, start_date: date, end_date: date) -> ProviderSchedule:
        """Load all scheduling inputs for a date range."""
        settings = provider.get_validated_settings()
        return ProviderSchedule(
            template=AvailabilitySettingsService.load_weekly_template(db, provider.id),
            exceptions=AvailabilitySettingsService.load_exceptions(db, provider.id, start_date, end_date),
            vacation=settings.vacation_settings.to_window(),
            policy=settings.booking_policy.to_policy(),
        )

    # Writes

    @staticmethod
    def _write_weekly_template(db: Session, provider_id: int, template: WeeklyTemplate) -> None:
        for rule in template:
            for interval in rule.intervals:
                db.add(WeeklyAvailabilityInterval(
                    provider_id=provider_id,
                    day_of_week=rule.weekday,
                    start_time=minutes_to_time(interval.start),
                    end_time=minutes_to_time(interval.end),
                    is_break=interval.is_break,
                ))

    @staticmethod
    def save_weekly_template(db: Session, provider_id: int, candidate: WeeklyTemplate) -> WeeklyTemplate:
        """
        Replace the provider's weekly template.

        The whole template is rejected on the first malformed weekday; nothing
        is written in that case.

        Raises:
            HTTPException: 404 if provider not found, 400 if the template is malformed
        """
        AvailabilitySettingsService.get_provider(db, provider_id, for_update=True)

        try:
            guard_weekly_template(candidate)
        except MalformedScheduleError as e:
            db.rollback()
            logger.info(f"Rejected weekly template for provider {provider_id}: {e.message}")
            raise schedule_error_to_http(e)

        db.query(WeeklyAvailabilityInterval).filter(
            WeeklyAvailabilityInterval.provider_id == provider_id
        ).delete()
        AvailabilitySettingsService._write_weekly_template(db, provider_id, candidate)
        db.commit()

        logger.info(f"Saved weekly template for provider {provider_id}")
        return AvailabilitySettingsService.load_weekly_template(db, provider_id)

    @staticmethod
    def copy_day_to_weekdays(db: Session, provider_id: int, source_weekday: int) -> WeeklyTemplate:
        """
        Copy one weekday's rule onto Monday-Friday and save the result.

        Raises:
            HTTPException: 400 if the weekday is invalid
        """
        if not 0 <= source_weekday <= 6:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid weekday {source_weekday} (expected 0=Monday ... 6=Sunday)"
            )
        template = AvailabilitySettingsService.load_weekly_template(db, provider_id)
        return AvailabilitySettingsService.save_weekly_template(
            db, provider_id, template.copy_day_to_weekdays(source_weekday)
        )

    @staticmethod
    def add_exception(
        db: Session,
        provider_id: int,
        candidate: ScheduleException,
        replace: bool = False,
    ) -> ScheduleException:
        """
        Add a date exception, optionally replacing the one already on that date.

        Raises:
            HTTPException: 404 if provider not found, 400 if the exception is
                malformed, 409 if the date already has one and replace is False
        """
        AvailabilitySettingsService.get_provider(db, provider_id, for_update=True)

        existing_row = db.query(AvailabilityException).filter(
            AvailabilityException.provider_id == provider_id,
            AvailabilityException.date == candidate.date
        ).first()
        existing = existing_row.to_schedule_exception() if existing_row else None

        try:
            guard_exception(candidate, existing, replace)
        except MalformedScheduleError as e:
            db.rollback()
            logger.info(f"Rejected exception for provider {provider_id} on {candidate.date}: {e.message}")
            raise schedule_error_to_http(e)

        try:
            if existing_row is not None:
                db.delete(existing_row)
                db.flush()

            db.add(AvailabilityException(
                provider_id=provider_id,
                date=candidate.date,
                reason=candidate.reason.strip(),
                full_day_block=candidate.full_day_block,
                intervals=[
                    AvailabilityExceptionInterval(
                        start_time=minutes_to_time(interval.start),
                        end_time=minutes_to_time(interval.end),
                        is_break=interval.is_break,
                    )
                    for interval in candidate.custom_intervals
                ],
            ))
            db.commit()
        except IntegrityError as e:
            logger.warning(f"Exception save conflict for provider {provider_id} on {candidate.date}: {e}")
            db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={"message": f"An exception already exists for {candidate.date.isoformat()}", "date": candidate.date.isoformat()}
            )

        action = "Replaced" if existing_row is not None else "Added"
        logger.info(f"{action} exception for provider {provider_id} on {candidate.date}")
        saved = AvailabilitySettingsService.load_exceptions(db, provider_id, candidate.date, candidate.date)
        return next(iter(saved))

    @staticmethod
    def remove_exception(db: Session, provider_id: int, exception_date: date) -> None:
        """
        Raises:
            HTTPException: If provider or exception not found
        """
        AvailabilitySettingsService.get_provider(db, provider_id)
        row = db.query(AvailabilityException).filter(
            AvailabilityException.provider_id == provider_id,
            AvailabilityException.date == exception_date
        ).first()
        if not row:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Exception not found"
            )
        db.delete(row)
        db.commit()
        logger.info(f"Removed exception for provider {provider_id} on {exception_date}")

    @staticmethod
    def set_vacation(db: Session, provider_id: int, window: VacationWindow) -> VacationSettings:
        """
        Turn on vacation mode for the given window.

        Raises:
            HTTPException: 404 if provider not found, 400 if the window is inverted
        """
        provider = AvailabilitySettingsService.get_provider(db, provider_id, for_update=True)
        try:
            guard_vacation_window(window)
        except MalformedScheduleError as e:
            db.rollback()
            logger.info(f"Rejected vacation window for provider {provider_id}: {e.message}")
            raise schedule_error_to_http(e)

        settings = provider.get_validated_settings()
        settings.vacation_settings = VacationSettings(
            vacation_mode=True,
            start_date=window.start,
            end_date=window.end,
            message=window.message,
        )
        provider.set_validated_settings(settings)
        db.commit()

        logger.info(f"Set vacation {window.start}..{window.end} for provider {provider_id}")
        return settings.vacation_settings

    @staticmethod
    def clear_vacation(db: Session, provider_id: int) -> VacationSettings:
        provider = AvailabilitySettingsService.get_provider(db, provider_id, for_update=True)
        settings = provider.get_validated_settings()
        settings.vacation_settings = VacationSettings()
        provider.set_validated_settings(settings)
        db.commit()

        logger.info(f"Cleared vacation for provider {provider_id}")
        return settings.vacation_settings

    @staticmethod
    def update_policy(db: Session, provider_id: int, policy: BookingPolicySettings) -> BookingPolicySettings:
        """Replace the provider's booking policy."""
        provider = AvailabilitySettingsService.get_provider(db, provider_id, for_update=True)
        settings = provider.get_validated_settings()
        settings.booking_policy = policy
        provider.set_validated_settings(settings)
        db.commit()

        logger.info(
            f"Updated booking policy for provider {provider_id}: "
            f"session={policy.session_duration_minutes}, buffer={policy.buffer_minutes}, "
            f"max_daily={policy.max_daily_appointments}, advance_days={policy.advance_booking_days}"
        )
        return policy
