"""
Shared types for booking validation results.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

from core.constants import APPOINTMENT_STATUS_CONFIRMED, APPOINTMENT_STATUS_PENDING
from utils.datetime_utils import format_minutes


@dataclass(frozen=True)
class BookingRequest:
    """A requested appointment window in practice-local time."""
    date: date
    start: int
    end: int

    @property
    def duration_minutes(self) -> int:
        return self.end - self.start

    def __str__(self) -> str:
        return f"{self.date.isoformat()} {format_minutes(self.start)}-{format_minutes(self.end)}"


class RejectionReason(str, Enum):
    """Why a booking request was rejected. Checked in declaration order."""
    OUT_OF_WINDOW = "out_of_window"
    VACATION = "vacation"
    DURATION_MISMATCH = "duration_mismatch"
    OUTSIDE_AVAILABILITY = "outside_availability"
    CONFLICT = "conflict"
    CAPACITY_REACHED = "capacity_reached"

    @property
    def message(self) -> str:
        return REJECTION_MESSAGES[self]


REJECTION_MESSAGES = {
    RejectionReason.OUT_OF_WINDOW: "This date is outside the provider's booking window. Please pick a date within the allowed range.",
    RejectionReason.VACATION: "The provider is on vacation on this date. Please pick another date.",
    RejectionReason.DURATION_MISMATCH: "The requested length does not match the provider's session duration.",
    RejectionReason.OUTSIDE_AVAILABILITY: "This time is outside the provider's availability. Please pick another time.",
    RejectionReason.CONFLICT: "This slot was just booked by someone else. Please pick another time.",
    RejectionReason.CAPACITY_REACHED: "The provider is fully booked on this date. Please pick another date.",
}


@dataclass(frozen=True)
class BookingDecision:
    """
    Outcome of validating a booking request.

    Accepted decisions carry the status the new appointment should be created
    with; rejected ones carry the reason and a user-facing message.
    """
    accepted: bool
    reason: Optional[RejectionReason] = None
    message: str = ""
    appointment_status: Optional[str] = None

    @classmethod
    def accept(cls, auto_confirm: bool) -> "BookingDecision":
        status = APPOINTMENT_STATUS_CONFIRMED if auto_confirm else APPOINTMENT_STATUS_PENDING
        return cls(accepted=True, message="Booking accepted", appointment_status=status)

    @classmethod
    def reject(cls, reason: RejectionReason, detail: Optional[str] = None) -> "BookingDecision":
        message = reason.message if not detail else f"{reason.message} {detail}"
        return cls(accepted=False, reason=reason, message=message)

    def to_dict(self) -> dict[str, str | bool | None]:
        """Convert to dictionary format."""
        return {
            "accepted": self.accepted,
            "reason": self.reason.value if self.reason else None,
            "message": self.message,
            "appointment_status": self.appointment_status,
        }
