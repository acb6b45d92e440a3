from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from advisor_desk.domain.entities.slot import Slot


class BookingStatus(str, Enum):
    CREATED = "created"
    RESCHEDULED = "rescheduled"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Booking:
    code: str
    topic: str
    slot_start: datetime
    slot_end: datetime
    status: BookingStatus = BookingStatus.CREATED
    is_waitlist: bool = False
    external_event_ref: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_cancelled(self) -> bool:
        return self.status == BookingStatus.CANCELLED

    @property
    def is_active(self) -> bool:
        """Active bookings occupy their interval; waitlisted or cancelled ones do not."""
        return not self.is_cancelled and not self.is_waitlist

    @property
    def slot(self) -> Slot:
        return Slot(start=self.slot_start, end=self.slot_end)
