from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import datetime

from advisor_desk.domain.entities.booking import Booking, BookingStatus
from advisor_desk.domain.entities.slot import Slot


class BookingLedgerPort(ABC):
    @abstractmethod
    def transaction(self) -> AbstractContextManager:
        """
        Exclusive section around check availability -> generate code -> commit.
        Must be re-entrant: ledger methods called inside it take the same lock.
        """
        raise NotImplementedError

    @abstractmethod
    def set_booking(
        self,
        code: str,
        topic: str,
        slot_start: datetime,
        slot_end: datetime,
        status: BookingStatus = BookingStatus.CREATED,
        is_waitlist: bool = False,
        external_event_ref: str | None = None,
    ) -> Booking:
        """
        Create or replace the booking stored under `code`.

        Requirements:
        - If [slot_start, slot_end) overlaps another active booking, the stored
          record is forced to is_waitlist=True
        - Waitlisted records never enter the interval index
        - created_at of an existing record is preserved, updated_at is bumped
        """
        raise NotImplementedError

    @abstractmethod
    def delete_booking(self, code: str) -> bool:
        """Logical cancel. Returns False if the code is unknown or already cancelled."""
        raise NotImplementedError

    @abstractmethod
    def check_conflict(self, start: datetime, end: datetime, exclude_code: str | None = None) -> bool:
        raise NotImplementedError

    @abstractmethod
    def get_booking(self, code: str) -> Booking | None:
        raise NotImplementedError

    @abstractmethod
    def issued_codes(self) -> set[str]:
        """Every code ever stored, cancelled ones included."""
        raise NotImplementedError

    @abstractmethod
    def active_intervals(self, exclude_code: str | None = None) -> list[Slot]:
        raise NotImplementedError

    @abstractmethod
    def attach_external_ref(self, code: str, external_event_ref: str) -> Booking | None:
        raise NotImplementedError

    @abstractmethod
    def all_bookings(self) -> list[Booking]:
        raise NotImplementedError
