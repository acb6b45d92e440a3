from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Iterator

from advisor_desk.application.ports.booking_ledger import BookingLedgerPort
from advisor_desk.domain.entities.booking import Booking, BookingStatus
from advisor_desk.domain.entities.slot import Slot


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MemoryBookingLedger(BookingLedgerPort):
    """
    Process-local ledger.

    `_bookings` keeps every record ever written, cancelled ones included, so
    codes are never reissued. `_intervals` only holds active, non-waitlisted
    bookings and is the sole source for conflict checks.
    """

    def __init__(self, clock: Callable[[], datetime] = _utc_now) -> None:
        self._bookings: dict[str, Booking] = {}
        self._intervals: dict[str, Slot] = {}
        self._lock = threading.RLock()
        self._clock = clock
        self.logger = logging.getLogger(__name__)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            yield

    def _persist(self, bookings: dict[str, Booking]) -> None:
        """Hook for persistent subclasses; called with the lock held, before the new state is swapped in."""

    @staticmethod
    def _key(code: str) -> str:
        return code.strip().upper()

    def _store(self, booking: Booking) -> None:
        bookings = {**self._bookings, booking.code: booking}
        self._persist(bookings)
        self._bookings = bookings
        self._intervals.pop(booking.code, None)
        if booking.is_active:
            self._intervals[booking.code] = booking.slot

    def _conflicts(self, start: datetime, end: datetime, exclude_code: str | None) -> list[str]:
        return [
            code
            for code, interval in self._intervals.items()
            if code != exclude_code and interval.overlaps(start, end)
        ]

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
        code = self._key(code)
        with self._lock:
            now = self._clock()
            existing = self._bookings.get(code)

            waitlist = is_waitlist
            if not waitlist and status != BookingStatus.CANCELLED:
                clashes = self._conflicts(slot_start, slot_end, exclude_code=code)
                if clashes:
                    self.logger.warning(
                        "Interval already taken, storing booking as waitlist",
                        extra={"booking_code": code, "reason": "conflict"},
                    )
                    waitlist = True

            booking = Booking(
                code=code,
                topic=topic,
                slot_start=slot_start,
                slot_end=slot_end,
                status=status,
                is_waitlist=waitlist,
                external_event_ref=external_event_ref
                if external_event_ref is not None
                else (existing.external_event_ref if existing else None),
                created_at=existing.created_at if existing else now,
                updated_at=now,
            )
            self._store(booking)
            return booking

    def delete_booking(self, code: str) -> bool:
        with self._lock:
            booking = self._bookings.get(self._key(code))
            if booking is None or booking.is_cancelled:
                return False
            self._store(replace(booking, status=BookingStatus.CANCELLED, updated_at=self._clock()))
            return True

    def check_conflict(self, start: datetime, end: datetime, exclude_code: str | None = None) -> bool:
        with self._lock:
            return bool(self._conflicts(start, end, exclude_code))

    def get_booking(self, code: str) -> Booking | None:
        with self._lock:
            return self._bookings.get(self._key(code)) if code else None

    def issued_codes(self) -> set[str]:
        with self._lock:
            return set(self._bookings)

    def active_intervals(self, exclude_code: str | None = None) -> list[Slot]:
        with self._lock:
            return [slot for code, slot in self._intervals.items() if code != exclude_code]

    def attach_external_ref(self, code: str, external_event_ref: str) -> Booking | None:
        with self._lock:
            booking = self._bookings.get(self._key(code))
            if booking is None:
                return None
            updated = replace(booking, external_event_ref=external_event_ref)
            self._store(updated)
            return updated

    def all_bookings(self) -> list[Booking]:
        with self._lock:
            return list(self._bookings.values())
