from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Iterable
from zoneinfo import ZoneInfo

from advisor_desk.domain.entities.slot import Slot
from advisor_desk.domain.entities.working_parameters import WorkingParameters


@dataclass(frozen=True)
class SlotOverlap:
    has_overlap: bool
    overlapping_slots: list[Slot] = field(default_factory=list)


class AvailabilityEngine:
    """
    Generates conflict-free candidate slots for one day and time window.

    Never raises for "nothing free": an empty list is the answer. Working
    days, hours, windows and slot length all come from `params`.
    """

    def __init__(self, params: WorkingParameters, timezone: ZoneInfo) -> None:
        self.params = params
        self.timezone = timezone
        self.logger = logging.getLogger(__name__)

    def _at(self, day: date, hour: int) -> datetime:
        return datetime(day.year, day.month, day.day, hour, 0, tzinfo=self.timezone)

    def next_working_day(self, day: date) -> date | None:
        for offset in range(7):
            candidate = day + timedelta(days=offset)
            if self.params.is_working_day(candidate.isoweekday()):
                return candidate
        return None

    @staticmethod
    def _is_free(candidate: Slot, busy: list[Slot], not_before: datetime | None) -> bool:
        if not_before is not None and candidate.start < not_before:
            return False
        return not any(candidate.overlaps(other.start, other.end) for other in busy)

    def get_available_slots(
        self,
        day: date,
        window: str | None,
        duration_minutes: int | None = None,
        existing_bookings: Iterable[Slot] = (),
        not_before: datetime | None = None,
    ) -> list[Slot]:
        working_day = self.next_working_day(day)
        if working_day is None:
            self.logger.warning("No working days configured", extra={"reason": "no_working_days"})
            return []

        step = timedelta(minutes=duration_minutes or self.params.slot_duration_minutes)
        window_start, window_end = self.params.window_range(window)
        start_hour = max(window_start, self.params.start_hour)
        end_hour = min(window_end, self.params.end_hour)
        if start_hour >= end_hour:
            return []

        busy = list(existing_bookings)
        limit = self.params.max_offered_slots
        range_end = self._at(working_day, end_hour)
        slots: list[Slot] = []

        cursor = self._at(working_day, start_hour)
        while cursor + step <= range_end and len(slots) < limit:
            candidate = Slot(start=cursor, end=cursor + step)
            if self._is_free(candidate, busy, not_before):
                slots.append(candidate)
            cursor += step

        if len(slots) < limit:
            extension = Slot(start=range_end, end=range_end + step)
            if (
                extension.end <= self._at(working_day, self.params.end_hour)
                and extension not in slots
                and self._is_free(extension, busy, not_before)
            ):
                slots.append(extension)

        return slots

    def find_next_available(
        self,
        start_day: date,
        window: str | None,
        existing_bookings: Iterable[Slot] = (),
        not_before: datetime | None = None,
        max_days: int = 7,
    ) -> tuple[date | None, list[Slot]]:
        """First day within `max_days` that has anything free, with its slots."""
        busy = list(existing_bookings)
        for offset in range(max_days):
            day = start_day + timedelta(days=offset)
            if not self.params.is_working_day(day.isoweekday()):
                continue
            slots = self.get_available_slots(day, window, existing_bookings=busy, not_before=not_before)
            if slots:
                return day, slots
        return None, []

    def check_slot_overlap(
        self,
        start: datetime,
        end: datetime,
        existing_bookings: Iterable[Slot] = (),
    ) -> SlotOverlap:
        overlapping = [slot for slot in existing_bookings if slot.overlaps(start, end)]
        return SlotOverlap(has_overlap=bool(overlapping), overlapping_slots=overlapping)

    def first_slot_of_window(self, day: date, window: str | None, not_before: datetime | None = None) -> Slot | None:
        """Earliest slot of the window on `day` starting at or after `not_before`, bookings ignored."""
        step = timedelta(minutes=self.params.slot_duration_minutes)
        window_start, window_end = self.params.window_range(window)
        cursor = self._at(day, max(window_start, self.params.start_hour))
        range_end = self._at(day, min(window_end, self.params.end_hour))
        while cursor + step <= range_end:
            if not_before is None or cursor >= not_before:
                return Slot(start=cursor, end=cursor + step)
            cursor += step
        return None

    def is_within_working_hours(self, slot: Slot) -> bool:
        local_start = slot.start.astimezone(self.timezone)
        local_end = slot.end.astimezone(self.timezone)
        if not self.params.is_working_day(local_start.isoweekday()):
            return False
        day = local_start.date()
        return self._at(day, self.params.start_hour) <= local_start and local_end <= self._at(day, self.params.end_hour)
