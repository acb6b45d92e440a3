from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from advisor_desk.application.use_cases.flows.base import FlowContext
from advisor_desk.application.utils.date_parser import (
    EXACT,
    parse_date_reference,
    parse_time_reference,
    parse_time_window,
)
from advisor_desk.application.utils.message_rules import normalize_text, parse_ordinal_choice
from advisor_desk.domain.entities.dialog_state import DialogSession
from advisor_desk.domain.entities.slot import Slot
from advisor_desk.domain.entities.time_preference import TimePreference
from advisor_desk.domain.entities.working_parameters import ANY, WorkingParameters

# a spoken time picks the offered slot starting within this many minutes of it
SLOT_MATCH_TOLERANCE_MINUTES = 30


@dataclass(frozen=True)
class SlotSearch:
    day: date | None
    window: str
    slots: list[Slot]
    requested: Slot | None = None
    requested_taken: bool = False


def local_today(ctx: FlowContext) -> date:
    return ctx.now.astimezone(ctx.services.timezone).date()


def search_slots(ctx: FlowContext, preference: TimePreference, exclude_code: str | None = None) -> SlotSearch:
    """
    Run the availability engine for a resolved preference.

    A free, in-hours specific time is offered first; a taken one is reported
    through `requested_taken` so the caller can say so or offer the waitlist.
    """
    services = ctx.services
    engine = services.engine
    requested_day = preference.date or local_today(ctx)
    window = preference.time_window or ANY
    busy = services.ledger.active_intervals(exclude_code=exclude_code)

    day = engine.next_working_day(requested_day)
    if day is not None and engine.first_slot_of_window(day, window, not_before=ctx.now) is None:
        # the window is already over on that day
        day = engine.next_working_day(day + timedelta(days=1))
    slots: list[Slot] = []
    if day is not None:
        slots = engine.get_available_slots(day, window, existing_bookings=busy, not_before=ctx.now)

    requested: Slot | None = None
    taken = False
    if preference.specific_time is not None:
        start = preference.specific_time
        if day is not None and start.date() != day:
            start = datetime.combine(day, start.timetz())
        requested = Slot(start=start, end=start + timedelta(minutes=services.params.slot_duration_minutes))
        taken = services.engine.check_slot_overlap(requested.start, requested.end, busy).has_overlap
        if not taken and requested.start >= ctx.now and services.engine.is_within_working_hours(requested):
            others = [s for s in slots if not s.overlaps(requested.start, requested.end)]
            slots = [requested] + others[: services.params.max_offered_slots - 1]

    return SlotSearch(day=day, window=window, slots=slots, requested=requested, requested_taken=taken)


def remember_offer(session: DialogSession, search: SlotSearch) -> None:
    session.update_slots(
        {
            "preferred_day": search.day,
            "preferred_time_window": search.window,
            "available_slots": list(search.slots),
            "selected_slot": None,
        }
    )


def stored_preference(session: DialogSession) -> TimePreference | None:
    day = session.slots.get("preferred_day")
    window = session.slots.get("preferred_time_window")
    if day is None and window is None:
        return None
    return TimePreference(date=day, time_window=window)


def choose_slot(text: str, slots: list[Slot], timezone: ZoneInfo, params: WorkingParameters) -> Slot | None:
    """Map a reply like "2", "the first one", "3 PM", "morning" or "later" onto one of `slots`."""
    if not slots:
        return None

    time_ref = parse_time_reference(text)
    if time_ref is not None and time_ref.kind == EXACT:
        wanted = time_ref.hour * 60 + time_ref.minute
        best: tuple[int, Slot] | None = None
        for slot in slots:
            local = slot.start.astimezone(timezone)
            distance = abs(local.hour * 60 + local.minute - wanted)
            if distance <= SLOT_MATCH_TOLERANCE_MINUTES and (best is None or distance < best[0]):
                best = (distance, slot)
        return best[1] if best else None

    index = parse_ordinal_choice(text)
    if index is not None:
        return slots[index] if 0 <= index < len(slots) else None

    window = parse_time_window(text)
    if window is not None and window != ANY:
        start_hour, end_hour = params.window_range(window)
        for slot in slots:
            if start_hour <= slot.start.astimezone(timezone).hour < end_hour:
                return slot

    words = set(normalize_text(text).split())
    if words & {"earlier", "earliest"}:
        return slots[0]
    if words & {"later", "latest", "last"}:
        return slots[-1]
    return None


def mentions_other_day(ctx: FlowContext, slots: list[Slot]) -> bool:
    """True when the reply names a day other than the one the offered slots are on."""
    day, _ = parse_date_reference(ctx.text, local_today(ctx))
    if day is None:
        return False
    return all(slot.start.astimezone(ctx.services.timezone).date() != day for slot in slots)
