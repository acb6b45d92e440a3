from __future__ import annotations

from datetime import date

from advisor_desk.application.utils.formatting import format_slot
from advisor_desk.domain.entities.booking import Booking
from advisor_desk.domain.entities.slot import Slot
from advisor_desk.domain.entities.tool_call import (
    CALENDAR_GET_AVAILABILITY,
    EMAIL_CREATE_ADVISOR_DRAFT,
    EVENT_CANCEL,
    EVENT_CREATE_TENTATIVE,
    EVENT_UPDATE_TIME,
    NOTES_APPEND_PREBOOKING,
    ToolCall,
)

CREATED = "created"
WAITLISTED = "waitlisted"
RESCHEDULED = "rescheduled"
CANCELLED = "cancelled"


def _audit_row(booking: Booking, action: str) -> ToolCall:
    return ToolCall(
        name=NOTES_APPEND_PREBOOKING,
        params={
            "bookingCode": booking.code,
            "action": action,
            "topic": booking.topic,
            "startDateTime": booking.slot_start.isoformat(),
            "endDateTime": booking.slot_end.isoformat(),
            "isWaitlist": booking.is_waitlist,
            "status": booking.status.value,
        },
    )


def _advisor_email(booking: Booking, action: str) -> ToolCall:
    when = format_slot(booking.slot)
    return ToolCall(
        name=EMAIL_CREATE_ADVISOR_DRAFT,
        params={
            "bookingCode": booking.code,
            "action": action,
            "startDateTime": booking.slot_start.isoformat(),
            "subject": f"[{action.capitalize()}] Advisor Q&A {booking.topic} {booking.code}",
            "body": (
                f"Booking {booking.code} for {booking.topic} on {when} is {action}. "
                "Contact details are collected separately through the secure link."
            ),
        },
    )


def booking_created_commands(booking: Booking) -> list[ToolCall]:
    action = WAITLISTED if booking.is_waitlist else CREATED
    label = "Waitlist" if booking.is_waitlist else "Tentative"
    calendar = ToolCall(
        name=EVENT_CREATE_TENTATIVE,
        params={
            "bookingCode": booking.code,
            "action": action,
            "summary": f"{label} Advisor Q&A {booking.topic} {booking.code}",
            "description": f"{label} hold for {booking.topic}. Booking code: {booking.code}",
            "topic": booking.topic,
            "startDateTime": booking.slot_start.isoformat(),
            "endDateTime": booking.slot_end.isoformat(),
            "isWaitlist": booking.is_waitlist,
        },
    )
    return [calendar, _audit_row(booking, action), _advisor_email(booking, action)]


def booking_rescheduled_commands(booking: Booking, previous: Slot) -> list[ToolCall]:
    calendar = ToolCall(
        name=EVENT_UPDATE_TIME,
        params={
            "bookingCode": booking.code,
            "action": RESCHEDULED,
            "eventId": booking.external_event_ref,
            "startDateTime": booking.slot_start.isoformat(),
            "endDateTime": booking.slot_end.isoformat(),
            "previousStartDateTime": previous.start.isoformat(),
            "previousEndDateTime": previous.end.isoformat(),
        },
    )
    return [calendar, _audit_row(booking, RESCHEDULED), _advisor_email(booking, RESCHEDULED)]


def booking_cancelled_commands(booking: Booking) -> list[ToolCall]:
    calendar = ToolCall(
        name=EVENT_CANCEL,
        params={"bookingCode": booking.code, "action": CANCELLED, "eventId": booking.external_event_ref},
    )
    return [calendar, _audit_row(booking, CANCELLED), _advisor_email(booking, CANCELLED)]


def availability_query(day: date, window: str, slots: list[Slot]) -> ToolCall:
    return ToolCall(
        name=CALENDAR_GET_AVAILABILITY,
        params={
            "date": day.isoformat(),
            "window": window,
            "offered": [slot.to_dict() for slot in slots],
        },
    )
