from __future__ import annotations

from datetime import datetime

from advisor_desk.domain.entities.slot import Slot


def format_time(value: datetime) -> str:
    # "3:00 PM", no leading zero
    return value.strftime("%I:%M %p").lstrip("0")


def format_day(value: datetime) -> str:
    return f"{value.strftime('%A')}, {value.day} {value.strftime('%B')}"


def format_slot(slot: Slot) -> str:
    """'Tuesday, 20 October from 12:00 PM to 12:30 PM IST'"""
    label = slot.start.tzname() or ""
    text = f"{format_day(slot.start)} from {format_time(slot.start)} to {format_time(slot.end)}"
    return f"{text} {label}".rstrip()
