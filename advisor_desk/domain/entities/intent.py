from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum


class Intent(str, Enum):
    BOOK_NEW = "book_new"
    RESCHEDULE = "reschedule"
    CANCEL = "cancel"
    WHAT_TO_PREPARE = "what_to_prepare"
    CHECK_AVAILABILITY = "check_availability"


INTENT_DESCRIPTIONS: dict[Intent, str] = {
    Intent.BOOK_NEW: "book a new appointment",
    Intent.RESCHEDULE: "reschedule an appointment",
    Intent.CANCEL: "cancel an appointment",
    Intent.WHAT_TO_PREPARE: "know what to prepare",
    Intent.CHECK_AVAILABILITY: "check availability",
}


def parse_intent(value: str | None) -> Intent | None:
    if not value:
        return None
    try:
        return Intent(value.strip().lower())
    except ValueError:
        return None


@dataclass(frozen=True)
class DateTimeInterpretation:
    """Output of the external natural-language date/time interpreter."""

    date: date | None = None
    time_window: str | None = None
    confidence: float = 0.0
    needs_clarification: bool = True
    interpretation: str | None = None
    requested_weekend: bool = False
