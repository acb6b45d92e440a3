from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from advisor_desk.domain.entities.time_preference import TimePreference
from advisor_desk.domain.entities.working_parameters import (
    AFTERNOON,
    ANY,
    EVENING,
    MORNING,
    WorkingParameters,
)

DAY_NAMES = {
    "monday": 0,
    "mon": 0,
    "tuesday": 1,
    "tues": 1,
    "tue": 1,
    "wednesday": 2,
    "wed": 2,
    "thursday": 3,
    "thurs": 3,
    "thur": 3,
    "thu": 3,
    "friday": 4,
    "fri": 4,
    "saturday": 5,
    "sat": 5,
    "sunday": 6,
    "sun": 6,
}

MONTH_NAMES = {
    "january": 1,
    "jan": 1,
    "february": 2,
    "feb": 2,
    "march": 3,
    "mar": 3,
    "april": 4,
    "apr": 4,
    "may": 5,
    "june": 6,
    "jun": 6,
    "july": 7,
    "jul": 7,
    "august": 8,
    "aug": 8,
    "september": 9,
    "sept": 9,
    "sep": 9,
    "october": 10,
    "oct": 10,
    "november": 11,
    "nov": 11,
    "december": 12,
    "dec": 12,
}

WINDOW_KEYWORDS = (
    (MORNING, ("morning",)),
    (AFTERNOON, ("afternoon",)),
    (EVENING, ("evening",)),
    (ANY, ("anytime", "any time", "whenever", "all day", "any slot")),
)

_DAY_ALTERNATION = "|".join(sorted(DAY_NAMES, key=len, reverse=True))
_MONTH_ALTERNATION = "|".join(sorted(MONTH_NAMES, key=len, reverse=True))

DAY_NAME_RE = re.compile(rf"\b(?:(next|this|coming)\s+)?({_DAY_ALTERNATION})\b")
DAY_MONTH_RE = re.compile(rf"\b(\d{{1,2}})(?:st|nd|rd|th)?\s+(?:of\s+)?({_MONTH_ALTERNATION})\b")
MONTH_DAY_RE = re.compile(rf"\b({_MONTH_ALTERNATION})\s+(\d{{1,2}})(?:st|nd|rd|th)?\b")

_MERIDIEM = r"(a\.?m\.?|p\.?m\.?)"
BEFORE_NOON_RE = re.compile(r"\bbefore\s+(?:noon|midday|lunch)\b")
QUALIFIED_TIME_RE = re.compile(rf"\b(after|before|by)\s+(\d{{1,2}})(?::(\d{{2}}))?\s*{_MERIDIEM}?(?![\w:])")
CLOCK_TIME_RE = re.compile(rf"\b(\d{{1,2}}):(\d{{2}})\s*{_MERIDIEM}?(?![\w:])")
MERIDIEM_TIME_RE = re.compile(rf"\b(\d{{1,2}})\s*{_MERIDIEM}(?!\w)")
OCLOCK_RE = re.compile(r"\b(\d{1,2})\s*o'?\s?clock\b")
NOON_RE = re.compile(r"\b(noon|midday)\b")
AT_HOUR_RE = re.compile(r"\bat\s+(\d{1,2})\b(?!\s*(?:st|nd|rd|th)\b)")

EXACT = "exact"
AFTER = "after"
BEFORE = "before"

# Bare hours below this are read as afternoon ("after 4" means 4 PM)
_BARE_HOUR_PM_CUTOFF = 8


@dataclass(frozen=True)
class TimeReference:
    hour: int
    minute: int
    kind: str


def _to_24h(hour: int, meridiem: str | None) -> int:
    marker = (meridiem or "").replace(".", "")
    if marker == "pm" and hour != 12:
        return hour + 12
    if marker == "am" and hour == 12:
        return 0
    if not marker and 1 <= hour < _BARE_HOUR_PM_CUTOFF:
        return hour + 12
    return hour


def _valid(hour: int, minute: int) -> bool:
    return 0 <= hour <= 23 and 0 <= minute <= 59


def parse_time_reference(text: str) -> TimeReference | None:
    """Find an explicit time in `text`; returns its 24h hour/minute and whether it was after/before/exact."""
    normalized = text.lower()

    if BEFORE_NOON_RE.search(normalized):
        return TimeReference(hour=12, minute=0, kind=BEFORE)

    match = QUALIFIED_TIME_RE.search(normalized)
    if match:
        hour = _to_24h(int(match.group(2)), match.group(4))
        minute = int(match.group(3) or 0)
        if _valid(hour, minute):
            kind = AFTER if match.group(1) == "after" else BEFORE
            return TimeReference(hour=hour, minute=minute, kind=kind)

    for pattern in (CLOCK_TIME_RE, MERIDIEM_TIME_RE):
        match = pattern.search(normalized)
        if match:
            hour_raw = int(match.group(1))
            if pattern is CLOCK_TIME_RE:
                minute = int(match.group(2))
                meridiem = match.group(3)
            else:
                minute = 0
                meridiem = match.group(2)
            hour = _to_24h(hour_raw, meridiem)
            if _valid(hour, minute):
                return TimeReference(hour=hour, minute=minute, kind=EXACT)

    match = OCLOCK_RE.search(normalized)
    if match:
        hour = _to_24h(int(match.group(1)), None)
        if _valid(hour, 0):
            return TimeReference(hour=hour, minute=0, kind=EXACT)

    if NOON_RE.search(normalized):
        return TimeReference(hour=12, minute=0, kind=EXACT)

    match = AT_HOUR_RE.search(normalized)
    if match:
        hour = _to_24h(int(match.group(1)), None)
        if _valid(hour, 0):
            return TimeReference(hour=hour, minute=0, kind=EXACT)

    return None


def _upcoming_weekday(reference_date: date, weekday: int, allow_today: bool) -> date:
    days_ahead = (weekday - reference_date.weekday()) % 7
    if days_ahead == 0 and not allow_today:
        days_ahead = 7
    return reference_date + timedelta(days=days_ahead)


def _explicit_calendar_date(normalized: str, reference_date: date) -> date | None:
    day_month = DAY_MONTH_RE.search(normalized)
    month_day = MONTH_DAY_RE.search(normalized)
    if day_month:
        day, month = int(day_month.group(1)), MONTH_NAMES[day_month.group(2)]
    elif month_day:
        month, day = MONTH_NAMES[month_day.group(1)], int(month_day.group(2))
    else:
        return None

    year = reference_date.year
    if month < reference_date.month or (month == reference_date.month and day < reference_date.day):
        year += 1
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_date_reference(text: str, reference_date: date) -> tuple[date | None, bool]:
    """
    Resolve a day reference to a date.

    Returns (date, named) where `named` is True when the caller picked a
    specific day (today, tomorrow, a weekday name, a calendar date) rather
    than a range such as "this week" or "next week".
    """
    normalized = text.lower().strip()

    if "day after tomorrow" in normalized:
        return reference_date + timedelta(days=2), True
    if re.search(r"\btoday\b", normalized):
        return reference_date, True
    if re.search(r"\btomorrow\b", normalized):
        return reference_date + timedelta(days=1), True

    explicit = _explicit_calendar_date(normalized, reference_date)
    if explicit is not None:
        return explicit, True

    match = DAY_NAME_RE.search(normalized)
    if match:
        qualifier, name = match.group(1), match.group(2)
        return _upcoming_weekday(reference_date, DAY_NAMES[name], allow_today=qualifier == "this"), True

    if re.search(r"\bnext\s+week\b", normalized):
        return _upcoming_weekday(reference_date, 0, allow_today=False), False
    if re.search(r"\bthis\s+week\b", normalized):
        return reference_date, False

    return None, False


def parse_time_window(text: str) -> str | None:
    normalized = text.lower()
    for window, keywords in WINDOW_KEYWORDS:
        if any(re.search(rf"\b{re.escape(keyword)}\b", normalized) for keyword in keywords):
            return window
    return None


def _window_for_reference(ref: TimeReference, params: WorkingParameters) -> str:
    hour = ref.hour
    if ref.kind == BEFORE and ref.minute == 0:
        hour -= 1
    return params.window_for_hour(hour) or ANY


def parse_datetime_preference(
    text: str,
    timezone: ZoneInfo,
    reference: datetime | None = None,
    params: WorkingParameters | None = None,
) -> TimePreference:
    """
    Deterministic first stage of time resolution.

    `date` is None when no day is mentioned and `time_window` is None when
    no time is mentioned; callers decide the defaults.
    """
    params = params or WorkingParameters()
    now = reference.astimezone(timezone) if reference else datetime.now(timezone)
    reference_date = now.date()

    resolved_date, named = parse_date_reference(text, reference_date)
    time_ref = parse_time_reference(text)

    window: str | None
    specific_time: datetime | None = None
    if time_ref is not None:
        window = _window_for_reference(time_ref, params)
        if time_ref.kind == EXACT:
            day = resolved_date or reference_date
            specific_time = datetime(day.year, day.month, day.day, time_ref.hour, time_ref.minute, tzinfo=timezone)
    else:
        window = parse_time_window(text)

    is_weekend = resolved_date is not None and resolved_date.isoweekday() >= 6
    requested_weekend = (
        named and resolved_date is not None and not params.is_working_day(resolved_date.isoweekday())
    )

    return TimePreference(
        date=resolved_date,
        time_window=window,
        specific_time=specific_time,
        is_weekend=is_weekend,
        requested_weekend=requested_weekend,
    )
