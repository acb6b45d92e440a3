from datetime import date, datetime
from zoneinfo import ZoneInfo

from advisor_desk.application.utils.date_parser import (
    AFTER,
    BEFORE,
    EXACT,
    TimeReference,
    parse_date_reference,
    parse_datetime_preference,
    parse_time_reference,
    parse_time_window,
)
from advisor_desk.domain.entities.working_parameters import WorkingParameters

IST = ZoneInfo("Asia/Kolkata")
# Monday
NOW = datetime(2026, 10, 19, 9, 0, tzinfo=IST)
TODAY = NOW.date()
WEEKDAYS_ONLY = WorkingParameters(working_days=frozenset({1, 2, 3, 4, 5}))


def test_tomorrow_afternoon():
    pref = parse_datetime_preference("tomorrow afternoon", IST, reference=NOW)
    assert pref.date == date(2026, 10, 20)
    assert pref.time_window == "afternoon"
    assert pref.specific_time is None
    assert pref.requested_weekend is False


def test_named_non_working_day_is_flagged():
    pref = parse_datetime_preference("Saturday", IST, reference=NOW, params=WEEKDAYS_ONLY)
    assert pref.date == date(2026, 10, 24)
    assert pref.is_weekend is True
    assert pref.requested_weekend is True


def test_saturday_is_fine_when_saturday_is_a_working_day():
    pref = parse_datetime_preference("Saturday", IST, reference=NOW, params=WorkingParameters())
    assert pref.requested_weekend is False


def test_ranges_are_not_named_days():
    day, named = parse_date_reference("sometime this week", TODAY)
    assert day == TODAY
    assert named is False
    day, named = parse_date_reference("next week", TODAY)
    assert day == date(2026, 10, 26)
    assert named is False


def test_day_names_resolve_to_upcoming_occurrence():
    assert parse_date_reference("next Wednesday", TODAY) == (date(2026, 10, 21), True)
    assert parse_date_reference("on friday", TODAY) == (date(2026, 10, 23), True)
    # a bare weekday equal to today means the following week
    assert parse_date_reference("monday", TODAY) == (date(2026, 10, 26), True)
    assert parse_date_reference("this monday", TODAY) == (TODAY, True)
    assert parse_date_reference("day after tomorrow", TODAY) == (date(2026, 10, 21), True)


def test_calendar_dates_roll_into_next_year_when_past():
    assert parse_date_reference("25th December", TODAY) == (date(2026, 12, 25), True)
    assert parse_date_reference("March 3", TODAY) == (date(2027, 3, 3), True)


def test_exact_time_sets_specific_time():
    pref = parse_datetime_preference("tomorrow at 3 pm", IST, reference=NOW)
    assert pref.specific_time == datetime(2026, 10, 20, 15, 0, tzinfo=IST)
    assert pref.time_window == "afternoon"


def test_qualified_times_map_to_windows():
    after = parse_datetime_preference("after 4", IST, reference=NOW)
    assert after.date is None
    assert after.time_window == "evening"
    assert after.specific_time is None

    before = parse_datetime_preference("before 12", IST, reference=NOW)
    assert before.time_window == "morning"

    assert parse_datetime_preference("before noon", IST, reference=NOW).time_window == "morning"


def test_time_references():
    assert parse_time_reference("10:30 am") == TimeReference(hour=10, minute=30, kind=EXACT)
    assert parse_time_reference("4 o'clock") == TimeReference(hour=16, minute=0, kind=EXACT)
    assert parse_time_reference("at noon") == TimeReference(hour=12, minute=0, kind=EXACT)
    assert parse_time_reference("after 2:30 pm") == TimeReference(hour=14, minute=30, kind=AFTER)
    assert parse_time_reference("by 11 am") == TimeReference(hour=11, minute=0, kind=BEFORE)
    assert parse_time_reference("whenever") is None


def test_time_windows():
    assert parse_time_window("Morning please") == "morning"
    assert parse_time_window("any time works") == "any"
    assert parse_time_window("tomorrow") is None


def test_nothing_recognised_is_not_usable():
    pref = parse_datetime_preference("hmm let me think", IST, reference=NOW)
    assert pref.date is None
    assert pref.time_window is None
    assert pref.is_usable is False
