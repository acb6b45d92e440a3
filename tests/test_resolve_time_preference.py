from datetime import date, datetime
from zoneinfo import ZoneInfo

from advisor_desk.application.exceptions import LLMUpstreamError
from advisor_desk.application.ports.llm import LLMPort
from advisor_desk.application.use_cases.resolve_time_preference import (
    INTERPRETER,
    PARSER,
    ResolveTimePreferenceUseCase,
)
from advisor_desk.domain.entities.intent import DateTimeInterpretation, Intent
from advisor_desk.domain.entities.working_parameters import WorkingParameters

IST = ZoneInfo("Asia/Kolkata")
NOW = datetime(2026, 10, 19, 9, 0, tzinfo=IST)


class InterpreterStub(LLMPort):
    def __init__(self, interpretation: DateTimeInterpretation | None = None, error: Exception | None = None) -> None:
        self.interpretation = interpretation or DateTimeInterpretation()
        self.error = error
        self.calls: list[tuple[str, date]] = []

    def classify_intent(self, text: str) -> Intent:
        return Intent.BOOK_NEW

    def extract_slots(self, text: str, intent: Intent) -> dict:
        return {}

    def interpret_datetime(self, text: str, reference_date: date) -> DateTimeInterpretation:
        self.calls.append((text, reference_date))
        if self.error is not None:
            raise self.error
        return self.interpretation


def _resolver(llm: LLMPort | None, params: WorkingParameters | None = None) -> ResolveTimePreferenceUseCase:
    return ResolveTimePreferenceUseCase(llm=llm, timezone=IST, params=params or WorkingParameters())


def test_parser_answer_skips_interpreter():
    llm = InterpreterStub()
    resolution = _resolver(llm).execute("tomorrow morning", NOW)

    assert resolution.source == PARSER
    assert resolution.preference.date == date(2026, 10, 20)
    assert resolution.preference.time_window == "morning"
    assert llm.calls == []


def test_confident_interpretation_is_used():
    llm = InterpreterStub(
        DateTimeInterpretation(date=date(2026, 10, 22), time_window="afternoon", confidence=0.8, needs_clarification=False)
    )
    resolution = _resolver(llm).execute("sometime after lunch midweek", NOW)

    assert resolution.source == INTERPRETER
    assert resolution.preference.date == date(2026, 10, 22)
    assert resolution.preference.time_window == "afternoon"
    assert llm.calls == [("sometime after lunch midweek", date(2026, 10, 19))]


def test_confidence_exactly_at_threshold_is_accepted():
    llm = InterpreterStub(DateTimeInterpretation(date=date(2026, 10, 22), confidence=0.5))
    assert _resolver(llm).execute("midweek", NOW).needs_clarification is False


def test_low_confidence_needs_clarification():
    llm = InterpreterStub(DateTimeInterpretation(date=date(2026, 10, 22), confidence=0.3))
    assert _resolver(llm).execute("midweek", NOW).needs_clarification is True


def test_interpreter_failure_needs_clarification():
    llm = InterpreterStub(error=LLMUpstreamError("down"))
    assert _resolver(llm).execute("midweek", NOW).needs_clarification is True
    assert _resolver(None).execute("midweek", NOW).needs_clarification is True


def test_interpreted_off_day_is_flagged():
    params = WorkingParameters(working_days=frozenset({1, 2, 3, 4, 5}))
    llm = InterpreterStub(DateTimeInterpretation(date=date(2026, 10, 25), confidence=0.9))
    resolution = _resolver(llm, params).execute("the weekend", NOW)
    assert resolution.preference.requested_weekend is True
    assert resolution.preference.is_weekend is True
