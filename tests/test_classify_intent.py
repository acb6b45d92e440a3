from datetime import date

import pytest

from advisor_desk.application.exceptions import LLMContractError, LLMUpstreamError
from advisor_desk.application.ports.llm import LLMPort
from advisor_desk.application.use_cases.classify_intent import ClassifyIntentUseCase
from advisor_desk.application.use_cases.extract_slots import ExtractSlotsUseCase
from advisor_desk.application.utils.rate_limiter import RateLimiter
from advisor_desk.domain.entities.intent import DateTimeInterpretation, Intent


class StubLLM(LLMPort):
    def __init__(self, intent: Intent = Intent.WHAT_TO_PREPARE, error: Exception | None = None) -> None:
        self.intent = intent
        self.error = error
        self.calls = 0

    def classify_intent(self, text: str) -> Intent:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.intent

    def extract_slots(self, text: str, intent: Intent) -> dict:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return {"topic": "SIP/Mandates"}

    def interpret_datetime(self, text: str, reference_date: date) -> DateTimeInterpretation:
        return DateTimeInterpretation()


def test_uses_llm_answer_when_available():
    uc = ClassifyIntentUseCase(llm=StubLLM(intent=Intent.WHAT_TO_PREPARE))
    assert uc.execute("please cancel") == Intent.WHAT_TO_PREPARE


def test_upstream_error_falls_back_to_keywords():
    uc = ClassifyIntentUseCase(llm=StubLLM(error=LLMUpstreamError("429 Too Many Requests")))
    assert uc.execute("please cancel my booking") == Intent.CANCEL


def test_contract_error_falls_back_to_keywords():
    uc = ClassifyIntentUseCase(llm=StubLLM(error=LLMContractError("not json")))
    assert uc.execute("I want to reschedule") == Intent.RESCHEDULE


def test_network_style_exception_falls_back():
    uc = ClassifyIntentUseCase(llm=StubLLM(error=ConnectionError("connection refused")))
    assert uc.execute("please cancel my booking") == Intent.CANCEL


def test_unrelated_exception_propagates():
    uc = ClassifyIntentUseCase(llm=StubLLM(error=ValueError("boom")))
    with pytest.raises(ValueError):
        uc.execute("please cancel my booking")


def test_spent_rate_limit_skips_llm():
    llm = StubLLM(intent=Intent.WHAT_TO_PREPARE)
    limiter = RateLimiter(max_requests=1, window_seconds=60.0)
    uc = ClassifyIntentUseCase(llm=llm, rate_limiter=limiter)

    assert uc.execute("please cancel my booking") == Intent.WHAT_TO_PREPARE
    assert uc.execute("please cancel my booking") == Intent.CANCEL
    assert llm.calls == 1


def test_slot_extraction_degrades_to_empty():
    assert ExtractSlotsUseCase(llm=StubLLM()).execute("sip", Intent.BOOK_NEW) == {"topic": "SIP/Mandates"}
    failing = ExtractSlotsUseCase(llm=StubLLM(error=LLMUpstreamError("down")))
    assert failing.execute("sip", Intent.BOOK_NEW) == {}


def test_rate_limiter_window_slides():
    now = [0.0]
    limiter = RateLimiter(max_requests=2, window_seconds=10.0, clock=lambda: now[0])
    assert limiter.try_acquire() is True
    assert limiter.try_acquire() is True
    assert limiter.try_acquire() is False
    assert limiter.current_count() == 2

    now[0] = 10.0
    assert limiter.try_acquire() is True
    assert limiter.current_count() == 1
    limiter.reset()
    assert limiter.current_count() == 0
