from advisor_desk.application.utils.keyword_classifier import (
    classify_intent_with_keywords,
    is_rate_limit_error,
    should_use_keyword_fallback,
)
from advisor_desk.domain.entities.intent import Intent


class _StatusError(Exception):
    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


def test_each_intent_is_recognised():
    assert classify_intent_with_keywords("I want to book an appointment") == Intent.BOOK_NEW
    assert classify_intent_with_keywords("I want to reschedule my appointment") == Intent.RESCHEDULE
    assert classify_intent_with_keywords("Please cancel my booking") == Intent.CANCEL
    assert classify_intent_with_keywords("What documents do I need to prepare?") == Intent.WHAT_TO_PREPARE
    assert classify_intent_with_keywords("What slots are available tomorrow?") == Intent.CHECK_AVAILABILITY


def test_weak_or_empty_input_defaults_to_book_new():
    assert classify_intent_with_keywords("hello") == Intent.BOOK_NEW
    assert classify_intent_with_keywords("") == Intent.BOOK_NEW
    assert classify_intent_with_keywords(None) == Intent.BOOK_NEW


def test_cancel_beats_booking_words():
    assert classify_intent_with_keywords("cancel the appointment I booked") == Intent.CANCEL


def test_rate_limit_detection():
    assert is_rate_limit_error(_StatusError("slow down", 429)) is True
    assert is_rate_limit_error(RuntimeError("Rate limit reached for requests")) is True
    assert is_rate_limit_error(RuntimeError("bad prompt")) is False
    assert is_rate_limit_error(None) is False


def test_fallback_decision():
    assert should_use_keyword_fallback(_StatusError("server error", 503)) is True
    assert should_use_keyword_fallback(_StatusError("bad request", 400)) is True
    assert should_use_keyword_fallback(RuntimeError("Connection reset by peer")) is True
    assert should_use_keyword_fallback(RuntimeError("request timed out")) is True
    assert should_use_keyword_fallback(ValueError("boom")) is False
    assert should_use_keyword_fallback(None) is False
