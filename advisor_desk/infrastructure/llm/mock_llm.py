from __future__ import annotations

from datetime import date
from typing import Any

from advisor_desk.application.ports.llm import LLMPort
from advisor_desk.application.utils.keyword_classifier import classify_intent_with_keywords
from advisor_desk.application.utils.message_rules import extract_booking_code
from advisor_desk.application.utils.topic_mapper import map_to_topic
from advisor_desk.domain.entities.intent import DateTimeInterpretation, Intent


class MockLLM(LLMPort):
    """Offline stand-in: keyword rules for intent and slots, never confident about dates."""

    def classify_intent(self, text: str) -> Intent:
        return classify_intent_with_keywords(text)

    def extract_slots(self, text: str, intent: Intent) -> dict[str, Any]:
        slots: dict[str, Any] = {}
        if intent in (Intent.BOOK_NEW, Intent.WHAT_TO_PREPARE):
            topic = map_to_topic(text)
            if topic is not None:
                slots["topic"] = topic.value
        if intent in (Intent.RESCHEDULE, Intent.CANCEL):
            code = extract_booking_code(text)
            if code:
                slots["booking_code"] = code
        return slots

    def interpret_datetime(self, text: str, reference_date: date) -> DateTimeInterpretation:
        return DateTimeInterpretation(
            date=None,
            time_window=None,
            confidence=0.0,
            needs_clarification=True,
            interpretation=None,
        )
