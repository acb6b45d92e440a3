from abc import ABC, abstractmethod
from datetime import date
from typing import Any

from advisor_desk.domain.entities.intent import DateTimeInterpretation, Intent


class LLMPort(ABC):
    @abstractmethod
    def classify_intent(self, text: str) -> Intent:
        """
        Classify an utterance into one of the five intents.

        Raises:
            LLMUpstreamError: provider unavailable, timed out or rate limited
            LLMContractError: response could not be mapped to an Intent
        """
        raise NotImplementedError

    @abstractmethod
    def extract_slots(self, text: str, intent: Intent) -> dict[str, Any]:
        """
        Extract intent-specific slots (topic, booking_code, preferred_day, ...).

        Requirements:
        - Keys that were not found may be missing or None
        - Values are unvalidated; callers check them before use
        """
        raise NotImplementedError

    @abstractmethod
    def interpret_datetime(self, text: str, reference_date: date) -> DateTimeInterpretation:
        """
        Interpret a date/time preference the deterministic parser could not read.

        Requirements:
        - confidence is in [0, 1]
        - time_window is one of morning, afternoon, evening, any, or None
        """
        raise NotImplementedError
