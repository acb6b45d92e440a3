from __future__ import annotations

import json
from datetime import date
from typing import Any

from openai import OpenAI

from advisor_desk.application.exceptions import LLMContractError, LLMUpstreamError
from advisor_desk.application.ports.llm import LLMPort
from advisor_desk.core.config import settings
from advisor_desk.domain.entities.intent import DateTimeInterpretation, Intent, parse_intent
from advisor_desk.domain.entities.working_parameters import DEFAULT_TIME_WINDOWS
from advisor_desk.infrastructure.llm.prompts import (
    build_classify_prompt,
    build_extract_slots_prompt,
    build_interpret_datetime_prompt,
)


class OpenAILLM(LLMPort):
    """
    OpenAI-backed adapter implementing LLMPort.

    Contract guarantees:
    - classify_intent returns an Intent
    - extract_slots returns a dict (possibly empty)
    - interpret_datetime returns a DateTimeInterpretation with confidence in [0, 1]
    - Raises:
        LLMUpstreamError: networking/provider failures, including rate limits
        LLMContractError: invalid JSON or wrong schema/shape
    """

    def __init__(self) -> None:
        self.client = OpenAI(api_key=settings.OPENAI_API_KEY)

    def classify_intent(self, text: str) -> Intent:
        content = self._call_text(prompt=build_classify_prompt(text), max_tokens=50)
        data = _parse_json(content, what="classify")
        if not isinstance(data, dict):
            raise LLMContractError("Classify: expected a JSON object with 'intent' key.")
        intent = parse_intent(data.get("intent") if isinstance(data.get("intent"), str) else None)
        if intent is None:
            raise LLMContractError(f"Classify: unknown intent {data.get('intent')!r}.")
        return intent

    def extract_slots(self, text: str, intent: Intent) -> dict[str, Any]:
        content = self._call_text(prompt=build_extract_slots_prompt(text, intent.value), max_tokens=300)
        data = _parse_json(content, what="extract")
        if not isinstance(data, dict):
            raise LLMContractError("Extract: expected a JSON object.")
        return {key: value for key, value in data.items() if isinstance(key, str)}

    def interpret_datetime(self, text: str, reference_date: date) -> DateTimeInterpretation:
        content = self._call_text(prompt=build_interpret_datetime_prompt(text, reference_date), max_tokens=300)
        data = _parse_json(content, what="interpret")
        if not isinstance(data, dict):
            raise LLMContractError("Interpret: expected a JSON object.")

        try:
            raw_date = data.get("date")
            parsed_date = date.fromisoformat(raw_date) if raw_date else None
            confidence = float(data.get("confidence", 0.0))
        except (TypeError, ValueError) as e:
            raise LLMContractError(f"Interpret: invalid date or confidence: {e}")

        window = data.get("time_window")
        if window not in DEFAULT_TIME_WINDOWS:
            window = None

        return DateTimeInterpretation(
            date=parsed_date,
            time_window=window,
            confidence=min(max(confidence, 0.0), 1.0),
            needs_clarification=bool(data.get("needs_clarification", True)),
            interpretation=str(data.get("interpretation") or "") or None,
            requested_weekend=bool(data.get("requested_weekend", False)),
        )

    def _call_text(self, prompt: str, max_tokens: int) -> str:
        try:
            resp = self.client.chat.completions.create(
                model=settings.OPENAI_MODEL_CLASSIFY,
                messages=[
                    {"role": "system", "content": "Return only valid JSON. Do not include markdown or extra text."},
                    {"role": "user", "content": prompt},
                ],
                temperature=settings.OPENAI_TEMPERATURE_CLASSIFY,
                max_tokens=max_tokens,
                response_format={"type": "json_object"},
            )
        except Exception as e:
            raise LLMUpstreamError(f"OpenAI API error: {e}") from e

        content = (resp.choices[0].message.content or "").strip() if resp.choices else ""
        if not content:
            raise LLMContractError("LLM returned empty response text.")

        return content


def _parse_json(text: str, what: str) -> Any:
    try:
        return json.loads(text)
    except Exception:
        snippet = text[:200].replace("\n", " ")
        raise LLMContractError(f"{what.capitalize()}: invalid JSON. Snippet: {snippet!r}")
