from __future__ import annotations

import logging
from typing import Any

from advisor_desk.application.exceptions import LLMContractError, LLMUpstreamError
from advisor_desk.application.ports.llm import LLMPort
from advisor_desk.application.utils.rate_limiter import RateLimiter
from advisor_desk.domain.entities.intent import Intent


class ExtractSlotsUseCase:
    """Best-effort slot extraction; any failure yields no slots and the flow asks instead."""

    def __init__(self, llm: LLMPort, rate_limiter: RateLimiter | None = None) -> None:
        self._llm = llm
        self._rate_limiter = rate_limiter
        self.logger = logging.getLogger(__name__)

    def execute(self, text: str, intent: Intent) -> dict[str, Any]:
        if self._rate_limiter is not None and not self._rate_limiter.try_acquire():
            return {}
        try:
            return self._llm.extract_slots(text, intent)
        except (LLMUpstreamError, LLMContractError) as e:
            self.logger.warning(
                "Slot extraction failed", extra={"intent": intent.value, "reason": type(e).__name__}
            )
            return {}
