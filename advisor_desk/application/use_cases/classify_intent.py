from __future__ import annotations

import logging

from advisor_desk.application.exceptions import LLMContractError, LLMUpstreamError
from advisor_desk.application.ports.llm import LLMPort
from advisor_desk.application.utils.keyword_classifier import (
    classify_intent_with_keywords,
    is_rate_limit_error,
    should_use_keyword_fallback,
)
from advisor_desk.application.utils.rate_limiter import RateLimiter
from advisor_desk.domain.entities.intent import Intent


class ClassifyIntentUseCase:
    def __init__(self, llm: LLMPort, rate_limiter: RateLimiter | None = None) -> None:
        self._llm = llm
        self._rate_limiter = rate_limiter
        self.logger = logging.getLogger(__name__)

    def execute(self, text: str) -> Intent:
        if self._rate_limiter is not None and not self._rate_limiter.try_acquire():
            self.logger.info("LLM budget spent, using keyword classifier", extra={"reason": "rate_limited"})
            return classify_intent_with_keywords(text)

        try:
            return self._llm.classify_intent(text)
        except (LLMUpstreamError, LLMContractError) as e:
            reason = "rate_limited" if is_rate_limit_error(e) else type(e).__name__
            self.logger.warning("Intent classifier failed, using keyword classifier", extra={"reason": reason})
            return classify_intent_with_keywords(text)
        except Exception as e:
            if not should_use_keyword_fallback(e):
                raise
            self.logger.warning(
                "Intent classifier raised, using keyword classifier", extra={"reason": type(e).__name__}
            )
            return classify_intent_with_keywords(text)
