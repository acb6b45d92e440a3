from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from zoneinfo import ZoneInfo

from advisor_desk.application.exceptions import LLMContractError, LLMUpstreamError
from advisor_desk.application.ports.llm import LLMPort
from advisor_desk.application.utils.date_parser import parse_datetime_preference
from advisor_desk.application.utils.rate_limiter import RateLimiter
from advisor_desk.domain.entities.time_preference import TimePreference
from advisor_desk.domain.entities.working_parameters import WorkingParameters

PARSER = "parser"
INTERPRETER = "interpreter"


@dataclass(frozen=True)
class TimeResolution:
    preference: TimePreference | None
    source: str | None = None

    @property
    def needs_clarification(self) -> bool:
        return self.preference is None


class ResolveTimePreferenceUseCase:
    """
    Two-stage time resolution.

    The deterministic parser runs first. Only when it finds neither a day nor
    a time is the external interpreter asked, and its answer is used only at
    or above `confidence_threshold`. Anything else means "ask again".
    """

    def __init__(
        self,
        llm: LLMPort | None,
        timezone: ZoneInfo,
        params: WorkingParameters,
        confidence_threshold: float = 0.5,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        self._llm = llm
        self._timezone = timezone
        self._params = params
        self._threshold = confidence_threshold
        self._rate_limiter = rate_limiter
        self.logger = logging.getLogger(__name__)

    def execute(self, text: str, now: datetime) -> TimeResolution:
        preference = parse_datetime_preference(text, self._timezone, reference=now, params=self._params)
        if preference.is_usable:
            return TimeResolution(preference=preference, source=PARSER)

        if self._llm is None:
            return TimeResolution(preference=None)
        if self._rate_limiter is not None and not self._rate_limiter.try_acquire():
            return TimeResolution(preference=None)

        reference_date = now.astimezone(self._timezone).date()
        try:
            interpretation = self._llm.interpret_datetime(text, reference_date)
        except (LLMUpstreamError, LLMContractError) as e:
            self.logger.warning("Date interpreter failed", extra={"reason": type(e).__name__})
            return TimeResolution(preference=None)

        if interpretation.confidence < self._threshold:
            self.logger.info(
                "Date interpretation below threshold",
                extra={"reason": f"confidence={interpretation.confidence:.2f}"},
            )
            return TimeResolution(preference=None)
        if interpretation.date is None and interpretation.time_window is None:
            return TimeResolution(preference=None)

        day = interpretation.date
        off_day = day is not None and not self._params.is_working_day(day.isoweekday())
        return TimeResolution(
            preference=TimePreference(
                date=day,
                time_window=interpretation.time_window,
                specific_time=None,
                is_weekend=day is not None and day.isoweekday() >= 6,
                requested_weekend=interpretation.requested_weekend or off_day,
            ),
            source=INTERPRETER,
        )
