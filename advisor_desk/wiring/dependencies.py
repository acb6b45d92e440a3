from functools import lru_cache
import logging
from pathlib import Path
from zoneinfo import ZoneInfo

from advisor_desk.application.ports.booking_ledger import BookingLedgerPort
from advisor_desk.application.ports.llm import LLMPort
from advisor_desk.application.ports.session_store import SessionStorePort
from advisor_desk.application.ports.tool_executor import ToolExecutorPort
from advisor_desk.application.use_cases.classify_intent import ClassifyIntentUseCase
from advisor_desk.application.use_cases.dispatch_tool_calls import ToolDispatcher
from advisor_desk.application.use_cases.extract_slots import ExtractSlotsUseCase
from advisor_desk.application.use_cases.handle_turn import ConversationOrchestrator
from advisor_desk.application.use_cases.resolve_time_preference import ResolveTimePreferenceUseCase
from advisor_desk.application.utils.rate_limiter import RateLimiter
from advisor_desk.core.config import settings
from advisor_desk.domain.entities.working_parameters import WorkingParameters
from advisor_desk.infrastructure.ledger.json_ledger import JsonBookingLedger
from advisor_desk.infrastructure.ledger.memory_ledger import MemoryBookingLedger
from advisor_desk.infrastructure.llm.mock_llm import MockLLM
from advisor_desk.infrastructure.llm.openai_llm import OpenAILLM
from advisor_desk.infrastructure.store.json_store import JsonSessionStore
from advisor_desk.infrastructure.store.memory_store import MemorySessionStore
from advisor_desk.infrastructure.tools.http_executor import HttpToolExecutor
from advisor_desk.infrastructure.tools.in_memory_executor import InMemoryToolExecutor


_session_store: SessionStorePort | None = None
_booking_ledger: BookingLedgerPort | None = None
_orchestrator: ConversationOrchestrator | None = None


@lru_cache
def get_llm() -> LLMPort:
    if settings.OPENAI_API_KEY and settings.OPENAI_API_KEY.strip():
        return OpenAILLM()
    return MockLLM()


@lru_cache
def get_rate_limiter() -> RateLimiter:
    # one budget shared by classification, extraction and date interpretation
    return RateLimiter(max_requests=settings.LLM_RATE_LIMIT_PER_MINUTE, window_seconds=60.0)


@lru_cache
def get_working_parameters() -> WorkingParameters:
    return WorkingParameters(
        working_days=frozenset(settings.WORKING_DAYS),
        start_hour=settings.WORKING_HOUR_START,
        end_hour=settings.WORKING_HOUR_END,
        slot_duration_minutes=settings.SLOT_DURATION_MINUTES,
        max_offered_slots=settings.MAX_OFFERED_SLOTS,
    )


def _use_json_files() -> bool:
    return settings.STORE_PROVIDER.lower() == "json"


def get_session_store() -> SessionStorePort:
    global _session_store
    if _session_store is None:
        if _use_json_files():
            _session_store = JsonSessionStore(data_dir=str(Path(settings.DATA_DIR) / "sessions"))
        else:
            _session_store = MemorySessionStore()
    return _session_store


def get_booking_ledger() -> BookingLedgerPort:
    global _booking_ledger
    if _booking_ledger is None:
        if _use_json_files():
            _booking_ledger = JsonBookingLedger(data_dir=settings.DATA_DIR)
        else:
            _booking_ledger = MemoryBookingLedger()
    return _booking_ledger


@lru_cache
def get_tool_executor() -> ToolExecutorPort:
    logger = logging.getLogger(__name__)
    if settings.TOOL_GATEWAY_URL:
        logger.info("Using HTTP tool gateway")
        return HttpToolExecutor()
    logger.info("Using in-memory tool executor (TOOL_GATEWAY_URL not set)")
    return InMemoryToolExecutor()


def get_orchestrator() -> ConversationOrchestrator:
    global _orchestrator
    if _orchestrator is None:
        tz = ZoneInfo(settings.BUSINESS_TIMEZONE)
        params = get_working_parameters()
        llm = get_llm()
        limiter = get_rate_limiter()
        _orchestrator = ConversationOrchestrator(
            store=get_session_store(),
            ledger=get_booking_ledger(),
            classify_intent=ClassifyIntentUseCase(llm=llm, rate_limiter=limiter),
            time_resolver=ResolveTimePreferenceUseCase(
                llm=llm,
                timezone=tz,
                params=params,
                confidence_threshold=settings.DATETIME_CONFIDENCE_THRESHOLD,
                rate_limiter=limiter,
            ),
            dispatcher=ToolDispatcher(get_tool_executor(), timeout_seconds=settings.TOOL_CALL_TIMEOUT_SECONDS),
            params=params,
            timezone=tz,
            brand_name=settings.BRAND_NAME,
            secure_url=settings.SECURE_URL,
            slot_extractor=ExtractSlotsUseCase(llm=llm, rate_limiter=limiter),
        )
    return _orchestrator
