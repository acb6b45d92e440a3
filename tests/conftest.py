from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from advisor_desk.application.use_cases.classify_intent import ClassifyIntentUseCase
from advisor_desk.application.use_cases.dispatch_tool_calls import ToolDispatcher
from advisor_desk.application.use_cases.extract_slots import ExtractSlotsUseCase
from advisor_desk.application.use_cases.handle_turn import ConversationOrchestrator
from advisor_desk.application.use_cases.resolve_time_preference import ResolveTimePreferenceUseCase
from advisor_desk.domain.entities.working_parameters import WorkingParameters
from advisor_desk.infrastructure.ledger.memory_ledger import MemoryBookingLedger
from advisor_desk.infrastructure.llm.mock_llm import MockLLM
from advisor_desk.infrastructure.store.memory_store import MemorySessionStore
from advisor_desk.infrastructure.tools.in_memory_executor import InMemoryToolExecutor

IST = ZoneInfo("Asia/Kolkata")
# Monday 19 October 2026, before the desk opens
NOW = datetime(2026, 10, 19, 9, 0, tzinfo=IST)


@dataclass
class Desk:
    orchestrator: ConversationOrchestrator
    store: MemorySessionStore
    ledger: MemoryBookingLedger
    executor: InMemoryToolExecutor

    def say(self, session_id: str, *utterances: str):
        result = None
        for text in utterances:
            result = self.orchestrator.handle_turn(session_id, text)
        return result


def build_desk(
    params: WorkingParameters | None = None,
    failing_tools: set[str] | None = None,
    llm=None,
    ledger: MemoryBookingLedger | None = None,
    now: datetime = NOW,
) -> Desk:
    params = params or WorkingParameters()
    llm = llm or MockLLM()
    store = MemorySessionStore()
    ledger = ledger or MemoryBookingLedger(clock=lambda: now)
    executor = InMemoryToolExecutor(failing_tools=failing_tools)
    orchestrator = ConversationOrchestrator(
        store=store,
        ledger=ledger,
        classify_intent=ClassifyIntentUseCase(llm=llm),
        time_resolver=ResolveTimePreferenceUseCase(llm=llm, timezone=IST, params=params),
        dispatcher=ToolDispatcher(executor, timeout_seconds=5.0),
        params=params,
        timezone=IST,
        brand_name="Finpath",
        secure_url="https://advisors.example.com/complete",
        slot_extractor=ExtractSlotsUseCase(llm=llm),
        clock=lambda: now,
        code_rng=random.Random(7),
    )
    return Desk(orchestrator=orchestrator, store=store, ledger=ledger, executor=executor)


@pytest.fixture
def desk() -> Desk:
    return build_desk()


@pytest.fixture
def desk_factory():
    return build_desk
