from __future__ import annotations

import random
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable
from zoneinfo import ZoneInfo

from advisor_desk.application.ports.booking_ledger import BookingLedgerPort
from advisor_desk.application.use_cases.availability import AvailabilityEngine
from advisor_desk.application.use_cases.extract_slots import ExtractSlotsUseCase
from advisor_desk.application.use_cases.resolve_time_preference import ResolveTimePreferenceUseCase
from advisor_desk.domain.entities.dialog_state import DialogSession, DialogState
from advisor_desk.domain.entities.intent import Intent
from advisor_desk.domain.entities.tool_call import ToolCall
from advisor_desk.domain.entities.working_parameters import WorkingParameters


@dataclass(frozen=True)
class FlowServices:
    ledger: BookingLedgerPort
    engine: AvailabilityEngine
    time_resolver: ResolveTimePreferenceUseCase
    slot_extractor: ExtractSlotsUseCase | None
    params: WorkingParameters
    timezone: ZoneInfo
    secure_url: str
    code_rng: random.Random | None = None


@dataclass
class FlowContext:
    session: DialogSession
    text: str
    now: datetime
    services: FlowServices


@dataclass
class FlowOutcome:
    response: str
    tool_calls: list[ToolCall] = field(default_factory=list)
    booking_code: str | None = None


Handler = Callable[[FlowContext], FlowOutcome]


class Flow:
    """
    One intent's sub-dialog as a (state -> handler) table.

    start() runs right after the intent is confirmed and asks the flow's
    first question; handle() routes every later turn by the session state.
    """

    intent: Intent

    def __init__(self) -> None:
        self.handlers: dict[DialogState, Handler] = {}

    def start(self, ctx: FlowContext) -> FlowOutcome:
        raise NotImplementedError

    def handle(self, ctx: FlowContext) -> FlowOutcome:
        handler = self.handlers.get(ctx.session.state)
        if handler is None:
            return self.start(ctx)
        return handler(ctx)
