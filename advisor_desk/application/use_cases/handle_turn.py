from __future__ import annotations

import logging
import random
from datetime import date, datetime, timezone
from typing import Any, Callable
from zoneinfo import ZoneInfo

from advisor_desk.application.ports.booking_ledger import BookingLedgerPort
from advisor_desk.application.ports.session_store import SessionStorePort
from advisor_desk.application.use_cases.availability import AvailabilityEngine
from advisor_desk.application.use_cases.classify_intent import ClassifyIntentUseCase
from advisor_desk.application.use_cases.dispatch_tool_calls import ToolDispatcher
from advisor_desk.application.use_cases.extract_slots import ExtractSlotsUseCase
from advisor_desk.application.use_cases.flows.base import Flow, FlowContext, FlowOutcome, FlowServices
from advisor_desk.application.use_cases.flows.book_new import BookNewFlow
from advisor_desk.application.use_cases.flows.cancel import CancelFlow
from advisor_desk.application.use_cases.flows.check_availability import CheckAvailabilityFlow
from advisor_desk.application.use_cases.flows.reschedule import RescheduleFlow
from advisor_desk.application.use_cases.flows.what_to_prepare import WhatToPrepareFlow
from advisor_desk.application.use_cases.resolve_time_preference import ResolveTimePreferenceUseCase
from advisor_desk.application.utils import messages
from advisor_desk.application.utils.booking_code import validate_booking_code
from advisor_desk.application.utils.guardrails import detect_investment_advice, detect_pii, sanitize_pii
from advisor_desk.application.utils.message_rules import (
    extract_booking_code,
    is_affirmative,
    is_negative,
    normalize_text,
)
from advisor_desk.application.utils.topic_mapper import coerce_topic, map_to_topic
from advisor_desk.domain.entities.dialog_state import DialogSession, DialogState
from advisor_desk.domain.entities.intent import Intent
from advisor_desk.domain.entities.slot import Slot
from advisor_desk.domain.entities.tool_call import EVENT_CREATE_TENTATIVE, ToolResult
from advisor_desk.domain.entities.turn import TurnResult
from advisor_desk.domain.entities.working_parameters import WorkingParameters

# "no", "no thanks" after a finished request ends the call
SHORT_REPLY_WORDS = 3

# slots that only make sense inside one flow run
TRANSIENT_SLOTS = (
    "preferred_day",
    "preferred_time_window",
    "selected_slot",
    "available_slots",
    "preferred_slot_start",
    "preferred_slot_end",
    "booking_code_generated",
)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _json_safe(value: Any) -> Any:
    if isinstance(value, Slot):
        return value.to_dict()
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, list):
        return [_json_safe(item) for item in value]
    return value


def public_slots(session: DialogSession) -> dict[str, Any]:
    return {key: _json_safe(value) for key, value in session.slots.items()}


class ConversationOrchestrator:
    """
    Runs one caller turn end to end.

    Per turn: ERROR short-circuit, guardrails, opening on the first turn,
    intent classification and confirmation, then the confirmed intent's
    flow. Tool calls produced by the flow are dispatched after the session
    changes are made; their failures are reported but never undo a booking.
    """

    def __init__(
        self,
        store: SessionStorePort,
        ledger: BookingLedgerPort,
        classify_intent: ClassifyIntentUseCase,
        time_resolver: ResolveTimePreferenceUseCase,
        dispatcher: ToolDispatcher,
        params: WorkingParameters,
        timezone: ZoneInfo,
        brand_name: str,
        secure_url: str,
        slot_extractor: ExtractSlotsUseCase | None = None,
        clock: Callable[[], datetime] = _utc_now,
        code_rng: random.Random | None = None,
    ) -> None:
        self._store = store
        self._ledger = ledger
        self._classify_intent = classify_intent
        self._slot_extractor = slot_extractor
        self._dispatcher = dispatcher
        self._brand_name = brand_name
        self._clock = clock
        self._services = FlowServices(
            ledger=ledger,
            engine=AvailabilityEngine(params, timezone),
            time_resolver=time_resolver,
            slot_extractor=slot_extractor,
            params=params,
            timezone=timezone,
            secure_url=secure_url,
            code_rng=code_rng,
        )
        self._flows: dict[Intent, Flow] = {
            flow.intent: flow
            for flow in (BookNewFlow(), RescheduleFlow(), CancelFlow(), WhatToPrepareFlow(), CheckAvailabilityFlow())
        }
        self.logger = logging.getLogger(__name__)

    def handle_turn(self, session_id: str, text: str) -> TurnResult:
        with self._store.session_lock(session_id):
            session = self._store.get_or_create(session_id)
            session.add_message("user", sanitize_pii(text) or "")
            tool_results: list[ToolResult] = []
            try:
                outcome = self._process(session, text)
                tool_results = self._dispatch(session, outcome)
            except Exception:
                self.logger.exception(
                    "Turn failed",
                    extra={"session_id": session_id, "state": session.state.value},
                )
                if session.state != DialogState.ERROR:
                    session.transition_to(DialogState.ERROR)
                outcome = FlowOutcome(messages.ERROR_APOLOGY)

            session.add_message("assistant", outcome.response)
            self._store.save(session)

            self.logger.info(
                "Turn handled",
                extra={
                    "session_id": session_id,
                    "state": session.state.value,
                    "intent": session.intent.value if session.intent else None,
                    "booking_code": outcome.booking_code,
                },
            )
            return TurnResult(
                session_id=session_id,
                response=outcome.response,
                state=session.state.value,
                intent=session.intent.value if session.intent else None,
                slots=public_slots(session),
                tool_calls=list(outcome.tool_calls),
                tool_results=tool_results,
            )

    def _process(self, session: DialogSession, text: str) -> FlowOutcome:
        if session.state == DialogState.ERROR:
            return FlowOutcome(messages.ERROR_APOLOGY)

        pii = detect_pii(text)
        if pii.detected:
            self.logger.info("PII refused", extra={"session_id": session.session_id, "reason": pii.kind})
            return FlowOutcome(messages.PII_DETECTED)
        if detect_investment_advice(text):
            self.logger.info("Investment advice refused", extra={"session_id": session.session_id, "reason": "advice"})
            return FlowOutcome(messages.INVESTMENT_ADVICE_REFUSAL)

        if session.state == DialogState.INITIAL:
            session.context.update(greeting_sent=True, disclaimer_sent=True, pii_warning_sent=True)
            session.transition_to(DialogState.GREETING)
            return FlowOutcome(messages.opening(self._brand_name))

        if session.state == DialogState.COMPLETED:
            if is_negative(text) and len(normalize_text(text).split()) <= SHORT_REPLY_WORDS:
                return FlowOutcome(messages.GOODBYE)
            session.set_intent(None)
            session.update_slots({key: None for key in TRANSIENT_SLOTS})
            session.transition_to(DialogState.GREETING)

        if session.state == DialogState.INTENT_CONFIRMATION:
            return self._confirm_intent(session, text)

        if session.intent is None:
            return self._classify(session, text)

        flow = self._flows[session.intent]
        return flow.handle(self._context(session, text))

    def _context(self, session: DialogSession, text: str) -> FlowContext:
        return FlowContext(session=session, text=text, now=self._clock(), services=self._services)

    def _classify(self, session: DialogSession, text: str) -> FlowOutcome:
        intent = self._classify_intent.execute(text)
        session.set_intent(intent)
        session.update_slots(self._pre_extract(text, intent))
        session.transition_to(DialogState.INTENT_CONFIRMATION)
        self.logger.info("Intent classified", extra={"session_id": session.session_id, "intent": intent.value})
        return FlowOutcome(messages.intent_confirmation(intent))

    def _pre_extract(self, text: str, intent: Intent) -> dict[str, Any]:
        """Topic and booking code said together with the request, e.g. "cancel NL-A742"."""
        found: dict[str, Any] = {}
        topic = map_to_topic(text)
        code = extract_booking_code(text)
        if (topic is None or code is None) and self._slot_extractor is not None:
            extracted = self._slot_extractor.execute(text, intent)
            if topic is None:
                topic = coerce_topic(extracted.get("topic"))
            raw_code = extracted.get("booking_code")
            if code is None and isinstance(raw_code, str) and validate_booking_code(raw_code.strip().upper()):
                code = raw_code.strip().upper()
        if topic is not None:
            found["topic"] = topic.value
        if code is not None:
            found["booking_code"] = code
        return found

    def _confirm_intent(self, session: DialogSession, text: str) -> FlowOutcome:
        if session.intent is None:
            session.transition_to(DialogState.GREETING)
            return FlowOutcome(messages.HOW_CAN_I_HELP)
        if is_affirmative(text):
            flow = self._flows[session.intent]
            return flow.start(self._context(session, text))
        if is_negative(text):
            session.set_intent(None)
            session.transition_to(DialogState.GREETING)
            return FlowOutcome(messages.intent_rejected())
        return FlowOutcome(messages.intent_reconfirmation(session.intent))

    def _dispatch(self, session: DialogSession, outcome: FlowOutcome) -> list[ToolResult]:
        if not outcome.tool_calls:
            return []
        results = self._dispatcher.dispatch(outcome.tool_calls, booking_code=outcome.booking_code)
        for result in results:
            if result.name != EVENT_CREATE_TENTATIVE or not result.success or not outcome.booking_code:
                continue
            event_id = (result.data or {}).get("id")
            if event_id:
                self._ledger.attach_external_ref(outcome.booking_code, str(event_id))
                session.update_slots({"external_event_ref": str(event_id)})
        return results
