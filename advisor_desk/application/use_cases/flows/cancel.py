from __future__ import annotations

import logging

from advisor_desk.application.exceptions import NotFoundError
from advisor_desk.application.use_cases.flows.base import Flow, FlowContext, FlowOutcome
from advisor_desk.application.use_cases.flows.codes import (
    code_from_utterance,
    code_not_found,
    find_active_booking,
    forgotten_code,
)
from advisor_desk.application.use_cases.flows.tool_commands import booking_cancelled_commands
from advisor_desk.application.utils import messages
from advisor_desk.application.utils.message_rules import is_affirmative, is_negative, mentions_forgotten_code
from advisor_desk.domain.entities.dialog_state import DialogState
from advisor_desk.domain.entities.intent import Intent

CANCEL_YES_WORDS = ("cancel it", "go ahead")
CANCEL_NO_WORDS = ("keep it", "keep", "don t cancel")


class CancelFlow(Flow):
    intent = Intent.CANCEL

    def __init__(self) -> None:
        super().__init__()
        self.logger = logging.getLogger(__name__)
        self.handlers = {
            DialogState.CANCEL_CODE_INPUT: self._on_code_input,
            DialogState.CANCEL_CONFIRMATION: self._on_confirmation,
        }

    def start(self, ctx: FlowContext) -> FlowOutcome:
        code = ctx.session.slots.get("booking_code")
        if code:
            return self._use_code(ctx, code)
        ctx.session.transition_to(DialogState.CANCEL_CODE_INPUT)
        return FlowOutcome(messages.CANCEL_CODE_PROMPT)

    def _use_code(self, ctx: FlowContext, code: str) -> FlowOutcome:
        try:
            booking = find_active_booking(ctx.services.ledger, code)
        except NotFoundError:
            self.logger.info("Booking code not found", extra={"session_id": ctx.session.session_id, "intent": self.intent.value})
            return code_not_found(ctx)
        ctx.session.update_slots({"booking_code": booking.code})
        ctx.session.transition_to(DialogState.CANCEL_CONFIRMATION)
        return FlowOutcome(messages.cancel_confirmation(booking.topic, booking.slot))

    def _on_code_input(self, ctx: FlowContext) -> FlowOutcome:
        if mentions_forgotten_code(ctx.text):
            return forgotten_code(ctx)
        code = code_from_utterance(ctx, self.intent)
        if code is None:
            return FlowOutcome(messages.INVALID_CODE_FORMAT)
        return self._use_code(ctx, code)

    def _on_confirmation(self, ctx: FlowContext) -> FlowOutcome:
        session = ctx.session
        if is_negative(ctx.text, extra_words=CANCEL_NO_WORDS):
            session.transition_to(DialogState.COMPLETED)
            return FlowOutcome(messages.CANCEL_KEPT)
        if not is_affirmative(ctx.text, extra_words=CANCEL_YES_WORDS):
            return FlowOutcome(messages.YES_NO_REPROMPT)

        code = session.slots.get("booking_code")
        ledger = ctx.services.ledger
        with ledger.transaction():
            cancelled = bool(code) and ledger.delete_booking(code)
            booking = ledger.get_booking(code) if cancelled else None
        if booking is None:
            return code_not_found(ctx)

        session.update_slots({"booking_code": None, "selected_slot": None, "available_slots": None})
        session.transition_to(DialogState.COMPLETED)
        self.logger.info(
            "Booking cancelled", extra={"session_id": session.session_id, "booking_code": code, "intent": self.intent.value}
        )
        return FlowOutcome(
            messages.cancelled(code),
            tool_calls=booking_cancelled_commands(booking),
            booking_code=code,
        )
