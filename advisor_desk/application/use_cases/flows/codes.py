from __future__ import annotations

from advisor_desk.application.exceptions import NotFoundError
from advisor_desk.application.ports.booking_ledger import BookingLedgerPort
from advisor_desk.application.use_cases.flows.base import FlowContext, FlowOutcome
from advisor_desk.application.utils import messages
from advisor_desk.application.utils.booking_code import validate_booking_code
from advisor_desk.application.utils.message_rules import extract_booking_code
from advisor_desk.domain.entities.booking import Booking
from advisor_desk.domain.entities.dialog_state import DialogState
from advisor_desk.domain.entities.intent import Intent


def code_from_utterance(ctx: FlowContext, intent: Intent) -> str | None:
    code = extract_booking_code(ctx.text)
    if code is None and ctx.services.slot_extractor is not None:
        extracted = ctx.services.slot_extractor.execute(ctx.text, intent).get("booking_code")
        if isinstance(extracted, str) and validate_booking_code(extracted):
            code = extracted.strip().upper()
    return code


def find_active_booking(ledger: BookingLedgerPort, code: str) -> Booking:
    booking = ledger.get_booking(code)
    if booking is None or booking.is_cancelled:
        raise NotFoundError(code)
    return booking


def reset_to_greeting(ctx: FlowContext, response: str) -> FlowOutcome:
    session = ctx.session
    session.set_intent(None)
    session.update_slots({"booking_code": None, "available_slots": None, "selected_slot": None})
    session.transition_to(DialogState.GREETING)
    return FlowOutcome(response)


def forgotten_code(ctx: FlowContext) -> FlowOutcome:
    return reset_to_greeting(ctx, messages.BOOKING_CODE_FORGOTTEN)


def code_not_found(ctx: FlowContext) -> FlowOutcome:
    return reset_to_greeting(ctx, f"{messages.BOOKING_CODE_NOT_FOUND} {messages.ANYTHING_ELSE}")
