from __future__ import annotations

import logging

from advisor_desk.application.exceptions import ConflictError, NotFoundError, ValidationError
from advisor_desk.application.use_cases.flows.base import Flow, FlowContext, FlowOutcome
from advisor_desk.application.use_cases.flows.codes import (
    code_from_utterance,
    code_not_found,
    find_active_booking,
    forgotten_code,
)
from advisor_desk.application.use_cases.flows.scheduling import (
    choose_slot,
    mentions_other_day,
    remember_offer,
    search_slots,
)
from advisor_desk.application.use_cases.flows.tool_commands import booking_rescheduled_commands
from advisor_desk.application.utils import messages
from advisor_desk.application.utils.message_rules import is_affirmative, is_negative, mentions_forgotten_code
from advisor_desk.domain.entities.booking import BookingStatus
from advisor_desk.domain.entities.dialog_state import DialogState
from advisor_desk.domain.entities.intent import Intent
from advisor_desk.domain.entities.slot import Slot


class RescheduleFlow(Flow):
    """code -> new time (offer) -> confirm -> move the booking, keeping its code."""

    intent = Intent.RESCHEDULE

    def __init__(self) -> None:
        super().__init__()
        self.logger = logging.getLogger(__name__)
        self.handlers = {
            DialogState.RESCHEDULE_CODE_INPUT: self._on_code_input,
            DialogState.RESCHEDULE_TIME: self._on_time,
            DialogState.RESCHEDULE_SLOT_CONFIRMATION: self._on_slot_confirmation,
        }

    def start(self, ctx: FlowContext) -> FlowOutcome:
        code = ctx.session.slots.get("booking_code")
        if code:
            return self._use_code(ctx, code)
        ctx.session.transition_to(DialogState.RESCHEDULE_CODE_INPUT)
        return FlowOutcome(messages.RESCHEDULE_CODE_PROMPT)

    def _use_code(self, ctx: FlowContext, code: str) -> FlowOutcome:
        try:
            booking = find_active_booking(ctx.services.ledger, code)
        except NotFoundError:
            self.logger.info("Booking code not found", extra={"session_id": ctx.session.session_id, "intent": self.intent.value})
            return code_not_found(ctx)
        ctx.session.update_slots({"booking_code": booking.code, "topic": booking.topic})
        ctx.session.transition_to(DialogState.RESCHEDULE_TIME)
        return FlowOutcome(messages.reschedule_found(booking.topic, booking.slot))

    def _on_code_input(self, ctx: FlowContext) -> FlowOutcome:
        if mentions_forgotten_code(ctx.text):
            return forgotten_code(ctx)
        code = code_from_utterance(ctx, self.intent)
        if code is None:
            return FlowOutcome(messages.INVALID_CODE_FORMAT)
        return self._use_code(ctx, code)

    def _on_time(self, ctx: FlowContext) -> FlowOutcome:
        session = ctx.session
        offered = session.slots.get("available_slots") or []
        choice = None
        if offered and not mentions_other_day(ctx, offered):
            choice = choose_slot(ctx.text, offered, ctx.services.timezone, ctx.services.params)
        if choice is None and len(offered) == 1 and is_affirmative(ctx.text):
            choice = offered[0]
        if choice is not None:
            session.update_slots({"selected_slot": choice})
            session.transition_to(DialogState.RESCHEDULE_SLOT_CONFIRMATION)
            return FlowOutcome(messages.reschedule_confirmation(choice))

        resolution = ctx.services.time_resolver.execute(ctx.text, ctx.now)
        if resolution.needs_clarification:
            return FlowOutcome(messages.SLOT_CHOICE_REPROMPT if offered else messages.TIME_CLARIFICATION)

        preference = resolution.preference
        params = ctx.services.params
        if preference.requested_weekend:
            return FlowOutcome(
                messages.non_working_day_decline(
                    params.working_days, params.start_hour, params.end_hour, reschedule=True
                )
            )

        search = search_slots(ctx, preference, exclude_code=session.slots.get("booking_code"))
        if not search.slots:
            session.update_slots({"available_slots": None})
            return FlowOutcome(messages.RESCHEDULE_NO_SLOTS)
        remember_offer(session, search)
        prefix = messages.specific_time_taken(search.requested) if search.requested_taken else None
        return FlowOutcome(messages.slot_offer(search.slots, prefix=prefix))

    def _on_slot_confirmation(self, ctx: FlowContext) -> FlowOutcome:
        session = ctx.session
        if is_negative(ctx.text):
            session.update_slots({"selected_slot": None, "available_slots": None})
            session.transition_to(DialogState.RESCHEDULE_TIME)
            return FlowOutcome(messages.TIME_PROMPT)
        if not is_affirmative(ctx.text):
            return FlowOutcome(messages.YES_NO_REPROMPT)

        try:
            return self._commit(ctx)
        except NotFoundError:
            return code_not_found(ctx)
        except (ConflictError, ValidationError) as e:
            self.logger.info(
                "Reschedule not committed", extra={"session_id": session.session_id, "reason": type(e).__name__}
            )
            session.update_slots({"selected_slot": None, "available_slots": None})
            session.transition_to(DialogState.RESCHEDULE_TIME)
            return FlowOutcome(f"{messages.SLOT_TAKEN} {messages.TIME_PROMPT}")

    def _commit(self, ctx: FlowContext) -> FlowOutcome:
        session = ctx.session
        ledger = ctx.services.ledger
        code = session.slots.get("booking_code")
        slot = session.slots.get("selected_slot")
        if not code or not isinstance(slot, Slot):
            raise ValidationError("booking code and a selected slot are required to reschedule")

        with ledger.transaction():
            current = find_active_booking(ledger, code)
            if ledger.check_conflict(slot.start, slot.end, exclude_code=code):
                raise ConflictError(f"{slot.start.isoformat()} is already booked")
            booking = ledger.set_booking(
                code,
                current.topic,
                slot.start,
                slot.end,
                status=BookingStatus.RESCHEDULED,
                is_waitlist=False,
                external_event_ref=current.external_event_ref,
            )

        session.update_slots({"available_slots": None})
        session.transition_to(DialogState.COMPLETED)
        self.logger.info(
            "Booking rescheduled", extra={"session_id": session.session_id, "booking_code": code, "intent": self.intent.value}
        )
        return FlowOutcome(
            messages.rescheduled(code, slot),
            tool_calls=booking_rescheduled_commands(booking, previous=current.slot),
            booking_code=code,
        )
