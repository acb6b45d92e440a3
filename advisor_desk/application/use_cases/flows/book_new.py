from __future__ import annotations

import logging

from advisor_desk.application.exceptions import ConflictError, GenerationExhausted, ValidationError
from advisor_desk.application.use_cases.flows.base import Flow, FlowContext, FlowOutcome
from advisor_desk.application.use_cases.flows.scheduling import (
    choose_slot,
    mentions_other_day,
    remember_offer,
    search_slots,
    stored_preference,
)
from advisor_desk.application.use_cases.flows.tool_commands import booking_created_commands
from advisor_desk.application.utils import messages
from advisor_desk.application.utils.booking_code import generate_booking_code
from advisor_desk.application.utils.date_parser import parse_datetime_preference
from advisor_desk.application.utils.message_rules import is_affirmative, is_negative
from advisor_desk.application.utils.topic_mapper import coerce_topic, map_to_topic
from advisor_desk.domain.entities.dialog_state import DialogState
from advisor_desk.domain.entities.intent import Intent
from advisor_desk.domain.entities.slot import Slot
from advisor_desk.domain.entities.time_preference import TimePreference
from advisor_desk.domain.entities.topic import Topic

WAITLIST_YES_WORDS = ("add me", "waitlist", "please")


def resolve_topic(ctx: FlowContext, intent: Intent) -> Topic | None:
    topic = map_to_topic(ctx.text)
    if topic is None and ctx.services.slot_extractor is not None:
        topic = coerce_topic(ctx.services.slot_extractor.execute(ctx.text, intent).get("topic"))
    return topic


class BookNewFlow(Flow):
    """topic -> confirm topic -> time preference -> offer -> confirm -> commit (or waitlist)."""

    intent = Intent.BOOK_NEW

    def __init__(self) -> None:
        super().__init__()
        self.logger = logging.getLogger(__name__)
        self.handlers = {
            DialogState.TOPIC_SELECTION: self._on_topic_selection,
            DialogState.TOPIC_CONFIRMATION: self._on_topic_confirmation,
            DialogState.TIME_PREFERENCE: self._on_time_preference,
            DialogState.SLOT_OFFER: self._on_slot_offer,
            DialogState.SLOT_CONFIRMATION: self._on_slot_confirmation,
            DialogState.WAITLIST_CONFIRMATION: self._on_waitlist_confirmation,
        }

    def start(self, ctx: FlowContext) -> FlowOutcome:
        topic = coerce_topic(ctx.session.slots.get("topic"))
        if topic is not None:
            ctx.session.transition_to(DialogState.TOPIC_CONFIRMATION)
            return FlowOutcome(messages.topic_confirmation(topic))
        ctx.session.transition_to(DialogState.TOPIC_SELECTION)
        return FlowOutcome(messages.TOPIC_PROMPT)

    def _on_topic_selection(self, ctx: FlowContext) -> FlowOutcome:
        topic = resolve_topic(ctx, self.intent)
        if topic is None:
            return FlowOutcome(messages.TOPIC_NOT_RECOGNISED)
        ctx.session.update_slots({"topic": topic.value})
        ctx.session.transition_to(DialogState.TOPIC_CONFIRMATION)
        return FlowOutcome(messages.topic_confirmation(topic))

    def _on_topic_confirmation(self, ctx: FlowContext) -> FlowOutcome:
        session = ctx.session
        if is_affirmative(ctx.text):
            selected = session.slots.get("selected_slot")
            if selected is not None:
                # chained in from check_availability with a slot already picked
                session.transition_to(DialogState.SLOT_CONFIRMATION)
                return FlowOutcome(messages.slot_confirmation(Topic(session.slots["topic"]), selected))
            preference = stored_preference(session)
            if preference is not None:
                return self._offer(ctx, preference)
            session.transition_to(DialogState.TIME_PREFERENCE)
            return FlowOutcome(messages.TIME_PROMPT)

        if is_negative(ctx.text):
            other = map_to_topic(ctx.text)
            if other is not None:
                session.update_slots({"topic": other.value})
                return FlowOutcome(messages.topic_confirmation(other))
            session.update_slots({"topic": None})
            session.transition_to(DialogState.TOPIC_SELECTION)
            return FlowOutcome(messages.TOPIC_PROMPT)

        other = map_to_topic(ctx.text)
        if other is not None:
            session.update_slots({"topic": other.value})
            return FlowOutcome(messages.topic_confirmation(other))
        return FlowOutcome(messages.YES_NO_REPROMPT)

    def _on_time_preference(self, ctx: FlowContext) -> FlowOutcome:
        resolution = ctx.services.time_resolver.execute(ctx.text, ctx.now)
        if resolution.needs_clarification:
            return FlowOutcome(messages.TIME_CLARIFICATION)
        return self._offer(ctx, resolution.preference)

    def _offer(self, ctx: FlowContext, preference: TimePreference) -> FlowOutcome:
        session = ctx.session
        params = ctx.services.params
        if preference.requested_weekend:
            if session.state != DialogState.TIME_PREFERENCE:
                session.transition_to(DialogState.TIME_PREFERENCE)
            return FlowOutcome(
                messages.non_working_day_decline(params.working_days, params.start_hour, params.end_hour)
            )

        search = search_slots(ctx, preference)
        if search.slots:
            remember_offer(session, search)
            if session.state != DialogState.SLOT_OFFER:
                session.transition_to(DialogState.SLOT_OFFER)
            prefix = messages.specific_time_taken(search.requested) if search.requested_taken else None
            return FlowOutcome(messages.slot_offer(search.slots, prefix=prefix))

        hold = search.requested
        if search.day is not None and (hold is None or hold.start < ctx.now):
            hold = ctx.services.engine.first_slot_of_window(search.day, search.window, not_before=ctx.now)
        if search.day is None or hold is None:
            if session.state != DialogState.TIME_PREFERENCE:
                session.transition_to(DialogState.TIME_PREFERENCE)
            return FlowOutcome(messages.TIME_CLARIFICATION)

        session.update_slots(
            {
                "preferred_day": search.day,
                "preferred_time_window": search.window,
                "available_slots": None,
                "preferred_slot_start": hold.start,
                "preferred_slot_end": hold.end,
            }
        )
        if session.state != DialogState.WAITLIST_CONFIRMATION:
            session.transition_to(DialogState.WAITLIST_CONFIRMATION)
        if search.requested_taken and search.requested is not None and hold == search.requested:
            return FlowOutcome(messages.waitlist_offer_taken(search.requested))
        return FlowOutcome(messages.waitlist_offer_empty(search.day))

    def _on_slot_offer(self, ctx: FlowContext) -> FlowOutcome:
        session = ctx.session
        slots = session.slots.get("available_slots") or []
        if mentions_other_day(ctx, slots):
            preference = parse_datetime_preference(
                ctx.text, ctx.services.timezone, reference=ctx.now, params=ctx.services.params
            )
            return self._offer(ctx, preference)
        choice = choose_slot(ctx.text, slots, ctx.services.timezone, ctx.services.params)
        if choice is None and len(slots) == 1 and is_affirmative(ctx.text):
            choice = slots[0]
        if choice is None:
            preference = parse_datetime_preference(
                ctx.text, ctx.services.timezone, reference=ctx.now, params=ctx.services.params
            )
            if preference.date is not None or preference.requested_weekend:
                return self._offer(ctx, preference)
            return FlowOutcome(messages.SLOT_CHOICE_REPROMPT)

        session.update_slots({"selected_slot": choice})
        session.transition_to(DialogState.SLOT_CONFIRMATION)
        return FlowOutcome(messages.slot_confirmation(Topic(session.slots["topic"]), choice))

    def _on_slot_confirmation(self, ctx: FlowContext) -> FlowOutcome:
        session = ctx.session
        if is_negative(ctx.text):
            session.update_slots({"selected_slot": None, "available_slots": None})
            session.transition_to(DialogState.TIME_PREFERENCE)
            return FlowOutcome(messages.TIME_PROMPT)
        if not is_affirmative(ctx.text):
            return FlowOutcome(messages.YES_NO_REPROMPT)

        try:
            return self._commit(ctx)
        except ValidationError as e:
            self.logger.warning("Cannot commit booking", extra={"session_id": session.session_id, "reason": str(e)})
            if not session.slots.get("topic"):
                session.transition_to(DialogState.TOPIC_SELECTION)
                return FlowOutcome(messages.TOPIC_PROMPT)
            session.transition_to(DialogState.TIME_PREFERENCE)
            return FlowOutcome(messages.TIME_PROMPT)
        except ConflictError:
            self.logger.info("Slot lost to another session", extra={"session_id": session.session_id, "reason": "conflict"})
            session.update_slots({"selected_slot": None, "available_slots": None})
            session.transition_to(DialogState.TIME_PREFERENCE)
            return FlowOutcome(f"{messages.SLOT_TAKEN} {messages.TIME_PROMPT}")
        except GenerationExhausted:
            self.logger.error("Booking code space exhausted", extra={"session_id": session.session_id})
            return FlowOutcome(messages.CODE_GENERATION_FAILED)

    def _commit(self, ctx: FlowContext) -> FlowOutcome:
        session = ctx.session
        ledger = ctx.services.ledger
        topic = session.slots.get("topic")
        slot = session.slots.get("selected_slot")
        if not topic:
            raise ValidationError("topic is required to book")
        if not isinstance(slot, Slot):
            raise ValidationError("a selected slot is required to book")

        with ledger.transaction():
            if ledger.check_conflict(slot.start, slot.end):
                raise ConflictError(f"{slot.start.isoformat()} is already booked")
            code = generate_booking_code(ledger.issued_codes(), rng=ctx.services.code_rng)
            booking = ledger.set_booking(code, topic, slot.start, slot.end)

        session.update_slots({"booking_code": code, "booking_code_generated": True, "available_slots": None})
        session.transition_to(DialogState.COMPLETED)
        self.logger.info(
            "Booking created", extra={"session_id": session.session_id, "booking_code": code, "intent": self.intent.value}
        )
        if booking.is_waitlist:
            response = messages.waitlist_confirmed(code, ctx.services.secure_url)
        else:
            response = messages.booking_confirmed(code, ctx.services.secure_url)
        return FlowOutcome(response, tool_calls=booking_created_commands(booking), booking_code=code)

    def _on_waitlist_confirmation(self, ctx: FlowContext) -> FlowOutcome:
        session = ctx.session
        if is_negative(ctx.text):
            session.update_slots({"preferred_slot_start": None, "preferred_slot_end": None})
            session.transition_to(DialogState.TIME_PREFERENCE)
            return FlowOutcome(messages.WAITLIST_DECLINED)
        if not is_affirmative(ctx.text, extra_words=WAITLIST_YES_WORDS):
            preference = parse_datetime_preference(
                ctx.text, ctx.services.timezone, reference=ctx.now, params=ctx.services.params
            )
            if preference.is_usable:
                return self._offer(ctx, preference)
            return FlowOutcome(messages.YES_NO_REPROMPT)

        topic = session.slots.get("topic")
        start = session.slots.get("preferred_slot_start")
        end = session.slots.get("preferred_slot_end")
        if not topic or start is None or end is None:
            session.transition_to(DialogState.TIME_PREFERENCE)
            return FlowOutcome(messages.TIME_PROMPT)

        ledger = ctx.services.ledger
        try:
            with ledger.transaction():
                code = generate_booking_code(ledger.issued_codes(), rng=ctx.services.code_rng)
                booking = ledger.set_booking(code, topic, start, end, is_waitlist=True)
        except GenerationExhausted:
            self.logger.error("Booking code space exhausted", extra={"session_id": session.session_id})
            return FlowOutcome(messages.CODE_GENERATION_FAILED)

        session.update_slots({"booking_code": code, "booking_code_generated": True})
        session.transition_to(DialogState.COMPLETED)
        self.logger.info(
            "Waitlist booking created",
            extra={"session_id": session.session_id, "booking_code": code, "intent": self.intent.value},
        )
        return FlowOutcome(
            messages.waitlist_confirmed(code, ctx.services.secure_url),
            tool_calls=booking_created_commands(booking),
            booking_code=code,
        )
