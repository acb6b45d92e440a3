from __future__ import annotations

import logging
from datetime import date

from advisor_desk.application.use_cases.flows.base import Flow, FlowContext, FlowOutcome
from advisor_desk.application.use_cases.flows.scheduling import choose_slot, local_today
from advisor_desk.application.use_cases.flows.tool_commands import availability_query
from advisor_desk.application.utils import messages
from advisor_desk.application.utils.date_parser import parse_datetime_preference
from advisor_desk.application.utils.formatting import format_day
from advisor_desk.application.utils.message_rules import is_booking_request, is_negative, normalize_text
from advisor_desk.application.utils.topic_mapper import coerce_topic, map_to_topic
from advisor_desk.domain.entities.dialog_state import DialogState
from advisor_desk.domain.entities.intent import Intent
from advisor_desk.domain.entities.slot import Slot
from advisor_desk.domain.entities.working_parameters import ANY


class CheckAvailabilityFlow(Flow):
    """
    Lists free slots for a day or "this week" and lets the caller pick one
    ("book slot 1"), at which point the session continues as book_new.
    """

    intent = Intent.CHECK_AVAILABILITY

    def __init__(self) -> None:
        super().__init__()
        self.logger = logging.getLogger(__name__)
        self.handlers = {DialogState.AVAILABILITY_CHECK: self._on_check}

    def start(self, ctx: FlowContext) -> FlowOutcome:
        ctx.session.update_slots({"available_slots": None})
        ctx.session.transition_to(DialogState.AVAILABILITY_CHECK)
        return FlowOutcome(messages.AVAILABILITY_RANGE_PROMPT)

    def _on_check(self, ctx: FlowContext) -> FlowOutcome:
        session = ctx.session
        listed = session.slots.get("available_slots") or []
        if listed:
            choice = choose_slot(ctx.text, listed, ctx.services.timezone, ctx.services.params)
            if choice is None and len(listed) == 1 and is_booking_request(ctx.text):
                choice = listed[0]
            if choice is not None:
                return self._chain_into_booking(ctx, choice)
            if is_negative(ctx.text):
                session.update_slots({"available_slots": None})
                session.transition_to(DialogState.COMPLETED)
                return FlowOutcome(messages.ANYTHING_ELSE)
        return self._list(ctx)

    def _list(self, ctx: FlowContext) -> FlowOutcome:
        session = ctx.session
        services = ctx.services
        params = services.params
        today = local_today(ctx)
        preference = parse_datetime_preference(ctx.text, services.timezone, reference=ctx.now, params=params)
        whole_week = "week" in normalize_text(ctx.text).split()

        if preference.requested_weekend:
            return FlowOutcome(messages.non_working_day_decline(params.working_days, params.start_hour, params.end_hour))
        if preference.date is None and preference.time_window is None and not whole_week:
            return FlowOutcome(messages.AVAILABILITY_RANGE_PROMPT)

        window = preference.time_window or ANY
        start_day = preference.date or today
        busy = services.ledger.active_intervals()
        if whole_week:
            day, slots = services.engine.find_next_available(
                start_day, window, existing_bookings=busy, not_before=ctx.now
            )
        else:
            slots = services.engine.get_available_slots(start_day, window, existing_bookings=busy, not_before=ctx.now)
            day = slots[0].start.date() if slots else start_day

        query = availability_query(day or start_day, window, slots)
        if not slots:
            session.update_slots({"available_slots": None})
            return FlowOutcome(messages.AVAILABILITY_NONE, tool_calls=[query])

        session.update_slots({"available_slots": list(slots), "preferred_day": day, "preferred_time_window": window})
        return FlowOutcome(messages.availability_listing(self._label(day, today, slots), slots), tool_calls=[query])

    @staticmethod
    def _label(day: date | None, today: date, slots: list[Slot]) -> str:
        if day == today:
            return "Today"
        if day is not None and (day - today).days == 1:
            return "Tomorrow"
        return f"On {format_day(slots[0].start)}"

    def _chain_into_booking(self, ctx: FlowContext, choice: Slot) -> FlowOutcome:
        session = ctx.session
        topic = coerce_topic(session.slots.get("topic")) or map_to_topic(ctx.text)
        session.set_intent(Intent.BOOK_NEW)
        session.update_slots({"selected_slot": choice, "available_slots": [choice]})
        self.logger.info(
            "Availability check chained into booking",
            extra={"session_id": session.session_id, "intent": Intent.BOOK_NEW.value},
        )
        if topic is None:
            session.transition_to(DialogState.TOPIC_SELECTION)
            return FlowOutcome(f"Sure. {messages.TOPIC_PROMPT}")
        session.update_slots({"topic": topic.value})
        session.transition_to(DialogState.SLOT_CONFIRMATION)
        return FlowOutcome(messages.slot_confirmation(topic, choice))
