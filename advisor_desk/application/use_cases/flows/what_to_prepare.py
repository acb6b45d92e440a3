from __future__ import annotations

from advisor_desk.application.use_cases.flows.base import Flow, FlowContext, FlowOutcome
from advisor_desk.application.use_cases.flows.book_new import resolve_topic
from advisor_desk.application.utils import messages
from advisor_desk.application.utils.topic_mapper import coerce_topic
from advisor_desk.domain.entities.dialog_state import DialogState
from advisor_desk.domain.entities.intent import Intent
from advisor_desk.domain.entities.topic import Topic


class WhatToPrepareFlow(Flow):
    intent = Intent.WHAT_TO_PREPARE

    def __init__(self) -> None:
        super().__init__()
        self.handlers = {DialogState.PREPARATION_INFO: self._on_topic}

    def start(self, ctx: FlowContext) -> FlowOutcome:
        topic = coerce_topic(ctx.session.slots.get("topic"))
        if topic is not None:
            return self._checklist(ctx, topic)
        ctx.session.transition_to(DialogState.PREPARATION_INFO)
        return FlowOutcome(messages.PREPARE_TOPIC_PROMPT)

    def _on_topic(self, ctx: FlowContext) -> FlowOutcome:
        topic = resolve_topic(ctx, self.intent)
        if topic is None:
            return FlowOutcome(messages.TOPIC_NOT_RECOGNISED)
        return self._checklist(ctx, topic)

    @staticmethod
    def _checklist(ctx: FlowContext, topic: Topic) -> FlowOutcome:
        # booking_code is left untouched so a caller can keep working on it
        ctx.session.update_slots({"topic": topic.value})
        ctx.session.transition_to(DialogState.COMPLETED)
        return FlowOutcome(messages.preparation_checklist(topic))
