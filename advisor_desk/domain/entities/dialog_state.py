from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from advisor_desk.domain.entities.intent import Intent


class DialogState(str, Enum):
    INITIAL = "initial"
    GREETING = "greeting"
    INTENT_CONFIRMATION = "intent_confirmation"
    TOPIC_SELECTION = "topic_selection"
    TOPIC_CONFIRMATION = "topic_confirmation"
    TIME_PREFERENCE = "time_preference"
    SLOT_OFFER = "slot_offer"
    SLOT_CONFIRMATION = "slot_confirmation"
    WAITLIST_CONFIRMATION = "waitlist_confirmation"
    RESCHEDULE_CODE_INPUT = "reschedule_code_input"
    RESCHEDULE_TIME = "reschedule_time"
    RESCHEDULE_SLOT_CONFIRMATION = "reschedule_slot_confirmation"
    CANCEL_CODE_INPUT = "cancel_code_input"
    CANCEL_CONFIRMATION = "cancel_confirmation"
    PREPARATION_INFO = "preparation_info"
    AVAILABILITY_CHECK = "availability_check"
    COMPLETED = "completed"
    ERROR = "error"


def default_slots() -> dict[str, Any]:
    return {
        "topic": None,
        "preferred_day": None,
        "preferred_time_window": None,
        "booking_code": None,
        "selected_slot": None,
        "available_slots": None,
        "preferred_slot_start": None,
        "preferred_slot_end": None,
        "booking_code_generated": None,
        "external_event_ref": None,
    }


def default_context() -> dict[str, bool]:
    return {
        "greeting_sent": False,
        "disclaimer_sent": False,
        "pii_warning_sent": False,
    }


@dataclass
class DialogSession:
    """
    Per-session dialog state.

    State only changes through transition_to(), which records every move in
    `transitions`. Slot and intent updates are plain merges and never touch
    the state.
    """

    session_id: str
    state: DialogState = DialogState.INITIAL
    intent: Intent | None = None
    slots: dict[str, Any] = field(default_factory=default_slots)
    context: dict[str, bool] = field(default_factory=default_context)
    messages: list[dict[str, Any]] = field(default_factory=list)
    transitions: list[dict[str, Any]] = field(default_factory=list)

    def transition_to(self, new_state: DialogState) -> None:
        self.transitions.append(
            {
                "from": self.state,
                "to": new_state,
                "timestamp": datetime.now(timezone.utc),
            }
        )
        self.state = new_state

    def set_intent(self, intent: Intent | None) -> None:
        self.intent = intent

    def update_slots(self, new_slots: dict[str, Any]) -> None:
        self.slots = {**self.slots, **new_slots}

    def add_message(self, role: str, content: str) -> None:
        self.messages.append(
            {"role": role, "content": content, "timestamp": datetime.now(timezone.utc)}
        )

    def reset(self) -> None:
        self.state = DialogState.INITIAL
        self.intent = None
        self.slots = default_slots()
        self.context = default_context()
        self.messages = []
        self.transitions = []

    def are_required_slots_filled(self) -> bool:
        slots = self.slots
        if self.intent == Intent.BOOK_NEW:
            return (
                slots.get("topic") is not None
                and slots.get("preferred_day") is not None
                and slots.get("preferred_time_window") is not None
            )
        if self.intent == Intent.RESCHEDULE:
            return (
                slots.get("booking_code") is not None
                and slots.get("preferred_day") is not None
                and slots.get("preferred_time_window") is not None
            )
        if self.intent == Intent.CANCEL:
            return slots.get("booking_code") is not None
        if self.intent in (Intent.WHAT_TO_PREPARE, Intent.CHECK_AVAILABILITY):
            return True
        return False
