from advisor_desk.domain.entities.dialog_state import DialogSession, DialogState
from advisor_desk.domain.entities.intent import Intent, parse_intent


def test_transitions_are_recorded():
    session = DialogSession(session_id="s1")
    session.transition_to(DialogState.GREETING)
    session.transition_to(DialogState.INTENT_CONFIRMATION)

    assert session.state == DialogState.INTENT_CONFIRMATION
    assert [(t["from"], t["to"]) for t in session.transitions] == [
        (DialogState.INITIAL, DialogState.GREETING),
        (DialogState.GREETING, DialogState.INTENT_CONFIRMATION),
    ]


def test_slot_updates_merge_without_touching_state():
    session = DialogSession(session_id="s1")
    session.update_slots({"topic": "SIP/Mandates"})
    session.update_slots({"booking_code": "NL-A742"})

    assert session.slots["topic"] == "SIP/Mandates"
    assert session.slots["booking_code"] == "NL-A742"
    assert session.state == DialogState.INITIAL


def test_reset_clears_everything():
    session = DialogSession(session_id="s1")
    session.set_intent(Intent.CANCEL)
    session.update_slots({"booking_code": "NL-A742"})
    session.add_message("user", "cancel")
    session.transition_to(DialogState.GREETING)

    session.reset()
    assert session.state == DialogState.INITIAL
    assert session.intent is None
    assert session.slots["booking_code"] is None
    assert session.messages == []
    assert session.transitions == []


def test_required_slots_per_intent():
    session = DialogSession(session_id="s1")
    assert session.are_required_slots_filled() is False

    session.set_intent(Intent.CANCEL)
    assert session.are_required_slots_filled() is False
    session.update_slots({"booking_code": "NL-A742"})
    assert session.are_required_slots_filled() is True

    session.set_intent(Intent.BOOK_NEW)
    session.update_slots({"topic": "SIP/Mandates", "preferred_day": "2026-10-20"})
    assert session.are_required_slots_filled() is False
    session.update_slots({"preferred_time_window": "morning"})
    assert session.are_required_slots_filled() is True

    session.set_intent(Intent.WHAT_TO_PREPARE)
    assert session.are_required_slots_filled() is True


def test_parse_intent():
    assert parse_intent(" Book_New ") == Intent.BOOK_NEW
    assert parse_intent("refund") is None
    assert parse_intent(None) is None
