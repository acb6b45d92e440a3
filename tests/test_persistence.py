"""
Tests for durable dialog session persistence.
"""

from __future__ import annotations

import tempfile
from datetime import date, datetime
from pathlib import Path
from zoneinfo import ZoneInfo

from advisor_desk.domain.entities.dialog_state import DialogSession, DialogState
from advisor_desk.domain.entities.intent import Intent
from advisor_desk.domain.entities.slot import Slot
from advisor_desk.infrastructure.store.json_store import JsonSessionStore

IST = ZoneInfo("Asia/Kolkata")


def _offer() -> list[Slot]:
    return [
        Slot(start=datetime(2026, 10, 20, 12, 0, tzinfo=IST), end=datetime(2026, 10, 20, 12, 30, tzinfo=IST)),
        Slot(start=datetime(2026, 10, 20, 12, 30, tzinfo=IST), end=datetime(2026, 10, 20, 13, 0, tzinfo=IST)),
    ]


def test_json_store_round_trips_session():
    """A session mid-offer comes back with typed slots, intent and transition history."""
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonSessionStore(data_dir=tmpdir)
        session = DialogSession(session_id="call-1")
        session.set_intent(Intent.BOOK_NEW)
        session.transition_to(DialogState.GREETING)
        session.transition_to(DialogState.SLOT_OFFER)
        slots = _offer()
        session.update_slots(
            {
                "topic": "KYC/Onboarding",
                "preferred_day": date(2026, 10, 20),
                "preferred_time_window": "afternoon",
                "available_slots": slots,
                "selected_slot": slots[1],
                "preferred_slot_start": slots[0].start,
                "preferred_slot_end": slots[0].end,
            }
        )
        session.add_message("user", "tomorrow afternoon")
        store.save(session)

        loaded = store.get("call-1")

        assert loaded.state == DialogState.SLOT_OFFER
        assert loaded.intent == Intent.BOOK_NEW
        assert loaded.slots["topic"] == "KYC/Onboarding"
        assert loaded.slots["preferred_day"] == date(2026, 10, 20)
        assert loaded.slots["available_slots"] == slots
        assert loaded.slots["selected_slot"] == slots[1]
        assert loaded.slots["preferred_slot_start"] == slots[0].start
        assert [t["to"] for t in loaded.transitions] == [DialogState.GREETING, DialogState.SLOT_OFFER]
        assert loaded.messages[0]["content"] == "tomorrow afternoon"


def test_unknown_session_is_created_fresh():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonSessionStore(data_dir=tmpdir)
        assert store.get("nobody") is None
        session = store.get_or_create("nobody")
        assert session.state == DialogState.INITIAL
        assert session.slots["booking_code"] is None


def test_corrupt_file_starts_over():
    """A half-written session file is treated as missing rather than failing the turn."""
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonSessionStore(data_dir=tmpdir)
        Path(tmpdir, "broken.json").write_text("{not json", encoding="utf-8")

        assert store.get("broken") is None
        assert store.get_or_create("broken").state == DialogState.INITIAL


def test_history_is_capped():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonSessionStore(data_dir=tmpdir, history_limit=3)
        session = DialogSession(session_id="chatty")
        for index in range(5):
            session.add_message("user", f"message {index}")
        store.save(session)

        loaded = store.get("chatty")
        assert [m["content"] for m in loaded.messages] == ["message 2", "message 3", "message 4"]


def test_session_ids_are_made_filesystem_safe():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonSessionStore(data_dir=tmpdir)
        store.save(DialogSession(session_id="../escape"))

        assert store.get("../escape").session_id == "../escape"
        assert sorted(p.name for p in Path(tmpdir).iterdir()) == [".._escape.json"]
