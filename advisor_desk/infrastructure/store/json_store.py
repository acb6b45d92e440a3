from __future__ import annotations

import json
import logging
import re
import threading
from datetime import date, datetime
from pathlib import Path
from typing import Any

from advisor_desk.application.ports.session_store import SessionStorePort
from advisor_desk.domain.entities.dialog_state import DialogSession, DialogState, default_context, default_slots
from advisor_desk.domain.entities.intent import parse_intent
from advisor_desk.domain.entities.slot import Slot

_SAFE_ID = re.compile(r"[^A-Za-z0-9_.-]")


class JsonSessionStore(SessionStorePort):
    def __init__(self, data_dir: str = "./data/sessions", history_limit: int = 50) -> None:
        self._data_dir = Path(data_dir)
        self._data_dir.mkdir(parents=True, exist_ok=True)
        self._history_limit = history_limit
        self._locks: dict[str, threading.Lock] = {}
        self._lock_lock = threading.Lock()  # guards the locks dict
        self.logger = logging.getLogger(__name__)

    def session_lock(self, session_id: str) -> threading.Lock:
        with self._lock_lock:
            if session_id not in self._locks:
                self._locks[session_id] = threading.Lock()
            return self._locks[session_id]

    def _get_file_path(self, session_id: str) -> Path:
        return self._data_dir / f"{_SAFE_ID.sub('_', session_id)}.json"

    def get(self, session_id: str) -> DialogSession | None:
        file_path = self._get_file_path(session_id)
        if not file_path.exists():
            return None
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            # corrupted file: the caller starts over with a fresh session
            self.logger.error("Could not read session file", extra={"session_id": session_id, "reason": str(e)})
            return None
        return self._deserialize_session(data)

    def get_or_create(self, session_id: str) -> DialogSession:
        return self.get(session_id) or DialogSession(session_id=session_id)

    def save(self, session: DialogSession) -> None:
        file_path = self._get_file_path(session.session_id)
        temp_path = file_path.with_suffix(".json.tmp")
        data = self._serialize_session(session)
        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            temp_path.replace(file_path)
        except Exception:
            if temp_path.exists():
                temp_path.unlink(missing_ok=True)
            raise

    def _serialize_session(self, session: DialogSession) -> dict[str, Any]:
        messages = session.messages[-self._history_limit :]
        return {
            "version": 1,
            "session_id": session.session_id,
            "state": session.state.value,
            "intent": session.intent.value if session.intent else None,
            "slots": self._serialize_slots(session.slots),
            "context": dict(session.context),
            "messages": [
                {"role": m["role"], "content": m["content"], "timestamp": _iso(m.get("timestamp"))}
                for m in messages
            ],
            "transitions": [
                {
                    "from": t["from"].value,
                    "to": t["to"].value,
                    "timestamp": _iso(t.get("timestamp")),
                }
                for t in session.transitions
            ],
        }

    def _deserialize_session(self, data: dict[str, Any]) -> DialogSession:
        context = default_context()
        context.update(data.get("context") or {})
        return DialogSession(
            session_id=data["session_id"],
            state=DialogState(data.get("state", DialogState.INITIAL.value)),
            intent=parse_intent(data.get("intent")),
            slots=self._deserialize_slots(data.get("slots") or {}),
            context=context,
            messages=[
                {"role": m["role"], "content": m["content"], "timestamp": _parse_datetime(m.get("timestamp"))}
                for m in data.get("messages", [])
            ],
            transitions=[
                {
                    "from": DialogState(t["from"]),
                    "to": DialogState(t["to"]),
                    "timestamp": _parse_datetime(t.get("timestamp")),
                }
                for t in data.get("transitions", [])
            ],
        )

    def _serialize_slots(self, slots: dict[str, Any]) -> dict[str, Any]:
        result = dict(slots)
        topic = slots.get("topic")
        result["topic"] = getattr(topic, "value", topic)
        day = slots.get("preferred_day")
        result["preferred_day"] = day.isoformat() if isinstance(day, date) else day
        selected = slots.get("selected_slot")
        result["selected_slot"] = selected.to_dict() if isinstance(selected, Slot) else None
        available = slots.get("available_slots")
        result["available_slots"] = [s.to_dict() for s in available] if available else None
        for key in ("preferred_slot_start", "preferred_slot_end"):
            result[key] = _iso(slots.get(key))
        return result

    def _deserialize_slots(self, data: dict[str, Any]) -> dict[str, Any]:
        slots = default_slots()
        slots.update(data)
        if data.get("preferred_day"):
            slots["preferred_day"] = date.fromisoformat(data["preferred_day"])
        if data.get("selected_slot"):
            slots["selected_slot"] = Slot.from_dict(data["selected_slot"])
        if data.get("available_slots"):
            slots["available_slots"] = [Slot.from_dict(s) for s in data["available_slots"]]
        for key in ("preferred_slot_start", "preferred_slot_end"):
            slots[key] = _parse_datetime(data.get(key))
        return slots


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if isinstance(value, datetime) else None


def _parse_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except (ValueError, TypeError):
        return None
