from __future__ import annotations

import threading

from advisor_desk.application.ports.session_store import SessionStorePort
from advisor_desk.domain.entities.dialog_state import DialogSession


class MemorySessionStore(SessionStorePort):
    def __init__(self) -> None:
        self._sessions: dict[str, DialogSession] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._lock_lock = threading.Lock()

    def session_lock(self, session_id: str) -> threading.Lock:
        with self._lock_lock:
            if session_id not in self._locks:
                self._locks[session_id] = threading.Lock()
            return self._locks[session_id]

    def get_or_create(self, session_id: str) -> DialogSession:
        with self._lock_lock:
            session = self._sessions.get(session_id)
            if session is None:
                session = DialogSession(session_id=session_id)
                self._sessions[session_id] = session
            return session

    def get(self, session_id: str) -> DialogSession | None:
        return self._sessions.get(session_id)

    def save(self, session: DialogSession) -> None:
        self._sessions[session.session_id] = session
