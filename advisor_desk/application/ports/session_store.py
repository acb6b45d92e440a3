from abc import ABC, abstractmethod
from contextlib import AbstractContextManager

from advisor_desk.domain.entities.dialog_state import DialogSession


class SessionStorePort(ABC):
    @abstractmethod
    def get_or_create(self, session_id: str) -> DialogSession:
        """Return the stored session, creating a fresh one on first use."""
        raise NotImplementedError

    @abstractmethod
    def get(self, session_id: str) -> DialogSession | None:
        raise NotImplementedError

    @abstractmethod
    def save(self, session: DialogSession) -> None:
        raise NotImplementedError

    @abstractmethod
    def session_lock(self, session_id: str) -> AbstractContextManager:
        """
        Exclusive lock for one session.
        Held for the whole turn so a session never has two turns in flight.
        """
        raise NotImplementedError
