from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime


@dataclass(frozen=True)
class TimePreference:
    date: date | None = None
    time_window: str | None = None
    specific_time: datetime | None = None
    is_weekend: bool = False
    requested_weekend: bool = False

    @property
    def is_usable(self) -> bool:
        return self.date is not None or self.time_window is not None
