from __future__ import annotations

from dataclasses import dataclass, field

MORNING = "morning"
AFTERNOON = "afternoon"
EVENING = "evening"
ANY = "any"

DEFAULT_TIME_WINDOWS: dict[str, tuple[int, int]] = {
    MORNING: (10, 12),
    AFTERNOON: (12, 16),
    EVENING: (16, 18),
    ANY: (10, 18),
}


@dataclass(frozen=True)
class WorkingParameters:
    # ISO weekday numbers, Monday=1 ... Sunday=7
    working_days: frozenset[int] = frozenset({1, 2, 3, 4, 5, 6})
    start_hour: int = 10
    end_hour: int = 18
    slot_duration_minutes: int = 30
    max_offered_slots: int = 2
    time_windows: dict[str, tuple[int, int]] = field(default_factory=lambda: dict(DEFAULT_TIME_WINDOWS))

    def is_working_day(self, iso_weekday: int) -> bool:
        return iso_weekday in self.working_days

    def window_range(self, window: str | None) -> tuple[int, int]:
        return self.time_windows.get(window or ANY) or self.time_windows.get(ANY) or (self.start_hour, self.end_hour)

    def window_for_hour(self, hour: int) -> str | None:
        """Narrowest named window containing `hour`; "any" only when nothing narrower fits."""
        for name, (start, end) in self.time_windows.items():
            if name != ANY and start <= hour < end:
                return name
        any_start, any_end = self.window_range(ANY)
        if any_start <= hour < any_end:
            return ANY
        return None
