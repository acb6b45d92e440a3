from __future__ import annotations

import threading
import time
from collections import deque
from typing import Callable


class RateLimiter:
    """
    Sliding-window limiter for outbound LLM calls.

    try_acquire() never blocks: when the window is full the caller is
    expected to take its offline path instead of waiting.
    """

    def __init__(
        self,
        max_requests: int = 30,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._requests: deque[float] = deque()
        self._lock = threading.Lock()

    def _evict(self, now: float) -> None:
        while self._requests and now - self._requests[0] >= self.window_seconds:
            self._requests.popleft()

    def try_acquire(self) -> bool:
        with self._lock:
            now = self._clock()
            self._evict(now)
            if len(self._requests) >= self.max_requests:
                return False
            self._requests.append(now)
            return True

    def current_count(self) -> int:
        with self._lock:
            self._evict(self._clock())
            return len(self._requests)

    def reset(self) -> None:
        with self._lock:
            self._requests.clear()
