from __future__ import annotations

import time
from collections import defaultdict, deque
from typing import Callable


class SimpleRateLimiter:
    """Sliding-window counter keyed by caller (IP, IP:username, ...)."""

    def __init__(
        self,
        *,
        max_events: int,
        window_seconds: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_events = max_events
        self.window_seconds = window_seconds
        self._clock = clock
        self._events: dict[str, deque[float]] = defaultdict(deque)

    def allow(self, key: str) -> bool:
        now = self._clock()
        window_start = now - self.window_seconds
        events = self._events[key]
        while events and events[0] < window_start:
            events.popleft()
        if len(events) >= self.max_events:
            return False
        events.append(now)
        return True

    def reset(self) -> None:
        self._events.clear()


_LIMITERS: list[SimpleRateLimiter] = []


def build_limiter(*, max_events: int, window_seconds: int = 60) -> SimpleRateLimiter:
    limiter = SimpleRateLimiter(max_events=max_events, window_seconds=window_seconds)
    _LIMITERS.append(limiter)
    return limiter


def reset_all() -> None:
    for limiter in _LIMITERS:
        limiter.reset()
